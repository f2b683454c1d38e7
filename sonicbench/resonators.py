"""Four tuned feedback-delay resonators with colour filtering and a dry/wet mix."""

from __future__ import annotations

from dataclasses import dataclass, field

from .primitives import RCFilter, clamp, crossfade, rescale

FREQ_C4 = 261.6256
RESONATOR_COUNT = 4
INTERPOLATION_SPEED = 0.01
BUFFER_SECONDS = 0.1  # long enough for 10 Hz, below the lowest reachable pitch


def _check_four(name: str, values: tuple | list) -> None:
    if len(values) != RESONATOR_COUNT:
        raise ValueError(f"{name} needs {RESONATOR_COUNT} entries, got {len(values)}")


@dataclass
class ResonatorParams:
    """Knob positions; ``pitch`` is in semitones relative to C4."""

    pitch: list[float] = field(default_factory=lambda: [0.0] * RESONATOR_COUNT)
    gain: list[float] = field(default_factory=lambda: [0.5] * RESONATOR_COUNT)
    decay: float = 0.9
    color: float = 0.5
    amp: float = 0.5
    mix: float = 0.5
    decay_cv: float = 0.0
    color_cv: float = 0.0
    gain_cv: float = 0.0
    mix_cv: float = 0.0

    def __post_init__(self) -> None:
        _check_four("pitch", self.pitch)
        _check_four("gain", self.gain)


@dataclass
class ResonatorInputs:
    """Voltages at the input jacks for one sample.

    Each polyphonic jack is a tuple of channel voltages; an empty tuple means
    the jack is not connected. ``mix`` is ``None`` when unconnected.
    """

    audio: float = 0.0
    pitch: tuple[tuple[float, ...], ...] = ((), (), (), ())
    decay: tuple[float, ...] = ()
    color: tuple[float, ...] = ()
    gain: tuple[float, ...] = ()
    mix: float | None = None

    def __post_init__(self) -> None:
        _check_four("pitch", self.pitch)


@dataclass
class ResonatorOutput:
    """Summed output and the four per-resonator wet signals."""

    out: float
    wet: tuple[float, ...]


def _poly_cv(channels: tuple[float, ...], index: int, amount: float) -> float:
    """CV contribution for resonator ``index``, falling back to the last channel."""
    if not channels:
        return 0.0
    voltage = channels[index] if index < len(channels) else channels[-1]
    return voltage / 10.0 * amount


class Resonators:
    """Bank of four Karplus-style resonators fed by one audio input."""

    def __init__(self, params: ResonatorParams | None = None, sample_rate: float = 44100.0) -> None:
        self.params = params if params is not None else ResonatorParams()
        self.lowpass_filters = [RCFilter() for _ in range(RESONATOR_COUNT)]
        self.highpass_filters = [RCFilter() for _ in range(RESONATOR_COUNT)]
        self.delay_indices = [0] * RESONATOR_COUNT
        self.prev_delay_output = [0.0] * RESONATOR_COUNT
        self.current_delay = [0.0] * RESONATOR_COUNT
        self.target_delay = [0.0] * RESONATOR_COUNT
        self.buffers: list[list[float]] = []
        self.buffer_size = 0
        self.sample_rate = sample_rate
        self.set_sample_rate(sample_rate)

    def set_sample_rate(self, sample_rate: float) -> None:
        """Resize and clear the delay lines for a new sample rate."""
        if sample_rate <= 0:
            raise ValueError("sample rate must be positive")
        self.sample_rate = float(sample_rate)
        self.buffer_size = int(self.sample_rate * BUFFER_SECONDS)
        if self.buffer_size < 2:
            raise ValueError("sample rate too low for the delay lines")
        self.buffers = [[0.0] * self.buffer_size for _ in range(RESONATOR_COUNT)]
        self.delay_indices = [index % self.buffer_size for index in self.delay_indices]

    def read_delay(self, index: int, delay_samples: float) -> float:
        """Read delay line ``index`` ``delay_samples`` behind the write head, interpolating."""
        buffer = self.buffers[index]
        read_index = self.delay_indices[index] - delay_samples
        if read_index < 0:
            read_index += self.buffer_size
        index0 = int(read_index)
        index1 = (index0 + 1) % self.buffer_size
        frac = read_index - index0
        return (1.0 - frac) * buffer[index0] + frac * buffer[index1]

    def write_delay(self, index: int, value: float) -> None:
        """Write ``value`` at the head of delay line ``index`` and advance it."""
        position = self.delay_indices[index]
        self.buffers[index][position] = value
        self.delay_indices[index] = (position + 1) % self.buffer_size

    def _pitch_octaves(self, inputs: ResonatorInputs, i: int) -> float:
        pitch = self.params.pitch[i] / 12.0
        own = inputs.pitch[i]
        first = inputs.pitch[0]
        if own:
            pitch += own[0]
        elif len(first) > 1 and i < len(first):
            pitch += first[i]
        return clamp(pitch, -4.5, 4.5)

    def process(self, inputs: ResonatorInputs) -> ResonatorOutput:
        """Advance one sample and return the outputs."""
        p = self.params
        audio = inputs.audio

        mix = p.mix
        if inputs.mix is not None:
            mix += inputs.mix / 10.0 * p.mix_cv
        mix = clamp(mix, 0.0, 1.0)

        wet: list[float] = []
        total = 0.0
        for i in range(RESONATOR_COUNT):
            frequency = FREQ_C4 * 2.0 ** self._pitch_octaves(inputs, i)

            decay = clamp(p.decay + _poly_cv(inputs.decay, i, p.decay_cv), 0.0, 1.0)
            feedback = rescale(decay ** 0.2, 0.0, 1.0, 0.7, 0.995)

            color = clamp(p.color + _poly_cv(inputs.color, i, p.color_cv), 0.0, 1.0)
            color_freq = 100.0 ** (2.0 * color - 1.0)

            gain = clamp(p.gain[i] + _poly_cv(inputs.gain, i, p.gain_cv), 0.0001, 1.0)

            self.target_delay[i] = self.sample_rate / frequency
            self.current_delay[i] += (self.target_delay[i] - self.current_delay[i]) * INTERPOLATION_SPEED

            delayed = self.read_delay(i, self.current_delay[i])
            smoothed = 0.5 * (delayed + self.prev_delay_output[i])
            self.prev_delay_output[i] = delayed
            signal = smoothed * feedback

            lowpass = self.lowpass_filters[i]
            lowpass.set_cutoff_freq(clamp(20000.0 * color_freq, 20.0, 20000.0) / self.sample_rate)
            lowpass.process(signal)
            signal = lowpass.lowpass()

            highpass = self.highpass_filters[i]
            highpass.set_cutoff(clamp(20.0 * color_freq, 20.0, 20000.0) / self.sample_rate)
            highpass.process(signal)
            signal = highpass.highpass()

            self.write_delay(i, audio + signal)

            final = signal * gain
            wet.append(final)
            total += final * p.amp

        return ResonatorOutput(out=crossfade(audio, total, mix), wet=tuple(wet))