"""EBU R128 / ITU BS.1770 loudness measurement state."""

from __future__ import annotations

import enum
import math

import numpy as np
from scipy import signal

_ABSOLUTE_GATE_LUFS = -70.0
_LOUDNESS_OFFSET = -0.691
_ABSOLUTE_GATE_ENERGY = 10.0 ** ((_ABSOLUTE_GATE_LUFS - _LOUDNESS_OFFSET) / 10.0)
_INTEGRATED_RELATIVE_GATE = 10.0 ** (-10.0 / 10.0)
_RANGE_RELATIVE_GATE = 10.0 ** (-20.0 / 10.0)
_TRUE_PEAK_TAPS = 49


class LoudnessError(ValueError):
    """Raised when a measurement is requested that the state was not set up for."""


class Mode(enum.IntFlag):
    """Measurement modes; each mode includes the modes it depends on.

    ``HISTOGRAM`` is accepted for compatibility; block energies are always
    kept exactly.
    """

    MOMENTARY = 1
    SHORT_TERM = 2 | 1
    INTEGRATED = 4 | 1
    LOUDNESS_RANGE = 8 | 2 | 1
    SAMPLE_PEAK = 16 | 1
    TRUE_PEAK = 32 | 16 | 1
    HISTOGRAM = 64


def _energy_to_loudness(energy: float) -> float:
    if energy <= 0.0:
        return -math.inf
    return 10.0 * math.log10(energy) + _LOUDNESS_OFFSET


def _channel_weight(index: int) -> float:
    """Default channel map: L, R, C, LFE (unused), Ls, Rs; further channels unused."""
    return {3: 0.0, 4: 1.41, 5: 1.41}.get(index, 1.0 if index < 6 else 0.0)


def _k_weighting(sample_rate: float) -> np.ndarray:
    """Second-order sections of the BS.1770 pre-filter and RLB high-pass."""
    f0 = 1681.974450955533
    gain_db = 3.999843853973347
    q = 0.7071752369554196
    k = math.tan(math.pi * f0 / sample_rate)
    vh = 10.0 ** (gain_db / 20.0)
    vb = vh ** 0.4996667741545416
    a0 = 1.0 + k / q + k * k
    shelf = [
        (vh + vb * k / q + k * k) / a0,
        2.0 * (k * k - vh) / a0,
        (vh - vb * k / q + k * k) / a0,
        1.0,
        2.0 * (k * k - 1.0) / a0,
        (1.0 - k / q + k * k) / a0,
    ]

    f0 = 38.13547087602444
    q = 0.5003270373238773
    k = math.tan(math.pi * f0 / sample_rate)
    a0 = 1.0 + k / q + k * k
    highpass = [1.0, -2.0, 1.0, 1.0, 2.0 * (k * k - 1.0) / a0, (1.0 - k / q + k * k) / a0]
    return np.array([shelf, highpass])


def _oversampling_filter(factor: int) -> np.ndarray:
    """Hann-windowed sinc interpolation filter for ``factor``-times oversampling."""
    positions = np.arange(_TRUE_PEAK_TAPS)
    offsets = positions - (_TRUE_PEAK_TAPS - 1) / 2.0
    window = 0.5 * (1.0 - np.cos(2.0 * math.pi * positions / (_TRUE_PEAK_TAPS - 1)))
    return np.sinc(offsets / factor) * window


class LoudnessState:
    """Running loudness, loudness-range and peak measurement for interleaved audio."""

    def __init__(self, channels: int, sample_rate: float, mode: Mode = Mode.MOMENTARY) -> None:
        if channels < 1:
            raise ValueError("at least one channel is required")
        if sample_rate < 16:
            raise ValueError("sample rate must be at least 16 Hz")
        self.channels = int(channels)
        self.sample_rate = int(sample_rate)
        self.mode = Mode(mode) | Mode.MOMENTARY

        self._samples_100ms = (self.sample_rate + 5) // 10
        window_blocks = 30 if self._has(Mode.SHORT_TERM) else 4
        self._window = self._samples_100ms * window_blocks
        self._history = np.zeros(self._window)
        self._weights = np.array([_channel_weight(c) for c in range(self.channels)])

        self._sos = _k_weighting(self.sample_rate)
        self._filter_state = np.zeros((len(self._sos), 2, self.channels))

        self._needed = self._samples_100ms * 4
        self._short_term_counter = 0
        self._blocks: list[float] = []
        self._short_term_blocks: list[float] = []

        if self.sample_rate < 96000:
            self._factor = 4
        elif self.sample_rate < 192000:
            self._factor = 2
        else:
            self._factor = 0
        self._fir = _oversampling_filter(self._factor) if self._factor else np.ones(1)
        self._fir_state = np.zeros((len(self._fir) - 1, self.channels))

        self._prev_sample_peak = np.zeros(self.channels)
        self._prev_true_peak = np.zeros(self.channels)

    def _has(self, flag: Mode) -> bool:
        return (self.mode & flag) == flag

    def _require(self, flag: Mode) -> None:
        if not self._has(flag):
            raise LoudnessError(f"state was not created with {flag!r}")

    def _shape(self, frames) -> np.ndarray:
        data = np.asarray(frames, dtype=float)
        if data.ndim == 1:
            if data.size % self.channels:
                raise ValueError("sample count is not a multiple of the channel count")
            return data.reshape(-1, self.channels)
        if data.ndim != 2 or data.shape[1] != self.channels:
            raise ValueError(f"frames must have {self.channels} channels")
        return data

    def _update_peaks(self, data: np.ndarray) -> None:
        if len(data) == 0:
            self._prev_sample_peak = np.zeros(self.channels)
            self._prev_true_peak = np.zeros(self.channels)
            return
        if self._has(Mode.SAMPLE_PEAK):
            self._prev_sample_peak = np.abs(data).max(axis=0)
        if self._has(Mode.TRUE_PEAK):
            if self._factor:
                stuffed = np.zeros((len(data) * self._factor, self.channels))
                stuffed[:: self._factor] = data
                upsampled, self._fir_state = signal.lfilter(
                    self._fir, [1.0], stuffed, axis=0, zi=self._fir_state
                )
                self._prev_true_peak = np.abs(upsampled).max(axis=0)
            else:
                self._prev_true_peak = np.abs(data).max(axis=0)

    def _push(self, energies: np.ndarray) -> None:
        self._history = np.concatenate((self._history, energies))[-self._window:]

    def _energy_in(self, frames: int) -> float:
        return float(self._history[-frames:].mean())

    def add_frames(self, frames) -> None:
        """Feed frames given as an ``(n, channels)`` array or a flat interleaved sequence."""
        data = self._shape(frames)
        self._update_peaks(data)
        if len(data) == 0:
            return
        filtered, self._filter_state = signal.sosfilt(
            self._sos, data, axis=0, zi=self._filter_state
        )
        energies = (filtered ** 2) @ self._weights

        block_frames = self._samples_100ms * 4
        short_term_frames = self._samples_100ms * 30
        position = 0
        while position < len(energies):
            take = min(len(energies) - position, self._needed)
            self._push(energies[position:position + take])
            position += take
            self._needed -= take
            if self._has(Mode.LOUDNESS_RANGE):
                self._short_term_counter += take
            if self._needed:
                continue
            self._needed = self._samples_100ms
            if self._has(Mode.INTEGRATED):
                self._blocks.append(self._energy_in(block_frames))
            if self._has(Mode.LOUDNESS_RANGE) and self._short_term_counter == short_term_frames:
                self._short_term_blocks.append(self._energy_in(short_term_frames))
                self._short_term_counter = self._samples_100ms * 20

    def loudness_momentary(self) -> float:
        """Loudness of the last 400 ms in LUFS."""
        return _energy_to_loudness(self._energy_in(self._samples_100ms * 4))

    def loudness_shortterm(self) -> float:
        """Loudness of the last 3 s in LUFS."""
        self._require(Mode.SHORT_TERM)
        return _energy_to_loudness(self._energy_in(self._samples_100ms * 30))

    def loudness_global(self) -> float:
        """Gated integrated loudness of everything fed so far, in LUFS."""
        self._require(Mode.INTEGRATED)
        above = [e for e in self._blocks if e >= _ABSOLUTE_GATE_ENERGY]
        if not above:
            return -math.inf
        threshold = sum(above) / len(above) * _INTEGRATED_RELATIVE_GATE
        gated = [e for e in above if e >= threshold]
        return _energy_to_loudness(sum(gated) / len(gated))

    def loudness_range(self) -> tuple[float, float, float]:
        """Return ``(range, low, high)`` in LU/LUFS from the gated short-term blocks."""
        self._require(Mode.LOUDNESS_RANGE)
        above = [e for e in self._short_term_blocks if e >= _ABSOLUTE_GATE_ENERGY]
        if not above:
            return 0.0, -math.inf, -math.inf
        threshold = sum(above) / len(above) * _RANGE_RELATIVE_GATE
        gated = sorted(e for e in above if e >= threshold)
        last = len(gated) - 1
        low = _energy_to_loudness(gated[int(last * 0.1 + 0.5)])
        high = _energy_to_loudness(gated[int(last * 0.95 + 0.5)])
        return high - low, low, high

    def prev_true_peak(self, channel: int) -> float:
        """Linear true peak of ``channel`` over the frames of the last ``add_frames`` call."""
        self._require(Mode.TRUE_PEAK)
        if not 0 <= channel < self.channels:
            raise IndexError(f"channel {channel} out of range")
        return float(max(self._prev_sample_peak[channel], self._prev_true_peak[channel]))