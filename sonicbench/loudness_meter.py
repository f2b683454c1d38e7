"""Loudness meter: momentary, short-term, integrated, range, PSR, PLR and true peak."""

from __future__ import annotations

import enum
import math
from collections import deque
from collections.abc import Iterable
from typing import Any

import numpy as np

from .ebur128 import LoudnessError, LoudnessState, Mode
from .primitives import SchmittTrigger, clamp

ALMOST_NEGATIVE_INFINITY = -99.0
VOLTAGE_SCALE = 0.1
LOG_EPSILON = 1e-10
PROCESSING_BLOCK_FRAMES = 2048
PEAK_HISTORY_SECONDS = 2.5
DEFAULT_TARGET = -23.0
TARGET_MIN = -36.0
TARGET_MAX = 0.0

_MEASURE_MODE = (
    Mode.MOMENTARY | Mode.SHORT_TERM | Mode.INTEGRATED
    | Mode.LOUDNESS_RANGE | Mode.HISTOGRAM | Mode.TRUE_PEAK
)
_QUERY_ERRORS = (LoudnessError, IndexError)


def max_of(values: Iterable[float]) -> float:
    """Largest value, ignoring NaN; negative infinity when there is none."""
    return max((v for v in values if not math.isnan(v)), default=-math.inf)


class ProcessingMode(enum.IntEnum):
    TRUE_AUTO = 0
    FORCE_MONO = 1
    FORCE_STEREO = 2


class LoudnessMeter:
    """Meter fed one sample of control voltage per call to :meth:`process`."""

    def __init__(self, sample_rate: float = 44100.0) -> None:
        self.sample_rate = float(sample_rate)
        self.state: LoudnessState | None = None
        self.current_channels = 0
        self._buffer: list[tuple[float, ...]] = []

        self.target_param = DEFAULT_TARGET
        self.target_loudness = DEFAULT_TARGET
        self.short_term_enabled = True
        self.processing_mode = ProcessingMode.TRUE_AUTO
        self.previous_processing_mode: ProcessingMode | None = None

        self.left_connected = False
        self.right_connected = False
        self.overshoot = 0.0

        self.peak_history_size = 0
        self.peak_history: deque[float] = deque()
        self._reset_trigger = SchmittTrigger()
        self._reset_port_trigger = SchmittTrigger()

        self._clear_readings()
        self._calculate_history_size()
        self.reset()

    def _clear_readings(self) -> None:
        inf = -math.inf
        self.momentary_lufs = inf
        self.short_term_lufs = inf
        self.integrated_lufs = inf
        self.loudness_range = inf
        self.loudness_range_low = inf
        self.loudness_range_high = inf
        self.psr = inf
        self.plr = inf
        self.max_short_term_lufs = inf
        self.max_momentary_lufs = inf
        self.max_true_peak_l = inf
        self.max_true_peak_r = inf
        self.true_peak_max = inf
        self.true_peak_sliding_max = inf

    def _trim_history(self) -> None:
        while len(self.peak_history) > self.peak_history_size:
            self.peak_history.popleft()

    def _calculate_history_size(self) -> None:
        if self.sample_rate > 0:
            chunks = math.ceil(PEAK_HISTORY_SECONDS * self.sample_rate / PROCESSING_BLOCK_FRAMES)
            self.peak_history_size = max(chunks, 5)
        else:
            self.peak_history_size = 100
        self._trim_history()

    def set_sample_rate(self, sample_rate: float) -> None:
        """Adopt a new sample rate and restart the measurement."""
        self.sample_rate = float(sample_rate)
        self._calculate_history_size()
        self.reset()

    def effective_channels(self) -> int:
        """Channel count the measurement needs for the mode and connected inputs."""
        any_connected = self.left_connected or self.right_connected
        if not any_connected:
            return 0
        if self.processing_mode == ProcessingMode.FORCE_MONO:
            return 1
        if self.processing_mode == ProcessingMode.FORCE_STEREO:
            return 2
        return 2 if self.left_connected and self.right_connected else 1

    def _process_block(self) -> None:
        if self.state is None or not self._buffer:
            return
        frames = np.asarray(self._buffer, dtype=float)
        self._buffer = []
        try:
            self.state.add_frames(frames)
        except ValueError:
            self.reset()
            return
        self._update_values()

    def _query(self, measure) -> float:
        try:
            value = measure()
        except _QUERY_ERRORS:
            return -math.inf
        return value if value > -70.0 else -math.inf

    def _channel_peak(self, channel: int) -> float | None:
        """Peak in dBTP, or None when the state cannot report one."""
        try:
            linear = self.state.prev_true_peak(channel)
        except _QUERY_ERRORS:
            return None
        return 20.0 * math.log10(linear) if linear > LOG_EPSILON else -math.inf

    def _update_values(self) -> None:
        state = self.state
        if state is None or self.peak_history_size == 0:
            return

        self.momentary_lufs = self._query(state.loudness_momentary)
        if self.momentary_lufs > self.max_momentary_lufs and self.momentary_lufs > ALMOST_NEGATIVE_INFINITY:
            self.max_momentary_lufs = self.momentary_lufs

        if self.short_term_enabled:
            self.short_term_lufs = self._query(state.loudness_shortterm)
            if self.short_term_lufs > self.max_short_term_lufs and self.short_term_lufs > ALMOST_NEGATIVE_INFINITY:
                self.max_short_term_lufs = self.short_term_lufs
        else:
            self.short_term_lufs = -math.inf
            self.max_short_term_lufs = -math.inf

        self.integrated_lufs = self._query(state.loudness_global)

        try:
            lra, low, high = state.loudness_range()
        except _QUERY_ERRORS:
            lra = low = high = -math.inf
        self.loudness_range, self.loudness_range_low, self.loudness_range_high = lra, low, high

        peak_l = peak_r = -math.inf
        if self.current_channels >= 1:
            measured = self._channel_peak(0)
            if measured is not None:
                peak_l = measured
                if peak_l > self.max_true_peak_l and peak_l > ALMOST_NEGATIVE_INFINITY:
                    self.max_true_peak_l = peak_l
        if self.current_channels == 2:
            measured = self._channel_peak(1)
            if measured is not None:
                peak_r = measured
                if peak_r > self.max_true_peak_r and peak_r > ALMOST_NEGATIVE_INFINITY:
                    self.max_true_peak_r = peak_r
        elif self.current_channels == 1:
            peak_r = peak_l
            self.max_true_peak_r = -math.inf

        if self.current_channels == 1:
            current_max = peak_l
        elif self.current_channels == 2:
            current_max = max(peak_l, peak_r)
        else:
            current_max = -math.inf
        if current_max > ALMOST_NEGATIVE_INFINITY:
            self.peak_history.append(current_max)
        self._trim_history()

        window_peak = max_of(self.peak_history)
        self.true_peak_sliding_max = window_peak
        if window_peak > ALMOST_NEGATIVE_INFINITY and self.short_term_lufs > ALMOST_NEGATIVE_INFINITY:
            self.psr = window_peak - self.short_term_lufs
        else:
            self.psr = -math.inf

        self.max_true_peak_l = max(self.max_true_peak_l, peak_l)
        if self.current_channels == 2:
            self.max_true_peak_r = max(self.max_true_peak_r, peak_r)
            self.true_peak_max = max(self.max_true_peak_l, self.max_true_peak_r)
        else:
            self.true_peak_max = self.max_true_peak_l

        if self.true_peak_max > ALMOST_NEGATIVE_INFINITY and self.integrated_lufs > ALMOST_NEGATIVE_INFINITY:
            self.plr = self.true_peak_max - self.integrated_lufs
        else:
            self.plr = -math.inf

    def reset(self) -> None:
        """Flush pending samples, then restart the measurement for the current inputs."""
        if self.state is not None and self._buffer:
            self._process_block()
        self.state = None

        channels = self.effective_channels()
        self.current_channels = 0
        if channels > 0 and self.sample_rate > 0:
            try:
                self.state = LoudnessState(channels, int(self.sample_rate), _MEASURE_MODE)
            except ValueError:
                self.state = None
            else:
                self.current_channels = channels

        self._buffer = []
        self.peak_history.clear()
        self._clear_readings()
        self.previous_processing_mode = self.processing_mode

    def _frame(self, raw_left: float, raw_right: float) -> tuple[float, ...]:
        if self.current_channels == 1:
            if self.left_connected and self.right_connected:
                return ((raw_left + raw_right) * 0.5,)
            return (raw_left if self.left_connected else raw_right,)
        if self.left_connected and self.right_connected:
            return raw_left, raw_right
        if self.left_connected:
            return raw_left, raw_left
        return raw_right, raw_right

    def process(self, left: float | None = None, right: float | None = None,
                reset_button: float = 0.0, reset_voltage: float = 0.0) -> float:
        """Advance one sample; ``None`` marks an unconnected input.

        Returns the overshoot voltage (momentary loudness above the target).
        """
        self.left_connected = left is not None
        self.right_connected = right is not None

        manual_reset = (self._reset_trigger.process(reset_button)
                        or self._reset_port_trigger.process(reset_voltage))
        if manual_reset:
            self.reset()
        if self.processing_mode != self.previous_processing_mode:
            self.reset()
        if self.effective_channels() != self.current_channels and not manual_reset:
            self.reset()

        self.target_loudness = self.target_param

        if self.state is None or self.current_channels == 0:
            self.momentary_lufs = -math.inf
            self.short_term_lufs = -math.inf
            self.loudness_range = -math.inf
            self.loudness_range_high = -math.inf
            self.loudness_range_low = -math.inf
            self.psr = -math.inf
            self.true_peak_sliding_max = -math.inf
            if self.peak_history:
                self.peak_history.append(-math.inf)
                self._trim_history()
                self.true_peak_sliding_max = max_of(self.peak_history)
            return self.overshoot

        raw_left = (left or 0.0) * VOLTAGE_SCALE
        raw_right = (right or 0.0) * VOLTAGE_SCALE
        if len(self._buffer) < PROCESSING_BLOCK_FRAMES:
            self._buffer.append(self._frame(raw_left, raw_right))
        if len(self._buffer) >= PROCESSING_BLOCK_FRAMES:
            self._process_block()

        excess = self.momentary_lufs - self.target_param
        self.overshoot = clamp(excess / 20.0 * 10.0, -10.0, 10.0)
        return self.overshoot

    def to_dict(self) -> dict[str, Any]:
        return {
            "integratedLufs": self.integrated_lufs,
            "processingMode": int(self.processing_mode),
            "shortTermEnabled": self.short_term_enabled,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        if "integratedLufs" in data:
            self.integrated_lufs = float(data["integratedLufs"])
        self.processing_mode = ProcessingMode(int(data.get("processingMode", ProcessingMode.TRUE_AUTO)))
        self.previous_processing_mode = self.processing_mode
        if "shortTermEnabled" in data:
            self.short_term_enabled = bool(data["shortTermEnabled"])

        self._buffer = []
        self.momentary_lufs = -math.inf
        self.short_term_lufs = -math.inf
        self.loudness_range = -math.inf
        self.psr = -math.inf
        self.plr = -math.inf
        self.true_peak_sliding_max = -math.inf


class TargetQuantity:
    """Adjustable target loudness, rounded up to a tenth of a LU."""

    min_value = TARGET_MIN
    max_value = TARGET_MAX
    default_value = DEFAULT_TARGET
    label = "Target loudness"
    unit = " LUFS"

    def __init__(self, meter: LoudnessMeter | None) -> None:
        self.meter = meter

    def set_value(self, value: float) -> None:
        value = clamp(value, self.min_value, self.max_value)
        if self.meter is not None:
            self.meter.target_param = math.ceil(value * 10.0) / 10.0

    def get_value(self) -> float:
        if self.meter is not None:
            return self.meter.target_param
        return self.default_value