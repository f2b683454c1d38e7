"""Presentation logic for the full-size loudness meter panel."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .loudness_meter import ALMOST_NEGATIVE_INFINITY, DEFAULT_TARGET
from .primitives import clamp

MARKS_STEP = 3.8
MARKS_TOP = 12.0
MARGIN_BOTTOM = 40.0
BAR_WIDTH = 12.0
FULL_SCALE_HEIGHT = 228.0
DISPLAY_FLOOR = -60.0
DISPLAY_CEILING = 0.0

LOUDNESS_RANGE_LABEL = "LOUDNESS RANGE"
TRUE_PEAK_LABEL = "TRUE PEAK MAX"
TRUE_PEAK_WARNING = -0.5

LEVEL_MARKS: tuple[tuple[str, float], ...] = tuple(
    (str(-level) if level else "0", MARKS_TOP + level * MARKS_STEP)
    for level in (0, 3, 6, 9, 18, 27, 36, 45, 54)
)


def _is_silent(value: float) -> bool:
    return value <= ALMOST_NEGATIVE_INFINITY or math.isinf(value) or math.isnan(value)


def format_value(value: float) -> str:
    """Format a LUFS, LU or dB reading with one decimal, or ``-inf`` when silent."""
    if _is_silent(value):
        return "-inf"
    return f"{value:.1f}"


@dataclass(frozen=True)
class Readout:
    """What a numeric display shows: text, or a dash, possibly in warning colour."""

    text: str
    dash: bool
    clipping: bool


def value_readout(value: float | None, label: str) -> Readout:
    """Decide how a labelled display presents ``value``; ``None`` means no module."""
    if value is None:
        return Readout(text="", dash=True, clipping=False)
    no_range = label == LOUDNESS_RANGE_LABEL and value <= 0.0
    if _is_silent(value) or no_range:
        return Readout(text="-inf", dash=True, clipping=False)
    clipping = label == TRUE_PEAK_LABEL and value >= TRUE_PEAK_WARNING
    return Readout(text=format_value(value), dash=False, clipping=clipping)


@dataclass(frozen=True)
class BarGeometry:
    """Vertical positions of the momentary bar, its overshoot and the range bracket."""

    bar_y: float
    bar_height: float
    overshoot_y: float | None
    overshoot_height: float
    target_mark_y: float | None
    range_marks: tuple[float, float] | None


def _level_y(level: float) -> float:
    return MARKS_TOP + (-level) * MARKS_STEP


def bar_geometry(value: float | None, lower: float | None, upper: float | None,
                 target: float | None, height: float) -> BarGeometry:
    """Lay out the momentary loudness bar in a widget ``height`` pixels tall."""
    if value is None or lower is None or upper is None or target is None:
        return BarGeometry(
            bar_y=height - 1.0 - MARGIN_BOTTOM,
            bar_height=1.0,
            overshoot_y=None,
            overshoot_height=0.0,
            target_mark_y=None,
            range_marks=None,
        )

    if _is_silent(value):
        value = DISPLAY_FLOOR
    if math.isnan(upper):
        upper = DISPLAY_FLOOR
    if math.isnan(lower):
        lower = DISPLAY_FLOOR
    if math.isnan(target):
        target = DEFAULT_TARGET

    value = clamp(value, DISPLAY_FLOOR, DISPLAY_CEILING)
    upper = clamp(upper, DISPLAY_FLOOR, DISPLAY_CEILING)
    lower = clamp(lower, DISPLAY_FLOOR, DISPLAY_CEILING)
    target = clamp(target, DISPLAY_FLOOR, DISPLAY_CEILING)

    overshoot = value - target
    room = -DISPLAY_FLOOR + (value if overshoot <= 0 else target)
    bar_height = room / -DISPLAY_FLOOR * FULL_SCALE_HEIGHT
    if bar_height <= 0.0:
        bar_height = 1.0
    bar_y = height - bar_height - MARGIN_BOTTOM

    overshoot_y = None
    overshoot_height = 0.0
    if overshoot > 0.0:
        overshoot_height = overshoot / -DISPLAY_FLOOR * FULL_SCALE_HEIGHT
        overshoot_y = bar_y - overshoot_height

    upper_y = _level_y(upper)
    lower_y = _level_y(lower)
    range_marks = (upper_y, lower_y) if upper_y != lower_y else None

    return BarGeometry(
        bar_y=bar_y,
        bar_height=bar_height,
        overshoot_y=overshoot_y,
        overshoot_height=overshoot_height,
        target_mark_y=_level_y(target),
        range_marks=range_marks,
    )