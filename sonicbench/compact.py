"""Presentation logic for the narrow loudness meter panel."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .display import Readout, format_value
from .loudness_meter import ALMOST_NEGATIVE_INFINITY, LoudnessMeter

DISPLAY_HEIGHT = 25.0
Y_START = 256.0
Y_OFFSET = 2.0
TRUE_PEAK_WARNING = -0.5

MOMENTARY_LABEL = "M"
LOUDNESS_RANGE_LABEL = "LR"
TRUE_PEAK_LABEL = "TPMAX"


def _is_silent(value: float) -> bool:
    return value <= ALMOST_NEGATIVE_INFINITY or math.isinf(value) or math.isnan(value)


def compact_readout(value: float | None, label: str, max_value: float | None = None) -> Readout:
    """Decide how a compact display presents ``value``.

    ``None`` means no module is attached. ``max_value`` is the level above
    which the momentary reading turns to the warning colour.
    """
    if value is None:
        return Readout(text="", dash=True, clipping=False)
    no_range = label == LOUDNESS_RANGE_LABEL and value <= 0.0
    if _is_silent(value) or no_range:
        return Readout(text="-inf", dash=True, clipping=False)
    peak_warning = label == TRUE_PEAK_LABEL and value >= TRUE_PEAK_WARNING
    over_target = (
        max_value is not None
        and not math.isnan(value)
        and label == MOMENTARY_LABEL
        and value >= max_value
    )
    return Readout(text=format_value(value), dash=False, clipping=peak_warning or over_target)


@dataclass(frozen=True)
class CompactField:
    """One row of the compact panel: its label, tooltip, position and reading."""

    label: str
    unit: str
    y: float
    value: float | None
    max_value: float | None = None

    @property
    def readout(self) -> Readout:
        return compact_readout(self.value, self.label, self.max_value)


# (label, tooltip, meter attribute, row index from the bottom, offset multiplier)
_LAYOUT: tuple[tuple[str, str, str, int, float], ...] = (
    ("M", "Momentary, LUFS", "momentary_lufs", 9, 0.0),
    ("S", "Short-term, LUFS", "short_term_lufs", 8, -1.0),
    ("I", "Integrated, LUFS", "integrated_lufs", 7, -2.0),
    ("LR", "Loudness range, LU", "loudness_range", 6, 1.0),
    ("PSR", "Dynamics, LU", "psr", 5, 0.0),
    ("PLR", "Average dynamics, LU", "plr", 4, -1.0),
    ("MMAX", "Momentary max, LUFS", "max_momentary_lufs", 3, 2.0),
    ("SMAX", "Short-term max, LUFS", "max_short_term_lufs", 2, 1.0),
    ("TPMAX", "True peak max, dBTP", "true_peak_max", 1, 0.0),
)


def compact_fields(meter: LoudnessMeter | None) -> list[CompactField]:
    """Snapshot of every compact-panel row, top to bottom; ``meter`` may be None."""
    fields = []
    for label, unit, attribute, row, offset in _LAYOUT:
        value = getattr(meter, attribute) if meter is not None else None
        max_value = None
        if meter is not None and label == MOMENTARY_LABEL:
            max_value = meter.target_loudness
        fields.append(CompactField(
            label=label,
            unit=unit,
            y=Y_START - row * DISPLAY_HEIGHT + offset * Y_OFFSET,
            value=value,
            max_value=max_value,
        ))
    return fields