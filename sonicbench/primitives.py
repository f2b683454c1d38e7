"""Small signal-processing building blocks shared by the modules."""

from __future__ import annotations

import math
from dataclasses import dataclass


def clamp(x: float, low: float, high: float) -> float:
    """Limit ``x`` to the closed range ``[low, high]``."""
    return max(min(x, high), low)


def rescale(x: float, x_min: float, x_max: float, y_min: float, y_max: float) -> float:
    """Map ``x`` linearly from ``[x_min, x_max]`` onto ``[y_min, y_max]``."""
    return y_min + (x - x_min) / (x_max - x_min) * (y_max - y_min)


def crossfade(a: float, b: float, p: float) -> float:
    """Blend from ``a`` (at ``p == 0``) to ``b`` (at ``p == 1``)."""
    return a + (b - a) * p


@dataclass
class SchmittTrigger:
    """Edge detector with hysteresis; starts in the high state."""

    state: bool = True

    def process(self, value: float, low: float = 0.0, high: float = 1.0) -> bool:
        """Return True on the rising edge crossing ``high``."""
        if self.state:
            if value <= low:
                self.state = False
        elif value >= high:
            self.state = True
            return True
        return False

    def reset(self) -> None:
        self.state = True


@dataclass
class BooleanTrigger:
    """Detects a False-to-True transition; starts in the True state."""

    state: bool = True

    def process(self, state: bool) -> bool:
        triggered = state and not self.state
        self.state = bool(state)
        return triggered


@dataclass
class ClockDivider:
    """Returns True once every ``division`` calls."""

    division: int = 1
    clock: int = 0

    def process(self) -> bool:
        self.clock += 1
        if self.clock >= self.division:
            self.clock = 0
            return True
        return False


@dataclass
class RCFilter:
    """First-order RC filter offering lowpass and highpass outputs."""

    c: float = 0.0
    x_state: float = 0.0
    y_state: float = 0.0

    def set_cutoff(self, ratio: float) -> None:
        """Set the cutoff as an angular frequency relative to the sample rate."""
        self.c = 2.0 / ratio

    def set_cutoff_freq(self, frequency: float) -> None:
        """Set the cutoff as a frequency relative to the sample rate."""
        self.set_cutoff(2.0 * math.pi * frequency)

    def process(self, x: float) -> None:
        y = (x + self.x_state - self.y_state * (1.0 - self.c)) / (1.0 + self.c)
        self.x_state = x
        self.y_state = y

    def lowpass(self) -> float:
        return self.y_state

    def highpass(self) -> float:
        return self.x_state - self.y_state