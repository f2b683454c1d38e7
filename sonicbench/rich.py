"""Accented attack/decay envelope generator."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from .primitives import BooleanTrigger, ClockDivider, SchmittTrigger, clamp, crossfade

MIN_TIME = 1e-3
MAX_TIME = 10.0
LAMBDA_BASE = MAX_TIME / MIN_TIME
_LIGHT_LAMBDA = 30.0


def binary_search(
    target: float, shape: float, exponent: float, a: float, b: float, epsilon: float
) -> float:
    """Find the phase in ``[a, b]`` whose shaped curve value is within ``epsilon`` of ``target``."""
    while True:
        candidate = (a + b) / 2.0
        value = (1.0 - shape) * candidate + shape * candidate ** (1.0 / exponent)
        if abs(target - value) < epsilon or candidate in (a, b):
            return candidate
        if value < target:
            a = candidate
        else:
            b = candidate


def _snap(value: float) -> float:
    """Round half away from zero, as a snapping knob does."""
    return float(math.copysign(math.floor(abs(value) + 0.5), value))


@dataclass
class RichParams:
    """Knob and button positions."""

    attack: float = 0.0
    decay: float = math.log2(400.0) / math.log2(LAMBDA_BASE)
    shape: float = 1.0
    level: float = 0.75
    steps: float = 3.0
    accent_level: float = 1.0
    attack_cv: float = 0.0
    decay_cv: float = 0.0
    invert: float = 0.0


@dataclass
class RichInputs:
    """Voltages present at the input jacks for one sample."""

    trigger: float = 0.0
    accent: float = 0.0
    attack: float = 0.0
    decay: float = 0.0
    invert: float = 0.0


@dataclass
class RichOutput:
    """Output voltages and light brightnesses for one sample."""

    envelope: float
    accent: float
    envelope_light: float
    invert_light: float


class Rich:
    """Envelope whose peak steps through accent levels on accented triggers."""

    def __init__(self, params: RichParams | None = None) -> None:
        self.params = params if params is not None else RichParams()

        self.invert = False
        self.phase = 0.0
        self.accent_counter = 0.0
        self.accent = 1.0
        self.accent_scale = 0.0
        self.is_attacking = False
        self.is_decaying = False
        self.envelope_value = 0.0

        self.exponential_attack = False
        self.retrigger_strategy = False
        self.exponent_type = 0
        self.trigger_sync_delay = 1
        self.retrigger_enabled = True

        self.preserve_accent = False
        self.preserve_accent_value = -1.0
        self.preserve_accent_scale_value = -1.0

        self.crossfade_value = -1.0
        self.crossfade_phase = 0.0

        self.trigger_frame = -1
        self.accent_frame = -1
        self.initial_accent_value_on_trigger = 0.0

        self._trigger = SchmittTrigger()
        self._accent_trigger = SchmittTrigger()
        self._light_divider = ClockDivider(division=4)
        self._invert_button = BooleanTrigger()
        self._invert_schmitt = SchmittTrigger()

        self.envelope_light = 0.0
        self.invert_light = 0.0

    def _peak(self, base_level: float, accent: float, scale: float, steps: float) -> float:
        accent_level = self.params.accent_level
        if steps >= 0.0:
            return 10.0 * (base_level + accent * scale * accent_level * (1.0 - base_level))
        return 10.0 * base_level * (1.0 - accent * scale * accent_level)

    def _handle_trigger(self, inputs: RichInputs, steps: float, base_level: float,
                        shape: float, exponent: float, accented: bool) -> None:
        accent_trigger_value = clamp(inputs.accent, 0.0, 10.0)
        if accent_trigger_value == 0.0 and accented:
            accent_trigger_value = self.initial_accent_value_on_trigger

        next_accent = 0.0
        next_counter = 0.0
        next_scale = 0.0
        if accent_trigger_value > 0.0 and steps != 0.0:
            n = abs(steps)
            next_counter = clamp(self.accent_counter + 1.0, 1.0, n)
            if not self.invert:
                next_accent = clamp(next_counter / n, 0.0, 1.0)
            else:
                next_accent = clamp((n + 1.0 - next_counter) / n, 0.0, 1.0)
            next_scale = accent_trigger_value / 10.0

        if self.is_decaying:
            next_peak = self._peak(base_level, next_accent, next_scale, steps)
            if next_peak > self.envelope_value:
                self.preserve_accent = False
                self.preserve_accent_value = -1.0
                self.preserve_accent_scale_value = -1.0
                relative = self.envelope_value / next_peak
                exp = 1.0 / exponent if self.exponential_attack else exponent
                self.phase = binary_search(relative, shape, exp, 0.0, 1.0, 0.001)
                self.is_attacking = True
                self.is_decaying = False
            elif not self.retrigger_strategy:
                # Jump to the decay of the new envelope, crossfading from the old value.
                self.phase = 1.0
                self.is_attacking = False
                self.is_decaying = True
                self.crossfade_value = self.envelope_value
            else:
                # Keep the previous accent until a suitable peak arrives.
                self.preserve_accent = True
                if self.preserve_accent_value == -1.0:
                    self.preserve_accent_value = self.accent
                    self.preserve_accent_scale_value = self.accent_scale
        else:
            self.is_attacking = True
            self.is_decaying = False

        self.accent_counter = next_counter
        self.accent = next_accent
        self.accent_scale = next_scale

    @staticmethod
    def _stage_amount(knob: float, cv_amount: float, voltage: float) -> float:
        cv = cv_amount * cv_amount if cv_amount > 0.0 else -(cv_amount * cv_amount)
        return clamp(knob + voltage / 10.0 * cv, 0.0, 1.0)

    def process(self, sample_time: float, frame: int, inputs: RichInputs) -> RichOutput:
        """Advance one sample at engine frame ``frame`` and return the outputs."""
        p = self.params
        base_level = p.level
        steps = _snap(p.steps)
        shape = p.shape
        exponent = self.exponent_type + 2.0
        samples_delay = self.trigger_sync_delay * 5

        if self._invert_button.process(bool(p.invert)):
            self.invert = not self.invert
        if self._invert_schmitt.process(inputs.invert, 0.1, 1.0):
            self.invert = not self.invert

        if self._trigger.process(inputs.trigger):
            self.trigger_frame = frame
        if self._accent_trigger.process(inputs.accent):
            self.accent_frame = frame
            self.initial_accent_value_on_trigger = clamp(inputs.accent, 0.0, 10.0)

        triggered = False
        accented = False
        if frame - self.trigger_frame == samples_delay:
            triggered = True
            if abs(self.trigger_frame - self.accent_frame) <= samples_delay:
                accented = True

        if triggered and not self.is_attacking and (not self.is_decaying or self.retrigger_enabled):
            self._handle_trigger(inputs, steps, base_level, shape, exponent, accented)

        decay_for_crossfade = 0.0
        if self.is_decaying:
            decay = self._stage_amount(p.decay, p.decay_cv, inputs.decay)
            decay_for_crossfade = decay
            self.phase -= sample_time * LAMBDA_BASE ** (-decay) / MIN_TIME
            if self.phase <= 0.0:
                self.phase = 0.0
                self.is_decaying = False

        if self.is_attacking:
            attack = self._stage_amount(p.attack, p.attack_cv, inputs.attack)
            self.phase += sample_time * LAMBDA_BASE ** (-attack) / MIN_TIME
            if self.phase >= 1.0:
                self.phase = 1.0
                self.is_attacking = False
                self.is_decaying = True

        if self.exponential_attack or not self.is_attacking:
            shaped = self.phase ** exponent
        else:
            shaped = self.phase ** (1.0 / exponent)
        envelope_mix = (1.0 - shape) * self.phase + shape * shaped

        used_accent = self.preserve_accent_value if self.preserve_accent else self.accent
        used_scale = self.preserve_accent_scale_value if self.preserve_accent else self.accent_scale

        self.envelope_value = envelope_mix * self._peak(base_level, used_accent, used_scale, steps)

        if self.crossfade_value != -1.0:
            self.crossfade_phase += sample_time * LAMBDA_BASE ** (-decay_for_crossfade * 0.55) / MIN_TIME
            if self.crossfade_phase > 1.0:
                self.crossfade_value = -1.0
                self.crossfade_phase = 0.0
            else:
                self.envelope_value = crossfade(self.crossfade_value, self.envelope_value,
                                                self.crossfade_phase)

        if self._light_divider.process():
            light_time = sample_time * self._light_divider.division
            brightness = (self.envelope_value / 10.0) ** 2
            if brightness < self.envelope_light:
                self.envelope_light += (brightness - self.envelope_light) * _LIGHT_LAMBDA * light_time
            else:
                self.envelope_light = brightness
            self.invert_light = 0.5 if self.invert else 0.0

        return RichOutput(
            envelope=self.envelope_value,
            accent=10.0 * used_accent * used_scale,
            envelope_light=self.envelope_light,
            invert_light=self.invert_light,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "exponentialAttack": self.exponential_attack,
            "retriggerStrategy": self.retrigger_strategy,
            "retriggerEnabled": self.retrigger_enabled,
            "exponentType": self.exponent_type,
            "triggerSyncDelay": self.trigger_sync_delay,
            "invert": self.invert,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        if "exponentialAttack" in data:
            self.exponential_attack = bool(data["exponentialAttack"])
        if "retriggerStrategy" in data:
            self.retrigger_strategy = bool(data["retriggerStrategy"])
        if "retriggerEnabled" in data:
            self.retrigger_enabled = bool(data["retriggerEnabled"])
        if "exponentType" in data:
            self.exponent_type = int(data["exponentType"])
        if "triggerSyncDelay" in data:
            self.trigger_sync_delay = int(data["triggerSyncDelay"])
        if "invert" in data:
            self.invert = bool(data["invert"])