import math

import pytest

from sonicbench.loudness_meter import (
    DEFAULT_TARGET,
    TARGET_MIN,
    LoudnessMeter,
    ProcessingMode,
    TargetQuantity,
    max_of,
)

RATE = 8000


def feed(meter, samples, amplitude=5.0, frequency=200.0, left=True, right=False):
    for n in range(samples):
        v = amplitude * math.sin(2 * math.pi * frequency * n / RATE)
        meter.process(v if left else None, v if right else None)


def test_max_of():
    assert max_of([]) == -math.inf
    assert max_of([float("nan"), 1.0, 3.0, -2.0]) == 3.0
    assert max_of([-math.inf]) == -math.inf


def test_initial_state_inactive():
    meter = LoudnessMeter(RATE)
    assert meter.effective_channels() == 0
    assert meter.state is None
    assert meter.momentary_lufs == -math.inf
    assert meter.true_peak_max == -math.inf


@pytest.mark.parametrize(
    "mode, left, right, expected",
    [
        (ProcessingMode.TRUE_AUTO, 0.0, None, 1),
        (ProcessingMode.TRUE_AUTO, None, 0.0, 1),
        (ProcessingMode.TRUE_AUTO, 0.0, 0.0, 2),
        (ProcessingMode.FORCE_MONO, 0.0, 0.0, 1),
        (ProcessingMode.FORCE_STEREO, 0.0, None, 2),
        (ProcessingMode.FORCE_STEREO, None, None, 0),
    ],
)
def test_channel_selection(mode, left, right, expected):
    meter = LoudnessMeter(RATE)
    meter.processing_mode = mode
    meter.process(left, right)
    assert meter.current_channels == expected
    assert meter.effective_channels() == expected


def test_connected_silence_gives_full_negative_overshoot():
    meter = LoudnessMeter(RATE)
    assert meter.process(0.0, None) == -10.0


def test_sine_produces_readings():
    meter = LoudnessMeter(RATE)
    feed(meter, RATE)
    assert meter.momentary_lufs > -99.0
    assert meter.max_momentary_lufs >= meter.momentary_lufs
    assert meter.true_peak_max == pytest.approx(20 * math.log10(0.5), abs=0.3)
    assert meter.true_peak_sliding_max == pytest.approx(meter.true_peak_max, abs=0.3)
    assert len(meter.peak_history) <= meter.peak_history_size


def test_stereo_sine_true_peak_uses_both_channels():
    meter = LoudnessMeter(RATE)
    feed(meter, RATE, right=True)
    assert meter.current_channels == 2
    assert meter.true_peak_max == pytest.approx(max(meter.max_true_peak_l, meter.max_true_peak_r))


def test_short_term_disabled():
    meter = LoudnessMeter(RATE)
    meter.short_term_enabled = False
    feed(meter, RATE)
    assert meter.short_term_lufs == -math.inf
    assert meter.max_short_term_lufs == -math.inf
    assert meter.psr == -math.inf


def test_reset_button_clears_readings():
    meter = LoudnessMeter(RATE)
    feed(meter, RATE)
    assert meter.max_momentary_lufs > -99.0
    meter.process(1.0, None, reset_button=1.0)
    assert meter.max_momentary_lufs == -math.inf
    assert meter.true_peak_max == -math.inf


def test_disconnect_resets():
    meter = LoudnessMeter(RATE)
    feed(meter, RATE)
    meter.process(None, None)
    assert meter.current_channels == 0
    assert meter.momentary_lufs == -math.inf


def test_target_follows_param():
    meter = LoudnessMeter(RATE)
    meter.target_param = -14.0
    meter.process(0.0, None)
    assert meter.target_loudness == -14.0


def test_history_size_limits():
    meter = LoudnessMeter(100)
    assert meter.peak_history_size == 5
    meter.set_sample_rate(0)
    assert meter.peak_history_size == 100
    assert meter.state is None


def test_dict_round_trip():
    meter = LoudnessMeter(RATE)
    meter.processing_mode = ProcessingMode.FORCE_STEREO
    meter.short_term_enabled = False
    meter.integrated_lufs = -18.5
    data = meter.to_dict()
    other = LoudnessMeter(RATE)
    other.from_dict(data)
    assert other.processing_mode == ProcessingMode.FORCE_STEREO
    assert other.previous_processing_mode == ProcessingMode.FORCE_STEREO
    assert other.short_term_enabled is False
    assert other.integrated_lufs == -18.5


def test_from_dict_defaults_mode():
    meter = LoudnessMeter(RATE)
    meter.processing_mode = ProcessingMode.FORCE_MONO
    meter.from_dict({})
    assert meter.processing_mode == ProcessingMode.TRUE_AUTO


def test_from_dict_rejects_unknown_mode():
    meter = LoudnessMeter(RATE)
    with pytest.raises(ValueError):
        meter.from_dict({"processingMode": 7})


def test_target_quantity():
    meter = LoudnessMeter(RATE)
    quantity = TargetQuantity(meter)
    quantity.set_value(-50.0)
    assert quantity.get_value() == TARGET_MIN
    quantity.set_value(-12.34)
    assert quantity.get_value() == pytest.approx(-12.3)
    assert meter.target_param == quantity.get_value()


def test_target_quantity_without_meter():
    quantity = TargetQuantity(None)
    quantity.set_value(-10.0)
    assert quantity.get_value() == DEFAULT_TARGET