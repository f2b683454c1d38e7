import math

import pytest

from sonicbench.display import (
    BarGeometry,
    LEVEL_MARKS,
    Readout,
    bar_geometry,
    format_value,
    value_readout,
)

HEIGHT = 280.0


@pytest.mark.parametrize("value", [-99.0, -120.0, -math.inf, math.inf, math.nan])
def test_format_value_silent(value):
    assert format_value(value) == "-inf"


def test_format_value_one_decimal():
    assert format_value(-23.0) == "-23.0"
    assert format_value(1.26) == "1.3"


def test_readout_without_value_is_blank_dash():
    assert value_readout(None, "SHORT TERM") == Readout(text="", dash=True, clipping=False)


def test_readout_silent_is_dash():
    readout = value_readout(-math.inf, "INTEGRATED")
    assert readout.dash and readout.text == "-inf" and not readout.clipping


def test_readout_zero_loudness_range_is_dash():
    assert value_readout(0.0, "LOUDNESS RANGE").dash
    assert not value_readout(0.0, "INTEGRATED").dash


def test_readout_true_peak_clipping_threshold():
    assert value_readout(-0.5, "TRUE PEAK MAX").clipping
    assert not value_readout(-0.6, "TRUE PEAK MAX").clipping
    assert not value_readout(1.0, "MOMENTARY MAX").clipping


def test_readout_text_matches_format():
    readout = value_readout(-14.25, "SHORT TERM")
    assert readout.text == format_value(-14.25)
    assert not readout.dash


def test_bar_without_values_is_one_pixel():
    geometry = bar_geometry(None, None, None, None, HEIGHT)
    assert geometry.bar_height == 1.0
    assert geometry.bar_y + geometry.bar_height == HEIGHT - 40.0
    assert geometry.range_marks is None and geometry.overshoot_y is None


def test_bar_at_floor_is_one_pixel():
    geometry = bar_geometry(-math.inf, -60.0, -60.0, -23.0, HEIGHT)
    assert geometry.bar_height == 1.0
    assert geometry.overshoot_height == 0.0


def test_full_scale_bar():
    geometry = bar_geometry(0.0, -60.0, -60.0, 0.0, HEIGHT)
    assert geometry.bar_height == pytest.approx(228.0)
    assert geometry.bar_y + geometry.bar_height == pytest.approx(HEIGHT - 40.0)


def test_overshoot_stacks_on_bar():
    over = bar_geometry(-12.0, -30.0, -10.0, -23.0, HEIGHT)
    plain = bar_geometry(-12.0, -30.0, -10.0, 0.0, HEIGHT)
    assert over.overshoot_height > 0
    assert over.overshoot_y + over.overshoot_height == pytest.approx(over.bar_y)
    assert over.bar_height + over.overshoot_height == pytest.approx(plain.bar_height)
    assert plain.overshoot_y is None


def test_bar_grows_with_loudness():
    quiet = bar_geometry(-40.0, -60.0, -60.0, 0.0, HEIGHT)
    loud = bar_geometry(-20.0, -60.0, -60.0, 0.0, HEIGHT)
    assert loud.bar_height > quiet.bar_height
    assert loud.bar_y < quiet.bar_y


def test_nan_target_uses_default():
    assert bar_geometry(-30.0, -40.0, -20.0, math.nan, HEIGHT) == bar_geometry(
        -30.0, -40.0, -20.0, -23.0, HEIGHT
    )


def test_range_marks_only_when_distinct():
    same = bar_geometry(-30.0, -25.0, -25.0, -23.0, HEIGHT)
    assert same.range_marks is None
    spread = bar_geometry(-30.0, -40.0, -20.0, -23.0, HEIGHT)
    upper_y, lower_y = spread.range_marks
    assert upper_y < lower_y


def test_nan_range_treated_as_floor():
    assert bar_geometry(-30.0, math.nan, math.nan, -23.0, HEIGHT).range_marks is None


def test_target_mark_matches_level_marks():
    marks = dict(LEVEL_MARKS)
    geometry = bar_geometry(-30.0, -40.0, -20.0, -18.0, HEIGHT)
    assert geometry.target_mark_y == pytest.approx(marks["-18"])
    assert isinstance(geometry, BarGeometry)


def test_values_clamped_to_display_range():
    assert bar_geometry(6.0, -80.0, 3.0, 5.0, HEIGHT) == bar_geometry(
        0.0, -60.0, 0.0, 0.0, HEIGHT
    )