import pytest

from sonicbench.resonators import (
    FREQ_C4,
    ResonatorInputs,
    ResonatorOutput,
    ResonatorParams,
    Resonators,
)


def _impulse_run(resonator: Resonators, steps: int = 3000, **kwargs) -> list[ResonatorOutput]:
    outputs = [resonator.process(ResonatorInputs(audio=5.0, **kwargs))]
    for _ in range(steps - 1):
        outputs.append(resonator.process(ResonatorInputs(audio=0.0, **kwargs)))
    return outputs


def test_silence_gives_silence():
    res = Resonators()
    for _ in range(200):
        result = res.process(ResonatorInputs())
    assert result.out == 0.0
    assert result.wet == (0.0, 0.0, 0.0, 0.0)


def test_mix_zero_passes_dry_signal():
    res = Resonators(ResonatorParams(mix=0.0))
    for value in (1.0, -2.5, 3.25):
        assert res.process(ResonatorInputs(audio=value)).out == pytest.approx(value)


def test_mix_one_gives_scaled_sum_of_wet():
    params = ResonatorParams(mix=1.0, amp=0.7)
    res = Resonators(params)
    for result in _impulse_run(res, steps=500):
        assert result.out == pytest.approx(sum(result.wet) * 0.7)


def test_mix_cv_input_moves_towards_dry():
    params = ResonatorParams(mix=1.0, mix_cv=1.0)
    res = Resonators(params)
    result = res.process(ResonatorInputs(audio=2.0, mix=-10.0))
    assert result.out == pytest.approx(2.0)


def test_buffer_size_follows_sample_rate():
    res = Resonators(sample_rate=48000.0)
    assert res.buffer_size == 4800
    assert all(len(buffer) == res.buffer_size for buffer in res.buffers)


def test_invalid_sample_rate_raises():
    with pytest.raises(ValueError):
        Resonators(sample_rate=0.0)


def test_write_then_read_one_sample_back():
    res = Resonators()
    res.write_delay(0, 1.5)
    assert res.read_delay(0, 1.0) == pytest.approx(1.5)


def test_read_interpolates_between_samples():
    res = Resonators()
    res.write_delay(1, 2.0)
    res.write_delay(1, 4.0)
    assert res.read_delay(1, 1.5) == pytest.approx(3.0)


def test_write_wraps_around_buffer():
    res = Resonators(sample_rate=1000.0)
    for n in range(res.buffer_size + 1):
        res.write_delay(2, float(n))
    assert res.delay_indices[2] == 1
    assert res.read_delay(2, 1.0) == pytest.approx(float(res.buffer_size))


def test_delay_converges_to_pitch_period():
    res = Resonators()
    for _ in range(3000):
        res.process(ResonatorInputs())
    for current, target in zip(res.current_delay, res.target_delay):
        assert target == pytest.approx(res.sample_rate / FREQ_C4)
        assert current == pytest.approx(target, rel=1e-6)


def test_pitch_is_clamped():
    extreme = Resonators()
    limit = Resonators()
    extreme.process(ResonatorInputs(pitch=((10.0,), (), (), ())))
    limit.process(ResonatorInputs(pitch=((4.5,), (), (), ())))
    assert extreme.target_delay[0] == pytest.approx(limit.target_delay[0])
    assert extreme.target_delay[0] < extreme.target_delay[1]


def test_polyphonic_first_pitch_matches_separate_inputs():
    poly = Resonators()
    separate = Resonators()
    voltages = (0.0, 0.5, -1.0, 1.25)
    poly_out = _impulse_run(poly, steps=400, pitch=(voltages, (), (), ()))
    sep_out = _impulse_run(
        separate, steps=400, pitch=tuple((v,) for v in voltages)
    )
    assert poly.target_delay == pytest.approx(separate.target_delay)
    assert poly_out[-1].wet == pytest.approx(sep_out[-1].wet)


def test_single_decay_channel_applies_to_all():
    params = dict(decay_cv=0.5)
    one = Resonators(ResonatorParams(**params))
    four = Resonators(ResonatorParams(**params))
    one_out = _impulse_run(one, steps=400, decay=(-4.0,))
    four_out = _impulse_run(four, steps=400, decay=(-4.0,) * 4)
    assert one_out[-1].wet == pytest.approx(four_out[-1].wet)


def test_gain_scales_wet_without_changing_state():
    quiet = Resonators(ResonatorParams(gain=[0.25] * 4))
    loud = Resonators(ResonatorParams(gain=[0.5] * 4))
    for q, l in zip(_impulse_run(quiet, steps=600), _impulse_run(loud, steps=600)):
        for qw, lw in zip(q.wet, l.wet):
            assert lw == pytest.approx(2.0 * qw, abs=1e-12)


def test_impulse_rings_and_decays():
    res = Resonators(ResonatorParams(decay=0.3))
    outputs = _impulse_run(res, steps=6000)
    early = sum(abs(w) for o in outputs[100:1100] for w in o.wet)
    late = sum(abs(w) for o in outputs[5000:6000] for w in o.wet)
    assert early > 0.0
    assert late < early


def test_wrong_number_of_pitch_inputs_rejected():
    with pytest.raises(ValueError):
        ResonatorInputs(pitch=((), ()))


def test_wrong_number_of_gain_params_rejected():
    with pytest.raises(ValueError):
        ResonatorParams(gain=[0.5, 0.5, 0.5])