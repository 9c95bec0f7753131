import numpy as np
import pytest

from sphfluids.emitter import add_emit, setup_add_volume
from sphfluids.params import ParticleBuffers, SimParams, VecParam, unpack_color


def test_fill_count_and_bounds():
    buf = ParticleBuffers(100)
    added = setup_add_volume(buf, (0, 0, 0), (2, 2, 2), 1.0, 0.0, np.random.default_rng(1))
    assert added == 12
    assert len(buf) == added
    pos = buf.pos[:added]
    assert np.all(pos >= 0.0)
    assert np.all(pos < 3.0)


def test_fill_is_deterministic_with_seed():
    a = ParticleBuffers(50)
    b = ParticleBuffers(50)
    setup_add_volume(a, (0, 0, 0), (3, 2, 3), 1.0, 0.1, np.random.default_rng(7))
    setup_add_volume(b, (0, 0, 0), (3, 2, 3), 1.0, 0.1, np.random.default_rng(7))
    assert a.count == b.count
    assert np.array_equal(a.pos[: a.count], b.pos[: b.count])


def test_fill_colors_opaque_and_green_floor():
    buf = ParticleBuffers(100)
    n = setup_add_volume(buf, (0, 0, 0), (4, 1, 4), 1.0, 0.0, np.random.default_rng(2))
    for word in buf.color[:n]:
        r, g, b, a = unpack_color(word)
        assert a == 1.0
        assert g == pytest.approx(0.2, abs=1 / 255)
        assert 0.2 - 1 / 255 <= r <= 1.0


def test_fill_stops_when_full():
    buf = ParticleBuffers(5)
    added = setup_add_volume(buf, (0, 0, 0), (4, 4, 4), 1.0, 0.0, np.random.default_rng(3))
    assert added == 5
    assert len(buf) == 5


def test_fill_rejects_bad_spacing():
    with pytest.raises(ValueError):
        setup_add_volume(ParticleBuffers(4), (0, 0, 0), (1, 1, 1), 0.0, 0.0)


def _emitter(rate):
    params = SimParams()
    params.vec[VecParam.EMIT_RATE] = (1, rate, 0)
    params.vec[VecParam.EMIT_ANG] = (0, 90, 1.0)
    params.vec[VecParam.EMIT_POS] = (10, 20, 30)
    return params


def test_emit_block_layout_and_direction():
    buf = ParticleBuffers(10)
    params = _emitter(4)
    idx = add_emit(buf, params, 0.5, 0.0, np.random.default_rng(0))
    assert idx == [0, 1, 2, 3]
    expected = np.array([[10, 20, 30], [10, 20.5, 30], [10.5, 20, 30], [10.5, 20.5, 30]])
    assert np.allclose(buf.pos[:4], expected)
    assert np.allclose(buf.vel[:4], [[1.0, 0.0, 0.0]] * 4, atol=1e-12)
    assert np.array_equal(buf.vel[:4], buf.veleval[:4])


def test_emit_nothing_at_zero_rate():
    buf = ParticleBuffers(10)
    assert add_emit(buf, _emitter(0), 1.0, 0.0) == []
    assert len(buf) == 0


def test_emit_fractional_rate_below_one_errors():
    with pytest.raises(ValueError):
        add_emit(ParticleBuffers(10), _emitter(0.5), 1.0, 0.0)


def test_emit_stops_when_full():
    buf = ParticleBuffers(2)
    idx = add_emit(buf, _emitter(9), 1.0, 0.0, np.random.default_rng(0))
    assert idx == [0, 1]