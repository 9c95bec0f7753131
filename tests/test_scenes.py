import math

import numpy as np

from sphfluids.params import Param, SimParams, Toggle, VecParam
from sphfluids.scenes import apply_example, set_default_params, setup_spacing


def _defaults():
    p = SimParams()
    set_default_params(p)
    return p


def test_default_params():
    p = _defaults()
    assert p.param[Param.SIMSCALE] == 0.005
    assert p.dt == 0.003
    assert p.time == 0.0
    assert bool(p.toggles[Toggle.RUN])
    assert not bool(p.toggles[Toggle.WRAP_X])
    assert p.param[Param.GRIDSIZE] == 2 * p.param[Param.SMOOTHRADIUS]


def test_wave_pool_example():
    p = _defaults()
    apply_example(p, 2)
    assert list(p.vec[VecParam.VOLMAX]) == [400, 200, 400]
    assert list(p.vec[VecParam.INITMIN]) == [100, 80, 100]
    assert p.param[Param.FORCE_MIN] == 100.0


def test_regression_example_shape():
    p = _defaults()
    p.param[Param.NUM] = 1000
    apply_example(p, 0)
    assert np.allclose(p.vec[VecParam.INITMAX], p.vec[VecParam.VOLMAX] - 1.0)
    assert p.param[Param.SMOOTHRADIUS] == p.param[Param.SPACING] == 0.5
    assert not bool(p.toggles[Toggle.RUN])
    assert list(p.vec[VecParam.PLANE_GRAV_DIR]) == [0.0, 0.0, 0.0]


def test_unknown_example_is_ignored():
    p = _defaults()
    p.vec[VecParam.VOLMAX] = (7.0, 8.0, 9.0)
    apply_example(p, 42)
    assert list(p.vec[VecParam.VOLMAX]) == [7.0, 8.0, 9.0]


def test_spacing_from_density():
    p = _defaults()
    apply_example(p, 2)
    setup_spacing(p)
    dist = p.param[Param.DIST]
    assert math.isclose(dist**3 * p.param[Param.RESTDENSITY], p.param[Param.MASS])
    assert math.isclose(p.param[Param.SPACING] * p.param[Param.SIMSCALE], dist * 0.87)


def test_density_from_spacing():
    p = _defaults()
    p.param[Param.NUM] = 64
    apply_example(p, 0)
    setup_spacing(p)
    dist = p.param[Param.DIST]
    assert math.isclose(dist * 0.87, p.param[Param.SPACING] * p.param[Param.SIMSCALE])
    assert math.isclose(p.param[Param.RESTDENSITY] * dist**3, p.param[Param.MASS])


def test_bounds_inset_evenly():
    p = _defaults()
    apply_example(p, 3)
    setup_spacing(p)
    border = 2.0 * p.param[Param.GRIDSIZE] / p.param[Param.SIMSCALE]
    assert np.allclose(p.vec[VecParam.BOUNDMIN] - p.vec[VecParam.VOLMIN], border)
    assert np.allclose(p.vec[VecParam.VOLMAX] - p.vec[VecParam.BOUNDMAX], border)
    expected_size = p.param[Param.SIMSCALE] * (p.vec[VecParam.VOLMAX][2] - p.vec[VecParam.VOLMIN][2])
    assert math.isclose(p.param[Param.SIMSIZE], expected_size)