import math

import numpy as np
import pytest

from sphfluids.grid import SpatialGrid
from sphfluids.neighbors import find_neighbors_grid
from sphfluids.params import Param, SimParams
from sphfluids.sph import (
    compute_force_grid,
    compute_force_neighbors,
    compute_pressure_grid,
    sample_density,
)


def make_params():
    params = SimParams()
    p = params.param
    p[Param.SIMSCALE] = 1.0
    p[Param.SMOOTHRADIUS] = 1.0
    p[Param.MASS] = 1.0
    p[Param.RESTDENSITY] = 0.1
    p[Param.INTSTIFF] = 1.0
    p[Param.VISC] = 0.5
    return params


def make_grid():
    return SpatialGrid((0, 0, 0), (20, 20, 20), 1.0, 2.0, 1.0)


PAIR = np.array([[10.2, 10.5, 10.5], [10.8, 10.5, 10.5], [3.0, 3.0, 3.0]])


def setup():
    params = make_params()
    grid = make_grid()
    bins = grid.insert(PAIR)
    return params, grid, bins, params.kernels()


def test_pressure_pair_is_symmetric():
    params, grid, bins, k = setup()
    res = compute_pressure_grid(PAIR, grid, bins, params, k)
    assert res.pressure[0] == pytest.approx(res.pressure[1])
    assert res.inv_density[0] == pytest.approx(res.inv_density[1])
    assert res.neighbors == 2
    assert res.searched >= res.neighbors


def test_isolated_particle_has_infinite_inverse_density():
    params, grid, bins, k = setup()
    res = compute_pressure_grid(PAIR, grid, bins, params, k)
    assert math.isinf(res.inv_density[2])
    assert res.pressure[2] == pytest.approx(-0.1)


def test_closer_pair_is_denser():
    params, grid, _, k = setup()
    close = np.array([[10.4, 10.5, 10.5], [10.6, 10.5, 10.5]])
    far = np.array([[10.1, 10.5, 10.5], [10.9, 10.5, 10.5]])
    r_close = compute_pressure_grid(close, grid, grid.insert(close), params, k)
    r_far = compute_pressure_grid(far, grid, grid.insert(far), params, k)
    assert r_close.inv_density[0] < r_far.inv_density[0]
    assert r_close.pressure[0] > r_far.pressure[0]


def test_pair_forces_are_opposite():
    params, grid, bins, k = setup()
    res = compute_pressure_grid(PAIR, grid, bins, params, k)
    ve = np.zeros_like(PAIR)
    f = compute_force_grid(PAIR, ve, res.pressure, res.inv_density, grid, bins, params, k)
    assert f[0] == pytest.approx(-f[1])
    assert f[0][0] != 0.0
    assert f[0][1] == 0.0 and f[0][2] == 0.0
    assert np.all(f[2] == 0.0)


def test_grid_and_table_forces_agree():
    params, grid, bins, k = setup()
    rng = np.random.default_rng(3)
    pts = np.array([10.5, 10.5, 10.5]) + rng.uniform(-0.9, 0.9, size=(12, 3))
    bins = grid.insert(pts)
    res = compute_pressure_grid(pts, grid, bins, params, k)
    ve = rng.uniform(-1, 1, size=pts.shape)
    via_grid = compute_force_grid(pts, ve, res.pressure, res.inv_density, grid, bins, params, k)
    table = find_neighbors_grid(pts, grid, bins, 1.0, k.r2)
    via_table = compute_force_neighbors(pts, ve, res.pressure, res.inv_density, table, params, k)
    np.testing.assert_allclose(via_grid, via_table, rtol=1e-9, atol=1e-12)


def test_sample_density_near_and_far():
    params, grid, bins, _ = setup()
    at = sample_density(PAIR[0], PAIR, grid, bins, params)
    nearby = sample_density((10.2, 11.0, 10.5), PAIR, grid, bins, params)
    empty = sample_density((16.5, 16.5, 16.5), PAIR, grid, bins, params)
    assert at > nearby > 0.0
    assert empty == 0.0


def test_sample_outside_search_bounds_is_zero():
    params, grid, _, _ = setup()
    pts = np.array([[0.5, 0.5, 0.5]])
    bins = grid.insert(pts)
    assert sample_density((0.5, 0.5, 0.5), pts, grid, bins, params) == 0.0