"""Smoothed-particle hydrodynamics pressure, force and density sampling passes."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .grid import GridBins, SpatialGrid
from .neighbors import NeighborTable
from .params import GRID_UNDEF, Kernels, Param, SimParams

_PI = 3.141592
_SAMPLE_SMOOTHING = 16.0


@dataclass
class PressureResult:
    """Per-particle pressure and reciprocal density, with search statistics."""

    pressure: np.ndarray
    inv_density: np.ndarray
    neighbors: int
    searched: int


def _points(values) -> np.ndarray:
    return np.asarray(values, dtype=np.float64).reshape(-1, 3)


def _scalars(values) -> np.ndarray:
    return np.asarray(values, dtype=np.float64).reshape(-1)


def compute_pressure_grid(
    positions, grid: SpatialGrid, bins: GridBins, params: SimParams, kernels: Kernels
) -> PressureResult:
    """Density and pressure of each particle from its neighbours in the grid.

    The density returned is its reciprocal, as the force pass uses it; a
    particle with no neighbours gets an infinite reciprocal density.
    """
    pos = _points(positions)
    p = params.param
    ss = float(p[Param.SIMSCALE])
    d2 = ss * ss
    r2 = kernels.r2
    mass = float(p[Param.MASS])
    rest = float(p[Param.RESTDENSITY])
    stiff = float(p[Param.INTSTIFF])

    n = len(pos)
    pressure = np.zeros(n, dtype=np.float64)
    inv_density = np.zeros(n, dtype=np.float64)
    nbr_count = 0
    searched = 0

    for i in range(n):
        total = 0.0
        cell = int(bins.gcell[i])
        if cell != GRID_UNDEF:
            pi = pos[i]
            for j in grid.candidates(bins, cell):
                if j == i:
                    continue
                diff = pos[j] - pi
                dsq = d2 * float(diff @ diff)
                if dsq <= r2:
                    c = r2 - dsq
                    total += c * c * c
                    nbr_count += 1
                searched += 1
        density = total * mass * kernels.poly6
        pressure[i] = (density - rest) * stiff
        inv_density[i] = 1.0 / density if density != 0 else math.inf

    return PressureResult(pressure, inv_density, nbr_count, searched)


def _pair_force(dx, dist, ipress, jpress, idens, jdens, ive, jve, ss, mr, spiky, vterm):
    c = mr - dist
    with np.errstate(divide="ignore", invalid="ignore"):
        pterm = float(np.divide(ss * -0.5 * c * spiky * (ipress + jpress), np.float64(dist)))
    dterm = c * idens * jdens
    return (pterm * dx + vterm * (jve - ive)) * dterm


def compute_force_grid(
    positions,
    veleval,
    pressure,
    density,
    grid: SpatialGrid,
    bins: GridBins,
    params: SimParams,
    kernels: Kernels,
) -> np.ndarray:
    """Pressure and viscosity force on each particle, searching the grid.

    density holds reciprocal densities, as returned by compute_pressure_grid.
    """
    pos = _points(positions)
    ve = _points(veleval)
    press = _scalars(pressure)
    dens = _scalars(density)
    p = params.param
    ss = float(p[Param.SIMSCALE])
    d2 = ss * ss
    mr = float(p[Param.SMOOTHRADIUS])
    vterm = kernels.lap * float(p[Param.VISC])

    forces = np.zeros_like(pos)
    for i in range(len(pos)):
        cell = int(bins.gcell[i])
        if cell == GRID_UNDEF:
            continue
        pi = pos[i]
        acc = np.zeros(3, dtype=np.float64)
        for j in grid.candidates(bins, cell):
            if j == i:
                continue
            dx = pi - pos[j]
            dsq = d2 * float(dx @ dx)
            if dsq <= kernels.r2:
                acc += _pair_force(
                    dx, math.sqrt(dsq), press[i], press[j], dens[i], dens[j],
                    ve[i], ve[j], ss, mr, kernels.spiky, vterm,
                )
        forces[i] = acc
    return forces


def compute_force_neighbors(
    positions,
    veleval,
    pressure,
    density,
    table: NeighborTable,
    params: SimParams,
    kernels: Kernels,
) -> np.ndarray:
    """Pressure and viscosity force on each particle from a prebuilt neighbour table."""
    pos = _points(positions)
    ve = _points(veleval)
    press = _scalars(pressure)
    dens = _scalars(density)
    p = params.param
    ss = float(p[Param.SIMSCALE])
    mr = float(p[Param.SMOOTHRADIUS])
    vterm = kernels.lap * float(p[Param.VISC])

    forces = np.zeros_like(pos)
    for i in range(len(pos)):
        acc = np.zeros(3, dtype=np.float64)
        for j, dist in table.neighbors(i):
            dx = pos[i] - pos[j]
            acc += _pair_force(
                dx, dist, press[i], press[j], dens[i], dens[j],
                ve[i], ve[j], ss, mr, kernels.spiky, vterm,
            )
        forces[i] = acc
    return forces


def sample_density(point, positions, grid: SpatialGrid, bins: GridBins, params: SimParams) -> float:
    """Gaussian-weighted particle density at a point, scaled down by 100.

    Points whose cell leaves no room for the full search block sample as 0.
    """
    pos = _points(positions)
    pt = np.asarray(point, dtype=np.float64).reshape(3)
    p = params.param
    ss = float(p[Param.SIMSCALE])
    d2 = ss * ss
    mr = float(p[Param.SMOOTHRADIUS])
    r2 = mr * mr
    h2 = 2.0 * mr * mr / _SAMPLE_SMOOTHING
    gauss = 1.0 / math.pow(_PI * 2.0 * mr * mr, 1.5)

    value = 0.0
    cell, coords = grid.cell_of(pt)
    if grid.in_search_bounds(coords):
        for j in grid.candidates(bins, cell):
            diff = pt - pos[j]
            dsq = d2 * float(diff @ diff)
            if dsq <= r2:
                value += gauss * math.exp(-(dsq / h2))
    return value / 100.0