"""Neighbour tables built by brute force or through the acceleration grid."""

from __future__ import annotations

import math

import numpy as np

from .grid import GridBins, SpatialGrid
from .params import GRID_UNDEF


class NeighborTable:
    """Flat list of (neighbour, distance) entries with a contiguous run per particle."""

    def __init__(self, num_points: int = 0):
        self.reset(num_points)

    def reset(self, num_points: int) -> None:
        """Drop all entries and size the per-particle index for num_points particles."""
        if num_points < 0:
            raise ValueError("num_points must not be negative")
        self._targets: list[int] = []
        self._dists: list[float] = []
        self.index = np.zeros(num_points, dtype=np.int64)
        self.count = np.zeros(num_points, dtype=np.int64)

    def clear(self, i: int) -> None:
        """Start a new, empty run of neighbours for particle i."""
        self.index[i] = len(self._targets)
        self.count[i] = 0

    def add(self, i: int, j: int, dist: float) -> int:
        """Record j as a neighbour of i at the given distance; return the entry number."""
        k = len(self._targets)
        if self.count[i] == 0:
            self.index[i] = k
        elif self.index[i] + self.count[i] != k:
            raise ValueError(f"neighbours of particle {i} must be added consecutively")
        self._targets.append(int(j))
        self._dists.append(float(dist))
        self.count[i] += 1
        return k

    def neighbors(self, i: int) -> list[tuple[int, float]]:
        """(neighbour, distance) pairs of particle i, in the order they were added."""
        start = int(self.index[i])
        stop = start + int(self.count[i])
        return list(zip(self._targets[start:stop], self._dists[start:stop]))

    def __len__(self) -> int:
        return len(self._targets)


def find_neighbors_slow(positions, sim_scale: float, r2: float) -> NeighborTable:
    """All pairs closer than sqrt(r2) in simulation space, by comparing every pair."""
    pos = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    d2 = sim_scale * sim_scale
    table = NeighborTable(len(pos))
    for i, p in enumerate(pos):
        table.clear(i)
        dsq = d2 * np.sum((pos - p) ** 2, axis=1)
        for j in np.nonzero(dsq <= r2)[0]:
            if j != i:
                table.add(i, int(j), math.sqrt(dsq[j]))
    return table


def find_neighbors_grid(
    positions, grid: SpatialGrid, bins: GridBins, sim_scale: float, r2: float
) -> NeighborTable:
    """Neighbours found among the grid's search block of each binned particle."""
    pos = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    d2 = sim_scale * sim_scale
    table = NeighborTable(len(pos))
    for i, p in enumerate(pos):
        table.clear(i)
        cell = int(bins.gcell[i])
        if cell == GRID_UNDEF:
            continue
        for j in grid.candidates(bins, cell):
            if j == i:
                continue
            diff = p - pos[j]
            dsq = d2 * float(diff @ diff)
            if dsq <= r2:
                table.add(i, j, math.sqrt(dsq))
    return table