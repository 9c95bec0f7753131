"""Uniform acceleration grid that bins particles into linked lists per cell."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from .params import GRID_UNDEF

MAX_SEARCH = 6


def prefix_sum(counts) -> np.ndarray:
    """Exclusive prefix sum: element k is the sum of counts[0:k]."""
    c = np.asarray(counts, dtype=np.int64).ravel()
    out = np.zeros_like(c)
    if c.size > 1:
        out[1:] = np.cumsum(c)[:-1]
    return out


def _tdiv(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


@dataclass
class GridBins:
    """Result of binning particles: per-cell list heads and per-particle links."""

    head: np.ndarray
    count: np.ndarray
    gcell: np.ndarray
    gnext: np.ndarray
    occupied: int = 0
    binned: int = 0

    def offsets(self) -> np.ndarray:
        """Start of each cell in a cell-sorted particle order."""
        return prefix_sum(self.count)

    def members(self, cell: int) -> Iterator[int]:
        """Particles in one cell, most recently inserted first."""
        j = int(self.head[cell])
        while j != GRID_UNDEF:
            yield j
            j = int(self.gnext[j])


class SpatialGrid:
    """Grid covering a domain with cells of a given simulation-space size."""

    def __init__(self, vmin, vmax, sim_scale: float, cell_size: float, smooth_radius: float):
        if sim_scale <= 0 or cell_size <= 0:
            raise ValueError("sim_scale and cell_size must be positive")
        world_cell = cell_size / sim_scale
        self.sim_scale = float(sim_scale)
        self.cell_size = float(cell_size)
        self.min = np.asarray(vmin, dtype=np.float64).reshape(3).copy()
        self.max = np.asarray(vmax, dtype=np.float64).reshape(3).copy()
        extent = self.max - self.min
        self.res = tuple(int(math.ceil(e / world_cell)) for e in extent)
        if any(r <= 0 for r in self.res):
            raise ValueError("grid domain must have positive extent")
        self.size = np.array([r * cell_size / sim_scale for r in self.res], dtype=np.float64)
        self.delta = np.array(self.res, dtype=np.float64) / self.size
        rx, ry, rz = self.res
        self.total = rx * ry * rz

        search = int(math.floor(2.0 * (smooth_radius / sim_scale) / world_cell) + 1.0)
        self.search = max(search, 2)
        if self.search > MAX_SEARCH:
            raise ValueError(f"neighbour search spans {self.search} cells, more than {MAX_SEARCH}")
        self.adj_count = self.search**3
        self.adj = tuple(
            (y * rz + z) * rx + x
            for y in range(self.search)
            for z in range(self.search)
            for x in range(self.search)
        )

    def __repr__(self) -> str:
        return f"SpatialGrid(res={self.res}, search={self.search})"

    def cell_of(self, pos) -> tuple[int, tuple[int, int, int]]:
        """Return (cell index, cell coordinates) of a position."""
        p = np.asarray(pos, dtype=np.float64).reshape(3)
        rel = (p - self.min) * self.delta
        gx, gy, gz = (int(v) for v in rel)
        rx, _, rz = self.res
        return (gy * rz + gz) * rx + gx, (gx, gy, gz)

    def cell_coords(self, index: int) -> tuple[int, int, int]:
        """Cell coordinates of a cell index."""
        rx, _, rz = self.res
        xz = rx * rz
        c = int(index)
        gy = _tdiv(c, xz)
        c -= gy * xz
        gz = _tdiv(c, rx)
        c -= gz * rx
        return c, gy, gz

    def in_search_bounds(self, coords) -> bool:
        """Whether a cell leaves room for the full search block around it."""
        return all(1 <= c <= r - self.search for c, r in zip(coords, self.res))

    def insert(self, positions) -> GridBins:
        """Bin every particle whose cell lies within the search bounds."""
        pos = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        n = len(pos)
        head = np.full(self.total, GRID_UNDEF, dtype=np.uint32)
        count = np.zeros(self.total, dtype=np.uint32)
        gcell = np.full(n, GRID_UNDEF, dtype=np.uint32)
        gnext = np.full(n, GRID_UNDEF, dtype=np.uint32)
        bins = GridBins(head, count, gcell, gnext)
        if n == 0:
            return bins

        coords = ((pos - self.min) * self.delta).astype(np.int64)
        upper = np.array(self.res, dtype=np.int64) - self.search
        inside = np.all((coords >= 1) & (coords <= upper), axis=1)
        rx, _, rz = self.res
        cells = (coords[:, 1] * rz + coords[:, 2]) * rx + coords[:, 0]

        for i in np.nonzero(inside)[0]:
            gs = int(cells[i])
            gcell[i] = gs
            gnext[i] = head[gs]
            if gnext[i] == GRID_UNDEF:
                bins.occupied += 1
            head[gs] = i
            count[gs] += 1
            bins.binned += 1
        return bins

    def candidates(self, bins: GridBins, cell: int) -> Iterator[int]:
        """Particles in the search block of a binned cell, the particle itself included."""
        if cell == GRID_UNDEF:
            return
        rx, _, rz = self.res
        base = int(cell) - ((rz + 1) * rx + 1)
        for offset in self.adj:
            yield from bins.members(base + offset)