"""A particle fluid simulation driven step by step on the CPU."""

from __future__ import annotations

import logging
import os
from typing import Iterable, Optional

import numpy as np

from .emitter import add_emit, setup_add_volume
from .grid import GridBins, SpatialGrid
from .integrate import advance_particles
from .neighbors import NeighborTable
from .neighbors import find_neighbors_grid as _neighbors_grid
from .neighbors import find_neighbors_slow as _neighbors_slow
from .params import (
    GRID_UNDEF,
    Command,
    Kernels,
    Param,
    ParticleBuffers,
    RunMode,
    SimParams,
    Toggle,
    VecParam,
)
from .recording import Brick, extract_bricks, read_points, resolve_name, write_bricks, write_points
from .scenes import apply_example, set_default_params, setup_spacing
from .sph import PressureResult, sample_density
from .sph import compute_force_grid as _force_grid
from .sph import compute_force_neighbors as _force_neighbors
from .sph import compute_pressure_grid as _pressure_grid

log = logging.getLogger(__name__)

_MODE_NAMES = {
    RunMode.PAUSE: "PAUSED",
    RunMode.SEARCH: "SEARCH ONLY (CPU)",
    RunMode.CPU_SLOW: "SIMULATE CPU Slow",
    RunMode.CPU_GRID: "SIMULATE CPU Grid",
    RunMode.PLAYBACK: "PLAYBACK",
}

_TIMERS = (
    Param.TIME_INSERT,
    Param.TIME_SORT,
    Param.TIME_COUNT,
    Param.TIME_PRESS,
    Param.TIME_FORCE,
    Param.TIME_ADVANCE,
)

_FLUID_RECORD_BYTES = 72
_PARTICLE_BYTES = 4 * 12 + 4 + 2 + 2 * 4 + 4 + 4 + 4
_GRID_CELL_BYTES = 2 * 4
_NEIGHBOR_BYTES = 4 + 4
_MB = 1048576.0


class SimulationFinished(Exception):
    """Raised when the frame counter passes the end of the frame range."""

    def __init__(self, frame: int):
        super().__init__(f"frame range finished at frame {frame}")
        self.frame = frame


class FluidSystem:
    """Particles, acceleration grid and parameters of one fluid simulation."""

    def __init__(self, seed: Optional[int] = None):
        self.params = SimParams()
        self.rng = np.random.default_rng(seed)
        self.buffers = ParticleBuffers(0)
        self.max_points = 0
        self.grid: Optional[SpatialGrid] = None
        self.bins: Optional[GridBins] = None
        self.table = NeighborTable(0)
        self.kernels: Optional[Kernels] = None
        self.frame = 0
        self.frame_range = (0, -1, 1)
        self.recording = False
        self.recording_bricks = False
        self.in_file = ""
        self.out_file = ""
        self.work_path = ""
        self.vol_res = (0, 0, 0)
        self.brick_res = 0
        self.threshold = 0.0

    # -- setup -------------------------------------------------------------

    def start(self, num: int) -> None:
        """Set up the chosen example scene with room for num particles and fill it."""
        if num <= 0:
            raise ValueError("the number of particles must be positive")
        p = self.params
        set_default_params(p)
        apply_example(p, int(p.param[Param.EXAMPLE]))
        p.param[Param.NUM] = float(num)
        self.max_points = num

        p.param[Param.GRIDSIZE] = 2 * p.param[Param.SMOOTHRADIUS] / p.param[Param.GRID_DENSITY]
        self._setup_kernels()
        setup_spacing(p)

        self.grid = SpatialGrid(
            p.vec[VecParam.VOLMIN],
            p.vec[VecParam.VOLMAX],
            float(p.param[Param.SIMSCALE]),
            float(p.param[Param.GRIDSIZE]),
            float(p.param[Param.SMOOTHRADIUS]),
        )
        p.param[Param.STAT_GMEM] = 12.0 * self.grid.total

        self.buffers = ParticleBuffers(num)
        p.param[Param.STAT_PMEM] = 68.0 * 2 * num
        self.bins = None
        self.table = NeighborTable(0)

        setup_add_volume(
            self.buffers,
            p.vec[VecParam.INITMIN],
            p.vec[VecParam.INITMAX],
            float(p.param[Param.SPACING]),
            0.1,
            self.rng,
        )

    def _setup_kernels(self) -> None:
        p = self.params.param
        p[Param.DIST] = (p[Param.MASS] / p[Param.RESTDENSITY]) ** (1.0 / 3.0)
        self.kernels = self.params.kernels()

    def _update_params(self) -> None:
        if self.params.param[Param.SMOOTHRADIUS] > 0:
            self.kernels = self.params.kernels()

    def _require_started(self) -> None:
        if self.grid is None or self.kernels is None:
            raise RuntimeError("simulation has not been started")

    def _require_bins(self) -> GridBins:
        self._require_started()
        if self.bins is None or len(self.bins.gcell) != self.buffers.count:
            raise RuntimeError("particles have not been inserted into the grid")
        return self.bins

    def num_points(self) -> int:
        return self.buffers.count

    def _positions(self) -> np.ndarray:
        return self.buffers.pos[: self.buffers.count]

    # -- particles ---------------------------------------------------------

    def emit_particles(self) -> list[int]:
        """Emit a jet of particles every emit-rate frames; return the new indices."""
        self._require_started()
        p = self.params
        rate = float(p.vec[VecParam.EMIT_RATE][0])
        if rate <= 0:
            return []
        interval = int(rate)
        if interval == 0:
            raise ValueError("emit interval below one frame")
        self.frame += 1
        if self.frame % interval != 0:
            return []
        spacing = float(p.param[Param.DIST] / p.param[Param.SIMSCALE])
        added = add_emit(self.buffers, p, spacing, p.time, self.rng)
        if added:
            self.bins = None
        return added

    def insert_particles(self) -> GridBins:
        """Bin the particles into the acceleration grid."""
        self._require_started()
        n = self.buffers.count
        bins = self.grid.insert(self._positions())
        b = self.buffers
        b.gcell[:n] = bins.gcell
        b.gnext[:n] = bins.gnext
        b.cluster[:n] = GRID_UNDEF
        self.params.param[Param.STAT_OCCUPY] = float(bins.occupied)
        self.params.param[Param.STAT_GRIDCNT] = float(bins.binned)
        self.bins = bins
        return bins

    def _store_table(self, table: NeighborTable) -> NeighborTable:
        n = self.buffers.count
        self.table = table
        self.buffers.nbr_index[:n] = table.index
        self.buffers.nbr_count[:n] = table.count
        return table

    def find_neighbors_slow(self) -> NeighborTable:
        """Neighbour table by comparing every pair of particles."""
        self._require_started()
        ss = float(self.params.param[Param.SIMSCALE])
        return self._store_table(_neighbors_slow(self._positions(), ss, self.kernels.r2))

    def find_neighbors_grid(self) -> NeighborTable:
        """Neighbour table from the grid's search block of each binned particle."""
        bins = self._require_bins()
        ss = float(self.params.param[Param.SIMSCALE])
        table = _neighbors_grid(self._positions(), self.grid, bins, ss, self.kernels.r2)
        return self._store_table(table)

    def compute_pressure_grid(self) -> PressureResult:
        """Pressure and reciprocal density of each particle, with search statistics."""
        bins = self._require_bins()
        n = self.buffers.count
        res = _pressure_grid(self._positions(), self.grid, bins, self.params, self.kernels)
        self.buffers.pressure[:n] = res.pressure
        self.buffers.density[:n] = res.inv_density
        p = self.params.param
        p[Param.STAT_NBR] = float(res.neighbors)
        p[Param.STAT_SRCH] = float(res.searched)
        p[Param.STAT_NBRMAX] = max(p[Param.STAT_NBRMAX], p[Param.STAT_NBR])
        p[Param.STAT_SRCHMAX] = max(p[Param.STAT_SRCHMAX], p[Param.STAT_SRCH])
        return res

    def compute_force_grid(self) -> np.ndarray:
        """Store and return the forces found by searching the grid."""
        bins = self._require_bins()
        n = self.buffers.count
        b = self.buffers
        forces = _force_grid(
            b.pos[:n], b.veleval[:n], b.pressure[:n], b.density[:n],
            self.grid, bins, self.params, self.kernels,
        )
        b.force[:n] = forces
        return forces

    def compute_force_neighbors(self) -> np.ndarray:
        """Store and return the forces found from the current neighbour table."""
        self._require_started()
        n = self.buffers.count
        if len(self.table.count) != n:
            raise RuntimeError("neighbour table does not match the particles")
        b = self.buffers
        forces = _force_neighbors(
            b.pos[:n], b.veleval[:n], b.pressure[:n], b.density[:n],
            self.table, self.params, self.kernels,
        )
        b.force[:n] = forces
        return forces

    def advance(self) -> None:
        """Integrate the particles that lie in the grid one time step."""
        self._require_started()
        n = self.buffers.count
        active = self.buffers.gcell[:n] != GRID_UNDEF
        advance_particles(self.buffers, active, self.params, self.params.time, self.params.dt)

    def run(self) -> None:
        """Perform one simulation step according to the run mode."""
        p = self.params.param
        for key in _TIMERS:
            p[key] = 0.0
        mode = int(p[Param.MODE])
        if mode == RunMode.SEARCH:
            self.insert_particles()
            self.find_neighbors_grid()
        elif mode == RunMode.CPU_SLOW:
            self.insert_particles()
            self.advance()
        elif mode == RunMode.CPU_GRID:
            self.insert_particles()
            self.compute_pressure_grid()
            self.compute_force_grid()
            self.advance()
        self.advance_time()

    def advance_time(self) -> None:
        """Step time and frame; raise SimulationFinished past the frame range."""
        self.params.time += self.params.dt
        start, end, step = self.frame_range
        self.frame += step
        if self.frame > end and end != -1:
            self.frame = start
            self.recording = False
            self.recording_bricks = False
            self.params.toggles[Toggle.CAPTURE] = False
            raise SimulationFinished(self.frame)

    def sample(self, p) -> float:
        """Density field at a point, from the binned particles."""
        bins = self._require_bins()
        return sample_density(p, self._positions(), self.grid, bins, self.params)

    # -- parameters --------------------------------------------------------

    def set_param(self, p: int, v: float) -> None:
        self.params.param[p] = v
        self._update_params()

    def set_vec(self, p: int, v) -> None:
        self.params.vec[p] = np.asarray(v, dtype=np.float64).reshape(3)
        self._update_params()

    def setup_mode(
        self,
        commands: Iterable[Command],
        frame_range,
        in_file: str,
        out_file: str,
        work_path: str,
        vol_res,
        brick_res: int,
        threshold: float,
    ) -> None:
        """Configure frames, files and recording from command switches."""
        cmds = set(commands)
        start, end, step = (int(v) for v in frame_range)
        self.frame_range = (start, end, step)
        self.in_file = in_file
        self.out_file = out_file
        self.work_path = work_path
        self.vol_res = tuple(int(v) for v in vol_res)
        self.brick_res = int(brick_res)
        self.threshold = float(threshold)
        self.frame = start
        if Command.PLAYBACK in cmds:
            self.params.param[Param.MODE] = RunMode.PLAYBACK
        if Command.WRITEPTS in cmds:
            self.recording = True
        if Command.WRITEVOL in cmds:
            self.recording_bricks = True
        if Command.WRITEIMG in cmds:
            self.params.toggles[Toggle.CAPTURE] = True

    def resolved_name(self, is_input: bool, frame: int) -> str:
        pattern = self.in_file if is_input else self.out_file
        return resolve_name(pattern, self.work_path, frame)

    def mode_name(self) -> str:
        mode = int(self.params.param[Param.MODE])
        try:
            return _MODE_NAMES[RunMode(mode)]
        except ValueError:
            return f"MODE {mode}"

    # -- recording and playback -------------------------------------------

    def start_playback(self) -> None:
        self.recording = False
        self.params.param[Param.MODE] = RunMode.PLAYBACK
        self.frame = 0

    def run_playback(self) -> bool:
        """Load the particles of the current frame; return False if its file is missing."""
        path = self.resolved_name(True, self.frame)
        if not os.path.exists(path):
            log.warning("file not found %s", path)
            return False
        frame = read_points(path)
        n = len(frame)
        if n > self.buffers.capacity:
            self.params.param[Param.NUM] = float(n)
            self.buffers = ParticleBuffers(n)
            self.max_points = n
        b = self.buffers
        b.pos[:n] = frame.positions
        b.vel[:n] = frame.velocities
        b.color[:n] = frame.colors
        b.count = n
        self.bins = None
        if n and float(np.linalg.norm(frame.velocities.sum(axis=0))) == 0.0:
            log.warning("no velocity data in %s", path)
        return True

    def save_points(self, frame: int) -> str:
        """Write the particles to jet<frame>.pts and return the file name."""
        path = f"jet{frame:04d}.pts"
        n = self.buffers.count
        b = self.buffers
        write_points(path, b.pos[:n], b.vel[:n], b.color[:n])
        return path

    def _brick_sampler(self, bmin, bmax, res) -> list[float]:
        axes = [
            np.linspace(bmin[k], bmax[k], res[k]) if res[k] > 1 else np.array([bmin[k]])
            for k in range(3)
        ]
        xs, ys, zs = axes
        pos = self._positions()
        return [
            sample_density((x, y, z), pos, self.grid, self.bins, self.params)
            for z in zs
            for y in ys
            for x in xs
        ]

    def save_bricks(self, frame: int) -> list[Brick]:
        """Sample the density into bricks and write those above threshold."""
        self.insert_particles()
        self.compute_pressure_grid()
        v = self.params.vec
        bricks = extract_bricks(
            self._brick_sampler,
            v[VecParam.VOLMIN],
            v[VecParam.VOLMAX],
            self.vol_res,
            self.brick_res,
            self.threshold,
        )
        write_bricks(self.resolved_name(False, frame), bricks)
        return bricks

    def toggle_record(self) -> bool:
        self.recording = not self.recording
        return self.recording

    def toggle_record_bricks(self) -> bool:
        self.recording_bricks = not self.recording_bricks
        return self.recording_bricks

    def memory_report(self) -> str:
        """Memory used by particles, grid and neighbour table."""
        n = self.buffers.count
        total = self.grid.total if self.grid is not None else 0
        nbrs = len(self.table)
        lines = [
            "MEMORY:",
            f"  Fluid (size):           {_FLUID_RECORD_BYTES} bytes",
            f"  Particles:              {n}, {_PARTICLE_BYTES * n / _MB:f} MB "
            f"({_PARTICLE_BYTES * self.max_points / _MB:f})",
            f"  Acceleration Grid:      {total}, {_GRID_CELL_BYTES * total / _MB:f} MB",
            f"  Acceleration Neighbors: {nbrs}, {_NEIGHBOR_BYTES * nbrs / _MB:f} MB",
        ]
        return "\n".join(lines) + "\n"