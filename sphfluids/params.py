"""Simulation parameter tables, derived constants and particle buffers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

import numpy as np

MAX_PARAM = 50
MAX_OBSCNT = 32
GRID_UNDEF = 0xFFFFFFFF
_PI = 3.141592


class RunMode(IntEnum):
    """What a simulation step does."""

    PAUSE = 0
    SEARCH = 1
    CPU_SLOW = 3
    CPU_GRID = 4
    PLAYBACK = 6


class Param(IntEnum):
    """Indices of the scalar parameters."""

    MODE = 0
    NUM = 1
    EXAMPLE = 2
    SIMSIZE = 3
    SIMSCALE = 4
    GRID_DENSITY = 5
    GRIDSIZE = 6
    VISC = 7
    RESTDENSITY = 8
    MASS = 9
    RADIUS = 10
    DIST = 11
    SMOOTHRADIUS = 12
    INTSTIFF = 13
    EXTSTIFF = 14
    EXTDAMP = 15
    ACCEL_LIMIT = 16
    VEL_LIMIT = 17
    SPACING = 18
    GROUND_SLOPE = 19
    FORCE_MIN = 20
    FORCE_MAX = 21
    MAX_FRAC = 22
    DRAWMODE = 23
    DRAWSIZE = 24
    DRAWGRID = 25
    DRAWTEXT = 26
    CLR_MODE = 27
    GRAV = 28
    STAT_OCCUPY = 29
    STAT_GRIDCNT = 30
    STAT_NBR = 31
    STAT_NBRMAX = 32
    STAT_SRCH = 33
    STAT_SRCHMAX = 34
    STAT_PMEM = 35
    STAT_GMEM = 36
    TIME_INSERT = 37
    TIME_SORT = 38
    TIME_COUNT = 39
    TIME_PRESS = 40
    TIME_FORCE = 41
    TIME_ADVANCE = 42
    TIME_RECORD = 43
    TIME_RENDER = 44
    TIME_TOGPU = 45
    TIME_FROMGPU = 46
    FORCE_FREQ = 47
    OBSCNT = 48


class VecParam(IntEnum):
    """Indices of the vector parameters."""

    VOLMIN = 0
    VOLMAX = 1
    BOUNDMIN = 2
    BOUNDMAX = 3
    INITMIN = 4
    INITMAX = 5
    EMIT_POS = 6
    EMIT_ANG = 7
    EMIT_DANG = 8
    EMIT_SPREAD = 9
    EMIT_RATE = 10
    POINT_GRAV_POS = 11
    PLANE_GRAV_DIR = 12


class Toggle(IntEnum):
    """Indices of the boolean switches."""

    RUN = 0
    DEBUG = 1
    USE_CUDA = 2
    USE_GRID = 3
    WRAP_X = 4
    WALL_BARRIER = 5
    LEVY_BARRIER = 6
    DRAIN_BARRIER = 7
    PLANE_GRAV_ON = 11
    PROFILE = 12
    CAPTURE = 13


class Command(IntEnum):
    """Command-line switches that select a run mode."""

    SIM = 0
    PLAYBACK = 1
    WRITEPTS = 2
    WRITEVOL = 3
    WRITEIMG = 4


def _channel(v: float) -> int:
    scaled = float(np.float32(v) * np.float32(255.0))
    return max(int(scaled), 0)


def pack_color(r: float, g: float, b: float, a: float) -> int:
    """Pack four channels in [0, 1] into a 32-bit RGBA word (red in the low byte)."""
    word = (_channel(a) << 24) | (_channel(b) << 16) | (_channel(g) << 8) | _channel(r)
    return word & 0xFFFFFFFF


def unpack_color(c: int) -> tuple[float, float, float, float]:
    """Split a packed RGBA word into (r, g, b, a) in [0, 1]."""
    c = int(c)
    return (
        (c & 0xFF) / 255.0,
        ((c >> 8) & 0xFF) / 255.0,
        ((c >> 16) & 0xFF) / 255.0,
        ((c >> 24) & 0xFF) / 255.0,
    )


def idiv_up(a: int, b: int) -> int:
    """Integer division rounding up when there is a remainder."""
    q = abs(a) // abs(b)
    if (a >= 0) != (b >= 0):
        q = -q
    return q + 1 if a - q * b != 0 else q


def compute_num_blocks(num_points: int, min_threads: int) -> tuple[int, int]:
    """Return (blocks, threads) covering num_points with at most min_threads per block."""
    threads = min(min_threads, num_points)
    blocks = 1 if threads == 0 else idiv_up(num_points, threads)
    return blocks, threads


@dataclass(frozen=True)
class Kernels:
    """SPH smoothing-kernel constants for a smoothing radius."""

    r2: float
    poly6: float
    spiky: float
    lap: float


Vec3 = tuple[float, float, float]


@dataclass(frozen=True)
class FluidParams:
    """Derived per-step constants used by the force and integration passes."""

    sim_scale: float
    smooth_radius: float
    radius: float
    r2: float
    mass: float
    rest_density: float
    bound_min: Vec3
    bound_max: Vec3
    ext_stiff: float
    int_stiff: float
    visc: float
    damp: float
    force_min: float
    force_max: float
    force_freq: float
    ground_slope: float
    gravity: Vec3
    accel_limit: float
    accel_limit2: float
    vel_limit: float
    vel_limit2: float
    emit: int
    dist: float
    poly6_kern: float
    spiky_kern: float
    lap_kern: float
    gauss_kern: float
    d2: float
    rd2: float
    vterm: float
    obstacles_min: tuple[Vec3, ...]
    obstacles_max: tuple[Vec3, ...]


def _vec3(v) -> Vec3:
    return (float(v[0]), float(v[1]), float(v[2]))


class SimParams:
    """Scalar, vector and boolean parameters of a simulation."""

    def __init__(self):
        self.param = np.zeros(MAX_PARAM, dtype=np.float64)
        self.vec = np.zeros((MAX_PARAM, 3), dtype=np.float64)
        self.toggles = np.zeros(MAX_PARAM, dtype=bool)
        self.obstacles_min = np.zeros((MAX_OBSCNT, 3), dtype=np.float64)
        self.obstacles_max = np.zeros((MAX_OBSCNT, 3), dtype=np.float64)
        self.time = 0.0
        self.dt = 0.0
        self.param[Param.MODE] = RunMode.CPU_GRID
        self.param[Param.EXAMPLE] = 2
        self.param[Param.GRID_DENSITY] = 2.0
        self.param[Param.NUM] = 65536 * 128

    def kernels(self) -> Kernels:
        """Kernel constants for the current smoothing radius."""
        sr = float(self.param[Param.SMOOTHRADIUS])
        if sr <= 0:
            raise ValueError("smoothing radius must be positive")
        return Kernels(
            r2=sr * sr,
            poly6=315.0 / (64.0 * _PI * sr**9),
            spiky=-45.0 / (_PI * sr**6),
            lap=45.0 / (_PI * sr**6),
        )

    def fluid_params(self) -> FluidParams:
        """Collect the parameters and their derived constants."""
        p = self.param
        k = self.kernels()
        ss = float(p[Param.SIMSCALE])
        sr = float(p[Param.SMOOTHRADIUS])
        mass = float(p[Param.MASS])
        rest = float(p[Param.RESTDENSITY])
        visc = float(p[Param.VISC])
        al = float(p[Param.ACCEL_LIMIT])
        vl = float(p[Param.VEL_LIMIT])
        d2 = ss * ss
        count = max(0, min(int(p[Param.OBSCNT]), MAX_OBSCNT))
        return FluidParams(
            sim_scale=ss,
            smooth_radius=sr,
            radius=float(p[Param.RADIUS]),
            r2=k.r2,
            mass=mass,
            rest_density=rest,
            bound_min=_vec3(self.vec[VecParam.BOUNDMIN]),
            bound_max=_vec3(self.vec[VecParam.BOUNDMAX]),
            ext_stiff=float(p[Param.EXTSTIFF]),
            int_stiff=float(p[Param.INTSTIFF]),
            visc=visc,
            damp=float(p[Param.EXTDAMP]),
            force_min=float(p[Param.FORCE_MIN]),
            force_max=float(p[Param.FORCE_MAX]),
            force_freq=float(p[Param.FORCE_FREQ]),
            ground_slope=float(p[Param.GROUND_SLOPE]),
            gravity=_vec3(self.vec[VecParam.PLANE_GRAV_DIR] * p[Param.GRAV]),
            accel_limit=al,
            accel_limit2=al * al,
            vel_limit=vl,
            vel_limit2=vl * vl,
            emit=int(self.vec[VecParam.EMIT_RATE][0]),
            dist=(mass / rest) ** (1.0 / 3.0),
            poly6_kern=k.poly6,
            spiky_kern=k.spiky,
            lap_kern=k.lap,
            gauss_kern=1.0 / math.pow(_PI * 2.0 * sr * sr, 1.5),
            d2=d2,
            rd2=k.r2 / d2,
            vterm=k.lap * visc,
            obstacles_min=tuple(_vec3(v) for v in self.obstacles_min[:count]),
            obstacles_max=tuple(_vec3(v) for v in self.obstacles_max[:count]),
        )

    def set_wrapped(self, p: int, v: float, mn: float, mx: float) -> float:
        """Set a parameter, falling back to mn when v exceeds mx."""
        self.param[p] = v
        if self.param[p] > mx:
            self.param[p] = mn
        return float(self.param[p])

    def increment(self, p: int, v: float, mn: float, mx: float) -> float:
        """Add v to a parameter, resetting it to mn when it leaves [mn, mx]."""
        self.param[p] += v
        if self.param[p] < mn:
            self.param[p] = mn
        if self.param[p] > mx:
            self.param[p] = mn
        return float(self.param[p])

    def increment_vec(self, p: int, v) -> None:
        self.vec[p] += np.asarray(v, dtype=np.float64)

    def toggle(self, p: int) -> bool:
        """Flip a switch and return its new state."""
        self.toggles[p] = not self.toggles[p]
        return bool(self.toggles[p])


class ParticleBuffers:
    """Per-particle arrays with a fixed capacity and a live count."""

    def __init__(self, capacity: int):
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self.capacity = capacity
        self.count = 0
        self.pos = np.zeros((capacity, 3), dtype=np.float64)
        self.vel = np.zeros((capacity, 3), dtype=np.float64)
        self.veleval = np.zeros((capacity, 3), dtype=np.float64)
        self.force = np.zeros((capacity, 3), dtype=np.float64)
        self.pressure = np.zeros(capacity, dtype=np.float64)
        self.density = np.zeros(capacity, dtype=np.float64)
        self.age = np.zeros(capacity, dtype=np.uint16)
        self.color = np.zeros(capacity, dtype=np.uint32)
        self.cluster = np.zeros(capacity, dtype=np.uint32)
        self.gcell = np.zeros(capacity, dtype=np.uint32)
        self.gndx = np.zeros(capacity, dtype=np.uint32)
        self.gnext = np.zeros(capacity, dtype=np.uint32)
        self.nbr_index = np.zeros(capacity, dtype=np.uint32)
        self.nbr_count = np.zeros(capacity, dtype=np.uint32)
        self.state = np.zeros(capacity, dtype=np.uint32)

    def add(self, rng: Optional[np.random.Generator] = None) -> int:
        """Append a particle at rest at the origin and return its index.

        Raises IndexError when the buffers are full.
        """
        if self.count >= self.capacity:
            raise IndexError("particle buffers are full")
        if rng is None:
            rng = np.random.default_rng()
        n = self.count
        for arr in (self.pos, self.vel, self.veleval, self.force):
            arr[n] = 0.0
        self.pressure[n] = 0.0
        self.density[n] = 0.0
        self.gnext[n] = GRID_UNDEF
        self.cluster[n] = GRID_UNDEF
        self.state[n] = int(rng.integers(0, 2**31))
        self.count += 1
        return n

    def __len__(self) -> int:
        return self.count