"""Default parameters and the built-in example scenes."""

from __future__ import annotations

import math

import numpy as np

from .params import Param, SimParams, Toggle, VecParam


def set_default_params(params: SimParams) -> None:
    """Reset the physical constants, timing and switches to their defaults."""
    p = params.param
    v = params.vec
    t = params.toggles

    params.time = 0.0
    params.dt = 0.003

    p[Param.SIMSCALE] = 0.005
    p[Param.VISC] = 0.50
    p[Param.RESTDENSITY] = 400.0
    p[Param.SPACING] = 0.0
    p[Param.MASS] = 0.00020543
    p[Param.RADIUS] = 0.015
    p[Param.DIST] = 0.0059
    p[Param.SMOOTHRADIUS] = 0.015
    p[Param.INTSTIFF] = 1.0
    p[Param.EXTSTIFF] = 50000.0
    p[Param.EXTDAMP] = 100.0
    p[Param.ACCEL_LIMIT] = 150.0
    p[Param.VEL_LIMIT] = 3.0
    p[Param.MAX_FRAC] = 1.0
    p[Param.GRAV] = 1.0

    p[Param.GROUND_SLOPE] = 0.0
    p[Param.FORCE_MIN] = 0.0
    p[Param.FORCE_MAX] = 0.0
    p[Param.FORCE_FREQ] = 16.0
    t[Toggle.WRAP_X] = False
    t[Toggle.WALL_BARRIER] = False
    t[Toggle.LEVY_BARRIER] = False
    t[Toggle.DRAIN_BARRIER] = False

    p[Param.STAT_NBRMAX] = 0
    p[Param.STAT_SRCHMAX] = 0

    v[VecParam.POINT_GRAV_POS] = (0, 0, 0)
    v[VecParam.PLANE_GRAV_DIR] = (0, -9.8, 0)
    v[VecParam.EMIT_POS] = (0, 0, 0)
    v[VecParam.EMIT_RATE] = (0, 0, 0)
    v[VecParam.EMIT_ANG] = (0, 90, 1.0)
    v[VecParam.EMIT_DANG] = (0, 0, 0)

    t[Toggle.RUN] = True
    p[Param.GRIDSIZE] = p[Param.SMOOTHRADIUS] * 2
    p[Param.DRAWMODE] = 1
    p[Param.DRAWGRID] = 0
    p[Param.DRAWTEXT] = 0


def apply_example(params: SimParams, example: int) -> None:
    """Set the domain and initial volume of one of the example scenes.

    Unknown example numbers leave the parameters unchanged.
    """
    p = params.param
    v = params.vec

    if example == 0:
        # Regression test: an N x N x N static block, neighbours only.
        k = int(math.ceil(float(np.cbrt(np.float32(p[Param.NUM])))))
        half = k // 2
        v[VecParam.VOLMIN] = (0, 0, 0)
        v[VecParam.VOLMAX] = (2.0 + half,) * 3
        v[VecParam.INITMIN] = (1.0, 1.0, 1.0)
        v[VecParam.INITMAX] = (1.0 + half,) * 3
        p[Param.GRAV] = 0.0
        v[VecParam.PLANE_GRAV_DIR] = (0.0, 0.0, 0.0)
        p[Param.SPACING] = 0.5
        p[Param.SMOOTHRADIUS] = p[Param.SPACING]
        params.toggles[Toggle.RUN] = False
        p[Param.DRAWMODE] = 1
        p[Param.DRAWGRID] = 1
        p[Param.DRAWTEXT] = 1
        p[Param.SIMSCALE] = 1.0
    elif example == 1:
        # Tower
        v[VecParam.VOLMIN] = (0, 0, 0)
        v[VecParam.VOLMAX] = (256, 128, 256)
        v[VecParam.INITMIN] = (5, 5, 5)
        v[VecParam.INITMAX] = (256 * 0.3, 128 * 0.9, 256 * 0.3)
    elif example == 2:
        # Wave pool
        v[VecParam.VOLMIN] = (0, 0, 0)
        v[VecParam.VOLMAX] = (400, 200, 400)
        v[VecParam.INITMIN] = (100, 80, 100)
        v[VecParam.INITMAX] = (300, 190, 300)
        p[Param.FORCE_MIN] = 100.0
        p[Param.FORCE_FREQ] = 6.0
        p[Param.GROUND_SLOPE] = 0.10
    elif example == 3:
        # Small dam break
        v[VecParam.VOLMIN] = (-40, 0, -40)
        v[VecParam.VOLMAX] = (40, 60, 40)
        v[VecParam.INITMIN] = (0, 8, -35)
        v[VecParam.INITMAX] = (35, 55, 35)
        p[Param.FORCE_MIN] = 0.0
        p[Param.FORCE_MAX] = 0.0
        v[VecParam.PLANE_GRAV_DIR] = (0.0, -9.8, 0.0)
    elif example == 4:
        # Dual-wave pool
        v[VecParam.VOLMIN] = (-100, 0, -15)
        v[VecParam.VOLMAX] = (100, 100, 15)
        v[VecParam.INITMIN] = (-80, 8, -10)
        v[VecParam.INITMAX] = (80, 90, 10)
        p[Param.FORCE_MIN] = 20.0
        p[Param.FORCE_MAX] = 20.0
        v[VecParam.PLANE_GRAV_DIR] = (0.0, -9.8, 0.0)
    elif example == 5:
        # Microgravity
        v[VecParam.VOLMIN] = (-80, 0, -80)
        v[VecParam.VOLMAX] = (80, 100, 80)
        v[VecParam.INITMIN] = (-60, 40, -60)
        v[VecParam.INITMAX] = (60, 80, 60)
        v[VecParam.PLANE_GRAV_DIR] = (0, -1, 0)
        p[Param.GROUND_SLOPE] = 0.1


def setup_spacing(params: SimParams) -> None:
    """Derive spacing from density (or density from spacing) and the particle bounds."""
    p = params.param
    v = params.vec

    p[Param.SIMSIZE] = p[Param.SIMSCALE] * (v[VecParam.VOLMAX][2] - v[VecParam.VOLMIN][2])

    if p[Param.SPACING] == 0:
        p[Param.DIST] = (p[Param.MASS] / p[Param.RESTDENSITY]) ** (1.0 / 3.0)
        p[Param.SPACING] = p[Param.DIST] * 0.87 / p[Param.SIMSCALE]
    else:
        p[Param.DIST] = p[Param.SPACING] * p[Param.SIMSCALE] / 0.87
        p[Param.RESTDENSITY] = p[Param.MASS] / p[Param.DIST] ** 3

    border = 2.0 * (p[Param.GRIDSIZE] / p[Param.SIMSCALE])
    v[VecParam.BOUNDMIN] = v[VecParam.VOLMIN] + border
    v[VecParam.BOUNDMAX] = v[VecParam.VOLMAX] - border