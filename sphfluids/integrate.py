"""Boundary forces and leapfrog integration of particle motion."""

from __future__ import annotations

import math

import numpy as np

from .params import Param, ParticleBuffers, SimParams, Toggle, VecParam, pack_color, unpack_color

EPSILON = 0.00001
_STEP_UP = 2 / 255.0
_STEP_DOWN = 1 / 255.0
_MIN_CHANNEL = 0.2


def _brighten(word: int) -> int:
    r, g, b, a = (min(ch + _STEP_UP, 1.0) for ch in unpack_color(word))
    return pack_color(r, g, b, a)


def _dim(word: int) -> int:
    r, g, b, a = unpack_color(word)
    r = max(r - _STEP_DOWN, _MIN_CHANNEL)
    g = max(g - _STEP_DOWN, _MIN_CHANNEL)
    return pack_color(r, g, b, a)


def advance_particles(
    buffers: ParticleBuffers, active, params: SimParams, time: float, dt: float
) -> None:
    """Apply boundary forces and gravity, then step the active particles in place.

    active is a boolean mask over the live particles; None advances all of them.
    """
    n = buffers.count
    if active is None:
        mask = np.ones(n, dtype=bool)
    else:
        mask = np.asarray(active, dtype=bool).reshape(-1)
        if len(mask) != n:
            raise ValueError(f"active mask has {len(mask)} entries for {n} particles")

    p = params.param
    v = params.vec
    t = params.toggles

    al = float(p[Param.ACCEL_LIMIT])
    al2 = al * al
    sl = float(p[Param.VEL_LIMIT])
    sl2 = sl * sl
    stiff = float(p[Param.EXTSTIFF])
    damp = float(p[Param.EXTDAMP])
    radius = float(p[Param.RADIUS])
    ss = float(p[Param.SIMSCALE])
    mass = float(p[Param.MASS])
    slope = float(p[Param.GROUND_SLOPE])
    fmin = float(p[Param.FORCE_MIN])
    fmax = float(p[Param.FORCE_MAX])
    grav = float(p[Param.GRAV])
    bmin = v[VecParam.BOUNDMIN].copy()
    bmax = v[VecParam.BOUNDMAX].copy()
    plane_grav = v[VecParam.PLANE_GRAV_DIR] * grav
    point_grav = v[VecParam.POINT_GRAV_POS].copy()
    wave = (math.sin(time * float(p[Param.FORCE_FREQ])) + 1) * 0.5
    wrap_x = bool(t[Toggle.WRAP_X])
    wall = bool(t[Toggle.WALL_BARRIER])
    levy = bool(t[Toggle.LEVY_BARRIER])
    drain = bool(t[Toggle.DRAIN_BARRIER])

    for i in np.nonzero(mask)[0]:
        pos = buffers.pos[i]
        vel = buffers.vel[i]
        ve = buffers.veleval[i].copy()
        accel = buffers.force[i] * mass

        def push(norm, diff, scale=1.0):
            nv = np.asarray(norm, dtype=np.float64)
            adj = scale * stiff * diff - damp * float(nv @ ve)
            accel[:] += adj * nv

        # Y-axis walls, the floor following the ground slope.
        diff = radius - (pos[1] - (bmin[1] + (pos[0] - bmin[0]) * slope)) * ss
        if diff > EPSILON:
            push((-slope, 1.0 - slope, 0.0), diff)
        diff = radius - (bmax[1] - pos[1]) * ss
        if diff > EPSILON:
            push((0.0, -1.0, 0.0), diff)

        # X-axis walls, moving with the wave forcing.
        if not wrap_x:
            diff = radius - (pos[0] - (bmin[0] + wave * fmin)) * ss
            if diff > EPSILON:
                push((1.0, 0.0, 0.0), diff, fmin + 1)
            diff = radius - ((bmax[0] - wave * fmax) - pos[0]) * ss
            if diff > EPSILON:
                push((-1.0, 0.0, 0.0), diff, fmax + 1)

        # Z-axis walls.
        diff = radius - (pos[2] - bmin[2]) * ss
        if diff > EPSILON:
            push((0.0, 0.0, 1.0), diff)
        diff = radius - (bmax[2] - pos[2]) * ss
        if diff > EPSILON:
            push((0.0, 0.0, -1.0), diff)

        if wall:
            diff = 2 * radius - pos[0] * ss
            if diff < 2 * radius and diff > EPSILON and abs(pos[1]) < 3 and pos[2] < 10:
                push((1.0, 0.0, 0.0), diff, 2.0)
        if levy:
            diff = 2 * radius - pos[0] * ss
            if diff < 2 * radius and diff > EPSILON and abs(pos[1]) > 5 and pos[2] < 10:
                push((1.0, 0.0, 0.0), diff, 2.0)
        if drain:
            diff = 2 * radius - (pos[2] - bmin[2] - 15) * ss
            if diff < 2 * radius and diff > EPSILON and (abs(pos[0]) > 3 or abs(pos[1]) > 3):
                push((0.0, 0.0, 1.0), diff)

        accel += plane_grav

        if point_grav[0] > 0 and grav > 0:
            norm = pos - point_grav
            length = math.sqrt(float(norm @ norm))
            if length > 0:
                norm = norm / length
            accel -= norm * grav

        speed = float(accel @ accel)
        if speed > al2:
            accel *= al / math.sqrt(speed)

        speed = float(vel @ vel)
        if speed > sl2:
            speed = sl2
            vel *= sl / math.sqrt(speed)

        # Leapfrog: v(t+1/2) = v(t-1/2) + a dt; veleval is the midpoint average.
        vnext = accel * dt + vel
        buffers.veleval[i] = (vel + vnext) * 0.5
        vel[:] = vnext
        pos += vnext * (dt / ss)

        if speed > sl2 * 0.1:
            buffers.color[i] = _brighten(int(buffers.color[i]))
        if speed < 0.01:
            buffers.color[i] = _dim(int(buffers.color[i]))

        if wrap_x:
            diff = pos[0] - (bmin[0] + 2)
            if diff <= 0:
                pos[0] = (bmax[0] - 2) + diff * 2
                pos[2] = 10