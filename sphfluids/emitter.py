"""Filling a box with particles and emitting jets of new ones."""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from .params import ParticleBuffers, SimParams, VecParam, pack_color

DEG_TO_RAD = math.pi / 180.0


def _rng(rng: Optional[np.random.Generator]) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


def setup_add_volume(
    buffers: ParticleBuffers,
    vmin,
    vmax,
    spacing: float,
    offs: float,
    rng: Optional[np.random.Generator] = None,
) -> int:
    """Fill the box [vmin + offs, vmax - offs] with jittered layers of particles.

    Particles are laid out on an x-z lattice with the given spacing, one layer
    per spacing step in y, each moved by a random offset in [0, spacing).
    Colours shade from the low x-z corner. Filling stops when the buffers are
    full. Returns the number of particles added.
    """
    if spacing <= 0:
        raise ValueError("spacing must be positive")
    rng = _rng(rng)
    lo = np.asarray(vmin, dtype=np.float64).reshape(3).copy()
    hi = np.asarray(vmax, dtype=np.float64).reshape(3).copy()

    cntx = int(math.ceil((hi[0] - lo[0] - offs) / spacing))
    cntz = int(math.ceil((hi[2] - lo[2] - offs) / spacing))
    if cntx <= 0 or cntz <= 0:
        return 0
    cnt = cntx * cntz

    lo += offs
    hi -= offs
    dx = hi[0] - lo[0]
    dz = hi[2] - lo[2]

    added = 0
    y = lo[1]
    while y <= hi[1]:
        for xz in range(cnt):
            x = lo[0] + (xz % cntx) * spacing
            z = lo[2] + (xz // cntx) * spacing
            try:
                p = buffers.add(rng)
            except IndexError:
                return added
            jitter = rng.uniform(0.0, spacing, 3)
            buffers.pos[p] = np.array([x, y, z]) + jitter

            red = (x - lo[0]) / dx if dx != 0 else 0.0
            blue = (z - lo[2]) / dz if dz != 0 else 0.0
            clr = np.clip(np.array([red, 0.0, blue]) * 0.8 + 0.2, 0.0, 1.0)
            buffers.color[p] = pack_color(clr[0], clr[1], clr[2], 1.0)
            added += 1
        y += spacing
    return added


def add_emit(
    buffers: ParticleBuffers,
    params: SimParams,
    spacing: float,
    time: float,
    rng: Optional[np.random.Generator] = None,
) -> list[int]:
    """Emit a block of particles from the emitter position with a spread direction.

    The number emitted is the y component of the emit rate; they are laid out in
    a square block of side sqrt(rate) spaced by `spacing`. Emission stops when
    the buffers are full. Returns the indices of the new particles.
    """
    rng = _rng(rng)
    v = params.vec
    rate = float(v[VecParam.EMIT_RATE][1])
    spread = v[VecParam.EMIT_SPREAD]
    ang = v[VecParam.EMIT_ANG]
    origin = v[VecParam.EMIT_POS]

    count = int(math.ceil(rate)) if rate > 0 else 0
    if count == 0:
        return []
    side = int(math.sqrt(rate))
    if side == 0:
        raise ValueError("emit rate below 1 cannot be laid out in a block")

    color = pack_color(time / 10.0, time / 5.0, time / 4.0, 1.0)
    added: list[int] = []
    for n in range(count):
        ang_rand = rng.uniform(-1.0, 1.0) * spread[0]
        tilt_rand = rng.uniform(-1.0, 1.0) * spread[1]
        heading = (ang[0] + ang_rand) * DEG_TO_RAD
        tilt = (ang[1] + tilt_rand) * DEG_TO_RAD
        direction = np.array(
            [
                math.cos(heading) * math.sin(tilt) * ang[2],
                math.sin(heading) * math.sin(tilt) * ang[2],
                math.cos(tilt) * ang[2],
            ]
        )
        pos = origin.copy()
        pos[0] += spacing * (n // side)
        pos[1] += spacing * (n % side)

        try:
            p = buffers.add(rng)
        except IndexError:
            break
        buffers.pos[p] = pos
        buffers.vel[p] = direction
        buffers.veleval[p] = direction
        buffers.age[p] = 0
        buffers.color[p] = color
        added.append(p)
    return added