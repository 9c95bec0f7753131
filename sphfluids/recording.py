"""Point-cloud frame files, frame-numbered file names and density bricks."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

_INT = struct.Struct("<i")
_FIELD = struct.Struct("<ii")
_BRICK_HEADER = struct.Struct("<3i3f3f3i")

FTYPE_CHAR = 0
FTYPE_FLOAT = 2


@dataclass
class PointFrame:
    """One recorded frame of particle positions, velocities and packed colours."""

    positions: np.ndarray
    velocities: np.ndarray
    colors: np.ndarray

    def __len__(self) -> int:
        return len(self.positions)


@dataclass
class Brick:
    """A sampled block of the density field and where it sits in the volume."""

    index: tuple[int, int, int]
    bmin: np.ndarray
    bmax: np.ndarray
    res: tuple[int, int, int]
    data: np.ndarray


def resolve_name(pattern: str, work_path: str, frame: int) -> str:
    """Replace the run of '#' in pattern with the zero-padded frame number.

    Names whose second character is not ':' are taken as relative and
    prefixed with work_path.
    """
    name = pattern
    lpos = name.find("#")
    if lpos != -1:
        rpos = name.rfind("#")
        width = rpos - lpos + 1
        name = f"{name[:lpos]}{frame:0{width}d}{name[rpos + 1:]}"
    if len(name) < 2:
        raise ValueError(f"file name too short: {name!r}")
    if name[1] != ":":
        name = work_path + name
    return name


def write_points(path, positions, velocities, colors) -> None:
    """Write a frame: counts, then float positions, float velocities, byte colours."""
    pos = np.asarray(positions, dtype="<f4").reshape(-1, 3)
    vel = np.asarray(velocities, dtype="<f4").reshape(-1, 3)
    clr = np.asarray(colors, dtype="<u4").reshape(-1)
    n = len(pos)
    if len(vel) != n or len(clr) != n:
        raise ValueError("positions, velocities and colors must have the same length")
    with open(path, "wb") as fp:
        fp.write(_INT.pack(n))
        fp.write(_INT.pack(3))
        fp.write(_FIELD.pack(FTYPE_FLOAT, 3))
        fp.write(pos.tobytes())
        fp.write(_FIELD.pack(FTYPE_FLOAT, 3))
        fp.write(vel.tobytes())
        fp.write(_FIELD.pack(FTYPE_CHAR, 4))
        fp.write(clr.tobytes())


class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def take(self, size: int) -> bytes:
        end = self.offset + size
        if size < 0 or end > len(self.data):
            raise ValueError("file is truncated")
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk


def read_points(path) -> PointFrame:
    """Read a frame written by write_points."""
    with open(path, "rb") as fp:
        reader = _Reader(fp.read())
    (n,) = _INT.unpack(reader.take(_INT.size))
    reader.take(_INT.size)  # number of fields
    if n < 0:
        raise ValueError(f"negative point count: {n}")
    reader.take(_FIELD.size)
    pos = np.frombuffer(reader.take(n * 12), dtype="<f4").reshape(n, 3).copy()
    reader.take(_FIELD.size)
    vel = np.frombuffer(reader.take(n * 12), dtype="<f4").reshape(n, 3).copy()
    reader.take(_FIELD.size)
    clr = np.frombuffer(reader.take(n * 4), dtype="<u4").copy()
    return PointFrame(pos, vel, clr)


Sampler = Callable[[np.ndarray, np.ndarray, tuple[int, int, int]], Sequence[float]]


def extract_bricks(
    sampler: Sampler,
    vol_min,
    vol_max,
    vol_res,
    brick_res: int,
    threshold: float,
) -> list[Brick]:
    """Split the volume into cubic bricks and keep those dense enough.

    sampler(bmin, bmax, res) returns res[0]*res[1]*res[2] samples of the field
    over the box. A brick is kept when the mean of its 2x2x2 corner samples
    exceeds threshold; it is then sampled at brick_res per axis.
    """
    if brick_res <= 0:
        raise ValueError("brick_res must be positive")
    vmin = np.asarray(vol_min, dtype=np.float64).reshape(3)
    vmax = np.asarray(vol_max, dtype=np.float64).reshape(3)
    res = np.asarray(vol_res, dtype=np.int64).reshape(3)
    brk = np.array([brick_res] * 3, dtype=np.int64)
    resdiv = res // brk
    extent = vmax - vmin
    brick_shape = (brick_res, brick_res, brick_res)

    bricks: list[Brick] = []
    for by in range(int(resdiv[1])):
        for bz in range(int(resdiv[2])):
            for bx in range(int(resdiv[0])):
                b = np.array([bx, by, bz], dtype=np.int64)
                bmin = extent * (b * brk) / res + vmin
                bmax = extent * ((b + 1) * brk) / res + vmin
                corners = np.asarray(sampler(bmin, bmax, (2, 2, 2)), dtype=np.float64)
                if float(np.sum(corners[:8])) / 8.0 > threshold:
                    data = np.asarray(sampler(bmin, bmax, brick_shape), dtype=np.float32).reshape(-1)
                    if data.size != brick_res**3:
                        raise ValueError("sampler returned the wrong number of values")
                    index = tuple(int(v) for v in b * brk)
                    bricks.append(Brick(index, bmin, bmax, brick_shape, data))
    return bricks


def write_bricks(path, bricks: Sequence[Brick]) -> None:
    """Write a brick count followed by each brick's header and float samples."""
    with open(path, "wb") as fp:
        fp.write(_INT.pack(len(bricks)))
        for brick in bricks:
            data = np.asarray(brick.data, dtype="<f4").reshape(-1)
            if data.size != int(np.prod(brick.res)):
                raise ValueError("brick data does not match its resolution")
            fp.write(
                _BRICK_HEADER.pack(
                    *brick.index,
                    *(float(v) for v in brick.bmin),
                    *(float(v) for v in brick.bmax),
                    *brick.res,
                )
            )
            fp.write(data.tobytes())


def read_bricks(path) -> list[Brick]:
    """Read the bricks written by write_bricks."""
    with open(path, "rb") as fp:
        reader = _Reader(fp.read())
    (count,) = _INT.unpack(reader.take(_INT.size))
    if count < 0:
        raise ValueError(f"negative brick count: {count}")
    bricks = []
    for _ in range(count):
        fields = _BRICK_HEADER.unpack(reader.take(_BRICK_HEADER.size))
        index = tuple(fields[0:3])
        bmin = np.array(fields[3:6], dtype=np.float64)
        bmax = np.array(fields[6:9], dtype=np.float64)
        res = tuple(fields[9:12])
        if any(r < 0 for r in res):
            raise ValueError("negative brick resolution")
        size = res[0] * res[1] * res[2]
        data = np.frombuffer(reader.take(size * 4), dtype="<f4").copy()
        bricks.append(Brick(index, bmin, bmax, res, data))
    return bricks