# sphfluids

A smoothed-particle hydrodynamics (SPH) fluid simulator that runs on the CPU.
Particles are binned into a uniform spatial grid. The simulator finds
neighbours, computes density and pressure with the Poly6 kernel, computes
pressure and viscosity forces with the spiky and Laplacian kernels, and
advances the particles with leapfrog integration against the container walls.

## Installation

```
pip install .
```

numpy is the only runtime dependency. To run the tests, install the `test` extra:

```
pip install ".[test]"
pytest
```

## Using the simulator

```python
from sphfluids.system import FluidSystem

sim = FluidSystem(seed=1)
sim.start(4000)          # set up the selected example scene and fill it with particles
for _ in range(10):
    sim.run()            # one step in the current run mode
print(sim.num_points())
print(sim.mode_name())
print(sim.memory_report())
```

`FluidSystem.run` performs one step according to the run mode held in
`Param.MODE` (see `RunMode` in `sphfluids.params`):

- `RunMode.SEARCH`: insert into the grid and build the neighbour table.
- `RunMode.CPU_SLOW`: insert into the grid and advance.
- `RunMode.CPU_GRID` (the default): insert, compute pressure, compute forces, advance.

Every step then advances time and the frame counter. When a frame range has
been set with `setup_mode` and the frame passes its end,
`SimulationFinished` is raised.

Parameters are changed with `set_param` and `set_vec`; their indices are the
`Param` and `VecParam` enums in `sphfluids.params`, and switches are the
`Toggle` enum. The example scene is chosen with `Param.EXAMPLE` (0 to 5)
before calling `start`. The scenes themselves are in `sphfluids.scenes`:
`set_default_params`, `apply_example` and `setup_spacing`.

The individual passes can also be used on their own:

- `sphfluids.params`: `SimParams`, `ParticleBuffers`, `Kernels`, `FluidParams`, `pack_color`, `unpack_color`
- `sphfluids.grid`: `SpatialGrid`, `GridBins` and `prefix_sum`
- `sphfluids.neighbors`: `NeighborTable`, `find_neighbors_slow` and `find_neighbors_grid`
- `sphfluids.sph`: `compute_pressure_grid`, `compute_force_grid`, `compute_force_neighbors` and `sample_density`
- `sphfluids.integrate`: `advance_particles`
- `sphfluids.emitter`: `setup_add_volume` and `add_emit`

## Recording and playback

`sphfluids.recording` handles two binary formats:

- Point frames, written with `write_points` and read back with `read_points`
  as a `PointFrame` of positions, velocities and packed RGBA colours.
- Density bricks. `extract_bricks` splits a volume into cubic bricks and keeps
  those whose corner samples average above a threshold; `write_bricks` and
  `read_bricks` store and load them as `Brick` objects.

`resolve_name` replaces a run of `#` in a file name with the zero-padded frame
number, and prefixes the work path unless the name's second character is `:`.
The work path is joined as given, so end it with a path separator.

On a `FluidSystem`, `save_points(frame)` writes `jet<frame>.pts` in the
current directory, `save_bricks(frame)` writes bricks to the resolved output
name, and `run_playback()` loads the frame named by the resolved input name.

## Timing

- `sphfluids.perf.Profiler` prints nested, indented timing markers. `push` and
  `pop` open and close a marker (`pop` returns the time in milliseconds),
  `marker` is a context manager for one marker, `start` and `stop` time
  silently, and output can also go to a file. Only markers shallower than the
  print level are printed (by default, the outermost level only).
- `sphfluids.timex.TimeX` stores a date and time as a scaled Julian time in
  nanoseconds. It converts to and from calendar fields (`TimeParts`,
  `scaled_julian_time`, `split_time`), gives day of week, week of year and
  elapsed days, weeks, months and years, and formats dates for reading.

## Command line

```
sphfluids --help
sphfluids --num 2000 --example 3 --mode cpu-grid --steps 20 --seed 1 --memory
```

Options:

- `--num`, `--example`, `--mode` (`search`, `cpu-slow`, `cpu-grid`), `--steps`, `--seed`
- `--frames START END STEP`: frame range; an END of -1 means no end
- `--write-points`: write `jet<frame>.pts` after each step
- `--write-volume --out-file NAME`: write density bricks after each step
  (`--vol-res`, `--brick-res`, `--threshold` control the sampling)
- `--playback --in-file NAME`: load recorded point frames before each step
- `--work-path`: prefix for relative input and output names
- `--memory`: print a memory report at the end

## What the package does not do

- It has no rendering or viewer; results are reached through the arrays on
  `FluidSystem.buffers` or through the recording files.
- Everything runs on the CPU in Python with numpy; there is no GPU path.
- `Command.WRITEIMG` only sets the `Toggle.CAPTURE` switch; no images are
  captured.