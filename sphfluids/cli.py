"""Command-line driver for the fluid simulation."""

from __future__ import annotations

import argparse

from .params import Command, Param, RunMode
from .system import FluidSystem, SimulationFinished

_MODES = {
    "search": RunMode.SEARCH,
    "cpu-slow": RunMode.CPU_SLOW,
    "cpu-grid": RunMode.CPU_GRID,
}


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sphfluids", description="Run a smoothed-particle fluid simulation."
    )
    parser.add_argument("--num", type=int, default=4096, help="maximum number of particles")
    parser.add_argument("--example", type=int, default=2, choices=range(6), help="example scene")
    parser.add_argument("--mode", choices=sorted(_MODES), default="cpu-grid")
    parser.add_argument("--steps", type=int, default=1, help="number of steps to run")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument(
        "--frames", type=int, nargs=3, metavar=("START", "END", "STEP"), default=(0, -1, 1)
    )
    parser.add_argument("--playback", action="store_true", help="replay recorded frames")
    parser.add_argument("--write-points", action="store_true", help="record particle frames")
    parser.add_argument("--write-volume", action="store_true", help="record density bricks")
    parser.add_argument("--in-file", default="", help="input name; '#' marks the frame number")
    parser.add_argument("--out-file", default="", help="brick output name; '#' marks the frame")
    parser.add_argument("--work-path", default="")
    parser.add_argument("--vol-res", type=int, nargs=3, default=(64, 64, 64))
    parser.add_argument("--brick-res", type=int, default=8)
    parser.add_argument("--threshold", type=float, default=0.0)
    parser.add_argument("--memory", action="store_true", help="print a memory report")
    return parser


def main(argv=None) -> int:
    parser = _parser()
    args = parser.parse_args(argv)
    if args.num <= 0:
        parser.error("--num must be positive")
    if args.playback and not args.in_file:
        parser.error("--playback needs --in-file")
    if args.write_volume and not args.out_file:
        parser.error("--write-volume needs --out-file")

    commands = {Command.SIM}
    if args.playback:
        commands.add(Command.PLAYBACK)
    if args.write_points:
        commands.add(Command.WRITEPTS)
    if args.write_volume:
        commands.add(Command.WRITEVOL)

    system = FluidSystem(args.seed)
    system.set_param(Param.EXAMPLE, args.example)
    system.set_param(Param.NUM, args.num)
    system.set_param(Param.MODE, _MODES[args.mode])
    system.start(args.num)
    system.setup_mode(
        commands,
        args.frames,
        args.in_file,
        args.out_file,
        args.work_path,
        args.vol_res,
        args.brick_res,
        args.threshold,
    )

    print(f"Mode: {system.mode_name()}")
    try:
        for _ in range(args.steps):
            if int(system.params.param[Param.MODE]) == RunMode.PLAYBACK:
                if not system.run_playback():
                    print(f"WARNING: File not found {system.resolved_name(True, system.frame)}")
            system.run()
            if system.recording:
                system.save_points(system.frame)
            if system.recording_bricks:
                system.save_bricks(system.frame)
    except SimulationFinished:
        print("Exiting.")

    print(f"Particles: {system.num_points()}")
    print(f"Time: {system.params.time:.4f}, frame: {system.frame}")
    if args.memory:
        print(system.memory_report(), end="")
    return 0