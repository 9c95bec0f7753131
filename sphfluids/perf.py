"""Nested CPU timing markers with indented console and file output."""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from .timex import MSEC_SCALAR

_UNLIMITED = 32767
_MSG_LIMIT = 256


class Profiler:
    """Records nested timing ranges and prints them, indented by depth."""

    def __init__(
        self,
        cpu: bool = True,
        console: bool = True,
        level: int = 2,
        filename: str = "",
        output: Optional[Callable[[str], object]] = None,
    ):
        self.cpu = cpu
        self.console = console
        self.print_level = level or _UNLIMITED
        self.level = 0
        self._marks: dict[int, tuple[str, int]] = {}
        self._timers: list[int] = []
        self._output = output if output is not None else sys.stdout.write
        self._file = open(filename, "w", encoding="utf-8") if filename else None

    def configure(self, console: bool, level: int = 0) -> None:
        """Change console output and the deepest level that is printed (0 = all)."""
        self.console = console
        self.print_level = level or _UNLIMITED

    def _emit(self, text: str) -> None:
        if self.console:
            self._output(text)
        if self._file is not None:
            self._file.write(text)

    def push(self, msg: str) -> None:
        """Open a timing range."""
        if not self.cpu:
            return
        self.level += 1
        if self.level < self.print_level:
            self._marks[self.level] = (msg[:_MSG_LIMIT], time.perf_counter_ns())
            self._emit(f"{' ' * (self.level * 2)}{msg}\n")

    def pop(self) -> float:
        """Close the innermost range; return its length in ms, or 0.0 if not printed."""
        if not self.cpu:
            return 0.0
        if self.level <= 0:
            raise RuntimeError("pop without a matching push")
        if self.level < self.print_level:
            msg, start = self._marks.pop(self.level)
            elapsed = (time.perf_counter_ns() - start) / MSEC_SCALAR
            self._emit(f"{' ' * (self.level * 2)}{msg}: {elapsed:f} ms\n")
            self.level -= 1
            return elapsed
        self.level -= 1
        return 0.0

    def start(self) -> None:
        """Start a silent timer."""
        self._timers.append(time.perf_counter_ns())

    def stop(self) -> float:
        """Stop the most recent silent timer and return its length in ms."""
        if not self._timers:
            raise RuntimeError("stop without a matching start")
        started = self._timers.pop()
        return (time.perf_counter_ns() - started) / MSEC_SCALAR

    @contextmanager
    def marker(self, msg: str) -> Iterator[None]:
        """Time the enclosed block as one range."""
        self.push(msg)
        try:
            yield
        finally:
            self.pop()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "Profiler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()