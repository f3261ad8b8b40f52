"""Wall-clock duration timer."""

from __future__ import annotations

import sys
import time
from typing import IO, Callable


def format_duration(seconds: int) -> str:
    """Format whole *seconds* compactly, e.g. ``"1h2m5s"``, ``"0s"``."""
    hours, rest = divmod(max(0, int(seconds)), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


class DurationTimer:
    """Measures time since creation (or the last :meth:`reset`)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.start = clock()

    def elapsed(self) -> int:
        """Whole seconds elapsed, truncated."""
        return int(self._clock() - self.start)

    def elapsed_text(self) -> str:
        return format_duration(self.elapsed())

    def reset(self) -> None:
        self.start = self._clock()

    def print_elapsed(self, prefix: str = "", file: IO[str] | None = None) -> None:
        out = file or sys.stdout
        out.write(f"{prefix}{self.elapsed_text()} has elapsed since this operation began.\n")
        out.flush()
