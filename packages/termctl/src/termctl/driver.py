"""Low-level access to the controlling terminal.

Provides a ``TtyDriver`` protocol and a concrete ``ProcessTtyDriver`` backed
by ``sys.stdin``/``sys.stdout`` and the :mod:`termios`, :mod:`tty` and
:mod:`select` modules. Everything above this layer talks to the terminal only
through a driver, so tests can swap in an in-memory one.
"""

from __future__ import annotations

import os
import select
import sys
import termios
import tty
from typing import IO, Any, Protocol


# ---------------------------------------------------------------------------
# Driver protocol
# ---------------------------------------------------------------------------


class TtyDriver(Protocol):
    """Interface for the terminal syscalls termctl needs."""

    @property
    def input_fd(self) -> int: ...

    def isatty(self) -> bool: ...

    def get_attributes(self) -> Any: ...

    def set_attributes(self, attributes: Any) -> None: ...

    def set_raw(self) -> None: ...

    def get_size(self) -> tuple[int, int]: ...

    def read(self, size: int, timeout: float) -> bytes: ...

    def write(self, data: str) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTtyDriver implementation
# ---------------------------------------------------------------------------


class ProcessTtyDriver:
    """Driver for the process' own stdin/stdout.

    ``termios.error`` and ``OSError`` are passed through unchanged; the
    session layer translates them into termctl errors.
    """

    def __init__(
        self,
        stdin: IO[str] | None = None,
        stdout: IO[str] | None = None,
    ) -> None:
        self._stdin = stdin or sys.__stdin__
        self._stdout = stdout or sys.__stdout__

    # -- properties ---------------------------------------------------------

    @property
    def input_fd(self) -> int:
        return self._stdin.fileno()

    @property
    def output_fd(self) -> int:
        return self._stdout.fileno()

    # -- terminal attributes ------------------------------------------------

    def isatty(self) -> bool:
        try:
            return os.isatty(self.input_fd)
        except (ValueError, OSError):
            # Closed or detached stdin
            return False

    def get_attributes(self) -> list:
        return termios.tcgetattr(self.input_fd)

    def set_attributes(self, attributes: list) -> None:
        termios.tcsetattr(self.input_fd, termios.TCSADRAIN, attributes)

    def set_raw(self) -> None:
        tty.setraw(self.input_fd)

    def get_size(self) -> tuple[int, int]:
        """Return ``(rows, columns)``, asking stdout first and then stdin."""
        try:
            size = os.get_terminal_size(self.output_fd)
        except (ValueError, OSError):
            size = os.get_terminal_size(self.input_fd)
        return size.lines, size.columns

    # -- I/O ----------------------------------------------------------------

    def read(self, size: int, timeout: float) -> bytes:
        """Read up to *size* bytes, waiting at most *timeout* seconds.

        Returns ``b""`` when nothing arrived in time.
        """
        ready, _, _ = select.select([self.input_fd], [], [], timeout)
        if not ready:
            return b""
        return os.read(self.input_fd, size)

    def write(self, data: str) -> None:
        """Write directly to stdout, bypassing buffering."""
        self._stdout.write(data)
        self._stdout.flush()


# Everything a driver call may raise for an unusable terminal
TTY_ERRORS = (termios.error, OSError, ValueError)
