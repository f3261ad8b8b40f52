"""Exception hierarchy for terminal control failures.

Setup failures (``TerminalUnavailable``, ``ScreenGeometryUnavailable``)
propagate to the caller. Cursor query failures are transient: the status
overlay skips the current tick when it sees one.
"""

from __future__ import annotations


class TerminalError(Exception):
    """Base class for every error raised by termctl."""


class TerminalUnavailable(TerminalError):
    """No controlling terminal, or a termios call failed."""


class ScreenGeometryUnavailable(TerminalError):
    """The terminal size could not be determined."""


class CursorQueryError(TerminalError):
    """A Device Status Report round trip failed."""


class CursorQueryTimeout(CursorQueryError):
    """No reply terminator arrived within the retry budget."""


class CursorQueryMalformed(CursorQueryError):
    """A reply arrived but its payload could not be parsed."""

    def __init__(self, message: str, payload: str = "") -> None:
        super().__init__(message)
        self.payload = payload
