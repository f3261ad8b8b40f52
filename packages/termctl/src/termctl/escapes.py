"""ANSI escape sequence builders.

Every function here is pure: it returns the sequence as a string and never
touches the terminal. Writing the result is the caller's job (see
:class:`termctl.session.TerminalSession`).

Names loosely follow the ``tput`` capabilities; see
https://tldp.org/HOWTO/Bash-Prompt-HOWTO/x405.html
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ESC = "\x1b"
CSI = ESC + "["

# Device Status Report: request is ESC[6n, reply is ESC[<row>;<col>R
DSR_REQUEST = CSI + "6n"
DSR_REPLY_TERMINATOR = "R"

_SAVE_CURSOR = ESC + "7"
_RESTORE_CURSOR = ESC + "8"

_ERASE_LINE = CSI + "2K"
_ERASE_LINE_BACKWARD = CSI + "1K"
_ERASE_LINE_FORWARD = CSI + "0K"

_CLEAR_SCREEN = CSI + "2J"
_CLEAR_TO_TOP = CSI + "1J"
_CLEAR_TO_END = CSI + "0J"


# ---------------------------------------------------------------------------
# Cursor movement
# ---------------------------------------------------------------------------


def cursor_position(row: int, col: int) -> str:
    """Absolute move to 1-indexed *row* and *col*."""
    return f"{CSI}{row};{col}H"


def _relative(times: int, final: str) -> str:
    # One compact sequence instead of repeating ESC[1X; same visual effect.
    if times <= 0:
        return ""
    return f"{CSI}{times}{final}"


def cursor_up(times: int = 1) -> str:
    return _relative(times, "A")


def cursor_down(times: int = 1) -> str:
    return _relative(times, "B")


def cursor_right(times: int = 1) -> str:
    return _relative(times, "C")


def cursor_left(times: int = 1) -> str:
    return _relative(times, "D")


def save_cursor() -> str:
    return _SAVE_CURSOR


def restore_cursor() -> str:
    return _RESTORE_CURSOR


# ---------------------------------------------------------------------------
# Erasing
# ---------------------------------------------------------------------------


def erase_line() -> str:
    """Erase the whole line the cursor is on."""
    return _ERASE_LINE


def erase_line_backward() -> str:
    """Erase from the start of the line up to the cursor."""
    return _ERASE_LINE_BACKWARD


def erase_line_forward() -> str:
    """Erase from the cursor to the end of the line."""
    return _ERASE_LINE_FORWARD


def clear_screen() -> str:
    return _CLEAR_SCREEN


def clear_to_top_of_screen() -> str:
    return _CLEAR_TO_TOP


def clear_to_end_of_screen() -> str:
    return _CLEAR_TO_END


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def device_status_report() -> str:
    """Request the cursor position; the terminal answers ``ESC[r;cR``."""
    return DSR_REQUEST
