"""Bold foreground color wrappers for terminal messages."""

from __future__ import annotations

# ── ANSI helpers ─────────────────────────────────────────────────────

_BOLD = "\033[1m"
_RED = "\033[31m"
_YELLOW = "\033[33m"
_BLUE = "\033[34m"
_MAGENTA = "\033[35m"
_CYAN = "\033[36m"
_WHITE = "\033[37m"
_ORANGE = "\033[38;5;136m"
_RESET = "\033[0m"


def _wrap(code: str, msg: str) -> str:
    return f"{code}{msg}{_RESET}"


def bold(msg: str) -> str:
    return _wrap(_BOLD, msg)


def red(msg: str) -> str:
    return _wrap(_BOLD + _RED, msg)


def yellow(msg: str) -> str:
    return _wrap(_BOLD + _YELLOW, msg)


def blue(msg: str) -> str:
    return _wrap(_BOLD + _BLUE, msg)


def cyan(msg: str) -> str:
    return _wrap(_BOLD + _CYAN, msg)


def purple(msg: str) -> str:
    return _wrap(_BOLD + _MAGENTA, msg)


def white(msg: str) -> str:
    return _wrap(_BOLD + _WHITE, msg)


def orange(msg: str) -> str:
    # Closest xterm-256 entry to #ac8100; not bold.
    return _wrap(_ORANGE, msg)
