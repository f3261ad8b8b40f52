"""Text helpers: visible width measurement, padding and a progress bar."""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

from termctl.escapes import erase_line_forward

# CSI sequences and OSC 8 hyperlinks
_STRIP_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]|\x1b\]8;;[^\x07]*\x07")


def strip_ansi(text: str) -> str:
    return _STRIP_RE.sub("", text)


# ---------------------------------------------------------------------------
# Width
# ---------------------------------------------------------------------------


def _grapheme_width(g: str) -> int:
    """Terminal width of one grapheme cluster (0, 1 or 2)."""
    first = g[0]
    cp = ord(first)
    if cp < 0x20 or 0x7F <= cp <= 0x9F:
        return 0
    if len(g) > 1:
        # VS16, ZWJ sequences and skin-tone modifiers render as wide emoji
        for ch in g[1:]:
            if ch in ("\ufe0f", "\u200d") or 0x1F3FB <= ord(ch) <= 0x1F3FF:
                return 2
        if unicodedata.category(first).startswith("M"):
            return 0
    return max(_wcwidth.wcwidth(first), 0)


def visible_width(text: str) -> int:
    """Number of terminal cells *text* occupies, ignoring escape sequences."""
    stripped = strip_ansi(text)
    if stripped.isascii() and stripped.isprintable():
        return len(stripped)
    return sum(_grapheme_width(g) for g in grapheme.graphemes(stripped))


def pad_to_width(text: str, width: int) -> str:
    """Right-pad *text* with spaces to *width* cells. Never truncates."""
    return text + " " * max(0, width - visible_width(text))


# ---------------------------------------------------------------------------
# Progress bar
# ---------------------------------------------------------------------------


def progress_bar(size: int, total: int, done: int) -> str:
    """Return a bar like ``[#####=====]`` that is *size* units wide.

    The bar is prefixed with an erase-to-end-of-line so it can be redrawn in
    place. Nonsensical input yields ``"[#]"``.
    """
    if size <= 2 or total < 1 or done < 0 or done > total:
        return "[#]"
    filled = size * done // total
    return f"{erase_line_forward()}[{'#' * filled}{'=' * (size - filled)}]"
