"""Logging setup and caller-annotated debug output.

Library code logs through ``logging.getLogger(__name__)`` (or a logger passed
in by the caller). :func:`configure_logging` is for applications such as the
bundled CLI that want those records on stderr.

:func:`debug` is a convenience for ad-hoc tracing: it only emits while debug
output is enabled and prefixes each record with the calling file, line and
function.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

logger = logging.getLogger("termctl")

_LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
_DATE_FORMAT = "%H:%M:%S"

_debug_enabled = False
_debug_toggled = False


def configure_logging(debug: bool = False, stream: IO[str] | None = None) -> logging.Handler:
    """Attach a stderr handler to the ``termctl`` logger.

    Calling it again replaces the handler installed by the previous call.
    """
    for handler in list(logger.handlers):
        if getattr(handler, "_termctl_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    handler._termctl_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    set_debug(debug)
    return handler


# ---------------------------------------------------------------------------
# Debug switch
# ---------------------------------------------------------------------------


def set_debug(enabled: bool) -> None:
    global _debug_enabled, _debug_toggled
    _debug_enabled = enabled
    _debug_toggled = False


def is_debug_enabled() -> bool:
    return _debug_enabled


def toggle_debug_if_needed(flag: bool) -> None:
    """Force debug output to *flag* for one section of code.

    Call once with the desired flag before the section and once (with any
    flag) after it; the second call puts the previous setting back. Sections
    must not nest.
    """
    global _debug_enabled, _debug_toggled
    if _debug_toggled:
        _debug_enabled = not _debug_enabled
        _debug_toggled = False
        return
    if flag != _debug_enabled:
        _debug_enabled = flag
        _debug_toggled = True


# ---------------------------------------------------------------------------
# debug()
# ---------------------------------------------------------------------------


def debug(*parts: str) -> None:
    """Log *parts* joined by spaces, tagged with the caller's location."""
    if not _debug_enabled:
        return
    frame = sys._getframe(1)
    code = frame.f_code
    location = f"{os.path.basename(code.co_filename)}:{frame.f_lineno} {code.co_name}()"
    # stacklevel=2 so the record's own lineno/funcName point at the caller too
    logger.debug("%s: %s", location, " ".join(parts), stacklevel=2)
