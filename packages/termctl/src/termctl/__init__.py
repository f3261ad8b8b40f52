"""termctl: terminal raw mode, cursor queries and a status-line overlay."""

__version__ = "0.1.0"

# Errors
from termctl.errors import (
    CursorQueryError,
    CursorQueryMalformed,
    CursorQueryTimeout,
    ScreenGeometryUnavailable,
    TerminalError,
    TerminalUnavailable,
)

# Configuration
from termctl.config import (
    TermSettings,
    get_bool_env_var,
    get_env_var,
    get_numeric_env_var,
)

# Terminal access
from termctl.driver import ProcessTtyDriver, TtyDriver
from termctl.session import (
    ScreenGeometry,
    TerminalSession,
    cleanup,
    default_session,
    register_cleanup,
)

# Cursor query
from termctl.cursor import (
    CursorPosition,
    get_current_cursor_location,
    parse_cursor_report,
    query_cursor_position,
)

# Status overlay
from termctl.overlay import (
    OverlayAnchor,
    SchedulerState,
    StatusOverlayScheduler,
    compose_overlay,
    format_timestamp,
)

# Helpers
from termctl.timing import DurationTimer
from termctl.utils import progress_bar, visible_width

__all__ = [
    "CursorPosition",
    "CursorQueryError",
    "CursorQueryMalformed",
    "CursorQueryTimeout",
    "DurationTimer",
    "OverlayAnchor",
    "ProcessTtyDriver",
    "SchedulerState",
    "ScreenGeometry",
    "ScreenGeometryUnavailable",
    "StatusOverlayScheduler",
    "TermSettings",
    "TerminalError",
    "TerminalSession",
    "TerminalUnavailable",
    "TtyDriver",
    "cleanup",
    "compose_overlay",
    "default_session",
    "format_timestamp",
    "get_bool_env_var",
    "get_current_cursor_location",
    "get_env_var",
    "get_numeric_env_var",
    "parse_cursor_report",
    "progress_bar",
    "query_cursor_position",
    "register_cleanup",
    "visible_width",
]
