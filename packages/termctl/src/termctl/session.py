"""Terminal session: raw mode, screen geometry and cursor output.

A ``TerminalSession`` owns everything termctl knows about one controlling
terminal: whether raw mode is active (and the attributes to put back), the
cached screen size, the last queried cursor position and the input gate that
serializes reads from the terminal. Pass it to every operation; use
:func:`default_session` for the process' own terminal.
"""

from __future__ import annotations

import atexit
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from termctl import escapes
from termctl.config import TermSettings
from termctl.cursor import CursorPosition, query_cursor_position
from termctl.driver import TTY_ERRORS, ProcessTtyDriver, TtyDriver
from termctl.errors import ScreenGeometryUnavailable, TerminalUnavailable


@dataclass(frozen=True)
class ScreenGeometry:
    """Terminal size in cells."""

    rows: int
    columns: int


class TerminalSession:
    """State and operations for one controlling terminal."""

    def __init__(
        self,
        driver: TtyDriver | None = None,
        settings: TermSettings | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.driver: TtyDriver = driver or ProcessTtyDriver()
        self.settings = settings or TermSettings()
        self.logger = logger or logging.getLogger(__name__)

        self.initialized: bool = False
        self.prior_config: Any = None
        self.geometry: ScreenGeometry | None = None
        self.cursor: CursorPosition | None = None

        # Held for every read from the terminal, and around overlay paints
        self.gate = threading.RLock()
        self._mode_lock = threading.Lock()

    @property
    def input_fd(self) -> int:
        return self.driver.input_fd

    # -- raw mode -----------------------------------------------------------

    def ensure_raw_mode(self) -> None:
        """Switch the terminal to raw mode unless that already happened.

        Raises ``TerminalUnavailable`` when there is no terminal or termios
        refuses; the session then stays uninitialized.
        """
        with self._mode_lock:
            if self.initialized:
                return

            # Failures here are only logged: restore() has nothing to undo yet.
            if not self.driver.isatty():
                self.logger.debug("Raw mode requested but input is not a tty")
                raise TerminalUnavailable("Input is not a terminal")

            try:
                prior = self.driver.get_attributes()
            except TTY_ERRORS as e:
                self.logger.debug("tcgetattr failed: %s", e)
                raise TerminalUnavailable(f"Could not read terminal attributes: {e}") from e

            try:
                self.driver.set_raw()
            except TTY_ERRORS as e:
                self.logger.debug("Switching to raw mode failed: %s", e)
                try:
                    self.driver.set_attributes(prior)
                except TTY_ERRORS as restore_error:
                    self.logger.warning(
                        "Could not put back terminal attributes: %s", restore_error
                    )
                raise TerminalUnavailable(f"Could not enable raw mode: {e}") from e

            self.prior_config = prior
            self.initialized = True

    def restore(self) -> None:
        """Put back the attributes captured by :meth:`ensure_raw_mode`.

        A no-op when raw mode was never entered (or already restored).
        """
        with self._mode_lock:
            if not self.initialized:
                return
            try:
                self.driver.set_attributes(self.prior_config)
            except TTY_ERRORS as e:
                self.logger.warning("Could not restore terminal attributes: %s", e)
            finally:
                self.initialized = False
                self.prior_config = None

    cleanup = restore

    @contextmanager
    def raw_mode(self) -> Iterator[TerminalSession]:
        self.ensure_raw_mode()
        try:
            yield self
        finally:
            self.restore()

    # -- geometry -----------------------------------------------------------

    def screen_geometry(self) -> ScreenGeometry:
        """Return the terminal size, querying it on first use only."""
        if self.geometry is None:
            try:
                rows, columns = self.driver.get_size()
            except TTY_ERRORS as e:
                raise ScreenGeometryUnavailable(f"Could not get terminal size: {e}") from e
            if rows <= 0 or columns <= 0:
                raise ScreenGeometryUnavailable(
                    f"Terminal reported a size of {rows}x{columns}"
                )
            self.geometry = ScreenGeometry(rows, columns)
        return self.geometry

    def row_count(self) -> int:
        return self.screen_geometry().rows

    def column_count(self) -> int:
        return self.screen_geometry().columns

    # -- cursor -------------------------------------------------------------

    def query_cursor_position(self, **kwargs: Any) -> CursorPosition:
        """See :func:`termctl.cursor.query_cursor_position`."""
        return query_cursor_position(self, **kwargs)

    def write(self, data: str) -> None:
        try:
            self.driver.write(data)
        except TTY_ERRORS as e:
            raise TerminalUnavailable(f"Could not write to terminal: {e}") from e

    def _emit(self, sequence: str) -> None:
        # Cursor features are unavailable as a whole without raw mode.
        self.ensure_raw_mode()
        self.write(sequence)

    def move_cursor_to(self, row: int, col: int) -> None:
        self._emit(escapes.cursor_position(row, col))

    def move_cursor_up(self, times: int = 1) -> None:
        self._emit(escapes.cursor_up(times))

    def move_cursor_down(self, times: int = 1) -> None:
        self._emit(escapes.cursor_down(times))

    def move_cursor_right(self, times: int = 1) -> None:
        self._emit(escapes.cursor_right(times))

    def move_cursor_left(self, times: int = 1) -> None:
        self._emit(escapes.cursor_left(times))

    def save_position(self) -> None:
        self._emit(escapes.save_cursor())

    def restore_position(self) -> None:
        self._emit(escapes.restore_cursor())

    # -- erasing ------------------------------------------------------------

    def clear_entire_line(self) -> None:
        self._emit(escapes.erase_line())

    def clear_to_beginning_of_line(self) -> None:
        self._emit(escapes.erase_line_backward())

    def clear_to_end_of_line(self) -> None:
        self._emit(escapes.erase_line_forward())

    def clear_from_here_down(self) -> None:
        self._emit(escapes.clear_to_end_of_screen())

    def clear_from_here_up(self) -> None:
        self._emit(escapes.clear_to_top_of_screen())

    def clear_screen(self) -> None:
        self._emit(escapes.clear_screen())


# ---------------------------------------------------------------------------
# Process-wide session
# ---------------------------------------------------------------------------

_default_session: TerminalSession | None = None
_default_lock = threading.Lock()
_cleanup_registered = False


def default_session() -> TerminalSession:
    """Return the session for the process' own terminal, creating it lazily."""
    global _default_session
    with _default_lock:
        if _default_session is None:
            _default_session = TerminalSession(settings=TermSettings.from_env())
        return _default_session


def cleanup() -> None:
    """Restore the process' terminal if termctl changed it.

    Safe to call any number of times, including when nothing was changed.
    Applications should run it on exit, e.g. via :func:`register_cleanup`.
    """
    with _default_lock:
        session = _default_session
    if session is not None:
        session.restore()


def register_cleanup() -> None:
    """Run :func:`cleanup` at interpreter exit (registered once)."""
    global _cleanup_registered
    with _default_lock:
        if _cleanup_registered:
            return
        atexit.register(cleanup)
        _cleanup_registered = True
