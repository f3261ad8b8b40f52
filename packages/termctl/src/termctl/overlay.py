"""Status overlay: periodically repaint a few lines at the top of the screen.

Producers are zero-argument callables returning one line each. On every tick
the scheduler collects their lines, appends a right-aligned timestamp, saves
the real cursor position with a Device Status Report query, paints the lines
at the anchor and moves the cursor back.

Scheduling uses two asyncio tasks connected by a queue: a ticker that posts a
tick every ``interval`` seconds, and a single paint loop that consumes them.
Producers run on the event loop thread. Drawing runs in a worker thread (it
blocks on terminal reads) and holds the session's input gate, so it never
interleaves with a foreground query. Each paint erases whole rows and blanks
rows the previous paint used beyond the current line count.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from datetime import datetime
from typing import Callable

from termctl.errors import CursorQueryError, ScreenGeometryUnavailable, TerminalUnavailable
from termctl.escapes import cursor_position, erase_line
from termctl.session import TerminalSession
from termctl.utils import pad_to_width, visible_width

StatusProducer = Callable[[], str]

TIMESTAMP_FORMAT = "%a %b %d %H:%M:%S %z %Y"
RIGHT_MARGIN = 5

_TICK = object()
_STOP = object()


class OverlayAnchor(str, enum.Enum):
    """Corner the overlay is painted in. Both anchors use row 1."""

    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"


class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def format_timestamp(now: datetime | None = None) -> str:
    """Local time like ``Mon Jan 02 15:04:05 -0700 2006``."""
    if now is None:
        now = datetime.now().astimezone()
    return now.strftime(TIMESTAMP_FORMAT)


def timestamp_offset(columns: int, timestamp: str) -> int:
    """Column offset (0-based) at which the timestamp starts."""
    return columns - visible_width(timestamp) - RIGHT_MARGIN


def compose_line(text: str, columns: int, timestamp: str) -> str:
    offset = timestamp_offset(columns, timestamp)
    if visible_width(text) >= offset:
        # Too long to align; keep the text whole and separate with one space.
        return f"{text} {timestamp}"
    return pad_to_width(text, offset) + timestamp


def compose_overlay(lines: list[str], columns: int, timestamp: str) -> list[str]:
    return [compose_line(line, columns, timestamp) for line in lines]


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


class StatusOverlayScheduler:
    """Repaints producer output at a fixed anchor once per interval.

    The first :meth:`register_producer` call starts the scheduler if an event
    loop is running; otherwise call :meth:`start` from inside one.
    """

    def __init__(
        self,
        session: TerminalSession,
        *,
        interval: float | None = None,
        anchor: OverlayAnchor | str | None = None,
        clock: Callable[[], str] = format_timestamp,
        logger: logging.Logger | None = None,
    ) -> None:
        settings = session.settings
        self.session = session
        self.interval = settings.status_interval if interval is None else interval
        self.anchor = OverlayAnchor(anchor or settings.status_anchor)
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

        self._producers: list[StatusProducer] = []
        self._state = SchedulerState.IDLE
        self._queue: asyncio.Queue[object] | None = None
        self._ticker: asyncio.Task[None] | None = None
        self._painter: asyncio.Task[None] | None = None
        self._painted_rows = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def producers(self) -> list[StatusProducer]:
        return list(self._producers)

    # -- registration -------------------------------------------------------

    def register_producer(self, producer: StatusProducer) -> None:
        self._producers.append(producer)
        if self._state is SchedulerState.IDLE:
            self.start()

    # -- painting -----------------------------------------------------------

    def _collect(self) -> list[str]:
        lines: list[str] = []
        for producer in self._producers:
            try:
                lines.append(str(producer()))
            except Exception:
                self._logger.exception("Status producer %r failed", producer)
        return lines

    def _anchor_column(self, line: str, columns: int) -> int:
        if self.anchor is OverlayAnchor.TOP_LEFT:
            return 1
        return max(1, columns - visible_width(line) + 1)

    def compose(self) -> list[str]:
        """Collect producer lines and lay them out for the current screen width.

        Runs on the caller's thread; the scheduler calls it on the event loop
        thread, so producers may touch loop-bound state.
        """
        if not self._producers:
            return []
        try:
            columns = self.session.column_count()
        except ScreenGeometryUnavailable as e:
            self._logger.warning("Not painting status overlay: %s", e)
            return []
        texts = self._collect()
        if not texts:
            return []
        return compose_overlay(texts, columns, self._clock())

    def draw(self, lines: list[str]) -> bool:
        """Write already composed *lines* between a cursor save and restore.

        Blocks on the cursor query; the scheduler runs it in a worker thread.
        Returns ``True`` if something was painted.
        """
        if not lines:
            return False
        columns = self.session.column_count()

        with self.session.gate:
            try:
                saved = self.session.query_cursor_position()
            except (CursorQueryError, TerminalUnavailable) as e:
                # Painting without a saved position would strand the cursor.
                self._logger.debug("Skipping status overlay tick: %s", e)
                return False

            out: list[str] = []
            for i, line in enumerate(lines):
                out.append(cursor_position(1 + i, self._anchor_column(line, columns)))
                out.append(erase_line())
                out.append(line)
            # Rows the previous paint used but this one does not
            for row in range(len(lines) + 1, self._painted_rows + 1):
                out.append(cursor_position(row, 1))
                out.append(erase_line())
            out.append(cursor_position(saved.row, saved.col))
            self.session.write("".join(out))
            self._painted_rows = len(lines)
        return True

    def paint(self) -> bool:
        """Run one tick synchronously. Returns ``True`` if something was painted."""
        return self.draw(self.compose())

    # -- lifecycle ----------------------------------------------------------

    def start(self) -> None:
        """Start ticking on the running event loop. No-op unless idle."""
        if self._state is not SchedulerState.IDLE:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.debug("No running event loop; status overlay stays idle")
            return
        self._queue = asyncio.Queue()
        self._ticker = loop.create_task(self._tick_loop())
        self._painter = loop.create_task(self._paint_loop())
        self._state = SchedulerState.RUNNING

    async def _tick_loop(self) -> None:
        assert self._queue is not None
        while True:
            await asyncio.sleep(self.interval)
            # Coalesce: a slow paint should not build a backlog of ticks.
            if self._queue.empty():
                self._queue.put_nowait(_TICK)

    async def _paint_loop(self) -> None:
        assert self._queue is not None
        while True:
            item = await self._queue.get()
            if item is _STOP:
                return
            try:
                lines = self.compose()
                if lines:
                    await asyncio.to_thread(self.draw, lines)
            except Exception:
                self._logger.exception("Status overlay paint failed")

    async def stop(self) -> None:
        """Stop ticking. An in-flight paint finishes first. Idempotent."""
        if self._state is SchedulerState.STOPPED:
            return
        was_running = self._state is SchedulerState.RUNNING
        self._state = SchedulerState.STOPPED
        if not was_running:
            return

        assert self._ticker is not None and self._painter is not None
        assert self._queue is not None
        self._ticker.cancel()
        try:
            await self._ticker
        except asyncio.CancelledError:
            pass
        # Drop ticks queued before the cancel so no new paint starts.
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_STOP)
        await self._painter
        self._ticker = None
        self._painter = None

    async def aclose(self) -> None:
        await self.stop()
