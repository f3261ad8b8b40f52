"""Cursor location query over the Device Status Report protocol.

The exchange is asynchronous: we write ``ESC[6n`` and the terminal answers
on *stdin* with ``ESC[<row>;<col>R`` whenever it gets around to it. The reply
can arrive split over any number of reads and may be preceded by keys the
user typed in the meantime. So we:

1. wait a short settle delay, discard any input already waiting, send the
   request, wait again,
2. read in a bounded loop, accumulating into one buffer, until the buffer
   holds a terminator ``R`` following an introducer ``ESC[``,
3. parse the payload between the last introducer and that terminator.

Running out of reads raises :class:`CursorQueryTimeout`; a reply that is not
two decimal numbers raises :class:`CursorQueryMalformed`. Neither updates the
session's cached position.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from termctl.driver import TTY_ERRORS
from termctl.errors import CursorQueryMalformed, CursorQueryTimeout, TerminalUnavailable
from termctl.escapes import CSI, DSR_REPLY_TERMINATOR, device_status_report

if TYPE_CHECKING:
    from termctl.session import TerminalSession

_READ_SIZE = 32
_DRAIN_LIMIT = 64
_NUMBER_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class CursorPosition:
    """1-indexed cursor location, as terminals report it."""

    row: int
    col: int


# ---------------------------------------------------------------------------
# Reply parsing
# ---------------------------------------------------------------------------


def split_reply(buffer: str) -> str | None:
    """Return the first complete reply in *buffer*, or ``None`` if there is none yet.

    A reply is an ``R`` preceded somewhere by an ``ESC[`` introducer; the
    returned text runs from the introducer closest to that ``R`` up to and
    including it. An ``R`` with no introducer before it is typed input, not
    a terminator.
    """
    first = buffer.find(CSI)
    if first == -1:
        return None
    end = buffer.find(DSR_REPLY_TERMINATOR, first + len(CSI))
    if end == -1:
        return None
    start = buffer.rfind(CSI, 0, end)
    return buffer[start : end + 1]


def parse_cursor_report(data: str) -> CursorPosition:
    """Parse ``ESC[<row>;<col>R`` (possibly surrounded by other input)."""
    reply = split_reply(data)
    if reply is None:
        raise CursorQueryMalformed(f"No complete cursor report in {data!r}", data)

    payload = reply[len(CSI) : -len(DSR_REPLY_TERMINATOR)]
    parts = payload.split(";")
    if len(parts) != 2 or not all(_NUMBER_RE.fullmatch(p) for p in parts):
        raise CursorQueryMalformed(f"Unparsable cursor report: {reply!r}", payload)

    row, col = int(parts[0]), int(parts[1])
    if row < 1 or col < 1:
        raise CursorQueryMalformed(f"Cursor report out of range: {reply!r}", payload)
    return CursorPosition(row, col)


# ---------------------------------------------------------------------------
# The round trip
# ---------------------------------------------------------------------------


def drain_input(session: TerminalSession) -> bytes:
    """Discard input that is already waiting, without blocking.

    Stale bytes (a reply that arrived after an earlier query gave up, or
    keys typed before the request) would otherwise be read as the answer.
    """
    drained = b""
    for _ in range(_DRAIN_LIMIT):
        try:
            chunk = session.driver.read(_READ_SIZE, 0)
        except TTY_ERRORS as e:
            raise TerminalUnavailable(f"Could not drain terminal input: {e}") from e
        if not chunk:
            break
        drained += chunk
    if drained:
        session.logger.debug("Discarded %d bytes of pending input: %r", len(drained), drained)
    return drained


def query_cursor_position(
    session: TerminalSession,
    *,
    settle_delay: float | None = None,
    retries: int | None = None,
    poll_interval: float | None = None,
) -> CursorPosition:
    """Ask the terminal where the cursor is.

    Holds the session's input gate for the whole exchange, so concurrent
    callers queue up instead of stealing each other's replies. Timing
    defaults come from ``session.settings``.
    """
    settings = session.settings
    if settle_delay is None:
        settle_delay = settings.settle_delay
    if retries is None:
        retries = settings.query_retries
    if poll_interval is None:
        poll_interval = settings.poll_interval

    driver = session.driver
    log = session.logger

    with session.gate:
        session.ensure_raw_mode()

        time.sleep(settle_delay)
        drain_input(session)
        try:
            driver.write(device_status_report())
        except TTY_ERRORS as e:
            raise TerminalUnavailable(f"Could not write cursor query: {e}") from e
        time.sleep(settle_delay)

        raw = b""
        reply = None
        for _ in range(retries):
            try:
                chunk = driver.read(_READ_SIZE, poll_interval)
            except TTY_ERRORS as e:
                raise TerminalUnavailable(f"Could not read cursor report: {e}") from e
            if not chunk:
                continue
            raw += chunk
            # Decode the whole buffer each time; a chunk may end mid-character.
            reply = split_reply(raw.decode("utf-8", errors="replace"))
            if reply is not None:
                break

        if reply is None:
            log.debug("No cursor report after %d reads, got %r", retries, raw)
            raise CursorQueryTimeout(
                f"Terminal did not answer the cursor query within {retries} reads"
            )

        try:
            position = parse_cursor_report(reply)
        except CursorQueryMalformed:
            log.debug("Malformed cursor report %r", reply)
            raise

        session.cursor = position
        return position


def get_current_cursor_location(session: TerminalSession) -> tuple[int, int]:
    """Query and return ``(row, col)``."""
    position = query_cursor_position(session)
    return position.row, position.col
