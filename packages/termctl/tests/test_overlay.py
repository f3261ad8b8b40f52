"""Tests for the status overlay: line composition, painting and scheduling."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from termctl.overlay import (
    OverlayAnchor,
    SchedulerState,
    StatusOverlayScheduler,
    compose_line,
    compose_overlay,
    format_timestamp,
    timestamp_offset,
)

from .virtual_tty import make_session

TS = "Mon Jan 02 15:04:05 -0700 2006"


def fixed_clock() -> str:
    return TS


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


class TestComposition:
    def test_timestamp_format(self) -> None:
        when = datetime(2006, 1, 2, 15, 4, 5, tzinfo=timezone(timedelta(hours=-7)))
        assert format_timestamp(when) == TS
        assert len(TS) == 30

    def test_timestamp_offset(self) -> None:
        assert timestamp_offset(80, TS) == 45

    def test_timestamp_right_aligned(self) -> None:
        line = compose_line("CPU: 10%", 80, TS)
        assert line.index(TS) == 45
        assert line[:45] == "CPU: 10%".ljust(45)
        assert len(line) == 75

    def test_wide_characters_counted_by_cells(self) -> None:
        line = compose_line("日本", 80, TS)
        assert line == "日本" + " " * 41 + TS

    def test_ansi_codes_do_not_count(self) -> None:
        line = compose_line("\x1b[1mhot\x1b[0m", 80, TS)
        assert line == "\x1b[1mhot\x1b[0m" + " " * 42 + TS

    def test_long_text_kept_whole(self) -> None:
        text = "x" * 60
        assert compose_line(text, 80, TS) == f"{text} {TS}"

    def test_compose_overlay_keeps_order(self) -> None:
        lines = compose_overlay(["a", "b"], 80, TS)
        assert [line[0] for line in lines] == ["a", "b"]


# ---------------------------------------------------------------------------
# paint()
# ---------------------------------------------------------------------------


class TestPaint:
    def test_no_producers_no_io(self) -> None:
        session, tty = make_session()
        scheduler = StatusOverlayScheduler(session, clock=fixed_clock)
        assert scheduler.paint() is False
        assert tty.writes == []
        assert tty.size_calls == 0

    def test_producers_called_once_in_order(self) -> None:
        session, tty = make_session(cursor=(10, 20))
        scheduler = StatusOverlayScheduler(session, clock=fixed_clock)
        calls: list[str] = []
        scheduler.register_producer(lambda: calls.append("a") or "first")
        scheduler.register_producer(lambda: calls.append("b") or "second")

        assert scheduler.paint() is True
        assert calls == ["a", "b"]
        out = tty.output
        assert out.index("first") < out.index("second")

    def test_cursor_round_trip(self) -> None:
        session, tty = make_session(cursor=(10, 20))
        scheduler = StatusOverlayScheduler(session, clock=fixed_clock)
        scheduler.register_producer(lambda: "CPU: 10%")

        scheduler.paint()

        assert (session.cursor.row, session.cursor.col) == (10, 20)
        assert tty.cursor == (10, 20)
        assert tty.output.endswith("\x1b[10;20H")

    def test_top_right_anchor(self) -> None:
        session, tty = make_session(columns=80)
        scheduler = StatusOverlayScheduler(
            session, anchor=OverlayAnchor.TOP_RIGHT, clock=fixed_clock
        )
        scheduler.register_producer(lambda: "CPU: 10%")
        scheduler.register_producer(lambda: "MEM: 3%")
        scheduler.paint()
        # Lines are 75 cells wide, so they start at column 6 to end at 80.
        assert "\x1b[1;6H\x1b[2K" + compose_line("CPU: 10%", 80, TS) in tty.output
        assert "\x1b[2;6H\x1b[2K" + compose_line("MEM: 3%", 80, TS) in tty.output

    def test_top_left_anchor(self) -> None:
        session, tty = make_session()
        scheduler = StatusOverlayScheduler(session, anchor="top-left", clock=fixed_clock)
        scheduler.register_producer(lambda: "one")
        scheduler.register_producer(lambda: "two")
        scheduler.paint()
        assert "\x1b[1;1H" in tty.output
        assert "\x1b[2;1H" in tty.output

    def test_anchor_from_settings(self) -> None:
        session, _ = make_session()
        session.settings.status_anchor = "top-left"
        scheduler = StatusOverlayScheduler(session)
        assert scheduler.anchor is OverlayAnchor.TOP_LEFT

    def test_query_failure_skips_tick(self) -> None:
        session, tty = make_session(answer_dsr=False)
        scheduler = StatusOverlayScheduler(session, clock=fixed_clock)
        scheduler.register_producer(lambda: "CPU: 10%")
        assert scheduler.paint() is False
        assert tty.writes == ["\x1b[6n"]

    def test_geometry_failure_skips_tick(self) -> None:
        session, tty = make_session()
        tty.fail_get_size = True
        scheduler = StatusOverlayScheduler(session, clock=fixed_clock)
        scheduler.register_producer(lambda: "CPU: 10%")
        assert scheduler.paint() is False
        assert tty.writes == []

    def test_failing_producer_is_skipped(self, caplog) -> None:
        session, tty = make_session()
        scheduler = StatusOverlayScheduler(session, clock=fixed_clock)

        def broken() -> str:
            raise RuntimeError("sensor gone")

        scheduler.register_producer(broken)
        scheduler.register_producer(lambda: "still here")
        with caplog.at_level(logging.ERROR, logger="termctl.overlay"):
            assert scheduler.paint() is True
        assert "still here" in tty.output
        assert "sensor gone" in caplog.text

    def test_repaint_erases_whole_rows(self) -> None:
        session, tty = make_session(columns=80)
        scheduler = StatusOverlayScheduler(session, clock=fixed_clock)
        text = ["x" * 60]
        scheduler.register_producer(lambda: text[0])

        scheduler.paint()
        assert "\x1b[1;1H\x1b[2K" in tty.output

        text[0] = "short"
        tty.clear_output()
        scheduler.paint()
        # The shorter line starts further right; the full row is still erased
        assert "\x1b[1;6H\x1b[2K" + compose_line("short", 80, TS) in tty.output
        assert "\x1b[0K" not in tty.output

    def test_rows_from_longer_previous_paint_are_cleared(self) -> None:
        session, tty = make_session(cursor=(10, 20))
        scheduler = StatusOverlayScheduler(session, clock=fixed_clock)
        fail = [False]

        def flaky() -> str:
            if fail[0]:
                raise RuntimeError("sensor gone")
            return "flaky"

        scheduler.register_producer(flaky)
        scheduler.register_producer(lambda: "steady")
        scheduler.register_producer(lambda: "last")
        scheduler.paint()
        assert "\x1b[3;" in tty.output

        fail[0] = True
        tty.clear_output()
        scheduler.paint()
        out = tty.output
        assert "flaky" not in out
        assert out.index("steady") < out.index("last")
        assert "\x1b[3;1H\x1b[2K\x1b[10;20H" in out
        assert tty.cursor == (10, 20)

        tty.clear_output()
        scheduler.paint()
        # Nothing left over from the three-line paint
        assert "\x1b[3;" not in tty.output

    def test_compose_then_draw(self) -> None:
        session, tty = make_session(cursor=(4, 4))
        scheduler = StatusOverlayScheduler(session, anchor="top-left", clock=fixed_clock)
        scheduler.register_producer(lambda: "CPU: 10%")
        lines = scheduler.compose()
        assert lines == [compose_line("CPU: 10%", 80, TS)]
        assert tty.writes == []
        assert scheduler.draw(lines) is True
        assert "\x1b[1;1H\x1b[2K" + lines[0] in tty.output
        assert scheduler.draw([]) is False


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------


class TestScheduler:
    def test_register_without_loop_stays_idle(self) -> None:
        session, _ = make_session()
        scheduler = StatusOverlayScheduler(session)
        scheduler.register_producer(lambda: "x")
        assert scheduler.state is SchedulerState.IDLE
        assert len(scheduler.producers) == 1

    @pytest.mark.asyncio
    async def test_register_starts_and_ticks(self) -> None:
        session, tty = make_session(cursor=(5, 5))
        scheduler = StatusOverlayScheduler(session, interval=0.01, clock=fixed_clock)
        calls: list[int] = []
        scheduler.register_producer(lambda: calls.append(1) or "tick")
        assert scheduler.state is SchedulerState.RUNNING

        await asyncio.sleep(0.2)
        await scheduler.stop()

        assert scheduler.state is SchedulerState.STOPPED
        assert len(calls) >= 1
        assert "tick" in tty.output
        assert tty.cursor == (5, 5)

    @pytest.mark.asyncio
    async def test_no_ticks_after_stop(self) -> None:
        session, _ = make_session()
        scheduler = StatusOverlayScheduler(session, interval=0.01, clock=fixed_clock)
        calls: list[int] = []
        scheduler.register_producer(lambda: calls.append(1) or "tick")
        await asyncio.sleep(0.05)
        await scheduler.stop()
        seen = len(calls)
        await asyncio.sleep(0.05)
        assert len(calls) == seen

    @pytest.mark.asyncio
    async def test_query_failures_do_not_kill_loop(self) -> None:
        session, _ = make_session(answer_dsr=False)
        scheduler = StatusOverlayScheduler(session, interval=0.01, clock=fixed_clock)
        calls: list[int] = []
        scheduler.register_producer(lambda: calls.append(1) or "tick")

        await asyncio.sleep(0.2)
        assert scheduler._painter is not None
        assert not scheduler._painter.done()
        await scheduler.stop()
        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_stop_waits_for_inflight_paint(self) -> None:
        session, tty = make_session()
        scheduler = StatusOverlayScheduler(session, interval=0.01, clock=fixed_clock)
        started = threading.Event()
        finished: list[bool] = []
        write = tty.write

        def slow_write(data: str) -> None:
            if "slow" in data:
                started.set()
                time.sleep(0.1)
                finished.append(True)
            write(data)

        tty.write = slow_write
        scheduler.register_producer(lambda: "slow")
        while not started.is_set():
            await asyncio.sleep(0.005)
        await scheduler.stop()
        assert finished == [True]

    @pytest.mark.asyncio
    async def test_producers_run_on_loop_thread(self) -> None:
        session, _ = make_session()
        scheduler = StatusOverlayScheduler(session, interval=0.01, clock=fixed_clock)
        loop_thread = threading.get_ident()
        seen: list[int] = []
        scheduler.register_producer(lambda: seen.append(threading.get_ident()) or "x")

        await asyncio.sleep(0.1)
        await scheduler.stop()

        assert seen
        assert set(seen) == {loop_thread}

    @pytest.mark.asyncio
    async def test_aclose_stops_scheduler(self) -> None:
        session, _ = make_session()
        scheduler = StatusOverlayScheduler(session, interval=0.01)
        scheduler.register_producer(lambda: "x")
        await scheduler.aclose()
        assert scheduler.state is SchedulerState.STOPPED
        assert scheduler._painter is None
        await scheduler.aclose()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self) -> None:
        session, _ = make_session()
        scheduler = StatusOverlayScheduler(session, interval=0.01)
        scheduler.register_producer(lambda: "x")
        await scheduler.stop()
        await scheduler.stop()
        assert scheduler.state is SchedulerState.STOPPED

    @pytest.mark.asyncio
    async def test_stopped_scheduler_does_not_restart(self) -> None:
        session, _ = make_session()
        scheduler = StatusOverlayScheduler(session, interval=0.01)
        await scheduler.stop()
        scheduler.register_producer(lambda: "x")
        assert scheduler.state is SchedulerState.STOPPED

    @pytest.mark.asyncio
    async def test_start_later_inside_loop(self) -> None:
        session, _ = make_session()
        scheduler = StatusOverlayScheduler(session, interval=0.01)
        # Simulate registration that happened before any loop was running
        scheduler._producers.append(lambda: "x")
        scheduler.start()
        assert scheduler.state is SchedulerState.RUNNING
        await scheduler.stop()
