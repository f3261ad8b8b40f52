"""CLI entry point for termctl. Uses Click for argument parsing."""

from __future__ import annotations

import asyncio

import click

from termctl.colors import cyan, red
from termctl.config import TermSettings
from termctl.errors import TerminalError
from termctl.log import configure_logging
from termctl.overlay import OverlayAnchor, StatusOverlayScheduler
from termctl.session import TerminalSession, cleanup, default_session
from termctl.timing import DurationTimer
from termctl.utils import progress_bar


def _fail(err: TerminalError) -> None:
    click.echo(red(f"Error: {err}"), err=True)
    raise SystemExit(1)


@click.group()
@click.option("--debug", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def main(ctx, debug):
    """Terminal cursor and status-line tools."""
    try:
        settings = TermSettings.from_env()
    except ValueError as e:
        raise click.UsageError(str(e))
    configure_logging(debug=debug or settings.debug)
    ctx.obj = default_session()
    ctx.call_on_close(cleanup)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@main.command()
@click.pass_obj
def position(session: TerminalSession):
    """Print the cursor position as ROW COL."""
    try:
        with session.raw_mode():
            pos = session.query_cursor_position()
    except TerminalError as e:
        _fail(e)
    click.echo(f"{pos.row} {pos.col}")


@main.command()
@click.pass_obj
def size(session: TerminalSession):
    """Print the terminal size as ROWS COLUMNS."""
    try:
        geometry = session.screen_geometry()
    except TerminalError as e:
        _fail(e)
    click.echo(f"{geometry.rows} {geometry.columns}")


@main.command()
@click.pass_obj
def clear(session: TerminalSession):
    """Clear the screen and home the cursor."""
    try:
        with session.raw_mode():
            session.clear_screen()
            session.move_cursor_to(1, 1)
    except TerminalError as e:
        _fail(e)


# ---------------------------------------------------------------------------
# Status overlay demo
# ---------------------------------------------------------------------------


async def _run_status(
    session: TerminalSession, seconds: float, interval: float, anchor: str
) -> None:
    timer = DurationTimer()
    scheduler = StatusOverlayScheduler(session, interval=interval, anchor=anchor)
    scheduler.register_producer(lambda: cyan(f"elapsed {timer.elapsed_text()}"))
    total = max(1, int(seconds))
    scheduler.register_producer(lambda: progress_bar(20, total, min(total, timer.elapsed())))
    try:
        await asyncio.sleep(seconds)
    finally:
        await scheduler.stop()


@main.command()
@click.option("--seconds", default=5.0, show_default=True, help="How long to run")
@click.option(
    "--interval", default=None, type=click.IntRange(min=1), help="Repaint interval in ms"
)
@click.option(
    "--anchor",
    type=click.Choice([a.value for a in OverlayAnchor]),
    default=None,
    help="Corner to paint in",
)
@click.pass_obj
def status(session: TerminalSession, seconds, interval, anchor):
    """Show a demo status overlay for a few seconds."""
    interval_s = session.settings.status_interval if interval is None else interval / 1000.0
    try:
        with session.raw_mode():
            asyncio.run(_run_status(session, seconds, interval_s, anchor or session.settings.status_anchor))
    except TerminalError as e:
        _fail(e)


if __name__ == "__main__":
    main()
