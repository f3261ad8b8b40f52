"""Tests for the termctl CLI, run against a virtual terminal."""

from __future__ import annotations

import logging

import pytest
from click.testing import CliRunner

import termctl.cli as cli
from termctl import log

from .virtual_tty import make_session


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    log.set_debug(False)
    for handler in list(log.logger.handlers):
        if getattr(handler, "_termctl_handler", False):
            log.logger.removeHandler(handler)
    log.logger.setLevel(logging.NOTSET)


def run(monkeypatch, args, **tty_kwargs):
    session, tty = make_session(**tty_kwargs)
    monkeypatch.setattr(cli, "default_session", lambda: session)
    result = CliRunner().invoke(cli.main, args)
    return result, session, tty


def test_position(monkeypatch):
    result, _, tty = run(monkeypatch, ["position"], cursor=(4, 9))
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "4 9"
    assert tty.raw is False


def test_position_timeout(monkeypatch):
    result, _, tty = run(monkeypatch, ["position"], answer_dsr=False)
    assert result.exit_code == 1
    assert "did not answer" in result.output
    assert tty.raw is False


def test_position_without_terminal(monkeypatch):
    result, _, _ = run(monkeypatch, ["position"], is_tty=False)
    assert result.exit_code == 1
    assert "not a terminal" in result.output


def test_size(monkeypatch):
    result, _, _ = run(monkeypatch, ["size"], rows=40, columns=132)
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "40 132"


def test_size_failure(monkeypatch):
    session, tty = make_session()
    tty.fail_get_size = True
    monkeypatch.setattr(cli, "default_session", lambda: session)
    result = CliRunner().invoke(cli.main, ["size"])
    assert result.exit_code == 1
    assert "terminal size" in result.output


def test_clear(monkeypatch):
    result, _, tty = run(monkeypatch, ["clear"])
    assert result.exit_code == 0, result.output
    assert tty.writes == ["\x1b[2J", "\x1b[1;1H"]
    assert tty.raw is False


def test_status_demo(monkeypatch):
    result, _, tty = run(
        monkeypatch,
        ["status", "--seconds", "0.1", "--interval", "10", "--anchor", "top-left"],
        cursor=(12, 3),
    )
    assert result.exit_code == 0, result.output
    assert "elapsed 0s" in tty.output
    assert "\x1b[1;1H" in tty.output
    assert tty.cursor == (12, 3)
    assert tty.raw is False


def test_status_rejects_zero_interval(monkeypatch):
    result, _, tty = run(monkeypatch, ["status", "--seconds", "0.1", "--interval", "0"])
    assert result.exit_code == 2
    assert tty.writes == []


def test_status_rejects_unknown_anchor(monkeypatch):
    result, _, _ = run(monkeypatch, ["status", "--anchor", "bottom"])
    assert result.exit_code == 2
