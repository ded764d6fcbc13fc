"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- print_record in all three modes
- Logging configuration
- Global instance management
"""

from __future__ import annotations

import json
import logging

import pytest
from rich.logging import RichHandler

from nbxclient import output as output_module
from nbxclient.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    configure_logging,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture(autouse=True)
def _clean_color_env(monkeypatch):
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("TERM", raising=False)


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("nbxclient.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("nbxclient.output._is_tty", lambda: True)


@pytest.fixture()
def restore_logger():
    logger = logging.getLogger("nbxclient")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty):
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_resolves_to_plain_when_tty_but_no_color(self, tty):
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_default(self):
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout / stderr discipline
# ------------------------------------------------------------------ #


class TestStreams:
    def test_data_goes_to_stdout(self, capsys, non_tty):
        OutputManager(no_color=True).print_data("pong")
        captured = capsys.readouterr()
        assert captured.out == "pong\n"
        assert captured.err == ""

    def test_diagnostics_go_to_stderr(self, capsys, non_tty):
        out = OutputManager(no_color=True)
        out.info("waiting")
        out.warning("slow")
        out.error("down")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.splitlines() == ["waiting", "Warning: slow", "Error: down"]

    def test_quiet_suppresses_info_only(self, capsys, non_tty):
        out = OutputManager(no_color=True, quiet=True)
        out.info("hidden")
        out.success("hidden too")
        out.warning("shown")
        out.error("also shown")
        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "Warning: shown" in err
        assert "Error: also shown" in err

    def test_debug_requires_verbose(self, capsys, non_tty):
        OutputManager(no_color=True).debug("quiet please")
        OutputManager(no_color=True, verbose=True).debug("details")
        err = capsys.readouterr().err
        assert "quiet please" not in err
        assert "[debug] details" in err


# ------------------------------------------------------------------ #
# Records
# ------------------------------------------------------------------ #


RECORD = {"keyPath": "0/4", "feature": "Deposit", "redeem": None}


class TestPrintRecord:
    def test_json(self, capsys):
        OutputManager(format=OutputFormat.JSON).print_record(RECORD)
        assert json.loads(capsys.readouterr().out) == RECORD

    def test_plain(self, capsys):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_record(RECORD)
        assert capsys.readouterr().out.splitlines() == [
            "keyPath\t0/4",
            "feature\tDeposit",
            "redeem\t",
        ]

    def test_rich_table(self, capsys):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_record(RECORD, title="Unused")
        out = capsys.readouterr().out
        assert "Unused" in out
        assert "keyPath" in out
        assert "0/4" in out

    def test_module_helper_uses_global_format(self, capsys):
        set_output(OutputManager(format=OutputFormat.JSON))
        output_module.print_record({"success": True, "rpcCode": None})
        assert json.loads(capsys.readouterr().out) == {"success": True, "rpcCode": None}

# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #


class TestConfigureLogging:
    def test_verbose_installs_rich_handler(self, restore_logger, non_tty):
        configure_logging(OutputManager(no_color=True, verbose=True))
        assert restore_logger.level == logging.DEBUG
        assert len(restore_logger.handlers) == 1
        assert isinstance(restore_logger.handlers[0], RichHandler)

    def test_default_is_silent(self, restore_logger, non_tty):
        configure_logging(OutputManager(no_color=True))
        assert restore_logger.level == logging.WARNING
        assert len(restore_logger.handlers) == 1
        assert isinstance(restore_logger.handlers[0], logging.NullHandler)

    def test_reconfiguring_replaces_handlers(self, restore_logger, non_tty):
        configure_logging(OutputManager(no_color=True, verbose=True))
        configure_logging(OutputManager(no_color=True, verbose=True))
        assert len(restore_logger.handlers) == 1

    def test_library_records_reach_stderr(self, capsys, restore_logger, non_tty):
        configure_logging(OutputManager(no_color=True, verbose=True))
        logging.getLogger("nbxclient.client.async_client").debug("GET v1/ping -> 200")
        captured = capsys.readouterr()
        assert "GET v1/ping -> 200" in captured.err
        assert captured.out == ""


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalOutput:
    def test_lazy_default(self):
        reset_output()
        assert get_output() is get_output()

    def test_set_and_reset(self):
        manager = OutputManager(quiet=True)
        set_output(manager)
        assert get_output() is manager
        reset_output()
        assert get_output() is not manager

    def test_module_helpers_use_global(self, capsys):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.print_data("hello")
        output_module.warning("careful")
        captured = capsys.readouterr()
        assert captured.out == "hello\n"
        assert "Warning: careful" in captured.err
