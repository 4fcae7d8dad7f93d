"""Tests for infrastructure components (logging, command-line entry point).

Tests coverage for:
- src/pollwatch/logging.py
- src/pollwatch/cli.py
"""

from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from pollwatch.cli import (
    EXIT_OK,
    EXIT_RESOLUTION_ERROR,
    EXIT_SCAN_ERROR,
    apply_args,
    create_parser,
    main,
    run,
)
from pollwatch.config import Config, LoggingConfig, WatchConfig
from pollwatch.logging import TRACE, VERBOSE, get_logger, reset_logging, setup_logging
from pollwatch.watching import Watcher
from tests.utils import BASELINE, NEW, touch, wait_until


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def temp_log_file(tmp_path):
    """Create a temporary log file path."""
    return str(tmp_path / "test.log")


@pytest.fixture(autouse=True)
def fresh_logging():
    """Undo any handlers installed by a test."""
    reset_logging()
    yield
    reset_logging()


def make_console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, highlight=False, color_system=None, width=200), buffer


# =============================================================================
# Logging Tests
# =============================================================================


class TestLogging:
    """Tests for logging configuration."""

    def test_setup_logging_creates_file_handler(self, temp_log_file):
        """Test setup_logging with file configuration."""
        setup_logging(LoggingConfig(level="INFO", file=temp_log_file))

        assert Path(temp_log_file).exists()
        assert get_logger().level == logging.INFO

    def test_setup_logging_env_file(self, temp_log_file, monkeypatch):
        monkeypatch.setenv("POLLWATCH_LOG", temp_log_file)
        setup_logging()
        assert Path(temp_log_file).exists()

    def test_setup_logging_stderr_fallback(self, capsys):
        """Test setup_logging falls back to stderr for an unusable file."""
        setup_logging(LoggingConfig(level="DEBUG", file="/nonexistent/dir/log.txt"))

        handlers = get_logger().handlers
        assert len(handlers) == 1
        assert type(handlers[0]) is logging.StreamHandler
        assert "Cannot open log file" in capsys.readouterr().err

    def test_setup_logging_idempotent(self, temp_log_file):
        """Test that calling setup_logging twice is no-op."""
        setup_logging()
        handlers = list(get_logger().handlers)

        setup_logging(LoggingConfig(file=temp_log_file))

        assert get_logger().handlers == handlers
        assert not Path(temp_log_file).exists()

    def test_reset_logging_allows_setup_again(self, temp_log_file):
        setup_logging()
        reset_logging()
        assert get_logger().handlers == []

        setup_logging(LoggingConfig(file=temp_log_file))
        assert Path(temp_log_file).exists()

    @pytest.mark.parametrize(
        ("level_str", "expected"),
        [
            ("TRACE", TRACE),
            ("debug", logging.DEBUG),
            ("VERBOSE", VERBOSE),
            ("INFO", logging.INFO),
            ("warn", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("bogus", logging.INFO),
        ],
    )
    def test_setup_logging_level_mapping(self, level_str, expected):
        """Test log level string to constant mapping."""
        setup_logging(LoggingConfig(level=level_str))
        assert get_logger().level == expected

    @pytest.mark.parametrize(
        ("verbose", "expected"),
        [(0, logging.ERROR), (1, logging.WARNING), (2, logging.INFO), (3, VERBOSE), (4, TRACE), (9, TRACE)],
    )
    def test_verbose_takes_precedence(self, verbose, expected):
        setup_logging(LoggingConfig(level="ERROR", verbose=verbose))
        assert get_logger().level == expected

    def test_get_logger_child(self):
        parent = get_logger()
        child = get_logger("watching")
        assert child.name == f"{parent.name}.watching"

    def test_get_logger_root(self):
        assert get_logger().name == "pollwatch"

    def test_logging_format(self, temp_log_file):
        """Test log message format."""
        setup_logging(LoggingConfig(level="INFO", file=temp_log_file))

        get_logger("watching").info("Change detected: %s", "main.py")

        log_content = Path(temp_log_file).read_text()
        assert "info: Change detected: main.py" in log_content

    def test_lowercase_level_does_not_leak(self, temp_log_file, caplog):
        """Other handlers still see the registered level name."""
        setup_logging(LoggingConfig(level="INFO", file=temp_log_file))

        with caplog.at_level(logging.INFO, logger="pollwatch"):
            get_logger("watching").warning("Slow scan")

        assert "warning: Slow scan" in Path(temp_log_file).read_text()
        assert caplog.records[-1].levelname == "WARNING"


# =============================================================================
# Command-line Tests
# =============================================================================


class TestParser:
    """Tests for argument parsing and config overlay."""

    def test_defaults_leave_config_alone(self):
        args = create_parser().parse_args([])
        config = Config(watch=WatchConfig(poll_interval=200, extensions=["go"]))

        assert apply_args(config, args) == config

    def test_repeatable_options(self):
        args = create_parser().parse_args(
            ["-w", "cmd", "--watch", "internal/**/*.go", "-i", "internal/gen", "-e", "go", "-e", "tmpl"]
        )
        config = apply_args(Config(), args)

        assert config.watch.watch_items == ["cmd", "internal/**/*.go"]
        assert config.watch.ignore_items == ["internal/gen"]
        assert config.watch.extensions == ["go", "tmpl"]

    def test_poll_interval_and_verbosity(self):
        args = create_parser().parse_args(["-p", "100", "-vv"])
        config = apply_args(Config(logging=LoggingConfig(level="ERROR")), args)

        assert config.watch.poll_interval == 100
        assert config.logging.verbose == 4
        assert config.logging.level == "ERROR"

    def test_single_verbose_flag(self):
        config = apply_args(Config(), create_parser().parse_args(["-v"]))
        assert config.logging.verbose == 3


class TestMain:
    """Tests for the command entry points."""

    def test_malformed_glob_exit_status(self, capsys):
        with (
            patch("pollwatch.cli.load_config", return_value=Config()),
            patch("pollwatch.cli.setup_logging"),
        ):
            status = main(["--watch", "src/[abc"])

        assert status == EXIT_RESOLUTION_ERROR
        assert "src/[abc" in capsys.readouterr().out

    def test_scan_error_exit_status(self, tmp_path, capsys):
        touch(tmp_path / "main.go")
        bad = tmp_path / "main.go" / "sub"
        with (
            patch("pollwatch.cli.load_config", return_value=Config()),
            patch("pollwatch.cli.setup_logging"),
        ):
            status = main(["--watch", str(bad), "--poll-interval", "10"])

        assert status == EXIT_SCAN_ERROR
        output = capsys.readouterr().out
        assert f"watching {bad}" in output
        assert "error scanning" in output

    def test_project_root_defaults_to_current_directory(self):
        assert create_parser().parse_args([]).project_root == Path(".")

        with (
            patch("pollwatch.cli.load_config", return_value=Config()) as load,
            patch("pollwatch.cli.setup_logging"),
        ):
            main(["--watch", "src/[abc"])

        load.assert_called_once_with(project_root=Path("."))

    def test_project_root_option(self, proj):
        with (
            patch("pollwatch.cli.load_config", return_value=Config()) as load,
            patch("pollwatch.cli.setup_logging"),
        ):
            main(["--project-root", str(proj), "--watch", "src/[abc"])

        load.assert_called_once_with(project_root=proj)

    @pytest.mark.asyncio
    async def test_run_prints_changes(self, proj):
        touch(proj / "main.go", NEW)
        watcher = Watcher(poll_interval=10, watch_items=[str(proj)], extensions=["go"], baseline=BASELINE)
        console, buffer = make_console()

        run_task = asyncio.create_task(run(watcher, console))
        await wait_until(lambda: "changed" in buffer.getvalue())
        watcher.stop()

        assert await asyncio.wait_for(run_task, timeout=2.0) == EXIT_OK
        assert f"changed {proj / 'main.go'}" in buffer.getvalue()

    @pytest.mark.asyncio
    async def test_run_reports_scan_error(self, tmp_path):
        touch(tmp_path / "main.go")
        watcher = Watcher(
            poll_interval=10,
            watch_items=[str(tmp_path / "main.go" / "sub")],
            baseline=BASELINE,
        )
        console, buffer = make_console()

        status = await asyncio.wait_for(run(watcher, console), timeout=2.0)

        assert status == EXIT_SCAN_ERROR
        assert "error scanning" in buffer.getvalue()
