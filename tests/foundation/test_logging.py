"""Tests for logging configuration."""

import io
import logging

import pytest

from settle.foundation.logging import configure_logging, resolve_level


class TestResolveLevel:
    def test_default_is_warning(self) -> None:
        assert resolve_level() == logging.WARNING

    def test_debug_flag(self) -> None:
        assert resolve_level(debug=True) == logging.DEBUG

    def test_explicit_level_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SETTLE_LOG_LEVEL", "ERROR")
        assert resolve_level(debug=True, level="INFO") == logging.INFO

    def test_env_level_beats_debug_flag(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SETTLE_LOG_LEVEL", "error")
        assert resolve_level(debug=True) == logging.ERROR

    def test_settle_debug_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SETTLE_DEBUG", "yes")
        assert resolve_level() == logging.DEBUG

    def test_numeric_and_unknown_levels(self) -> None:
        assert resolve_level(level=15) == 15
        assert resolve_level(level="15") == 15
        assert resolve_level(level="chatty") == logging.WARNING


class TestConfigureLogging:
    def test_quiet_by_default(self) -> None:
        stream = io.StringIO()
        configure_logging(stream=stream)

        logging.getLogger("settle.convergence.waiter").debug("probe 1")
        logging.getLogger("settle.test").warning("careful")

        output = stream.getvalue()
        assert "probe 1" not in output
        assert "settle.test: careful" in output

    def test_debug_shows_engine_logs(self) -> None:
        stream = io.StringIO()
        level = configure_logging(debug=True, stream=stream)

        logging.getLogger("settle.convergence.waiter").debug("probe 1")

        assert level == logging.DEBUG
        assert "[DEBUG] probe 1" in stream.getvalue()

    def test_log_file_gets_debug(self, tmp_path) -> None:
        log_file = tmp_path / "logs" / "settle.log"
        stream = io.StringIO()
        configure_logging(stream=stream, log_file=log_file)

        logging.getLogger("settle.test").debug("detail for the file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "detail for the file" in log_file.read_text(encoding="utf-8")
        assert "detail for the file" not in stream.getvalue()

        for handler in logging.getLogger().handlers:
            if isinstance(handler, logging.FileHandler):
                handler.close()

    def test_replaces_previous_handlers(self) -> None:
        configure_logging(stream=io.StringIO())
        configure_logging(stream=io.StringIO())

        stream_handlers = [
            h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler
        ]
        assert len(stream_handlers) == 1
