"""Tests for the logging setup module."""

import logging
from collections.abc import Iterator

import pytest

from docextract.utils.logger import get_logger, preview, setup_logging


@pytest.fixture
def bare_root() -> Iterator[logging.Logger]:
    """Give the test a root logger without handlers, restored afterwards."""
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    root.handlers.clear()
    yield root
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_adds_stdout_handler(self, bare_root: logging.Logger) -> None:
        setup_logging("DEBUG")
        assert len(bare_root.handlers) == 1
        assert bare_root.level == logging.DEBUG

    def test_second_call_is_a_no_op(self, bare_root: logging.Logger) -> None:
        setup_logging("INFO")
        setup_logging("DEBUG")
        assert len(bare_root.handlers) == 1
        assert bare_root.level == logging.INFO

    def test_unknown_level_means_info(self, bare_root: logging.Logger) -> None:
        setup_logging("LOUD")
        assert bare_root.level == logging.INFO

    def test_http_client_logs_quieted(self, bare_root: logging.Logger) -> None:
        setup_logging("DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_existing_handler_kept(self, bare_root: logging.Logger) -> None:
        existing = logging.NullHandler()
        bare_root.addHandler(existing)
        setup_logging("DEBUG")
        assert bare_root.handlers == [existing]


class TestGetLogger:
    """Tests for the get_logger function."""

    def test_returns_named_logger(self) -> None:
        logger = get_logger("docextract.test")
        assert logger.name == "docextract.test"
        assert logger is logging.getLogger("docextract.test")


class TestPreview:
    """Tests for raw-response previews in log lines."""

    def test_flattens_newlines(self) -> None:
        assert preview("Name | A\nAge | 21") == "Name | A | Age | 21"

    def test_truncates_long_text(self) -> None:
        result = preview("x" * 600, limit=500)
        assert len(result) == 503
        assert result.endswith("...")

    def test_empty(self) -> None:
        assert preview(None) == ""
        assert preview("") == ""
