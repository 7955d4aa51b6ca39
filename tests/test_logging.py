"""Tests for cmdforge.logging."""

from __future__ import annotations

import io
import logging
from pathlib import Path

import pytest

from cmdforge.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _reset_cmdforge_logger():
    yield
    root = logging.getLogger("cmdforge")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)
    root.propagate = True


def test_get_logger_namespaces() -> None:
    assert get_logger().name == "cmdforge"
    assert get_logger("walker").name == "cmdforge.walker"


def test_configure_logging_levels() -> None:
    assert configure_logging().level == logging.INFO
    assert configure_logging(quiet=True).level == logging.WARNING
    assert configure_logging(verbose=True, quiet=True).level == logging.DEBUG


def test_configure_logging_replaces_handlers() -> None:
    configure_logging()
    logger = configure_logging()

    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_configure_logging_console_format() -> None:
    stream = io.StringIO()
    configure_logging(verbose=True, stream=stream)

    get_logger("generator").debug("wrote %s", "generated_cmdforge_tasks.py")

    assert stream.getvalue() == "[cmdforge] DEBUG wrote generated_cmdforge_tasks.py\n"


def test_configure_logging_file_sink(tmp_path: Path) -> None:
    log_file = tmp_path / "cmdforge.log"
    logger = configure_logging(log_file=log_file, stream=io.StringIO())

    get_logger("walker").info("scanning")
    for handler in logger.handlers:
        handler.flush()

    assert len(logger.handlers) == 2
    assert "INFO cmdforge.walker: scanning" in log_file.read_text(encoding="utf-8")
