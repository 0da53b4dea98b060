"""Tests for docmerge.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from docmerge.logging import configure_logging, get_logger


def test_get_logger_nests_under_package_logger() -> None:
    assert get_logger().name == "docmerge"
    assert get_logger("pipeline").name == "docmerge.pipeline"


def test_configure_logging_replaces_previous_handlers(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "docmerge.log"

    configure_logging()
    logger = configure_logging(verbose=True, log_file=log_file)

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    get_logger("pipeline").debug("hello %s", "file")
    for handler in logger.handlers:
        handler.flush()
    assert "DEBUG docmerge.pipeline: hello file" in log_file.read_text(encoding="utf-8")
