from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tests._fixtures.checkout_builder import CheckoutBuilder


@pytest.fixture
def checkout_builder(tmp_path: Path) -> CheckoutBuilder:
    """Provide a reusable checkout builder rooted at the pytest tmp_path."""
    return CheckoutBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_docmerge_logger():
    """Undo CLI logging configuration so caplog keeps seeing records."""
    yield
    logger = logging.getLogger("docmerge")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
