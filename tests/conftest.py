from __future__ import annotations

import logging
from typing import Iterator

import pytest

from nativestub.diagnostics import Diagnostics


@pytest.fixture(autouse=True)
def _reset_nativestub_logger() -> Iterator[None]:
    """Undo configure_logging so caplog sees records in every test."""
    yield
    logger = logging.getLogger("nativestub")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def diagnostics() -> Diagnostics:
    return Diagnostics()
