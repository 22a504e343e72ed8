"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from typing import Iterator

import pytest


@pytest.fixture(autouse=True)
def _reset_assetprep_logging() -> Iterator[None]:
    """Drop handlers installed by CLI invocations so tests stay isolated."""
    yield
    logger = logging.getLogger("assetprep")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
