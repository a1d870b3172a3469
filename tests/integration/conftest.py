"""Fixtures for command line integration tests."""

import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def restore_logging():
    """``unshackle run`` reconfigures logging onto the runner's streams."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    logging.basicConfig(force=True, handlers=[logging.NullHandler()])
