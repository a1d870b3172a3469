"""Shared test fixtures for unshackle tests.

Engines under test write to a RecordingSink, read operator input from a
QueueSource and raise Halted instead of exiting the test process.
"""

import pytest

import unshackle.config

from unshackle import Engine, reset_default_engine
from unshackle.config import ENV_VARS, UnshackleConfig

from .doubles import QueueSource, RaisingTerminator, RecordingSink


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path, request):
    """Keep user config files and UNSHACKLE_* variables out of every test."""
    for var in ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)
    original = unshackle.config.get_config_path
    fake_config_path = lambda: tmp_path / ".unshackle" / "config.yaml"  # noqa: E731
    monkeypatch.setattr("unshackle.config.get_config_path", fake_config_path)
    # Test modules that imported get_config_path by name hold the original.
    if getattr(request.module, "get_config_path", None) is original:
        monkeypatch.setattr(request.module, "get_config_path", fake_config_path)
    reset_default_engine()
    yield
    reset_default_engine()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def terminator() -> RaisingTerminator:
    return RaisingTerminator()


@pytest.fixture
def source() -> QueueSource:
    return QueueSource()


@pytest.fixture
def engine(sink, terminator, source) -> Engine:
    """Engine wired to recorded output, scripted input and a raising terminator."""
    return Engine(config=UnshackleConfig(), sink=sink, source=source, terminator=terminator)
