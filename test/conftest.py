"""Fixtures shared by `streamexpect` tests."""

import asyncio
from pathlib import Path

import pytest

from streamexpect import LoggingFailureReporter


@pytest.fixture
def reporter() -> LoggingFailureReporter:
    """Return a failure reporter that records the failures it receives."""
    return LoggingFailureReporter()


@pytest.fixture
def new_loop():
    """Return a fresh event loop that is not running, close it after the test."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def test_config_file() -> Path:
    """Return the path of the config file used by configuration tests."""
    return Path(__file__).parent / "streamexpect" / "test-assets" / "streamexpect-config.yml"
