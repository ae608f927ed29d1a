"""Shared fixtures for packlock tests."""

import logging
import os

import pytest


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ``PACKLOCK_*`` variables from the caller's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("PACKLOCK_"):
            monkeypatch.delenv(key)


@pytest.fixture
def debug_logging(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Capture packlock debug logs."""
    caplog.set_level(logging.DEBUG, logger="packlock")
    return caplog
