# ABOUTME: Shared pytest fixtures for level-scout tests
# ABOUTME: Isolates configuration from the developer environment and builds unthrottled limiters

import os

import pytest

from level_scout.config import reload_config
from level_scout.utils.rate_limit import RateLimiter, RateLimitSettings


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Run every test with default settings, ignoring LEVEL_SCOUT_* variables and any .env file."""
    for key in list(os.environ):
        if key.startswith("LEVEL_SCOUT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    config = reload_config()
    yield config
    reload_config()


@pytest.fixture
def make_limiter():
    """Factory for limiters that never throttle unless a test asks for it."""

    def _make(name: str = "test", **overrides) -> RateLimiter:
        settings = {"requests_per_window": 1000, "max_concurrent": 100, "min_interval": 0.0, "window_seconds": 60.0}
        settings.update(overrides)
        return RateLimiter(name, RateLimitSettings(**settings))

    return _make
