"""Fixtures shared by every suite."""

from __future__ import annotations

import pytest

from proof360.config import Settings, load_settings


@pytest.fixture(scope="session")
def settings() -> Settings:
    """Settings from ``$ENV_FILE`` (default ``.env``) plus the environment."""
    return load_settings()
