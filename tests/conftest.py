"""Shared pytest fixtures for simple_service tests."""

from __future__ import annotations

import os
from collections.abc import Generator

import pytest

from simple_service.config.settings import reset_settings


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Isolate every test from SIMPLE_SERVICE_* env vars and cached settings."""
    for key in list(os.environ):
        if key.startswith("SIMPLE_SERVICE_"):
            monkeypatch.delenv(key)
    reset_settings()
    yield
    reset_settings()
