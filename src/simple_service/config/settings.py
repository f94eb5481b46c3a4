"""Process-wide settings — env vars and explicit overrides in one object.

Priority chain (highest to lowest):
  1. ``configure(**overrides)`` keyword arguments
  2. Env vars — ``SIMPLE_SERVICE_*`` prefix
  3. Code defaults — declared on :class:`ServiceSettings`

Settings are read lazily on first use and cached until :func:`configure`
or :func:`reset_settings` replaces them.
"""

from __future__ import annotations

import threading
from typing import Any

from pydantic_settings import BaseSettings


class ServiceSettings(BaseSettings):
    """Library-wide defaults for units.

    Attributes:
        capture_return_value: Fallback capture policy when neither the type
            nor the instance sets ``capture_return_value``.
        error_format: Template for full error messages. Receives the
            humanized ``attribute`` and the generated ``message``.
        verbose: Enable DEBUG output from ``configure_logging``.
        log_json: Render log lines as JSON instead of console output.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "SIMPLE_SERVICE_",
    }

    capture_return_value: bool = True
    error_format: str = "{attribute} {message}"
    verbose: bool = False
    log_json: bool = False


_lock = threading.Lock()
_settings: ServiceSettings | None = None


def get_settings() -> ServiceSettings:
    """Return the active settings, building them from the environment once."""
    global _settings
    current = _settings
    if current is not None:
        return current
    with _lock:
        if _settings is None:
            _settings = ServiceSettings()
        return _settings


def configure(**overrides: Any) -> ServiceSettings:
    """Replace the active settings. Unset fields still come from the environment."""
    global _settings
    settings = ServiceSettings(**overrides)
    with _lock:
        _settings = settings
    return settings


def reset_settings() -> None:
    """Drop cached settings so the next read rebuilds them from the environment."""
    global _settings
    with _lock:
        _settings = None
