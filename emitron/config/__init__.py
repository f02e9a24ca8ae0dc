"""Centralised configuration helper.

A **single** process-wide :class:`Settings` instance (retrieved via
:func:`get_settings`) replaces scattered ``os.getenv`` calls.  Values are read
from the environment once; a project ``.env`` file is loaded first when it
exists.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

_DEFAULT_MAX_LISTENERS = 10


def _truthy(value: str | None) -> bool:  # noqa: D401 – small helper
    """Return *True* when *value* looks like an affirmative string."""

    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:  # noqa: D401 – simple data container
    """Lightweight settings container populated from environment variables."""

    # Emitter defaults --------------------------------------------------
    default_max_listeners: int

    # Background tasks --------------------------------------------------
    track_background_tasks: bool

    # Misc
    log_level: str

    # Helper for tests to override values at runtime -------------------
    def override(self, **kwargs: Any) -> None:
        for key, value in kwargs.items():
            if not hasattr(self, key):
                raise AttributeError(f"Settings has no attribute '{key}'")
            setattr(self, key, value)


def _load_settings() -> Settings:  # noqa: D401 – helper
    """Populate :class:`Settings` from environment variables."""

    env_path = Path(os.getenv("EMITRON_ENV_FILE", ".env"))
    if env_path.exists():
        # Explicit environment wins over the file
        load_dotenv(env_path, override=False)

    track = os.getenv("EMITRON_TRACK_BACKGROUND_TASKS")

    return Settings(
        default_max_listeners=int(os.getenv("EMITRON_MAX_LISTENERS", str(_DEFAULT_MAX_LISTENERS))),
        track_background_tasks=True if track is None else _truthy(track),
        log_level=os.getenv("EMITRON_LOG_LEVEL", "WARNING"),
    )


# ---------------------------------------------------------------------------
# Singleton accessor – values loaded only once per interpreter
# ---------------------------------------------------------------------------

_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the cached :class:`Settings` instance, loading it on first use."""

    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next :func:`get_settings` re-reads the env."""

    global _settings
    _settings = None


def configure_logging(level: str | None = None) -> None:
    """Basic stderr logging for scripts; the library itself never calls this."""

    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


__all__ = ["Settings", "configure_logging", "get_settings", "reset_settings"]
