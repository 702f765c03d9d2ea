"""Process-level settings for the quilldoc CLI.

These are knobs about *how* quilldoc runs (log verbosity, log format), read
from ``QUILLDOC_*`` environment variables and an optional ``.env`` file.
Settings about *what* to build live in ``quilldoc.yaml`` and are handled by
:mod:`quilldoc.config`.

Examples:
    >>> from quilldoc.settings import QuilldocSettings
    >>> QuilldocSettings(log_level="DEBUG").log_level
    'DEBUG'

Tags:
    settings, configuration, pydantic, environment, quilldoc
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class QuilldocSettings(BaseSettings):
    """Runtime settings shared by every CLI command.

    Fields
    ──────
    log_level : structlog log level
    log_json  : force JSON (True) or console (False) logs; auto-detect when unset
    """

    model_config = SettingsConfigDict(
        env_prefix="QUILLDOC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="WARNING", description="Log level for build events")
    log_json: bool | None = None

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level
