"""Environment-driven settings for drecipe.

Retry defaults and logging options are read from ``DRECIPE_*`` environment
variables or a ``.env`` file. Actions never read settings themselves; the
caller builds a ``Retryable`` with ``Retryable.from_settings()`` and passes
it in explicitly.

Examples:
    >>> from drecipe.core.settings import RecipeSettings
    >>> settings = RecipeSettings(retry_timeout_seconds=5)
    >>> settings.retry_interval_seconds
    1.0
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RecipeSettings(BaseSettings):
    """Settings shared by the CLI and recipe runner.

    Fields
    ──────
    retry_interval_seconds : Sleep between attempts
    retry_timeout_seconds  : Total retry budget per action (0 = single attempt)
    log_level              : Structlog log level
    log_json               : JSON logs (None = auto-detect from tty)
    """

    model_config = SettingsConfigDict(
        env_prefix="DRECIPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Retry ────────────────────────────────────────────────────
    retry_interval_seconds: float = Field(default=1.0, ge=0)
    retry_timeout_seconds: float = Field(default=60.0, ge=0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    @model_validator(mode="after")
    def _interval_within_timeout(self) -> RecipeSettings:
        if self.retry_timeout_seconds and self.retry_interval_seconds > self.retry_timeout_seconds:
            raise ValueError(
                "retry_interval_seconds must not exceed retry_timeout_seconds"
            )
        return self
