from __future__ import annotations

import math

import structlog
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from failover_breaker.circuit_breaker.breaker import CircuitBreakerConfig
from failover_breaker.logging import configure_structlog, get_log_level_value

DEFAULT_ENV_PREFIX = "FAILOVER_BREAKER_"


def prefixed_settings_config(prefix: str) -> SettingsConfigDict:
    """Build standard Pydantic settings config for prefixed environments."""
    return SettingsConfigDict(env_prefix=prefix, case_sensitive=False)


class BreakerSettings(BaseSettings):
    """Environment-driven configuration for one circuit breaker.

    Subclass and override ``model_config`` with
    ``prefixed_settings_config("MY_SERVICE_")`` to read a different prefix.
    """

    model_config = prefixed_settings_config(DEFAULT_ENV_PREFIX)

    reset_timeout_seconds: float = 30.0
    maximum_attempts: int = 3
    close_on_probe_success: bool = True
    log_level: str = "INFO"

    @field_validator("reset_timeout_seconds")
    @classmethod
    def _validate_reset_timeout(cls, value: float) -> float:
        if not math.isfinite(value) or value < 0:
            raise ValueError("reset_timeout_seconds must be a finite number >= 0")
        return value

    @field_validator("maximum_attempts")
    @classmethod
    def _validate_maximum_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("maximum_attempts must be >= 1")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        get_log_level_value(value)
        return value.strip().upper()

    def configure_logging(self) -> structlog.stdlib.BoundLogger:
        """Configure structlog and stdlib logging at ``log_level``."""
        return configure_structlog(self)

    def breaker_config(self) -> CircuitBreakerConfig:
        """Build the breaker configuration described by these settings."""
        return CircuitBreakerConfig(
            reset_timeout=self.reset_timeout_seconds,
            maximum_attempts=self.maximum_attempts,
            close_on_probe_success=self.close_on_probe_success,
        )
