from __future__ import annotations

import io
import logging
import math
import sys

import pytest
from pydantic import ValidationError

from failover_breaker.circuit_breaker import CircuitBreakerConfig
from failover_breaker.settings import BreakerSettings, prefixed_settings_config


def test_settings_defaults_build_breaker_config(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    for name in (
        "FAILOVER_BREAKER_RESET_TIMEOUT_SECONDS",
        "FAILOVER_BREAKER_MAXIMUM_ATTEMPTS",
        "FAILOVER_BREAKER_CLOSE_ON_PROBE_SUCCESS",
        "FAILOVER_BREAKER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = BreakerSettings()

    assert settings.log_level == "INFO"
    assert settings.breaker_config() == CircuitBreakerConfig(
        reset_timeout=30.0,
        maximum_attempts=3,
        close_on_probe_success=True,
    )


def test_settings_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FAILOVER_BREAKER_RESET_TIMEOUT_SECONDS", "2")
    monkeypatch.setenv("failover_breaker_maximum_attempts", "5")
    monkeypatch.setenv("FAILOVER_BREAKER_CLOSE_ON_PROBE_SUCCESS", "false")
    monkeypatch.setenv("FAILOVER_BREAKER_LOG_LEVEL", " debug ")

    settings = BreakerSettings()
    config = settings.breaker_config()

    assert config.reset_timeout == 2.0
    assert config.maximum_attempts == 5
    assert config.close_on_probe_success is False
    assert settings.log_level == "DEBUG"


def test_settings_support_custom_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    class _InventorySettings(BreakerSettings):
        model_config = prefixed_settings_config("INVENTORY_")

    monkeypatch.setenv("INVENTORY_MAXIMUM_ATTEMPTS", "7")

    assert _InventorySettings().maximum_attempts == 7


def test_settings_reject_non_positive_attempts() -> None:
    with pytest.raises(ValidationError):
        BreakerSettings(maximum_attempts=0)


def test_settings_reject_negative_reset_timeout() -> None:
    with pytest.raises(ValidationError):
        BreakerSettings(reset_timeout_seconds=-0.5)


def test_settings_reject_unknown_log_level() -> None:
    with pytest.raises(ValidationError):
        BreakerSettings(log_level="TRACE")


@pytest.mark.parametrize("value", [math.nan, math.inf])
def test_settings_reject_non_finite_reset_timeout(value: float) -> None:
    with pytest.raises(ValidationError, match="finite"):
        BreakerSettings(reset_timeout_seconds=value)


def test_settings_reject_non_finite_reset_timeout_from_environment(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("FAILOVER_BREAKER_RESET_TIMEOUT_SECONDS", "nan")

    with pytest.raises(ValidationError):
        BreakerSettings()


def test_configure_logging_applies_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "stderr", io.StringIO())

    logger = BreakerSettings(log_level="warning").configure_logging()

    assert logging.getLogger().level == logging.WARNING
    assert logger is not None
