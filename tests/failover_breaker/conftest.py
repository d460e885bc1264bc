from __future__ import annotations

import pytest

import failover_breaker.circuit_breaker.breaker as breaker_mod
import failover_breaker.circuit_breaker.storage as storage_mod
from tests.failover_breaker.support.fakes import (
    FailoverService,
    FakeClock,
    FakeLogger,
    ServiceUnderLoad,
)


@pytest.fixture
def fake_logger() -> FakeLogger:
    """Provide a fresh structured logger test double per test."""
    return FakeLogger()


@pytest.fixture
def fake_clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Drive breaker and storage time from one controllable clock."""
    clock = FakeClock()
    monkeypatch.setattr(breaker_mod, "_utcnow", clock.now)
    monkeypatch.setattr(storage_mod, "_utcnow", clock.now)
    return clock


@pytest.fixture
def service_under_load() -> ServiceUnderLoad:
    return ServiceUnderLoad()


@pytest.fixture
def failover_service() -> FailoverService:
    return FailoverService()
