from __future__ import annotations

import asyncio

import pytest
from tenacity import AsyncRetrying, RetryCallState

from failover_breaker.retry import build_immediate_retrying

pytestmark = pytest.mark.asyncio


async def test_rejects_non_positive_attempts() -> None:
    with pytest.raises(ValueError, match="attempts must be >= 1"):
        build_immediate_retrying(attempts=0)


async def test_build_retrying_without_after_hook() -> None:
    retrying = build_immediate_retrying(attempts=2)

    assert isinstance(retrying, AsyncRetrying)


async def test_retries_until_attempts_exhausted_and_reraises() -> None:
    after_calls: list[int] = []
    calls = 0

    def _after(state: RetryCallState) -> None:
        after_calls.append(state.attempt_number)

    async def _fail() -> None:
        nonlocal calls
        calls += 1
        raise ValueError("boom")

    retrying = build_immediate_retrying(attempts=3, after=_after)

    with pytest.raises(ValueError, match="boom"):
        await retrying(_fail)

    assert calls == 3
    assert after_calls == [1, 2, 3]


async def test_returns_first_success_without_waiting() -> None:
    calls = 0

    async def _flaky() -> str:
        nonlocal calls
        calls += 1
        if calls < 2:
            raise OSError("retry")
        return "ok"

    retrying = build_immediate_retrying(attempts=5)

    assert await asyncio.wait_for(retrying(_flaky), timeout=0.5) == "ok"
    assert calls == 2


async def test_does_not_retry_base_exceptions() -> None:
    calls = 0

    async def _cancelled() -> None:
        nonlocal calls
        calls += 1
        raise asyncio.CancelledError

    retrying = build_immediate_retrying(attempts=3)

    with pytest.raises(asyncio.CancelledError):
        await retrying(_cancelled)

    assert calls == 1
