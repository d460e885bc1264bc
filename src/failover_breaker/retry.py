from __future__ import annotations

from collections.abc import Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_none,
)


def build_immediate_retrying(
    *,
    attempts: int,
    after: Callable[[RetryCallState], None] | None = None,
) -> AsyncRetrying:
    """Build an ``AsyncRetrying`` that retries any ``Exception`` without delay.

    The last failure is re-raised once ``attempts`` is exhausted. ``after`` is
    invoked after every failed attempt, including the final one.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    retry = retry_if_exception_type(Exception)
    stop = stop_after_attempt(attempts)
    if after is None:
        return AsyncRetrying(
            retry=retry,
            wait=wait_none(),
            stop=stop,
            reraise=True,
        )
    return AsyncRetrying(
        retry=retry,
        wait=wait_none(),
        stop=stop,
        after=after,
        reraise=True,
    )
