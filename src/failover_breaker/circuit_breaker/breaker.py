"""Core circuit breaker implementation."""

import functools
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import ParamSpec, TypeVar

from tenacity import RetryCallState

from failover_breaker.circuit_breaker.exceptions import InvalidBreakerConfigError
from failover_breaker.circuit_breaker.state import (
    BreakerSnapshot,
    CircuitState,
    derive_state,
)
from failover_breaker.circuit_breaker.storage import (
    AbstractBreakerStorage,
    InMemoryBreakerStorage,
)
from failover_breaker.logging import BreakerLogger, LogLevel, log_breaker_event
from failover_breaker.retry import build_immediate_retrying

T = TypeVar("T")
P = ParamSpec("P")


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class CircuitBreakerConfig:
    """Circuit breaker configuration values.

    Attributes:
        reset_timeout: Seconds a tripped circuit stays ``OPEN`` before one
            ``HALF_OPEN`` probe of the primary operation is allowed.
        maximum_attempts: Immediate attempts against the primary operation
            from ``CLOSED`` before the circuit trips.
        close_on_probe_success: Return to ``CLOSED`` after a successful probe.
            When ``False`` the circuit stays ``OPEN`` and every later call
            probes the primary operation exactly once.
    """

    reset_timeout: float = 30.0
    maximum_attempts: int = 3
    close_on_probe_success: bool = True

    def __post_init__(self) -> None:
        if not math.isfinite(self.reset_timeout) or self.reset_timeout < 0:
            raise InvalidBreakerConfigError(
                "reset_timeout must be a finite number of seconds >= 0"
            )
        if self.maximum_attempts < 1:
            raise InvalidBreakerConfigError("maximum_attempts must be >= 1")


class CircuitBreaker:
    """Guard that routes calls to a primary or a fallback async operation."""

    def __init__(
        self,
        name: str,
        *,
        config: CircuitBreakerConfig | None = None,
        storage: AbstractBreakerStorage | None = None,
        logger: BreakerLogger | None = None,
    ) -> None:
        """Build a circuit breaker with optional custom dependencies.

        Args:
            name: Breaker name used for storage and log events.
            config: Breaker behavior configuration. Defaults to
                ``CircuitBreakerConfig()``.
            storage: State storage backend. Defaults to in-memory storage.
            logger: Structured or stdlib logger for breaker events. Defaults
                to the stdlib logger for this module, so nothing is emitted
                unless the host application configures logging.
        """
        self.name = name
        self.config = CircuitBreakerConfig() if config is None else config
        self._storage = InMemoryBreakerStorage() if storage is None else storage
        self._logger = logging.getLogger(__name__) if logger is None else logger
        self._probe_in_flight = False

    async def snapshot(self) -> BreakerSnapshot:
        """Return the stored snapshot for this breaker."""
        return await self._storage.get_state(self.name)

    async def current_state(self) -> CircuitState:
        """Return the derived state, ``HALF_OPEN`` included."""
        snapshot = await self._storage.get_state(self.name)
        return derive_state(snapshot, _utcnow(), self.config.reset_timeout)

    async def reset(self) -> BreakerSnapshot:
        """Force the breaker back to ``CLOSED``."""
        snapshot = await self._storage.reset(self.name)
        self._log("info", "circuit_breaker.reset")
        return snapshot

    async def protect(
        self,
        primary: Callable[[], Awaitable[T]],
        fallback: Callable[[], Awaitable[T]],
    ) -> T:
        """Run ``primary`` under breaker protection, or ``fallback`` instead.

        Args:
            primary: Zero-argument async callable for the real operation.
            fallback: Zero-argument async callable returning the degraded
                result. It is expected not to fail.

        Returns:
            The result of ``primary`` when it is attempted and succeeds,
            otherwise the result of ``fallback``.

        Raises:
            Exception: Whatever ``fallback`` raises, unchanged. Exceptions from
                ``primary`` are absorbed and only drive state transitions.
        """
        state = await self.current_state()
        if state == CircuitState.HALF_OPEN and self._probe_in_flight:
            state = CircuitState.OPEN

        if state == CircuitState.OPEN:
            return await self._fallback(fallback, state)

        if state == CircuitState.HALF_OPEN:
            self._probe_in_flight = True
            try:
                result = await primary()
            except Exception as exc:
                self._log_primary_failure(attempt=1, error=exc)
                await self._trip(CircuitState.HALF_OPEN)
            else:
                await self._probe_succeeded()
                return result
            finally:
                self._probe_in_flight = False
            return await self._fallback(fallback, CircuitState.OPEN)

        retrying = build_immediate_retrying(
            attempts=self.config.maximum_attempts,
            after=self._after_failed_attempt,
        )
        try:
            return await retrying(primary)
        except Exception:
            await self._trip(CircuitState.CLOSED)
        return await self._fallback(fallback, CircuitState.OPEN)

    def guard(
        self, fallback: Callable[P, Awaitable[T]]
    ) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
        """Decorate an async function so every call goes through ``protect``.

        The decorated function and ``fallback`` receive the same arguments.
        """

        def decorator(
            func: Callable[P, Awaitable[T]],
        ) -> Callable[P, Awaitable[T]]:
            @functools.wraps(func)
            async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                return await self.protect(
                    functools.partial(func, *args, **kwargs),
                    functools.partial(fallback, *args, **kwargs),
                )

            return wrapper

        return decorator

    async def _fallback(
        self, fallback: Callable[[], Awaitable[T]], state: CircuitState
    ) -> T:
        self._log("info", "circuit_breaker.fallback", state=str(state))
        return await fallback()

    async def _trip(self, source: CircuitState) -> None:
        snapshot = await self._storage.trip(self.name)
        self._log(
            "warning",
            "circuit_breaker.tripped",
            source=str(source),
            trip_count=snapshot.trip_count,
            last_trip=snapshot.last_trip.isoformat(),
        )

    async def _probe_succeeded(self) -> None:
        closed = self.config.close_on_probe_success
        if closed:
            await self._storage.reset(self.name)
        self._log("info", "circuit_breaker.probe_succeeded", closed=closed)

    def _after_failed_attempt(self, retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        error = None if outcome is None else outcome.exception()
        self._log_primary_failure(attempt=retry_state.attempt_number, error=error)

    def _log_primary_failure(
        self, *, attempt: int, error: BaseException | None
    ) -> None:
        # Only the error type is recorded; the failure detail is dropped.
        self._log(
            "warning",
            "circuit_breaker.primary_failed",
            attempt=attempt,
            error_type=type(error).__name__,
        )

    def _log(self, level: LogLevel, event: str, **fields: object) -> None:
        log_breaker_event(self._logger, level, event, breaker=self.name, **fields)
