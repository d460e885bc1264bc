"""Async circuit breaker with fallback routing.

Key behavior notes:
  - Storage persists only ``CLOSED`` and ``OPEN``. ``HALF_OPEN`` is derived on
    every call from the time elapsed since the last trip.
  - From ``CLOSED`` the primary operation is retried immediately up to
    ``maximum_attempts`` times; the last failure trips the circuit and the
    fallback result is returned.
  - While ``OPEN`` the primary operation is skipped and the fallback runs.
  - Once the cooldown has elapsed, a single probe of the primary operation
    runs. A failed probe trips the circuit again and restarts the cooldown.
  - At most one probe is in flight per ``CircuitBreaker`` instance; concurrent
    callers meanwhile get the fallback.
  - Fallback failures are never caught.
"""

from failover_breaker.circuit_breaker.breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
)
from failover_breaker.circuit_breaker.exceptions import (
    CircuitBreakerError,
    InvalidBreakerConfigError,
)
from failover_breaker.circuit_breaker.state import (
    NEVER,
    BreakerSnapshot,
    CircuitState,
    derive_state,
)
from failover_breaker.circuit_breaker.storage import (
    AbstractBreakerStorage,
    InMemoryBreakerStorage,
)

__all__ = [
    "NEVER",
    "AbstractBreakerStorage",
    "BreakerSnapshot",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "CircuitState",
    "InMemoryBreakerStorage",
    "InvalidBreakerConfigError",
    "derive_state",
]
