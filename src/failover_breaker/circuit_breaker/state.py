"""Circuit breaker state primitives."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

NEVER = datetime.min.replace(tzinfo=UTC)


class CircuitState(StrEnum):
    """Circuit breaker state values."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class BreakerSnapshot:
    """Point-in-time view of the stored breaker state.

    Attributes:
        name: Breaker name.
        state: Stored breaker state, only ever ``CLOSED`` or ``OPEN``.
        last_trip: Timestamp of the most recent trip, ``NEVER`` if none.
        trip_count: Trips recorded since creation or the last reset.
    """

    name: str
    state: CircuitState
    last_trip: datetime = NEVER
    trip_count: int = 0


def derive_state(
    snapshot: BreakerSnapshot, now: datetime, reset_timeout: float
) -> CircuitState:
    """Classify a stored snapshot as closed, open or half-open at ``now``.

    ``HALF_OPEN`` is never stored. It is reported once the cooldown since the
    last trip has strictly exceeded ``reset_timeout`` seconds.
    """
    if snapshot.state == CircuitState.CLOSED:
        return CircuitState.CLOSED
    if (now - snapshot.last_trip).total_seconds() > reset_timeout:
        return CircuitState.HALF_OPEN
    return CircuitState.OPEN
