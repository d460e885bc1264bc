"""State storage for circuit breakers.

Storage holds only ``CLOSED`` and ``OPEN`` plus the last trip timestamp.
``HALF_OPEN`` is derived from elapsed time by the breaker and must never be
written by a backend. Storage lives in-process; nothing survives a restart.
"""

import asyncio
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import UTC, datetime

from failover_breaker.circuit_breaker.state import (
    NEVER,
    BreakerSnapshot,
    CircuitState,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AbstractBreakerStorage(ABC):
    """Abstract breaker storage interface."""

    @abstractmethod
    async def get_state(self, name: str) -> BreakerSnapshot:
        """Return the current breaker snapshot for ``name``."""

    @abstractmethod
    async def trip(self, name: str) -> BreakerSnapshot:
        """Store ``OPEN`` for ``name`` and refresh its trip timestamp."""

    @abstractmethod
    async def reset(self, name: str) -> BreakerSnapshot:
        """Store ``CLOSED`` for ``name`` and clear its trip timestamp."""


class InMemoryBreakerStorage(AbstractBreakerStorage):
    """In-memory storage with one cooperative lock per breaker name."""

    def __init__(self) -> None:
        """Initialize empty snapshot and lock registries."""
        self._snapshots: dict[str, BreakerSnapshot] = {}
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def get_state(self, name: str) -> BreakerSnapshot:
        """Return the current snapshot, creating a closed one if missing."""
        async with self._locks[name]:
            snapshot = self._snapshots.get(name)
            if snapshot is None:
                snapshot = BreakerSnapshot(name=name, state=CircuitState.CLOSED)
                self._snapshots[name] = snapshot
            return snapshot

    async def trip(self, name: str) -> BreakerSnapshot:
        """Open the circuit and restart the cooldown window.

        Tripping an already open circuit only refreshes ``last_trip``.
        """
        async with self._locks[name]:
            previous = self._snapshots.get(name)
            trip_count = 0 if previous is None else previous.trip_count
            updated = BreakerSnapshot(
                name=name,
                state=CircuitState.OPEN,
                last_trip=_utcnow(),
                trip_count=trip_count + 1,
            )
            self._snapshots[name] = updated
            return updated

    async def reset(self, name: str) -> BreakerSnapshot:
        async with self._locks[name]:
            updated = BreakerSnapshot(
                name=name,
                state=CircuitState.CLOSED,
                last_trip=NEVER,
                trip_count=0,
            )
            self._snapshots[name] = updated
            return updated
