"""Circuit breaker exceptions.

Failures of the protected operation never surface through these types: they
are absorbed by the breaker. Failures of the fallback propagate unchanged.
"""


class CircuitBreakerError(Exception):
    """Base exception for the circuit breaker package."""


class InvalidBreakerConfigError(CircuitBreakerError, ValueError):
    """Raised when breaker configuration values are out of range."""
