"""Structured logging for circuit breaker events.

Breakers accept either a structlog logger or a stdlib logger. Event fields are
passed as keywords to structlog and as ``extra`` to stdlib loggers, so both
end up on the rendered record once ``configure_structlog`` has run.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Literal, Protocol, TextIO

import structlog

if TYPE_CHECKING:
    from failover_breaker.settings import BreakerSettings

LogLevel = Literal["info", "warning"]

_ACCEPTED_LEVELS = ("CRITICAL", "DEBUG", "ERROR", "INFO", "WARNING")


class StructuredLogger(Protocol):
    """Subset of a structlog logger used for breaker events."""

    def info(self, event: str, **kwargs: object) -> None: ...

    def warning(self, event: str, **kwargs: object) -> None: ...


BreakerLogger = (
    StructuredLogger | logging.Logger | logging.LoggerAdapter[logging.Logger]
)


def get_log_level_value(level: str) -> int:
    """Map a case-insensitive level name to its stdlib constant.

    Raises:
        ValueError: For anything outside DEBUG, INFO, WARNING, ERROR and
            CRITICAL.
    """
    normalized = level.strip().upper()
    if normalized not in _ACCEPTED_LEVELS:
        raise ValueError(f"log_level must be one of: {', '.join(_ACCEPTED_LEVELS)}")
    return logging.getLevelNamesMapping()[normalized]


def log_breaker_event(
    logger: BreakerLogger,
    level: LogLevel,
    event: str,
    *,
    breaker: str,
    **fields: object,
) -> None:
    """Emit one breaker event tagged with the breaker name.

    Args:
        logger: structlog or stdlib logger receiving the event.
        level: ``"info"`` or ``"warning"``.
        event: Dotted event name, for example ``circuit_breaker.tripped``.
        breaker: Name of the breaker emitting the event.
        **fields: Extra structured fields for the event.
    """
    payload: dict[str, object] = {"breaker": breaker, **fields}
    emit = getattr(logger, level)
    if isinstance(logger, (logging.Logger, logging.LoggerAdapter)):
        emit(event, extra=payload)
    else:
        emit(event, **payload)


def configure_structlog(
    settings: BreakerSettings,
    *,
    stream: TextIO | None = None,
) -> structlog.stdlib.BoundLogger:
    """Render structlog and stdlib breaker events through one root handler.

    Output goes to ``stream`` (stderr by default): console rendering for a
    TTY, one JSON object per line otherwise. Calling it again replaces the
    root handler, so the most recent settings win.
    """
    output = sys.stderr if stream is None else stream
    renderer: structlog.types.Processor = (
        structlog.dev.ConsoleRenderer()
        if output.isatty()
        else structlog.processors.JSONRenderer()
    )
    enrich: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    handler = logging.StreamHandler(output)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=enrich,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    logging.basicConfig(
        handlers=[handler],
        level=get_log_level_value(settings.log_level),
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *enrich,
            structlog.stdlib.add_logger_name,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return structlog.stdlib.get_logger("failover_breaker")
