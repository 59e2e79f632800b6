"""
structlog configuration.

Service-level code logs through structlog with keyword fields
(`logger.info("Fetch cycle completed", source="twitter", stored=3)`);
ingestion and storage modules keep using stdlib loggers, which are routed
to the same stdout handler.

Production renders one JSON object per line; development renders colored
console output.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from keyword_notifier.config.settings import Settings, get_settings
from keyword_notifier.observability.tracing import add_trace_context

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access")


def _processors(json_output: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_trace_context,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the root stdlib logger from settings."""
    settings = settings or get_settings()

    structlog.configure(
        processors=_processors(json_output=settings.is_production),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=settings.log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**fields) -> None:
    """
    Attach fields to every later log line of the current task.

    asyncio tasks copy the context they start with, so a source bound inside
    its scheduler task stays with that source.
    """
    structlog.contextvars.bind_contextvars(**fields)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
