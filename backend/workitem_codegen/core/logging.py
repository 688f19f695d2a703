"""Structured logging setup shared by the API process and pipeline runs.

JSON lines in production, coloured console output in debug. Records emitted
through the stdlib ``logging`` module (uvicorn, httpx, anthropic) go through
the same processor chain, and every entry carries the request correlation id
when one is bound.
"""

import logging
import logging.config
from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from asgi_correlation_id.context import correlation_id

# Third-party loggers that are too chatty at INFO.
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "anthropic")


def add_correlation_id(logger, method, event_dict):
    cid = correlation_id.get(None)
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def add_service_name(service: str):
    """Build a processor that stamps ``service`` on every entry."""

    def processor(logger, method, event_dict):
        event_dict.setdefault("service", service)
        return event_dict

    return processor


@contextmanager
def work_item_context(work_item_id: int, trigger: str) -> Iterator[None]:
    """Tag every entry logged inside the block with the work item and what started the run.

    Bound through contextvars, so retry and client logs from deeper layers carry
    the tags too. Concurrent runs in separate tasks keep separate values.
    """
    with structlog.contextvars.bound_contextvars(work_item_id=work_item_id, trigger=trigger):
        yield


def configure_structlog(
    log_level: str = "INFO",
    json_logs: bool = True,
    service: str = "workitem-codegen",
) -> None:
    """Configure structlog and route stdlib logging through it.

    Must run before modules call ``structlog.get_logger`` for the first time,
    since loggers cache their processor chain on first use.

    Args:
        log_level: Root log level ("DEBUG", "INFO", "WARNING", "ERROR")
        json_logs: JSON renderer when True, ConsoleRenderer otherwise
        service: Value of the ``service`` key added to each entry
    """
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_correlation_id,
        add_service_name(service),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    renderer,
                ],
                "foreign_pre_chain": shared_processors,
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["default"], "level": log_level},
        "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
    })

    structlog.configure(
        processors=shared_processors + [
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
