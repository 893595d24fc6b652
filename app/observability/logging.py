from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from app.config import Settings, get_settings
from app.observability.loki import LokiHandler, LokiShipper


_CONFIGURED = False
_LOKI_HANDLER: LokiHandler | None = None
_LOKI_CLIENT: httpx.Client | None = None

_LEVELS = {
    "debug": "debug",
    "info": "info",
    "warn": "warning",
    "warning": "warning",
    "error": "error",
}


def set_loki_client(client: httpx.Client | None) -> None:
    """Use this HTTP client for the next Loki shipper instead of building one."""

    global _LOKI_CLIENT
    _LOKI_CLIENT = client


def _service_stamper(service_name: str) -> structlog.types.Processor:
    def add_service(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog + stdlib logging for JSON output.

    Records go to stdout and, when enabled, to Loki through a batching
    background shipper. Safe to call multiple times (no-op after first call).
    """

    global _CONFIGURED, _LOKI_HANDLER
    if _CONFIGURED:
        return

    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_stamper(settings.service_name),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=pre_chain,
    )

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]

    if settings.loki_enabled:
        shipper = LokiShipper(
            url=settings.loki_push_url,
            labels={"application": settings.service_name},
            interval=settings.loki_batch_interval,
            max_queue=settings.loki_max_queue,
            timeout=settings.loki_timeout,
            client=_LOKI_CLIENT,
        )
        shipper.start()
        _LOKI_HANDLER = LokiHandler(shipper)
        _LOKI_HANDLER.setFormatter(formatter)
        handlers.append(_LOKI_HANDLER)

    root = logging.getLogger()
    root.handlers = list(handlers)
    root.setLevel(level)

    # Keep uvicorn's own loggers consistent with our handlers.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers = list(handlers)
        logger.propagate = False
        logger.setLevel(level)

    # httpx and httpcore log every push; keep the shipper from feeding itself.
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    _CONFIGURED = True


def shutdown_logging() -> None:
    """Drain pending Loki records and stop the shipper thread."""

    global _LOKI_HANDLER
    if _LOKI_HANDLER is None:
        return
    handler, _LOKI_HANDLER = _LOKI_HANDLER, None
    for logger in (logging.getLogger(), *(logging.getLogger(n) for n in ("uvicorn", "uvicorn.error", "uvicorn.access"))):
        if handler in logger.handlers:
            logger.removeHandler(handler)
    handler.close()


def reset_logging() -> None:
    """Drain the Loki sink and allow configure_logging to run again (used by tests)."""

    global _CONFIGURED
    shutdown_logging()
    structlog.reset_defaults()
    _CONFIGURED = False


def log(level: str, message: str, labels: Mapping[str, Any] | None = None) -> None:
    """Emit one structured record with a nested `labels` mapping."""

    method = _LEVELS.get(level.lower(), "info")
    logger = structlog.get_logger("app")
    getattr(logger, method)(message, labels=dict(labels or {}))
