"""
Structured logging for Timberline services.

Request-scoped fields (request id, acting user) live in structlog's
contextvars so every log line of a request carries them.
"""

import sys
import uuid
import logging
from typing import Any, Dict, Optional

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, get_contextvars, merge_contextvars


def configure_logging(service_name: str, log_level: str = "info", env: str = "local") -> None:
    """Configure structured logging for a service.

    Local environments get a console renderer; everything else emits one
    JSON object per line.
    """
    renderer = (
        structlog.dev.ConsoleRenderer()
        if env == "local"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            ServiceTagger(service_name),
            renderer
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


class ServiceTagger:
    """Tag events with the owning service and the emitting component."""

    def __init__(self, service_name: str):
        self.service_name = service_name

    def __call__(self, logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        # Logger names look like "pricing.engine"
        logger_name = event_dict.get("logger", "")
        event_dict.setdefault("service", self.service_name)
        if "." in logger_name:
            event_dict["component"] = logger_name.split(".", 1)[1]
        return event_dict


def bind_request_context(request_id: Optional[str] = None, user_id: Optional[str] = None) -> str:
    """Bind the request id (generated when absent) and acting user."""
    request_id = request_id or str(uuid.uuid4())
    bind_contextvars(request_id=request_id)
    if user_id:
        bind_contextvars(user_id=user_id)
    return request_id


def current_request_id() -> Optional[str]:
    return get_contextvars().get("request_id")


def clear_context():
    """Drop all request-scoped fields."""
    clear_contextvars()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
