"""
Structured logging for the API service and the client SDK.

Loggers are named ``<service>.<component>`` (``api.response_cache``,
``client.http``); both parts are emitted as fields on every event, together
with the request id and the authenticated user of the current request.
"""

import sys
import structlog
import logging
import uuid
from typing import Any, Dict, Optional
from contextvars import ContextVar

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)
role_var: ContextVar[Optional[str]] = ContextVar('role', default=None)


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure structured JSON logging for ``service_name`` ("api" or "client")."""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_component_context,
            add_correlation_context,
            structlog.processors.JSONRenderer()
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


def add_component_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Split the logger name into ``service`` and ``component`` fields."""
    logger_name = event_dict.get("logger") or ""
    service, _, component = logger_name.partition(".")
    if service:
        event_dict.setdefault("service", service)
    if component:
        event_dict.setdefault("component", component)
    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add request and user context to log events."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    user_id = user_id_var.get()
    if user_id:
        event_dict["user_id"] = user_id

    role = role_var.get()
    if role:
        event_dict["role"] = role

    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set request ID in context."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def set_user_context(user_id: Optional[str] = None, role: Optional[str] = None):
    if user_id:
        user_id_var.set(user_id)
    if role:
        role_var.set(role)


def clear_context():
    request_id_var.set(None)
    user_id_var.set(None)
    role_var.set(None)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger named ``<service>.<component>``."""
    return structlog.get_logger(name)
