"""
Structured JSON logging for Pixico.

Every record carries the correlation id and route of the request that
produced it. Admin actions (sign-in, role changes, contact triage) go to a
separate ``security.audit`` logger so they can be shipped and kept apart
from application noise.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

AUDIT_LOGGER_NAME = "security.audit"
CORRELATION_HEADER = "X-Correlation-ID"

# Request context for the task currently handling a request
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
route_var: ContextVar[Optional[str]] = ContextVar("route", default=None)


class RequestContextFilter(logging.Filter):
    def filter(self, record):
        record.correlation_id = correlation_id_var.get() or "-"
        record.route = route_var.get()
        return True


class PixicoJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["ts"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["correlation_id"] = getattr(record, "correlation_id", "-")
        route = getattr(record, "route", None)
        if route:
            log_record["route"] = route
        if record.levelno >= logging.WARNING:
            log_record["where"] = f"{record.module}:{record.lineno}"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Route app and uvicorn logs through one JSON handler; returns the audit logger."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(PixicoJsonFormatter("%(message)s"))
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers[:] = [handler]

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        server_logger = logging.getLogger(name)
        server_logger.handlers[:] = [handler]
        server_logger.propagate = False

    # Wire-level request logs from the gateway are too chatty below WARNING
    logging.getLogger("httpx").setLevel(logging.WARNING)

    audit = logging.getLogger(AUDIT_LOGGER_NAME)
    audit.setLevel(logging.INFO)
    return audit


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tags each request with a correlation id, reusing the caller's if sent."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        correlation_id_var.set(correlation_id)
        route_var.set(f"{request.method} {request.url.path}")
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


def log_security_event(
    event_type: str,
    message: str,
    level: int = logging.INFO,
    user_id: Optional[str] = None,
    email: Optional[str] = None,
    ip_address: Optional[str] = None,
    event_category: str = "security",
    **extra_fields: Any,
) -> None:
    """
    Write one audit record.

    ``event_type`` is a dotted name such as ``admin.login.denied``. Identity
    fields that are None are left out of the record.
    """
    fields: Dict[str, Any] = {
        "event_type": event_type,
        "event_category": event_category,
        "user_id": user_id,
        "email": email,
        "ip_address": ip_address,
        **extra_fields,
    }
    logging.getLogger(AUDIT_LOGGER_NAME).log(
        level, message, extra={k: v for k, v in fields.items() if v is not None}
    )


def get_client_ip(request: Request) -> str:
    """Client address, preferring the first hop of proxy headers."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or (
        request.client.host if request.client else "unknown"
    )
