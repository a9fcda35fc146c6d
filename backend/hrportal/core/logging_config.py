"""
Logging for the HR Portal API.

Every record emitted while a request is in flight carries the request id and,
once the caller is authenticated, the employee and company ids. Production
writes one JSON object per line; development writes coloured console lines.
"""

import json
import logging
import re
import sys
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime
from typing import Optional

from hrportal.core.config import settings

REQUEST_ID_HEADER = "X-Request-ID"
_INCOMING_REQUEST_ID = re.compile(r"^[A-Za-z0-9-]{1,64}$")
_UNSET = "-"
_QUIET_PATHS = frozenset({"/health", "/metrics"})

# One mutable dict per request so ids bound deeper in the stack (after the
# auth dependency runs) are visible to the middleware that opened it.
_request_context: ContextVar[Optional[dict]] = ContextVar("hrportal_request_context", default=None)


def current_request_id() -> Optional[str]:
    context = _request_context.get()
    return context["request_id"] if context else None


def bind_principal(user_id: int, company_id: int) -> None:
    """Attach the authenticated caller to the current request's log context."""
    context = _request_context.get()
    if context is not None:
        context["user_id"] = user_id
        context["company_id"] = company_id


class RequestContextFilter(logging.Filter):
    """Stamps request_id, user_id and company_id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = _request_context.get() or {}
        for key in ("request_id", "user_id", "company_id"):
            if not hasattr(record, key):
                setattr(record, key, context.get(key, _UNSET))
        return True


class JSONFormatter(logging.Formatter):
    def __init__(self, service_name: str = "hrportal-api"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "environment": settings.ENVIRONMENT,
            "request_id": getattr(record, "request_id", _UNSET),
            "user_id": getattr(record, "user_id", _UNSET),
            "company_id": getattr(record, "company_id", _UNSET),
        }
        http = getattr(record, "http", None)
        if http:
            log_data["http"] = http

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Coloured single-line output for development."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        request_id = getattr(record, "request_id", _UNSET)
        user_id = getattr(record, "user_id", _UNSET)

        message = (
            f"{color}{timestamp} {record.levelname:<7} [{request_id} user={user_id}] "
            f"{record.name}: {record.getMessage()}{self.RESET}"
        )
        if record.exc_info:
            message += f"\n{''.join(traceback.format_exception(*record.exc_info))}"
        return message


def setup_logging(log_level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    level = log_level or ("DEBUG" if settings.DEBUG else "INFO")
    use_json = json_logs if json_logs is not None else settings.ENVIRONMENT.lower() == "production"

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JSONFormatter() if use_json else ConsoleFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger("hrportal.logging").info(
        f"Logging configured: level={level}, format={'JSON' if use_json else 'console'}"
    )


def _incoming_request_id(scope) -> Optional[str]:
    header = REQUEST_ID_HEADER.lower().encode()
    for name, value in scope.get("headers", []):
        if name == header:
            candidate = value.decode("latin-1").strip()
            return candidate if _INCOMING_REQUEST_ID.match(candidate) else None
    return None


class RequestLoggingMiddleware:
    """
    Opens the log context for each HTTP request and writes one access line
    when it finishes. A well-formed incoming X-Request-ID is reused; the id is
    echoed on the response either way.
    """

    def __init__(self, app):
        self.app = app
        self.logger = logging.getLogger("hrportal.http")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _incoming_request_id(scope) or uuid.uuid4().hex[:8]
        context = {"request_id": request_id}
        token = _request_context.set(context)
        scope.setdefault("state", {})["request_id"] = request_id
        start_time = datetime.utcnow()
        response_status = 0

        async def send_wrapper(message):
            nonlocal response_status
            if message["type"] == "http.response.start":
                response_status = message["status"]
                message.setdefault("headers", [])
                message["headers"] = list(message["headers"]) + [
                    (REQUEST_ID_HEADER.lower().encode(), request_id.encode())
                ]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            response_status = 500
            raise
        finally:
            path = scope.get("path", "/")
            if path not in _QUIET_PATHS:
                method = scope.get("method", "UNKNOWN")
                duration_ms = (datetime.utcnow() - start_time).total_seconds() * 1000
                self.logger.log(
                    logging.WARNING if response_status >= 400 else logging.INFO,
                    f"{method} {path} {response_status} {duration_ms:.1f}ms",
                    extra={
                        "request_id": request_id,
                        "user_id": context.get("user_id", _UNSET),
                        "company_id": context.get("company_id", _UNSET),
                        "http": {
                            "method": method,
                            "path": path,
                            "status": response_status,
                            "duration_ms": round(duration_ms, 1),
                        },
                    },
                )
            _request_context.reset(token)
