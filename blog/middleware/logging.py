"""
Access logging for the blog API.

Every request gets an id (taken from ``X-Request-ID`` or generated) that is
echoed on the response and stamped on each log record emitted while the
request is handled. Access lines carry the method, path, status, latency,
client address and, when a handler resolved one, the signed-in user.
"""

import json
import logging
import re
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from typing import Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from blog.utils.dates import utcnow
from blog.utils.request import client_address

REQUEST_ID_HEADER = "X-Request-ID"

# Paths polled by load balancers; not worth an access line
QUIET_PATHS = frozenset({"/health"})

# Structured fields copied from a record's ``extra`` into the JSON line
ACCESS_FIELDS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_ip",
    "user_id",
    "post_slug",
    "error_code",
)

_POST_PATH = re.compile(r"^/api/posts/(?P<slug>[^/]+)(?:/(?:view|like|save))?$")

_request_id: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Id of the request being handled, or an empty string outside one."""
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()
        return True


class JSONLogFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", ""),
        }
        entry.update({field: getattr(record, field) for field in ACCESS_FIELDS if hasattr(record, field)})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def post_slug_for(path: str) -> Optional[str]:
    """The post slug a public post route targets, if any."""
    match = _POST_PATH.match(path)
    if not match or match.group("slug") == "popular":
        return None
    return match.group("slug")


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one access line per request on the ``blog.access`` logger."""

    def __init__(self, app: ASGIApp, logger_name: str = "blog.access"):
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        # Left set after dispatch so the outermost 500 handler can report it
        _request_id.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            self._access(request, 500, started, error=repr(exc))
            raise
        response.headers[REQUEST_ID_HEADER] = request_id
        self._access(request, response.status_code, started)
        return response

    def _access(self, request: Request, status_code: int, started: float, error: Optional[str] = None) -> None:
        path = request.url.path
        if path in QUIET_PATHS:
            return

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        extra = {
            "method": request.method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "client_ip": client_address(request),
        }
        slug = post_slug_for(path)
        if slug:
            extra["post_slug"] = slug
        # A plain id: the handler's session may have expired its User by now
        user_id = getattr(request.state, "user_id", None)
        if user_id is not None:
            extra["user_id"] = user_id

        message = f"{request.method} {path} {status_code} {duration_ms}ms"
        if error:
            message = f"{message} ({error})"
        self.logger.log(level_for_status(status_code), message, extra=extra)


def setup_structured_logging(log_level: str = "INFO", json_format: bool = True) -> None:
    """
    Install a single stderr handler on the root logger.

    JSON lines in production; a plain format with the request id for local
    development. Library loggers are kept at WARNING.
    """
    level = logging.getLevelName(log_level.upper())

    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"))
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("blog").setLevel(level)
    for noisy in ("uvicorn", "uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
