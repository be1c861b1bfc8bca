"""JSON logging on stdout, correlated per request."""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import IO, Any
from uuid import uuid4

from flask import Flask, Response, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# Inbound ids end up verbatim in every log line of the request.
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

# Extras copied from ``log.x(..., extra={...})`` into the payload. Token
# series and instance values are never logged, so they are not listed.
EXTRA_KEYS = ("user_id", "count", "store", "endpoint")


class JSONFormatter(logging.Formatter):
    """One JSON object per record; request method and path when available."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        if has_request_context():
            payload["method"] = request.method
            payload["path"] = request.path
        payload.update({key: getattr(record, key) for key in EXTRA_KEYS if hasattr(record, key)})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def ensure_request_id() -> str:
    """
    Return the id of the current request, fixing it on first use.

    A well-formed ``X-Request-ID`` / ``X-Correlation-ID`` header is reused;
    anything else gets a fresh UUID4. Outside a request a new UUID is returned
    every call.
    """
    if not has_request_context():
        return str(uuid4())

    request_id = g.get("request_id")
    if request_id is None:
        inbound = (request.headers.get(h) for h in CORRELATION_HEADERS)
        request_id = next((v for v in inbound if v and _REQUEST_ID_RE.match(v)), None)
        g.request_id = request_id = request_id or str(uuid4())
    return request_id


def configure_logging(level: str | int = "INFO", stream: IO[str] | None = None) -> None:
    """Replace the root handlers with a single JSON handler at ``level``."""
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())

    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def init_app(app: Flask) -> None:
    """Fix the request id before any other hook runs and echo it back."""
    app.logger.addFilter(RequestIdFilter())

    def _seed_request_id() -> None:
        g.pop("request_id", None)
        ensure_request_id()

    app.before_request_funcs.setdefault(None, []).insert(0, _seed_request_id)

    @app.after_request
    def _echo_request_id(response: Response) -> Response:
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = ["JSONFormatter", "configure_logging", "ensure_request_id", "init_app"]
