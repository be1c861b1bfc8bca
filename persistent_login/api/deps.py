"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request

from persistent_login.api.session import FlaskSessionGateway
from persistent_login.core.errors import Unauthorized

F = TypeVar("F", bound=Callable[..., Any])


def current_user_id() -> int:
    """Return the session's user id or raise :class:`Unauthorized`."""

    user_id = FlaskSessionGateway().current_user_id()
    if user_id is None:
        raise Unauthorized("Authentication required")
    return user_id


def require_session(func: F) -> F:
    """Ensure the request belongs to a logged-in session."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        current_user_id()
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
