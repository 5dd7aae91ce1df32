"""
JSON response helpers for the schedules API.

Every response uses the envelope ``{"ok", "data", "error"}``. Client errors
(4xx) raised as SignageError carry their ``detail`` dict under ``details``,
so aggregated schedule errors reach the caller keyed by field. Server errors
are logged with their traceback and answered with a generic message.
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any, Callable

from flask import Response, jsonify

from signage.utils.time import iso_now

if TYPE_CHECKING:
    from signage.domain.exceptions import SignageError

_log = logging.getLogger(__name__)

_SERVER_ERROR_MESSAGES: dict[int, str] = {
    500: "An internal error occurred",
    503: "Service temporarily unavailable",
}


def safe_error(exc: BaseException, status: int = 500, *, context: str = "") -> Response:
    """Log *exc* server-side and answer with a generic message for *status*."""
    _log.error("API error [%s] %s: %s", status, context, exc, exc_info=exc)
    message = _SERVER_ERROR_MESSAGES.get(status, _SERVER_ERROR_MESSAGES[500])
    return error_response(message, status)


def success_response(
    data: dict | list | None = None,
    status: int = 200,
    *,
    message: str | None = None,
) -> Response:
    payload: dict[str, Any] = {"ok": True, "data": data, "error": None}
    if message is not None:
        payload["message"] = message
    response = jsonify(payload)
    response.status_code = status
    return response


def error_response(
    message: str,
    status: int = 500,
    *,
    details: dict | None = None,
) -> Response:
    error: dict[str, Any] = {"message": message, "timestamp": iso_now()}
    body: dict[str, Any] = {"ok": False, "data": None, "error": error, "message": message}
    if details:
        error.update(details)
        body["details"] = details
    response = jsonify(body)
    response.status_code = status
    return response


def signage_error_response(exc: "SignageError", fallback_message: str) -> Response:
    """Map a domain exception to its ``http_status``."""
    status = exc.http_status
    if status >= 500:
        return safe_error(exc, status, context=fallback_message)
    return error_response(str(exc) or fallback_message, status, details=exc.detail or None)


def safe_route(error_message: str = "An internal error occurred") -> Callable:
    """Wrap a route handler so no exception escapes as an HTML page.

    Domain exceptions go through :func:`signage_error_response`; anything
    else is logged and becomes a generic 500.

    Usage::

        @schedules_api.post("/")
        @safe_route("Failed to create schedule")
        def create_schedule():
            ...
    """
    from signage.domain.exceptions import SignageError

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Response:
            try:
                return fn(*args, **kwargs)
            except SignageError as exc:
                return signage_error_response(exc, error_message)
            except Exception as exc:
                return safe_error(exc, 500, context=error_message)

        return wrapper

    return decorator
