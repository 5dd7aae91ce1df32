"""
Blueprint Common Utilities
==========================

Shared helper functions for the API blueprints.

Usage:
    from signage.blueprints.api._common import (
        get_container, get_json, get_tenant_id, success,
        get_schedule_service,
    )
"""
from __future__ import annotations

import logging

from flask import current_app, request, session

from signage.domain.exceptions import SignageError
from signage.utils.http import success_response

logger = logging.getLogger("api._common")

TENANT_HEADER = "X-Tenant-ID"


class TenantRequiredError(SignageError):
    """No tenant could be determined for the request (HTTP 401)."""

    http_status: int = 401


# ============================================================================
# TENANT UTILITIES
# ============================================================================


def get_tenant_id() -> int:
    """
    Get the caller's tenant from the session, or the X-Tenant-ID header.

    Raises:
        TenantRequiredError: When neither carries a valid tenant ID
    """
    tenant_id = session.get("tenant_id")
    if tenant_id is None:
        tenant_id = request.headers.get(TENANT_HEADER)
    try:
        tenant_id = int(tenant_id)
    except (TypeError, ValueError):
        raise TenantRequiredError("Tenant context required") from None
    if tenant_id <= 0:
        raise TenantRequiredError("Tenant context required")
    return tenant_id


def get_actor() -> str:
    """Audit actor for the current request."""
    user_id = session.get("user_id")
    if user_id is not None:
        return f"user:{user_id}"
    return f"tenant:{get_tenant_id()}"


# ============================================================================
# CONTAINER ACCESS
# ============================================================================


def get_container():
    """
    Get the service container from Flask app config.

    Returns:
        ServiceContainer: The application service container

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


def get_schedule_service():
    return get_container().schedule_service


# ============================================================================
# REQUEST HELPERS
# ============================================================================


def get_json() -> dict:
    """
    Get JSON request body with silent failure.

    Returns:
        dict: Parsed JSON object body, or empty dict if not available
    """
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


# ============================================================================
# RESPONSE HELPERS
# ============================================================================


def success(data: dict | list | None = None, status: int = 200, *, message: str | None = None):
    """
    Standard success response wrapper.

    Returns:
        Flask Response with format: {"ok": true, "data": ..., "error": null}
    """
    return success_response(data, status, message=message)
