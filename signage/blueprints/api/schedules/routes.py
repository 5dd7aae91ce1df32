"""
Playlist Schedule Endpoints
===========================

All endpoints are scoped to the caller's tenant (session ``tenant_id`` or
the ``X-Tenant-ID`` header). Validation failures answer 422 and conflicts
409, with ``details.errors`` keyed by field.
"""

from __future__ import annotations

import logging

from flask import request
from pydantic import ValidationError

from signage.blueprints.api._common import (
    get_actor as _actor,
    get_json as _json,
    get_schedule_service as _service,
    get_tenant_id as _tenant_id,
    success as _success,
)
from signage.domain.exceptions import ScheduleValidationError
from signage.domain.exceptions import ValidationError as BadRequestError
from signage.domain.schedules import PlaylistSchedule
from signage.schemas.schedule import BulkActionRequest, PreviewOptions, field_errors_from_pydantic
from signage.utils.http import safe_route
from signage.utils.time import parse_local_datetime

from . import schedules_api

logger = logging.getLogger("schedules_api.routes")


def _serialize(schedule: PlaylistSchedule) -> dict:
    data = schedule.to_dict()
    data["time_range"] = schedule.formatted_time_range()
    data["date_range"] = schedule.formatted_date_range()
    data["days"] = schedule.formatted_days_of_week()
    return data


def _exclude_id(payload: dict) -> int | None:
    value = payload.get("exclude_id")
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequestError("exclude_id must be an integer") from None


# ============================================================================
# CRUD
# ============================================================================


@schedules_api.get("/")
@safe_route("Failed to list schedules")
def list_schedules():
    """
    List the tenant's schedules.

    Query params:
        playlist_id: Only schedules of this playlist (optional)
        status: active | inactive (optional)
        search: Substring of the schedule name (optional)
    """
    schedules = _service().list_schedules(
        _tenant_id(),
        playlist_id=request.args.get("playlist_id", type=int),
        status=request.args.get("status") or None,
        search=request.args.get("search"),
    )
    return _success({"schedules": [_serialize(s) for s in schedules], "count": len(schedules)})


@schedules_api.post("/")
@safe_route("Failed to create schedule")
def create_schedule():
    tenant_id = _tenant_id()
    schedule = _service().create_schedule(tenant_id, _json(), actor=_actor())
    return _success({"schedule": _serialize(schedule)}, 201, message="Schedule created")


@schedules_api.get("/<int:schedule_id>")
@safe_route("Failed to get schedule")
def get_schedule(schedule_id: int):
    schedule = _service().get_schedule(_tenant_id(), schedule_id)
    return _success({"schedule": _serialize(schedule)})


@schedules_api.route("/<int:schedule_id>", methods=["PUT", "PATCH"])
@safe_route("Failed to update schedule")
def update_schedule(schedule_id: int):
    """Update a schedule; omitted fields keep their stored values."""
    schedule = _service().update_schedule(_tenant_id(), schedule_id, _json(), actor=_actor())
    return _success({"schedule": _serialize(schedule)}, message="Schedule updated")


@schedules_api.delete("/<int:schedule_id>")
@safe_route("Failed to delete schedule")
def delete_schedule(schedule_id: int):
    _service().delete_schedule(_tenant_id(), schedule_id, actor=_actor())
    return _success({"schedule_id": schedule_id}, message="Schedule deleted")


# ============================================================================
# STATE CHANGES
# ============================================================================


@schedules_api.post("/<int:schedule_id>/toggle")
@safe_route("Failed to toggle schedule")
def toggle_schedule(schedule_id: int):
    schedule = _service().toggle_schedule(_tenant_id(), schedule_id, actor=_actor())
    state = "activated" if schedule.is_active else "deactivated"
    return _success({"schedule": _serialize(schedule)}, message=f"Schedule {state}")


@schedules_api.post("/<int:schedule_id>/duplicate")
@safe_route("Failed to duplicate schedule")
def duplicate_schedule(schedule_id: int):
    """Copy a schedule; the JSON body may override any schedule field."""
    schedule = _service().duplicate_schedule(_tenant_id(), schedule_id, _json(), actor=_actor())
    return _success({"schedule": _serialize(schedule)}, 201, message="Schedule duplicated")


@schedules_api.post("/bulk")
@safe_route("Failed to apply bulk action")
def bulk_action():
    """
    Apply one action to several schedules.

    Body:
        action: activate | deactivate | delete
        schedule_ids: list of schedule IDs
    """
    try:
        body = BulkActionRequest.model_validate(_json())
    except ValidationError as exc:
        raise ScheduleValidationError(field_errors_from_pydantic(exc)) from exc

    result = _service().bulk_action(_tenant_id(), body.action, body.schedule_ids, actor=_actor())
    return _success(result)


# ============================================================================
# PLANNING
# ============================================================================


@schedules_api.post("/preview")
@safe_route("Failed to preview schedule")
def preview_schedule():
    """
    Preview which of the next N days a draft schedule runs on, with the
    active schedules it would overlap.

    Body: schedule fields, plus ``days`` (default 7) and ``exclude_id``.
    """
    payload = _json()
    try:
        options = PreviewOptions.model_validate(payload)
    except ValidationError as exc:
        raise ScheduleValidationError(field_errors_from_pydantic(exc)) from exc

    preview = _service().preview(_tenant_id(), payload, options.days, exclude_id=options.exclude_id)
    return _success(preview)


@schedules_api.post("/check-conflicts")
@safe_route("Failed to check schedule conflicts")
def check_conflicts():
    payload = _json()
    analysis = _service().check_conflicts(_tenant_id(), payload, _exclude_id(payload))
    return _success(analysis.to_dict())


@schedules_api.post("/override")
@safe_route("Failed to create schedule")
def create_with_override():
    """Create a schedule, deactivating lower-priority schedules it overlaps."""
    schedule, overridden = _service().create_with_override(_tenant_id(), _json(), actor=_actor())
    return _success(
        {
            "schedule": _serialize(schedule),
            "overridden": [s.summary() for s in overridden],
        },
        201,
        message="Schedule created",
    )


@schedules_api.get("/active")
@safe_route("Failed to resolve active schedule")
def active_schedule():
    """
    Resolve the schedule playing for the tenant.

    Query params:
        at: ISO date-time on the players' clock (optional, default now)
    """
    at = None
    raw = request.args.get("at")
    if raw:
        at = parse_local_datetime(raw)
        if at is None:
            raise BadRequestError("at must be an ISO 8601 date-time")

    schedule = _service().resolve_active(_tenant_id(), at)
    return _success({"schedule": _serialize(schedule) if schedule else None})
