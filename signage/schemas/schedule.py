"""
Schedule Schemas
================

Pydantic models for playlist schedule request validation.

Interval fields (dates, times, weekdays) and the priority are parsed by the
schedule domain so that their errors carry domain error codes; the models
here cover the identity fields and the request envelopes around them.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from signage.domain.exceptions import FieldError, ValidationCode
from signage.enums import BulkAction

NAME_MAX_LENGTH = 255
PREVIEW_DEFAULT_DAYS = 7


class ScheduleIdentityFields(BaseModel):
    """Who a schedule belongs to and what it plays."""

    model_config = ConfigDict(extra="ignore")

    tenant_id: int = Field(..., gt=0, description="Owning tenant")
    playlist_id: int = Field(..., gt=0, description="Playlist activated by the schedule")
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH, description="Schedule name")
    is_active: bool = Field(default=True, description="Whether the schedule takes part in playback")

    @field_validator("tenant_id", "playlist_id", mode="before")
    @classmethod
    def reject_bool_ids(cls, v):
        if isinstance(v, bool):
            raise ValueError("must be an integer ID")
        return v

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("is_active", mode="before")
    @classmethod
    def default_is_active(cls, v):
        if v is None:
            return True
        return v


class BulkActionRequest(BaseModel):
    """Apply one action to many schedules of the caller's tenant."""

    action: BulkAction = Field(..., description="activate, deactivate or delete")
    schedule_ids: List[int] = Field(..., min_length=1, description="Target schedule IDs")

    @field_validator("action", mode="before")
    @classmethod
    def normalize_action(cls, v):
        if isinstance(v, str):
            return BulkAction(v.strip().lower())
        return v


class PreviewOptions(BaseModel):
    """Options of the schedule preview endpoint."""

    model_config = ConfigDict(extra="ignore")

    days: int = Field(default=PREVIEW_DEFAULT_DAYS, ge=1, description="Number of days to preview")
    exclude_id: Optional[int] = Field(default=None, description="Schedule being edited")


_CODE_BY_PYDANTIC_TYPE = {
    "missing": ValidationCode.REQUIRED,
    "string_too_short": ValidationCode.REQUIRED,
    "string_too_long": ValidationCode.TOO_LONG,
}


def field_errors_from_pydantic(exc: ValidationError) -> list[FieldError]:
    """Translate a pydantic ValidationError into schedule field errors."""
    errors: list[FieldError] = []
    for item in exc.errors():
        field_name = ".".join(str(part) for part in item.get("loc", ())) or "__root__"
        code = _CODE_BY_PYDANTIC_TYPE.get(item.get("type", ""), ValidationCode.MALFORMED_INPUT)
        context: dict[str, Any] = {}
        if code is ValidationCode.TOO_LONG:
            context["max_length"] = NAME_MAX_LENGTH
        errors.append(FieldError(field_name, code, item.get("msg", "Invalid value"), context))
    return errors
