"""
Schemas Module
==============

Pydantic models for request validation.
"""

from signage.schemas.schedule import (
    BulkActionRequest,
    PreviewOptions,
    ScheduleIdentityFields,
    field_errors_from_pydantic,
)

__all__ = [
    "BulkActionRequest",
    "PreviewOptions",
    "ScheduleIdentityFields",
    "field_errors_from_pydantic",
]
