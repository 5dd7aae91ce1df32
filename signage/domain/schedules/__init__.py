"""
Schedule Domain Module
======================

Playlist schedule model and the rules around it.

This module provides:
- PlaylistSchedule: recurring playlist activation rule of a tenant
- ScheduleInterval: normalized date x weekday x time-of-day interval
- detect_conflicts / analyze_override: overlap detection between schedules
- ActiveScheduleResolver: picks the schedule that applies at an instant
- ScheduleRepository: Protocol for schedule persistence
"""
from signage.domain.schedules.conflicts import OverrideAnalysis, analyze_override, detect_conflicts
from signage.domain.schedules.intervals import (
    ALL_DAYS,
    DateRange,
    ScheduleInterval,
    TimeWindow,
    normalize_date_range,
    normalize_days_of_week,
    normalize_time_window,
)
from signage.domain.schedules.repository import ScheduleRepository
from signage.domain.schedules.resolver import ActiveScheduleResolver
from signage.domain.schedules.schedule_entity import PlaylistSchedule

__all__ = [
    "ALL_DAYS",
    "ActiveScheduleResolver",
    "DateRange",
    "OverrideAnalysis",
    "PlaylistSchedule",
    "ScheduleInterval",
    "ScheduleRepository",
    "TimeWindow",
    "analyze_override",
    "detect_conflicts",
    "normalize_date_range",
    "normalize_days_of_week",
    "normalize_time_window",
]
