"""
Schedule Conflict Detection
===========================

Two schedules conflict when they share a date, a weekday *and* a time slot.
Each dimension is tested in turn and a schedule is dropped as soon as one
dimension is disjoint. Priority plays no part here; an overlap is rejected
whatever the priorities are.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from signage.domain.schedules.intervals import ScheduleInterval
from signage.domain.schedules.schedule_entity import PlaylistSchedule

logger = logging.getLogger(__name__)


@dataclass
class OverrideAnalysis:
    """Conflicts split by whether the candidate's priority can displace them."""

    can_override: list[PlaylistSchedule] = field(default_factory=list)
    blocked_by: list[PlaylistSchedule] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.blocked_by)

    def to_dict(self) -> dict[str, Any]:
        def _entry(schedule: PlaylistSchedule, allowed: bool) -> dict[str, Any]:
            return {
                "schedule_id": schedule.schedule_id,
                "name": schedule.name,
                "priority": schedule.priority,
                "can_override": allowed,
            }

        return {
            "can_override": [_entry(s, True) for s in self.can_override],
            "blocked_by": [_entry(s, False) for s in self.blocked_by],
            "has_conflicts": self.has_conflicts,
        }


def _as_interval(candidate: PlaylistSchedule | ScheduleInterval) -> ScheduleInterval:
    if isinstance(candidate, ScheduleInterval):
        return candidate
    return candidate.interval


def detect_conflicts(
    candidate: PlaylistSchedule | ScheduleInterval,
    existing: Iterable[PlaylistSchedule],
    *,
    exclude_schedule_id: int | None = None,
) -> list[PlaylistSchedule]:
    """
    Return the schedules in *existing* that overlap *candidate*.

    Args:
        candidate: Schedule (or its normalized interval) being validated
        existing: Active schedules of the same tenant
        exclude_schedule_id: Schedule ID to skip (the one being updated)

    Returns:
        Conflicting schedules, in the order they appear in *existing*
    """
    interval = _as_interval(candidate)
    conflicts: list[PlaylistSchedule] = []

    for other in existing:
        if exclude_schedule_id is not None and other.schedule_id == exclude_schedule_id:
            continue
        if interval.overlaps(other.interval):
            conflicts.append(other)

    if conflicts:
        logger.debug(
            "Schedule overlaps %d existing schedule(s): %s",
            len(conflicts),
            [s.schedule_id for s in conflicts],
        )
    return conflicts


def analyze_override(priority: int, conflicts: Iterable[PlaylistSchedule]) -> OverrideAnalysis:
    """Split *conflicts* into those a schedule of *priority* may displace."""
    analysis = OverrideAnalysis()
    for conflict in conflicts:
        if priority > conflict.priority:
            analysis.can_override.append(conflict)
        else:
            analysis.blocked_by.append(conflict)
    return analysis
