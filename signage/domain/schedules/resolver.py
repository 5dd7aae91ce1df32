"""
Active Schedule Resolver
========================

Answers "which playlist plays right now?" for a tenant. Several schedules may
contain the same instant (only overlapping *active* schedules are rejected,
and a schedule may be re-enabled later), so the winner is the one with the
highest priority; equal priorities fall back to the oldest schedule (lowest
ID) so the answer is stable.
"""

from __future__ import annotations

import datetime
import logging
from typing import Iterable

from signage.domain.schedules.schedule_entity import PlaylistSchedule

logger = logging.getLogger(__name__)


class ActiveScheduleResolver:
    """Resolve the schedule that applies at a given local instant."""

    @staticmethod
    def _rank(schedule: PlaylistSchedule) -> tuple[int, int]:
        schedule_id = schedule.schedule_id if schedule.schedule_id is not None else 0
        return (-schedule.priority, schedule_id)

    def matching(self, schedules: Iterable[PlaylistSchedule], at: datetime.datetime) -> list[PlaylistSchedule]:
        """Active schedules containing *at*, best candidate first."""
        matches = [s for s in schedules if s.is_active_at(at)]
        matches.sort(key=self._rank)
        return matches

    def resolve(
        self,
        schedules: Iterable[PlaylistSchedule],
        at: datetime.datetime,
    ) -> PlaylistSchedule | None:
        """
        Pick the schedule that applies at *at*.

        Args:
            schedules: Candidate schedules of one tenant
            at: Wall-clock instant on the players' clock

        Returns:
            The winning schedule, or None when nothing is scheduled
        """
        matches = self.matching(schedules, at)
        if not matches:
            return None
        if len(matches) > 1:
            logger.debug(
                "%d schedules match %s, using schedule %s (priority %s)",
                len(matches),
                at.isoformat(),
                matches[0].schedule_id,
                matches[0].priority,
            )
        return matches[0]
