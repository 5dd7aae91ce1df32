from __future__ import annotations

from datetime import datetime

from signage.domain.schedules import PlaylistSchedule
from signage.domain.schedules.resolver import ActiveScheduleResolver

# Tuesday 3 June 2025
TUESDAY_1AM = datetime(2025, 6, 3, 1, 0)


def _schedule(schedule_id, priority=1, **fields) -> PlaylistSchedule:
    return PlaylistSchedule(
        schedule_id=schedule_id,
        tenant_id=1,
        playlist_id=schedule_id,
        name=f"Schedule {schedule_id}",
        priority=priority,
        **fields,
    )


def test_overnight_tail_belongs_to_previous_weekday():
    monday_night = _schedule(1, days_of_week=[1], start_time="22:00", end_time="02:00")
    assert ActiveScheduleResolver().resolve([monday_night], TUESDAY_1AM) is monday_night


def test_nothing_scheduled():
    evening = _schedule(1, start_time="18:00", end_time="22:00")
    assert ActiveScheduleResolver().resolve([evening], TUESDAY_1AM) is None


def test_higher_priority_wins():
    low = _schedule(1, priority=5)
    high = _schedule(2, priority=7)
    assert ActiveScheduleResolver().resolve([low, high], TUESDAY_1AM) is high


def test_equal_priority_falls_back_to_smallest_id():
    newer = _schedule(9, priority=5)
    older = _schedule(4, priority=5)
    assert ActiveScheduleResolver().resolve([newer, older], TUESDAY_1AM) is older


def test_inactive_schedules_are_ignored():
    disabled = _schedule(1, priority=10, is_active=False)
    enabled = _schedule(2, priority=1)
    assert ActiveScheduleResolver().resolve([disabled, enabled], TUESDAY_1AM) is enabled


def test_matching_orders_best_first():
    a = _schedule(3, priority=2)
    b = _schedule(1, priority=8)
    c = _schedule(2, priority=2)
    outside = _schedule(4, priority=10, start_time="08:00", end_time="09:00")

    matches = ActiveScheduleResolver().matching([a, b, c, outside], TUESDAY_1AM)
    assert [s.schedule_id for s in matches] == [1, 2, 3]
