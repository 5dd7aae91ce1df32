"""
Tests for schedule conflict detection.

Covers:
- Weekday, date and time dimensions (AND semantics)
- Touching boundaries and overnight wrap
- Self-exclusion and input-order preservation
- Override analysis by priority
"""

from __future__ import annotations

import pytest

from signage.domain.schedules import PlaylistSchedule
from signage.domain.schedules.conflicts import analyze_override, detect_conflicts


def _schedule(schedule_id=None, name="Schedule", **fields) -> PlaylistSchedule:
    fields.setdefault("tenant_id", 1)
    fields.setdefault("playlist_id", 1)
    return PlaylistSchedule(schedule_id=schedule_id, name=name, **fields)


class TestDetectConflicts:
    @pytest.mark.parametrize(
        "times",
        [("08:00", "12:00"), ("22:00", "02:00"), (None, None), ("00:00", "00:00")],
    )
    def test_disjoint_weekdays_never_conflict(self, times):
        start, end = times
        existing = _schedule(1, days_of_week=[1, 3, 5], start_time=start, end_time=end)
        candidate = _schedule(days_of_week=[0, 2, 4, 6], start_time=start, end_time=end)
        assert detect_conflicts(candidate, [existing]) == []

    def test_touching_windows_do_not_conflict(self):
        existing = _schedule(1, days_of_week=[1], start_time="09:00", end_time="10:00")
        candidate = _schedule(days_of_week=[1], start_time="10:00", end_time="11:00")
        assert detect_conflicts(candidate, [existing]) == []

    def test_overlapping_windows_conflict(self):
        existing = _schedule(1, days_of_week=[1], start_time="09:00", end_time="10:00")
        candidate = _schedule(days_of_week=[1], start_time="09:30", end_time="10:30")
        assert detect_conflicts(candidate, [existing]) == [existing]

    def test_overnight_window_conflicts_with_early_morning(self):
        existing = _schedule(1, days_of_week=[5], start_time="22:00", end_time="02:00")
        candidate = _schedule(days_of_week=[5], start_time="01:00", end_time="03:00")
        assert detect_conflicts(candidate, [existing]) == [existing]

    def test_overnight_window_touching_early_morning(self):
        existing = _schedule(1, start_time="22:00", end_time="02:00")
        candidate = _schedule(start_time="02:00", end_time="04:00")
        assert detect_conflicts(candidate, [existing]) == []

    def test_full_day_window_conflicts_with_any_window(self):
        existing = _schedule(1, start_time="00:00", end_time="00:00")
        candidate = _schedule(start_time="13:00", end_time="13:05")
        assert detect_conflicts(candidate, [existing]) == [existing]

    def test_disjoint_date_ranges_do_not_conflict(self):
        existing = _schedule(1, start_date="2025-06-01", end_date="2025-06-10")
        candidate = _schedule(start_date="2025-06-11", end_date="2025-06-20")
        assert detect_conflicts(candidate, [existing]) == []

    def test_shared_single_day_conflicts(self):
        existing = _schedule(1, start_date="2025-06-01", end_date="2025-06-10")
        candidate = _schedule(start_date="2025-06-10")
        assert detect_conflicts(candidate, [existing]) == [existing]

    def test_open_ended_ranges_overlap(self):
        existing = _schedule(1, end_date="2025-06-10")
        candidate = _schedule(start_date="2025-01-01")
        assert detect_conflicts(candidate, [existing]) == [existing]

    def test_self_exclusion(self):
        stored = _schedule(7, days_of_week=[1], start_time="08:00", end_time="12:00")
        edited = _schedule(7, days_of_week=[1], start_time="08:30", end_time="12:00")
        assert detect_conflicts(edited, [stored], exclude_schedule_id=7) == []
        assert detect_conflicts(edited, [stored]) == [stored]

    def test_result_preserves_input_order(self):
        third = _schedule(3, name="C", start_time="08:00", end_time="09:00")
        first = _schedule(1, name="A", start_time="08:30", end_time="09:30")
        unrelated = _schedule(2, name="B", start_time="12:00", end_time="13:00")
        candidate = _schedule(start_time="08:00", end_time="10:00")

        conflicts = detect_conflicts(candidate, [third, unrelated, first])
        assert [c.name for c in conflicts] == ["C", "A"]

    def test_priority_does_not_matter(self):
        existing = _schedule(1, priority=1, start_time="08:00", end_time="12:00")
        candidate = _schedule(priority=10, start_time="09:00", end_time="10:00")
        assert detect_conflicts(candidate, [existing]) == [existing]

    def test_scenario_disjoint_days_then_overlap(self):
        s1 = _schedule(1, name="S1", days_of_week=[1, 3, 5], start_time="08:00", end_time="12:00", priority=5)
        s2 = _schedule(name="S2", days_of_week=[2, 4], start_time="08:00", end_time="12:00", priority=3)
        s3 = _schedule(name="S3", days_of_week=[1], start_time="09:00", end_time="10:00", priority=7)

        assert detect_conflicts(s2, [s1]) == []
        assert [c.name for c in detect_conflicts(s3, [s1])] == ["S1"]


class TestHasConflictWith:
    def test_other_tenant_never_conflicts(self):
        a = _schedule(1, tenant_id=1, start_time="08:00", end_time="12:00")
        b = _schedule(2, tenant_id=2, start_time="08:00", end_time="12:00")
        assert not a.has_conflict_with(b)

    def test_same_tenant_overlap(self):
        a = _schedule(1, start_time="08:00", end_time="12:00")
        b = _schedule(2, start_time="11:59", end_time="12:30")
        assert a.has_conflict_with(b)


class TestAnalyzeOverride:
    def test_lower_priority_can_be_overridden(self):
        low = _schedule(1, name="Low", priority=3)
        analysis = analyze_override(5, [low])
        assert analysis.can_override == [low]
        assert analysis.blocked_by == []
        assert analysis.has_conflicts is False

    @pytest.mark.parametrize("existing_priority", [5, 8])
    def test_equal_or_higher_priority_blocks(self, existing_priority):
        other = _schedule(1, name="Other", priority=existing_priority)
        analysis = analyze_override(5, [other])
        assert analysis.blocked_by == [other]
        assert analysis.has_conflicts is True

    def test_to_dict(self):
        low = _schedule(1, name="Low", priority=2)
        high = _schedule(2, name="High", priority=9)
        payload = analyze_override(5, [low, high]).to_dict()

        assert payload == {
            "can_override": [{"schedule_id": 1, "name": "Low", "priority": 2, "can_override": True}],
            "blocked_by": [{"schedule_id": 2, "name": "High", "priority": 9, "can_override": False}],
            "has_conflicts": True,
        }

    def test_no_conflicts(self):
        analysis = analyze_override(1, [])
        assert analysis.to_dict() == {"can_override": [], "blocked_by": [], "has_conflicts": False}
