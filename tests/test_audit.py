"""Tests for whole-roster audits."""

import math

import pytest

from timetable_conflicts.audit import run_audit
from timetable_conflicts.config import Snapshot
from timetable_conflicts.conflicts import AutoResolveOptions
from timetable_conflicts.constraints import ConstraintRegistry
from timetable_conflicts.models import FacultyPreferences


@pytest.fixture
def snapshot(faculty, rooms, courses, students):
    """Snapshot factory around the shared reference tables."""

    def _snapshot(slots):
        return Snapshot(
            slots=slots, faculty=faculty, rooms=rooms, courses=courses, students=students
        )

    return _snapshot


class TestRunAudit:
    """Tests for run_audit."""

    def test_clean_roster(self, snapshot, make_slot):
        report = run_audit(snapshot([make_slot("s1")]))
        assert report.is_clean
        assert report.slot_count == 1
        assert report.violation_score == 0
        assert report.resolution is None

    def test_preference_violation_is_scored(self, snapshot, make_slot, faculty):
        faculty[0].preferences = FacultyPreferences(no_afternoons=True)
        registry = ConstraintRegistry()
        slots = [make_slot("s1", start_time="13:00", end_time="14:00")]

        report = run_audit(snapshot(slots), registry=registry)

        assert report.is_clean
        assert report.violation_score == 25
        assert registry.dynamic_ids == set()
        assert len(registry) == 7

    def test_hard_violation_scores_infinite(self, snapshot, make_slot):
        slots = [make_slot("s1"), make_slot("s2", course_id="c5", faculty_id="f2", year_level=2)]
        report = run_audit(snapshot(slots))
        assert math.isinf(report.violation_score)
        assert report.to_dict()["violationScore"] is None

    def test_counts_by_type_and_severity(self, snapshot, make_slot):
        slots = [
            make_slot("s1", room_id="r4"),
            make_slot("s2", course_id="c5", faculty_id="f2", room_id="r4", year_level=2),
        ]
        report = run_audit(snapshot(slots))
        assert report.by_type == {"room": 1, "capacity": 2}
        assert list(report.by_severity) == ["high", "medium"]
        assert report.by_severity["medium"] == 2

    def test_inactive_slots_not_counted(self, snapshot, make_slot):
        report = run_audit(snapshot([make_slot("s1"), make_slot("s2", is_active=False)]))
        assert report.slot_count == 1

    def test_resolve(self, snapshot, make_slot):
        slots = [make_slot("s1"), make_slot("s2", course_id="c5", room_id="r2", year_level=2)]
        report = run_audit(
            snapshot(slots), resolve=True, options=AutoResolveOptions(max_relaxation=0)
        )
        assert report.resolution is not None
        assert report.resolution.success
        data = report.to_dict()
        assert data["conflictCount"] == 1
        assert data["resolution"]["successRate"] == 1.0
