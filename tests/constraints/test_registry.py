"""Tests for the constraint registry and its evaluators."""

import math

import pytest

from timetable_conflicts.constraints import (
    Constraint,
    ConstraintCategory,
    ConstraintContext,
    ConstraintRegistry,
    ConstraintType,
)
from timetable_conflicts.exceptions import InvalidConstraintError
from timetable_conflicts.models import FacultyPreferences, GroupType, LessonType
from timetable_conflicts.utils import index_by_id


@pytest.fixture
def registry():
    return ConstraintRegistry()


@pytest.fixture
def context(faculty, rooms, courses):
    """Build an evaluation context for one slot of a roster."""

    def _context(slot, all_slots=None):
        return ConstraintContext(
            slot=slot,
            faculty=index_by_id(faculty).get(slot.faculty_id),
            room=index_by_id(rooms).get(slot.room_id),
            course=index_by_id(courses).get(slot.course_id),
            all_slots=all_slots if all_slots is not None else [slot],
            rooms=rooms,
        )

    return _context


@pytest.fixture
def choosy(faculty):
    """Dr. Smith with every preference set."""
    member = faculty[0]
    member.preferences = FacultyPreferences(
        no_afternoons=True,
        preferred_days=[1, 2],
        max_daily_hours=4,
        no_back_to_back=True,
        preferred_rooms=["r1"],
    )
    return member


class TestCatalog:
    """Tests for adding and removing constraints."""

    def test_defaults(self, registry):
        assert [c.id for c in registry.list()] == [
            "no-room-overlap",
            "no-faculty-overlap",
            "no-student-overlap",
            "room-type-match",
            "room-capacity",
            "building-distance",
            "faculty-workload",
        ]
        assert all(math.isinf(c.relaxation_penalty) for c in registry.list() if c.is_hard)
        assert registry.get("room-capacity").relaxation_penalty == 150

    def test_hard_constraint_cannot_relax(self, registry):
        constraint = Constraint(
            id="no-exam-overlap",
            type=ConstraintType.HARD,
            category=ConstraintCategory.ROOM,
            description="",
            importance=1000,
            can_relax=True,
        )
        with pytest.raises(InvalidConstraintError):
            registry.add(constraint)
        assert "no-exam-overlap" not in registry

    def test_dynamic_constraints_are_cleared(self, registry):
        registry.add(
            Constraint(
                id="dynamic-lunch-break",
                type=ConstraintType.SOFT,
                category=ConstraintCategory.FACULTY,
                description="Keep 12:00-13:00 free",
                importance=50,
                can_relax=True,
                relaxation_penalty=10,
            )
        )
        assert registry.dynamic_ids == {"dynamic-lunch-break"}

        registry.clear_dynamic()

        assert "dynamic-lunch-break" not in registry
        assert registry.dynamic_ids == set()
        assert len(registry) == 7

    def test_remove(self, registry):
        registry.remove("faculty-workload")
        registry.remove("unknown")
        assert len(registry) == 6

    def test_register_faculty_preferences(self, registry, choosy):
        added = registry.register_faculty_preferences(choosy)

        assert [c.id for c in added] == [
            "pref-f1-no-afternoons",
            "pref-f1-preferred-days",
            "pref-f1-max-daily-hours",
            "pref-f1-no-back-to-back",
            "pref-f1-preferred-rooms",
        ]
        assert registry.dynamic_ids == {c.id for c in added}
        days = registry.get("pref-f1-preferred-days")
        assert days.category == ConstraintCategory.PREFERENCE
        assert days.relaxation_penalty == 25
        assert days.params == {"rule": "preferred-days", "faculty_id": "f1", "days": [1, 2]}
        hours = registry.get("pref-f1-max-daily-hours")
        assert hours.description == "Dr. Alice Smith: At most 4 teaching hours per day"

    def test_unknown_constraint_is_satisfied(self, registry, context, make_slot):
        result = registry.evaluate("no-such-rule", context(make_slot("s1")))
        assert result.satisfied
        assert result.penalty == 0


class TestHardEvaluators:
    """Tests for the overlap evaluators."""

    def test_room_overlap(self, registry, context, make_slot):
        slot = make_slot("s1")
        roster = [slot, make_slot("s2", course_id="c5", faculty_id="f2", year_level=2)]
        result = registry.evaluate("no-room-overlap", context(slot, roster))
        assert not result.satisfied
        assert math.isinf(result.penalty)
        assert result.details == "Room is already occupied at this time"

    def test_joint_group_shares_room(self, registry, context, make_slot):
        slot = make_slot("s1", group_id="j1", group_type=GroupType.JOINT)
        other = make_slot("s2", course_id="c2", group_id="j1", group_type=GroupType.JOINT)
        for constraint_id in ("no-room-overlap", "no-faculty-overlap", "no-student-overlap"):
            assert registry.evaluate(constraint_id, context(slot, [slot, other])).satisfied

    def test_faculty_overlap(self, registry, context, make_slot):
        slot = make_slot("s1")
        roster = [slot, make_slot("s2", course_id="c5", room_id="r2", year_level=2)]
        assert not registry.evaluate("no-faculty-overlap", context(slot, roster)).satisfied

    def test_student_overlap(self, registry, context, make_slot):
        slot = make_slot("s1")
        roster = [slot, make_slot("s2", course_id="c2", faculty_id="f2", room_id="r2")]
        result = registry.evaluate("no-student-overlap", context(slot, roster))
        assert not result.satisfied
        assert result.details == "Year 1 students already have c2 at this time"

    def test_back_to_back_is_not_an_overlap(self, registry, context, make_slot):
        slot = make_slot("s1")
        roster = [slot, make_slot("s2", start_time="10:00", end_time="11:00")]
        assert registry.evaluate("no-room-overlap", context(slot, roster)).satisfied


class TestSoftEvaluators:
    """Tests for the seeded soft evaluators."""

    def test_room_type(self, registry, context, make_slot):
        result = registry.evaluate("room-type-match", context(make_slot("s1", course_id="c3")))
        assert not result.satisfied
        assert result.penalty == 200
        assert result.details == "Physics Lab requires Lab room"

    def test_lecture_in_lab_room(self, registry, context, make_slot):
        result = registry.evaluate("room-type-match", context(make_slot("s1", room_id="r3")))
        assert result.details == "Calculus requires Lecture room"

    def test_room_capacity(self, registry, context, make_slot):
        result = registry.evaluate("room-capacity", context(make_slot("s1", room_id="r4")))
        assert not result.satisfied
        assert result.penalty == 150

        tutorial = make_slot("s1", room_id="r4", lesson_type=LessonType.TUTORIAL)
        assert registry.evaluate("room-capacity", context(tutorial)).satisfied

    def test_building_distance_charges_earlier_slot(self, registry, context, make_slot):
        first = make_slot("s1")
        second = make_slot(
            "s2", course_id="c3", room_id="r3", start_time="10:00", end_time="11:00"
        )
        roster = [first, second]

        result = registry.evaluate("building-distance", context(first, roster))
        assert result.penalty == 50
        assert result.details == "Faculty must move from A to B at 10:00"
        assert registry.evaluate("building-distance", context(second, roster)).satisfied

    def test_workload(self, registry, context, make_slot):
        morning = make_slot("s1", start_time="08:00", end_time="12:00")
        afternoon = make_slot("s2", course_id="c5", start_time="13:00", end_time="16:00")
        result = registry.evaluate("faculty-workload", context(morning, [morning, afternoon]))
        assert result.penalty == 100
        assert result.details == "Faculty teaches 7 hours on this day (limit 6)"

    def test_workload_limit_from_preferences(self, registry, context, make_slot, faculty):
        faculty[0].preferences = FacultyPreferences(max_daily_hours=8)
        morning = make_slot("s1", start_time="08:00", end_time="12:00")
        afternoon = make_slot("s2", course_id="c5", start_time="13:00", end_time="16:00")
        result = registry.evaluate("faculty-workload", context(morning, [morning, afternoon]))
        assert result.satisfied


class TestPreferenceEvaluators:
    """Tests for faculty preference evaluators."""

    def test_only_owner_is_charged(self, registry, context, make_slot, choosy):
        registry.register_faculty_preferences(choosy)
        own = make_slot("s1", start_time="13:00", end_time="14:00")
        other = make_slot("s2", faculty_id="f2", start_time="13:00", end_time="14:00")

        result = registry.evaluate("pref-f1-no-afternoons", context(own))
        assert result.penalty == 25
        assert registry.evaluate("pref-f1-no-afternoons", context(other)).satisfied

    def test_days_and_rooms(self, registry, context, make_slot, choosy):
        registry.register_faculty_preferences(choosy)
        slot = make_slot("s1", day_of_week=3, room_id="r2")
        assert not registry.evaluate("pref-f1-preferred-days", context(slot)).satisfied
        assert not registry.evaluate("pref-f1-preferred-rooms", context(slot)).satisfied
        assert registry.evaluate("pref-f1-preferred-days", context(make_slot("s2"))).satisfied

    def test_max_daily_hours(self, registry, context, make_slot, choosy):
        registry.register_faculty_preferences(choosy)
        slot = make_slot("s1", start_time="08:00", end_time="13:00")
        result = registry.evaluate("pref-f1-max-daily-hours", context(slot))
        assert result.details == "Faculty prefers at most 4 teaching hours per day"

    def test_no_back_to_back_charges_earlier_slot(self, registry, context, make_slot, choosy):
        registry.register_faculty_preferences(choosy)
        first = make_slot("s1")
        second = make_slot("s2", course_id="c5", start_time="10:00", end_time="11:00")
        roster = [first, second]
        assert not registry.evaluate("pref-f1-no-back-to-back", context(first, roster)).satisfied
        assert registry.evaluate("pref-f1-no-back-to-back", context(second, roster)).satisfied


class TestViolationScore:
    """Tests for total_violation_score."""

    def test_sums_soft_penalties(self, registry, make_slot, faculty, rooms, courses):
        slots = [make_slot("s1", room_id="r4"), make_slot("s2", is_active=False, room_id="r4")]
        assert registry.total_violation_score(slots, faculty, rooms, courses) == 150

    def test_clean_roster_scores_zero(self, registry, roster, faculty, rooms, courses):
        assert registry.total_violation_score(roster, faculty, rooms, courses) == 0

    def test_hard_violation_is_infinite(self, registry, make_slot, faculty, rooms, courses):
        slots = [make_slot("s1"), make_slot("s2", faculty_id="f2", course_id="c5", year_level=2)]
        score = registry.total_violation_score(slots, faculty, rooms, courses)
        assert math.isinf(score)
