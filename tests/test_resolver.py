"""Tests for whole-schedule conflict detection."""

import pytest

from timetable_conflicts.config import EngineSettings
from timetable_conflicts.conflicts import ConflictSeverity, ConflictType
from timetable_conflicts.constraints import ConstraintRegistry
from timetable_conflicts.exceptions import InvalidInputError
from timetable_conflicts.models import GroupType, LessonType
from timetable_conflicts.resolver import ScheduleResolver, overlapping_pairs


@pytest.fixture
def resolver():
    return ScheduleResolver()


@pytest.fixture
def audit(resolver, courses, faculty, rooms):
    """Run detection over a roster with the shared reference tables."""

    def _audit(slots, students=()):
        return resolver.detect_conflicts(slots, courses, faculty, rooms, list(students))

    return _audit


class TestOverlappingPairs:
    """Tests for overlapping_pairs."""

    def test_pairs_keep_roster_order(self, make_slot):
        slots = [
            make_slot("a"),
            make_slot("b", day_of_week=2),
            make_slot("c", start_time="09:30", end_time="10:30"),
            make_slot("d", start_time="10:00", end_time="11:00"),
        ]
        pairs = [(x.id, y.id) for x, y in overlapping_pairs(slots)]
        assert pairs == [("a", "c"), ("c", "d")]

    def test_other_terms_never_pair(self, make_slot):
        slots = [make_slot("a"), make_slot("b", academic_year="2025-2026")]
        assert overlapping_pairs(slots) == []


class TestResourceChecks:
    """Tests for room, faculty and course double-booking."""

    def test_room_conflict(self, audit, make_slot):
        slots = [
            make_slot("s1"),
            make_slot(
                "s2", course_id="c2", faculty_id="f2", start_time="09:30", end_time="10:30"
            ),
        ]
        conflicts = audit(slots)
        assert len(conflicts) == 1
        conflict = conflicts[0]
        assert conflict.id == "room-conflict-s1-s2"
        assert conflict.type == ConflictType.ROOM
        assert conflict.severity == ConflictSeverity.HIGH
        assert conflict.conflict_score == 1000
        assert conflict.affected_slots == ["s1", "s2"]
        assert conflict.details == (
            "Room 101 has overlapping classes: Calculus (09:00-10:00) and "
            "Programming (09:30-10:30) on Monday"
        )
        assert [c.id for c in conflict.constraints] == ["no-room-overlap"]
        assert conflict.resolution_suggestions
        assert conflict.auto_resolvable

    def test_faculty_conflict(self, audit, make_slot):
        slots = [make_slot("s1"), make_slot("s2", course_id="c2", room_id="r2")]
        conflicts = audit(slots)
        assert [c.id for c in conflicts] == ["faculty-conflict-s1-s2"]
        assert conflicts[0].details == (
            "Dr. Alice Smith is scheduled for Calculus and Programming at overlapping "
            "times on Monday"
        )

    def test_course_conflict_has_no_constraint(self, audit, make_slot):
        slots = [make_slot("s1"), make_slot("s2", faculty_id="f2", room_id="r2")]
        conflicts = audit(slots)
        assert [c.id for c in conflicts] == ["course-conflict-s1-s2"]
        assert conflicts[0].conflict_score == 800
        assert conflicts[0].constraints == []

    def test_back_to_back_is_not_a_conflict(self, audit, make_slot):
        slots = [
            make_slot("s1"),
            make_slot("s2", course_id="c2", start_time="10:00", end_time="11:00"),
        ]
        assert audit(slots) == []

    def test_inactive_and_other_semester_ignored(self, audit, make_slot):
        slots = [
            make_slot("s1"),
            make_slot("s2", is_active=False),
            make_slot("s3", semester=2),
        ]
        assert audit(slots) == []


class TestGroupExemptions:
    """Tests for joint and split exemptions."""

    def test_joint_session_shares_everything(self, audit, make_slot, students):
        slots = [
            make_slot("s1", group_id="j1", group_type=GroupType.JOINT),
            make_slot("s2", course_id="c2", group_id="j1", group_type=GroupType.JOINT),
        ]
        assert audit(slots, students) == []

    def test_split_groups_share_course_not_rooms(self, audit, make_slot):
        slots = [
            make_slot("s1", group_id="sp1", group_type=GroupType.SPLIT),
            make_slot(
                "s2", faculty_id="f2", room_id="r2", group_id="sp1", group_type=GroupType.SPLIT
            ),
        ]
        assert audit(slots) == []

    def test_split_groups_still_need_own_room(self, audit, make_slot):
        slots = [
            make_slot("s1", group_id="sp1", group_type=GroupType.SPLIT),
            make_slot("s2", faculty_id="f2", group_id="sp1", group_type=GroupType.SPLIT),
        ]
        assert [c.type for c in audit(slots)] == [ConflictType.ROOM]

    def test_different_joint_groups_conflict(self, audit, make_slot):
        slots = [
            make_slot("s1", group_id="j1", group_type=GroupType.JOINT),
            make_slot("s2", course_id="c2", group_id="j2", group_type=GroupType.JOINT),
        ]
        types = {c.type for c in audit(slots)}
        assert types == {ConflictType.ROOM, ConflictType.FACULTY}


class TestRoomChecks:
    """Tests for room type and capacity checks."""

    def test_lab_in_lecture_room(self, audit, make_slot):
        conflicts = audit([make_slot("s1", course_id="c3")])
        assert [c.id for c in conflicts] == ["room-type-conflict-s1"]
        conflict = conflicts[0]
        assert conflict.severity == ConflictSeverity.MEDIUM
        assert conflict.conflict_score == 500
        assert conflict.details == (
            "Physics Lab (Lab) is scheduled in Room 101 which is a Lecture room"
        )
        assert conflict.resolution_suggestions[0].id == "change-room-s1-to-r3"

    def test_lab_lesson_in_lecture_room(self, audit, make_slot):
        conflicts = audit([make_slot("s1", lesson_type=LessonType.LAB)])
        assert [c.type for c in conflicts] == [ConflictType.ROOM_TYPE]

    def test_lecture_in_lab_room(self, audit, make_slot):
        conflicts = audit([make_slot("s1", room_id="r3")])
        by_type = {c.type: c for c in conflicts}
        assert by_type[ConflictType.ROOM_TYPE].severity == ConflictSeverity.LOW
        assert by_type[ConflictType.ROOM_TYPE].conflict_score == 200
        assert by_type[ConflictType.CAPACITY].conflict_score == 400

    def test_small_lecture_room(self, audit, make_slot):
        conflicts = audit([make_slot("s1", room_id="r4")])
        assert [c.id for c in conflicts] == ["capacity-conflict-s1"]
        assert conflicts[0].details == (
            "Seminar Room has capacity of 15 which may be insufficient for Calculus"
        )

    def test_small_room_fine_for_tutorial(self, audit, make_slot):
        assert audit([make_slot("s1", room_id="r4", lesson_type=LessonType.TUTORIAL)]) == []

    def test_unknown_room_or_course_skipped(self, audit, make_slot):
        slots = [make_slot("s1", room_id="r99"), make_slot("s2", course_id="c99", day_of_week=2)]
        assert audit(slots) == []


class TestScheduleAndStudentChecks:
    """Tests for tight schedules and student enrolment overlaps."""

    def test_back_to_back_in_different_buildings(self, audit, make_slot):
        slots = [
            make_slot("s1"),
            make_slot(
                "s2",
                course_id="c3",
                room_id="r3",
                lesson_type=LessonType.LAB,
                start_time="10:00",
                end_time="11:00",
            ),
        ]
        conflicts = audit(slots)
        assert [c.id for c in conflicts] == ["schedule-conflict-s1-s2"]
        conflict = conflicts[0]
        assert conflict.severity == ConflictSeverity.LOW
        assert conflict.details == (
            "Dr. Alice Smith has consecutive classes in different buildings on Monday"
        )
        assert [s.id for s in conflict.resolution_suggestions] == [
            "relax-constraint-schedule-conflict-s1-s2"
        ]

    def test_same_building_is_fine(self, audit, make_slot):
        slots = [
            make_slot("s1"),
            make_slot("s2", course_id="c2", room_id="r2", start_time="10:00", end_time="11:00"),
        ]
        assert audit(slots) == []

    def test_student_overlap(self, audit, make_slot, students):
        slots = [
            make_slot("s1"),
            make_slot("s2", course_id="c2", faculty_id="f2", room_id="r2"),
        ]
        conflicts = audit(slots, students)
        assert [c.id for c in conflicts] == ["student-conflict-st1-s1-s2"]
        assert conflicts[0].conflict_score == 900
        assert conflicts[0].details == (
            "Dana Lee is enrolled in overlapping courses: Calculus and Programming on Monday"
        )


class TestDetectConflicts:
    """Tests for ordering, determinism and input checks."""

    def test_sorted_by_score(self, audit, make_slot):
        slots = [
            make_slot("s1", room_id="r4"),
            make_slot("s2", course_id="c2", faculty_id="f2", room_id="r4"),
        ]
        scores = [c.conflict_score for c in audit(slots)]
        assert scores == sorted(scores, reverse=True)
        assert scores[0] == 1000

    def test_deterministic(self, audit, make_slot, students):
        slots = [
            make_slot("s1"),
            make_slot("s2", course_id="c2", room_id="r2"),
            make_slot("s3", course_id="c3", faculty_id="f2"),
            make_slot("s4", room_id="r4", start_time="10:00", end_time="11:00"),
        ]
        first = [c.to_dict() for c in audit(slots, students)]
        second = [c.to_dict() for c in audit(slots, students)]
        assert first == second
        assert first

    def test_missing_array_raises(self, resolver, courses, faculty, rooms):
        with pytest.raises(InvalidInputError) as excinfo:
            resolver.detect_conflicts([], courses, faculty, rooms, None)
        assert excinfo.value.field == "students"

    def test_settings_come_from_registry(self):
        settings = EngineSettings(min_lecture_capacity=10)
        resolver = ScheduleResolver(ConstraintRegistry(settings))
        assert resolver.settings is settings
        assert resolver.suggestion_generator.settings is settings


class TestLongSessions:
    """Tests for sessions that fill most of the teaching day."""

    def test_full_day_double_booking(self, audit, make_slot):
        slots = [
            make_slot("s1", start_time="08:00", end_time="17:00"),
            make_slot(
                "s2",
                course_id="c5",
                faculty_id="f2",
                year_level=2,
                start_time="08:00",
                end_time="17:00",
            ),
        ]
        conflicts = audit(slots)
        room = [c for c in conflicts if c.type == ConflictType.ROOM]
        assert [c.id for c in room] == ["room-conflict-s1-s2"]
        for suggestion in room[0].resolution_suggestions:
            assert "-time-" not in suggestion.id
            for action in suggestion.actions:
                assert action.new_end_time in (None, "17:00")
