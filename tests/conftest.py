"""Test fixtures for timetable conflict tests."""

import pytest

from timetable_conflicts.candidates import candidate_from_dict
from timetable_conflicts.models import Course, Faculty, Room, RoomType, Student, TimeSlot

ACADEMIC_YEAR = "2024-2025"


@pytest.fixture
def faculty():
    """Three faculty members without preferences."""
    return [
        Faculty(id="f1", first_name="Alice", last_name="Smith", title="Dr.", department_id="d1"),
        Faculty(id="f2", first_name="Bob", last_name="Jones", department_id="d1"),
        Faculty(id="f3", first_name="Carol", last_name="White", department_id="d2"),
    ]


@pytest.fixture
def rooms():
    """Two lecture rooms and a lab in building A/B, plus a small seminar room."""
    return [
        Room(id="r1", name="Room 101", capacity=60, type=RoomType.LECTURE, building="A"),
        Room(id="r2", name="Room 102", capacity=40, type=RoomType.LECTURE, building="A"),
        Room(id="r3", name="Lab 1", capacity=25, type=RoomType.LAB, building="B"),
        Room(id="r4", name="Seminar Room", capacity=15, type=RoomType.LECTURE, building="B"),
    ]


@pytest.fixture
def courses():
    """Courses of two departments and two year levels."""
    return [
        Course(id="c1", name="Calculus", code="MATH101", department_id="d1", year_level=1),
        Course(id="c2", name="Programming", code="CS101", department_id="d1", year_level=1),
        Course(id="c3", name="Physics Lab", code="PHY101L", department_id="d1", year_level=1),
        Course(id="c4", name="History", code="HIS101", department_id="d2", year_level=1),
        Course(id="c5", name="Algebra", code="MATH201", department_id="d1", year_level=2),
    ]


@pytest.fixture
def students():
    """A student enrolled in Calculus and Programming."""
    return [
        Student(
            id="st1", first_name="Dana", last_name="Lee", enrolled_courses=["c1", "c2"]
        )
    ]


@pytest.fixture
def make_slot():
    """Factory for roster slots; defaults to Calculus, Monday 09:00-10:00."""

    def _make(slot_id: str, **overrides) -> TimeSlot:
        values = {
            "id": slot_id,
            "course_id": "c1",
            "faculty_id": "f1",
            "room_id": "r1",
            "day_of_week": 1,
            "start_time": "09:00",
            "end_time": "10:00",
            "year_level": 1,
            "department_id": "d1",
            "academic_year": ACADEMIC_YEAR,
            "semester": 1,
        }
        values.update(overrides)
        return TimeSlot(**values)

    return _make


@pytest.fixture
def make_candidate():
    """Factory for candidate submissions from camelCase overrides."""

    def _make(**overrides):
        data = {
            "operation": "add",
            "courseId": "c2",
            "facultyId": "f2",
            "roomId": "r2",
            "departmentId": "d1",
            "dayOfWeek": 1,
            "startTime": "09:00",
            "endTime": "10:00",
            "academicYear": ACADEMIC_YEAR,
            "semester": 1,
            "yearLevel": 1,
        }
        data.update(overrides)
        return candidate_from_dict(data)

    return _make


@pytest.fixture
def roster(make_slot):
    """One Calculus lecture on Monday morning."""
    return [make_slot("s1")]
