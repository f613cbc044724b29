"""Data models for timetable entities.

The entity store owns these records; the engine only receives request-scoped
copies. ``from_dict``/``to_dict`` use the camelCase shape of the store boundary.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Self


class _CaseInsensitiveEnum(str, Enum):
    """String enum that also accepts differently-cased values."""

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None


class GroupType(_CaseInsensitiveEnum):
    """How a slot relates to other slots sharing its group id."""

    REGULAR = "regular"
    SPLIT = "split"
    JOINT = "joint"


class LessonType(_CaseInsensitiveEnum):
    """Kind of teaching session."""

    LECTURE = "Lecture"
    TUTORIAL = "Tutorial"
    LAB = "Lab"
    WORKSHOP = "Workshop"
    EXAM = "Exam"
    SEMINAR = "Seminar"
    MEETING = "Meeting"
    OTHER = "Other"


class RoomType(_CaseInsensitiveEnum):
    """Kind of room."""

    LECTURE = "Lecture"
    TUTORIAL = "Tutorial"
    LAB = "Lab"
    COMPUTER = "Computer"
    WORKSHOP = "Workshop"


def _as_int(value: Any, default: int = 0) -> int:
    """Convert store values such as "2" or 2.0 to int."""
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (ValueError, TypeError):
        return default


def _as_list(value: Any) -> list[str]:
    """Normalize list-valued fields that may arrive as ';'-separated strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(";") if item.strip()]
    return [str(item) for item in value]


@dataclass
class TimeSlot:
    """One scheduled occurrence of a course."""

    id: str
    course_id: str
    faculty_id: str
    room_id: str
    day_of_week: int
    start_time: str
    end_time: str
    year_level: int = 1
    department_id: str = ""
    academic_year: str = ""
    semester: int = 1
    lesson_type: LessonType = LessonType.LECTURE
    group_id: str | None = None
    group_type: GroupType = GroupType.REGULAR
    group_name: str | None = None
    max_students: int | None = None
    joint_with: list[str] = field(default_factory=list)
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create a TimeSlot from an entity-store record."""
        max_students = data.get("maxStudents")
        return cls(
            id=str(data["id"]),
            course_id=str(data.get("courseId", "")),
            faculty_id=str(data.get("facultyId", "")),
            room_id=str(data.get("roomId", "")),
            day_of_week=_as_int(data.get("dayOfWeek")),
            start_time=str(data.get("startTime", "")),
            end_time=str(data.get("endTime", "")),
            year_level=_as_int(data.get("yearLevel"), 1),
            department_id=str(data.get("departmentId") or ""),
            academic_year=str(data.get("academicYear") or ""),
            semester=_as_int(data.get("semester"), 1),
            lesson_type=LessonType(data.get("type") or LessonType.LECTURE.value),
            group_id=data.get("groupId") or None,
            group_type=GroupType(data.get("groupType") or GroupType.REGULAR.value),
            group_name=data.get("groupName") or None,
            max_students=_as_int(max_students) if max_students not in (None, "") else None,
            joint_with=_as_list(data.get("jointWith")),
            is_active=bool(data.get("isActive", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to an entity-store record."""
        return {
            "id": self.id,
            "departmentId": self.department_id,
            "courseId": self.course_id,
            "facultyId": self.faculty_id,
            "roomId": self.room_id,
            "yearLevel": self.year_level,
            "dayOfWeek": self.day_of_week,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "type": self.lesson_type.value,
            "groupId": self.group_id,
            "groupType": self.group_type.value,
            "groupName": self.group_name,
            "maxStudents": self.max_students,
            "jointWith": list(self.joint_with),
            "academicYear": self.academic_year,
            "semester": self.semester,
            "isActive": self.is_active,
        }

    @property
    def label(self) -> str:
        """Short human-readable label, e.g. 'CS101 09:00-10:00'."""
        return f"{self.course_id} {self.start_time}-{self.end_time}"


@dataclass
class FacultyPreferences:
    """Scheduling preferences declared by a faculty member."""

    no_afternoons: bool = False
    preferred_days: list[int] = field(default_factory=list)
    max_daily_hours: float | None = None
    no_back_to_back: bool = False
    preferred_rooms: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Self:
        """Create preferences from a (possibly empty) record."""
        data = data or {}
        max_hours = data.get("maxDailyHours")
        return cls(
            no_afternoons=bool(data.get("noAfternoons", False)),
            preferred_days=[_as_int(d) for d in data.get("preferredDays") or []],
            max_daily_hours=float(max_hours) if max_hours not in (None, "") else None,
            no_back_to_back=bool(data.get("noBackToBack", False)),
            preferred_rooms=_as_list(data.get("preferredRooms")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "noAfternoons": self.no_afternoons,
            "preferredDays": list(self.preferred_days),
            "maxDailyHours": self.max_daily_hours,
            "noBackToBack": self.no_back_to_back,
            "preferredRooms": list(self.preferred_rooms),
        }

    @property
    def is_empty(self) -> bool:
        """True if no preference is set."""
        return not (
            self.no_afternoons
            or self.preferred_days
            or self.max_daily_hours
            or self.no_back_to_back
            or self.preferred_rooms
        )


@dataclass
class Faculty:
    """A teaching staff member."""

    id: str
    first_name: str
    last_name: str
    title: str = ""
    department_id: str = ""
    preferences: FacultyPreferences = field(default_factory=FacultyPreferences)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(
            id=str(data["id"]),
            first_name=str(data.get("firstName", "")),
            last_name=str(data.get("lastName", "")),
            title=str(data.get("title") or ""),
            department_id=str(data.get("departmentId") or ""),
            preferences=FacultyPreferences.from_dict(data.get("preferences")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "title": self.title,
            "departmentId": self.department_id,
            "preferences": self.preferences.to_dict(),
        }

    @property
    def display_name(self) -> str:
        """Name as shown in conflict messages, with title when known."""
        name = f"{self.first_name} {self.last_name}".strip()
        return f"{self.title} {name}" if self.title else name


@dataclass
class Room:
    """A bookable room."""

    id: str
    name: str
    capacity: int
    type: RoomType = RoomType.LECTURE
    building: str = ""
    code: str = ""
    department_id: str | None = None
    available: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            capacity=_as_int(data.get("capacity")),
            type=RoomType(data.get("type") or RoomType.LECTURE.value),
            building=str(data.get("building") or ""),
            code=str(data.get("code") or ""),
            department_id=data.get("departmentId") or None,
            available=bool(data.get("available", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "departmentId": self.department_id,
            "building": self.building,
            "capacity": self.capacity,
            "type": self.type.value,
            "available": self.available,
        }


@dataclass
class Course:
    """A course offering."""

    id: str
    name: str
    code: str = ""
    department_id: str = ""
    year_level: int = 1
    semester: int = 1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            code=str(data.get("code") or ""),
            department_id=str(data.get("departmentId") or ""),
            year_level=_as_int(data.get("yearLevel"), 1),
            semester=_as_int(data.get("semester"), 1),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "departmentId": self.department_id,
            "yearLevel": self.year_level,
            "semester": self.semester,
        }

    @property
    def is_lab(self) -> bool:
        """Courses are lab courses when their name says so."""
        return "lab" in self.name.lower()


@dataclass
class Student:
    """A student and the courses they are enrolled in."""

    id: str
    first_name: str = ""
    last_name: str = ""
    enrolled_courses: list[str] = field(default_factory=list)
    current_year: int = 1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(
            id=str(data["id"]),
            first_name=str(data.get("firstName", "")),
            last_name=str(data.get("lastName", "")),
            enrolled_courses=_as_list(data.get("enrolledCourses")),
            current_year=_as_int(data.get("currentYear"), 1),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "enrolledCourses": list(self.enrolled_courses),
            "currentYear": self.current_year,
        }

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.id
