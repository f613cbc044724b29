"""Candidate submissions checked by the conflict detector.

A submission is one of three variants, so each operation's required fields are
part of its type:

- AddCandidate: one course/faculty/room triple
- JointCandidate: several courses taught together by one faculty in one room
- SplitCandidate: one course's cohort divided into sub-groups
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Mapping

from .exceptions import InvalidInputError
from .models import GroupType


class OperationMode(str, Enum):
    """Scheduling semantics of a submission."""

    ADD = "add"
    JOINT = "joint"
    SPLIT = "split"


@dataclass
class CandidateBase:
    """Fields shared by every submission variant."""

    day_of_week: int | None
    start_time: str | None
    end_time: str | None
    academic_year: str | None
    semester: int | str | None
    year_level: int | None
    faculty_id: str | None = None
    room_id: str | None = None
    course_id: str | None = None
    department_id: str | None = None
    group_id: str | None = None
    group_type: GroupType = GroupType.REGULAR
    exclude_slot_id: str | None = None

    operation: ClassVar[OperationMode]

    @property
    def course_ids(self) -> list[str]:
        """Courses this submission schedules."""
        return [self.course_id] if self.course_id else []


@dataclass
class AddCandidate(CandidateBase):
    """A single ordinary slot."""

    operation: ClassVar[OperationMode] = OperationMode.ADD


@dataclass
class JointCandidate(CandidateBase):
    """Several courses co-scheduled under one faculty, room and time."""

    joint_courses: list[str] = field(default_factory=list)

    operation: ClassVar[OperationMode] = OperationMode.JOINT

    def __post_init__(self) -> None:
        self.group_type = GroupType.JOINT

    @property
    def course_ids(self) -> list[str]:
        """Distinct joint courses, in submission order."""
        return list(dict.fromkeys(c for c in self.joint_courses if c))


@dataclass
class SplitGroup:
    """One sub-group of a split class. Unset fields inherit from the class."""

    name: str
    faculty_id: str | None = None
    room_id: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    max_students: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SplitGroup":
        max_students = data.get("maxStudents")
        return cls(
            name=str(data.get("name") or "Group"),
            faculty_id=data.get("facultyId") or None,
            room_id=data.get("roomId") or None,
            start_time=data.get("startTime") or None,
            end_time=data.get("endTime") or None,
            max_students=int(max_students) if max_students not in (None, "") else None,
        )

    def resolve(self, candidate: CandidateBase) -> "SplitGroup":
        """Return a copy with every unset field taken from the parent submission."""
        return replace(
            self,
            faculty_id=self.faculty_id or candidate.faculty_id,
            room_id=self.room_id or candidate.room_id,
            start_time=self.start_time or candidate.start_time,
            end_time=self.end_time or candidate.end_time,
        )


@dataclass
class SplitCandidate(CandidateBase):
    """One course whose cohort is divided into sub-groups."""

    split_groups: list[SplitGroup] = field(default_factory=list)

    operation: ClassVar[OperationMode] = OperationMode.SPLIT

    def __post_init__(self) -> None:
        self.group_type = GroupType.SPLIT

    def resolved_groups(self) -> list[SplitGroup]:
        """Sub-groups with inherited faculty, room and times filled in."""
        return [group.resolve(self) for group in self.split_groups]


Candidate = AddCandidate | JointCandidate | SplitCandidate


def _optional_int(value: Any, field_name: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"expected an integer, got {value!r}", field_name) from e


def candidate_from_dict(data: Mapping[str, Any]) -> Candidate:
    """Build the right candidate variant from a camelCase submission.

    Accepts the submission shape of the store boundary
    (``jointCourses``/``splitGroups``/``excludeSlotId``) as well as the form
    shapes (``courses``/``groups``/``id``).

    Args:
        data: Submission dictionary

    Returns:
        AddCandidate, JointCandidate or SplitCandidate

    Raises:
        InvalidInputError: If the payload is not a mapping or the operation is unknown
    """
    if not isinstance(data, Mapping):
        raise InvalidInputError("submission must be a mapping")

    raw_operation = data.get("operation") or OperationMode.ADD.value
    try:
        operation = OperationMode(str(raw_operation).lower())
    except ValueError as e:
        raise InvalidInputError(f"unknown operation {raw_operation!r}", "operation") from e

    common: dict[str, Any] = {
        "day_of_week": _optional_int(data.get("dayOfWeek"), "dayOfWeek"),
        "start_time": data.get("startTime") or None,
        "end_time": data.get("endTime") or None,
        "academic_year": data.get("academicYear") or None,
        "semester": data.get("semester"),
        "year_level": _optional_int(data.get("yearLevel"), "yearLevel"),
        "faculty_id": data.get("facultyId") or None,
        "room_id": data.get("roomId") or None,
        "course_id": data.get("courseId") or None,
        "department_id": data.get("departmentId") or None,
        "group_id": data.get("groupId") or None,
        "exclude_slot_id": data.get("excludeSlotId") or data.get("id") or None,
    }

    if operation == OperationMode.JOINT:
        courses = data.get("jointCourses")
        if courses is None:
            courses = data.get("courses") or []
        return JointCandidate(**common, joint_courses=[str(c) for c in courses])

    if operation == OperationMode.SPLIT:
        groups = data.get("splitGroups")
        if groups is None:
            groups = data.get("groups") or []
        return SplitCandidate(
            **common, split_groups=[SplitGroup.from_dict(g) for g in groups]
        )

    group_type = data.get("groupType")
    if group_type:
        try:
            common["group_type"] = GroupType(group_type)
        except ValueError as e:
            raise InvalidInputError(f"unknown group type {group_type!r}", "groupType") from e
    return AddCandidate(**common)
