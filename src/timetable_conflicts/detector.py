"""Conflict detection for candidate submissions.

The detector checks one proposed slot (or a joint or split set of slots)
against the existing roster before it is committed, and explains why it can
or cannot proceed.
"""

import logging

from .candidates import (
    AddCandidate,
    Candidate,
    JointCandidate,
    OperationMode,
    SplitCandidate,
    SplitGroup,
)
from .config.settings import EngineSettings
from .conflicts import ConflictDetail, ConflictResult, ConflictType, Severity
from .exceptions import InvalidInputError
from .models import Course, Faculty, GroupType, Room, TimeSlot
from .utils import (
    are_exempt,
    duration_minutes,
    format_time,
    in_same_group,
    index_by_id,
    latest_end_time,
    parse_time,
    semester_as_int,
    times_overlap,
)
from .validators import validate_candidate

logger = logging.getLogger(__name__)


def _group_context(slot: TimeSlot) -> str:
    """Describe the kind of class an existing slot is."""
    if slot.group_type == GroupType.JOINT:
        return "a joint session"
    if slot.group_type == GroupType.SPLIT:
        return "a split class"
    return "a regular class"


class ConflictDetector:
    """
    Validate candidate submissions against an existing roster.

    The detector never modifies the roster or the reference tables it is given.
    """

    def __init__(
        self,
        existing_slots: list[TimeSlot],
        faculty: list[Faculty],
        rooms: list[Room],
        courses: list[Course],
        settings: EngineSettings | None = None,
    ):
        """
        Initialize the detector.

        Args:
            existing_slots: Current roster
            faculty: Faculty reference table
            rooms: Room reference table
            courses: Course reference table
            settings: Engine thresholds. Defaults if None.

        Raises:
            InvalidInputError: If any of the arrays is None
        """
        for name, value in (
            ("existing_slots", existing_slots),
            ("faculty", faculty),
            ("rooms", rooms),
            ("courses", courses),
        ):
            if value is None:
                raise InvalidInputError("a list is required", name)

        self.existing_slots = list(existing_slots)
        self.rooms = list(rooms)
        self.settings = settings or EngineSettings()
        self._faculty = index_by_id(faculty)
        self._rooms = index_by_id(rooms)
        self._courses = index_by_id(courses)

    def detect(self, candidate: Candidate) -> ConflictResult:
        """
        Check one candidate submission.

        Args:
            candidate: Add, joint or split submission

        Returns:
            ConflictResult; can_proceed is False iff an error was found
        """
        conflicts, suggestions = validate_candidate(candidate)
        if conflicts:
            logger.debug(
                f"{candidate.operation.value} candidate failed validation: "
                f"{conflicts[0].message}"
            )
            return ConflictResult.from_conflicts(conflicts, suggestions)

        relevant = self.relevant_slots(candidate)
        logger.debug(
            f"Checking {candidate.operation.value} candidate on day {candidate.day_of_week} "
            f"{candidate.start_time}-{candidate.end_time} against {len(relevant)} slots"
        )

        if isinstance(candidate, JointCandidate):
            conflicts.extend(self._check_joint(candidate, relevant))
        elif isinstance(candidate, SplitCandidate):
            conflicts.extend(self._check_split(candidate, relevant))
        else:
            conflicts.extend(self._check_add(candidate, relevant))

        conflicts.extend(self._check_duration(candidate))
        suggestions = self._suggestions(conflicts, candidate, relevant)

        result = ConflictResult.from_conflicts(conflicts, suggestions)
        logger.debug(
            f"Found {len(result.errors)} errors and {len(result.warnings)} warnings"
        )
        return result

    def relevant_slots(self, candidate: Candidate) -> list[TimeSlot]:
        """Active existing slots on the candidate's day and academic term."""
        semester = semester_as_int(candidate.semester)
        return [
            slot
            for slot in self.existing_slots
            if slot.is_active
            and slot.id != candidate.exclude_slot_id
            and slot.day_of_week == candidate.day_of_week
            and slot.academic_year == candidate.academic_year
            and slot.semester == semester
        ]

    # Name lookups

    def _faculty_name(self, faculty_id: str | None) -> str:
        faculty = self._faculty.get(faculty_id) if faculty_id else None
        return faculty.display_name if faculty else "Faculty member"

    def _room_name(self, room_id: str | None) -> str:
        room = self._rooms.get(room_id) if room_id else None
        return room.name if room else "Room"

    def _course_name(self, course_id: str | None) -> str:
        course = self._courses.get(course_id) if course_id else None
        return course.name if course else str(course_id)

    # Mode-specific checks

    def _check_add(
        self, candidate: AddCandidate, relevant: list[TimeSlot]
    ) -> list[ConflictDetail]:
        conflicts: list[ConflictDetail] = []
        year = candidate.year_level
        department = candidate.department_id or ""

        for existing in relevant:
            if times_overlap(
                candidate.start_time, candidate.end_time, existing.start_time, existing.end_time
            ):
                context = _group_context(existing)
                course_name = self._course_name(existing.course_id)
                span = f"from {existing.start_time} to {existing.end_time}"

                if (
                    candidate.faculty_id
                    and candidate.faculty_id == existing.faculty_id
                    and not are_exempt(candidate, existing, ConflictType.FACULTY)
                ):
                    conflicts.append(
                        ConflictDetail(
                            ConflictType.FACULTY,
                            Severity.ERROR,
                            f"{self._faculty_name(candidate.faculty_id)} is already "
                            f'scheduled for {context} - "{course_name}" {span}',
                            existing,
                        )
                    )

                if (
                    candidate.room_id
                    and candidate.room_id == existing.room_id
                    and not are_exempt(candidate, existing, ConflictType.ROOM)
                ):
                    conflicts.append(
                        ConflictDetail(
                            ConflictType.ROOM,
                            Severity.ERROR,
                            f"{self._room_name(candidate.room_id)} is already booked for "
                            f'{context} - "{course_name}" {span}',
                            existing,
                        )
                    )

                if (
                    candidate.course_id == existing.course_id
                    and year == existing.year_level
                    and not are_exempt(candidate, existing, ConflictType.COURSE)
                ):
                    own_course = self._course_name(candidate.course_id)
                    if existing.group_type == GroupType.SPLIT:
                        conflicts.append(
                            ConflictDetail(
                                ConflictType.COURSE,
                                Severity.WARNING,
                                f'Year {year} students already have "{own_course}" as a '
                                f"split class. Adding regular class may create conflicts.",
                                existing,
                            )
                        )
                    else:
                        conflicts.append(
                            ConflictDetail(
                                ConflictType.COURSE,
                                Severity.ERROR,
                                f'Year {year} students already have "{own_course}" '
                                f"scheduled {span}",
                                existing,
                            )
                        )

                if (
                    year == existing.year_level
                    and candidate.course_id != existing.course_id
                    and not are_exempt(candidate, existing, ConflictType.STUDENT)
                ):
                    if department == existing.department_id:
                        conflicts.append(self._cohort_conflict_for_add(year, existing))
                    elif self.settings.flag_cross_department:
                        conflicts.append(
                            ConflictDetail(
                                ConflictType.COURSE,
                                Severity.WARNING,
                                f"Potential conflict with Year {year} interdisciplinary "
                                f"students who may be enrolled in courses from both "
                                f"departments",
                                existing,
                            )
                        )

            if (
                existing.start_time == candidate.start_time
                and existing.end_time == candidate.end_time
                and existing.faculty_id == candidate.faculty_id
                and existing.room_id == candidate.room_id
                and existing.course_id == candidate.course_id
                and existing.year_level == year
            ):
                conflicts.append(
                    ConflictDetail(
                        ConflictType.COURSE,
                        Severity.ERROR,
                        f"Duplicate time slot detected - This exact combination already "
                        f"exists for Year {year}",
                        existing,
                    )
                )

        return conflicts

    def _cohort_conflict_for_add(self, year: int, existing: TimeSlot) -> ConflictDetail:
        course_name = self._course_name(existing.course_id)
        if existing.group_type == GroupType.JOINT:
            return ConflictDetail(
                ConflictType.COURSE,
                Severity.ERROR,
                f"Year {year} students are unavailable - they have a joint session "
                f'for "{course_name}" scheduled',
                existing,
            )
        if existing.group_type == GroupType.SPLIT:
            return ConflictDetail(
                ConflictType.COURSE,
                Severity.WARNING,
                f"Some Year {year} students may be unavailable - they have a split "
                f'class for "{course_name}" scheduled',
                existing,
            )
        return ConflictDetail(
            ConflictType.COURSE,
            Severity.ERROR,
            f'Year {year} students are unavailable - they have "{course_name}" '
            f"scheduled at this time",
            existing,
        )

    def _check_joint(
        self, candidate: JointCandidate, relevant: list[TimeSlot]
    ) -> list[ConflictDetail]:
        conflicts: list[ConflictDetail] = []
        year = candidate.year_level
        department = candidate.department_id or ""

        for existing in relevant:
            if not times_overlap(
                candidate.start_time, candidate.end_time, existing.start_time, existing.end_time
            ):
                continue
            # The session being edited
            if in_same_group(candidate, existing, GroupType.JOINT):
                continue

            context = _group_context(existing)
            if candidate.faculty_id and candidate.faculty_id == existing.faculty_id:
                conflicts.append(
                    ConflictDetail(
                        ConflictType.FACULTY,
                        Severity.ERROR,
                        f"{self._faculty_name(candidate.faculty_id)} is already scheduled "
                        f"for {context}. Joint sessions require dedicated faculty time.",
                        existing,
                    )
                )

            if candidate.room_id and candidate.room_id == existing.room_id:
                conflicts.append(
                    ConflictDetail(
                        ConflictType.ROOM,
                        Severity.ERROR,
                        f"{self._room_name(candidate.room_id)} is already booked for "
                        f"{context}. Joint sessions require exclusive room access.",
                        existing,
                    )
                )

            course_clash = False
            for course_id in candidate.course_ids:
                if course_id == existing.course_id and year == existing.year_level:
                    course_clash = True
                    conflicts.append(
                        ConflictDetail(
                            ConflictType.COURSE,
                            Severity.ERROR,
                            f'Year {year} students already have "{self._course_name(course_id)}" '
                            f"scheduled. Cannot include in joint session.",
                            existing,
                        )
                    )

            # A course clash already covers this cohort
            if year != existing.year_level or course_clash:
                continue
            if department == existing.department_id:
                if existing.group_type == GroupType.SPLIT:
                    conflicts.append(
                        ConflictDetail(
                            ConflictType.COURSE,
                            Severity.WARNING,
                            f"Year {year} students are partially occupied with a split "
                            f"class. Verify student availability for joint session.",
                            existing,
                        )
                    )
                else:
                    conflicts.append(
                        ConflictDetail(
                            ConflictType.COURSE,
                            Severity.ERROR,
                            f"Year {year} students are not available - they have "
                            f'"{self._course_name(existing.course_id)}" scheduled',
                            existing,
                        )
                    )
            elif self.settings.flag_cross_department:
                conflicts.append(
                    ConflictDetail(
                        ConflictType.COURSE,
                        Severity.WARNING,
                        f"Potential conflict with Year {year} interdisciplinary students "
                        f"who may be enrolled in both departments",
                        existing,
                    )
                )

        conflicts.extend(self._check_joint_courses(candidate))
        return conflicts

    def _check_joint_courses(self, candidate: JointCandidate) -> list[ConflictDetail]:
        """Courses taught together must share a year level, ideally a department."""
        known = [self._courses[c] for c in candidate.course_ids if c in self._courses]
        conflicts: list[ConflictDetail] = []
        if len({c.year_level for c in known}) > 1:
            conflicts.append(
                ConflictDetail(
                    ConflictType.COURSE,
                    Severity.ERROR,
                    "All courses in joint session must be for the same year level",
                )
            )
        if len({c.department_id for c in known}) > 1:
            conflicts.append(
                ConflictDetail(
                    ConflictType.COURSE,
                    Severity.WARNING,
                    "Joint session includes courses from different departments. "
                    "Verify compatibility.",
                )
            )
        return conflicts

    def _check_split(
        self, candidate: SplitCandidate, relevant: list[TimeSlot]
    ) -> list[ConflictDetail]:
        conflicts: list[ConflictDetail] = []
        groups = candidate.resolved_groups()

        for group in groups:
            if not group.room_id:
                conflicts.append(
                    ConflictDetail(
                        ConflictType.ROOM,
                        Severity.ERROR,
                        f"{group.name}: Room not assigned. Each split group requires a "
                        f"specific room.",
                    )
                )
                continue
            conflicts.extend(self._check_split_group(candidate, group, relevant))

        for i, first in enumerate(groups):
            for second in groups[i + 1 :]:
                if not times_overlap(
                    first.start_time, first.end_time, second.start_time, second.end_time
                ):
                    continue
                if first.faculty_id and first.faculty_id == second.faculty_id:
                    conflicts.append(
                        ConflictDetail(
                            ConflictType.FACULTY,
                            Severity.ERROR,
                            f"Faculty member cannot teach both {first.name} and "
                            f"{second.name} at overlapping times within the same split class",
                        )
                    )
                if first.room_id and first.room_id == second.room_id:
                    conflicts.append(
                        ConflictDetail(
                            ConflictType.ROOM,
                            Severity.ERROR,
                            f"Room cannot be used by both {first.name} and {second.name} "
                            f"at overlapping times",
                        )
                    )

        return conflicts

    def _check_split_group(
        self, candidate: SplitCandidate, group: SplitGroup, relevant: list[TimeSlot]
    ) -> list[ConflictDetail]:
        conflicts: list[ConflictDetail] = []
        year = candidate.year_level
        department = candidate.department_id or ""
        prefix = f"{group.name}: "

        for existing in relevant:
            if not times_overlap(
                group.start_time, group.end_time, existing.start_time, existing.end_time
            ):
                continue
            # The class being edited
            if in_same_group(candidate, existing, GroupType.SPLIT):
                continue

            context = _group_context(existing)
            course_name = self._course_name(existing.course_id)

            if group.faculty_id and group.faculty_id == existing.faculty_id:
                conflicts.append(
                    ConflictDetail(
                        ConflictType.FACULTY,
                        Severity.ERROR,
                        f"{prefix}{self._faculty_name(group.faculty_id)} is already "
                        f'scheduled for {context} - "{course_name}"',
                        existing,
                    )
                )

            if group.room_id == existing.room_id:
                conflicts.append(
                    ConflictDetail(
                        ConflictType.ROOM,
                        Severity.ERROR,
                        f"{prefix}{self._room_name(group.room_id)} is already booked for "
                        f'{context} - "{course_name}"',
                        existing,
                    )
                )

            if candidate.course_id == existing.course_id and year == existing.year_level:
                if existing.group_type == GroupType.SPLIT:
                    conflicts.append(
                        ConflictDetail(
                            ConflictType.COURSE,
                            Severity.WARNING,
                            f"{prefix}Another split class session exists for the same "
                            f"course. Verify this is intentional.",
                            existing,
                        )
                    )
                else:
                    conflicts.append(
                        ConflictDetail(
                            ConflictType.COURSE,
                            Severity.ERROR,
                            f'{prefix}Cannot split "{self._course_name(candidate.course_id)}" '
                            f"- Year {year} students already have this course as a "
                            f"regular class",
                            existing,
                        )
                    )

            if (
                year == existing.year_level
                and department == existing.department_id
                and candidate.course_id != existing.course_id
            ):
                if existing.group_type == GroupType.JOINT:
                    conflicts.append(
                        ConflictDetail(
                            ConflictType.COURSE,
                            Severity.ERROR,
                            f"{prefix}Year {year} students are unavailable - they have a "
                            f"joint session scheduled",
                            existing,
                        )
                    )
                elif existing.group_type == GroupType.SPLIT:
                    conflicts.append(
                        ConflictDetail(
                            ConflictType.COURSE,
                            Severity.WARNING,
                            f"{prefix}Some Year {year} students may be occupied with "
                            f"another split class. Verify student group assignments "
                            f"don't overlap.",
                            existing,
                        )
                    )
                else:
                    conflicts.append(
                        ConflictDetail(
                            ConflictType.COURSE,
                            Severity.ERROR,
                            f"{prefix}Year {year} students are unavailable - they have "
                            f'"{course_name}" scheduled',
                            existing,
                        )
                    )

        return conflicts

    # Universal checks and suggestions

    def _check_duration(self, candidate: Candidate) -> list[ConflictDetail]:
        minutes = duration_minutes(candidate.start_time, candidate.end_time)
        minimum = self.settings.min_duration_minutes
        maximum = self.settings.max_duration_minutes
        if minutes < minimum:
            return [
                ConflictDetail(
                    ConflictType.TIME,
                    Severity.WARNING,
                    f"Class duration is less than {minimum} minutes. Is this intentional?",
                )
            ]
        if minutes > maximum:
            return [
                ConflictDetail(
                    ConflictType.TIME,
                    Severity.WARNING,
                    f"Class duration is more than {maximum / 60:g} hours. "
                    f"Consider splitting into multiple sessions.",
                )
            ]
        return []

    def free_rooms(self, candidate: Candidate, relevant: list[TimeSlot]) -> list[Room]:
        """Available rooms not booked during the candidate's interval."""
        booked = {
            slot.room_id
            for slot in relevant
            if times_overlap(
                candidate.start_time, candidate.end_time, slot.start_time, slot.end_time
            )
        }
        return [
            room
            for room in self.rooms
            if room.available and room.id != candidate.room_id and room.id not in booked
        ]

    def _suggestions(
        self, conflicts: list[ConflictDetail], candidate: Candidate, relevant: list[TimeSlot]
    ) -> list[str]:
        suggestions: list[str] = []
        types = {c.type for c in conflicts}

        if ConflictType.FACULTY in types or ConflictType.ROOM in types:
            overlapping = [
                slot
                for slot in relevant
                if times_overlap(
                    candidate.start_time, candidate.end_time, slot.start_time, slot.end_time
                )
            ]
            latest = latest_end_time(overlapping)
            if latest:
                suggestions.append(f"Try scheduling after {latest}")

        if ConflictType.ROOM in types:
            free = self.free_rooms(candidate, relevant)[: self.settings.max_room_suggestions]
            if free:
                names = ", ".join(room.name for room in free)
                suggestions.append(f"Consider using a different room (available: {names})")
            else:
                suggestions.append("Consider using a different room")

        if ConflictType.FACULTY in types:
            suggestions.append(
                "Consider assigning a different faculty member or scheduling at a "
                "different time"
            )

        if candidate.operation == OperationMode.JOINT and ConflictType.COURSE in types:
            suggestions.append("Ensure all courses in the joint session have available students")

        if candidate.operation == OperationMode.SPLIT:
            suggestions.append(
                "Verify that each split group has unique resources or non-overlapping times"
            )

        return suggestions


def detect_conflicts(
    candidate: Candidate,
    existing_slots: list[TimeSlot],
    faculty: list[Faculty],
    rooms: list[Room],
    courses: list[Course],
    settings: EngineSettings | None = None,
) -> ConflictResult:
    """Check one candidate submission against a roster. See ConflictDetector."""
    return ConflictDetector(existing_slots, faculty, rooms, courses, settings).detect(candidate)


def find_available_windows(
    day: int,
    existing_slots: list[TimeSlot],
    academic_year: str,
    semester: int | str,
    year_level: int | None = None,
    settings: EngineSettings | None = None,
) -> list[tuple[str, str]]:
    """
    List the free windows of a teaching day.

    Args:
        day: Day of week (1 = Monday)
        existing_slots: Current roster
        academic_year: Academic year to consider
        semester: Semester to consider
        year_level: Only count slots of this year level as occupied (all if None)
        settings: Engine settings providing the day bounds and minimum length

    Returns:
        List of (start, end) "HH:MM" pairs, in time order
    """
    settings = settings or EngineSettings()
    semester_number = semester_as_int(semester)
    day_start = parse_time(settings.day_start)
    day_end = parse_time(settings.day_end)

    busy = sorted(
        (parse_time(slot.start_time), parse_time(slot.end_time))
        for slot in existing_slots
        if slot.is_active
        and slot.day_of_week == day
        and slot.academic_year == academic_year
        and slot.semester == semester_number
        and (year_level is None or slot.year_level == year_level)
    )

    windows: list[tuple[str, str]] = []
    cursor = day_start
    for start, end in busy:
        gap_end = min(start, day_end)
        if gap_end - cursor >= settings.min_duration_minutes:
            windows.append((format_time(cursor), format_time(gap_end)))
        cursor = max(cursor, end)
    if day_end - cursor >= settings.min_duration_minutes:
        windows.append((format_time(cursor), format_time(day_end)))
    return windows
