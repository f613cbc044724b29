"""Whole-schedule conflict detection and automatic resolution."""

import logging
from collections import defaultdict
from dataclasses import replace
from itertools import combinations

from .config.settings import EngineSettings
from .conflicts import (
    AutoResolveOptions,
    ConflictSeverity,
    ConflictType,
    EnhancedConflict,
    ResolutionActionType,
    ResolutionResult,
    ResolutionSuggestion,
)
from .constants import (
    BUILDING_DISTANCE,
    CONFLICT_SCORES,
    FACULTY_OVERLAP,
    PREFERENCE_PREFIX,
    ROOM_CAPACITY,
    ROOM_OVERLAP,
    ROOM_TYPE_MATCH,
    STUDENT_OVERLAP,
)
from .constraints.base import Constraint
from .constraints.registry import ConstraintRegistry
from .constraints.soft import is_lab_session
from .exceptions import InvalidInputError, SuggestionApplicationError
from .models import Course, Faculty, LessonType, Room, RoomType, Student, TimeSlot
from .suggestions import SuggestionGenerator, find_clashes
from .utils import (
    add_minutes,
    are_exempt,
    duration_minutes,
    get_day_name,
    group_by_term_day,
    index_by_id,
    parse_time,
    same_term,
    slots_overlap,
    times_overlap,
)

logger = logging.getLogger(__name__)

SlotPair = tuple[TimeSlot, TimeSlot]


def overlapping_pairs(slots: list[TimeSlot]) -> list[SlotPair]:
    """Pairs of slots in the same term and day with overlapping times.

    Each pair keeps roster order (first, second).
    """
    pairs: list[SlotPair] = []
    for bucket in group_by_term_day(slots).values():
        for first, second in combinations(bucket, 2):
            if times_overlap(first.start_time, first.end_time, second.start_time, second.end_time):
                pairs.append((first, second))
    return pairs


class ScheduleResolver:
    """
    Audit a whole roster for conflicts and repair them.

    Detection runs seven checks over the active slots and attaches ranked
    resolution suggestions to every conflict. Automatic resolution applies
    those suggestions to a working copy of the roster.
    """

    def __init__(
        self,
        registry: ConstraintRegistry | None = None,
        settings: EngineSettings | None = None,
    ):
        """
        Initialize the resolver.

        Args:
            registry: Constraint catalog. A fresh registry if None.
            settings: Engine thresholds. The registry's settings if None.
        """
        if settings is None:
            settings = registry.settings if registry is not None else EngineSettings()
        self.settings = settings
        self.registry = registry if registry is not None else ConstraintRegistry(settings)
        self.suggestion_generator = SuggestionGenerator(settings)

    # Detection

    def detect_conflicts(
        self,
        all_slots: list[TimeSlot],
        courses: list[Course],
        faculty: list[Faculty],
        rooms: list[Room],
        students: list[Student],
    ) -> list[EnhancedConflict]:
        """
        Find every conflict in a roster.

        Args:
            all_slots: Roster to audit; inactive slots are ignored
            courses: Course reference table
            faculty: Faculty reference table
            rooms: Room reference table
            students: Students with their enrolments

        Returns:
            Conflicts sorted by score, highest first

        Raises:
            InvalidInputError: If any of the arrays is None
        """
        for name, value in (
            ("all_slots", all_slots),
            ("courses", courses),
            ("faculty", faculty),
            ("rooms", rooms),
            ("students", students),
        ):
            if value is None:
                raise InvalidInputError("a list is required", name)

        active = [slot for slot in all_slots if slot.is_active]
        logger.info(f"Auditing {len(active)} active slots")

        courses_by_id = index_by_id(courses)
        rooms_by_id = index_by_id(rooms)
        faculty_by_id = index_by_id(faculty)
        pairs = overlapping_pairs(active)

        conflicts = [
            *self._room_conflicts(pairs, rooms_by_id, courses_by_id),
            *self._faculty_conflicts(pairs, faculty_by_id, courses_by_id),
            *self._course_conflicts(pairs, rooms_by_id, courses_by_id),
            *self._room_type_conflicts(active, rooms_by_id, courses_by_id),
            *self._capacity_conflicts(active, rooms_by_id, courses_by_id),
            *self._schedule_conflicts(active, faculty_by_id, rooms_by_id),
            *self._student_conflicts(active, students, courses_by_id),
        ]

        for conflict in conflicts:
            conflict.resolution_suggestions = self.suggestion_generator.generate(
                conflict, active, rooms, courses
            )
            conflict.auto_resolvable = bool(conflict.resolution_suggestions)

        conflicts.sort(key=lambda c: c.conflict_score, reverse=True)
        logger.info(f"Found {len(conflicts)} conflicts")
        return conflicts

    def _constraints(self, constraint_id: str) -> list[Constraint]:
        constraint = self.registry.get(constraint_id)
        return [constraint] if constraint else []

    @staticmethod
    def _course_name(courses: dict[str, Course], course_id: str) -> str:
        course = courses.get(course_id)
        return course.name if course else course_id

    @staticmethod
    def _faculty_name(faculty: dict[str, Faculty], faculty_id: str) -> str:
        member = faculty.get(faculty_id)
        return member.display_name if member else faculty_id

    def _room_conflicts(
        self,
        pairs: list[SlotPair],
        rooms: dict[str, Room],
        courses: dict[str, Course],
    ) -> list[EnhancedConflict]:
        conflicts = []
        for first, second in pairs:
            if first.room_id != second.room_id or are_exempt(first, second, ConflictType.ROOM):
                continue
            room = rooms.get(first.room_id)
            conflicts.append(
                EnhancedConflict(
                    id=f"room-conflict-{first.id}-{second.id}",
                    type=ConflictType.ROOM,
                    description="Room conflict: Multiple classes in same room",
                    details=(
                        f"{room.name if room else first.room_id} has overlapping classes: "
                        f"{self._course_name(courses, first.course_id)} "
                        f"({first.start_time}-{first.end_time}) and "
                        f"{self._course_name(courses, second.course_id)} "
                        f"({second.start_time}-{second.end_time}) on "
                        f"{get_day_name(first.day_of_week)}"
                    ),
                    severity=ConflictSeverity.HIGH,
                    affected_slots=[first.id, second.id],
                    conflict_score=CONFLICT_SCORES["room"],
                    constraints=self._constraints(ROOM_OVERLAP),
                )
            )
        return conflicts

    def _faculty_conflicts(
        self,
        pairs: list[SlotPair],
        faculty: dict[str, Faculty],
        courses: dict[str, Course],
    ) -> list[EnhancedConflict]:
        conflicts = []
        for first, second in pairs:
            if first.faculty_id != second.faculty_id or are_exempt(
                first, second, ConflictType.FACULTY
            ):
                continue
            conflicts.append(
                EnhancedConflict(
                    id=f"faculty-conflict-{first.id}-{second.id}",
                    type=ConflictType.FACULTY,
                    description="Faculty conflict: Teacher double-booked",
                    details=(
                        f"{self._faculty_name(faculty, first.faculty_id)} is scheduled for "
                        f"{self._course_name(courses, first.course_id)} and "
                        f"{self._course_name(courses, second.course_id)} at overlapping "
                        f"times on {get_day_name(first.day_of_week)}"
                    ),
                    severity=ConflictSeverity.HIGH,
                    affected_slots=[first.id, second.id],
                    conflict_score=CONFLICT_SCORES["faculty"],
                    constraints=self._constraints(FACULTY_OVERLAP),
                )
            )
        return conflicts

    def _course_conflicts(
        self,
        pairs: list[SlotPair],
        rooms: dict[str, Room],
        courses: dict[str, Course],
    ) -> list[EnhancedConflict]:
        conflicts = []
        for first, second in pairs:
            if first.course_id != second.course_id or are_exempt(
                first, second, ConflictType.COURSE
            ):
                continue
            first_room = rooms.get(first.room_id)
            second_room = rooms.get(second.room_id)
            conflicts.append(
                EnhancedConflict(
                    id=f"course-conflict-{first.id}-{second.id}",
                    type=ConflictType.COURSE,
                    description="Course conflict: Same course scheduled twice",
                    details=(
                        f"{self._course_name(courses, first.course_id)} is scheduled at "
                        f"overlapping times in "
                        f"{first_room.name if first_room else first.room_id} and "
                        f"{second_room.name if second_room else second.room_id} on "
                        f"{get_day_name(first.day_of_week)}"
                    ),
                    severity=ConflictSeverity.HIGH,
                    affected_slots=[first.id, second.id],
                    conflict_score=CONFLICT_SCORES["course"],
                )
            )
        return conflicts

    def _room_type_conflicts(
        self,
        slots: list[TimeSlot],
        rooms: dict[str, Room],
        courses: dict[str, Course],
    ) -> list[EnhancedConflict]:
        conflicts = []
        for slot in slots:
            room = rooms.get(slot.room_id)
            course = courses.get(slot.course_id)
            if room is None or course is None:
                continue

            is_lab = is_lab_session(slot, course)
            if is_lab and room.type != RoomType.LAB:
                conflicts.append(
                    EnhancedConflict(
                        id=f"room-type-conflict-{slot.id}",
                        type=ConflictType.ROOM_TYPE,
                        description="Room type mismatch: Lab in non-lab room",
                        details=(
                            f"{course.name} (Lab) is scheduled in {room.name} which is a "
                            f"{room.type.value} room"
                        ),
                        severity=ConflictSeverity.MEDIUM,
                        affected_slots=[slot.id],
                        conflict_score=CONFLICT_SCORES["room_type_lab"],
                        constraints=self._constraints(ROOM_TYPE_MATCH),
                    )
                )
            elif not is_lab and room.type == RoomType.LAB:
                conflicts.append(
                    EnhancedConflict(
                        id=f"room-type-conflict-{slot.id}",
                        type=ConflictType.ROOM_TYPE,
                        description="Room type mismatch: Lecture in lab room",
                        details=(
                            f"{course.name} (Lecture) is scheduled in {room.name} which is "
                            f"a Lab room"
                        ),
                        severity=ConflictSeverity.LOW,
                        affected_slots=[slot.id],
                        conflict_score=CONFLICT_SCORES["room_type_lecture"],
                        constraints=self._constraints(ROOM_TYPE_MATCH),
                    )
                )
        return conflicts

    def _capacity_conflicts(
        self,
        slots: list[TimeSlot],
        rooms: dict[str, Room],
        courses: dict[str, Course],
    ) -> list[EnhancedConflict]:
        conflicts = []
        for slot in slots:
            room = rooms.get(slot.room_id)
            course = courses.get(slot.course_id)
            if room is None or course is None:
                continue
            if slot.lesson_type != LessonType.LECTURE:
                continue
            if room.capacity >= self.settings.min_lecture_capacity:
                continue
            conflicts.append(
                EnhancedConflict(
                    id=f"capacity-conflict-{slot.id}",
                    type=ConflictType.CAPACITY,
                    description="Capacity issue: Room may be too small",
                    details=(
                        f"{room.name} has capacity of {room.capacity} which may be "
                        f"insufficient for {course.name}"
                    ),
                    severity=ConflictSeverity.MEDIUM,
                    affected_slots=[slot.id],
                    conflict_score=CONFLICT_SCORES["capacity"],
                    constraints=self._constraints(ROOM_CAPACITY),
                )
            )
        return conflicts

    def _schedule_conflicts(
        self,
        slots: list[TimeSlot],
        faculty: dict[str, Faculty],
        rooms: dict[str, Room],
    ) -> list[EnhancedConflict]:
        by_faculty: dict[str, list[TimeSlot]] = defaultdict(list)
        for slot in slots:
            by_faculty[slot.faculty_id].append(slot)

        window = self.settings.building_transfer_minutes
        conflicts = []
        for faculty_id, faculty_slots in by_faculty.items():
            ordered = sorted(
                faculty_slots,
                key=lambda s: (
                    s.academic_year, s.semester, s.day_of_week, parse_time(s.start_time)
                ),
            )
            for current, following in zip(ordered, ordered[1:]):
                if not same_term(current, following):
                    continue
                if current.day_of_week != following.day_of_week:
                    continue
                gap = parse_time(following.start_time) - parse_time(current.end_time)
                if not 0 <= gap <= window:
                    continue
                if are_exempt(current, following, ConflictType.SCHEDULE):
                    continue
                current_room = rooms.get(current.room_id)
                next_room = rooms.get(following.room_id)
                if current_room is None or next_room is None:
                    continue
                if current_room.building == next_room.building:
                    continue
                conflicts.append(
                    EnhancedConflict(
                        id=f"schedule-conflict-{current.id}-{following.id}",
                        type=ConflictType.SCHEDULE,
                        description="Tight schedule: Back-to-back in different buildings",
                        details=(
                            f"{self._faculty_name(faculty, faculty_id)} has consecutive "
                            f"classes in different buildings on "
                            f"{get_day_name(current.day_of_week)}"
                        ),
                        severity=ConflictSeverity.LOW,
                        affected_slots=[current.id, following.id],
                        conflict_score=CONFLICT_SCORES["schedule"],
                        constraints=self._constraints(BUILDING_DISTANCE),
                    )
                )
        return conflicts

    def _student_conflicts(
        self,
        slots: list[TimeSlot],
        students: list[Student],
        courses: dict[str, Course],
    ) -> list[EnhancedConflict]:
        conflicts = []
        for student in students:
            if not student.enrolled_courses:
                continue
            enrolled = set(student.enrolled_courses)
            student_slots = [slot for slot in slots if slot.course_id in enrolled]

            for first, second in overlapping_pairs(student_slots):
                if are_exempt(first, second, ConflictType.STUDENT):
                    continue
                conflicts.append(
                    EnhancedConflict(
                        id=f"student-conflict-{student.id}-{first.id}-{second.id}",
                        type=ConflictType.STUDENT,
                        description="Student schedule conflict",
                        details=(
                            f"{student.full_name} is enrolled in overlapping courses: "
                            f"{self._course_name(courses, first.course_id)} and "
                            f"{self._course_name(courses, second.course_id)} on "
                            f"{get_day_name(first.day_of_week)}"
                        ),
                        severity=ConflictSeverity.HIGH,
                        affected_slots=[first.id, second.id],
                        conflict_score=CONFLICT_SCORES["student"],
                        constraints=self._constraints(STUDENT_OVERLAP),
                    )
                )
        return conflicts

    # Resolution

    def auto_resolve_conflicts(
        self,
        conflicts: list[EnhancedConflict],
        all_slots: list[TimeSlot],
        options: AutoResolveOptions | None = None,
    ) -> ResolutionResult:
        """
        Apply suggestions until every conflict is resolved or no suggestion works.

        Conflicts are handled most severe first. For each one, suggestions are
        tried in rank order and the first workable one is accepted. Neither the
        conflicts nor the roster passed in are modified.

        Args:
            conflicts: Conflicts from detect_conflicts
            all_slots: Roster the conflicts were found in
            options: Relaxation budget and stopping behaviour

        Returns:
            ResolutionResult with the repaired roster
        """
        options = options or AutoResolveOptions()
        working = list(all_slots)
        relaxed: list[str] = []
        resolved_ids: set[str] = set()
        applied: list[ResolutionSuggestion] = []

        ordered = sorted(conflicts, key=lambda c: (-c.severity.rank, -c.conflict_score))
        for conflict in ordered:
            if conflict.resolved:
                resolved_ids.add(conflict.id)
                continue
            if not conflict.auto_resolvable:
                continue

            if not self._still_holds(conflict, working):
                logger.debug(f"{conflict.id} was fixed by an earlier change")
                resolved_ids.add(conflict.id)
                continue

            outcome = self._first_workable(conflict, working, relaxed, options)
            if outcome is None:
                logger.warning(f"Could not resolve {conflict.id}")
                if not options.allow_partial_resolution:
                    break
                continue

            suggestion, working = outcome
            applied.append(suggestion)
            resolved_ids.add(conflict.id)
            for constraint_id in suggestion.relaxed_constraint_ids:
                if constraint_id not in relaxed:
                    relaxed.append(constraint_id)
            logger.debug(f"Resolved {conflict.id} with {suggestion.id}")

        total = len(conflicts)
        resolved = sum(1 for c in conflicts if c.id in resolved_ids)
        logger.info(f"Auto-resolved {resolved} of {total} conflicts")

        return ResolutionResult(
            success=resolved == total,
            resolved_slots=working,
            remaining_conflicts=[c for c in conflicts if c.id not in resolved_ids],
            relaxed_constraints=relaxed,
            success_rate=resolved / total if total else 1.0,
            applied_suggestions=applied,
        )

    def _first_workable(
        self,
        conflict: EnhancedConflict,
        working: list[TimeSlot],
        relaxed: list[str],
        options: AutoResolveOptions,
    ) -> tuple[ResolutionSuggestion, list[TimeSlot]] | None:
        for suggestion in conflict.resolution_suggestions:
            if suggestion.is_relaxation:
                ids = suggestion.relaxed_constraint_ids
                if options.preserve_preferences and any(
                    i.startswith(PREFERENCE_PREFIX) for i in ids
                ):
                    logger.debug(f"Skipping {suggestion.id}: preferences are preserved")
                    continue
                if len(set(relaxed) | set(ids)) > options.max_relaxation:
                    logger.debug(f"Skipping {suggestion.id}: relaxation budget exhausted")
                    continue

            try:
                roster = self.apply_suggestion(suggestion, working)
            except SuggestionApplicationError as e:
                logger.warning(f"Skipping suggestion {suggestion.id}: {e.reason}")
                continue
            return suggestion, roster
        return None

    def _still_holds(self, conflict: EnhancedConflict, roster: list[TimeSlot]) -> bool:
        """Check whether a conflict is still present in a working roster.

        Pairwise conflicts disappear once their slots no longer overlap or share
        the contested resource. Other conflicts are assumed to hold while their
        slots exist.
        """
        slots = index_by_id(roster)
        affected = [slots.get(slot_id) for slot_id in conflict.affected_slots]
        if any(slot is None for slot in affected):
            return False
        if len(affected) != 2:
            return True

        first, second = affected
        if conflict.type == ConflictType.SCHEDULE:
            gap = parse_time(second.start_time) - parse_time(first.end_time)
            return (
                first.day_of_week == second.day_of_week
                and 0 <= gap <= self.settings.building_transfer_minutes
            )
        if not slots_overlap(first, second):
            return False
        if conflict.type == ConflictType.ROOM:
            return first.room_id == second.room_id
        if conflict.type == ConflictType.FACULTY:
            return first.faculty_id == second.faculty_id
        if conflict.type == ConflictType.COURSE:
            return first.course_id == second.course_id
        return True

    def apply_suggestion(
        self, suggestion: ResolutionSuggestion, roster: list[TimeSlot]
    ) -> list[TimeSlot]:
        """
        Apply a suggestion to a copy of a roster and re-validate the result.

        Args:
            suggestion: Suggestion to apply
            roster: Current working roster (not modified)

        Returns:
            New roster with the suggestion applied

        Raises:
            SuggestionApplicationError: If an action cannot be applied, or a
                changed slot ends up sharing a room or faculty member with an
                overlapping slot it did not clash with before
        """
        slots = list(roster)
        changed: list[str] = []

        def position(slot_id: str | None) -> int:
            for i, slot in enumerate(slots):
                if slot.id == slot_id:
                    return i
            raise SuggestionApplicationError(suggestion.id, f"slot {slot_id} not found")

        for action in suggestion.actions:
            if action.type == ResolutionActionType.MOVE:
                i = position(action.target_slot_id)
                slot = slots[i]
                changes: dict = {}
                if action.new_day is not None:
                    changes["day_of_week"] = action.new_day
                if action.new_start_time:
                    try:
                        length = duration_minutes(slot.start_time, slot.end_time)
                        changes["start_time"] = action.new_start_time
                        changes["end_time"] = action.new_end_time or add_minutes(
                            action.new_start_time, length
                        )
                    except ValueError as e:
                        raise SuggestionApplicationError(suggestion.id, str(e)) from e
                if action.new_room:
                    changes["room_id"] = action.new_room
                if action.new_faculty:
                    changes["faculty_id"] = action.new_faculty
                slots[i] = replace(slot, **changes)
                changed.append(slot.id)

            elif action.type == ResolutionActionType.SWAP:
                i = position(action.target_slot_id)
                j = position(action.swap_with_slot_id)
                first, second = slots[i], slots[j]
                slots[i] = replace(
                    first,
                    day_of_week=second.day_of_week,
                    start_time=second.start_time,
                    end_time=second.end_time,
                )
                slots[j] = replace(
                    second,
                    day_of_week=first.day_of_week,
                    start_time=first.start_time,
                    end_time=first.end_time,
                )
                changed.extend([first.id, second.id])

            elif action.type == ResolutionActionType.CANCEL:
                slots.pop(position(action.target_slot_id))

            elif action.type == ResolutionActionType.RELAX:
                # Relaxation is tracked by the caller
                continue

            else:
                raise SuggestionApplicationError(
                    suggestion.id,
                    f"{action.type.value} actions cannot be applied automatically",
                )

        original = index_by_id(roster)
        by_id = index_by_id(slots)
        for slot_id in changed:
            slot = by_id.get(slot_id)
            if slot is None:
                continue
            try:
                before = {other.id for other in find_clashes(original[slot_id], roster)}
                after = {other.id for other in find_clashes(slot, slots)}
            except ValueError as e:
                raise SuggestionApplicationError(suggestion.id, str(e)) from e
            new = after - before
            if new:
                raise SuggestionApplicationError(
                    suggestion.id,
                    f"slot {slot_id} would clash with {', '.join(sorted(new))}",
                )

        return slots
