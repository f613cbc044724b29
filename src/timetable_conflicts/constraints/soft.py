"""Soft constraint evaluators.

Soft constraints are preferences that should be satisfied when possible.
Violations are charged the constraint's relaxation penalty but do not
invalidate the schedule.
"""

from ..constants import (
    AFTERNOON_START,
    BUILDING_DISTANCE,
    FACULTY_WORKLOAD,
    ROOM_CAPACITY,
    ROOM_TYPE_MATCH,
)
from ..models import Course, LessonType, RoomType, TimeSlot
from ..utils import duration_minutes, index_by_id, parse_time, same_term
from .base import (
    Constraint,
    ConstraintContext,
    ConstraintEvaluators,
    EvaluationResult,
    Evaluator,
)

# Preference rule names, stored in Constraint.params["rule"]
NO_AFTERNOONS = "no-afternoons"
PREFERRED_DAYS = "preferred-days"
MAX_DAILY_HOURS = "max-daily-hours"
NO_BACK_TO_BACK = "no-back-to-back"
PREFERRED_ROOMS = "preferred-rooms"


def is_lab_session(slot: TimeSlot, course: Course | None) -> bool:
    """A session needs a lab when its course is a lab course or it is a lab lesson."""
    return slot.lesson_type == LessonType.LAB or (course is not None and course.is_lab)


def faculty_day_slots(slot: TimeSlot, all_slots: list[TimeSlot]) -> list[TimeSlot]:
    """Active slots taught by the slot's faculty member on the same day and term.

    The slot itself is included even if it is not part of ``all_slots`` yet.
    """
    day_slots = [
        other
        for other in all_slots
        if other.is_active
        and other.faculty_id == slot.faculty_id
        and other.day_of_week == slot.day_of_week
        and same_term(slot, other)
    ]
    if all(other.id != slot.id for other in day_slots):
        day_slots.append(slot)
    return day_slots


def teaching_minutes(slots: list[TimeSlot]) -> int:
    return sum(max(duration_minutes(s.start_time, s.end_time), 0) for s in slots)


class SoftConstraints(ConstraintEvaluators):
    """
    Evaluators for the seeded soft constraints.

    Soft Constraints:
    - room-type-match: Lab sessions in lab rooms, lectures in lecture rooms
    - room-capacity: Lecture rooms large enough for a cohort
    - building-distance: No immediate building change between classes
    - faculty-workload: Daily teaching load within limits
    """

    def evaluators(self) -> dict[str, Evaluator]:
        return {
            ROOM_TYPE_MATCH: self._evaluate_room_type,
            ROOM_CAPACITY: self._evaluate_room_capacity,
            BUILDING_DISTANCE: self._evaluate_building_distance,
            FACULTY_WORKLOAD: self._evaluate_workload,
        }

    def _evaluate_room_type(
        self, constraint: Constraint, context: ConstraintContext
    ) -> EvaluationResult:
        slot, room, course = context.slot, context.room, context.course
        if slot is None or room is None or course is None:
            return EvaluationResult.ok()

        is_lab = is_lab_session(slot, course)
        required = RoomType.LAB if is_lab else RoomType.LECTURE
        if room.type != required:
            return self.violated(constraint, f"{course.name} requires {required.value} room")
        return EvaluationResult.ok()

    def _evaluate_room_capacity(
        self, constraint: Constraint, context: ConstraintContext
    ) -> EvaluationResult:
        slot, room = context.slot, context.room
        if slot is None or room is None:
            return EvaluationResult.ok()
        if slot.lesson_type != LessonType.LECTURE:
            return EvaluationResult.ok()

        minimum = self.settings.min_lecture_capacity
        if room.capacity < minimum:
            return self.violated(
                constraint,
                f"Room {room.name} (capacity: {room.capacity}) is below the "
                f"minimum of {minimum} for lectures",
            )
        return EvaluationResult.ok()

    def _evaluate_building_distance(
        self, constraint: Constraint, context: ConstraintContext
    ) -> EvaluationResult:
        slot = context.slot
        if slot is None or not context.all_slots or not context.rooms:
            return EvaluationResult.ok()

        rooms = index_by_id(context.rooms)
        current = rooms.get(slot.room_id)
        if current is None or not current.building:
            return EvaluationResult.ok()

        end = parse_time(slot.end_time)
        window = self.settings.building_transfer_minutes
        following = sorted(
            (
                other
                for other in faculty_day_slots(slot, context.all_slots)
                if other.id != slot.id
                and 0 <= parse_time(other.start_time) - end <= window
            ),
            key=lambda s: parse_time(s.start_time),
        )
        if not following:
            return EvaluationResult.ok()

        next_slot = following[0]
        next_room = rooms.get(next_slot.room_id)
        if next_room and next_room.building and next_room.building != current.building:
            return self.violated(
                constraint,
                f"Faculty must move from {current.building} to {next_room.building} "
                f"at {slot.end_time}",
            )
        return EvaluationResult.ok()

    def _evaluate_workload(
        self, constraint: Constraint, context: ConstraintContext
    ) -> EvaluationResult:
        slot = context.slot
        if slot is None:
            return EvaluationResult.ok()

        limit_hours = self.settings.max_daily_teaching_hours
        if context.faculty and context.faculty.preferences.max_daily_hours:
            limit_hours = context.faculty.preferences.max_daily_hours

        minutes = teaching_minutes(faculty_day_slots(slot, context.all_slots))
        if minutes > limit_hours * 60:
            return self.violated(
                constraint,
                f"Faculty teaches {minutes / 60:g} hours on this day "
                f"(limit {limit_hours:g})",
            )
        return EvaluationResult.ok()


class PreferenceConstraints(ConstraintEvaluators):
    """
    Evaluators for faculty preference constraints.

    Each preference constraint carries the faculty id and the rule parameters
    in ``Constraint.params`` and only applies to that faculty member's slots.
    """

    def evaluators(self) -> dict[str, Evaluator]:
        return {
            NO_AFTERNOONS: self._evaluate_no_afternoons,
            PREFERRED_DAYS: self._evaluate_preferred_days,
            MAX_DAILY_HOURS: self._evaluate_max_daily_hours,
            NO_BACK_TO_BACK: self._evaluate_no_back_to_back,
            PREFERRED_ROOMS: self._evaluate_preferred_rooms,
        }

    @staticmethod
    def _applies(constraint: Constraint, context: ConstraintContext) -> bool:
        return (
            context.slot is not None
            and context.slot.faculty_id == constraint.params.get("faculty_id")
        )

    def _evaluate_no_afternoons(
        self, constraint: Constraint, context: ConstraintContext
    ) -> EvaluationResult:
        if not self._applies(constraint, context):
            return EvaluationResult.ok()
        if parse_time(context.slot.start_time) >= parse_time(AFTERNOON_START):
            return self.violated(constraint, "Faculty prefers no afternoon classes")
        return EvaluationResult.ok()

    def _evaluate_preferred_days(
        self, constraint: Constraint, context: ConstraintContext
    ) -> EvaluationResult:
        if not self._applies(constraint, context):
            return EvaluationResult.ok()
        days = constraint.params.get("days") or []
        if days and context.slot.day_of_week not in days:
            return self.violated(constraint, "Class is outside the faculty's preferred days")
        return EvaluationResult.ok()

    def _evaluate_max_daily_hours(
        self, constraint: Constraint, context: ConstraintContext
    ) -> EvaluationResult:
        if not self._applies(constraint, context):
            return EvaluationResult.ok()
        hours = constraint.params.get("hours")
        if not hours:
            return EvaluationResult.ok()

        minutes = teaching_minutes(faculty_day_slots(context.slot, context.all_slots))
        if minutes > hours * 60:
            return self.violated(
                constraint, f"Faculty prefers at most {hours:g} teaching hours per day"
            )
        return EvaluationResult.ok()

    def _evaluate_no_back_to_back(
        self, constraint: Constraint, context: ConstraintContext
    ) -> EvaluationResult:
        if not self._applies(constraint, context):
            return EvaluationResult.ok()

        slot = context.slot
        # Only the earlier class of a back-to-back pair is charged
        adjacent = any(
            other.id != slot.id and other.start_time == slot.end_time
            for other in faculty_day_slots(slot, context.all_slots)
        )
        if adjacent:
            return self.violated(constraint, "Faculty prefers a break between classes")
        return EvaluationResult.ok()

    def _evaluate_preferred_rooms(
        self, constraint: Constraint, context: ConstraintContext
    ) -> EvaluationResult:
        if not self._applies(constraint, context):
            return EvaluationResult.ok()
        rooms = constraint.params.get("rooms") or []
        if rooms and context.slot.room_id not in rooms:
            return self.violated(constraint, "Class is outside the faculty's preferred rooms")
        return EvaluationResult.ok()
