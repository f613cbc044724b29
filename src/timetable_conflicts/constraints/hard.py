"""Hard constraint evaluators.

Hard constraints are mandatory requirements that must never be violated.
A schedule violating any hard constraint is considered invalid.
"""

from ..conflicts import ConflictType
from ..constants import FACULTY_OVERLAP, ROOM_OVERLAP, STUDENT_OVERLAP
from ..models import TimeSlot
from ..utils import are_exempt, same_term, slots_overlap
from .base import (
    Constraint,
    ConstraintContext,
    ConstraintEvaluators,
    EvaluationResult,
    Evaluator,
)


def overlapping_slots(
    slot: TimeSlot, all_slots: list[TimeSlot], category: ConflictType
) -> list[TimeSlot]:
    """Active slots of the same term that overlap ``slot`` and are not exempt."""
    return [
        other
        for other in all_slots
        if other.id != slot.id
        and other.is_active
        and same_term(slot, other)
        and slots_overlap(slot, other)
        and not are_exempt(slot, other, category)
    ]


class HardConstraints(ConstraintEvaluators):
    """
    Evaluators for the hard constraints.

    Hard Constraints:
    - no-room-overlap: A room hosts one class at a time
    - no-faculty-overlap: A faculty member teaches one class at a time
    - no-student-overlap: A year-level cohort attends one class at a time
    """

    def evaluators(self) -> dict[str, Evaluator]:
        return {
            ROOM_OVERLAP: self._evaluate_room_overlap,
            FACULTY_OVERLAP: self._evaluate_faculty_overlap,
            STUDENT_OVERLAP: self._evaluate_student_overlap,
        }

    def _evaluate_room_overlap(
        self, constraint: Constraint, context: ConstraintContext
    ) -> EvaluationResult:
        """A room can only host one class at any given time."""
        slot = context.slot
        if slot is None or not context.all_slots:
            return EvaluationResult.ok()

        clashes = [
            other
            for other in overlapping_slots(slot, context.all_slots, ConflictType.ROOM)
            if other.room_id == slot.room_id
        ]
        if clashes:
            return self.violated(constraint, "Room is already occupied at this time")
        return EvaluationResult.ok()

    def _evaluate_faculty_overlap(
        self, constraint: Constraint, context: ConstraintContext
    ) -> EvaluationResult:
        """A faculty member can only teach one class at any given time."""
        slot = context.slot
        if slot is None or not context.all_slots:
            return EvaluationResult.ok()

        clashes = [
            other
            for other in overlapping_slots(slot, context.all_slots, ConflictType.FACULTY)
            if other.faculty_id == slot.faculty_id
        ]
        if clashes:
            return self.violated(constraint, "Faculty member is already teaching at this time")
        return EvaluationResult.ok()

    def _evaluate_student_overlap(
        self, constraint: Constraint, context: ConstraintContext
    ) -> EvaluationResult:
        """A year-level cohort of a department can only attend one class at a time."""
        slot = context.slot
        if slot is None or not context.all_slots:
            return EvaluationResult.ok()

        clashes = [
            other
            for other in overlapping_slots(slot, context.all_slots, ConflictType.STUDENT)
            if other.year_level == slot.year_level
            and other.department_id == slot.department_id
            and other.course_id != slot.course_id
        ]
        if clashes:
            return self.violated(
                constraint,
                f"Year {slot.year_level} students already have {clashes[0].course_id} "
                f"at this time",
            )
        return EvaluationResult.ok()
