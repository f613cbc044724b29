"""Catalog of named scheduling constraints."""

from __future__ import annotations

import logging
import math

from ..constants import (
    BUILDING_DISTANCE,
    DYNAMIC_PREFIXES,
    FACULTY_OVERLAP,
    FACULTY_WORKLOAD,
    PREFERENCE_PREFIX,
    ROOM_CAPACITY,
    ROOM_OVERLAP,
    ROOM_TYPE_MATCH,
    STUDENT_OVERLAP,
)
from ..config.settings import EngineSettings
from ..exceptions import InvalidConstraintError
from ..models import Course, Faculty, Room, TimeSlot
from ..utils import index_by_id
from .base import (
    Constraint,
    ConstraintCategory,
    ConstraintContext,
    ConstraintType,
    EvaluationResult,
)
from .hard import HardConstraints
from .soft import (
    MAX_DAILY_HOURS,
    NO_AFTERNOONS,
    NO_BACK_TO_BACK,
    PREFERRED_DAYS,
    PREFERRED_ROOMS,
    PreferenceConstraints,
    SoftConstraints,
)

logger = logging.getLogger(__name__)

# Weight and violation cost of faculty preference constraints
PREFERENCE_IMPORTANCE = 100
PREFERENCE_PENALTY = 25


def default_constraints() -> list[Constraint]:
    """The constraints every registry starts with."""
    return [
        Constraint(
            id=ROOM_OVERLAP,
            type=ConstraintType.HARD,
            category=ConstraintCategory.ROOM,
            description="No two classes in same room at same time",
            importance=1000,
        ),
        Constraint(
            id=FACULTY_OVERLAP,
            type=ConstraintType.HARD,
            category=ConstraintCategory.FACULTY,
            description="Faculty cannot teach two classes simultaneously",
            importance=1000,
        ),
        Constraint(
            id=STUDENT_OVERLAP,
            type=ConstraintType.HARD,
            category=ConstraintCategory.STUDENT,
            description="Students cannot attend two classes simultaneously",
            importance=1000,
        ),
        Constraint(
            id=ROOM_TYPE_MATCH,
            type=ConstraintType.SOFT,
            category=ConstraintCategory.RESOURCE,
            description="Room type should match course type",
            importance=500,
            can_relax=True,
            relaxation_penalty=200,
        ),
        Constraint(
            id=ROOM_CAPACITY,
            type=ConstraintType.SOFT,
            category=ConstraintCategory.RESOURCE,
            description="Room capacity should be adequate",
            importance=400,
            can_relax=True,
            relaxation_penalty=150,
        ),
        Constraint(
            id=BUILDING_DISTANCE,
            type=ConstraintType.SOFT,
            category=ConstraintCategory.FACULTY,
            description="Minimize travel between buildings",
            importance=200,
            can_relax=True,
            relaxation_penalty=50,
        ),
        Constraint(
            id=FACULTY_WORKLOAD,
            type=ConstraintType.SOFT,
            category=ConstraintCategory.FACULTY,
            description="Balance faculty workload",
            importance=300,
            can_relax=True,
            relaxation_penalty=100,
        ),
    ]


class ConstraintRegistry:
    """
    Named constraint catalog with evaluation.

    The registry starts with the default hard and soft constraints. Callers may
    add their own; ids starting with 'dynamic-' or 'pref-' are tracked as
    dynamic and removed by clear_dynamic() between scheduling runs.
    """

    def __init__(self, settings: EngineSettings | None = None):
        """
        Initialize the registry with the default constraints.

        Args:
            settings: Engine thresholds used by the evaluators. Defaults if None.
        """
        self.settings = settings or EngineSettings()
        self._constraints: dict[str, Constraint] = {}
        self._dynamic: set[str] = set()

        self._evaluators = {
            **HardConstraints(self.settings).evaluators(),
            **SoftConstraints(self.settings).evaluators(),
        }
        self._preference_evaluators = PreferenceConstraints(self.settings).evaluators()

        for constraint in default_constraints():
            self.add(constraint)

    def add(self, constraint: Constraint) -> None:
        """Add or replace a constraint.

        Raises:
            InvalidConstraintError: If a hard constraint claims to be relaxable
        """
        if constraint.is_hard and constraint.can_relax:
            raise InvalidConstraintError(constraint.id, "hard constraints cannot be relaxed")

        self._constraints[constraint.id] = constraint
        if constraint.id.startswith(DYNAMIC_PREFIXES):
            self._dynamic.add(constraint.id)
        logger.debug(f"Registered constraint {constraint.id}")

    def remove(self, constraint_id: str) -> None:
        """Remove a constraint. Unknown ids are ignored."""
        self._constraints.pop(constraint_id, None)
        self._dynamic.discard(constraint_id)

    def get(self, constraint_id: str) -> Constraint | None:
        return self._constraints.get(constraint_id)

    def list(self) -> list[Constraint]:
        """All constraints in insertion order."""
        return list(self._constraints.values())

    def __contains__(self, constraint_id: object) -> bool:
        return constraint_id in self._constraints

    def __len__(self) -> int:
        return len(self._constraints)

    @property
    def dynamic_ids(self) -> set[str]:
        return set(self._dynamic)

    def clear_dynamic(self) -> None:
        """Remove every dynamic constraint."""
        for constraint_id in self._dynamic:
            self._constraints.pop(constraint_id, None)
        if self._dynamic:
            logger.debug(f"Cleared {len(self._dynamic)} dynamic constraints")
        self._dynamic.clear()

    def register_faculty_preferences(self, faculty: Faculty) -> list[Constraint]:
        """
        Add one soft 'pref-' constraint per preference a faculty member declares.

        Args:
            faculty: Faculty member whose preferences are registered

        Returns:
            The constraints added
        """
        prefs = faculty.preferences
        rules: list[tuple[str, str, dict]] = []
        if prefs.no_afternoons:
            rules.append((NO_AFTERNOONS, "No afternoon classes", {}))
        if prefs.preferred_days:
            rules.append(
                (PREFERRED_DAYS, "Teach on preferred days", {"days": list(prefs.preferred_days)})
            )
        if prefs.max_daily_hours:
            rules.append(
                (
                    MAX_DAILY_HOURS,
                    f"At most {prefs.max_daily_hours:g} teaching hours per day",
                    {"hours": prefs.max_daily_hours},
                )
            )
        if prefs.no_back_to_back:
            rules.append((NO_BACK_TO_BACK, "Break between consecutive classes", {}))
        if prefs.preferred_rooms:
            rules.append(
                (
                    PREFERRED_ROOMS,
                    "Teach in preferred rooms",
                    {"rooms": list(prefs.preferred_rooms)},
                )
            )

        added = []
        for rule, description, params in rules:
            constraint = Constraint(
                id=f"{PREFERENCE_PREFIX}{faculty.id}-{rule}",
                type=ConstraintType.SOFT,
                category=ConstraintCategory.PREFERENCE,
                description=f"{faculty.display_name}: {description}",
                importance=PREFERENCE_IMPORTANCE,
                can_relax=True,
                relaxation_penalty=PREFERENCE_PENALTY,
                params={"rule": rule, "faculty_id": faculty.id, **params},
            )
            self.add(constraint)
            added.append(constraint)
        return added

    def evaluate(self, constraint_id: str, context: ConstraintContext) -> EvaluationResult:
        """
        Evaluate one constraint against a context.

        Unknown constraints, and contexts missing what a rule needs, evaluate as
        satisfied with zero penalty.
        """
        constraint = self._constraints.get(constraint_id)
        if constraint is None:
            return EvaluationResult.ok()

        rule = constraint.params.get("rule")
        if rule:
            evaluator = self._preference_evaluators.get(rule)
        else:
            evaluator = self._evaluators.get(constraint_id)
        if evaluator is None:
            return EvaluationResult.ok()
        return evaluator(constraint, context)

    def total_violation_score(
        self,
        slots: list[TimeSlot],
        faculty: list[Faculty],
        rooms: list[Room],
        courses: list[Course],
    ) -> float:
        """
        Sum the penalties of every violated constraint for every active slot.

        Returns:
            Total penalty; infinite when any hard constraint is violated
        """
        faculty_by_id = index_by_id(faculty)
        rooms_by_id = index_by_id(rooms)
        courses_by_id = index_by_id(courses)

        total = 0.0
        for slot in slots:
            if not slot.is_active:
                continue
            context = ConstraintContext(
                slot=slot,
                faculty=faculty_by_id.get(slot.faculty_id),
                room=rooms_by_id.get(slot.room_id),
                course=courses_by_id.get(slot.course_id),
                all_slots=slots,
                rooms=rooms,
            )
            for constraint in self._constraints.values():
                result = self.evaluate(constraint.id, context)
                if not result.satisfied:
                    total += result.penalty

        if math.isinf(total):
            logger.info("Violation score is infinite: hard constraints are violated")
        else:
            logger.info(f"Violation score for {len(slots)} slots: {total:g}")
        return total
