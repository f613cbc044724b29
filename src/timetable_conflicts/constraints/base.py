"""Base types for scheduling constraints."""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from ..models import Course, Faculty, Room, TimeSlot

if TYPE_CHECKING:
    from ..config.settings import EngineSettings


class ConstraintType(str, Enum):
    """Hard constraints must hold; soft ones may be violated at a cost."""

    HARD = "hard"
    SOFT = "soft"


class ConstraintCategory(str, Enum):
    """Resource dimension a constraint is about."""

    ROOM = "room"
    FACULTY = "faculty"
    COURSE = "course"
    STUDENT = "student"
    RESOURCE = "resource"
    PREFERENCE = "preference"


@dataclass
class Constraint:
    """A named scheduling rule.

    Attributes:
        id: Unique identifier; 'dynamic-' and 'pref-' ids are cleared between runs
        type: HARD or SOFT
        category: Resource dimension
        description: Human-readable rule
        importance: Weight from 1 to 1000, higher is more important
        can_relax: Whether auto-resolution may accept a violation
        relaxation_penalty: Cost of a violation (infinite for hard rules)
        params: Rule parameters (used by preference constraints)
    """

    id: str
    type: ConstraintType
    category: ConstraintCategory
    description: str
    importance: int
    can_relax: bool = False
    relaxation_penalty: float = math.inf
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def is_hard(self) -> bool:
        return self.type == ConstraintType.HARD

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "category": self.category.value,
            "description": self.description,
            "importance": self.importance,
            "canRelax": self.can_relax,
            # JSON has no infinity
            "relaxationPenalty": (
                None if math.isinf(self.relaxation_penalty) else self.relaxation_penalty
            ),
        }


@dataclass
class ConstraintContext:
    """What a constraint is evaluated against.

    Attributes:
        slot: The slot under evaluation
        faculty: Faculty member teaching the slot
        room: Room of the slot
        course: Course of the slot
        all_slots: Full roster the slot belongs to
        rooms: Room table, needed for building comparisons
    """

    slot: TimeSlot | None = None
    faculty: Faculty | None = None
    room: Room | None = None
    course: Course | None = None
    all_slots: list[TimeSlot] = field(default_factory=list)
    rooms: list[Room] = field(default_factory=list)


@dataclass
class EvaluationResult:
    """Outcome of evaluating one constraint."""

    satisfied: bool
    penalty: float = 0.0
    details: str | None = None

    @classmethod
    def ok(cls) -> "EvaluationResult":
        return cls(satisfied=True)


Evaluator = Callable[[Constraint, ConstraintContext], EvaluationResult]


class ConstraintEvaluators(ABC):
    """Abstract base class for a family of constraint evaluators."""

    def __init__(self, settings: "EngineSettings"):
        """
        Initialize evaluator family.

        Args:
            settings: Engine thresholds used by the rules.
        """
        self.settings = settings

    @abstractmethod
    def evaluators(self) -> dict[str, Evaluator]:
        """
        Map each rule key this family handles to its evaluator.

        Returns:
            Dictionary from constraint id (or preference rule name) to evaluator.
        """
        pass

    @staticmethod
    def violated(constraint: Constraint, details: str) -> EvaluationResult:
        """Result for a violated constraint, charged its relaxation penalty."""
        return EvaluationResult(
            satisfied=False, penalty=constraint.relaxation_penalty, details=details
        )
