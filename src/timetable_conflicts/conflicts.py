"""Conflict vocabulary shared by the candidate validator and the schedule resolver."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from .constants import DEFAULT_MAX_RELAXATION
from .models import TimeSlot

if TYPE_CHECKING:
    from .constraints.base import Constraint


class ConflictType(str, Enum):
    """Resource dimension or rule a conflict is about."""

    TIME = "time"
    VALIDATION = "validation"
    FACULTY = "faculty"
    ROOM = "room"
    COURSE = "course"
    STUDENT = "student"
    CAPACITY = "capacity"
    ROOM_TYPE = "room_type"
    SCHEDULE = "schedule"


class Severity(str, Enum):
    """Severity of a candidate conflict. Errors block committing the candidate."""

    ERROR = "error"
    WARNING = "warning"


class ConflictSeverity(str, Enum):
    """Severity of a whole-schedule conflict."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Numeric priority, higher is more severe."""
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class ResolutionActionType(str, Enum):
    """Kind of corrective action."""

    MOVE = "move"
    SWAP = "swap"
    SPLIT = "split"
    MERGE = "merge"
    RELAX = "relax"
    CANCEL = "cancel"


@dataclass
class ConflictDetail:
    """One problem found while validating a candidate."""

    type: ConflictType
    severity: Severity
    message: str
    conflicting_slot: TimeSlot | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
        }
        if self.conflicting_slot is not None:
            data["conflictingSlot"] = self.conflicting_slot.to_dict()
        return data


@dataclass
class ConflictResult:
    """Outcome of validating one candidate submission."""

    has_conflicts: bool = False
    conflicts: list[ConflictDetail] = field(default_factory=list)
    can_proceed: bool = True
    suggestions: list[str] = field(default_factory=list)

    @classmethod
    def from_conflicts(
        cls, conflicts: list[ConflictDetail], suggestions: list[str] | None = None
    ) -> "ConflictResult":
        """Build a result; the candidate may proceed iff there is no error."""
        return cls(
            has_conflicts=bool(conflicts),
            conflicts=conflicts,
            can_proceed=not any(c.is_error for c in conflicts),
            suggestions=suggestions or [],
        )

    @property
    def errors(self) -> list[ConflictDetail]:
        return [c for c in self.conflicts if c.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ConflictDetail]:
        return [c for c in self.conflicts if c.severity == Severity.WARNING]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "hasConflicts": self.has_conflicts,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "canProceed": self.can_proceed,
        }
        if self.suggestions:
            data["suggestions"] = list(self.suggestions)
        return data


@dataclass
class ResolutionAction:
    """A single change proposed by a resolution suggestion."""

    type: ResolutionActionType
    target_slot_id: str | None = None
    swap_with_slot_id: str | None = None
    new_day: int | None = None
    new_start_time: str | None = None
    new_end_time: str | None = None
    new_room: str | None = None
    new_faculty: str | None = None
    relax_constraints: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value}
        optional = {
            "targetSlotId": self.target_slot_id,
            "swapWithSlotId": self.swap_with_slot_id,
            "newDay": self.new_day,
            "newTime": self.new_start_time,
            "newEndTime": self.new_end_time,
            "newRoom": self.new_room,
            "newFaculty": self.new_faculty,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        if self.relax_constraints:
            data["relaxConstraints"] = list(self.relax_constraints)
        return data


@dataclass
class ResolutionSuggestion:
    """A proposed fix for one conflict."""

    id: str
    description: str
    actions: list[ResolutionAction]
    impact_score: float
    success_probability: float

    @property
    def rank_score(self) -> float:
        """Ranking key: likely to work and cheap to apply ranks first."""
        return self.success_probability / (self.impact_score + 1)

    @property
    def relaxed_constraint_ids(self) -> list[str]:
        """Constraint ids relaxed by this suggestion, in action order."""
        ids: list[str] = []
        for action in self.actions:
            if action.type == ResolutionActionType.RELAX:
                ids.extend(action.relax_constraints)
        return ids

    @property
    def is_relaxation(self) -> bool:
        return any(a.type == ResolutionActionType.RELAX for a in self.actions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "actions": [a.to_dict() for a in self.actions],
            "impactScore": self.impact_score,
            "successProbability": self.success_probability,
        }


@dataclass
class EnhancedConflict:
    """A conflict found by a whole-schedule audit."""

    id: str
    type: ConflictType
    description: str
    details: str
    severity: ConflictSeverity
    affected_slots: list[str]
    conflict_score: int
    constraints: list["Constraint"] = field(default_factory=list)
    resolution_suggestions: list[ResolutionSuggestion] = field(default_factory=list)
    auto_resolvable: bool = False
    resolved: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "description": self.description,
            "details": self.details,
            "severity": self.severity.value,
            "affectedSlots": list(self.affected_slots),
            "resolved": self.resolved,
            "constraints": [c.to_dict() for c in self.constraints],
            "resolutionSuggestions": [s.to_dict() for s in self.resolution_suggestions],
            "conflictScore": self.conflict_score,
            "autoResolvable": self.auto_resolvable,
        }


@dataclass
class AutoResolveOptions:
    """Options for automatic conflict resolution.

    Attributes:
        max_relaxation: Maximum number of distinct constraints that may be relaxed
        preserve_preferences: Never relax faculty preference constraints
        allow_partial_resolution: Keep going after a conflict cannot be resolved
    """

    max_relaxation: int = DEFAULT_MAX_RELAXATION
    preserve_preferences: bool = True
    allow_partial_resolution: bool = False


@dataclass
class ResolutionResult:
    """Outcome of an automatic resolution run."""

    success: bool
    resolved_slots: list[TimeSlot]
    remaining_conflicts: list[EnhancedConflict]
    relaxed_constraints: list[str]
    success_rate: float
    applied_suggestions: list[ResolutionSuggestion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "resolvedSlots": [s.to_dict() for s in self.resolved_slots],
            "remainingConflicts": [c.to_dict() for c in self.remaining_conflicts],
            "relaxedConstraints": list(self.relaxed_constraints),
            "successRate": self.success_rate,
            "appliedSuggestions": [s.to_dict() for s in self.applied_suggestions],
        }
