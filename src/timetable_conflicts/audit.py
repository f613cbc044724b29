"""Whole-roster audit: one scheduling run over a snapshot."""

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from .config.loader import Snapshot
from .config.settings import EngineSettings
from .conflicts import (
    AutoResolveOptions,
    ConflictSeverity,
    EnhancedConflict,
    ResolutionResult,
)
from .constraints.registry import ConstraintRegistry
from .resolver import ScheduleResolver

logger = logging.getLogger(__name__)


@dataclass
class AuditReport:
    """Outcome of auditing a snapshot."""

    slot_count: int
    conflicts: list[EnhancedConflict] = field(default_factory=list)
    violation_score: float = 0.0
    resolution: ResolutionResult | None = None

    @property
    def by_type(self) -> dict[str, int]:
        """Number of conflicts per conflict type."""
        return dict(Counter(c.type.value for c in self.conflicts))

    @property
    def by_severity(self) -> dict[str, int]:
        """Number of conflicts per severity, most severe first."""
        counts = Counter(c.severity for c in self.conflicts)
        return {
            severity.value: counts[severity]
            for severity in sorted(ConflictSeverity, key=lambda s: s.rank, reverse=True)
            if counts[severity]
        }

    @property
    def is_clean(self) -> bool:
        return not self.conflicts

    def to_dict(self) -> dict[str, Any]:
        return {
            "slotCount": self.slot_count,
            "conflictCount": len(self.conflicts),
            "byType": self.by_type,
            "bySeverity": self.by_severity,
            # JSON has no infinity
            "violationScore": (
                None if math.isinf(self.violation_score) else self.violation_score
            ),
            "conflicts": [c.to_dict() for c in self.conflicts],
            "resolution": self.resolution.to_dict() if self.resolution else None,
        }


def run_audit(
    snapshot: Snapshot,
    registry: ConstraintRegistry | None = None,
    settings: EngineSettings | None = None,
    resolve: bool = False,
    options: AutoResolveOptions | None = None,
) -> AuditReport:
    """
    Audit a snapshot and optionally repair it.

    Faculty preference constraints are registered for the duration of the run
    and cleared again afterwards, together with any other dynamic constraint.

    Args:
        snapshot: Roster and reference tables
        registry: Constraint catalog. A fresh registry if None.
        settings: Engine thresholds. The registry's settings if None.
        resolve: Run automatic resolution after detection
        options: Automatic resolution options

    Returns:
        AuditReport
    """
    resolver = ScheduleResolver(registry, settings)
    registry = resolver.registry

    registry.clear_dynamic()
    try:
        for member in snapshot.faculty:
            if not member.preferences.is_empty:
                registry.register_faculty_preferences(member)

        conflicts = resolver.detect_conflicts(
            snapshot.slots,
            snapshot.courses,
            snapshot.faculty,
            snapshot.rooms,
            snapshot.students,
        )
        score = registry.total_violation_score(
            snapshot.slots, snapshot.faculty, snapshot.rooms, snapshot.courses
        )

        resolution = None
        if resolve:
            resolution = resolver.auto_resolve_conflicts(conflicts, snapshot.slots, options)
            logger.info(f"Resolution success rate: {resolution.success_rate:.0%}")
    finally:
        registry.clear_dynamic()

    return AuditReport(
        slot_count=sum(1 for slot in snapshot.slots if slot.is_active),
        conflicts=conflicts,
        violation_score=score,
        resolution=resolution,
    )
