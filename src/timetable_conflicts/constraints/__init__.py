"""Scheduling constraints and their evaluation."""

from .base import (
    Constraint,
    ConstraintCategory,
    ConstraintContext,
    ConstraintEvaluators,
    ConstraintType,
    EvaluationResult,
)
from .hard import HardConstraints
from .registry import ConstraintRegistry, default_constraints
from .soft import PreferenceConstraints, SoftConstraints

__all__ = [
    "Constraint",
    "ConstraintCategory",
    "ConstraintContext",
    "ConstraintEvaluators",
    "ConstraintRegistry",
    "ConstraintType",
    "EvaluationResult",
    "HardConstraints",
    "PreferenceConstraints",
    "SoftConstraints",
    "default_constraints",
]
