"""Timetable conflict detection and resolution engine.

This package checks proposed timetable slots against an existing roster,
audits whole rosters for conflicts and repairs them within a bounded
relaxation budget.

Example usage:
    from timetable_conflicts import candidate_from_dict, detect_conflicts

    candidate = candidate_from_dict({
        "operation": "add",
        "courseId": "c1",
        "facultyId": "f1",
        "roomId": "r1",
        "dayOfWeek": 1,
        "startTime": "09:00",
        "endTime": "10:00",
        "academicYear": "2024-2025",
        "semester": 1,
        "yearLevel": 1,
    })
    result = detect_conflicts(candidate, slots, faculty, rooms, courses)
    if not result.can_proceed:
        for conflict in result.errors:
            print(conflict.message)
"""

from .audit import AuditReport, run_audit
from .candidates import (
    AddCandidate,
    Candidate,
    JointCandidate,
    OperationMode,
    SplitCandidate,
    SplitGroup,
    candidate_from_dict,
)
from .config import EngineSettings, Snapshot, SnapshotLoader, load_settings, load_snapshot_file
from .conflicts import (
    AutoResolveOptions,
    ConflictDetail,
    ConflictResult,
    ConflictSeverity,
    ConflictType,
    EnhancedConflict,
    ResolutionAction,
    ResolutionActionType,
    ResolutionResult,
    ResolutionSuggestion,
    Severity,
)
from .constraints import Constraint, ConstraintContext, ConstraintRegistry, EvaluationResult
from .detector import ConflictDetector, detect_conflicts, find_available_windows
from .exceptions import (
    ConfigError,
    InvalidConstraintError,
    InvalidInputError,
    SchedulingError,
    SnapshotError,
    SuggestionApplicationError,
)
from .exporters import JSONExporter
from .models import (
    Course,
    Faculty,
    FacultyPreferences,
    GroupType,
    LessonType,
    Room,
    RoomType,
    Student,
    TimeSlot,
)
from .resolver import ScheduleResolver

__version__ = "0.1.0"

__all__ = [
    # Candidate validation
    "ConflictDetector",
    "detect_conflicts",
    "find_available_windows",
    "AddCandidate",
    "JointCandidate",
    "SplitCandidate",
    "SplitGroup",
    "Candidate",
    "OperationMode",
    "candidate_from_dict",
    # Whole-schedule audit
    "ScheduleResolver",
    "AuditReport",
    "run_audit",
    # Constraints
    "Constraint",
    "ConstraintContext",
    "ConstraintRegistry",
    "EvaluationResult",
    # Conflicts and resolutions
    "AutoResolveOptions",
    "ConflictDetail",
    "ConflictResult",
    "ConflictSeverity",
    "ConflictType",
    "EnhancedConflict",
    "ResolutionAction",
    "ResolutionActionType",
    "ResolutionResult",
    "ResolutionSuggestion",
    "Severity",
    # Models
    "Course",
    "Faculty",
    "FacultyPreferences",
    "GroupType",
    "LessonType",
    "Room",
    "RoomType",
    "Student",
    "TimeSlot",
    # Configuration and I/O
    "EngineSettings",
    "Snapshot",
    "SnapshotLoader",
    "load_settings",
    "load_snapshot_file",
    "JSONExporter",
    # Exceptions
    "SchedulingError",
    "InvalidInputError",
    "InvalidConstraintError",
    "SuggestionApplicationError",
    "SnapshotError",
    "ConfigError",
]
