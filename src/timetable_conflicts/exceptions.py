"""Custom exceptions for the timetable conflict engine.

Scheduling conflicts are reported as data (see ``conflicts.py``). The exceptions
below are reserved for malformed calls, unreadable inputs and internal failures.
"""


class SchedulingError(Exception):
    """Base exception for engine errors."""

    pass


class InvalidInputError(SchedulingError):
    """A call or payload does not have the shape the engine requires."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        location = f" (field '{field}')" if field else ""
        super().__init__(f"Invalid input{location}: {message}")


class InvalidConstraintError(SchedulingError):
    """A constraint definition is inconsistent."""

    def __init__(self, constraint_id: str, reason: str):
        self.constraint_id = constraint_id
        super().__init__(f"Invalid constraint '{constraint_id}': {reason}")


class SuggestionApplicationError(SchedulingError):
    """A resolution suggestion could not be applied to a roster."""

    def __init__(self, suggestion_id: str, reason: str):
        self.suggestion_id = suggestion_id
        self.reason = reason
        super().__init__(f"Cannot apply suggestion '{suggestion_id}': {reason}")


class SnapshotError(SchedulingError):
    """A roster snapshot could not be loaded."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        location = f" in '{path}'" if path else ""
        super().__init__(f"Snapshot error{location}: {message}")


class ConfigError(SchedulingError):
    """Engine settings could not be loaded."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        location = f" '{path}'" if path else ""
        super().__init__(f"Invalid settings{location}: {message}")
