"""Basic validation of candidate submissions.

These checks run before any resource check. A failure is reported as an
error-severity conflict and stops the detector.
"""

from .candidates import Candidate, JointCandidate, SplitCandidate
from .conflicts import ConflictDetail, ConflictType, Severity
from .constants import MAX_DAY, MIN_DAY
from .utils import is_valid_time, parse_time, semester_as_int

REQUIRED_FIELDS_SUGGESTION = "Please fill in all required fields including year level"

# (attribute, label) pairs checked for presence
REQUIRED_FIELDS = [
    ("day_of_week", "day of week"),
    ("start_time", "start time"),
    ("end_time", "end time"),
    ("academic_year", "academic year"),
    ("semester", "semester"),
    ("year_level", "year level"),
]


def validate_required_fields(candidate: Candidate) -> tuple[bool, str | None]:
    """Check that every required field is present.

    Args:
        candidate: Submission to check

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing = [
        label for attr, label in REQUIRED_FIELDS if getattr(candidate, attr) in (None, "")
    ]
    if missing:
        return False, f"Missing required field(s): {', '.join(missing)}"
    return True, None


def validate_time_format(start_time: str, end_time: str) -> tuple[bool, str | None]:
    """Check that both times are 'HH:MM' strings.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not is_valid_time(start_time) or not is_valid_time(end_time):
        return False, "Invalid time format. Use HH:MM format (e.g., 09:00)"
    return True, None


def validate_time_order(start_time: str, end_time: str) -> tuple[bool, str | None]:
    """Check that the start strictly precedes the end. Both must be valid times.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if parse_time(start_time) >= parse_time(end_time):
        return False, "End time must be after start time"
    return True, None


def validate_day(day_of_week: int) -> tuple[bool, str | None]:
    """Check that the day is within 1 (Monday) .. 7 (Sunday).

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not MIN_DAY <= day_of_week <= MAX_DAY:
        return False, (
            f"Invalid day of week: {day_of_week}. "
            f"Use {MIN_DAY} (Monday) to {MAX_DAY} (Sunday)"
        )
    return True, None


def validate_semester(semester: int | str) -> tuple[bool, str | None]:
    """Check that the semester is a number such as 1 or "2"."""
    if semester_as_int(semester) is None:
        return False, f"Invalid semester: {semester!r}. Use a number (e.g., 1)"
    return True, None


def validate_year_level(year_level: int) -> tuple[bool, str | None]:
    if year_level < 1:
        return False, f"Invalid year level: {year_level}. Year levels start at 1"
    return True, None


def _validate_interval(start: str, end: str, prefix: str = "") -> list[ConflictDetail]:
    valid, message = validate_time_format(start, end)
    if not valid:
        return [ConflictDetail(ConflictType.TIME, Severity.ERROR, f"{prefix}{message}")]
    valid, message = validate_time_order(start, end)
    if not valid:
        return [ConflictDetail(ConflictType.TIME, Severity.ERROR, f"{prefix}{message}")]
    return []


def _validate_joint(candidate: JointCandidate) -> list[ConflictDetail]:
    if len(candidate.course_ids) < 2:
        return [
            ConflictDetail(
                ConflictType.COURSE,
                Severity.ERROR,
                "Joint sessions require at least 2 courses. Please add more courses.",
            )
        ]
    return []


def _validate_split(candidate: SplitCandidate) -> list[ConflictDetail]:
    if not candidate.split_groups:
        return [
            ConflictDetail(
                ConflictType.COURSE,
                Severity.ERROR,
                "Split class groups not defined. Please add at least 2 groups.",
            )
        ]

    conflicts: list[ConflictDetail] = []
    if len(candidate.split_groups) < 2:
        conflicts.append(
            ConflictDetail(
                ConflictType.COURSE,
                Severity.ERROR,
                "Split classes require at least 2 groups to divide students effectively.",
            )
        )

    # Only groups that override the class times need their own interval check
    for group in candidate.split_groups:
        if group.start_time or group.end_time:
            resolved = group.resolve(candidate)
            conflicts.extend(
                _validate_interval(resolved.start_time, resolved.end_time, f"{group.name}: ")
            )
    return conflicts


def validate_candidate(candidate: Candidate) -> tuple[list[ConflictDetail], list[str]]:
    """Run all basic validation on a submission.

    Args:
        candidate: Submission to check

    Returns:
        Tuple of (error conflicts, suggestions). An empty conflict list means the
        submission may go on to resource checks.
    """
    valid, message = validate_required_fields(candidate)
    if not valid:
        conflict = ConflictDetail(ConflictType.VALIDATION, Severity.ERROR, message)
        return [conflict], [REQUIRED_FIELDS_SUGGESTION]

    conflicts: list[ConflictDetail] = []

    for valid, message in (
        validate_day(candidate.day_of_week),
        validate_semester(candidate.semester),
        validate_year_level(candidate.year_level),
    ):
        if not valid:
            conflicts.append(ConflictDetail(ConflictType.VALIDATION, Severity.ERROR, message))

    conflicts.extend(_validate_interval(candidate.start_time, candidate.end_time))

    if isinstance(candidate, JointCandidate):
        conflicts.extend(_validate_joint(candidate))
    elif isinstance(candidate, SplitCandidate):
        conflicts.extend(_validate_split(candidate))

    return conflicts, []
