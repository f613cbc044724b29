"""Utility functions for time arithmetic and slot comparison."""

import re
from collections import defaultdict
from typing import Iterable, Protocol, TypeVar

from .constants import DAY_NAMES, TIME_PATTERN
from .conflicts import ConflictType
from .models import GroupType, TimeSlot

_TIME_RE = re.compile(TIME_PATTERN)

# Categories in which two members of the same split group may coincide
COHORT_CATEGORIES = {ConflictType.COURSE, ConflictType.STUDENT}


class GroupMember(Protocol):
    """Anything carrying group fields: stored slots and candidate submissions."""

    group_id: str | None
    group_type: GroupType


class HasId(Protocol):
    id: str


T = TypeVar("T", bound=HasId)


def is_valid_time(value: object) -> bool:
    """Check that a value is an 'HH:MM' 24-hour time string."""
    return isinstance(value, str) and bool(_TIME_RE.match(value.strip()))


def parse_time(value: str) -> int:
    """Convert 'HH:MM' to minutes since midnight.

    Args:
        value: Time string like "09:30" or "9:30"

    Returns:
        Minutes since midnight

    Raises:
        ValueError: If the value is not a valid time string
    """
    if not is_valid_time(value):
        raise ValueError(f"Invalid time: {value!r}")
    hours, minutes = value.strip().split(":")
    return int(hours) * 60 + int(minutes)


def format_time(minutes: int) -> str:
    """Convert minutes since midnight to 'HH:MM'."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(value: str, minutes: int) -> str:
    """Shift a time string by a number of minutes."""
    return format_time(parse_time(value) + minutes)


def duration_minutes(start: str, end: str) -> int:
    """Length of an interval in minutes (negative if end precedes start)."""
    return parse_time(end) - parse_time(start)


def times_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Check whether two half-open time intervals overlap.

    Back-to-back intervals (one ends when the other starts) do not overlap.
    """
    return parse_time(start1) < parse_time(end2) and parse_time(end1) > parse_time(start2)


def slots_overlap(slot1: TimeSlot, slot2: TimeSlot) -> bool:
    """Check whether two slots are on the same day with overlapping times."""
    return slot1.day_of_week == slot2.day_of_week and times_overlap(
        slot1.start_time, slot1.end_time, slot2.start_time, slot2.end_time
    )


def same_term(slot1: TimeSlot, slot2: TimeSlot) -> bool:
    """Check whether two slots belong to the same academic year and semester."""
    return slot1.academic_year == slot2.academic_year and slot1.semester == slot2.semester


def in_same_group(a: GroupMember, b: GroupMember, group_type: GroupType) -> bool:
    """Check whether both members belong to the same group of the given type."""
    return (
        a.group_type == group_type
        and b.group_type == group_type
        and bool(a.group_id)
        and a.group_id == b.group_id
    )


def are_exempt(a: GroupMember, b: GroupMember, category: ConflictType | str) -> bool:
    """Decide whether a pair is allowed to coincide for one check category.

    Members of the same joint session share faculty, room, time and cohort, so
    they are exempt from every category. Members of the same split class divide
    one cohort, so they are exempt from the cohort categories only and still
    need their own room and faculty.

    Args:
        a: First slot or candidate
        b: Second slot or candidate
        category: Check category (room, faculty, course, student, ...)

    Returns:
        True if the pair must not be reported for this category
    """
    if in_same_group(a, b, GroupType.JOINT):
        return True
    if in_same_group(a, b, GroupType.SPLIT):
        return ConflictType(category) in COHORT_CATEGORIES
    return False


def semester_as_int(value: int | str | None) -> int | None:
    """Normalize a semester given as number or numeric string."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def get_day_name(day: int) -> str:
    """Get the weekday name for a 1-based day number (1 = Monday)."""
    return DAY_NAMES.get(day, "")


def index_by_id(items: Iterable[T]) -> dict[str, T]:
    """Build an id -> item lookup for a reference table."""
    return {item.id: item for item in items}


def group_by_term_day(
    slots: Iterable[TimeSlot],
) -> dict[tuple[str, int, int], list[TimeSlot]]:
    """Bucket slots by (academic year, semester, day), keeping input order.

    Two slots can only conflict if they share a bucket, so pairwise scans
    run per bucket.
    """
    buckets: dict[tuple[str, int, int], list[TimeSlot]] = defaultdict(list)
    for slot in slots:
        buckets[(slot.academic_year, slot.semester, slot.day_of_week)].append(slot)
    return buckets


def latest_end_time(slots: Iterable[TimeSlot]) -> str | None:
    """Latest end time among the given slots, or None if there are none."""
    ends = [parse_time(s.end_time) for s in slots if is_valid_time(s.end_time)]
    if not ends:
        return None
    return format_time(max(ends))
