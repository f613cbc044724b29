"""Tunable engine settings."""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Self

from ..constants import (
    BUILDING_TRANSFER_MINUTES,
    CANONICAL_START_TIMES,
    DAY_END,
    DAY_START,
    MAX_DAILY_TEACHING_HOURS,
    MAX_DURATION_MINUTES,
    MAX_ROOM_SUGGESTIONS,
    MAX_SUGGESTIONS,
    MAX_SWAP_SUGGESTIONS,
    MIN_DURATION_MINUTES,
    MIN_LECTURE_CAPACITY,
    TEACHING_DAYS,
)
from ..exceptions import ConfigError


@dataclass
class EngineSettings:
    """Thresholds and limits used by the validator, registry and resolver.

    Attributes:
        canonical_start_times: Start times tried when moving a slot within its day
        teaching_days: Days tried when moving a slot to another day
        min_duration_minutes: Sessions shorter than this are flagged
        max_duration_minutes: Sessions longer than this are flagged
        min_lecture_capacity: Lecture rooms smaller than this are flagged
        building_transfer_minutes: Gap below which a building change is "tight"
        max_daily_teaching_hours: Daily workload limit without a faculty preference
        max_suggestions: Suggestions kept per whole-schedule conflict
        max_swap_suggestions: Swap suggestions generated per slot
        max_room_suggestions: Replacement rooms proposed per slot
        flag_cross_department: Warn about same-year overlaps across departments
        day_start: Start of the teaching day for free-window listing
        day_end: End of the teaching day for free-window listing
    """

    canonical_start_times: list[str] = field(
        default_factory=lambda: list(CANONICAL_START_TIMES)
    )
    teaching_days: list[int] = field(default_factory=lambda: list(TEACHING_DAYS))
    min_duration_minutes: int = MIN_DURATION_MINUTES
    max_duration_minutes: int = MAX_DURATION_MINUTES
    min_lecture_capacity: int = MIN_LECTURE_CAPACITY
    building_transfer_minutes: int = BUILDING_TRANSFER_MINUTES
    max_daily_teaching_hours: float = MAX_DAILY_TEACHING_HOURS
    max_suggestions: int = MAX_SUGGESTIONS
    max_swap_suggestions: int = MAX_SWAP_SUGGESTIONS
    max_room_suggestions: int = MAX_ROOM_SUGGESTIONS
    flag_cross_department: bool = True
    day_start: str = DAY_START
    day_end: str = DAY_END

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str | None = None) -> Self:
        """Create settings from a dictionary, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown setting(s): {', '.join(unknown)}", source)
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_settings(path: str | Path | None = None) -> EngineSettings:
    """Load engine settings from a JSON file.

    Args:
        path: Path to a JSON object of setting overrides. None means defaults.

    Returns:
        EngineSettings instance

    Raises:
        ConfigError: If the file cannot be read or contains unknown keys
    """
    if path is None:
        return EngineSettings()

    path = Path(path)
    if not path.exists():
        raise ConfigError("file not found", str(path))

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(str(e), str(path)) from e

    if not isinstance(data, dict):
        raise ConfigError("expected a JSON object", str(path))

    return EngineSettings.from_dict(data, source=str(path))
