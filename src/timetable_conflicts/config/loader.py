"""Roster snapshot loader.

A snapshot is a read-only copy of the entity store: the roster plus the
reference tables the engine needs. Each table is read from a JSON array of
camelCase records, or from a CSV/Excel sheet with one column per field.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import pandas as pd

from ..exceptions import SnapshotError
from ..models import Course, Faculty, Room, Student, TimeSlot

logger = logging.getLogger(__name__)

# Table name -> record factory
TABLES: dict[str, Callable[[dict[str, Any]], Any]] = {
    "slots": TimeSlot.from_dict,
    "faculty": Faculty.from_dict,
    "rooms": Room.from_dict,
    "courses": Course.from_dict,
    "students": Student.from_dict,
}

# Tried in order for each table
TABLE_SUFFIXES = (".json", ".csv", ".xlsx")


@dataclass
class Snapshot:
    """Roster and reference tables for one scheduling run."""

    slots: list[TimeSlot] = field(default_factory=list)
    faculty: list[Faculty] = field(default_factory=list)
    rooms: list[Room] = field(default_factory=list)
    courses: list[Course] = field(default_factory=list)
    students: list[Student] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str | None = None) -> "Snapshot":
        """Create a snapshot from a document holding all five arrays.

        ``timeSlots`` is accepted as an alias of ``slots``.
        """
        if not isinstance(data, dict):
            raise SnapshotError("expected a JSON object", source)
        if "slots" not in data and "timeSlots" in data:
            data = {**data, "slots": data["timeSlots"]}
        tables = {
            name: _build(name, data.get(name) or [], source) for name in TABLES
        }
        return cls(**tables)

    def to_dict(self) -> dict[str, Any]:
        return {
            "slots": [s.to_dict() for s in self.slots],
            "faculty": [f.to_dict() for f in self.faculty],
            "rooms": [r.to_dict() for r in self.rooms],
            "courses": [c.to_dict() for c in self.courses],
            "students": [s.to_dict() for s in self.students],
        }


def _cell(key: str, value: Any) -> Any:
    """Convert a spreadsheet cell (always read as text) to a record value."""
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if key == "preferences":
        return json.loads(value)
    return value.strip()


def _normalize_row(row: dict[str, Any]) -> dict[str, Any]:
    """Drop empty cells and convert the rest."""
    return {
        str(key): _cell(str(key), value)
        for key, value in row.items()
        if isinstance(value, str) and value.strip()
    }


def _build(name: str, records: list[Any], source: str | None) -> list[Any]:
    if not isinstance(records, list):
        raise SnapshotError(f"'{name}' must be an array", source)
    factory = TABLES[name]
    items = []
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            raise SnapshotError(f"{name}[{i}] is not an object", source)
        try:
            items.append(factory(record))
        except KeyError as e:
            raise SnapshotError(f"{name}[{i}] is missing field {e}", source) from e
        except (ValueError, TypeError) as e:
            raise SnapshotError(f"{name}[{i}]: {e}", source) from e
    return items


def read_table(path: Path) -> list[dict[str, Any]]:
    """
    Read the raw records of one table file.

    Args:
        path: .json, .csv or .xlsx file

    Returns:
        List of camelCase record dictionaries

    Raises:
        SnapshotError: If the file cannot be read or parsed
    """
    try:
        if path.suffix == ".json":
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, list):
                raise SnapshotError("expected a JSON array", str(path))
            return data

        if path.suffix == ".csv":
            df = pd.read_csv(path, dtype=str, keep_default_na=False)
        else:
            df = pd.read_excel(path, dtype=str, keep_default_na=False, engine="openpyxl")
        return [_normalize_row(row) for row in df.to_dict(orient="records")]
    except SnapshotError:
        raise
    except (OSError, ValueError, pd.errors.ParserError) as e:
        raise SnapshotError(str(e), str(path)) from e


def load_snapshot_file(path: str | Path) -> Snapshot:
    """
    Load a snapshot from a single JSON document.

    Args:
        path: JSON file with ``slots``, ``faculty``, ``rooms``, ``courses``
            and ``students`` arrays

    Returns:
        Snapshot instance

    Raises:
        SnapshotError: If the file is missing or malformed
    """
    path = Path(path)
    if not path.exists():
        raise SnapshotError("file not found", str(path))

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise SnapshotError(str(e), str(path)) from e

    snapshot = Snapshot.from_dict(data, source=str(path))
    logger.info(f"Loaded {len(snapshot.slots)} slots from {path}")
    return snapshot


class SnapshotLoader:
    """Loader for a snapshot directory with one file per table."""

    def __init__(self, snapshot_dir: str | Path):
        """
        Initialize snapshot loader.

        Args:
            snapshot_dir: Directory containing the table files.
                         Expected files (each optional, first match wins):
                         - slots.json / slots.csv / slots.xlsx
                         - faculty.json / faculty.csv / faculty.xlsx
                         - rooms.json / rooms.csv / rooms.xlsx
                         - courses.json / courses.csv / courses.xlsx
                         - students.json / students.csv / students.xlsx

        Raises:
            SnapshotError: If the directory does not exist
        """
        self.snapshot_dir = Path(snapshot_dir)
        if not self.snapshot_dir.is_dir():
            raise SnapshotError("directory not found", str(self.snapshot_dir))

    def _get_path(self, table: str) -> Path | None:
        """Get path to a table file if one exists."""
        for suffix in TABLE_SUFFIXES:
            path = self.snapshot_dir / f"{table}{suffix}"
            if path.exists():
                return path
        return None

    def load_table(self, table: str) -> list[Any]:
        """Load one table; a missing file yields an empty list."""
        path = self._get_path(table)
        if path is None:
            logger.debug(f"No {table} table in {self.snapshot_dir}")
            return []
        return _build(table, read_table(path), str(path))

    def load(self) -> Snapshot:
        """Load every table of the snapshot."""
        snapshot = Snapshot(**{table: self.load_table(table) for table in TABLES})
        logger.info(
            f"Loaded snapshot from {self.snapshot_dir}: {len(snapshot.slots)} slots, "
            f"{len(snapshot.rooms)} rooms, {len(snapshot.faculty)} faculty, "
            f"{len(snapshot.courses)} courses, {len(snapshot.students)} students"
        )
        return snapshot
