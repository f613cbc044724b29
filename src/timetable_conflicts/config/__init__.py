"""Engine settings and snapshot loading."""

from .loader import Snapshot, SnapshotLoader, load_snapshot_file, read_table
from .settings import EngineSettings, load_settings

__all__ = [
    "EngineSettings",
    "Snapshot",
    "SnapshotLoader",
    "load_settings",
    "load_snapshot_file",
    "read_table",
]
