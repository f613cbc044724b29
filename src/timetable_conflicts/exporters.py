"""Export functionality for conflict reports."""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from .audit import AuditReport
from .conflicts import ConflictResult, ResolutionResult

Report = Union[ConflictResult, AuditReport, ResolutionResult]


class BaseExporter(ABC):
    """Base class for exporters."""

    @abstractmethod
    def export(self, report: Report, output_path: str | Path) -> None:
        """Export a report to file.

        Args:
            report: ConflictResult, AuditReport or ResolutionResult to export
            output_path: Path to output file
        """
        pass


class JSONExporter(BaseExporter):
    """Export to JSON format."""

    def __init__(self, indent: int = 2, ensure_ascii: bool = False):
        """Initialize exporter.

        Args:
            indent: JSON indentation level
            ensure_ascii: If False, allows non-ASCII characters
        """
        self.indent = indent
        self.ensure_ascii = ensure_ascii

    def export(self, report: Report, output_path: str | Path) -> None:
        """Write the report as a JSON document.

        Args:
            report: Report whose camelCase dictionary form is written
            output_path: Path to the JSON file, parent directories are created
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(
                report.to_dict(),
                f,
                indent=self.indent,
                ensure_ascii=self.ensure_ascii,
            )
