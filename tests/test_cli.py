"""Tests for the command line interface."""

import json

import pytest
from typer.testing import CliRunner

from timetable_conflicts.cli import app

runner = CliRunner()


@pytest.fixture
def snapshot_file(tmp_path, faculty, rooms, courses, students):
    """Write a snapshot document and return a function that fills in its slots."""

    def _write(slots):
        path = tmp_path / "snapshot.json"
        data = {
            "slots": [s.to_dict() for s in slots],
            "faculty": [f.to_dict() for f in faculty],
            "rooms": [r.to_dict() for r in rooms],
            "courses": [c.to_dict() for c in courses],
            "students": [s.to_dict() for s in students],
        }
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def candidate_file(tmp_path):
    def _write(**overrides):
        data = {
            "operation": "add",
            "courseId": "c2",
            "facultyId": "f1",
            "roomId": "r2",
            "departmentId": "d1",
            "dayOfWeek": 1,
            "startTime": "09:00",
            "endTime": "10:00",
            "academicYear": "2024-2025",
            "semester": 1,
            "yearLevel": 2,
        }
        data.update(overrides)
        path = tmp_path / "candidate.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


class TestCheck:
    """Tests for the check command."""

    def test_conflicting_candidate(self, snapshot_file, candidate_file, roster):
        result = runner.invoke(
            app, ["check", str(candidate_file()), "-s", str(snapshot_file(roster))]
        )
        assert result.exit_code == 1
        assert "Cannot proceed" in result.output

    def test_clean_candidate_with_export(self, tmp_path, snapshot_file, candidate_file, roster):
        output = tmp_path / "out" / "result"
        result = runner.invoke(
            app,
            [
                "check",
                str(candidate_file(dayOfWeek=2)),
                "-s",
                str(snapshot_file(roster)),
                "-o",
                str(output),
            ],
        )
        assert result.exit_code == 0
        assert "Can proceed" in result.output
        data = json.loads(output.with_suffix(".json").read_text(encoding="utf-8"))
        assert data["canProceed"] is True

    def test_missing_candidate_file(self, tmp_path, snapshot_file, roster):
        result = runner.invoke(
            app, ["check", str(tmp_path / "missing.json"), "-s", str(snapshot_file(roster))]
        )
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_missing_snapshot(self, tmp_path, candidate_file):
        result = runner.invoke(
            app, ["check", str(candidate_file()), "-s", str(tmp_path / "nowhere")]
        )
        assert result.exit_code == 1
        assert "Snapshot error" in result.output


class TestAudit:
    """Tests for the audit command."""

    def test_clean_roster(self, snapshot_file, roster):
        result = runner.invoke(app, ["audit", "-s", str(snapshot_file(roster))])
        assert result.exit_code == 0
        assert "Active slots: 1" in result.output
        assert "No conflicts found" in result.output

    def test_room_overlap_with_export(self, tmp_path, snapshot_file, make_slot):
        slots = [make_slot("s1"), make_slot("s2", course_id="c5", faculty_id="f2", year_level=2)]
        output = tmp_path / "audit.json"
        result = runner.invoke(
            app, ["audit", "-s", str(snapshot_file(slots)), "--resolve", "-o", str(output)]
        )
        assert result.exit_code == 0
        assert "Conflicts: 1" in result.output
        assert "Violation score: ∞" in result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["conflictCount"] == 1
        assert data["byType"] == {"room": 1}
        assert data["resolution"]["success"] is True

    def test_invalid_settings(self, tmp_path, snapshot_file, roster):
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({"no_such_setting": 1}), encoding="utf-8")
        result = runner.invoke(
            app, ["--config", str(settings), "audit", "-s", str(snapshot_file(roster))]
        )
        assert result.exit_code == 1
        assert "Invalid settings" in result.output


class TestConstraintsAndFree:
    """Tests for the constraints and free commands."""

    def test_constraints(self):
        result = runner.invoke(app, ["constraints"])
        assert result.exit_code == 0
        assert "Constraints" in result.output

    def test_free_windows(self, snapshot_file, roster):
        result = runner.invoke(
            app,
            [
                "free",
                "-s",
                str(snapshot_file(roster)),
                "-d",
                "1",
                "-y",
                "2024-2025",
                "--semester",
                "1",
            ],
        )
        assert result.exit_code == 0
        assert "Free windows on Monday" in result.output
        assert "08:00" in result.output
        assert "18:00" in result.output

    def test_invalid_day(self, snapshot_file, roster):
        result = runner.invoke(
            app,
            [
                "free",
                "-s",
                str(snapshot_file(roster)),
                "-d",
                "9",
                "-y",
                "2024-2025",
                "--semester",
                "1",
            ],
        )
        assert result.exit_code == 1
        assert "Invalid day" in result.output
