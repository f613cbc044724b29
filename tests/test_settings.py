"""Tests for engine settings."""

import json

import pytest

from timetable_conflicts.config import EngineSettings, load_settings
from timetable_conflicts.exceptions import ConfigError


class TestEngineSettings:
    """Tests for EngineSettings."""

    def test_defaults(self):
        settings = EngineSettings()
        assert settings.canonical_start_times == ["08:00", "10:00", "13:00", "15:00"]
        assert settings.teaching_days == [1, 2, 3, 4, 5]
        assert settings.min_lecture_capacity == 30
        assert settings.max_suggestions == 5
        assert settings.flag_cross_department

    def test_defaults_are_not_shared(self):
        first, second = EngineSettings(), EngineSettings()
        first.teaching_days.append(6)
        assert second.teaching_days == [1, 2, 3, 4, 5]

    def test_from_dict(self):
        settings = EngineSettings.from_dict({"min_lecture_capacity": 50, "day_end": "20:00"})
        assert settings.min_lecture_capacity == 50
        assert settings.day_end == "20:00"
        assert settings.max_duration_minutes == 240

    def test_unknown_keys_rejected(self):
        with pytest.raises(ConfigError, match="unknown setting"):
            EngineSettings.from_dict({"minLectureCapacity": 50})


class TestLoadSettings:
    """Tests for load_settings."""

    def test_none_gives_defaults(self):
        assert load_settings(None) == EngineSettings()

    def test_load_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"max_suggestions": 3}), encoding="utf-8")
        assert load_settings(path).max_suggestions == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="file not found"):
            load_settings(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_settings(path)
