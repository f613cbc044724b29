"""Import checks for the public package surface."""

import timetable_conflicts
from timetable_conflicts.cli import app
from timetable_conflicts.constraints import ConstraintRegistry


class TestPackage:
    """Tests that the package and its entry points import."""

    def test_version(self):
        assert timetable_conflicts.__version__ == "0.1.0"

    def test_registry_class_builds(self):
        registry = ConstraintRegistry()
        assert len(registry.list()) == 7
        assert registry.register_faculty_preferences.__annotations__["return"]

    def test_cli_app(self):
        assert app.info.name == "timetable-conflicts"
