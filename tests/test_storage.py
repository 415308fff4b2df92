"""
Tests for project document loading and validation.
"""

import json

import pytest

from autopopulate.schema import validate_field, validate_project
from autopopulate.storage import load_project, save_project


class TestValidateProject:
    def test_valid_project(self, project_data):
        assert validate_project(project_data) == []

    def test_missing_fields(self):
        errors = validate_project({"arms": {}})
        assert any("fields" in err for err in errors)

    def test_not_an_object(self):
        assert validate_project([]) == ["Project must be a JSON object"]

    def test_duplicate_field_names(self, project_data):
        project_data["fields"].append({"name": "age", "form": "visit"})
        errors = validate_project(project_data)
        assert "Duplicate field name: age" in errors

    def test_unknown_event_in_record(self, project_data):
        project_data["records"]["1"]["week_9"] = {"weight": "1"}
        errors = validate_project(project_data)
        assert any("week_9" in err for err in errors)

    def test_event_outside_arms(self, project_data):
        project_data["events"]["orphan"] = ["visit"]
        errors = validate_project(project_data)
        assert any("orphan" in err for err in errors)


class TestValidateField:
    def test_missing_required_key(self):
        errors = validate_field({"name": "x"}, 0)
        assert any("form" in err for err in errors)

    def test_unknown_type(self):
        errors = validate_field({"name": "x", "form": "f", "type": "matrix"}, 3)
        assert errors == ["fields[3]: unknown field type 'matrix'"]

    def test_bad_choices(self):
        errors = validate_field({"name": "x", "form": "f", "type": "radio", "choices": 5}, 0)
        assert any("choices" in err for err in errors)


class TestLoadProject:
    def test_load(self, project_file):
        project = load_project(project_file)
        consent = [f for f in project.metadata.get_fields() if f.name == "consent"][0]
        assert consent.enum_options == {"1": "Yes", "2": "No"}
        assert project.timeline.events_for_arm("1") == ["baseline", "week_1", "week_2"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError, match="not found"):
            load_project(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_project(path)

    def test_invalid_document(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"fields": [{"name": "x"}]}))
        with pytest.raises(ValueError, match="Invalid project"):
            load_project(path)

    def test_save_and_reload(self, project, tmp_path):
        path = tmp_path / "out" / "project.json"
        save_project(path, project)
        reloaded = load_project(path)

        assert [f.name for f in reloaded.metadata.get_fields()] == [f.name for f in project.metadata.get_fields()]
        assert reloaded.records.get_snapshot("1") == project.records.get_snapshot("1")
        assert reloaded.timeline.forms_at_event("week_2") == {"visit", "followup"}
