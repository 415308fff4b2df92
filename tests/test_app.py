"""
Tests for the command line interface.
"""

import json
import sys

import pytest

from autopopulate import __version__
from autopopulate.app import main
from autopopulate.database import get_session, import_project, init_database


def run_cli(monkeypatch, capsys, *argv):
    monkeypatch.setattr(sys, "argv", ["autopopulate", *argv])
    main()
    return capsys.readouterr().out


class TestCli:
    def test_version(self, monkeypatch, capsys):
        assert run_cli(monkeypatch, capsys, "--version").strip() == __version__

    def test_scan(self, monkeypatch, capsys):
        out = run_cli(monkeypatch, capsys, "scan", "--text", '@DEFAULT_2="X" @DEFAULT="Y"')
        assert out.split() == ["@DEFAULT", "@DEFAULT_2"]

    def test_validate_valid(self, monkeypatch, capsys, project_file):
        assert run_cli(monkeypatch, capsys, "validate", "--input", str(project_file)).strip() == "Valid"

    def test_validate_invalid(self, monkeypatch, capsys, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"fields": [{"name": "x", "form": "f", "type": "matrix"}]}))

        with pytest.raises(SystemExit) as exc:
            run_cli(monkeypatch, capsys, "validate", "--input", str(path))

        assert exc.value.code == 2
        assert "unknown field type" in capsys.readouterr().out

    def test_resolve_project(self, monkeypatch, capsys, project_file):
        out = run_cli(
            monkeypatch, capsys,
            "resolve", "--project", str(project_file), "--record", "1", "--event", "week_2", "--form", "visit",
        )
        result = json.loads(out)

        assert result["skipped"] is False
        assert result["defaults"]["weight"] == {"value": "72", "tag": "@DEFAULT-FROM-PREVIOUS-EVENT"}
        assert result["annotations"]["consent_copy"] == '@DEFAULT="1"'
        assert "age_note" in result["branching_equations"]
        settings = json.loads(result["settings"])
        assert settings["defaultWhenVisible"]["branchingEquations"] == result["branching_equations"]

    def test_resolve_skips_filled_form(self, monkeypatch, capsys, project_file):
        out = run_cli(
            monkeypatch, capsys,
            "resolve", "--project", str(project_file), "--record", "1", "--event", "week_1", "--form", "visit",
        )
        result = json.loads(out)

        assert result["skipped"] is True
        assert result["defaults"] == {}

    def test_resolve_database(self, monkeypatch, capsys, tmp_path, project):
        db_path = tmp_path / "project.db"
        init_database(db_path)
        session = get_session(db_path)
        import_project(session, project)
        session.close()

        out = run_cli(
            monkeypatch, capsys,
            "resolve", "--db", str(db_path), "--record", "1", "--event", "week_2",
        )
        result = json.loads(out)

        assert result["defaults"]["followup_weight"]["value"] == "72"
        assert "branching_equations" not in result
        assert "settings" not in result

    def test_resolve_missing_project(self, monkeypatch, capsys, tmp_path):
        with pytest.raises(SystemExit, match="not found"):
            run_cli(
                monkeypatch, capsys,
                "resolve", "--project", str(tmp_path / "absent.json"), "--record", "1", "--event", "e1",
            )
