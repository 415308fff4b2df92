"""
Pytest configuration and shared fixtures.
"""

import os

# Keep test runs from writing dated log files into the working directory
os.environ.setdefault("AUTOPOPULATE_LOG_FILE", "0")

import pytest
import json
from pathlib import Path
from typing import Dict, Any

from autopopulate.models import RequestContext
from autopopulate.storage import Project, project_from_dict


@pytest.fixture
def project_data() -> Dict[str, Any]:
    """Three-event longitudinal project with one record of data."""
    return {
        "fields": [
            {"name": "record_id", "form": "demographics", "type": "text"},
            {"name": "age", "form": "demographics", "type": "text"},
            {"name": "consent", "form": "demographics", "type": "radio", "choices": "1, Yes | 2, No"},
            {"name": "weight", "form": "visit", "type": "text", "annotation": "@DEFAULT-FROM-PREVIOUS-EVENT"},
            {
                "name": "weight_prev",
                "form": "visit",
                "type": "text",
                "annotation": '@DEFAULT-FROM-PREVIOUS-EVENT="weight" @HIDDEN',
            },
            {
                "name": "symptoms",
                "form": "visit",
                "type": "checkbox",
                "choices": "a, Headache | b, Nausea | c, Fatigue",
                "annotation": "@DEFAULT-FROM-PREVIOUS-EVENT",
            },
            {
                "name": "consent_copy",
                "form": "visit",
                "type": "radio",
                "choices": "1, Yes | 2, No",
                "annotation": '@DEFAULT="[baseline][consent]"',
            },
            {
                "name": "age_note",
                "form": "visit",
                "type": "notes",
                "annotation": '@DEFAULT="Age: [baseline][age]"',
                "branching_logic": "[consent_copy] = '1'",
            },
            {
                "name": "status",
                "form": "visit",
                "type": "text",
                "annotation": '@DEFAULT-FROM-PREVIOUS-EVENT_1="missing_field" @DEFAULT_2="new"',
            },
            {"name": "followup_weight", "form": "followup", "type": "text", "annotation": '@DEFAULT="[week_1][weight]"'},
        ],
        "arms": {"1": ["baseline", "week_1", "week_2"]},
        "events": {
            "baseline": ["demographics", "visit"],
            "week_1": ["visit"],
            "week_2": ["visit", "followup"],
        },
        "records": {
            "1": {
                "baseline": {
                    "record_id": "1",
                    "age": "34",
                    "consent": "1",
                    "weight": "70",
                    "symptoms": {"a": "1", "b": "0", "c": "1"},
                },
                "week_1": {
                    "weight": "72",
                    "symptoms": {"b": "1", "a": "1", "c": "0"},
                },
            }
        },
    }


@pytest.fixture
def project(project_data) -> Project:
    return project_from_dict(project_data)


@pytest.fixture
def visit_context() -> RequestContext:
    """Record 1 opening the visit form at week 2 (no data there yet)."""
    return RequestContext(record="1", event="week_2", form="visit")


@pytest.fixture
def project_file(tmp_path, project_data) -> Path:
    path = tmp_path / "project.json"
    path.write_text(json.dumps(project_data, indent=2))
    return path


class FakeTemplating:
    """Templating double: maps templates to fixed renders and records calls."""

    def __init__(self, renders=None, fail_on=None):
        self.renders = renders or {}
        self.fail_on = fail_on or set()
        self.calls = []

    def render(self, template, record, event, instance=1, fields=None):
        self.calls.append(template)
        if template in self.fail_on:
            raise RuntimeError(f"cannot render {template}")
        return self.renders.get(template, template)


@pytest.fixture
def fake_templating():
    return FakeTemplating
