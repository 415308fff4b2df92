import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from .choices import parse_enum
from .collaborators import InMemoryMetadataStore, InMemoryRecordStore, InMemoryTimeline
from .models import FieldDescriptor
from .piping import PipingService
from .schema import validate_project


@dataclass
class Project:
    """A project document loaded into in-memory collaborators."""

    metadata: InMemoryMetadataStore
    timeline: InMemoryTimeline
    records: InMemoryRecordStore

    @property
    def piping(self) -> PipingService:
        return PipingService(self.records, self.metadata)


def field_from_dict(data: Dict[str, Any]) -> FieldDescriptor:
    return FieldDescriptor(
        name=data["name"],
        form_name=data["form"],
        element_type=data.get("type", "text"),
        annotation_text=data.get("annotation", ""),
        enum_options=parse_enum(data.get("choices")),
        branching_logic=data.get("branching_logic", ""),
    )


def field_to_dict(descriptor: FieldDescriptor) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "name": descriptor.name,
        "form": descriptor.form_name,
        "type": descriptor.element_type,
        "annotation": descriptor.annotation_text,
    }
    if descriptor.enum_options:
        data["choices"] = dict(descriptor.enum_options)
    if descriptor.branching_logic:
        data["branching_logic"] = descriptor.branching_logic
    return data


def project_from_dict(data: Dict[str, Any]) -> Project:
    errors = validate_project(data)
    if errors:
        raise ValueError("Invalid project: " + "; ".join(errors))

    metadata = InMemoryMetadataStore(field_from_dict(f) for f in data["fields"])
    timeline = InMemoryTimeline(data.get("arms", {}), data.get("events", {}))
    records = InMemoryRecordStore(data.get("records", {}), metadata)
    return Project(metadata=metadata, timeline=timeline, records=records)


def project_to_dict(project: Project) -> Dict[str, Any]:
    arms = project.timeline.arms
    events = {
        event: sorted(project.timeline.forms_at_event(event))
        for event_list in arms.values()
        for event in event_list
    }
    records = {}
    for record, snapshot in project.records.records.items():
        records[record] = {
            event: {
                name: sorted(value) if isinstance(value, (set, frozenset)) else value
                for name, value in values.items()
            }
            for event, values in snapshot.items()
        }
    return {
        "fields": [field_to_dict(f) for f in project.metadata.get_fields()],
        "arms": arms,
        "events": events,
        "records": records,
    }


def load_project(path: Path) -> Project:
    """
    Load a project document.

    Raises:
        ValueError: If the file is missing, not JSON, or fails validation
    """
    if not path.exists():
        raise ValueError(f"Project file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Project file is not valid JSON: {e}")
    return project_from_dict(data)


def save_project(path: Path, project: Project) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(project_to_dict(project), f, indent=2, ensure_ascii=False)
