from typing import Any, Dict, List, Mapping

from .models import ELEMENT_TYPES

REQUIRED_FIELD_KEYS = ["name", "form"]
OPTIONAL_STR_KEYS = ["type", "annotation", "branching_logic"]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def validate_field(data: Any, index: int) -> List[str]:
    """Returns validation errors for one field definition."""
    where = f"fields[{index}]"
    if not isinstance(data, Mapping):
        return [f"{where} must be an object"]

    errors: List[str] = []
    for key in REQUIRED_FIELD_KEYS:
        if key not in data:
            errors.append(f"{where}: missing required key '{key}'")
        elif not _is_non_empty_str(data[key]):
            errors.append(f"{where}: '{key}' must be a non-empty string")

    for key in OPTIONAL_STR_KEYS:
        if key in data and not isinstance(data[key], str):
            errors.append(f"{where}: '{key}' must be a string if provided")

    element_type = data.get("type", "text")
    if isinstance(element_type, str) and element_type not in ELEMENT_TYPES:
        errors.append(f"{where}: unknown field type '{element_type}'")

    choices = data.get("choices")
    if choices is not None and not isinstance(choices, (str, Mapping)):
        errors.append(f"{where}: 'choices' must be a string or an object")

    return errors


def validate_project(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.

    Checks document shape and cross references (unique field names,
    events belonging to an arm, record data on known events).
    """
    if not isinstance(data, Mapping):
        return ["Project must be a JSON object"]

    errors: List[str] = []

    fields = data.get("fields")
    if not isinstance(fields, list):
        errors.append("Missing required list: fields")
        fields = []

    names = set()
    for i, f in enumerate(fields):
        errors.extend(validate_field(f, i))
        name = f.get("name") if isinstance(f, Mapping) else None
        if isinstance(name, str):
            if name in names:
                errors.append(f"Duplicate field name: {name}")
            names.add(name)

    arms = data.get("arms", {})
    if not isinstance(arms, Mapping):
        errors.append("'arms' must be an object of arm -> event list")
        arms = {}

    known_events = set()
    for arm, events in arms.items():
        if not isinstance(events, list) or not all(isinstance(e, str) for e in events):
            errors.append(f"Arm '{arm}' must list event names")
            continue
        known_events.update(events)

    event_forms = data.get("events", {})
    if not isinstance(event_forms, Mapping):
        errors.append("'events' must be an object of event -> form list")
        event_forms = {}
    for event, forms in event_forms.items():
        if event not in known_events:
            errors.append(f"Event '{event}' is not part of any arm")
        if not isinstance(forms, list):
            errors.append(f"Event '{event}' must list form names")

    records = data.get("records", {})
    if not isinstance(records, Mapping):
        errors.append("'records' must be an object of record -> event data")
        records = {}
    for record, snapshot in records.items():
        if not isinstance(snapshot, Mapping):
            errors.append(f"Record '{record}' must map events to field values")
            continue
        for event in snapshot:
            if event not in known_events:
                errors.append(f"Record '{record}' has data on unknown event '{event}'")

    return errors
