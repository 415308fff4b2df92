"""
Collaborator contracts and in-memory implementations.

Responsibilities:
- Define what the pipeline needs from metadata, timeline, record and
  templating services.
- Provide in-memory versions backed by plain dicts.

Non-Responsibilities:
- No default resolution.
- No persistence (see database.py).
"""

import re
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Set

from .models import EventTimeline, FieldDescriptor, RecordSnapshot


class MetadataStore(Protocol):
    def get_fields(self, form_name: Optional[str] = None) -> List[FieldDescriptor]:
        ...


class EventTimelineProvider(Protocol):
    def arm_for_event(self, event: str) -> Optional[str]:
        ...

    def events_for_arm(self, arm: str) -> List[str]:
        ...

    def forms_at_event(self, event: str) -> Set[str]:
        ...


class RecordStore(Protocol):
    def get_snapshot(self, record: str) -> RecordSnapshot:
        ...

    def form_has_data(self, record: str, form_name: str, event: str, instance: int = 1) -> bool:
        ...


class TemplatingService(Protocol):
    def render(
        self,
        template: str,
        record: str,
        event: str,
        instance: int = 1,
        fields: Optional[Mapping[str, FieldDescriptor]] = None,
    ) -> str:
        ...


class LogicCompiler(Protocol):
    def to_js(self, equation: str, event: str) -> str:
        ...


def timeline_for(provider: EventTimelineProvider, event: str) -> Optional[EventTimeline]:
    """Materialize the timeline of the arm that ``event`` belongs to."""
    arm = provider.arm_for_event(event)
    if arm is None:
        return None
    events = tuple(provider.events_for_arm(arm))
    forms = {e: frozenset(provider.forms_at_event(e)) for e in events}
    return EventTimeline(arm=arm, events=events, forms=forms)


def has_value(value) -> bool:
    """True if a stored value counts as data (checkbox: any option ticked)."""
    if isinstance(value, Mapping):
        return any(is_checked(flag) for flag in value.values())
    if isinstance(value, (set, frozenset, list, tuple)):
        return len(value) > 0
    return value is not None and str(value) != ""


def is_checked(flag) -> bool:
    return flag not in (None, False, 0, "0", "")


class InMemoryMetadataStore:
    """Field registry kept in definition order."""

    def __init__(self, fields: Iterable[FieldDescriptor]):
        self._fields: Dict[str, FieldDescriptor] = {}
        for descriptor in fields:
            if descriptor.name in self._fields:
                raise ValueError(f"Duplicate field name: {descriptor.name}")
            self._fields[descriptor.name] = descriptor

    def get_fields(self, form_name: Optional[str] = None) -> List[FieldDescriptor]:
        if form_name is None:
            return list(self._fields.values())
        return [f for f in self._fields.values() if f.form_name == form_name]

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        return self._fields.get(name)


class InMemoryTimeline:
    """
    Arms and their ordered events.

    Args:
        arms: Arm id -> ordered event ids (timeline order)
        event_forms: Event id -> form names designated at that event
    """

    def __init__(self, arms: Mapping[str, Sequence[str]], event_forms: Mapping[str, Iterable[str]]):
        self._arms = {str(arm): [str(e) for e in events] for arm, events in arms.items()}
        self._event_forms = {str(e): set(forms) for e, forms in event_forms.items()}
        self._arm_of: Dict[str, str] = {}
        for arm, events in self._arms.items():
            for event in events:
                self._arm_of.setdefault(event, arm)

    def arm_for_event(self, event: str) -> Optional[str]:
        return self._arm_of.get(event)

    def events_for_arm(self, arm: str) -> List[str]:
        return list(self._arms.get(arm, []))

    def forms_at_event(self, event: str) -> Set[str]:
        return set(self._event_forms.get(event, set()))

    @property
    def arms(self) -> Dict[str, List[str]]:
        return {arm: list(events) for arm, events in self._arms.items()}


class InMemoryRecordStore:
    """
    Record data keyed by record id, then event, then field.

    Repeat instances are not modelled; every value belongs to instance 1.
    """

    def __init__(self, records: Mapping[str, RecordSnapshot], metadata: MetadataStore):
        self._records = {str(r): snapshot for r, snapshot in records.items()}
        self._metadata = metadata

    def get_snapshot(self, record: str) -> RecordSnapshot:
        return self._records.get(record, {})

    def form_has_data(self, record: str, form_name: str, event: str, instance: int = 1) -> bool:
        if instance != 1:
            return False
        values = self._records.get(record, {}).get(event, {})
        for descriptor in self._metadata.get_fields(form_name):
            if has_value(values.get(descriptor.name)):
                return True
        return False

    @property
    def records(self) -> Dict[str, RecordSnapshot]:
        return self._records


class BracketLogicCompiler:
    """
    Translates bracket branching logic into a client-side JS expression.

    Only the operator and reference syntax is rewritten; the expression
    is evaluated by the browser, never here.
    """

    _checkbox_ref = re.compile(r"\[([A-Za-z][\w]*)\(([^)]+)\)\]")
    _field_ref = re.compile(r"\[([A-Za-z][\w]*)\]")

    def to_js(self, equation: str, event: str) -> str:
        # Operators first; the generated selectors contain "=" themselves
        js = equation.replace("<>", "!=")
        js = re.sub(r"(?<![<>!=])=(?!=)", "==", js)
        js = re.sub(r"\band\b", "&&", js, flags=re.IGNORECASE)
        js = re.sub(r"\bor\b", "||", js, flags=re.IGNORECASE)
        js = self._checkbox_ref.sub(
            lambda m: f"($('[name=\"__chkn__{m.group(1)}\"][code=\"{m.group(2)}\"]').prop('checked') ? '1' : '0')",
            js,
        )
        return self._field_ref.sub(lambda m: f"$('[name=\"{m.group(1)}\"]').val()", js)
