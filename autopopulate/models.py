"""
Data model for default resolution.

Responsibilities:
- Describe fields, tag occurrences, timelines and record data.
- Carry the per-request context explicitly.

Non-Responsibilities:
- No parsing of annotation text.
- No storage access.

Invariant:
RequestContext is immutable and always has a record and an event.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple


ELEMENT_TYPES = frozenset({
    "text",
    "notes",
    "calc",
    "select",
    "radio",
    "checkbox",
    "yesno",
    "truefalse",
    "file",
    "slider",
    "descriptive",
    "sql",
})

# Enumerated-choice types whose piped value is the option label
CHOICE_ELEMENT_TYPES = frozenset({"checkbox", "radio", "select"})


@dataclass
class FieldDescriptor:
    """A single data-entry field and its annotation text."""

    name: str
    form_name: str
    element_type: str = "text"
    annotation_text: str = ""
    enum_options: Dict[str, str] = field(default_factory=dict)
    branching_logic: str = ""

    @property
    def is_choice(self) -> bool:
        return self.element_type in CHOICE_ELEMENT_TYPES


@dataclass(frozen=True)
class AnnotationTag:
    """One tag occurrence found in an annotation blob."""

    name: str
    priority: int
    delta: Optional[int] = None
    token: str = ""

    def __post_init__(self):
        if not self.token:
            token = self.name if self.delta is None else f"{self.name}_{self.delta}"
            object.__setattr__(self, "token", token)

    @property
    def suffixed(self) -> bool:
        return self.delta is not None


@dataclass(frozen=True)
class EventTimeline:
    """Ordered events of one arm and the forms present at each."""

    arm: str
    events: Tuple[str, ...]
    forms: Mapping[str, FrozenSet[str]] = field(default_factory=dict)

    def forms_at(self, event: str) -> FrozenSet[str]:
        return self.forms.get(event, frozenset())


# event id -> field name -> value (scalar, or key -> flag for checkboxes)
RecordSnapshot = Dict[str, Dict[str, Any]]


@dataclass(frozen=True)
class ResolvedDefault:
    field_name: str
    value: str
    winning_tag: str


@dataclass(frozen=True)
class RequestContext:
    """
    Everything a single render request knows about where it is.

    Args:
        record: Current record identifier
        event: Current event identifier
        instance: Repeat instance number
        form: Form being rendered; None means every field of the event
        entry_num: Double data entry slot, appended to the record as ``--N``
    """

    record: str
    event: str
    instance: int = 1
    form: Optional[str] = None
    entry_num: Optional[int] = None

    def __post_init__(self):
        if not self.record:
            raise ValueError("RequestContext requires a record identifier")
        if not self.event:
            raise ValueError("RequestContext requires an event identifier")

    @property
    def entry_record(self) -> str:
        """Record id as seen by piping and per-form data checks."""
        if self.entry_num:
            return f"{self.record}--{self.entry_num}"
        return self.record


@dataclass(frozen=True)
class PipelineResult:
    metadata: Mapping[str, FieldDescriptor]
    resolved: List[ResolvedDefault] = field(default_factory=list)

    @property
    def overlay(self) -> Dict[str, str]:
        """Field name -> rewritten annotation, for resolved fields only."""
        return {r.field_name: self.metadata[r.field_name].annotation_text for r in self.resolved}
