"""
Value Resolver.

Responsibilities:
- Produce a candidate default value for one tag occurrence.
- Apply the acceptance rule shared by every strategy.

Non-Responsibilities:
- No tag discovery or ordering.
- No annotation rewriting.

Invariant:
Resolution never raises for a bad tag; the candidate is discarded
and the reason recorded.
"""

from typing import Any, Dict, Mapping, Optional

from .collaborators import TemplatingService, is_checked
from .logger import get_logger
from .models import AnnotationTag, EventTimeline, FieldDescriptor, RecordSnapshot, RequestContext
from .rewriter import has_assignment, value_in_quotes, value_in_tag
from .tags import LITERAL, TEMPORAL, family_of

logger = get_logger()

# Discard reasons, also used as metric keys
NO_TAG_VALUE = "no_tag_value"
UNKNOWN_SOURCE_FIELD = "unknown_source_field"
NO_PREVIOUS_EVENT = "no_previous_event"
EMPTY_VALUE = "empty_value"


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    try:
        float(str(value).strip())
    except ValueError:
        return False
    return str(value).strip() != ""


def is_acceptable(value: Any) -> bool:
    """A candidate is rejected only when it is empty and not numeric."""
    if value is None:
        return False
    if isinstance(value, str) and value == "":
        return False
    return bool(value) or is_numeric(value)


def previous_event(timeline: EventTimeline, current_event: str, form_name: str) -> Optional[str]:
    """Last event before ``current_event`` in timeline order that has ``form_name``."""
    found = None
    for event in timeline.events:
        if event == current_event:
            break
        if form_name in timeline.forms_at(event):
            found = event
    return found


def flatten_value(value: Any, options: Optional[Mapping[str, str]] = None) -> str:
    """
    Reduce a stored value to the string a default can hold.

    Checkbox values (key -> flag) become the ticked keys comma-joined in
    option order; keys the field doesn't declare follow, sorted.
    """
    if value is None:
        return ""
    if isinstance(value, Mapping):
        selected = [str(key) for key, flag in value.items() if is_checked(flag)]
    elif isinstance(value, (set, frozenset, list, tuple)):
        selected = [str(key) for key in value]
    else:
        return str(value)

    order = list(options or {})
    known = [key for key in order if key in selected]
    unknown = sorted(key for key in set(selected) if key not in order)
    return ",".join(known + unknown)


class LiteralStrategy:
    """``@DEFAULT="..."``: the quoted text, piped for the current record."""

    family = LITERAL

    def __init__(
        self,
        templating: TemplatingService,
        context: RequestContext,
        fields: Mapping[str, FieldDescriptor],
    ):
        self.templating = templating
        self.context = context
        self.fields = fields

    def resolve(self, tag: AnnotationTag, descriptor: FieldDescriptor) -> Optional[str]:
        template = value_in_quotes(descriptor.annotation_text, tag.token)
        if template is None:
            _discard(tag, descriptor, NO_TAG_VALUE)
            return None

        return self.templating.render(
            template,
            self.context.entry_record,
            self.context.event,
            self.context.instance,
            fields=self.fields,
        )


class TemporalLookupStrategy:
    """``@DEFAULT-FROM-PREVIOUS-EVENT[="field"]``: value at the nearest earlier event."""

    family = TEMPORAL

    def __init__(
        self,
        timeline: Optional[EventTimeline],
        snapshot: RecordSnapshot,
        context: RequestContext,
        fields: Mapping[str, FieldDescriptor],
    ):
        self.timeline = timeline
        self.snapshot = snapshot
        self.context = context
        self.fields = fields

    def resolve(self, tag: AnnotationTag, descriptor: FieldDescriptor) -> Optional[str]:
        source_field = value_in_tag(descriptor.annotation_text, tag.token)
        if source_field is None:
            # Only a bare tag falls back to the owning field
            if has_assignment(tag.token, descriptor.annotation_text):
                _discard(tag, descriptor, NO_TAG_VALUE)
                return None
            source_field = descriptor.name
        source = self.fields.get(source_field)
        if source is None:
            _discard(tag, descriptor, UNKNOWN_SOURCE_FIELD, source_field=source_field)
            return None

        event = None
        if self.timeline is not None:
            event = previous_event(self.timeline, self.context.event, descriptor.form_name)
        if event is None:
            _discard(tag, descriptor, NO_PREVIOUS_EVENT)
            return None

        value = self.snapshot.get(event, {}).get(source_field)
        return flatten_value(value, source.enum_options)


class ValueResolver:
    """Dispatches a tag occurrence to the strategy of its family."""

    def __init__(self, *strategies):
        self.strategies: Dict[str, Any] = {s.family: s for s in strategies}

    def resolve(self, tag: AnnotationTag, descriptor: FieldDescriptor) -> Optional[str]:
        """
        Return the accepted candidate for ``tag``, or None.

        Args:
            tag: Occurrence taken from the field's scan queue
            descriptor: Field that owns the annotation

        Returns:
            Candidate value as a string, or None when discarded
        """
        logger.record_candidate()
        strategy = self.strategies.get(family_of(tag.name))
        if strategy is None:
            _discard(tag, descriptor, "no_strategy")
            return None

        value = strategy.resolve(tag, descriptor)
        if value is None:
            return None
        if not is_acceptable(value):
            _discard(tag, descriptor, EMPTY_VALUE)
            return None
        return str(value)


def _discard(tag: AnnotationTag, descriptor: FieldDescriptor, reason: str, **context):
    logger.record_discard(reason)
    logger.debug(
        "Candidate discarded",
        field=descriptor.name,
        tag=tag.token,
        reason=reason,
        **context,
    )
