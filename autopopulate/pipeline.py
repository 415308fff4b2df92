"""
Default Resolution Orchestrator.

Responsibilities:
- Normalize choice labels on a private copy of the field registry.
- Scan each field in scope and run resolution strategies in queue order.
- Rewrite the canonical @DEFAULT tag of every resolved field.
- Commit all rewrites at once.

Non-Responsibilities:
- No decision about whether the form should be pre-filled at all.
- No persistence.

Invariant:
At most one default per field per run; the first accepted candidate wins
and later candidates for that field are not evaluated.
"""

from typing import List, Optional, Sequence

from .choices import normalize_choices
from .collaborators import (
    EventTimelineProvider,
    MetadataStore,
    RecordStore,
    TemplatingService,
    timeline_for,
)
from .logger import get_logger
from .models import FieldDescriptor, PipelineResult, RequestContext, ResolvedDefault
from .overlay import AnnotationOverlay
from .resolver import LiteralStrategy, TemporalLookupStrategy, ValueResolver
from .rewriter import override
from .scanner import scan
from .tags import CANONICAL_TAG, DEFAULT_FAMILIES, eligible_tags

logger = get_logger()


class DefaultResolutionPipeline:
    """
    Resolves @DEFAULT values for the fields of one render request.

    Args:
        metadata: Canonical field registry (never mutated)
        timeline: Arms, events and event forms
        records: Stored record data
        templating: Piping service used by literal tags
        families: Tag names eligible for this request, in priority order
    """

    def __init__(
        self,
        metadata: MetadataStore,
        timeline: EventTimelineProvider,
        records: RecordStore,
        templating: TemplatingService,
        families: Sequence[str] = DEFAULT_FAMILIES,
    ):
        self.metadata = metadata
        self.timeline = timeline
        self.records = records
        self.templating = templating
        self.families = tuple(families)

    def fields_in_scope(self, context: RequestContext) -> List[FieldDescriptor]:
        if context.form:
            return self.metadata.get_fields(context.form)
        forms = self.timeline.forms_at_event(context.event)
        return [f for f in self.metadata.get_fields() if f.form_name in forms]

    def run(self, context: RequestContext) -> PipelineResult:
        logger.record_pipeline_run()

        snapshot = self.records.get_snapshot(context.record) or {}
        tag_names = eligible_tags(self.families, has_data=bool(snapshot))

        canonical = self.metadata.get_fields()
        working = normalize_choices(canonical)
        overlay = AnnotationOverlay(canonical)

        resolver = ValueResolver(
            TemporalLookupStrategy(timeline_for(self.timeline, context.event), snapshot, context, working),
            LiteralStrategy(self.templating, context, working),
        )

        resolved: List[ResolvedDefault] = []
        for descriptor in self.fields_in_scope(context):
            try:
                result = self._resolve_field(working[descriptor.name], tag_names, resolver)
            except Exception as e:
                logger.error(
                    "Default resolution failed",
                    field=descriptor.name,
                    record=context.record,
                    event=context.event,
                    error=str(e),
                )
                continue

            if result is None:
                continue

            overlay.replace_annotation(
                descriptor.name,
                override(CANONICAL_TAG, result.value, overlay.annotation(descriptor.name)),
            )
            resolved.append(result)

        logger.debug(
            "Default resolution complete",
            record=context.record,
            event=context.event,
            form=context.form,
            resolved=len(resolved),
        )
        return PipelineResult(metadata=overlay.commit(), resolved=resolved)

    def _resolve_field(
        self,
        descriptor: FieldDescriptor,
        tag_names: Sequence[str],
        resolver: ValueResolver,
    ) -> Optional[ResolvedDefault]:
        queue = scan(tag_names, descriptor.annotation_text)
        if not queue:
            return None

        logger.record_field_scanned()
        for tag in queue:
            value = resolver.resolve(tag, descriptor)
            if value is None:
                continue
            logger.record_resolution(tag.name)
            return ResolvedDefault(field_name=descriptor.name, value=value, winning_tag=tag.token)

        return None
