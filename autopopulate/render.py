"""
Data entry request handling.

Decides, for one render request, whether defaults are resolved and which
extra settings the page needs. Callers pass the scope and eligible tag
families explicitly.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from .collaborators import (
    EventTimelineProvider,
    LogicCompiler,
    MetadataStore,
    RecordStore,
    TemplatingService,
)
from .logger import get_logger
from .models import FieldDescriptor, RequestContext, ResolvedDefault
from .overlay import MetadataView, freeze_fields
from .pipeline import DefaultResolutionPipeline
from .tags import DEFAULT_FAMILIES
from .visibility import branching_equations, js_settings

logger = get_logger()


@dataclass
class RenderPayload:
    metadata: Mapping[str, FieldDescriptor]
    resolved: List[ResolvedDefault] = field(default_factory=list)
    branching_equations: Dict[str, str] = field(default_factory=dict)
    settings: Optional[str] = None
    skipped: bool = False


def current_form_has_data(context: RequestContext, records: RecordStore) -> bool:
    """True if the form being rendered already holds data for this record/event/instance."""
    if not context.form:
        return False
    return records.form_has_data(context.entry_record, context.form, context.event, context.instance)


def prepare_data_entry(
    context: RequestContext,
    metadata: MetadataStore,
    timeline: EventTimelineProvider,
    records: RecordStore,
    templating: TemplatingService,
    compiler: Optional[LogicCompiler] = None,
    families: Sequence[str] = DEFAULT_FAMILIES,
    ignore_form_data: bool = False,
    view: Optional[MetadataView] = None,
) -> RenderPayload:
    """
    Resolve defaults for a data entry page.

    Defaults are only applied to forms with no data yet, so saved answers
    are never overwritten by a pre-fill.

    Args:
        context: Current record, event, instance and form
        metadata, timeline, records, templating: Collaborators
        compiler: Branching logic compiler; enables default-when-visible
        families: Tag names eligible for this request
        ignore_form_data: Resolve even if the form already has data
        view: Renderer's metadata view; receives the committed result

    Returns:
        RenderPayload with the metadata the renderer should use
    """
    if not ignore_form_data and current_form_has_data(context, records):
        logger.info("Form already has data, defaults skipped", record=context.record, form=context.form)
        payload = RenderPayload(
            metadata=freeze_fields(metadata.get_fields()),
            skipped=True,
        )
    else:
        pipeline = DefaultResolutionPipeline(metadata, timeline, records, templating, families=families)
        result = pipeline.run(context)
        payload = RenderPayload(metadata=result.metadata, resolved=result.resolved)
        if view is not None:
            view.commit(result)

    if context.form and compiler is not None:
        form_fields = [f for f in payload.metadata.values() if f.form_name == context.form]
        payload.branching_equations = branching_equations(form_fields, compiler, context.event)
        payload.settings = js_settings(payload.branching_equations)

    return payload
