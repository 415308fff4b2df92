"""
Bracket piping.

Replaces ``[field]``, ``[field:value]``, ``[field:label]`` and
``[event][field]`` references with record data. Choice fields render
their option label unless ``:value`` is asked for, so a registry whose
labels were normalized to keys renders keys.
"""

import re
from typing import Mapping, Optional

from .collaborators import MetadataStore, RecordStore, is_checked
from .logger import get_logger
from .models import FieldDescriptor

logger = get_logger()

_REFERENCE = re.compile(
    r"(?:\[(?P<event>[A-Za-z0-9][\w-]*)\])?\[(?P<field>[A-Za-z][\w]*)(?::(?P<mode>value|label))?\]"
)


class PipingService:
    """Reference TemplatingService backed by a record and metadata store."""

    def __init__(self, records: RecordStore, metadata: MetadataStore):
        self.records = records
        self.metadata = metadata

    def render(
        self,
        template: str,
        record: str,
        event: str,
        instance: int = 1,
        fields: Optional[Mapping[str, FieldDescriptor]] = None,
    ) -> str:
        """
        Pipe record data into ``template``.

        Never raises: any failure is logged and renders as an empty string.
        """
        try:
            registry = fields if fields is not None else {f.name: f for f in self.metadata.get_fields()}
            snapshot = self.records.get_snapshot(record)

            def replace(match):
                event_name = match.group("event")
                field_name = match.group("field")
                prefix = ""
                if event_name and event_name in registry:
                    # "[a][b]" where "a" is a field: two plain references
                    prefix = self._format(registry[event_name], snapshot.get(event, {}).get(event_name), None)
                    event_name = None
                descriptor = registry.get(field_name)
                if descriptor is None:
                    return prefix
                values = snapshot.get(event_name or event, {})
                return prefix + self._format(descriptor, values.get(field_name), match.group("mode"))

            return _REFERENCE.sub(replace, template or "")
        except Exception as e:
            logger.error("Piping failed", template=template, record=record, event=event, error=str(e))
            return ""

    @staticmethod
    def _format(descriptor: FieldDescriptor, value, mode: Optional[str]) -> str:
        if value is None:
            return ""
        raw = mode == "value"

        if isinstance(value, (set, frozenset, list, tuple)):
            value = {str(key): "1" for key in value}
        if isinstance(value, Mapping):
            keys = [key for key, flag in value.items() if is_checked(flag)]
            order = list(descriptor.enum_options)
            keys.sort(key=lambda k: order.index(k) if k in order else len(order))
            if raw:
                return ",".join(keys)
            return ",".join(descriptor.enum_options.get(k, k) for k in keys)

        value = str(value)
        if descriptor.is_choice and not raw:
            return descriptor.enum_options.get(value, value)
        return value
