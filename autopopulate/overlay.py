"""
Annotation overlay.

Rewrites are collected privately during a run and only become visible
through a single commit that builds a fresh, read-only field mapping.
"""

import copy
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from .models import FieldDescriptor, PipelineResult


def freeze_fields(
    fields: Iterable[FieldDescriptor],
    annotations: Optional[Mapping[str, str]] = None,
) -> Mapping[str, FieldDescriptor]:
    """Read-only mapping of private copies of ``fields``, with ``annotations`` swapped in."""
    annotations = annotations or {}
    frozen = {}
    for descriptor in fields:
        descriptor = copy.deepcopy(descriptor)
        if descriptor.name in annotations:
            descriptor.annotation_text = annotations[descriptor.name]
        frozen[descriptor.name] = descriptor
    return MappingProxyType(frozen)


class AnnotationOverlay:
    """Pending annotation rewrites for one pipeline run."""

    def __init__(self, fields: Iterable[FieldDescriptor]):
        self._base: Dict[str, FieldDescriptor] = {f.name: f for f in fields}
        self._changes: Dict[str, str] = {}

    def annotation(self, field_name: str) -> str:
        if field_name in self._changes:
            return self._changes[field_name]
        return self._base[field_name].annotation_text

    def replace_annotation(self, field_name: str, text: str) -> None:
        if field_name not in self._base:
            raise KeyError(field_name)
        self._changes[field_name] = text

    @property
    def changes(self) -> Dict[str, str]:
        return dict(self._changes)

    def commit(self) -> Mapping[str, FieldDescriptor]:
        """Build the committed metadata: copies of the originals, with rewritten annotations swapped in."""
        return freeze_fields(self._base.values(), self._changes)


class MetadataView:
    """
    What the form renderer reads.

    Holds a read-only field mapping that is swapped in one assignment when
    a pipeline result is committed.
    """

    def __init__(self, fields: Iterable[FieldDescriptor]):
        self._fields: Mapping[str, FieldDescriptor] = freeze_fields(fields)

    @property
    def fields(self) -> Mapping[str, FieldDescriptor]:
        return self._fields

    def get_fields(self, form_name: Optional[str] = None) -> List[FieldDescriptor]:
        if form_name is None:
            return list(self._fields.values())
        return [f for f in self._fields.values() if f.form_name == form_name]

    def commit(self, result: PipelineResult) -> None:
        self._fields = result.metadata
