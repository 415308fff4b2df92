"""
Choice Normalizer.

Responsibilities:
- Parse and format enumerated choice text.
- Produce a private field registry whose choice labels equal their keys.

Non-Responsibilities:
- No piping.
- No mutation of the caller's registry.

Invariant:
Option keys and their order are preserved.
"""

import copy
import re
from typing import Dict, Iterable, Mapping, Union

from .models import FieldDescriptor

# Newlines, the escaped "\n" the designer stores, or pipes
_ENTRY_SEPARATOR = re.compile(r"\r?\n|\\n|\|")


def parse_enum(enum: Union[str, Mapping[str, str], None]) -> Dict[str, str]:
    """
    Parse choice definitions into an ordered key -> label mapping.

    Accepts either ``"1, Yes | 2, No"`` style text or a mapping.
    Entries without a comma use the entry itself as key and label.
    """
    if not enum:
        return {}
    if isinstance(enum, Mapping):
        return {str(k): str(v) for k, v in enum.items()}

    options: Dict[str, str] = {}
    for entry in _ENTRY_SEPARATOR.split(enum):
        entry = entry.strip()
        if not entry:
            continue
        if "," in entry:
            key, label = entry.split(",", 1)
            key, label = key.strip(), label.strip()
        else:
            key = label = entry
        if key not in options:
            options[key] = label
    return options


def format_enum(options: Mapping[str, str]) -> str:
    return " | ".join(f"{key}, {label}" for key, label in options.items())


def normalize_options(options: Mapping[str, str]) -> Dict[str, str]:
    return {key: key for key in options}


def normalize_choices(fields: Iterable[FieldDescriptor]) -> Dict[str, FieldDescriptor]:
    """
    Copy a field registry with every choice label replaced by its key.

    Piping renders choice fields as labels; on this copy it renders keys,
    which is what a default value has to be.

    Args:
        fields: Canonical field descriptors (left untouched)

    Returns:
        Field name -> private FieldDescriptor copy, in input order
    """
    working: Dict[str, FieldDescriptor] = {}
    for descriptor in fields:
        clone = copy.deepcopy(descriptor)
        if clone.is_choice and clone.enum_options:
            clone.enum_options = normalize_options(clone.enum_options)
        working[clone.name] = clone
    return working
