"""Action tag families understood by the resolver."""

from typing import List, Sequence

DEFAULT_TAG = "@DEFAULT"
PREVIOUS_EVENT_TAG = "@DEFAULT-FROM-PREVIOUS-EVENT"

# Characters that may belong to a tag name; a match must not touch them
TAG_CHARS = r"\w@-"

LITERAL = "literal"
TEMPORAL = "temporal"

FAMILIES = {
    PREVIOUS_EVENT_TAG: TEMPORAL,
    DEFAULT_TAG: LITERAL,
}

# Temporal first: at equal suffix it beats the literal family
DEFAULT_FAMILIES = (PREVIOUS_EVENT_TAG, DEFAULT_TAG)

# The tag the renderer reads, whatever tag produced the value
CANONICAL_TAG = DEFAULT_TAG


def family_of(tag_name: str) -> str:
    if tag_name not in FAMILIES:
        raise ValueError(f"Unknown action tag: {tag_name}")
    return FAMILIES[tag_name]


def eligible_tags(families: Sequence[str] = DEFAULT_FAMILIES, has_data: bool = False) -> List[str]:
    """
    Tag names to scan for, in priority order.

    The previous-event family only makes sense once the record has data,
    so it is dropped otherwise.
    """
    tags = []
    for name in families:
        family_of(name)
        if FAMILIES[name] == TEMPORAL and not has_data:
            continue
        if name not in tags:
            tags.append(name)
    return tags
