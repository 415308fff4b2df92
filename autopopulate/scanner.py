"""
Tag Scanner.

Responsibilities:
- Find action tag occurrences (plain and ``_<N>`` suffixed) in annotation text.
- Return them in a total, deterministic order.

Non-Responsibilities:
- No value extraction.
- No text mutation.

Invariant:
Plain hits come first in tag-name order, then suffixed hits ascending by
suffix, ties broken by tag-name order.
"""

import re
from typing import Dict, Iterable, List

from .models import AnnotationTag
from .tags import TAG_CHARS


def _plain_pattern(tag: str) -> "re.Pattern[str]":
    return re.compile(rf"(?<![{TAG_CHARS}]){re.escape(tag)}(?=[=\s])")


def _suffixed_pattern(tag: str) -> "re.Pattern[str]":
    return re.compile(rf"(?<![{TAG_CHARS}])({re.escape(tag)}_(\d+))(?![{TAG_CHARS}])")


def unique_tags(tag_names: Iterable[str]) -> List[str]:
    """Deduplicate tag names while preserving first-occurrence order."""
    seen = set()
    result = []
    for name in tag_names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result


def scan(tag_names: Iterable[str], text: str) -> List[AnnotationTag]:
    """
    Build the ordered queue of tag occurrences found in ``text``.

    Args:
        tag_names: Tag names in priority order (duplicates are ignored)
        text: Annotation blob to search

    Returns:
        Ordered list of AnnotationTag occurrences

    Example:
        >>> [t.token for t in scan(["@DEFAULT"], '@DEFAULT_2="X" @DEFAULT="Y"')]
        ['@DEFAULT', '@DEFAULT_2']
    """
    # A tag at the very end must still look like it is followed by a space
    subject = (text or "") + " "

    results: List[AnnotationTag] = []
    buckets: Dict[int, Dict[int, AnnotationTag]] = {}

    for priority, tag in enumerate(unique_tags(tag_names)):
        if _plain_pattern(tag).search(subject):
            results.append(AnnotationTag(name=tag, priority=priority))

        for match in _suffixed_pattern(tag).finditer(subject):
            delta = int(match.group(2))
            bucket = buckets.setdefault(delta, {})
            if priority not in bucket:
                bucket[priority] = AnnotationTag(
                    name=tag,
                    priority=priority,
                    delta=delta,
                    token=match.group(1),
                )

    for delta in sorted(buckets):
        subset = buckets[delta]
        # Same suffix on several tags: tag-name order decides
        for priority in sorted(subset):
            results.append(subset[priority])

    return results
