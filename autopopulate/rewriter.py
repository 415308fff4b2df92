"""
Tag Rewriter.

Responsibilities:
- Extract the value assigned to an action tag.
- Override (or append) an action tag assignment.

Non-Responsibilities:
- No piping.
- No decisions about which tag wins.

Invariant:
override() is idempotent for a given tag and value.
"""

import re
from typing import Optional

from .tags import TAG_CHARS


def _assignment(token: str) -> str:
    return rf"(?<![{TAG_CHARS}]){re.escape(token)}\s*=\s*"


def _quoted_pattern(token: str) -> "re.Pattern[str]":
    return re.compile(_assignment(token) + r"(?:\"([^\"]*)\"|'([^']*)')")


def _bare_pattern(token: str) -> "re.Pattern[str]":
    return re.compile(_assignment(token) + r"([^\s\"']*)")


def has_assignment(token: str, text: str) -> bool:
    return re.search(_assignment(token), text or "") is not None


def value_in_quotes(text: str, token: str) -> Optional[str]:
    """
    Return the quoted value of ``token="..."`` (or single quotes).

    Unterminated or empty quotes count as not found.
    """
    match = _quoted_pattern(token).search(text or "")
    if not match:
        return None
    value = match.group(1) if match.group(1) is not None else match.group(2)
    return value or None


def value_in_tag(text: str, token: str) -> Optional[str]:
    """Like value_in_quotes, but also accepts an unquoted ``token=value``."""
    value = value_in_quotes(text, token)
    if value:
        return value

    match = _bare_pattern(token).search(text or "")
    if not match or not match.group(1):
        return None
    return match.group(1)


def override(tag: str, value: str, text: str, append_if_missing: bool = True) -> str:
    """
    Set ``tag="value"`` in an annotation blob.

    Args:
        tag: Action tag name (e.g. @DEFAULT)
        value: The value to write
        text: The annotation text to rewrite
        append_if_missing: Append the assignment if the tag is not assigned yet

    Returns:
        The rewritten annotation text
    """
    text = text or ""
    # Canonical form is double quoted, so inner double quotes can't survive
    value = str(value).replace('"', "'")
    replacement = f'{tag}="{value}"'

    if has_assignment(tag, text):
        quoted = _quoted_pattern(tag)
        if quoted.search(text):
            return quoted.sub(lambda m: replacement, text, count=1)
        return _bare_pattern(tag).sub(lambda m: replacement, text, count=1)

    if append_if_missing:
        return f"{text} {replacement}"

    return text
