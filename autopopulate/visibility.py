"""
Default when visible.

Collects the compiled branching logic of a form so the client can keep
@DEFAULT values on fields hidden by branching logic and apply them once
the field becomes visible.
"""

import json
from typing import Dict, Iterable

from .collaborators import LogicCompiler
from .logger import get_logger
from .models import FieldDescriptor

logger = get_logger()


def branching_equations(fields: Iterable[FieldDescriptor], compiler: LogicCompiler, event: str) -> Dict[str, str]:
    """
    Compile the branching logic of every field that has some.

    Args:
        fields: Fields of the form being rendered, in form order
        compiler: Turns branching logic into a client-side expression
        event: Current event, for cross-event references

    Returns:
        Field name -> compiled expression
    """
    equations: Dict[str, str] = {}
    for descriptor in fields:
        logic = (descriptor.branching_logic or "").strip()
        if not logic:
            continue
        try:
            equations[descriptor.name] = compiler.to_js(logic, event)
        except Exception as e:
            logger.warning("Branching logic not compiled", field=descriptor.name, error=str(e))
    return equations


def js_settings(equations: Dict[str, str]) -> str:
    """Settings object the client-side script reads."""
    return json.dumps({"defaultWhenVisible": {"branchingEquations": equations}})
