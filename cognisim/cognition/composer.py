"""Template composition for cognition prompts.

``compose`` replaces ``{dotted.path}`` placeholders with values looked up in a
context object. Structured values are inserted as indented JSON; anything
that does not resolve (missing key, ``None``) leaves the placeholder in the
prompt exactly as written, so gaps in the context show up in the audit log
instead of raising.

The function is pure: no I/O, no logging, no hidden state.
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Mapping, Sequence

from pydantic import BaseModel

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")
_MISSING = object()


def _json_default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, datetime):
        return obj.isoformat()
    return repr(obj)


def _lookup(container: Any, key: str) -> Any:
    if isinstance(container, BaseModel):
        container = container.model_dump(mode="json")
    if isinstance(container, Mapping):
        return container.get(key, _MISSING)
    if isinstance(container, Sequence) and not isinstance(container, (str, bytes)):
        # Sequences resolve non-negative integer keys ("steps.0.description")
        if key.isdigit() and int(key) < len(container):
            return container[int(key)]
    return _MISSING


def resolve_path(context: Any, path: str) -> Any:
    """Follow ``path`` through ``context``; returns a sentinel when any hop is absent."""

    current = context
    for key in path.split("."):
        current = _lookup(current, key)
        if current is _MISSING:
            break
    return current


def render_value(value: Any) -> str | None:
    """Text for a resolved value, or None when it should stay a placeholder."""

    if value is _MISSING or value is None:
        return None
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, indent=2, ensure_ascii=False, default=_json_default)
    return str(value)


def compose(template: str, context: Any) -> str:
    """Fill ``{dotted.path}`` placeholders in ``template`` from ``context``."""

    def _substitute(match: re.Match[str]) -> str:
        rendered = render_value(resolve_path(context, match.group(1)))
        return match.group(0) if rendered is None else rendered

    return _PLACEHOLDER.sub(_substitute, template)
