"""Response decoding: fence stripping, JSON parsing and schema validation.

Validation goes through the ``Validator`` capability so tool parameter
schemas and pipeline envelopes are checked the same way. A validator over a
list type is all-or-nothing: one failing element rejects the batch.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Generic, List, Protocol, TypeVar, runtime_checkable

from pydantic import TypeAdapter, ValidationError

from cognisim.errors import DecodeFailure, ValidationFailure

T = TypeVar("T")

# ```json ... ``` (language tag optional) with the fences at line boundaries;
# backticks inside a JSON string are content
_FENCED_BLOCK = re.compile(
    r"^[ \t]*```[A-Za-z0-9_-]*[ \t]*\n?(.*?)\n?[ \t]*```[ \t]*$",
    re.DOTALL | re.MULTILINE,
)


@runtime_checkable
class Validator(Protocol[T]):
    """Checks a candidate value and returns the typed result."""

    def validate(self, candidate: Any) -> T:
        """Return the validated value or raise ``ValidationFailure``."""
        ...

    def json_schema(self) -> Dict[str, Any]:
        """Describe accepted values as JSON Schema (used in prompts)."""
        ...


def _truncate_preview(value: Any, *, limit: int = 80) -> str:
    """Return a compact preview of the offending input value."""

    if value is None:
        return "null"
    text = repr(value)
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def describe_validation_error(error: ValidationError) -> List[str]:
    """Convert a pydantic ValidationError into ``path: message`` lines."""

    issues: list[str] = []
    for err in error.errors(include_url=False):
        # Field path in dot notation (experiences.1.timestamp)
        loc = ".".join(str(part) for part in err.get("loc", [])) or "root"
        details = f"{loc}: {err.get('msg', 'validation error')}"
        if err.get("type"):
            details += f" [type={err['type']}]"
        if "input" in err:
            details += f" | received={_truncate_preview(err.get('input'))}"
        issues.append(details)

    if not issues:
        issues.append("root: value did not match the expected schema")
    return issues


class ModelValidator(Generic[T]):
    """``Validator`` backed by a pydantic model or any type pydantic understands."""

    def __init__(self, type_: Any, *, name: str | None = None) -> None:
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)
        self.name = name or getattr(type_, "__name__", repr(type_))

    def validate(self, candidate: Any) -> T:
        try:
            return self._adapter.validate_python(candidate)
        except ValidationError as exc:
            raise ValidationFailure(
                f"Value does not match {self.name}",
                issues=describe_validation_error(exc),
            ) from exc

    def json_schema(self) -> Dict[str, Any]:
        return self._adapter.json_schema()


def strip_code_fences(text: str) -> str:
    """Return the body of the first line-delimited fenced block, or the trimmed text."""

    match = _FENCED_BLOCK.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def decode(text: str) -> Any:
    """Parse oracle text as a single JSON document."""

    cleaned = strip_code_fences(text or "")
    if not cleaned:
        raise DecodeFailure("Oracle response was empty", text=text or "")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise DecodeFailure(f"Oracle response is not valid JSON: {exc}", text=text) from exc


def decode_envelope(text: str, key: str) -> Any:
    """Decode ``text`` and return the value under the fixed top-level ``key``."""

    document = decode(text)
    if not isinstance(document, dict) or key not in document:
        raise ValidationFailure(
            f"Response is missing the '{key}' envelope",
            issues=[f"root: expected an object with key '{key}' | received={_truncate_preview(document)}"],
        )
    return document[key]


def validate(raw: Any, validator: Validator[T]) -> T:
    """Apply ``validator`` to decoded data."""

    return validator.validate(raw)


__all__ = [
    "ModelValidator",
    "Validator",
    "decode",
    "decode_envelope",
    "describe_validation_error",
    "strip_code_fences",
    "validate",
]
