"""Exception taxonomy shared by the world store and the cognitive pipeline."""

from __future__ import annotations

from typing import Any, Mapping, Sequence


class CognisimError(Exception):
    """Base class for all cognisim errors."""


class TransportFailure(CognisimError):
    """The oracle was unreachable, timed out, or returned a service error."""


class DecodeFailure(CognisimError):
    """Oracle text was not a syntactically valid JSON document."""

    def __init__(self, message: str, *, text: str = "") -> None:
        super().__init__(message)
        self.text = text


class ValidationFailure(CognisimError):
    """Decoded data violated field-level rules.

    ``issues`` holds one human-readable line per violated rule
    (``path: message | received=...``).
    """

    def __init__(self, message: str, *, issues: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.issues = list(issues)

    def __str__(self) -> str:
        base = super().__str__()
        if not self.issues:
            return base
        return base + "\n" + "\n".join(f"- {issue}" for issue in self.issues)


class WorldStoreError(CognisimError):
    """Invalid world store access (unbound component, dead entity, bad field)."""


class AgentTickError(CognisimError):
    """One or more agents failed during a concurrent tick.

    ``results`` keeps the ticks that did complete so callers can still apply
    them; ``errors`` maps each failed agent to its exception.
    """

    def __init__(self, errors: Mapping[str, BaseException], results: Mapping[str, Any]) -> None:
        self.errors = dict(errors)
        self.results = dict(results)
        summary = "; ".join(f"{agent}: {error}" for agent, error in self.errors.items())
        super().__init__(f"{len(self.errors)} agent(s) failed: {summary}")
