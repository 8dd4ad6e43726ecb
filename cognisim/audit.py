"""Audit sinks for oracle traffic.

A sink observes every prompt, response and failure passing through the
oracle gateway, keyed by caller id. Sinks return nothing the pipeline uses.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Protocol, Sequence

from cognisim.logging_utils import debug_enabled, log_llm


class AuditSink(Protocol):
    """Observer of oracle traffic."""

    def log_prompt(self, caller_id: str, prompt: str, system_prompt: str) -> None:
        ...

    def log_response(self, caller_id: str, text: str, latency_ms: float) -> None:
        ...

    def log_error(self, caller_id: str, error: BaseException, context: str) -> None:
        ...


@dataclass
class AuditRecord:
    """One audit entry (``kind`` is prompt, response or error)."""

    kind: str
    caller_id: str
    payload: Dict[str, Any] = field(default_factory=dict)
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "caller_id": self.caller_id,
            "recorded_at": self.recorded_at.isoformat(),
            **self.payload,
        }


def _prompt_record(caller_id: str, prompt: str, system_prompt: str) -> AuditRecord:
    return AuditRecord("prompt", caller_id, {"prompt": prompt, "system_prompt": system_prompt})


def _response_record(caller_id: str, text: str, latency_ms: float) -> AuditRecord:
    return AuditRecord("response", caller_id, {"text": text, "latency_ms": round(latency_ms, 3)})


def _error_record(caller_id: str, error: BaseException, context: str) -> AuditRecord:
    return AuditRecord(
        "error",
        caller_id,
        {"context": context, "error_type": type(error).__name__, "error": str(error)},
    )


class RecordingAuditSink:
    """Keeps every record in memory. Handy for tests and notebooks."""

    def __init__(self) -> None:
        self.records: List[AuditRecord] = []

    def log_prompt(self, caller_id: str, prompt: str, system_prompt: str) -> None:
        self.records.append(_prompt_record(caller_id, prompt, system_prompt))

    def log_response(self, caller_id: str, text: str, latency_ms: float) -> None:
        self.records.append(_response_record(caller_id, text, latency_ms))

    def log_error(self, caller_id: str, error: BaseException, context: str) -> None:
        self.records.append(_error_record(caller_id, error, context))

    def for_caller(self, caller_id: str) -> List[AuditRecord]:
        return [record for record in self.records if record.caller_id == caller_id]

    def of_kind(self, kind: str) -> List[AuditRecord]:
        return [record for record in self.records if record.kind == kind]


class ConsoleAuditSink:
    """Echoes oracle traffic to the console when COGNISIM_DEBUG is set."""

    def log_prompt(self, caller_id: str, prompt: str, system_prompt: str) -> None:
        if not debug_enabled():
            return
        print(f"\n{'='*80}")
        print(f"[ORACLE PROMPT] Caller: {caller_id}")
        print(f"{'='*80}")
        print(f"\n[SYSTEM PROMPT]")
        print(f"{'-'*80}")
        print(system_prompt)
        print(f"\n[USER PROMPT]")
        print(f"{'-'*80}")
        print(prompt)
        print(f"{'='*80}\n")

    def log_response(self, caller_id: str, text: str, latency_ms: float) -> None:
        if not debug_enabled():
            return
        log_llm(f"[{caller_id}] Oracle responded in {latency_ms:.0f}ms")
        print(f"{'-'*80}")
        print(text)
        print(f"{'='*80}\n")

    def log_error(self, caller_id: str, error: BaseException, context: str) -> None:
        # The gateway already reports failures; debug mode adds the cause chain
        if not debug_enabled():
            return
        print(f"[ORACLE ERROR] Caller: {caller_id} ({context})")
        cause = error
        while cause is not None:
            print(f"  {type(cause).__name__}: {cause}")
            cause = cause.__cause__


class JsonlAuditSink:
    """Appends one JSON object per record to ``path``."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _write(self, record: AuditRecord) -> None:
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record.to_json(), ensure_ascii=False) + "\n")

    def log_prompt(self, caller_id: str, prompt: str, system_prompt: str) -> None:
        self._write(_prompt_record(caller_id, prompt, system_prompt))

    def log_response(self, caller_id: str, text: str, latency_ms: float) -> None:
        self._write(_response_record(caller_id, text, latency_ms))

    def log_error(self, caller_id: str, error: BaseException, context: str) -> None:
        self._write(_error_record(caller_id, error, context))


class MultiAuditSink:
    """Fans each record out to several sinks."""

    def __init__(self, sinks: Sequence[AuditSink]) -> None:
        self.sinks = list(sinks)

    def log_prompt(self, caller_id: str, prompt: str, system_prompt: str) -> None:
        for sink in self.sinks:
            sink.log_prompt(caller_id, prompt, system_prompt)

    def log_response(self, caller_id: str, text: str, latency_ms: float) -> None:
        for sink in self.sinks:
            sink.log_response(caller_id, text, latency_ms)

    def log_error(self, caller_id: str, error: BaseException, context: str) -> None:
        for sink in self.sinks:
            sink.log_error(caller_id, error, context)
