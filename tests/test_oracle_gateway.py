"""Tests for the audited oracle gateway."""

import asyncio
import json
from types import SimpleNamespace

import pytest

from cognisim.audit import JsonlAuditSink, MultiAuditSink, RecordingAuditSink
from cognisim.errors import TransportFailure
from cognisim.local_oracle import OllamaOracle
from cognisim.oracle import (
    MirascopeOracle,
    OracleGateway,
    build_oracle,
    call_oracle,
    combine_prompts,
    set_default_gateway,
)


class ScriptedOracle:
    """Returns queued replies; exceptions in the queue are raised."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def generate(self, prompt, system_prompt):
        self.calls.append((prompt, system_prompt))
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class SlowOracle:
    async def generate(self, prompt, system_prompt):
        await asyncio.sleep(1)
        return "too late"


@pytest.mark.asyncio
async def test_call_records_prompt_and_response():
    audit = RecordingAuditSink()
    gateway = OracleGateway(ScriptedOracle("hello"), audit=audit, timeout=None)

    text = await gateway.call("What now?", "Be brief.", "alice")

    assert text == "hello"
    kinds = [record.kind for record in audit.for_caller("alice")]
    assert kinds == ["prompt", "response"]
    assert audit.records[0].payload == {"prompt": "What now?", "system_prompt": "Be brief."}
    assert audit.records[1].payload["latency_ms"] >= 0


@pytest.mark.asyncio
async def test_none_reply_becomes_empty_string():
    gateway = OracleGateway(ScriptedOracle(None), audit=RecordingAuditSink(), timeout=None)

    assert await gateway.call("p", "s", "bob") == ""


@pytest.mark.asyncio
async def test_failure_is_logged_and_raised_as_transport_failure():
    audit = RecordingAuditSink()
    gateway = OracleGateway(ScriptedOracle(RuntimeError("rate limited")), audit=audit, timeout=None)

    with pytest.raises(TransportFailure) as excinfo:
        await gateway.call("p", "s", "carol")

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    errors = audit.of_kind("error")
    assert len(errors) == 1
    assert errors[0].payload["error_type"] == "TransportFailure"
    assert audit.of_kind("response") == []


@pytest.mark.asyncio
async def test_timeout_is_a_transport_failure():
    gateway = OracleGateway(SlowOracle(), audit=RecordingAuditSink(), timeout=0.01)

    with pytest.raises(TransportFailure, match="timed out"):
        await gateway.call("p", "s", "dave")


@pytest.mark.asyncio
async def test_single_attempt_by_default():
    oracle = ScriptedOracle(RuntimeError("boom"), "second")
    gateway = OracleGateway(oracle, audit=RecordingAuditSink(), timeout=None)

    with pytest.raises(TransportFailure):
        await gateway.call("p", "s", "erin")
    assert len(oracle.calls) == 1


@pytest.mark.asyncio
async def test_bounded_retry_when_enabled():
    oracle = ScriptedOracle(RuntimeError("flaky"), "recovered")
    gateway = OracleGateway(
        oracle,
        audit=RecordingAuditSink(),
        timeout=None,
        max_attempts=3,
        backoff_seconds=0,
    )

    assert await gateway.call("p", "s", "frank") == "recovered"
    assert len(oracle.calls) == 2


def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError):
        OracleGateway(ScriptedOracle(), max_attempts=0)


@pytest.mark.asyncio
async def test_call_oracle_uses_default_gateway():
    audit = RecordingAuditSink()
    set_default_gateway(OracleGateway(ScriptedOracle("from default"), audit=audit, timeout=None))
    try:
        assert await call_oracle("p", "s", "gina") == "from default"
    finally:
        set_default_gateway(None)
    assert audit.for_caller("gina")


@pytest.mark.asyncio
async def test_mirascope_oracle_sends_combined_prompt(monkeypatch):
    recorded = {}

    def fake_decorator(*, provider, model):
        recorded["provider"] = provider
        recorded["model"] = model

        def wrapper(fn):
            async def inner(text):
                recorded["prompt"] = await fn(text)
                return SimpleNamespace(content="  answer  ")

            return inner

        return wrapper

    monkeypatch.setattr("cognisim.oracle.llm.call", fake_decorator)

    text = await MirascopeOracle("openai", "gpt-4o-mini").generate("User payload", "System context")

    assert text == "  answer  "
    assert recorded == {
        "provider": "openai",
        "model": "gpt-4o-mini",
        "prompt": "System context\n\nUser payload",
    }


def test_combine_prompts_skips_blank_system_prompt():
    assert combine_prompts("   ", "Only user") == "Only user"


def test_build_oracle_routes_ollama_locally():
    assert isinstance(build_oracle("ollama", "llama3.1"), OllamaOracle)
    assert isinstance(build_oracle("openai", "gpt-4o-mini"), MirascopeOracle)


@pytest.mark.asyncio
async def test_jsonl_sink_appends_records(tmp_path):
    path = tmp_path / "audit" / "oracle.jsonl"
    recording = RecordingAuditSink()
    sink = MultiAuditSink([JsonlAuditSink(path), recording])
    gateway = OracleGateway(ScriptedOracle("ok"), audit=sink, timeout=None)

    await gateway.call("p", "s", "hana")

    lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [line["kind"] for line in lines] == ["prompt", "response"]
    assert lines[1]["text"] == "ok"
    assert len(recording.records) == 2
