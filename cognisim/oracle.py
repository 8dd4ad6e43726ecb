"""Oracle gateway: the single point of contact with the generative-text service.

Every call is audited (prompt, response, latency) under the caller's id.
Failures are logged and re-raised as ``TransportFailure``; the gateway never
invents a fallback answer. Fallback policy belongs to each pipeline stage.
"""

from __future__ import annotations

import asyncio
import time
from typing import Protocol

from mirascope import llm
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from cognisim.audit import AuditSink, ConsoleAuditSink, JsonlAuditSink, MultiAuditSink
from cognisim.config import Config
from cognisim.errors import TransportFailure
from cognisim.local_oracle import OllamaOracle
from cognisim.logging_utils import log_error


class Oracle(Protocol):
    """Anything that turns (prompt, system prompt) into text."""

    async def generate(self, prompt: str, system_prompt: str) -> str:
        ...


def combine_prompts(system_prompt: str, prompt: str) -> str:
    """Join system instructions and the user prompt into one message."""

    sections = [section.strip() for section in (system_prompt, prompt)]
    return "\n\n".join(section for section in sections if section)


class MirascopeOracle:
    """Hosted-model oracle (OpenAI, Anthropic, Gemini, ...) through mirascope."""

    def __init__(self, provider: str, model: str) -> None:
        self.provider = provider
        self.model = model

    async def generate(self, prompt: str, system_prompt: str) -> str:
        # Provider-specific API calls and response parsing are handled by the
        # mirascope decorator; the decorated function only supplies the prompt.
        @llm.call(provider=self.provider, model=self.model)
        async def _invoke(text: str) -> str:
            return text

        response = await _invoke(combine_prompts(system_prompt, prompt))
        return response.content or ""


def build_oracle(provider: str, model: str) -> Oracle:
    """Return the oracle implementation for ``provider``."""

    if provider.lower() == "ollama":
        return OllamaOracle(model)
    return MirascopeOracle(provider, model)


class OracleGateway:
    """Audited, deadline-bounded access to an oracle.

    ``max_attempts`` > 1 enables bounded retry with exponential backoff on
    transport failures. The default (1) performs exactly one call.
    """

    def __init__(
        self,
        oracle: Oracle,
        *,
        audit: AuditSink | None = None,
        timeout: float | None = Config.ORACLE_TIMEOUT_SECONDS,
        max_attempts: int = Config.ORACLE_MAX_ATTEMPTS,
        backoff_seconds: float = 0.5,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.oracle = oracle
        self.audit: AuditSink = audit or ConsoleAuditSink()
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds

    async def call(self, prompt: str, system_prompt: str, caller_id: str) -> str:
        """Return the oracle's raw text (``""`` when it produced none)."""

        self.audit.log_prompt(caller_id, prompt, system_prompt)
        # Latency covers every attempt, backoff included
        started = time.perf_counter()
        try:
            text = await self._generate_with_retries(prompt, system_prompt)
        except TransportFailure as exc:
            self.audit.log_error(caller_id, exc, "Oracle call failed")
            log_error(f"[{caller_id}] Oracle call failed: {exc}")
            raise
        latency_ms = (time.perf_counter() - started) * 1000
        self.audit.log_response(caller_id, text, latency_ms)
        return text

    async def _generate_with_retries(self, prompt: str, system_prompt: str) -> str:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(TransportFailure),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=30),
            reraise=True,
        ):
            with attempt:
                return await self._attempt(prompt, system_prompt)

        raise RuntimeError("Oracle retry loop exited unexpectedly")

    async def _attempt(self, prompt: str, system_prompt: str) -> str:
        try:
            if self.timeout is None:
                text = await self.oracle.generate(prompt, system_prompt)
            else:
                text = await asyncio.wait_for(
                    self.oracle.generate(prompt, system_prompt),
                    timeout=self.timeout,
                )
        except asyncio.TimeoutError as exc:
            raise TransportFailure(f"Oracle call timed out after {self.timeout}s") from exc
        except TransportFailure:
            raise
        except Exception as exc:
            # Provider SDK errors (auth, rate limit, network) are all transport failures
            raise TransportFailure(f"{type(exc).__name__}: {exc}") from exc
        return text or ""


_default_gateway: OracleGateway | None = None


def build_default_gateway() -> OracleGateway:
    """Gateway configured from ``Config`` (provider, model, timeout, audit path)."""

    sinks: list[AuditSink] = [ConsoleAuditSink()]
    if Config.AUDIT_LOG_PATH:
        sinks.append(JsonlAuditSink(Config.AUDIT_LOG_PATH))
    return OracleGateway(
        build_oracle(Config.ORACLE_PROVIDER, Config.ORACLE_MODEL),
        audit=sinks[0] if len(sinks) == 1 else MultiAuditSink(sinks),
        timeout=Config.ORACLE_TIMEOUT_SECONDS,
        max_attempts=Config.ORACLE_MAX_ATTEMPTS,
    )


def get_default_gateway() -> OracleGateway:
    global _default_gateway
    if _default_gateway is None:
        _default_gateway = build_default_gateway()
    return _default_gateway


def set_default_gateway(gateway: OracleGateway | None) -> None:
    """Install the gateway used when a stage is called without one (None resets)."""

    global _default_gateway
    _default_gateway = gateway


async def call_oracle(
    prompt: str,
    system_prompt: str,
    caller_id: str,
    *,
    gateway: OracleGateway | None = None,
) -> str:
    """Invoke the oracle through ``gateway`` (or the default gateway)."""

    return await (gateway or get_default_gateway()).call(prompt, system_prompt, caller_id)


__all__ = [
    "MirascopeOracle",
    "Oracle",
    "OracleGateway",
    "build_default_gateway",
    "build_oracle",
    "call_oracle",
    "combine_prompts",
    "get_default_gateway",
    "set_default_gateway",
]
