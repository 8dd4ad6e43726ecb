"""Oracle transport for locally hosted models served by Ollama."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from urllib import error, request

from cognisim.config import Config
from cognisim.errors import TransportFailure


class LocalOracleError(TransportFailure):
    """Raised when the local Ollama server fails or cannot be reached."""


class OllamaOracle:
    """Oracle backed by an Ollama server's ``/api/chat`` endpoint.

    Requests are non-streaming. The system prompt travels as its own chat
    message and is left out when blank.
    """

    def __init__(
        self,
        model: str,
        *,
        base_url: str | None = None,
        request_timeout: float = 300.0,
    ) -> None:
        self.model = model
        self.base_url = (base_url or Config.OLLAMA_BASE_URL).rstrip("/")
        # Socket-level limit; the gateway applies the per-call deadline on top
        self.request_timeout = request_timeout

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/api/chat"

    def chat_request(self, prompt: str, system_prompt: str) -> dict[str, Any]:
        messages = [{"role": "user", "content": prompt.strip()}]
        if system_prompt.strip():
            messages.insert(0, {"role": "system", "content": system_prompt.strip()})
        return {"model": self.model, "messages": messages, "stream": False}

    async def generate(self, prompt: str, system_prompt: str) -> str:
        if not prompt.strip():
            raise LocalOracleError("Cannot call Ollama with an empty prompt.")

        # urllib blocks; run it off the event loop so other agents keep going
        reply = await asyncio.to_thread(self._post, self.chat_request(prompt, system_prompt))
        # A reply without assistant content is an empty answer, not a transport error
        message = reply.get("message") or {}
        return message.get("content") or ""

    def _post(self, body: dict[str, Any]) -> dict[str, Any]:
        req = request.Request(
            self.chat_url,
            data=json.dumps(body).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with request.urlopen(req, timeout=self.request_timeout) as resp:
                raw = resp.read().decode("utf-8")
        except error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if exc.fp else ""
            raise LocalOracleError(f"Ollama answered HTTP {exc.code}: {detail or exc.reason}") from exc
        except error.URLError as exc:
            raise LocalOracleError(f"Ollama unreachable at {self.chat_url}: {exc.reason}") from exc

        try:
            reply = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise LocalOracleError("Ollama reply is not JSON") from exc
        if not isinstance(reply, dict):
            raise LocalOracleError("Ollama reply is not a JSON object")
        return reply


__all__ = ["LocalOracleError", "OllamaOracle"]
