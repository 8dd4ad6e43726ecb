import pytest

from cognisim.errors import TransportFailure
from cognisim.local_oracle import LocalOracleError, OllamaOracle


@pytest.mark.asyncio
async def test_ollama_oracle_posts_chat_request(monkeypatch):
    oracle = OllamaOracle("llama3.1", base_url="http://localhost:11434/", request_timeout=30)
    captured: dict[str, object] = {}

    def fake_post(body):
        captured["body"] = body
        return {"message": {"role": "assistant", "content": '{"thought":"ok"}'}}

    monkeypatch.setattr(oracle, "_post", fake_post)

    result = await oracle.generate("User payload", "System context")

    assert result == '{"thought":"ok"}'
    body = captured["body"]
    assert body["model"] == "llama3.1"
    assert body["stream"] is False
    assert body["messages"][0] == {"role": "system", "content": "System context"}
    assert body["messages"][1] == {"role": "user", "content": "User payload"}
    assert oracle.chat_url == "http://localhost:11434/api/chat"
    assert oracle.request_timeout == 30


@pytest.mark.asyncio
async def test_reply_without_content_is_empty_text(monkeypatch):
    oracle = OllamaOracle("llama3.1", base_url="http://localhost:11434")
    monkeypatch.setattr(oracle, "_post", lambda body: {"done": True})

    assert await oracle.generate("hello", "") == ""


@pytest.mark.asyncio
async def test_ollama_oracle_rejects_empty_prompt():
    oracle = OllamaOracle("llama3.1", base_url="http://localhost:11434")

    with pytest.raises(LocalOracleError):
        await oracle.generate("   ", "System context")


def test_local_errors_are_transport_failures():
    assert issubclass(LocalOracleError, TransportFailure)


def test_chat_request_omits_blank_system_prompt():
    oracle = OllamaOracle("llama3.1", base_url="http://localhost:11434")

    body = oracle.chat_request("hello", "  ")

    assert body["messages"] == [{"role": "user", "content": "hello"}]
