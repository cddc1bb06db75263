import json

import httpx
import pytest

from sug.exceptions import ConfigurationError, ProviderRequestError
from sug.models import Provider
from sug.prompts import SYSTEM_PROMPT
from sug.providers import (
    AnthropicClient,
    GeminiClient,
    GroqClient,
    OpenAIClient,
    create_client,
)


class Recorder:
    """httpx transport handler that records requests and replays one response"""

    def __init__(self, status_code=200, payload=None, content=None, exc=None):
        self.status_code = status_code
        self.payload = payload
        self.content = content
        self.exc = exc
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def last_body(self):
        return json.loads(self.requests[-1].content)


def http_client(recorder: Recorder) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(recorder))


def chat_completion(content):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1714550000,
        "model": "gpt-4o-mini",
        "choices": [{
            "index": 0,
            "message": {"role": "assistant", "content": content},
            "finish_reason": "stop",
        }],
    }


def test_openai_client_sends_chat_completion(bare_context):
    recorder = Recorder(payload=chat_completion("  +ckout main \n"))
    client = OpenAIClient("sk-test", timeout=5, http_client=http_client(recorder))

    assert client.complete(bare_context, "git che") == "+ckout main"

    request = recorder.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.openai.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = recorder.last_body
    assert body["model"] == "gpt-4o-mini"
    assert body["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert body["messages"][1]["role"] == "user"
    assert body["messages"][1]["content"].startswith("INPUT: git che")


def test_groq_client_uses_openai_compatible_endpoint(bare_context, history):
    recorder = Recorder(payload=chat_completion("=git pull"))
    client = GroqClient("gsk-test", http_client=http_client(recorder))

    assert client.predict(bare_context, history) == "=git pull"
    assert str(recorder.requests[0].url) == "https://api.groq.com/openai/v1/chat/completions"
    assert recorder.last_body["model"] == "llama-3.1-70b-versatile"
    assert "RECENT HISTORY:" in recorder.last_body["messages"][1]["content"]


def test_openai_status_error_is_a_provider_failure(bare_context):
    recorder = Recorder(status_code=401, payload={"error": {"message": "bad key", "type": "invalid_request_error"}})
    client = OpenAIClient("sk-test", http_client=http_client(recorder))

    with pytest.raises(ProviderRequestError) as excinfo:
        client.complete(bare_context, "ls")
    assert excinfo.value.provider == "openai"
    # No retries
    assert len(recorder.requests) == 1


def test_openai_connection_error_is_a_provider_failure(bare_context):
    recorder = Recorder(exc=httpx.ConnectError("connection refused"))
    client = OpenAIClient("sk-test", http_client=http_client(recorder))

    with pytest.raises(ProviderRequestError):
        client.complete(bare_context, "ls")
    assert len(recorder.requests) == 1


def test_anthropic_client_sends_messages_request(bare_context):
    recorder = Recorder(payload={
        "type": "message",
        "content": [{"type": "text", "text": "+mp"}],
    })
    client = AnthropicClient("ak-test", http_client=http_client(recorder))

    assert client.complete(bare_context, "cd /t") == "+mp"

    request = recorder.requests[0]
    assert str(request.url) == "https://api.anthropic.com/v1/messages"
    assert request.headers["x-api-key"] == "ak-test"
    assert request.headers["anthropic-version"] == "2023-06-01"
    body = recorder.last_body
    assert body["model"] == "claude-3-5-sonnet-latest"
    assert body["max_tokens"] == 1000
    assert body["system"] == SYSTEM_PROMPT
    assert body["messages"] == [{"role": "user", "content": body["messages"][0]["content"]}]


def test_anthropic_error_payload_is_a_provider_failure(bare_context):
    recorder = Recorder(status_code=529, payload={
        "type": "error",
        "error": {"type": "overloaded_error", "message": "Overloaded"},
    })
    client = AnthropicClient("ak-test", http_client=http_client(recorder))

    with pytest.raises(ProviderRequestError) as excinfo:
        client.complete(bare_context, "ls")
    assert "Overloaded" in str(excinfo.value)


def test_anthropic_empty_content_is_a_provider_failure(bare_context):
    recorder = Recorder(payload={"type": "message", "content": []})
    client = AnthropicClient("ak-test", http_client=http_client(recorder))

    with pytest.raises(ProviderRequestError) as excinfo:
        client.complete(bare_context, "ls")
    assert "no content" in str(excinfo.value)


def test_gemini_client_sends_generate_content(bare_context):
    recorder = Recorder(payload={
        "candidates": [{"content": {"parts": [{"text": "=ls -la\n"}]}}],
    })
    client = GeminiClient("gm-test", model="gemini-2.0-flash", http_client=http_client(recorder))

    assert client.complete(bare_context, "list files") == "=ls -la"

    request = recorder.requests[0]
    assert request.url.path == "/v1beta/models/gemini-2.0-flash:generateContent"
    assert request.url.params["key"] == "gm-test"
    body = recorder.last_body
    assert body["systemInstruction"] == {"parts": [{"text": SYSTEM_PROMPT}]}
    assert body["contents"][0]["parts"][0]["text"].startswith("INPUT: list files")


def test_gemini_missing_candidates_is_a_provider_failure(bare_context):
    recorder = Recorder(payload={"candidates": []})
    client = GeminiClient("gm-test", http_client=http_client(recorder))

    with pytest.raises(ProviderRequestError):
        client.complete(bare_context, "ls")


def test_non_json_reply_is_a_provider_failure(bare_context):
    recorder = Recorder(content=b"<html>gateway</html>")
    client = GeminiClient("gm-test", http_client=http_client(recorder))

    with pytest.raises(ProviderRequestError) as excinfo:
        client.complete(bare_context, "ls")
    assert "JSON" in str(excinfo.value)


@pytest.mark.parametrize("client_class", [OpenAIClient, GroqClient])
def test_openai_compatible_non_json_reply_is_a_provider_failure(bare_context, client_class):
    recorder = Recorder(content=b"<html>gateway</html>")
    client = client_class("sk-test", http_client=http_client(recorder))

    with pytest.raises(ProviderRequestError) as excinfo:
        client.complete(bare_context, "ls")
    assert "failed to decode response as JSON" in str(excinfo.value)


def test_openai_error_body_with_success_status_keeps_message(bare_context):
    recorder = Recorder(payload={"error": {"message": "model is overloaded", "type": "server_error"}})
    client = OpenAIClient("sk-test", http_client=http_client(recorder))

    with pytest.raises(ProviderRequestError) as excinfo:
        client.complete(bare_context, "ls")
    assert "API error: model is overloaded" in str(excinfo.value)


def test_openai_reply_without_choices_is_a_provider_failure(bare_context):
    payload = chat_completion("+x")
    payload["choices"] = []
    client = OpenAIClient("sk-test", http_client=http_client(Recorder(payload=payload)))

    with pytest.raises(ProviderRequestError) as excinfo:
        client.complete(bare_context, "ls")
    assert "no choices" in str(excinfo.value)


class FakeClock:
    def __init__(self, *readings):
        self.readings = list(readings)

    def __call__(self):
        if len(self.readings) > 1:
            return self.readings.pop(0)
        return self.readings[0]


def test_slow_trickling_body_is_abandoned_at_the_deadline(bare_context, monkeypatch):
    # deadline at 1.0; the second chunk arrives after it
    monkeypatch.setattr("sug.providers.monotonic", FakeClock(0.0, 0.5, 2.0))
    chunks = [b'{"content": [{"type": "text", ', b'"text": "+x"}]}']
    client = AnthropicClient(
        "ak-test",
        timeout=1,
        http_client=httpx.Client(transport=httpx.MockTransport(
            lambda request: httpx.Response(200, content=iter(chunks))
        )),
    )

    with pytest.raises(ProviderRequestError) as excinfo:
        client.complete(bare_context, "ls")
    assert "timed out after 1s" in str(excinfo.value)


def test_body_within_deadline_is_accepted(bare_context, monkeypatch):
    monkeypatch.setattr("sug.providers.monotonic", FakeClock(0.0, 0.2, 0.4))
    chunks = [b'{"content": [{"type": "text", ', b'"text": "+x"}]}']
    client = AnthropicClient(
        "ak-test",
        timeout=1,
        http_client=httpx.Client(transport=httpx.MockTransport(
            lambda request: httpx.Response(200, content=iter(chunks))
        )),
    )

    assert client.complete(bare_context, "ls") == "+x"


def test_http_status_without_error_body_is_a_provider_failure(bare_context):
    recorder = Recorder(status_code=503, content=b"unavailable")
    client = AnthropicClient("ak-test", http_client=http_client(recorder))

    with pytest.raises(ProviderRequestError) as excinfo:
        client.complete(bare_context, "ls")
    assert "HTTP 503" in str(excinfo.value)


def test_timeout_is_a_provider_failure(bare_context):
    recorder = Recorder(exc=httpx.ReadTimeout("slow"))
    client = AnthropicClient("ak-test", timeout=0.5, http_client=http_client(recorder))

    with pytest.raises(ProviderRequestError) as excinfo:
        client.complete(bare_context, "ls")
    assert "timed out after 0.5s" in str(excinfo.value)


def test_base_url_override(bare_context):
    recorder = Recorder(payload={"content": [{"type": "text", "text": "+x"}]})
    client = AnthropicClient("ak-test", base_url="http://localhost:9000/", http_client=http_client(recorder))

    client.complete(bare_context, "ls")
    assert str(recorder.requests[0].url) == "http://localhost:9000/v1/messages"


@pytest.mark.parametrize("provider,client_class", [
    (Provider.OPENAI, OpenAIClient),
    (Provider.ANTHROPIC, AnthropicClient),
    (Provider.GEMINI, GeminiClient),
    (Provider.GROQ, GroqClient),
])
def test_create_client(provider, client_class):
    with create_client(provider, "key", timeout=3) as client:
        assert isinstance(client, client_class)
        assert client.timeout == 3


def test_create_client_rejects_unknown_provider():
    with pytest.raises(ConfigurationError):
        create_client("bard", "key", timeout=3)


def test_client_requires_api_key():
    with pytest.raises(ConfigurationError):
        AnthropicClient("")
