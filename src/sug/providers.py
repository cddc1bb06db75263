#!/usr/bin/env python

"""Provider clients: one interface, one implementation per HTTP API.

Clients only move text. They build the prompt, send it with the shared
system instruction and return the trimmed reply; interpreting the reply
is left to interpreter.interpret_response so every provider is parsed
the same way.
"""

import json
from time import monotonic
from typing import Any, Dict, Optional, Sequence

import httpx
from openai import OpenAI, OpenAIError
from openai.types.chat import ChatCompletion

from .constants import (
    DEFAULT_MODELS, DEFAULT_BASE_URLS,
    ANTHROPIC_VERSION, ANTHROPIC_MAX_TOKENS,
)
from .exceptions import ConfigurationError, ProviderRequestError
from .logger import logger
from .models import Context, HistoryEntry, Provider
from .prompts import SYSTEM_PROMPT, build_completion_prompt, build_prediction_prompt


class ProviderClient:
    """Takes a prompt, returns text"""

    provider: Provider

    def __init__(self, api_key: str, model: Optional[str] = None,
                 base_url: Optional[str] = None, timeout: float = 30.0,
                 http_client: Optional[httpx.Client] = None):
        if not api_key:
            raise ConfigurationError(f"API key is required for provider {self.provider.value}")
        self.api_key = api_key
        self.model = model or DEFAULT_MODELS[self.provider.value]
        self.base_url = (base_url or DEFAULT_BASE_URLS[self.provider.value]).rstrip("/")
        self.timeout = timeout
        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=timeout)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        if self._owns_http_client:
            self.http_client.close()

    def complete(self, context: Context, user_input: str) -> str:
        """Ask for a completion of a partially typed command"""
        return self.send(build_completion_prompt(context, user_input))

    def predict(self, context: Context, history: Sequence[HistoryEntry]) -> str:
        """Ask for the next command given recent history"""
        return self.send(build_prediction_prompt(context, history))

    def send(self, user_prompt: str) -> str:
        text = (self._send(SYSTEM_PROMPT, user_prompt) or "").strip()
        logger.log_api_request(self.provider.value, self.model, len(user_prompt), len(text))
        return text

    def _send(self, system_prompt: str, user_prompt: str) -> str:
        raise NotImplementedError

    def _fail(self, detail: str) -> ProviderRequestError:
        return ProviderRequestError(self.provider.value, detail)

    def _timed_out(self) -> ProviderRequestError:
        return self._fail(f"timed out after {self.timeout:g}s")

    def _read_body(self, response: httpx.Response, deadline: float) -> bytes:
        chunks = []
        for chunk in response.iter_bytes():
            chunks.append(chunk)
            if monotonic() > deadline:
                raise self._timed_out()
        return b"".join(chunks)

    def _post_json(self, url: str, payload: Dict[str, Any],
                   headers: Optional[Dict[str, str]] = None,
                   params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """POST a JSON payload and return the decoded reply, mapping every failure to ProviderRequestError.

        The httpx timeout bounds each connect/read/write step; the body is
        streamed so the whole call is also abandoned once `timeout` seconds
        have passed.
        """
        logger.debug(f"Request payload: {json.dumps(payload)}")
        deadline = monotonic() + self.timeout
        try:
            with self.http_client.stream(
                "POST", url, json=payload, headers=headers, params=params, timeout=self.timeout
            ) as response:
                body = self._read_body(response, deadline)
        except httpx.TimeoutException:
            raise self._timed_out()
        except httpx.HTTPError as e:
            raise self._fail(f"failed to send request: {e}")

        try:
            data = json.loads(body)
        except ValueError:
            if not response.is_success:
                raise self._fail(f"HTTP {response.status_code}")
            raise self._fail("failed to decode response as JSON")

        if not isinstance(data, dict):
            raise self._fail("unexpected response shape")

        error = data.get("error")
        if error or data.get("type") == "error":
            message = error.get("message") if isinstance(error, dict) else error
            raise self._fail(f"API error: {message or 'unknown error'}")

        if not response.is_success:
            raise self._fail(f"HTTP {response.status_code}")

        return data


class OpenAIClient(ProviderClient):
    """OpenAI chat completions through the openai SDK"""

    provider = Provider.OPENAI

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.client = OpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
            http_client=self.http_client,
        )

    def _send(self, system_prompt: str, user_prompt: str) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        logger.debug(f"Request payload: {json.dumps({'model': self.model, 'messages': messages})}")
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
            )
        except OpenAIError as e:
            raise self._fail(str(e))

        # A non-JSON body comes back from the SDK as a plain str
        if not isinstance(response, ChatCompletion):
            raise self._fail("failed to decode response as JSON")

        error = (response.model_extra or {}).get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else error
            raise self._fail(f"API error: {message or 'unknown error'}")

        choices = getattr(response, "choices", None)
        if not isinstance(choices, list) or not choices:
            raise self._fail("no choices in response")
        try:
            return choices[0].message.content or ""
        except (AttributeError, TypeError):
            raise self._fail("failed to decode response as JSON")


class GroqClient(OpenAIClient):
    """Groq serves an OpenAI-compatible chat completions endpoint"""

    provider = Provider.GROQ


class AnthropicClient(ProviderClient):
    """Anthropic Messages API"""

    provider = Provider.ANTHROPIC

    def _send(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "model": self.model,
            "max_tokens": ANTHROPIC_MAX_TOKENS,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
        data = self._post_json(f"{self.base_url}/v1/messages", payload, headers=headers)

        content = data.get("content") or []
        if not content or not isinstance(content[0], dict):
            raise self._fail("no content in response")
        return content[0].get("text", "")


class GeminiClient(ProviderClient):
    """Google Gemini generateContent API"""

    provider = Provider.GEMINI

    def _send(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"parts": [{"text": user_prompt}]}],
        }
        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent"
        data = self._post_json(url, payload, params={"key": self.api_key})

        try:
            return data["candidates"][0]["content"]["parts"][0].get("text", "")
        except (KeyError, IndexError, TypeError, AttributeError):
            raise self._fail("no content in response")


CLIENT_CLASSES = {
    Provider.OPENAI: OpenAIClient,
    Provider.ANTHROPIC: AnthropicClient,
    Provider.GEMINI: GeminiClient,
    Provider.GROQ: GroqClient,
}


def create_client(provider: Provider, api_key: str, timeout: float,
                  model: Optional[str] = None, base_url: Optional[str] = None,
                  http_client: Optional[httpx.Client] = None) -> ProviderClient:
    """Create the client for a provider"""
    try:
        client_class = CLIENT_CLASSES[Provider(provider)]
    except (KeyError, ValueError):
        raise ConfigurationError(f"unsupported provider: {provider}")
    return client_class(
        api_key, model=model, base_url=base_url, timeout=timeout, http_client=http_client
    )
