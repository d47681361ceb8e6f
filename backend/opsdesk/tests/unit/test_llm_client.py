"""Tests for ChatCompletionClient using httpx.MockTransport."""

import json

import httpx
import pytest

from opsdesk.intelligence.llm_client import (
    ChatCompletionClient,
    ChatMessage,
    LLMClientError,
)

MESSAGES = [
    ChatMessage(role="system", content="You are a test."),
    ChatMessage(role="user", content="Hello"),
]


def _client(handler, api_key="sk-test"):
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return ChatCompletionClient(
        api_key=api_key,
        model="gpt-4o-mini",
        base_url="https://llm.example.com/v1/",
        http_client=http_client,
    )


class TestComplete:

    def test_successful_completion(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "model": "gpt-4o-mini-2024-07-18",
                "choices": [{"message": {"role": "assistant", "content": "  hi there \n"}}],
                "usage": {"prompt_tokens": 10, "completion_tokens": 2, "total_tokens": 12},
            })

        result = _client(handler).complete(MESSAGES, temperature=0.2, max_tokens=900)

        assert result.content == "hi there"
        assert result.model == "gpt-4o-mini-2024-07-18"
        assert result.usage["total_tokens"] == 12
        assert captured["url"] == "https://llm.example.com/v1/chat/completions"
        assert captured["auth"] == "Bearer sk-test"
        assert captured["body"] == {
            "model": "gpt-4o-mini",
            "temperature": 0.2,
            "max_tokens": 900,
            "messages": [
                {"role": "system", "content": "You are a test."},
                {"role": "user", "content": "Hello"},
            ],
        }

    def test_model_override_and_fallback_model_name(self):
        def handler(request):
            assert json.loads(request.content)["model"] == "gpt-4.1"
            return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

        result = _client(handler).complete(MESSAGES, model="gpt-4.1")

        assert result.model == "gpt-4.1"
        assert result.usage is None

    def test_missing_api_key_makes_no_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        with pytest.raises(LLMClientError, match="Missing OPENAI_API_KEY"):
            _client(handler, api_key=None).complete(MESSAGES)

        assert calls == []

    def test_error_response_uses_provider_message(self):
        def handler(request):
            return httpx.Response(429, json={"error": {"message": "Rate limit reached"}})

        with pytest.raises(LLMClientError, match="OpenAI error: Rate limit reached"):
            _client(handler).complete(MESSAGES)

    def test_error_response_without_json_uses_reason_phrase(self):
        def handler(request):
            return httpx.Response(502, text="<html>bad gateway</html>")

        with pytest.raises(LLMClientError, match="OpenAI error: Bad Gateway"):
            _client(handler).complete(MESSAGES)

    def test_empty_completion_is_an_error(self):
        def handler(request):
            return httpx.Response(200, json={"choices": [{"message": {"content": "   "}}]})

        with pytest.raises(LLMClientError, match="empty response"):
            _client(handler).complete(MESSAGES)

    def test_no_choices_is_an_error(self):
        def handler(request):
            return httpx.Response(200, json={"choices": []})

        with pytest.raises(LLMClientError, match="empty response"):
            _client(handler).complete(MESSAGES)

    def test_transport_failure_is_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(LLMClientError, match="OpenAI request failed"):
            _client(handler).complete(MESSAGES)
