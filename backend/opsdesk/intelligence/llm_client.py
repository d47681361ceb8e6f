"""
Chat completion client.

Thin wrapper over an OpenAI-compatible /chat/completions endpoint. One call,
one HTTP round trip: no retries, no streaming. Failures raise LLMClientError
and are left to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import httpx

from opsdesk.config.settings import DEFAULT_OPENAI_BASE_URL, DEFAULT_OPENAI_MODEL, DeskSettings

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 900


class LLMClientError(Exception):
    """Raised when a completion cannot be obtained."""
    pass


@dataclass(frozen=True)
class ChatMessage:
    role: str  # "system" | "user" | "assistant"
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass
class ChatResult:
    content: str
    model: str
    usage: Optional[dict[str, Any]] = None


class ChatCompletionClient:
    """
    Client for chat completions.

    The API key is checked at call time so a desk without a key can still
    serve cached reports.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_OPENAI_MODEL,
        base_url: str = DEFAULT_OPENAI_BASE_URL,
        timeout: float = 60.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._http_client = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: DeskSettings) -> "ChatCompletionClient":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            timeout=float(settings.openai_timeout_seconds),
        )

    def close(self) -> None:
        self._http_client.close()

    def complete(
        self,
        messages: Sequence[ChatMessage],
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        model: Optional[str] = None,
    ) -> ChatResult:
        """
        Request one completion.

        Raises:
            LLMClientError: missing API key, transport failure, non-2xx
                response, or an empty completion
        """
        if not self.api_key:
            raise LLMClientError("Missing OPENAI_API_KEY")

        requested_model = model or self.model

        try:
            response = self._http_client.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": requested_model,
                    "temperature": temperature,
                    "max_tokens": max_tokens,
                    "messages": [m.to_dict() for m in messages],
                },
            )
        except httpx.HTTPError as e:
            logger.error(
                "llm.request_failed",
                extra={"model": requested_model, "error_type": type(e).__name__},
            )
            raise LLMClientError(f"OpenAI request failed: {e}") from e

        if response.is_error:
            message = response.reason_phrase
            try:
                body = response.json()
                error_message = (body.get("error") or {}).get("message")
                if isinstance(error_message, str) and error_message:
                    message = error_message
            except (ValueError, AttributeError):
                pass
            logger.error(
                "llm.error_response",
                extra={"model": requested_model, "status_code": response.status_code},
            )
            raise LLMClientError(f"OpenAI error: {message}")

        try:
            data = response.json()
        except ValueError as e:
            raise LLMClientError("OpenAI returned a non-JSON response") from e

        choices = data.get("choices") or []
        message = (choices[0].get("message") or {}) if choices else {}
        content = (message.get("content") or "").strip()
        if not content:
            raise LLMClientError("OpenAI returned an empty response")

        usage = data.get("usage")
        logger.info(
            "llm.completion_received",
            extra={
                "model": data.get("model") or requested_model,
                "total_tokens": (usage or {}).get("total_tokens"),
            },
        )

        return ChatResult(
            content=content,
            model=data.get("model") or requested_model,
            usage=usage if isinstance(usage, dict) else None,
        )
