"""
Gemini chat (Google AI generateContent, text only).
Single-turn: one user message in, first candidate's text out.
Failures are returned as strings, the chat widget shows them as the bot's reply.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from app.utils.metrics import chat_requests_total, upstream_request_duration_seconds

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response"


@dataclass(frozen=True)
class GeminiChatConfig:
    api_key: str
    api_endpoint: str = "https://generativelanguage.googleapis.com"
    model: str = "gemini-2.0-flash"
    temperature: float = 0.7
    max_output_tokens: int = 1024
    timeout: float = 60.0
    rate_limit_backoff_seconds: float = 30.0

    @classmethod
    def from_settings(cls, settings) -> "GeminiChatConfig":
        return cls(
            api_key=settings.gemini_api_key,
            api_endpoint=settings.gemini_api_endpoint,
            model=settings.gemini_chat_model,
            temperature=settings.gemini_chat_temperature,
            max_output_tokens=settings.gemini_chat_max_output_tokens,
            timeout=settings.gemini_timeout,
            rate_limit_backoff_seconds=settings.chat_rate_limit_backoff_seconds,
        )


def extract_reply(raw: str) -> str:
    """Pull the first candidate's first text part out of a generateContent body."""
    try:
        body: Any = json.loads(raw)
    except ValueError:
        body = None
    if not isinstance(body, dict):
        return "No candidates found in response. Raw response: " + raw

    error = body.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        return f"API Error: {message}"

    candidates = body.get("candidates") or []
    if not candidates:
        return "No candidates found in response. Raw response: " + raw

    c0 = candidates[0] if isinstance(candidates[0], dict) else {}
    content = c0.get("content") or {}
    parts = content.get("parts") or []
    if not parts or not isinstance(parts[0], dict):
        return NO_RESPONSE
    text = parts[0].get("text")
    return text if text is not None else NO_RESPONSE


class GeminiChatService:
    """Chat completion via Gemini with one retry after a fixed backoff on HTTP 429."""

    def __init__(
        self,
        config: GeminiChatConfig,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        endpoint = config.api_endpoint.rstrip("/")
        self.url = f"{endpoint}/v1beta/models/{config.model}:generateContent"
        self._client = httpx.Client(timeout=config.timeout, transport=transport)
        self._sleep = sleep

    def _build_payload(self, user_message: str) -> dict:
        return {
            "contents": [{"parts": [{"text": user_message}]}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_output_tokens,
            },
        }

    def _post(self, payload: dict) -> httpx.Response:
        start = time.time()
        try:
            return self._client.post(self.url, params={"key": self.config.api_key}, json=payload)
        finally:
            upstream_request_duration_seconds.labels(service="gemini").observe(time.time() - start)

    def get_chat_response(self, user_message: str) -> str:
        payload = self._build_payload(user_message)
        try:
            resp = self._post(payload)
            if resp.status_code == 429:
                chat_requests_total.labels(outcome="rate_limited").inc()
                logger.warning(
                    "gemini_rate_limited",
                    extra={"attempt": 1, "latency_ms": int(self.config.rate_limit_backoff_seconds * 1000)},
                )
                self._sleep(self.config.rate_limit_backoff_seconds)
                resp = self._post(payload)
        except httpx.HTTPError as e:
            chat_requests_total.labels(outcome="error").inc()
            logger.warning("gemini_transport_error", extra={"error": str(e)})
            return f"Error: {str(e) or type(e).__name__}"

        if not resp.is_success:
            chat_requests_total.labels(outcome="error").inc()
            logger.warning("gemini_request_failed", extra={"status_code": resp.status_code})
            return f"Error: {resp.status_code} - {resp.text}"

        chat_requests_total.labels(outcome="success").inc()
        return extract_reply(resp.text)
