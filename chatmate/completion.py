from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from chatmate.errors import ConfigError, EmptyCompletionError, UpstreamError

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 1.1
DEFAULT_MAX_TOKENS = 250
DEFAULT_PRESENCE_PENALTY = 0.6
DEFAULT_FREQUENCY_PENALTY = 0.2
DEFAULT_TIMEOUT_SEC = 60.0


@dataclass(frozen=True)
class CompletionConfig:
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    presence_penalty: float = DEFAULT_PRESENCE_PENALTY
    frequency_penalty: float = DEFAULT_FREQUENCY_PENALTY
    timeout_sec: float = DEFAULT_TIMEOUT_SEC


def build_request_body(config: CompletionConfig, system_prompt: str, user_text: str) -> dict[str, Any]:
    return {
        "model": config.model,
        "temperature": config.temperature,
        "max_tokens": config.max_tokens,
        "presence_penalty": config.presence_penalty,
        "frequency_penalty": config.frequency_penalty,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_text},
        ],
    }


def extract_first_choice(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, str):
        return None
    return content.strip() or None


class CompletionClient:
    """Single-shot client for an OpenAI-compatible chat completions endpoint."""

    def __init__(self, config: CompletionConfig, http_client: httpx.AsyncClient | None = None) -> None:
        if not config.api_key:
            raise ConfigError("Missing completion service credential (OPENAI_API_KEY).")
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=config.base_url.rstrip("/"),
            timeout=config.timeout_sec,
        )
        self._logger = logging.getLogger("completion")

    async def complete(self, system_prompt: str, user_text: str) -> str:
        payload = build_request_body(self._config, system_prompt, user_text)
        self._logger.info(
            "completion request model=%s prompt_chars=%s input_chars=%s",
            self._config.model,
            len(system_prompt),
            len(user_text),
        )
        try:
            resp = await self._client.post(
                "/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self._config.api_key}"},
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(0, str(exc)) from exc
        if not resp.is_success:
            raise UpstreamError(resp.status_code, resp.text)
        try:
            data = resp.json()
        except ValueError as exc:
            raise EmptyCompletionError("Completion response was not JSON.") from exc
        content = extract_first_choice(data)
        if not content:
            raise EmptyCompletionError("Completion response was empty.")
        self._logger.info("completion response model=%s chars=%s", self._config.model, len(content))
        return content

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
