from __future__ import annotations

import logging
from typing import Protocol

from openai import OpenAI, OpenAIError

from app.core.config import Settings
from app.core.exceptions import CompletionUnavailable, ConfigurationError

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    def complete(self, system_prompt: str, user_message: str, *, max_tokens: int, temperature: float) -> str:
        ...


class OpenAICompletionClient:
    """Chat-completions client with a hard timeout and no SDK-level retries.

    Retries are owned by the caller so a failed attempt never re-renders the prompt.
    """

    def __init__(self, *, api_key: str | None, model: str, timeout_seconds: float, base_url: str | None = None) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._model = model
        self._timeout = max(1.0, timeout_seconds)
        self._client: OpenAI | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAICompletionClient":
        return cls(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.ai_model,
            timeout_seconds=settings.ai_timeout_seconds,
        )

    def _get_client(self) -> OpenAI:
        if not self._api_key:
            raise ConfigurationError("The AI assistant is not configured.")
        if self._client is None:
            self._client = OpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._timeout,
                max_retries=0,
            )
        return self._client

    def complete(self, system_prompt: str, user_message: str, *, max_tokens: int, temperature: float) -> str:
        client = self._get_client()
        try:
            completion = client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except OpenAIError as exc:
            logger.warning("Completion request to %s failed: %s", self._model, exc.__class__.__name__)
            raise CompletionUnavailable() from exc

        if not completion.choices:
            raise CompletionUnavailable("The AI assistant returned an empty reply.")
        content = completion.choices[0].message.content
        if not content:
            raise CompletionUnavailable("The AI assistant returned an empty reply.")
        return content
