"""Thin async wrapper around LiteLLM for LLM completions."""

import logging
from typing import Any

import litellm
from pydantic import BaseModel

from config.settings import settings

logger = logging.getLogger(__name__)


class CompletionResult(BaseModel):
    """Text returned by an LLM completion."""

    content: str | None = None
    model: str = ""


class LLMGateway:
    """Async LLM completion via LiteLLM."""

    def __init__(self, model: str | None = None, temperature: float = 0.2) -> None:
        self.model = model or settings.llm_default_model
        self.temperature = temperature

    async def complete(self, messages: list[dict[str, Any]]) -> CompletionResult:
        """Send messages to the LLM and return the response.

        Args:
            messages: OpenAI-format message list (system/user/assistant).

        Returns:
            CompletionResult with content and the model that answered.
        """
        logger.info("Calling LLM model=%s messages=%d", self.model, len(messages))
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if settings.gemini_api_key:
            kwargs["api_key"] = settings.gemini_api_key

        response = await litellm.acompletion(**kwargs)
        message = response.choices[0].message

        return CompletionResult(
            content=message.content,
            model=response.model or self.model,
        )
