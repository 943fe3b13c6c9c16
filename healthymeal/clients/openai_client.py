"""
OpenAI-compatible chat client used for AI recipe modification.

Talks to OpenRouter by default through the official openai SDK, which
handles retries and timeouts.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from healthymeal.config import settings

logger = logging.getLogger(__name__)


class OpenAIClientError(Exception):
    """Base exception for AI client errors."""

    pass


@dataclass
class ChatResult:
    """Text content of the first choice plus what the provider reported."""

    content: str
    model: str
    raw_response: Dict[str, Any]


class OpenAIClient:
    """
    Async client for an OpenAI-compatible chat completions API.

    Example:
        >>> client = OpenAIClient()
        >>> result = await client.complete(
        ...     system_prompt="You are a professional chef...",
        ...     user_prompt="Please modify the following recipe...",
        ...     response_format={"type": "json_object"},
        ... )
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
    ):
        """Initialize the client. Arguments default to settings."""
        self._api_key = api_key or settings.openrouter_api_key
        self._base_url = base_url or settings.openrouter_base_url
        self.model = model or settings.ai_model
        self._client: Optional[Any] = None

    def _ensure_initialized(self) -> None:
        """Lazily create the SDK client."""
        if self._client is not None:
            return

        if not self._api_key:
            raise OpenAIClientError(
                "AI provider API key not configured. "
                "Set OPENROUTER_API_KEY environment variable."
            )

        from openai import AsyncOpenAI

        self._client = AsyncOpenAI(
            api_key=self._api_key,
            base_url=self._base_url,
            timeout=settings.ai_timeout_seconds,
            max_retries=settings.ai_max_retries,
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        response_format: Optional[Dict[str, str]] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatResult:
        """
        Send a chat completion request.

        Args:
            system_prompt: Instructions for the model behavior.
            user_prompt: The user's input to process.
            response_format: Optional format specification (e.g., {"type": "json_object"}).
            temperature: Sampling temperature, defaults to settings.
            max_tokens: Completion token cap, defaults to settings.

        Returns:
            ChatResult with the first choice's content.

        Raises:
            OpenAIClientError: If the API call fails or returns no content.
        """
        self._ensure_initialized()

        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": settings.ai_temperature if temperature is None else temperature,
            "max_tokens": max_tokens or settings.ai_max_tokens,
        }
        if response_format:
            kwargs["response_format"] = response_format

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except Exception as e:
            logger.error(f"AI provider call failed: {e}")
            raise OpenAIClientError(f"AI provider call failed: {e}") from e

        if not response.choices or not response.choices[0].message.content:
            raise OpenAIClientError("No content in AI response")

        return ChatResult(
            content=response.choices[0].message.content,
            model=response.model or self.model,
            raw_response=response.model_dump(),
        )
