"""
Claude API Client

Thin async wrapper over the Anthropic SDK used by the LLM utterance
extractor: bounded retries on rate limits and dropped connections, plus a
one-shot fallback to a second model.
"""

import asyncio
import logging
from typing import Any, Optional

from anthropic import AsyncAnthropic, APIError, RateLimitError, APIConnectionError

from tablebook.config import settings

logger = logging.getLogger(__name__)


class ClaudeClientError(Exception):
    """Raised when Claude API call fails."""
    pass


class ClaudeClient:
    """Async Claude completion client with retry and model fallback."""

    _instance: Optional["ClaudeClient"] = None

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        fallback_model: Optional[str] = None,
        max_retries: int = 3,
    ):
        """Initialize Claude client.

        Args:
            api_key: Anthropic API key (defaults to settings)
            model: Primary model (defaults to settings.claude_nlu_model)
            fallback_model: Model tried once when the primary fails
            max_retries: Attempts per model on transient errors
        """
        self.api_key = api_key or settings.anthropic_api_key
        if not self.api_key:
            raise ValueError("Anthropic API key is required")

        self._client = AsyncAnthropic(api_key=self.api_key)
        self.model = model or settings.claude_nlu_model
        self.fallback_model = fallback_model or settings.claude_fallback_model
        self.max_retries = max_retries

    @classmethod
    def get_instance(cls) -> "ClaudeClient":
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton instance (useful for testing)."""
        cls._instance = None

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 256,
    ) -> str:
        """
        Return the text of a single deterministic completion.

        Raises:
            ClaudeClientError: If both the primary and fallback model fail
        """
        try:
            return await self._complete_with_retry(
                self.model, prompt, system_prompt, max_tokens
            )
        except (APIError, ClaudeClientError) as e:
            if self.fallback_model == self.model:
                raise ClaudeClientError(f"Claude API call failed: {e}") from e
            logger.warning(f"{self.model} failed, trying {self.fallback_model}: {e}")

        try:
            return await self._complete_with_retry(
                self.fallback_model, prompt, system_prompt, max_tokens
            )
        except (APIError, ClaudeClientError) as e:
            raise ClaudeClientError(f"Claude API call failed: {e}") from e

    async def _complete_with_retry(
        self,
        model: str,
        prompt: str,
        system_prompt: Optional[str],
        max_tokens: int,
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": 0.0,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            try:
                response = await self._client.messages.create(**kwargs)
                return response.content[0].text
            except (RateLimitError, APIConnectionError) as e:
                last_error = e
                if attempt == self.max_retries - 1:
                    break
                wait_time = 2 ** attempt
                logger.warning(
                    f"Transient Claude error, retrying in {wait_time}s "
                    f"(attempt {attempt + 1}): {e}"
                )
                await asyncio.sleep(wait_time)

        raise ClaudeClientError(f"Max retries exceeded: {last_error}")

    async def close(self) -> None:
        """Close the client."""
        await self._client.close()
