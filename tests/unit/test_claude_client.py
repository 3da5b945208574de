"""Tests for the Claude API client."""

import httpx
import pytest
from anthropic import APIConnectionError
from unittest.mock import AsyncMock, MagicMock

from tablebook.infra.claude import ClaudeClient, ClaudeClientError


class TestClaudeClient:
    """Test ClaudeClient completion and model fallback."""

    @pytest.fixture
    def client(self):
        client = ClaudeClient(
            api_key="sk-test",
            model="primary-model",
            fallback_model="fallback-model",
        )
        client._client = MagicMock()
        client._client.messages.create = AsyncMock(
            return_value=MagicMock(content=[MagicMock(text='{"intent": "none"}')])
        )
        return client

    def test_requires_api_key(self, monkeypatch):
        from tablebook.infra import claude

        monkeypatch.setattr(claude.settings, "anthropic_api_key", "")

        with pytest.raises(ValueError):
            ClaudeClient()

    @pytest.mark.asyncio
    async def test_complete(self, client):
        text = await client.complete("prompt", system_prompt="be brief", max_tokens=50)

        assert text == '{"intent": "none"}'
        kwargs = client._client.messages.create.await_args.kwargs
        assert kwargs["model"] == "primary-model"
        assert kwargs["system"] == "be brief"
        assert kwargs["max_tokens"] == 50
        assert kwargs["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_fallback_model(self, client):
        client._complete_with_retry = AsyncMock(
            side_effect=[ClaudeClientError("overloaded"), "from fallback"]
        )

        assert await client.complete("prompt") == "from fallback"
        assert client._complete_with_retry.await_args.args[0] == "fallback-model"

    @pytest.mark.asyncio
    async def test_both_models_fail(self, client):
        client._complete_with_retry = AsyncMock(side_effect=ClaudeClientError("down"))

        with pytest.raises(ClaudeClientError):
            await client.complete("prompt")

        assert client._complete_with_retry.await_count == 2

    @pytest.mark.asyncio
    async def test_no_sleep_after_last_attempt(self, client, monkeypatch):
        """Backoff only runs between attempts."""
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        client._client.messages.create = AsyncMock(
            side_effect=APIConnectionError(request=request)
        )
        sleep = AsyncMock()
        monkeypatch.setattr("tablebook.infra.claude.asyncio.sleep", sleep)

        with pytest.raises(ClaudeClientError):
            await client._complete_with_retry("primary-model", "prompt", None, 10)

        assert client._client.messages.create.await_count == client.max_retries
        assert sleep.await_count == client.max_retries - 1
