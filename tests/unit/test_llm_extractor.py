"""Tests for Claude slot extraction."""

import pytest
from unittest.mock import AsyncMock

from tablebook.core.intelligence.slots.llm_extractor import ClaudeSlotExtractor
from tablebook.core.intelligence.slots.types import Intent
from tablebook.infra.claude import ClaudeClientError


class TestClaudeSlotExtractor:
    """Test LLM-based extraction with rule-based fallback."""

    @pytest.fixture
    def mock_claude_client(self):
        """Create mock Claude client."""
        mock = AsyncMock()
        mock.complete = AsyncMock()
        return mock

    @pytest.fixture
    def extractor(self, mock_claude_client):
        return ClaudeSlotExtractor(claude_client=mock_claude_client)

    @pytest.mark.asyncio
    async def test_extract_booking(self, extractor, mock_claude_client):
        mock_claude_client.complete.return_value = """
        {
            "intent": "book",
            "date": "Tomorrow",
            "time": "7:00 PM",
            "party_size": 4,
            "name": null,
            "phone": null
        }
        """

        result = await extractor.extract("table for four tomorrow at seven in the evening")

        assert result.intent == Intent.BOOK
        assert result.source == "claude"
        assert result.slots.date == "tomorrow"
        assert result.slots.time == "7:00 pm"
        assert result.slots.party_size == 4
        assert result.slots.name is None

    @pytest.mark.asyncio
    async def test_code_fenced_response(self, extractor, mock_claude_client):
        mock_claude_client.complete.return_value = (
            "```json\n"
            '{"intent": "confirm", "date": null, "time": null, '
            '"party_size": null, "name": null, "phone": null}\n'
            "```"
        )

        result = await extractor.extract("yep go ahead")

        assert result.intent == Intent.CONFIRM
        assert result.slots.has_any() is False

    @pytest.mark.asyncio
    async def test_invalid_values_dropped(self, extractor, mock_claude_client):
        mock_claude_client.complete.return_value = (
            '{"intent": "maybe", "date": null, "time": null, '
            '"party_size": 0, "name": "Ravi", "phone": "12345"}'
        )

        result = await extractor.extract("I'm Ravi, 12345")

        assert result.slots.party_size is None
        assert result.slots.phone is None
        assert result.slots.name == "Ravi"
        assert result.intent == Intent.BOOK

    @pytest.mark.asyncio
    async def test_client_error_falls_back(self, extractor, mock_claude_client):
        mock_claude_client.complete.side_effect = ClaudeClientError("overloaded")

        result = await extractor.extract("table for 2 on friday at 8pm")

        assert result.source == "regex"
        assert result.slots.party_size == 2
        assert result.slots.date == "friday"
        assert result.slots.time == "8:00 pm"

    @pytest.mark.asyncio
    async def test_malformed_json_falls_back(self, extractor, mock_claude_client):
        mock_claude_client.complete.return_value = "Sure! The caller wants a table."

        result = await extractor.extract("yes")

        assert result.source == "regex"
        assert result.intent == Intent.CONFIRM

    @pytest.mark.asyncio
    async def test_empty_text_skips_api(self, extractor, mock_claude_client):
        result = await extractor.extract("   ")

        assert result.intent == Intent.NONE
        mock_claude_client.complete.assert_not_called()
