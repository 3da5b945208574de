"""
LLM-based slot and intent extraction using Claude.

Same contract as the rule-based extractor; any API or parse failure falls
back to the rule-based result so a turn is never lost.
"""

import json
import logging
from typing import Optional

from tablebook.infra.claude import ClaudeClient, ClaudeClientError
from .extractor import RegexSlotExtractor, SlotExtractor
from .types import BookingSlots, Intent, NLUResult

logger = logging.getLogger(__name__)


EXTRACTION_PROMPT = """Extract restaurant table booking details from this caller utterance.

## What to Extract

- date: Day the caller wants, as they said it, lowercase (e.g. "tomorrow", "friday", "15th may")
- time: Time as "H:MM am" / "H:MM pm"; omit am/pm if the caller did not make it clear (e.g. "7:00")
- party_size: Number of people as an integer
- name: Caller's name if they say it
- phone: 10-digit phone number, digits only
- intent: "confirm" (yes, ok, sure, correct), "reject" (no, cancel, wrong), "book" (gave any detail above), otherwise "none"

## Utterance

"{message}"

## Response

Respond with ONLY valid JSON (use null for fields not mentioned):
{{
    "intent": "<confirm|reject|book|none>",
    "date": "<text or null>",
    "time": "<text or null>",
    "party_size": <integer or null>,
    "name": "<name or null>",
    "phone": "<digits or null>"
}}"""


class ClaudeSlotExtractor(SlotExtractor):
    """Claude-backed extraction with rule-based fallback."""

    def __init__(
        self,
        claude_client: Optional[ClaudeClient] = None,
        fallback: Optional[RegexSlotExtractor] = None,
    ):
        """Initialize extractor.

        Args:
            claude_client: Optional Claude client (for testing)
            fallback: Extractor used when Claude is unavailable
        """
        self._client = claude_client
        self._fallback = fallback or RegexSlotExtractor()

    def _get_client(self) -> ClaudeClient:
        if self._client is None:
            self._client = ClaudeClient.get_instance()
        return self._client

    async def extract(self, text: str) -> NLUResult:
        text = text.strip()
        if not text:
            return NLUResult(source="claude")

        try:
            content = await self._get_client().complete(
                EXTRACTION_PROMPT.format(message=text),
                max_tokens=200,
            )
            return self._parse_response(content)
        except (ClaudeClientError, ValueError, TypeError) as e:
            logger.error(f"Claude extraction failed, using rules: {e}")
            return self._fallback.parse(text)

    def _parse_response(self, response: str) -> NLUResult:
        """Parse LLM JSON response.

        Raises:
            ValueError: If the response is not the expected JSON object
        """
        response = response.strip()
        if response.startswith("```"):
            lines = response.split("\n")[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            response = "\n".join(lines).strip()

        data = json.loads(response)
        if not isinstance(data, dict):
            raise ValueError(f"Expected JSON object, got {type(data).__name__}")

        party_size = data.get("party_size")
        if party_size is not None:
            party_size = int(party_size)
            if party_size < 1:
                party_size = None

        phone = data.get("phone")
        if phone:
            phone = "".join(ch for ch in str(phone) if ch.isdigit())
            if len(phone) != 10:
                phone = None

        slots = BookingSlots(
            date=_lowered(data.get("date")),
            time=_lowered(data.get("time")),
            party_size=party_size,
            name=data.get("name") or None,
            phone=phone or None,
        )

        try:
            intent = Intent(data.get("intent") or "none")
        except ValueError:
            intent = Intent.BOOK if slots.has_any() else Intent.NONE

        return NLUResult(intent=intent, slots=slots, source="claude")


def _lowered(value) -> Optional[str]:
    if not value:
        return None
    return str(value).strip().lower() or None
