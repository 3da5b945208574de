"""
Rule-based slot and intent extraction.

Extracts: date tokens, times, party size, caller name, phone number, and a
coarse intent (book / confirm / reject / none). Runs in-process with no
external calls.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

from tablebook.config import settings
from .types import BookingSlots, Intent, NLUResult

logger = logging.getLogger(__name__)


_HOUR = r"(1[0-2]|0?[1-9])"

DATE_PATTERN = re.compile(
    r"\b(today|tonight|tomorrow|next week|this week|weekend"
    r"|mon(?:day)?|tue(?:sday)?|wed(?:nesday)?|thu(?:rsday)?"
    r"|fri(?:day)?|sat(?:urday)?|sun(?:day)?"
    r"|\d{1,2}(?:st|nd|rd|th)?\s+(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*)\b",
    re.IGNORECASE,
)

HALF_PAST_PATTERN = re.compile(
    rf"\bhalf past\s+{_HOUR}\b(?:\s*(am|pm|a\.m\.|p\.m\.))?", re.IGNORECASE
)
MERIDIEM_PATTERN = re.compile(
    rf"\b{_HOUR}(?::([0-5]\d))?\s*(am|pm|a\.m\.|p\.m\.)(?!\w)", re.IGNORECASE
)
OCLOCK_PATTERN = re.compile(rf"\b{_HOUR}\s*o'?clock\b", re.IGNORECASE)
CLOCK_PATTERN = re.compile(rf"\b{_HOUR}:([0-5]\d)\b", re.IGNORECASE)
AT_HOUR_PATTERN = re.compile(rf"\bat\s+{_HOUR}\b(?!\s*(?:people|guests|persons))", re.IGNORECASE)

TIME_WORDS = {
    "noon": "12:00 pm",
    "midday": "12:00 pm",
    "midnight": "12:00 am",
    "lunch": "1:00 pm",
    "dinner": "7:00 pm",
}
TIME_WORD_PATTERN = re.compile(r"\b(noon|midday|midnight)\b", re.IGNORECASE)
MEAL_PATTERN = re.compile(r"\b(lunch|dinner)\b", re.IGNORECASE)

NUMBER_WORDS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
    "couple": 2, "few": 3,
}
_COUNT = r"(?:a\s+)?(\d{1,2}|" + "|".join(NUMBER_WORDS) + r")"

PARTY_PATTERNS = [
    re.compile(rf"\b(?:table|party|reservation|booking)\s+(?:for|of)\s+{_COUNT}\b", re.IGNORECASE),
    re.compile(rf"\b{_COUNT}\s+(?:people|persons|guests|adults|of us)\b", re.IGNORECASE),
    re.compile(
        rf"\bfor\s+{_COUNT}\b(?!\s*(?::|am\b|pm\b|a\.m|p\.m|o'?clock))",
        re.IGNORECASE,
    ),
]
JUST_ME_PATTERN = re.compile(r"\b(just me|only me|single|myself)\b", re.IGNORECASE)
BARE_COUNT_PATTERN = re.compile(r"\b(\d{1,2}|" + "|".join(NUMBER_WORDS) + r")\b", re.IGNORECASE)

NAME_PATTERN = re.compile(
    r"\b(?:my name is|name's|this is|i am|it's|it is)\s+([A-Za-z][A-Za-z'-]*)",
    re.IGNORECASE,
)
NOT_A_NAME = {
    "a", "an", "the", "for", "at", "on", "in", "to", "not", "just", "here",
    "fine", "good", "okay", "ok", "sure", "yes", "no", "correct", "right",
    "free", "available", "looking", "calling", "booking", "trying", "going",
    "hoping", "wondering", "thinking", "interested", "ready", "sorry", "still", "that",
    "tomorrow", "today", "tonight", "me", "us", "about",
}

PHONE_PATTERN = re.compile(r"(?<!\d)(\d[\d\s\-.]{8,14}\d)(?!\d)")

YES_PATTERN = re.compile(
    r"\b(yes|yeah|yep|sure|confirm|okay|ok|correct|right|fine|good)\b", re.IGNORECASE
)
NO_PATTERN = re.compile(
    r"\b(no|nah|nope|don't|cancel|wrong|change|wait|stop)\b", re.IGNORECASE
)


class SlotExtractor(ABC):
    """Turns one caller utterance into an intent and partial booking slots."""

    @abstractmethod
    async def extract(self, text: str) -> NLUResult:
        """Extract intent and slots from an utterance."""


class RegexSlotExtractor(SlotExtractor):
    """Keyword and pattern based extraction."""

    async def extract(self, text: str) -> NLUResult:
        return self.parse(text)

    def parse(self, text: str) -> NLUResult:
        """Synchronous extraction (no I/O)."""
        text = text.strip()
        if not text:
            return NLUResult()

        phone = self._parse_phone(text)
        # Phone digits must not be read as a party size or time
        remainder = PHONE_PATTERN.sub(" ", text) if phone else text

        slots = BookingSlots(
            date=self._parse_date(remainder),
            time=self._parse_time(remainder),
            party_size=self._parse_party_size(remainder),
            name=self._parse_name(remainder),
            phone=phone,
        )

        if YES_PATTERN.search(text):
            intent = Intent.CONFIRM
        elif NO_PATTERN.search(text):
            intent = Intent.REJECT
        elif slots.has_any():
            intent = Intent.BOOK
        else:
            intent = Intent.NONE

        logger.debug(f"Parsed intent={intent.value} slots={slots.to_dict()}")
        return NLUResult(intent=intent, slots=slots, source="regex")

    def _parse_date(self, text: str) -> Optional[str]:
        match = DATE_PATTERN.search(text)
        return match.group(0).lower() if match else None

    def _parse_time(self, text: str) -> Optional[str]:
        match = HALF_PAST_PATTERN.search(text)
        if match:
            meridiem = _normalize_meridiem(match.group(2))
            return f"{int(match.group(1))}:30" + (f" {meridiem}" if meridiem else "")

        match = MERIDIEM_PATTERN.search(text)
        if match:
            minutes = match.group(2) or "00"
            return f"{int(match.group(1))}:{minutes} {_normalize_meridiem(match.group(3))}"

        match = TIME_WORD_PATTERN.search(text)
        if match:
            return TIME_WORDS[match.group(1).lower()]

        match = OCLOCK_PATTERN.search(text)
        if match:
            return f"{int(match.group(1))}:00"

        match = CLOCK_PATTERN.search(text)
        if match:
            return f"{int(match.group(1))}:{match.group(2)}"

        match = AT_HOUR_PATTERN.search(text)
        if match:
            return f"{int(match.group(1))}:00"

        match = MEAL_PATTERN.search(text)
        if match:
            return TIME_WORDS[match.group(1).lower()]

        return None

    def _parse_party_size(self, text: str) -> Optional[int]:
        for pattern in PARTY_PATTERNS:
            match = pattern.search(text)
            if match:
                size = _to_number(match.group(1))
                if size and size > 0:
                    return size

        if JUST_ME_PATTERN.search(text):
            return 1

        return None

    def _parse_name(self, text: str) -> Optional[str]:
        for match in NAME_PATTERN.finditer(text):
            candidate = match.group(1)
            if candidate.lower() not in NOT_A_NAME:
                return candidate.capitalize()
        return None

    def _parse_phone(self, text: str) -> Optional[str]:
        for match in PHONE_PATTERN.finditer(text):
            digits = re.sub(r"\D", "", match.group(1))
            if len(digits) == 10:
                return digits
        return None


def _normalize_meridiem(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value.lower().replace(".", "")


def _to_number(value: str) -> Optional[int]:
    value = value.lower()
    if value.isdigit():
        return int(value)
    return NUMBER_WORDS.get(value)


def parse_count(text: str) -> Optional[int]:
    """First number in an utterance with no other context ("4", "around seven").

    Only meaningful as the answer to a direct question.
    """
    match = BARE_COUNT_PATTERN.search(text)
    return _to_number(match.group(1)) if match else None


# Singleton
_extractor: Optional[SlotExtractor] = None


def get_slot_extractor() -> SlotExtractor:
    """Get the configured SlotExtractor singleton."""
    global _extractor
    if _extractor is None:
        if settings.nlu_backend == "claude":
            from .llm_extractor import ClaudeSlotExtractor

            _extractor = ClaudeSlotExtractor()
        else:
            _extractor = RegexSlotExtractor()
        logger.info(f"Slot extractor: {type(_extractor).__name__}")
    return _extractor


async def extract_slots(text: str) -> NLUResult:
    """Convenience function to extract intent and slots."""
    return await get_slot_extractor().extract(text)
