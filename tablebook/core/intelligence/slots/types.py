"""Slot and intent types for utterance extraction."""

import re
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional


MERIDIEM_MARKERS = ("am", "pm", "noon", "midnight")

_DIGITS = re.compile(r"\d+")


class Intent(str, Enum):
    """Caller intent for a single utterance."""

    BOOK = "book"          # Supplied booking details
    CONFIRM = "confirm"    # Yes, ok, sure, correct
    REJECT = "reject"      # No, cancel, wrong
    NONE = "none"


@dataclass
class BookingSlots:
    """Partial booking request (conversational slots)."""

    date: Optional[str] = None          # "tomorrow", "friday", "15th may"
    time: Optional[str] = None          # "7pm", "7:00", "7:00 pm"
    party_size: Optional[int] = None
    name: Optional[str] = None
    phone: Optional[str] = None         # 10 digits

    def has_any(self) -> bool:
        """Check if any slot is set."""
        return any(getattr(self, f.name) is not None for f in fields(self))

    def merge(self, other: "BookingSlots") -> None:
        """Overwrite slots with every value set in other; keep the rest."""
        for f in fields(other):
            value = getattr(other, f.name)
            if value is not None:
                setattr(self, f.name, value)

    @property
    def is_time_specific(self) -> bool:
        """Check if the time carries a meridiem, noon or midnight marker."""
        return self.time is not None and is_time_specific(self.time)

    def to_dict(self) -> dict:
        """Convert to dict, excluding None values."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass
class NLUResult:
    """Intent and slots extracted from one utterance."""

    intent: Intent = Intent.NONE
    slots: BookingSlots = field(default_factory=BookingSlots)

    # Which extractor produced this result
    source: str = "regex"


def is_time_specific(time: str) -> bool:
    """Check if a time string says which half of the day it means."""
    lower = time.lower()
    return any(marker in lower for marker in MERIDIEM_MARKERS)


def extract_hour(time: str) -> str:
    """First run of digits in a time string ("0" when there is none).

    This is the hour component of a slot key; "7:30 pm" and "7 pm" share
    hour "7".
    """
    match = _DIGITS.search(time)
    return match.group(0) if match else "0"
