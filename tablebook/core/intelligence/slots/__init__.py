"""Slot and intent extraction module."""

from .types import (
    BookingSlots,
    Intent,
    NLUResult,
    extract_hour,
    is_time_specific,
)
from .extractor import (
    SlotExtractor,
    RegexSlotExtractor,
    get_slot_extractor,
    extract_slots,
)

__all__ = [
    # Types
    "BookingSlots",
    "Intent",
    "NLUResult",
    "extract_hour",
    "is_time_specific",
    # Extractors
    "SlotExtractor",
    "RegexSlotExtractor",
    "get_slot_extractor",
    "extract_slots",
]
