"""
Intelligence Layer Module

Provides utterance interpretation (intent and booking slots) and session
management for the booking assistant.

Usage:
    from tablebook.core.intelligence import extract_slots, SessionStore

    result = await extract_slots("a table for 4 tomorrow at 7pm")
    print(result.intent)            # Intent.BOOK
    print(result.slots.party_size)  # 4
    print(result.slots.time)        # "7:00 pm"

    store = SessionStore()
    session_id = store.create()
"""

# Slot Extraction
from tablebook.core.intelligence.slots.types import (
    BookingSlots,
    Intent,
    NLUResult,
    extract_hour,
    is_time_specific,
)
from tablebook.core.intelligence.slots.extractor import (
    SlotExtractor,
    RegexSlotExtractor,
    get_slot_extractor,
    extract_slots,
)

# Session Management
from tablebook.core.intelligence.session.state import (
    DialogueState,
    can_transition,
    is_terminal_state,
)
from tablebook.core.intelligence.session.models import Session, SlotKey
from tablebook.core.intelligence.session.manager import SessionStore

__all__ = [
    # Slots
    "BookingSlots",
    "Intent",
    "NLUResult",
    "extract_hour",
    "is_time_specific",
    "SlotExtractor",
    "RegexSlotExtractor",
    "get_slot_extractor",
    "extract_slots",
    # Session
    "DialogueState",
    "can_transition",
    "is_terminal_state",
    "Session",
    "SlotKey",
    "SessionStore",
]
