"""
Spoken replies for the booking assistant.

Fixed templates only: every reply is synthesized to speech, so wording is
short and uses "..." for pauses.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tablebook.config import settings
from tablebook.core.intelligence.slots.types import BookingSlots
from tablebook.core.scheduling.records import BookingRecord


class Voice(str, Enum):
    """Abstract voice selectors, mapped to TTS voice ids by the synthesizer."""

    FORMAL = "voice_formal"
    FRIENDLY = "voice_friendly"
    CASUAL = "voice_casual"
    NEUTRAL = "voice_neutral"


@dataclass
class DialogueReply:
    """Outcome of one caller turn."""

    text: str
    voice: Voice = Voice.FORMAL
    should_end: bool = False
    booking: Optional[BookingRecord] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        result = {
            "text": self.text,
            "voice": self.voice.value,
            "should_end": self.should_end,
        }
        if self.booking:
            result["booking"] = self.booking.to_dict()
        return result


# Prompts for the next missing detail, in the order they are asked.
ASK_FOR = {
    "date": "Sure... for which day do you want the table?",
    "time": "Okay... what time should I book it for?",
    "meridiem": "Is that for the morning... or evening?",
    "party_size": "And... for how many people?",
    "name": "Can I get your name please?",
}

# Alternate wording after the caller stayed silent.
ASK_AGAIN = {
    "date": "Are you still there? ... Which day would you like to book?",
    "time": "I'm listening... what time works for you?",
    "meridiem": "Morning or evening?",
    "party_size": "How many people are joining?",
    "name": "I still need your name for the booking.",
}


class ResponseGenerator:
    """Template replies for each dialogue outcome."""

    def __init__(self, restaurant_name: Optional[str] = None):
        self.restaurant_name = restaurant_name or settings.restaurant_name

    def greeting(self) -> DialogueReply:
        return DialogueReply(
            f"Hi there! ... Welcome to {self.restaurant_name}. ... "
            "I can help you book a table. ... When would you like to come?"
        )

    def ask_for(self, missing: str, after_silence: bool = False) -> DialogueReply:
        """Prompt for a missing detail (date, time, meridiem, party_size, name)."""
        prompts = ASK_AGAIN if after_silence else ASK_FOR
        return DialogueReply(prompts[missing])

    def missing_date_or_time(self) -> DialogueReply:
        return DialogueReply("Wait... I missed the date or time.", Voice.NEUTRAL)

    def slot_full(self) -> DialogueReply:
        return DialogueReply(
            "Sorry... that time is full. ... Can we do 30 minutes earlier or later?"
        )

    def slot_taken(self) -> DialogueReply:
        return DialogueReply(
            "Ah... someone just took that spot. ... Can we try a different time?"
        )

    def confirm_details(self, slots: BookingSlots) -> DialogueReply:
        return DialogueReply(
            f"Okay... I have a table for {slots.party_size} on {slots.date} "
            f"at {slots.time}. ... Should I confirm it?"
        )

    def yes_or_no(self) -> DialogueReply:
        return DialogueReply(
            "Sorry... I didn't get that. ... Do you want me to confirm the booking? "
            "... Just say yes or no."
        )

    def booking_confirmed(self, booking: BookingRecord) -> DialogueReply:
        return DialogueReply(
            f"Great! ... Your booking is confirmed. ... "
            f"Your ID is {booking.confirmation_id}. ... See you soon!",
            should_end=True,
            booking=booking,
        )

    def cancelled(self) -> DialogueReply:
        return DialogueReply(
            "No problem... I've cancelled that. ... "
            "Let me know if you need anything else.",
            should_end=True,
        )

    def already_cancelled(self) -> DialogueReply:
        return DialogueReply(
            "That booking was cancelled. ... Please call again to start a new one.",
            should_end=True,
        )

    def already_booked(self) -> DialogueReply:
        return DialogueReply("Your booking is already done.", should_end=True)

    def session_not_found(self) -> DialogueReply:
        return DialogueReply("Session not found.", Voice.NEUTRAL, should_end=True)
