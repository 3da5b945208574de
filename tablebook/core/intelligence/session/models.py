"""Session data models for the booking conversation."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from tablebook.core.intelligence.slots.types import BookingSlots, extract_hour
from .state import DialogueState


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SlotKey:
    """A bookable (date, hour) unit."""

    date: str
    hour: str

    @classmethod
    def from_slots(cls, slots: BookingSlots) -> Optional["SlotKey"]:
        """Build the key for a request, or None until date and time are known."""
        if not slots.date or not slots.time:
            return None
        return cls(date=slots.date, hour=extract_hour(slots.time))

    def __str__(self) -> str:
        return f"{self.date}:{self.hour}"


@dataclass
class Session:
    """
    One active conversation.

    Owned by the SessionStore; mutated only by the dialogue state machine.
    """

    session_id: str
    state: DialogueState = DialogueState.WELCOME
    slots: BookingSlots = field(default_factory=BookingSlots)

    # Conversation bounds (call duration)
    started_at: datetime = field(default_factory=_utcnow)
    ended_at: Optional[datetime] = None

    # Reserved for a phone-number retry policy; not used by the dialogue
    phone_attempts: int = 0

    # Slot whose reservation lock this session currently holds
    held_slot: Optional[SlotKey] = None

    @property
    def slot_key(self) -> Optional[SlotKey]:
        """Slot key for the current request."""
        return SlotKey.from_slots(self.slots)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "slots": self.slots.to_dict(),
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "phone_attempts": self.phone_attempts,
            "held_slot": str(self.held_slot) if self.held_slot else None,
        }
