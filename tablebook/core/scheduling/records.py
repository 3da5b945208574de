"""Confirmed booking record."""

from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

CONFIRMED = "CONFIRMED"
UNKNOWN = "Unknown"


def new_confirmation_id(now: datetime) -> str:
    """Human-readable booking id, e.g. R-20261019-4F2A."""
    token = uuid4().hex[:4].upper()
    return f"R-{now.strftime('%Y%m%d')}-{token}"


@dataclass
class BookingRecord:
    """A confirmed booking as sent to the caller's client and the booking sheet."""

    name: str
    phone: str
    date: str
    time: str
    party_size: int
    status: str
    timestamp: str  # ISO format
    confirmation_id: str
    call_duration_minutes: float

    def to_dict(self) -> dict:
        """Convert to the client-facing booking event payload."""
        return {
            "name": self.name,
            "phone": self.phone,
            "date": self.date,
            "time": self.time,
            "people": self.party_size,
            "status": self.status,
            "timestamp": self.timestamp,
            "confirmationId": self.confirmation_id,
            "callDurationMinutes": self.call_duration_minutes,
        }

    def to_row(self) -> list:
        """Convert to a booking sheet row (columns A:I)."""
        return [
            self.name,
            self.phone,
            self.date,
            self.time,
            self.party_size,
            self.status,
            self.timestamp,
            self.confirmation_id,
            self.call_duration_minutes,
        ]
