"""
Slot availability check.

Admission is two separate steps: an optimistic capacity check on the
booking counter, then the reservation lock. Another caller can take the
lock between the two; the lock is the real mutual-exclusion boundary.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tablebook.config import settings
from tablebook.core.intelligence.session.models import SlotKey
from tablebook.infra.redis import SlotReservationStore

logger = logging.getLogger(__name__)


class Availability(str, Enum):
    """Outcome of an availability check."""

    FULL = "full"        # Capacity reached, no lock attempted
    LOCKED = "locked"    # Lock held by the requesting session
    TAKEN = "taken"      # Another session holds the lock


@dataclass
class AvailabilityCheck:
    """Result of checking one slot for one session."""

    outcome: Availability
    slot: SlotKey
    booked: int


class AvailabilityChecker:
    """Capacity check followed by a lock attempt on the slot."""

    def __init__(
        self,
        store: SlotReservationStore,
        capacity: Optional[int] = None,
    ):
        self.store = store
        self.capacity = capacity if capacity is not None else settings.slot_capacity

    async def check(self, slot: SlotKey, session_id: str) -> AvailabilityCheck:
        booked = await self.store.count(slot.date, slot.hour)

        if booked >= self.capacity:
            logger.info(f"Slot {slot} full ({booked}/{self.capacity})")
            return AvailabilityCheck(Availability.FULL, slot, booked)

        if await self.store.acquire_lock(slot.date, slot.hour, session_id):
            logger.info(f"Slot {slot} held by {session_id} ({booked}/{self.capacity})")
            return AvailabilityCheck(Availability.LOCKED, slot, booked)

        logger.info(f"Slot {slot} lost to another caller")
        return AvailabilityCheck(Availability.TAKEN, slot, booked)
