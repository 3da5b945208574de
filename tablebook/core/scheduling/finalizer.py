"""
Booking Finalizer.

Turns a confirmed conversation into a booking: mints the confirmation id,
records the call duration, hands the record to the booking sheet without
waiting for it, and converts the session's temporary slot lock into a
permanent count increment.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from tablebook.core.intelligence.session.models import Session
from tablebook.core.scheduling.records import (
    CONFIRMED,
    UNKNOWN,
    BookingRecord,
    new_confirmation_id,
)
from tablebook.infra.redis import SlotReservationStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class BookingSink(Protocol):
    """Where confirmed bookings are recorded."""

    async def append(self, record: BookingRecord) -> None:
        ...


class BookingFinalizer:
    """Terminal step of the booking conversation."""

    def __init__(
        self,
        store: SlotReservationStore,
        sink: Optional[BookingSink] = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[datetime], str] = new_confirmation_id,
    ):
        self.store = store
        self.sink = sink
        self._clock = clock
        self._id_factory = id_factory
        self._pending: set[asyncio.Task] = set()

    async def finalize(self, session: Session) -> BookingRecord:
        """
        Complete the booking for a session.

        Persistence runs as a detached task; its outcome never reaches the
        caller.

        Returns:
            The confirmed BookingRecord
        """
        now = self._clock()
        session.ended_at = now
        duration_minutes = (now - session.started_at).total_seconds() / 60

        slots = session.slots
        record = BookingRecord(
            name=slots.name or UNKNOWN,
            phone=slots.phone or UNKNOWN,
            date=slots.date or UNKNOWN,
            time=slots.time or UNKNOWN,
            party_size=slots.party_size or 0,
            status=CONFIRMED,
            timestamp=now.isoformat(),
            confirmation_id=self._id_factory(now),
            call_duration_minutes=duration_minutes,
        )

        self._dispatch(record)

        slot = session.slot_key
        if slot is not None:
            booked = await self.store.increment(slot.date, slot.hour)
            await self.store.release_lock(slot.date, slot.hour, session.session_id)
            logger.info(f"Slot {slot} booked ({booked}) as {record.confirmation_id}")
        session.held_slot = None

        return record

    def _dispatch(self, record: BookingRecord) -> None:
        """Schedule persistence as a background task (fire-and-forget)."""
        if self.sink is None:
            logger.warning(f"No booking sink configured; {record.confirmation_id} not persisted")
            return

        task = asyncio.create_task(self.sink.append(record))
        self._pending.add(task)
        task.add_done_callback(self._on_persisted)

    def _on_persisted(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Booking persistence cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Booking persistence failed: {error}", exc_info=error)

    async def drain(self) -> None:
        """Wait for in-flight persistence tasks (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
