"""
Conversation Flow - dialogue state machine.

Consumes one caller utterance at a time and drives the session from
WELCOME to a confirmed booking:

    WELCOME -> COLLECT_INFO -> CHECK_AVAILABILITY -> CONFIRM -> FINALIZE
                                      ^                 |
                                      +-- new details --+

Every state has a handler returning a Transition (next state + reply).
The slot reservation store is touched only at the availability-check and
confirmation boundaries.
"""

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from tablebook.config import settings
from tablebook.core.intelligence.slots.extractor import (
    SlotExtractor,
    get_slot_extractor,
    parse_count,
)
from tablebook.core.intelligence.slots.types import BookingSlots, Intent, NLUResult
from tablebook.core.intelligence.session.manager import SessionStore
from tablebook.core.intelligence.session.models import Session
from tablebook.core.intelligence.session.state import DialogueState, can_transition
from tablebook.core.scheduling.availability import Availability, AvailabilityChecker
from tablebook.core.scheduling.finalizer import BookingFinalizer
from tablebook.core.scheduling.response import DialogueReply, ResponseGenerator
from tablebook.infra.redis import SlotReservationStore

logger = logging.getLogger(__name__)

# Utterance delivered by the transport when the caller stayed silent.
SILENCE_TIMEOUT = "SILENCE_TIMEOUT"

# Bare "am" counts only directly after a number.
MORNING_CUE = re.compile(r"\bmorning\b|\d\s*(?:am|a\.m)\b|\ba\.m\b", re.IGNORECASE)
EVENING_CUE = re.compile(r"\b(evening|afternoon|night|tonight|pm|p\.m)\b", re.IGNORECASE)

AFFIRMATIVE = re.compile(r"\b(yes|ok|okay|yeah)\b", re.IGNORECASE)
NEGATIVE = re.compile(r"\bno\b", re.IGNORECASE)

MAX_NAME_WORDS = 3


@dataclass
class Transition:
    """Next state and the reply for one turn."""

    next_state: DialogueState
    reply: DialogueReply


Handler = Callable[[Session, str, NLUResult, bool], Awaitable[Transition]]


class ConversationFlow:
    """
    Per-session booking dialogue.

    Utterances for one session must be delivered one at a time; different
    sessions may be processed concurrently.
    """

    def __init__(
        self,
        sessions: SessionStore,
        store: SlotReservationStore,
        finalizer: BookingFinalizer,
        extractor: Optional[SlotExtractor] = None,
        responses: Optional[ResponseGenerator] = None,
        capacity: Optional[int] = None,
    ):
        self.sessions = sessions
        self.store = store
        self.finalizer = finalizer
        self.availability = AvailabilityChecker(
            store, capacity if capacity is not None else settings.slot_capacity
        )
        self._extractor = extractor
        self.responses = responses or ResponseGenerator()

        self._handlers: dict[DialogueState, Handler] = {
            DialogueState.WELCOME: self._welcome,
            DialogueState.COLLECT_INFO: self._collect_info,
            DialogueState.CHECK_AVAILABILITY: self._recheck_availability,
            DialogueState.CONFIRM: self._confirm,
            DialogueState.FINALIZE: self._finalized,
            DialogueState.CANCELLED: self._cancelled,
        }

    def _get_extractor(self) -> SlotExtractor:
        if self._extractor is None:
            self._extractor = get_slot_extractor()
        return self._extractor

    async def handle_input(self, session_id: str, text: str) -> DialogueReply:
        """Process one caller utterance.

        Args:
            session_id: Session the utterance belongs to
            text: Transcribed utterance, or SILENCE_TIMEOUT

        Returns:
            DialogueReply to speak back to the caller
        """
        session = self.sessions.get(session_id)
        if session is None:
            logger.warning(f"Session not found: {session_id}")
            return self.responses.session_not_found()

        silence = text.strip() == SILENCE_TIMEOUT
        if silence:
            nlu = NLUResult()
        else:
            nlu = await self._get_extractor().extract(text)

        session.slots.merge(nlu.slots)
        if not silence:
            self._disambiguate_time(session.slots, nlu.slots, text)

        transition = await self._handlers[session.state](session, text, nlu, silence)
        self._apply(session, transition)
        return transition.reply

    def _apply(self, session: Session, transition: Transition) -> None:
        if not can_transition(session.state, transition.next_state):
            logger.warning(
                f"Invalid transition: {session.state.value} -> "
                f"{transition.next_state.value}"
            )
            return

        if session.state != transition.next_state:
            logger.info(
                f"Session {session.session_id}: {session.state.value} -> "
                f"{transition.next_state.value}"
            )
        session.state = transition.next_state

    def _disambiguate_time(
        self, slots: BookingSlots, turn_slots: BookingSlots, text: str
    ) -> None:
        """Qualify a bare time ("7:00") with am/pm from cues in the utterance.

        A qualified time counts as supplied this turn.
        """
        if slots.time is None or slots.is_time_specific:
            return

        if MORNING_CUE.search(text):
            slots.time = f"{slots.time} am"
        elif EVENING_CUE.search(text):
            slots.time = f"{slots.time} pm"
        else:
            return
        turn_slots.time = slots.time

    # === State handlers ===

    async def _welcome(
        self, session: Session, text: str, nlu: NLUResult, silence: bool
    ) -> Transition:
        return Transition(DialogueState.COLLECT_INFO, self.responses.greeting())

    async def _collect_info(
        self, session: Session, text: str, nlu: NLUResult, silence: bool
    ) -> Transition:
        missing = self._first_missing(session.slots)

        if missing is None:
            return await self._check_availability(session)

        if silence:
            return Transition(
                DialogueState.COLLECT_INFO,
                self.responses.ask_for(missing, after_silence=True),
            )

        # Bare names ("Mahesh Kumar") often slip past extraction.
        if missing == "name" and self._looks_like_name(text, nlu):
            session.slots.name = text.strip()
            return await self._check_availability(session)

        # So do bare numbers answering "how many?" or "what time?".
        if missing in ("party_size", "time") and self._fill_bare_count(
            session, missing, text, nlu
        ):
            missing = self._first_missing(session.slots)
            if missing is None:
                return await self._check_availability(session)

        return Transition(DialogueState.COLLECT_INFO, self.responses.ask_for(missing))

    async def _recheck_availability(
        self, session: Session, text: str, nlu: NLUResult, silence: bool
    ) -> Transition:
        return await self._check_availability(session)

    async def _confirm(
        self, session: Session, text: str, nlu: NLUResult, silence: bool
    ) -> Transition:
        if nlu.slots.has_any():
            # Caller amended the request; give up the old slot first.
            await self._release_held_slot(session)
            return await self._check_availability(session)

        if nlu.intent == Intent.CONFIRM or AFFIRMATIVE.search(text):
            booking = await self.finalizer.finalize(session)
            return Transition(
                DialogueState.FINALIZE, self.responses.booking_confirmed(booking)
            )

        if nlu.intent == Intent.REJECT or NEGATIVE.search(text):
            await self._release_held_slot(session)
            return Transition(DialogueState.CANCELLED, self.responses.cancelled())

        return Transition(DialogueState.CONFIRM, self.responses.yes_or_no())

    async def _finalized(
        self, session: Session, text: str, nlu: NLUResult, silence: bool
    ) -> Transition:
        return Transition(DialogueState.FINALIZE, self.responses.already_booked())

    async def _cancelled(
        self, session: Session, text: str, nlu: NLUResult, silence: bool
    ) -> Transition:
        return Transition(DialogueState.CANCELLED, self.responses.already_cancelled())

    # === Availability ===

    async def _check_availability(self, session: Session) -> Transition:
        """Check the requested slot and hold it for confirmation if possible."""
        slot = session.slot_key
        if slot is None:
            return Transition(
                DialogueState.CHECK_AVAILABILITY,
                self.responses.missing_date_or_time(),
            )

        if not session.slots.is_time_specific:
            return Transition(
                DialogueState.CHECK_AVAILABILITY, self.responses.ask_for("meridiem")
            )

        result = await self.availability.check(slot, session.session_id)

        if result.outcome == Availability.LOCKED:
            session.held_slot = slot
            return Transition(
                DialogueState.CONFIRM, self.responses.confirm_details(session.slots)
            )

        if result.outcome == Availability.FULL:
            return Transition(DialogueState.CHECK_AVAILABILITY, self.responses.slot_full())

        return Transition(DialogueState.CHECK_AVAILABILITY, self.responses.slot_taken())

    async def _release_held_slot(self, session: Session) -> None:
        slot = session.held_slot
        if slot is None:
            return
        await self.store.release_lock(slot.date, slot.hour, session.session_id)
        session.held_slot = None

    # === Helpers ===

    def _first_missing(self, slots: BookingSlots) -> Optional[str]:
        """Next detail to ask for, in asking order, or None when complete."""
        if not slots.date:
            return "date"
        if not slots.time:
            return "time"
        if not slots.is_time_specific:
            return "meridiem"
        if not slots.party_size:
            return "party_size"
        if not slots.name:
            return "name"
        return None

    def _fill_bare_count(
        self, session: Session, missing: str, text: str, nlu: NLUResult
    ) -> bool:
        """Read a lone number as the detail just asked for."""
        if nlu.slots.has_any():
            return False

        count = parse_count(text)
        if not count:
            return False

        if missing == "party_size":
            session.slots.party_size = count
            return True

        if count > 12:
            return False
        session.slots.time = f"{count}:00"
        self._disambiguate_time(session.slots, nlu.slots, text)
        return True

    def _looks_like_name(self, text: str, nlu: NLUResult) -> bool:
        """Short utterance that filled no slot and isn't a yes/no."""
        if nlu.slots.has_any():
            return False

        stripped = text.strip()
        lowered = stripped.lower()
        return (
            bool(stripped)
            and len(stripped.split()) <= MAX_NAME_WORDS
            and "no" not in lowered
            and "yes" not in lowered
        )
