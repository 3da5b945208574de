"""
Scheduling Module

Provides the booking dialogue (state machine), availability checks,
spoken replies and booking finalization.

Usage:
    from tablebook.core.scheduling import ConversationFlow

    flow = ConversationFlow(sessions, store, finalizer)
    reply = await flow.handle_input(session_id, "table for 4 tomorrow at 7pm")
    print(reply.text)
"""

from tablebook.core.scheduling.availability import (
    Availability,
    AvailabilityCheck,
    AvailabilityChecker,
)
from tablebook.core.scheduling.finalizer import BookingFinalizer, BookingSink
from tablebook.core.scheduling.flow import (
    SILENCE_TIMEOUT,
    ConversationFlow,
    Transition,
)
from tablebook.core.scheduling.records import (
    BookingRecord,
    new_confirmation_id,
)
from tablebook.core.scheduling.response import (
    DialogueReply,
    ResponseGenerator,
    Voice,
)

__all__ = [
    # Availability
    "Availability",
    "AvailabilityCheck",
    "AvailabilityChecker",
    # Finalization
    "BookingFinalizer",
    "BookingSink",
    "BookingRecord",
    "new_confirmation_id",
    # Responses
    "DialogueReply",
    "ResponseGenerator",
    "Voice",
    # Conversation Flow
    "ConversationFlow",
    "Transition",
    "SILENCE_TIMEOUT",
]
