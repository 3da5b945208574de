"""Dialogue state machine states."""

from enum import Enum
from typing import Set


class DialogueState(str, Enum):
    """States in the table booking conversation."""

    WELCOME = "welcome"
    COLLECT_INFO = "collect_info"
    CHECK_AVAILABILITY = "check_availability"
    CONFIRM = "confirm"

    # Terminal states
    FINALIZE = "finalize"
    CANCELLED = "cancelled"


# Valid state transitions (staying in the same state is always allowed)
VALID_TRANSITIONS: dict[DialogueState, Set[DialogueState]] = {
    DialogueState.WELCOME: {
        DialogueState.COLLECT_INFO,
    },
    DialogueState.COLLECT_INFO: {
        DialogueState.CHECK_AVAILABILITY,
        DialogueState.CONFIRM,  # name fallback locks the slot in the same turn
    },
    DialogueState.CHECK_AVAILABILITY: {
        DialogueState.CONFIRM,
    },
    DialogueState.CONFIRM: {
        DialogueState.CHECK_AVAILABILITY,
        DialogueState.FINALIZE,
        DialogueState.CANCELLED,
    },
    DialogueState.FINALIZE: set(),
    DialogueState.CANCELLED: set(),
}


def can_transition(from_state: DialogueState, to_state: DialogueState) -> bool:
    """Check if a state transition is valid."""
    return from_state == to_state or to_state in VALID_TRANSITIONS.get(from_state, set())


def get_valid_transitions(state: DialogueState) -> Set[DialogueState]:
    """Get all valid transitions from a state."""
    return VALID_TRANSITIONS.get(state, set())


def is_terminal_state(state: DialogueState) -> bool:
    """Check if state is terminal (no further transitions)."""
    return state in {
        DialogueState.FINALIZE,
        DialogueState.CANCELLED,
    }
