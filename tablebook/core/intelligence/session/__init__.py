"""Session management module."""

from .state import (
    DialogueState,
    can_transition,
    get_valid_transitions,
    is_terminal_state,
)
from .models import Session, SlotKey
from .manager import SessionStore

__all__ = [
    # State
    "DialogueState",
    "can_transition",
    "get_valid_transitions",
    "is_terminal_state",
    # Models
    "Session",
    "SlotKey",
    # Store
    "SessionStore",
]
