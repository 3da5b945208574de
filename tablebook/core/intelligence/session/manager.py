"""In-memory session registry for active calls."""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import uuid4

from .models import Session
from .state import DialogueState


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def _new_session_id() -> str:
    return str(uuid4())


logger = logging.getLogger(__name__)


class SessionStore:
    """
    Registry of active conversation sessions keyed by session id.

    A session lives as long as its caller's connection: the transport
    creates it on connect and discards it on disconnect. Each session is
    written by exactly one connection task, so entries need no locking.

    Id generation and the clock are injectable so tests can control both.
    """

    def __init__(
        self,
        id_factory: Callable[[], str] = _new_session_id,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._id_factory = id_factory
        self._clock = clock
        self._sessions: dict[str, Session] = {}

    @property
    def clock(self) -> Callable[[], datetime]:
        return self._clock

    def create(self) -> str:
        """
        Create a new session in WELCOME state.

        Returns:
            The new session id
        """
        session_id = self._id_factory()
        if session_id in self._sessions:
            raise ValueError(f"Session id already in use: {session_id}")

        self._sessions[session_id] = Session(
            session_id=session_id,
            state=DialogueState.WELCOME,
            started_at=self._clock(),
        )
        logger.debug(f"Session created: {session_id}")
        return session_id

    def get(self, session_id: str) -> Optional[Session]:
        """Get session by id, or None if not found."""
        return self._sessions.get(session_id)

    def discard(self, session_id: str) -> bool:
        """
        Forget a session.

        Does not release any slot lock the session holds; that lock expires
        on its own.

        Returns:
            True if the session existed
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        if session.held_slot is not None:
            logger.info(
                f"Session {session_id} ended holding {session.held_slot}; "
                f"lock left to expire"
            )
        logger.debug(f"Session discarded: {session_id}")
        return True

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
