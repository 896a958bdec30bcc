"""In-memory store for in-progress wizard sessions.

A session holds one WizardState between HTTP requests. Sessions expire
after a configurable idle period; every access extends it.

Safe for async/await usage (single event loop) but not for multi-threaded
access. Multi-instance deployments need a shared store instead.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from profile_builder.core.config import settings
from profile_builder.services.step_sequencer import WizardState


@dataclass
class WizardSession:
    """One user's wizard between requests.

    Attributes:
        id: Session token handed to the client.
        state: Current wizard state; replaced on every transition.
        owner_id: User or employer the submitted record belongs to.
        expires_at: When the session is dropped if left idle.
        submit_lock: Held while a submission is running.
    """

    id: str
    state: WizardState
    owner_id: str | None = None
    expires_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    submit_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


class WizardSessionStore:
    """In-memory wizard sessions keyed by a random token."""

    def __init__(self, ttl_minutes: int | None = None) -> None:
        """Initialize the store.

        Args:
            ttl_minutes: Idle lifetime; defaults to the configured value.
        """
        self._sessions: dict[str, WizardSession] = {}
        self._ttl = timedelta(minutes=ttl_minutes or settings.wizard_session_ttl_minutes)

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, state: WizardState, owner_id: str | None = None) -> WizardSession:
        """Start tracking a new wizard."""
        self.cleanup_expired()
        session = WizardSession(
            id=str(uuid.uuid4()),
            state=state,
            owner_id=owner_id,
            expires_at=datetime.now(UTC) + self._ttl,
        )
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> WizardSession | None:
        """Get a live session and extend its lifetime.

        Returns:
            The session, or None if unknown or expired.
        """
        session = self._sessions.get(session_id)
        if session is None:
            return None
        now = datetime.now(UTC)
        if now > session.expires_at:
            del self._sessions[session_id]
            return None
        session.expires_at = now + self._ttl
        return session

    def save(self, session: WizardSession, state: WizardState) -> WizardSession:
        """Replace a session's state."""
        session.state = state
        return session

    def discard(self, session_id: str) -> None:
        """Forget a session (after success or abandonment)."""
        self._sessions.pop(session_id, None)

    def cleanup_expired(self) -> int:
        """Remove all expired sessions.

        Returns:
            Number of sessions removed.
        """
        now = datetime.now(UTC)
        expired = [sid for sid, s in self._sessions.items() if now > s.expires_at]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)

    def clear(self) -> None:
        """Remove every session (for testing)."""
        self._sessions.clear()


_session_store: WizardSessionStore | None = None


def get_session_store() -> WizardSessionStore:
    """Get the singleton session store."""
    global _session_store
    if _session_store is None:
        _session_store = WizardSessionStore()
    return _session_store


def reset_session_store() -> None:
    """Reset the session store singleton (for testing)."""
    global _session_store
    if _session_store is not None:
        _session_store.clear()
    _session_store = None
