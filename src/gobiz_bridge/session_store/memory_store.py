"""
In-memory session store.

One Session per user id. Sessions live only as long as the store instance;
nothing is persisted.
"""

import asyncio
import contextlib
import logging
import uuid
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from ..gobiz_client.client import GoBizError

logger = logging.getLogger(__name__)

DEFAULT_MIN_REQUEST_INTERVAL_MS = 2000


class SessionMissingError(GoBizError):
    """No session exists for the user id."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"No session for user '{user_id}'")


class NotAuthenticatedError(GoBizError):
    """Session exists but lacks the credential the operation needs."""

    def __init__(self, user_id: str, credential: str = "access_token"):
        self.user_id = user_id
        self.credential = credential
        super().__init__(f"User '{user_id}' is not authenticated (missing {credential})")


@dataclass
class Session:
    """Credential and pacing state for one user.

    access_token and refresh_token are either both set or both None; write
    them only through set_credentials().
    """

    user_id: str
    min_request_interval_ms: int = DEFAULT_MIN_REQUEST_INTERVAL_MS
    device_unique_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    access_token: Optional[str] = field(default=None, repr=False)
    refresh_token: Optional[str] = field(default=None, repr=False)
    expires_in: Optional[int] = None
    # Monotonic clock reading of the last outbound call
    last_request_at: float = float("-inf")
    merchant_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None and self.refresh_token is not None

    def set_credentials(
        self,
        access_token: str,
        refresh_token: str,
        expires_in: Optional[int] = None,
    ) -> None:
        """Store a complete token pair (a half pair is rejected)."""
        if not access_token or not refresh_token:
            raise ValueError("access_token and refresh_token must both be set")
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.expires_in = expires_in


class SessionStore:
    """
    Owner of all Session records.

    Plain dict keyed by user id; all access happens on the event loop, so
    operations on distinct keys never interfere. The per-user locks are
    handed out for callers that want one top-level operation per user.
    """

    def __init__(self, min_request_interval_ms: int = DEFAULT_MIN_REQUEST_INTERVAL_MS):
        self.min_request_interval_ms = min_request_interval_ms
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def create(self, user_id: str) -> Session:
        """Create a fresh session, replacing any existing one for this user."""
        if user_id in self._sessions:
            logger.debug("Replacing existing session for user %s", user_id)
        session = Session(user_id=user_id, min_request_interval_ms=self.min_request_interval_ms)
        self._sessions[user_id] = session
        return session

    def get(self, user_id: str) -> Optional[Session]:
        return self._sessions.get(user_id)

    def require(self, user_id: str) -> Session:
        """Get a session or raise SessionMissingError."""
        session = self._sessions.get(user_id)
        if session is None:
            raise SessionMissingError(user_id)
        return session

    def delete(self, user_id: str) -> None:
        self._sessions.pop(user_id, None)

    @contextlib.asynccontextmanager
    async def locked(self, user_id: str) -> AsyncIterator[None]:
        """Hold the per-user mutex for the duration of the block.

        The lock entry is counted by every holder and waiter and dropped
        when the last one leaves, so idle users keep no lock around.
        """
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users[user_id] - 1
            if remaining:
                self._lock_users[user_id] = remaining
            else:
                del self._lock_users[user_id]
                del self._locks[user_id]

    def is_locked(self, user_id: str) -> bool:
        lock = self._locks.get(user_id)
        return lock is not None and lock.locked()

    def lock_count(self) -> int:
        """Number of users currently holding or waiting on a lock."""
        return len(self._locks)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
