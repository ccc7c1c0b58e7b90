"""
Session Store (in-memory).

Holds one credential record per user id:
- Access / refresh token pair and declared expiry
- Stable device identifier sent on every call
- Pacing state for the rate gate

Nothing survives a process restart.
"""

from .memory_store import (
    NotAuthenticatedError,
    Session,
    SessionMissingError,
    SessionStore,
)

__all__ = [
    "NotAuthenticatedError",
    "Session",
    "SessionMissingError",
    "SessionStore",
]
