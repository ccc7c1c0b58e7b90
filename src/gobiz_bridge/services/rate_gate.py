"""Per-session pacing of outbound GoBiz calls.

GoBiz rejects bursts from one login, so every call made under a session
waits until at least ``min_request_interval_ms`` has passed since the
previous call of that session started. Sessions never wait on each other.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable

if TYPE_CHECKING:
    from gobiz_bridge.session_store import Session

logger = logging.getLogger(__name__)


class RateGate:
    """Suspends callers so calls of one session start far enough apart."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the gate.

        Args:
            clock: Monotonic clock in seconds.
            sleep: Coroutine used to suspend the caller.
        """
        self._clock = clock
        self._sleep = sleep

    async def throttle(self, session: Session) -> None:
        """Wait until the session may issue its next call, then stamp it."""
        interval = session.min_request_interval_ms / 1000.0
        elapsed = self._clock() - session.last_request_at

        if elapsed < interval:
            wait = interval - elapsed
            logger.debug("Rate gate: user %s waits %.3fs", session.user_id, wait)
            await self._sleep(wait)

        session.last_request_at = max(session.last_request_at, self._clock())
