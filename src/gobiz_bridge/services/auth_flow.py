"""GoBiz login handshake, token refresh and logout.

Session states:

    Unauthenticated --login request--> LoginRequested --password grant--> Authenticated
    Authenticated --refresh--> Authenticated
    any --logout--> (session deleted)

The handshake needs a pause between its two steps: GoBiz only accepts the
password grant once the login request has propagated on its side. The
pause length is a platform constraint and lives in config.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable

from gobiz_bridge.gobiz_client import DownstreamRejectedError, build_headers
from gobiz_bridge.session_store import NotAuthenticatedError

if TYPE_CHECKING:
    from gobiz_bridge.gobiz_client import GoBizClient
    from gobiz_bridge.services.rate_gate import RateGate
    from gobiz_bridge.session_store import Session, SessionStore

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_SETTLE_DELAY_MS = 3000


@dataclass
class TokenBundle:
    """Token pair issued by GoBiz."""

    access_token: str
    refresh_token: str
    expires_in: int | None = None

    @classmethod
    def from_api_response(cls, data: dict) -> TokenBundle:
        """Create from a /goid/token response body.

        Raises:
            DownstreamRejectedError: If either token is missing.
        """
        access_token = data.get("access_token")
        refresh_token = data.get("refresh_token")
        if not access_token or not refresh_token:
            raise DownstreamRejectedError(
                status_code=200,
                message="Token response missing access_token or refresh_token",
            )
        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=data.get("expires_in"),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_in": self.expires_in,
        }


class AuthFlow:
    """Runs the login handshake and refresh against GoBiz.

    All mutations of session credentials happen here. Failures propagate
    unchanged and never leave a half-written token pair behind.
    """

    def __init__(
        self,
        client: GoBizClient,
        store: SessionStore,
        rate_gate: RateGate,
        settle_delay_ms: int = DEFAULT_LOGIN_SETTLE_DELAY_MS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.store = store
        self.rate_gate = rate_gate
        self.settle_delay_ms = settle_delay_ms
        self._sleep = sleep

    async def login(
        self,
        user_id: str,
        email: str,
        password: str,
        merchant_id: str | None = None,
    ) -> TokenBundle:
        """Log a user in, replacing any session they already had.

        Args:
            user_id: Opaque caller key for the session.
            email: GoBiz account email.
            password: GoBiz account password.
            merchant_id: Optional merchant context attached to the session.

        Returns:
            TokenBundle stored on the new session.
        """
        session = self.store.create(user_id)
        session.merchant_id = merchant_id
        logger.info("Starting GoBiz login for user %s", user_id)

        await self.rate_gate.throttle(session)
        await self.client.request_login(email, build_headers(session.device_unique_id))

        if self.settle_delay_ms > 0:
            await self._sleep(self.settle_delay_ms / 1000.0)

        await self.rate_gate.throttle(session)
        data = await self.client.exchange_password(
            email, password, build_headers(session.device_unique_id)
        )

        tokens = TokenBundle.from_api_response(data)
        self._store_tokens(session, tokens)
        logger.info("User %s logged in (expires_in=%s)", user_id, tokens.expires_in)
        return tokens

    async def refresh(self, user_id: str) -> TokenBundle:
        """Exchange the session's refresh token for a new pair.

        Raises:
            SessionMissingError: No session for user_id.
            NotAuthenticatedError: Session has no refresh token.
        """
        session = self.store.require(user_id)
        if not session.refresh_token:
            raise NotAuthenticatedError(user_id, credential="refresh_token")

        await self.rate_gate.throttle(session)
        data = await self.client.exchange_refresh_token(
            session.refresh_token, build_headers(session.device_unique_id)
        )

        tokens = TokenBundle.from_api_response(data)
        self._store_tokens(session, tokens)
        logger.info("Refreshed tokens for user %s", user_id)
        return tokens

    def logout(self, user_id: str) -> None:
        """Drop the user's session (no-op when there is none)."""
        if user_id in self.store:
            logger.info("Logging out user %s", user_id)
        self.store.delete(user_id)

    @staticmethod
    def _store_tokens(session: Session, tokens: TokenBundle) -> None:
        session.set_credentials(tokens.access_token, tokens.refresh_token, tokens.expires_in)
