"""Authenticated GoBiz calls with a single refresh-and-retry cycle."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from gobiz_bridge.gobiz_client import DownstreamRejectedError, build_headers
from gobiz_bridge.session_store import NotAuthenticatedError

if TYPE_CHECKING:
    from gobiz_bridge.gobiz_client import GoBizClient
    from gobiz_bridge.services.auth_flow import AuthFlow
    from gobiz_bridge.services.rate_gate import RateGate
    from gobiz_bridge.session_store import SessionStore

logger = logging.getLogger(__name__)

# Refresh-and-retry cycles allowed per logical call
MAX_AUTH_RETRIES = 1


class AuthenticatedExecutor:
    """Issues bearer-authenticated calls on behalf of a session.

    An authorization failure on the first attempt triggers one refresh
    through AuthFlow and one retry. Anything else, including a second
    authorization failure or a failed refresh, reaches the caller as is.
    """

    def __init__(
        self,
        client: GoBizClient,
        store: SessionStore,
        rate_gate: RateGate,
        auth_flow: AuthFlow,
        auth_failure_statuses: Iterable[int] = (401,),
    ) -> None:
        self.client = client
        self.store = store
        self.rate_gate = rate_gate
        self.auth_flow = auth_flow
        self.auth_failure_statuses = frozenset(auth_failure_statuses)

    def is_auth_failure(self, error: DownstreamRejectedError) -> bool:
        return error.status_code in self.auth_failure_statuses

    async def call(
        self,
        user_id: str,
        endpoint: str,
        method: str = "POST",
        body: Any = None,
    ) -> dict:
        """Call a GoBiz endpoint with the session's access token.

        Raises:
            SessionMissingError: No session for user_id.
            NotAuthenticatedError: Session has no access token.
            DownstreamRejectedError: Non-auth rejection, or auth rejection after retry.
            DownstreamUnreachableError: Transport failure.
        """
        for attempt in range(MAX_AUTH_RETRIES + 1):
            session = self.store.require(user_id)
            if not session.access_token:
                raise NotAuthenticatedError(user_id)

            await self.rate_gate.throttle(session)
            headers = build_headers(session.device_unique_id, session.access_token)
            try:
                return await self.client.send(method, endpoint, headers, body)
            except DownstreamRejectedError as e:
                if attempt >= MAX_AUTH_RETRIES or not self.is_auth_failure(e):
                    raise
                logger.warning(
                    "GoBiz rejected %s %s for user %s with %d, refreshing token",
                    method,
                    endpoint,
                    user_id,
                    e.status_code,
                )
                await self.auth_flow.refresh(user_id)

        raise AssertionError("retry loop exited without returning")
