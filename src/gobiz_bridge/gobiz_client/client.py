"""
GoBiz API client implementation.
"""

import logging
from typing import Any, Optional

import httpx

from ..config import DEFAULT_BASE_URL, DEFAULT_CLIENT_ID

logger = logging.getLogger(__name__)

LOGIN_REQUEST_ENDPOINT = "/goid/login/request"
TOKEN_ENDPOINT = "/goid/token"
JOURNAL_SEARCH_ENDPOINT = "/journals/search"


class GoBizError(Exception):
    """Base exception for GoBiz bridge errors."""
    pass


class DownstreamRejectedError(GoBizError):
    """GoBiz returned a non-2xx response (or an unusable body)."""

    def __init__(self, status_code: int, message: str, response_body: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(f"GoBiz API error {status_code}: {message}")


class DownstreamUnreachableError(GoBizError):
    """Failed to reach GoBiz (connection error or timeout)."""
    pass


class GoBizClient:
    """
    Async transport for the GoBiz endpoints the bridge needs.

    The client is stateless with respect to users: headers (device id, bearer
    token) are built by the caller per session and passed in. It maps every
    outcome onto DownstreamRejectedError / DownstreamUnreachableError and
    never retries on its own.
    """

    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        client_id: str = DEFAULT_CLIENT_ID,
        timeout: int = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize GoBiz client.

        Args:
            base_url: GoBiz API root (e.g., "https://api.gobiz.co.id")
            client_id: OAuth client id sent with login and token calls
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GoBizClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        headers: dict[str, str],
        json_data: Optional[Any] = None,
    ) -> dict:
        """Make an API request with error mapping and return the JSON body."""
        logger.debug("%s %s", method, endpoint)
        try:
            response = await self._client.request(
                method=method,
                url=endpoint,
                headers=headers,
                json=json_data,
            )
        except httpx.TimeoutException as e:
            raise DownstreamUnreachableError(f"Request to GoBiz timed out: {e}") from e
        except httpx.RequestError as e:
            raise DownstreamUnreachableError(
                f"Failed to connect to GoBiz at {self.base_url}: {e}"
            ) from e

        if not response.is_success:
            raise DownstreamRejectedError(
                status_code=response.status_code,
                message=response.reason_phrase,
                response_body=response.text,
            )

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise DownstreamRejectedError(
                status_code=response.status_code,
                message=f"Invalid JSON response: {e}",
                response_body=response.text,
            ) from e

        if not isinstance(data, dict):
            raise DownstreamRejectedError(
                status_code=response.status_code,
                message="Unexpected response shape: expected a JSON object",
                response_body=response.text,
            )
        return data

    async def request_login(self, email: str, headers: dict[str, str]) -> dict:
        """Handshake step 1: announce a password login for this email."""
        return await self._request(
            "POST",
            LOGIN_REQUEST_ENDPOINT,
            headers,
            {
                "email": email,
                "login_type": "password",
                "client_id": self.client_id,
            },
        )

    async def exchange_password(self, email: str, password: str, headers: dict[str, str]) -> dict:
        """Handshake step 2: trade email/password for access and refresh tokens."""
        return await self._request(
            "POST",
            TOKEN_ENDPOINT,
            headers,
            {
                "client_id": self.client_id,
                "grant_type": "password",
                "data": {
                    "email": email,
                    "password": password,
                    "user_type": "merchant",
                },
            },
        )

    async def exchange_refresh_token(self, refresh_token: str, headers: dict[str, str]) -> dict:
        """Trade a refresh token for a new token pair."""
        return await self._request(
            "POST",
            TOKEN_ENDPOINT,
            headers,
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self.client_id,
            },
        )

    async def send(
        self,
        method: str,
        endpoint: str,
        headers: dict[str, str],
        body: Optional[Any] = None,
    ) -> dict:
        """Issue an already-authenticated call (headers carry the bearer token)."""
        return await self._request(method.upper(), endpoint, headers, body)
