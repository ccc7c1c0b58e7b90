"""Upstream facade of the GoBiz bridge.

Wires the session store, rate gate, auth flow, executor and journal service
together and exposes the operations a transport layer (HTTP routes, CLI)
calls. Each top-level operation holds the user's lock when
``serialize_per_user`` is on; the components below never lock, so the
executor's nested refresh cannot deadlock.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
import time
from datetime import datetime
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable

import httpx

from gobiz_bridge.config import ConfigValidationError
from gobiz_bridge.gobiz_client import GoBizClient
from gobiz_bridge.schemas.journal_query import DateLike, Pagination
from gobiz_bridge.schemas.journal_summary import (
    JournalSummary,
    sum_gross_amount,
    summarize_journals,
)
from gobiz_bridge.services.auth_flow import AuthFlow, TokenBundle
from gobiz_bridge.services.executor import AuthenticatedExecutor
from gobiz_bridge.services.journals import JournalPage, JournalService
from gobiz_bridge.services.rate_gate import RateGate
from gobiz_bridge.session_store import SessionStore

if TYPE_CHECKING:
    from gobiz_bridge.config import Config

logger = logging.getLogger(__name__)


class GoBizGateway:
    """Per-user GoBiz operations over one shared client and session store."""

    def __init__(
        self,
        client: GoBizClient,
        store: SessionStore,
        auth_flow: AuthFlow,
        executor: AuthenticatedExecutor,
        journals: JournalService,
        serialize_per_user: bool = True,
    ) -> None:
        self.client = client
        self.store = store
        self.auth_flow = auth_flow
        self.executor = executor
        self.journals = journals
        self.serialize_per_user = serialize_per_user

    @classmethod
    def from_config(
        cls,
        config: Config,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> GoBizGateway:
        """Build a gateway with fresh store and client from configuration.

        Args:
            config: Application configuration.
            transport: Optional httpx transport override.
            clock: Monotonic clock for the rate gate.
            sleep: Suspension coroutine for the rate gate and settling delay.

        Raises:
            ConfigValidationError: If the configuration is invalid.
        """
        errors = config.validate()
        if errors:
            raise ConfigValidationError("; ".join(errors))

        settings = config.gobiz
        client = GoBizClient(
            base_url=settings.base_url,
            client_id=settings.client_id,
            timeout=settings.timeout_seconds,
            transport=transport,
        )
        store = SessionStore(min_request_interval_ms=settings.min_request_interval_ms)
        rate_gate = RateGate(clock=clock, sleep=sleep)
        auth_flow = AuthFlow(
            client,
            store,
            rate_gate,
            settle_delay_ms=settings.login_settle_delay_ms,
            sleep=sleep,
        )
        executor = AuthenticatedExecutor(
            client,
            store,
            rate_gate,
            auth_flow,
            auth_failure_statuses=settings.auth_failure_statuses,
        )
        journals = JournalService(
            executor, page_size=settings.page_size, max_pages=settings.max_pages
        )
        return cls(
            client,
            store,
            auth_flow,
            executor,
            journals,
            serialize_per_user=settings.serialize_per_user,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> GoBizGateway:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @contextlib.asynccontextmanager
    async def _guard(self, user_id: str) -> AsyncIterator[None]:
        if not self.serialize_per_user:
            yield
            return
        async with self.store.locked(user_id):
            yield

    # Auth

    async def login(
        self,
        user_id: str,
        email: str,
        password: str,
        merchant_id: str | None = None,
    ) -> TokenBundle:
        async with self._guard(user_id):
            return await self.auth_flow.login(user_id, email, password, merchant_id)

    async def refresh(self, user_id: str) -> TokenBundle:
        async with self._guard(user_id):
            return await self.auth_flow.refresh(user_id)

    async def logout(self, user_id: str) -> None:
        async with self._guard(user_id):
            self.auth_flow.logout(user_id)

    async def call(
        self,
        user_id: str,
        endpoint: str,
        method: str = "POST",
        body: Any = None,
    ) -> dict:
        async with self._guard(user_id):
            return await self.executor.call(user_id, endpoint, method, body)

    # Journals

    async def search_journals(
        self,
        user_id: str,
        merchant_id: str,
        from_date: DateLike,
        to_date: DateLike,
        pagination: Pagination | None = None,
        sort_order: str = "desc",
    ) -> JournalPage:
        async with self._guard(user_id):
            return await self.journals.search(
                user_id, merchant_id, from_date, to_date, pagination, sort_order
            )

    async def search_all_journals(
        self,
        user_id: str,
        merchant_id: str,
        from_date: DateLike,
        to_date: DateLike,
    ) -> JournalPage:
        async with self._guard(user_id):
            return await self.journals.search_all(user_id, merchant_id, from_date, to_date)

    async def today(
        self,
        user_id: str,
        merchant_id: str,
        now: datetime | None = None,
    ) -> dict:
        """First page of today's journals (local day of ``now``) with its amount total."""
        now = now or datetime.now()
        if now.tzinfo is None:
            now = now.astimezone()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        end_of_day = now.replace(hour=23, minute=59, second=59, microsecond=999000)

        page = await self.search_journals(user_id, merchant_id, start_of_day, end_of_day)
        return {
            "total": page.total,
            "total_amount": float(sum_gross_amount(page.results)),
            "transactions": page.results,
        }

    async def search_page(
        self,
        user_id: str,
        merchant_id: str,
        start: DateLike,
        end: DateLike,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        """One 1-based page of journals with paging metadata."""
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        result = await self.search_journals(
            user_id,
            merchant_id,
            start,
            end,
            Pagination(offset=(page - 1) * limit, size=limit),
        )
        return {
            "total": result.total,
            "total_amount": float(sum_gross_amount(result.results)),
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(result.total / limit),
            "transactions": result.results,
        }

    async def summary(
        self,
        user_id: str,
        merchant_id: str,
        start: DateLike,
        end: DateLike,
    ) -> JournalSummary:
        """Aggregate every journal in the window."""
        result = await self.search_all_journals(user_id, merchant_id, start, end)
        return summarize_journals(result.results, total=result.total)
