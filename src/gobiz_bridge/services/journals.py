"""Journal search through the authenticated executor.

Single-page search plus a paginated fetch of every page for a window.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gobiz_bridge.gobiz_client import JOURNAL_SEARCH_ENDPOINT, DownstreamRejectedError
from gobiz_bridge.schemas.journal_query import (
    DateLike,
    Pagination,
    build_search_payload,
)

if TYPE_CHECKING:
    from gobiz_bridge.services.executor import AuthenticatedExecutor

logger = logging.getLogger(__name__)

DEFAULT_FETCH_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 1000


@dataclass
class JournalPage:
    """Search result: server-reported total plus the records fetched."""

    total: int
    results: list[dict] = field(default_factory=list)

    @classmethod
    def from_api_response(cls, data: dict) -> JournalPage:
        results = data.get("results") or []
        try:
            total = int(data.get("total") or 0)
        except (TypeError, ValueError) as e:
            raise DownstreamRejectedError(
                status_code=200,
                message=f"Invalid journal total: {data.get('total')!r}",
            ) from e
        if not isinstance(results, list):
            raise DownstreamRejectedError(
                status_code=200,
                message="Invalid journal results: expected a list",
            )
        return cls(total=total, results=results)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"total": self.total, "results": self.results}


class JournalService:
    """Journal queries for an authenticated user."""

    def __init__(
        self,
        executor: AuthenticatedExecutor,
        page_size: int = DEFAULT_FETCH_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> None:
        """Initialize the journal service.

        Args:
            executor: Authenticated executor used for every search call.
            page_size: Page size for search_all.
            max_pages: Hard stop on pages fetched by search_all.
        """
        self.executor = executor
        self.page_size = page_size
        self.max_pages = max_pages

    async def search(
        self,
        user_id: str,
        merchant_id: str,
        from_date: DateLike,
        to_date: DateLike,
        pagination: Pagination | None = None,
        sort_order: str = "desc",
    ) -> JournalPage:
        """Fetch one page of journals."""
        payload = build_search_payload(from_date, to_date, merchant_id, pagination, sort_order)
        data = await self.executor.call(user_id, JOURNAL_SEARCH_ENDPOINT, "POST", payload)
        return JournalPage.from_api_response(data)

    async def search_all(
        self,
        user_id: str,
        merchant_id: str,
        from_date: DateLike,
        to_date: DateLike,
    ) -> JournalPage:
        """Fetch every page of journals in the window, in server order.

        Stops when the accumulated count reaches the reported total, when a
        page comes back empty, or after max_pages requests.
        """
        results: list[dict] = []
        total = 0

        for page_index in range(self.max_pages):
            page = await self.search(
                user_id,
                merchant_id,
                from_date,
                to_date,
                Pagination(offset=page_index * self.page_size, size=self.page_size),
            )
            results.extend(page.results)
            total = page.total

            if len(results) >= total:
                break
            if not page.results:
                logger.warning(
                    "Journal search for user %s returned an empty page at offset %d "
                    "(total=%d, fetched=%d), stopping",
                    user_id,
                    page_index * self.page_size,
                    total,
                    len(results),
                )
                break
        else:
            logger.warning(
                "Journal search for user %s hit the %d page limit (total=%d, fetched=%d)",
                user_id,
                self.max_pages,
                total,
                len(results),
            )

        logger.debug("Fetched %d of %d journals for user %s", len(results), total, user_id)
        return JournalPage(total=total, results=results)
