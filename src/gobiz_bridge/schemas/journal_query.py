"""
Journal search payload builder.

Builds the filter document POSTed to /journals/search. The filter mirrors
what the merchant portal sends for its transaction list:

- exclude GoSave / GoDeals sourced records (top-level and GoPay source)
- settled, captured or refunded transactions only
- in-store and online card/QRIS/GoPay payment types only
- transaction_time within [from_date, to_date] (both inclusive)
- one merchant
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Union

EXCLUDED_SOURCES = ["GOSAVE_ONLINE", "GoSave", "GODEALS_ONLINE"]
ALLOWED_STATUSES = ["settlement", "capture", "refund", "partial_refund"]
ALLOWED_PAYMENT_TYPES = [
    "qris",
    "gopay",
    "offline_credit_card",
    "offline_debit_card",
    "credit_card",
]
INCLUDED_CATEGORIES = {"incoming": ["transaction_share", "action"]}

TRANSACTION_TIME_FIELD = "metadata.transaction.transaction_time"
MERCHANT_ID_FIELD = "metadata.transaction.merchant_id"
STATUS_FIELD = "metadata.transaction.status"
PAYMENT_TYPE_FIELD = "metadata.transaction.payment_type"
SOURCE_FIELDS = ["metadata.source", "metadata.gopay.source"]

DEFAULT_PAGE_SIZE = 20
SORT_ORDERS = ("asc", "desc")

DateLike = Union[str, datetime]


@dataclass
class Pagination:
    """Offset pagination for journal search."""

    offset: int = 0
    size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValueError(f"offset must be >= 0, got {self.offset}")
        if self.size < 1:
            raise ValueError(f"size must be >= 1, got {self.size}")


def format_timestamp(value: DateLike) -> str:
    """Render a bound the way GoBiz expects (UTC ISO-8601, millis, Z suffix).

    Strings pass through untouched; naive datetimes are taken as UTC.
    """
    if isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _clause(field: str, op: str, value) -> dict:
    return {"field": field, "op": op, "value": value}


def build_search_payload(
    from_date: DateLike,
    to_date: DateLike,
    merchant_id: str,
    pagination: Pagination | None = None,
    sort_order: str = "desc",
) -> dict:
    """
    Build a /journals/search request body.

    Args:
        from_date: Inclusive lower bound on transaction_time
        to_date: Inclusive upper bound on transaction_time
        merchant_id: Merchant whose journals are returned
        pagination: Offset/size (default first page of 20)
        sort_order: "desc" (newest first) or "asc"

    Returns:
        Payload dict ready to be sent as JSON
    """
    if sort_order not in SORT_ORDERS:
        raise ValueError(f"sort_order must be one of {SORT_ORDERS}, got {sort_order!r}")
    pagination = pagination or Pagination()

    excluded_sources = {
        "op": "not",
        "clauses": [
            {
                "op": "or",
                "clauses": [_clause(f, "in", list(EXCLUDED_SOURCES)) for f in SOURCE_FIELDS],
            }
        ],
    }
    # GoBiz expects payment types wrapped in two nested "or" groups
    payment_types = {
        "op": "or",
        "clauses": [
            {
                "op": "or",
                "clauses": [_clause(PAYMENT_TYPE_FIELD, "in", list(ALLOWED_PAYMENT_TYPES))],
            }
        ],
    }

    return {
        "from": pagination.offset,
        "size": pagination.size,
        "sort": {"time": {"order": sort_order}},
        "included_categories": {k: list(v) for k, v in INCLUDED_CATEGORIES.items()},
        "query": [
            {
                "op": "and",
                "clauses": [
                    excluded_sources,
                    _clause(STATUS_FIELD, "in", list(ALLOWED_STATUSES)),
                    payment_types,
                    _clause(TRANSACTION_TIME_FIELD, "gte", format_timestamp(from_date)),
                    _clause(TRANSACTION_TIME_FIELD, "lte", format_timestamp(to_date)),
                    _clause(MERCHANT_ID_FIELD, "equal", merchant_id),
                ],
            }
        ],
    }
