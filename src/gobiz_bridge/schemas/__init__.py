"""
Journal schemas: search payload construction and result aggregation.
"""

from .journal_query import (
    ALLOWED_PAYMENT_TYPES,
    ALLOWED_STATUSES,
    EXCLUDED_SOURCES,
    Pagination,
    build_search_payload,
    format_timestamp,
)
from .journal_summary import (
    BucketTotal,
    JournalSummary,
    gross_amount,
    sum_gross_amount,
    summarize_journals,
)

__all__ = [
    "ALLOWED_PAYMENT_TYPES",
    "ALLOWED_STATUSES",
    "EXCLUDED_SOURCES",
    "BucketTotal",
    "JournalSummary",
    "Pagination",
    "build_search_payload",
    "format_timestamp",
    "gross_amount",
    "sum_gross_amount",
    "summarize_journals",
]
