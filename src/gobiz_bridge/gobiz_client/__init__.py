"""
GoBiz API Client.

Provides:
- Login handshake calls (login request, password grant)
- Refresh-token grant
- Authenticated calls with caller-built headers
- Mapping of HTTP outcomes onto bridge error kinds
"""

from .client import (
    JOURNAL_SEARCH_ENDPOINT,
    DownstreamRejectedError,
    DownstreamUnreachableError,
    GoBizClient,
    GoBizError,
)
from .headers import build_headers

__all__ = [
    "JOURNAL_SEARCH_ENDPOINT",
    "DownstreamRejectedError",
    "DownstreamUnreachableError",
    "GoBizClient",
    "GoBizError",
    "build_headers",
]
