"""Bridge services: pacing, authentication, authenticated calls and journal queries."""

from gobiz_bridge.services.auth_flow import AuthFlow, TokenBundle
from gobiz_bridge.services.executor import AuthenticatedExecutor
from gobiz_bridge.services.gateway import GoBizGateway
from gobiz_bridge.services.journals import JournalPage, JournalService
from gobiz_bridge.services.rate_gate import RateGate

__all__ = [
    "AuthFlow",
    "AuthenticatedExecutor",
    "GoBizGateway",
    "JournalPage",
    "JournalService",
    "RateGate",
    "TokenBundle",
]
