"""
Application State Management for the FlipFinder proxy server

Holds the upstream clients, the account service and request counters in
one dataclass that is attached to ``app.state`` and dependency-injected
into routes.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from datetime import datetime
import logging

import httpx

from database import Database
from services.accounts import AccountService
from services.llm import LanguageModel

logger = logging.getLogger(__name__)


def _new_stats() -> Dict[str, Any]:
    return {
        "total_requests": 0,
        "search_calls": 0,
        "enhance_calls": 0,
        "image_calls": 0,
        "upstream_errors": 0,
        "rejected": 0,
        "session_start": datetime.now().isoformat(),
    }


@dataclass
class AppState:
    """
    Centralized proxy state.

    Everything a route needs (database, account gate, language model,
    shared eBay HTTP client, credentials) lives here instead of in
    module-level globals.
    """

    db: Database
    accounts: AccountService
    llm: LanguageModel
    ebay_app_id: Optional[str] = None
    http_client: Optional[httpx.AsyncClient] = None
    debug_mode: bool = False

    stats: Dict[str, Any] = field(default_factory=_new_stats)

    def increment_stat(self, key: str, amount: int = 1) -> None:
        """Safely increment a statistics counter."""
        if key in self.stats:
            self.stats[key] += amount

    def get_session_duration(self) -> float:
        """Get session duration in seconds."""
        start = datetime.fromisoformat(self.stats["session_start"])
        return (datetime.now() - start).total_seconds()

    def reset_stats(self) -> None:
        self.stats = _new_stats()

    async def aclose(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None
        self.db.close()


# ============================================================
# FastAPI Dependency Injection Helpers
# ============================================================

def get_app_state_from_request(request) -> "AppState":
    """
    Get AppState from request.

    Usage in routes:
        app_state = get_app_state_from_request(request)
        app_state.increment_stat("total_requests")
    """
    return request.app.state.app_state
