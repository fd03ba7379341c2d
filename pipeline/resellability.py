"""
Resellability Filter

Decides whether a listing is a physical product worth pricing, as opposed
to a job post, a service, a rental or a lost-pet notice.

1. Remote classifier (language model): only an exact "yes" passes
2. Keyword heuristic when no model is configured or the remote call fails

The filter never raises; a failed remote call degrades to the heuristic.
"""

import logging
from typing import Optional, List

from config import NON_RESELLABLE_KEYWORDS, RESELLABLE_KEYWORDS
from services.llm import LanguageModel, classify_resellable

logger = logging.getLogger(__name__)


def is_resellable_basic(
    title: str,
    blocked: Optional[List[str]] = None,
    allowed: Optional[List[str]] = None,
) -> bool:
    """
    Keyword heuristic.

    Non-resellable keywords are checked first (any hit -> False), then
    resellable keywords (any hit -> True). Unclear titles default to True.
    """
    lower = (title or "").lower()
    blocked = NON_RESELLABLE_KEYWORDS if blocked is None else blocked
    allowed = RESELLABLE_KEYWORDS if allowed is None else allowed

    for keyword in blocked:
        if keyword in lower:
            return False

    for keyword in allowed:
        if keyword in lower:
            return True

    return True


class ResellabilityFilter:
    """Remote classifier with a local keyword fallback"""

    def __init__(self, llm: Optional[LanguageModel] = None):
        self.llm = llm
        self.degraded_count = 0

    @property
    def remote_enabled(self) -> bool:
        return self.llm is not None and self.llm.available

    async def is_resellable(self, title: str) -> bool:
        if not self.remote_enabled:
            return is_resellable_basic(title)

        try:
            result = await classify_resellable(self.llm, title)
            logger.debug(f"[FILTER] '{title[:40]}' -> {'resellable' if result else 'skip'} (AI)")
            return result
        except Exception as e:
            self.degraded_count += 1
            logger.warning(f"[FILTER] Classifier unavailable, using keywords: {e}")
            return is_resellable_basic(title)
