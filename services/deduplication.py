"""
Listing deduplication service.

Marketplace feeds re-render the same listing many times while the user
scrolls. The tracker remembers a fingerprint for every listing already
sent down the pipeline so it is enriched at most once per session.

The fingerprint is a best-effort cache key, not an identity: two different
listings can collide, and a listing with no usable text gets a random key
(so it may be enriched again if it re-renders). Both weaken but do not
break the at-most-once intent.
"""

import asyncio
import hashlib
import logging
import uuid
from typing import Optional, Set

from config import PIPELINE, CLEAR_CACHE_INTERVAL

logger = logging.getLogger(__name__)


def normalize_fingerprint_input(link: Optional[str], text: Optional[str]) -> str:
    """link + first N chars of text, ASCII only, capped in length."""
    raw = (link or "") + (text or "")[:PIPELINE.fingerprint_text_chars]
    ascii_only = raw.encode("ascii", "ignore").decode("ascii")
    return ascii_only[:PIPELINE.fingerprint_max_input]


def listing_fingerprint(link: Optional[str], text: Optional[str]) -> str:
    """Stable 20-char key for a listing; random if there is nothing to hash."""
    normalized = normalize_fingerprint_input(link, text)
    if not normalized.strip():
        token = uuid.uuid4().hex[:PIPELINE.fingerprint_length]
        logger.debug(f"[DEDUP] Empty fingerprint input, using random key {token}")
        return token
    digest = hashlib.sha1(normalized.encode("ascii")).hexdigest()
    return digest[:PIPELINE.fingerprint_length]


class ListingTracker:
    """
    Monotone visited-set of listing fingerprints.

    Unseen -> mark() -> Seen. Only clear() moves everything back to Unseen,
    either on the periodic timer or an explicit user action.
    """

    def __init__(self, clear_interval: float = CLEAR_CACHE_INTERVAL):
        self._seen: Set[str] = set()
        self.clear_interval = clear_interval
        self._clear_task: Optional[asyncio.Task] = None
        self.clear_count = 0

    def has(self, fingerprint: str) -> bool:
        return fingerprint in self._seen

    def mark(self, fingerprint: str) -> None:
        self._seen.add(fingerprint)

    def claim(self, fingerprint: str) -> bool:
        """
        has() then mark() with no await in between.

        Returns True if the caller should process the listing.
        """
        if fingerprint in self._seen:
            return False
        self._seen.add(fingerprint)
        return True

    def clear(self) -> int:
        """Forget everything. Returns how many fingerprints were dropped."""
        count = len(self._seen)
        self._seen.clear()
        self.clear_count += 1
        if count:
            logger.info(f"[DEDUP] Cleared {count} processed listings")
        return count

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, fingerprint: str) -> bool:
        return self.has(fingerprint)

    # ============================================================
    # Periodic clear
    # ============================================================

    async def _clear_loop(self) -> None:
        """Background task that periodically clears the visited set."""
        logger.info(f"[DEDUP] Periodic clear started (interval={self.clear_interval}s)")
        while True:
            try:
                await asyncio.sleep(self.clear_interval)
                self.clear()
            except asyncio.CancelledError:
                logger.info("[DEDUP] Periodic clear stopped")
                break

    def start_periodic_clear(self) -> None:
        """Start the background clear task (needs a running loop)."""
        if self._clear_task is None or self._clear_task.done():
            self._clear_task = asyncio.create_task(self._clear_loop())

    def stop_periodic_clear(self) -> None:
        if self._clear_task and not self._clear_task.done():
            self._clear_task.cancel()
        self._clear_task = None
