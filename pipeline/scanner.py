"""
Scanner - drives a marketplace scanning session

Pulls raw nodes from a ListingSource and spawns one asyncio task per new
listing:

    node -> listing check -> fingerprint claim -> extract -> enabled?
         -> resellable? -> "Analyzing..." badge -> enrich -> result badge -> stats

There is no worker pool and no bound on in-flight tasks. A failure inside
one listing's task is logged and its badge removed; it never stops the scan.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Dict, Optional, Set

from bs4 import BeautifulSoup, Tag

from pipeline.enrichment import EnrichmentPipeline, EnrichmentResult
from pipeline.extractor import (
    ListingRecord,
    extract_listing,
    find_listing_nodes,
    is_marketplace_listing,
    node_link,
    node_text,
)
from pipeline.resellability import ResellabilityFilter
from services.clients import create_openai_client
from services.deduplication import ListingTracker, listing_fingerprint
from services.llm import LanguageModel
from services.proxy_client import ProxyClient
from services.session import SessionContext
from templates.badges import Badge, analyzing_badge, result_badge

logger = logging.getLogger(__name__)


# ============================================================
# Listing sources
# ============================================================

class ListingSource:
    """
    Lazy, restartable async sequence of raw feed nodes.

    Every ``async for`` starts a fresh pass over the feed.
    """

    page_url: str = ""

    def __aiter__(self) -> AsyncIterator[Tag]:
        return self.nodes()

    def nodes(self) -> AsyncIterator[Tag]:
        raise NotImplementedError


class HtmlSnapshotSource(ListingSource):
    """Listing nodes from a saved marketplace page."""

    def __init__(self, html: str, page_url: str):
        self.html = html
        self.page_url = page_url

    @classmethod
    def from_file(cls, path: Path, page_url: str) -> "HtmlSnapshotSource":
        with open(path, 'r', encoding='utf-8') as f:
            return cls(f.read(), page_url)

    async def nodes(self) -> AsyncIterator[Tag]:
        soup = BeautifulSoup(self.html, "html.parser")
        for node in find_listing_nodes(soup):
            yield node


# ============================================================
# Scanner
# ============================================================

@dataclass
class ListingView:
    """What the user sees for one listing."""
    fingerprint: str
    record: Optional[ListingRecord] = None
    badge: Optional[Badge] = None
    result: Optional[EnrichmentResult] = None


class Scanner:

    def __init__(
        self,
        session: SessionContext,
        pipeline: EnrichmentPipeline,
        resellability: ResellabilityFilter,
        tracker: Optional[ListingTracker] = None,
    ):
        self.session = session
        self.pipeline = pipeline
        self.resellability = resellability
        self.tracker = tracker or ListingTracker()
        self.views: Dict[str, ListingView] = {}
        self._tasks: Set[asyncio.Task] = set()

    def start(self) -> None:
        self.tracker.start_periodic_clear()

    async def clear_cache(self) -> None:
        """Forget every seen listing and zero the session stats."""
        self.tracker.clear()
        await self.session.reset_stats()

    async def close(self) -> None:
        """Cancel in-flight listings and stop the periodic clear."""
        self.tracker.stop_periodic_clear()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"[SCAN] Cancelled {len(tasks)} in-flight listings")

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def discover(self, node: Tag, page_url: str) -> Optional[asyncio.Task]:
        """Spawn a task for a new listing node; None if skipped or already seen."""
        if not is_marketplace_listing(node, page_url):
            return None

        fingerprint = listing_fingerprint(node_link(node), node_text(node))
        if not self.tracker.claim(fingerprint):
            return None

        task = asyncio.create_task(self.process(fingerprint, node))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def scan(self, source: ListingSource) -> int:
        """One pass over the source. Returns how many listings were spawned."""
        spawned = 0
        async for node in source:
            if self.discover(node, source.page_url) is not None:
                spawned += 1
        logger.info(f"[SCAN] {spawned} new listings from {source.page_url}")
        return spawned

    async def process(self, fingerprint: str, node: Tag) -> Optional[EnrichmentResult]:
        view = ListingView(fingerprint)
        try:
            record = extract_listing(node)
            if record is None:
                return None
            view.record = record

            if not self.session.settings.enabled:
                return None

            if not await self.resellability.is_resellable(record.title):
                logger.info(f"[SCAN] Skipping non-resellable item: {record.title[:60]}")
                return None

            view.badge = analyzing_badge()
            self.views[fingerprint] = view

            result = await self.pipeline.enrich(record)
            view.result = result
            if result.ok:
                await self.session.record_enrichment(result.profit)

            view.badge = result_badge(result, self.session.settings)
            return result

        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[SCAN] Error processing listing {fingerprint}: {e}")
            view.badge = None
            return None


def build_scanner(
    session: SessionContext,
    client: ProxyClient,
    tracker: Optional[ListingTracker] = None,
) -> Scanner:
    """Wire a scanner to a proxy client and the session's classifier key."""
    classifier = None
    if session.settings.openai_api_key:
        classifier = LanguageModel(
            provider="openai",
            openai_client=create_openai_client(session.settings.openai_api_key),
        )

    pipeline = EnrichmentPipeline(
        search=client.search,
        enhance_title=client.enhance_title,
        analyze_image=client.analyze_image,
    )
    return Scanner(session, pipeline, ResellabilityFilter(classifier), tracker)
