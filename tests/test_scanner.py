# tests/test_scanner.py

"""End-to-end scanner tests over a saved marketplace snapshot."""

import asyncio
import unittest
from decimal import Decimal
from unittest.mock import AsyncMock

from pipeline.enrichment import EnrichmentPipeline
from pipeline.resellability import ResellabilityFilter
from pipeline.scanner import HtmlSnapshotSource, Scanner
from services.deduplication import ListingTracker
from services.exceptions import QuotaExceededError
from services.proxy_client import SoldItem
from services.session import MemoryStore, SessionContext

PAGE_URL = "https://www.facebook.com/marketplace/nyc/"


def _listing(item_id: int, title: str, price: str) -> str:
    return (
        f'<div role="article"><a href="/marketplace/item/{item_id}/">'
        f'<img src="https://cdn.example.com/{item_id}.jpg">'
        f'<span>{price}</span><span dir="auto">{title}</span></a></div>'
    )


FEED = "".join([
    _listing(1, "Yeti Microphone", "$50"),
    _listing(2, "Room for rent downtown", "$900"),
    _listing(1, "Yeti Microphone", "$50"),
    '<div role="article"><span dir="auto">Sponsored post</span></div>',
])


def _sold(*prices):
    return [SoldItem(title="comp", price=Decimal(str(p)), end_time="") for p in prices]


class TestScanner(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self) -> None:
        self.store = MemoryStore()
        self.session = await SessionContext.load(self.store)
        self.search = AsyncMock(return_value=_sold(80, 90, 100))
        self.pipeline = EnrichmentPipeline(
            self.search, AsyncMock(return_value=None), AsyncMock(return_value=None)
        )
        self.scanner = Scanner(self.session, self.pipeline, ResellabilityFilter(), ListingTracker())

    async def asyncTearDown(self) -> None:
        await self.scanner.close()

    async def test_scan_enriches_each_listing_once(self) -> None:
        spawned = await self.scanner.scan(HtmlSnapshotSource(FEED, PAGE_URL))
        await self.scanner.wait_idle()

        # Yeti + rental; the duplicate Yeti and the imageless post are dropped
        self.assertEqual(spawned, 2)
        self.search.assert_awaited_once_with("Yeti Microphone", 3)

        views = list(self.scanner.views.values())
        self.assertEqual(len(views), 1)
        self.assertEqual(views[0].badge.details, "Profit: $40 (80.0%)")
        self.assertEqual(self.session.stats.listings_analyzed, 1)
        self.assertEqual(self.session.stats.profitable_deals, 1)
        self.assertEqual(self.store.data["productsAnalyzed"], 1)

    async def test_rescan_is_idempotent_until_clear(self) -> None:
        source = HtmlSnapshotSource(FEED, PAGE_URL)
        await self.scanner.scan(source)
        await self.scanner.wait_idle()

        self.assertEqual(await self.scanner.scan(source), 0)

        self.scanner.tracker.clear()
        self.assertEqual(await self.scanner.scan(source), 2)
        await self.scanner.wait_idle()
        self.assertEqual(self.search.await_count, 2)

    async def test_clear_cache_forgets_listings_and_stats(self) -> None:
        source = HtmlSnapshotSource(FEED, PAGE_URL)
        await self.scanner.scan(source)
        await self.scanner.wait_idle()
        self.assertEqual(self.session.stats.listings_analyzed, 1)

        await self.scanner.clear_cache()

        self.assertEqual(self.session.stats.listings_analyzed, 0)
        self.assertEqual(self.store.data["profitableDeals"], 0)
        self.assertEqual(await self.scanner.scan(source), 2)
        await self.scanner.wait_idle()
        self.assertEqual(self.session.stats.listings_analyzed, 1)

    async def test_start_runs_periodic_clear(self) -> None:
        self.scanner.start()
        self.assertIsNotNone(self.scanner.tracker._clear_task)

        await self.scanner.close()
        self.assertIsNone(self.scanner.tracker._clear_task)

    async def test_wrong_page_spawns_nothing(self) -> None:
        spawned = await self.scanner.scan(HtmlSnapshotSource(FEED, "https://www.facebook.com/"))
        self.assertEqual(spawned, 0)

    async def test_disabled_session_skips_enrichment(self) -> None:
        self.session.update_settings(enabled=False)
        await self.scanner.scan(HtmlSnapshotSource(FEED, PAGE_URL))
        await self.scanner.wait_idle()
        self.search.assert_not_awaited()

    async def test_no_data_badge_on_halt(self) -> None:
        self.search.side_effect = QuotaExceededError()
        await self.scanner.scan(HtmlSnapshotSource(FEED, PAGE_URL))
        await self.scanner.wait_idle()

        view = list(self.scanner.views.values())[0]
        self.assertEqual(view.badge.text, "❌ No data")
        self.assertEqual(view.result.halted_by, "quota_exceeded")
        self.assertEqual(self.session.stats.listings_analyzed, 0)

    async def test_task_error_removes_badge(self) -> None:
        self.scanner.pipeline = AsyncMock()
        self.scanner.pipeline.enrich.side_effect = RuntimeError("boom")

        await self.scanner.scan(HtmlSnapshotSource(FEED, PAGE_URL))
        await self.scanner.wait_idle()

        view = list(self.scanner.views.values())[0]
        self.assertIsNone(view.badge)

    async def test_close_cancels_in_flight(self) -> None:
        started = asyncio.Event()

        async def stall(query, limit=None):
            started.set()
            await asyncio.sleep(3600)

        self.search.side_effect = stall
        await self.scanner.scan(HtmlSnapshotSource(_listing(1, "Yeti Microphone", "$50"), PAGE_URL))
        await asyncio.wait_for(started.wait(), timeout=1)
        self.assertEqual(self.scanner.in_flight, 1)

        await self.scanner.close()
        self.assertEqual(self.scanner.in_flight, 0)


if __name__ == "__main__":
    unittest.main()
