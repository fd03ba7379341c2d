"""
Enrichment Pipeline

Estimates the resale value of one listing from recent sold comps.

Flow:
1. Search sold listings with the raw title
2. Fewer than 3 comps: ask the model for a more specific product name and
   search again with it
3. Still fewer than 3 and the listing has a photo: ask the model to name the
   product in the photo and search again

A later stage that reached its search replaces the earlier comps, and a
failed search counts as zero comps. A stage that never got a query (no
photo, no new name, name lookup failed) keeps them. Auth, subscription and quota failures abort the
cascade for this listing.

Usage:
    pipeline = EnrichmentPipeline(client.search, client.enhance_title, client.analyze_image)
    result = await pipeline.enrich(record)
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Union

from config import PIPELINE
from pipeline.extractor import ListingRecord
from pipeline.stages import (
    Action,
    STAGE_ORDER,
    Stage,
    StageOutcome,
    decide,
    run_stage,
)

logger = logging.getLogger(__name__)

SearchFn = Callable[..., Awaitable[List[Any]]]
NameFn = Callable[[str], Awaitable[Optional[str]]]

WHOLE = Decimal("1")
ONE_PLACE = Decimal("0.1")


class FailureReason(str, Enum):
    NO_MATCHES = "NO_MATCHES"
    COMPUTATION_FAILED = "COMPUTATION_FAILED"


@dataclass(frozen=True)
class EnrichmentSuccess:
    estimated_value: Decimal     # Average sold price, whole units
    source_price: Decimal
    profit: Decimal              # Whole units, negative for a loss
    profit_margin_pct: Decimal   # One decimal place
    sample_size: int
    matched_query: str
    stage: Stage

    ok = True


@dataclass(frozen=True)
class EnrichmentFailure:
    reason: FailureReason
    detail: str = ""
    halted_by: Optional[str] = None

    ok = False


EnrichmentResult = Union[EnrichmentSuccess, EnrichmentFailure]


def compute_profit(
    source_price: Decimal,
    items: List[Any],
    matched_query: str = "",
    stage: Stage = Stage.EXACT_SEARCH,
) -> EnrichmentResult:
    """
    Average the comps and compare with the asking price.

    items: sold comps, each with a ``price`` attribute or key.
    """
    if not items:
        return EnrichmentFailure(FailureReason.NO_MATCHES, "No matches found")

    try:
        price = Decimal(source_price)
        if price <= 0:
            return EnrichmentFailure(FailureReason.COMPUTATION_FAILED, f"Invalid listing price {price}")

        sold_prices = [Decimal(_item_price(item)) for item in items]
        average = sum(sold_prices) / len(sold_prices)
        profit = average - price
        margin = (profit / price * 100).quantize(ONE_PLACE, rounding=ROUND_HALF_UP)

        return EnrichmentSuccess(
            estimated_value=average.quantize(WHOLE, rounding=ROUND_HALF_UP),
            source_price=price,
            profit=profit.quantize(WHOLE, rounding=ROUND_HALF_UP),
            profit_margin_pct=margin,
            sample_size=len(sold_prices),
            matched_query=matched_query,
            stage=stage,
        )
    except Exception as e:
        logger.error(f"[ENRICH] Profit calculation failed: {e}")
        return EnrichmentFailure(FailureReason.COMPUTATION_FAILED, "Calculation failed")


def _item_price(item: Any) -> Any:
    if isinstance(item, dict):
        return item["price"]
    return item.price


class EnrichmentPipeline:
    """Three-stage comp search cascade for a single listing"""

    def __init__(
        self,
        search: SearchFn,
        enhance_title: NameFn,
        analyze_image: NameFn,
        min_results: int = PIPELINE.min_results,
        search_limit: int = PIPELINE.search_limit,
    ):
        """
        Args:
            search: async (query, limit) -> sold comps
            enhance_title: async title -> better product name or None
            analyze_image: async image_url -> product name or None
        """
        self.search = search
        self.enhance_title = enhance_title
        self.analyze_image = analyze_image
        self.min_results = min_results
        self.search_limit = search_limit

    async def _search(self, query: str) -> List[Any]:
        return await self.search(query, self.search_limit)

    def _name_source(self, stage: Stage, record: ListingRecord) -> Callable[[], Awaitable[Optional[str]]]:
        async def exact() -> Optional[str]:
            return record.title

        async def enhanced() -> Optional[str]:
            name = await self.enhance_title(record.title)
            if name and name != record.title:
                return name
            return None

        async def from_image() -> Optional[str]:
            if not record.image_url:
                return None
            return await self.analyze_image(record.image_url)

        return {
            Stage.EXACT_SEARCH: exact,
            Stage.ENHANCED_SEARCH: enhanced,
            Stage.IMAGE_SEARCH: from_image,
        }[stage]

    async def run_stages(self, record: ListingRecord) -> List[StageOutcome]:
        """Run the cascade and return every outcome in order."""
        outcomes = []
        for stage in STAGE_ORDER:
            outcome = await run_stage(stage, self._name_source(stage, record), self._search)
            outcomes.append(outcome)
            if decide(outcome, self.min_results) != Action.FALLBACK:
                break
        return outcomes

    async def enrich(self, record: ListingRecord) -> EnrichmentResult:
        outcomes = await self.run_stages(record)

        last = outcomes[-1]
        if decide(last, self.min_results) == Action.ABORT:
            logger.info(f"[ENRICH] '{record.title[:40]}' halted at {last.stage.value}: {last.error}")
            return EnrichmentFailure(
                FailureReason.NO_MATCHES,
                detail=str(last.error),
                halted_by=last.halted_by,
            )

        # Latest stage whose search ran owns the comps
        chosen = None
        for outcome in outcomes:
            if outcome.ran:
                chosen = outcome
        if chosen is None:
            return EnrichmentFailure(FailureReason.NO_MATCHES, "No matches found")

        result = compute_profit(record.price, chosen.items, chosen.query, chosen.stage)
        if result.ok:
            logger.info(
                f"[ENRICH] '{record.title[:40]}' ${record.price} -> avg ${result.estimated_value} "
                f"profit ${result.profit} ({result.profit_margin_pct}%) n={result.sample_size} "
                f"via {chosen.stage.value}"
            )
        return result
