"""
Enrichment stages and their outcome policy.

Every stage call is folded into a tagged StageOutcome instead of letting
exceptions decide control flow:

    SUCCESS      the stage's search ran (items may be empty)
    UNAVAILABLE  nothing to try: no image, or the model produced no new name
    FAILED       network / upstream failure. A failed search still ran and
                 carries zero items; a failed name lookup did not run
    HALTED       auth / subscription / quota failure; no further stages

STAGE_POLICY maps (stage, outcome) to what the cascade does next.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from services.exceptions import ProxyException

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    EXACT_SEARCH = "exact_search"
    ENHANCED_SEARCH = "enhanced_search"
    IMAGE_SEARCH = "image_search"


class OutcomeTag(str, Enum):
    SUCCESS = "success"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"
    HALTED = "halted"


class Action(str, Enum):
    STOP = "stop"          # Use the current results, run no more stages
    FALLBACK = "fallback"  # Try the next stage
    ABORT = "abort"        # Give up on this listing


# Policy keys: SUCCESS is split on whether enough comps came back
ENOUGH = "success_enough"
SHORT = "success_short"

STAGE_POLICY: Dict[Stage, Dict[str, Action]] = {
    Stage.EXACT_SEARCH: {
        ENOUGH: Action.STOP,
        SHORT: Action.FALLBACK,
        OutcomeTag.UNAVAILABLE.value: Action.FALLBACK,
        OutcomeTag.FAILED.value: Action.FALLBACK,
        OutcomeTag.HALTED.value: Action.ABORT,
    },
    Stage.ENHANCED_SEARCH: {
        ENOUGH: Action.STOP,
        SHORT: Action.FALLBACK,
        OutcomeTag.UNAVAILABLE.value: Action.FALLBACK,
        OutcomeTag.FAILED.value: Action.FALLBACK,
        OutcomeTag.HALTED.value: Action.ABORT,
    },
    Stage.IMAGE_SEARCH: {
        ENOUGH: Action.STOP,
        SHORT: Action.STOP,
        OutcomeTag.UNAVAILABLE.value: Action.STOP,
        OutcomeTag.FAILED.value: Action.STOP,
        OutcomeTag.HALTED.value: Action.ABORT,
    },
}

STAGE_ORDER = [Stage.EXACT_SEARCH, Stage.ENHANCED_SEARCH, Stage.IMAGE_SEARCH]


@dataclass(frozen=True)
class StageOutcome:
    tag: OutcomeTag
    stage: Stage
    items: List[Any] = field(default_factory=list)
    query: Optional[str] = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, stage: Stage, items: List[Any], query: str) -> "StageOutcome":
        return cls(OutcomeTag.SUCCESS, stage, list(items), query)

    @classmethod
    def unavailable(cls, stage: Stage) -> "StageOutcome":
        return cls(OutcomeTag.UNAVAILABLE, stage)

    @classmethod
    def from_error(cls, stage: Stage, error: Exception, query: Optional[str] = None) -> "StageOutcome":
        if isinstance(error, ProxyException) and error.halts_pipeline:
            return cls(OutcomeTag.HALTED, stage, error=error)
        return cls(OutcomeTag.FAILED, stage, [], query, error)

    @property
    def ran(self) -> bool:
        """The stage resolved a query and attempted its search."""
        if self.tag == OutcomeTag.SUCCESS:
            return True
        return self.tag == OutcomeTag.FAILED and self.query is not None

    @property
    def halted_by(self) -> Optional[str]:
        if self.tag != OutcomeTag.HALTED:
            return None
        kind = getattr(self.error, "kind", None)
        return kind.value if kind is not None else None


def decide(outcome: StageOutcome, min_results: int) -> Action:
    """Look up what the cascade does after this outcome."""
    if outcome.tag == OutcomeTag.SUCCESS:
        key = ENOUGH if len(outcome.items) >= min_results else SHORT
    else:
        key = outcome.tag.value
    return STAGE_POLICY[outcome.stage][key]


async def run_stage(
    stage: Stage,
    name_source: Callable[[], Awaitable[Optional[str]]],
    search: Callable[[str], Awaitable[List[Any]]],
) -> StageOutcome:
    """
    Resolve a query, then search it.

    ``name_source`` returns the query for this stage or None when there is
    nothing to try. Any exception from either call becomes FAILED or HALTED.
    """
    try:
        query = await name_source()
    except Exception as e:
        logger.warning(f"[ENRICH] {stage.value}: query lookup failed: {e}")
        return StageOutcome.from_error(stage, e)

    if not query:
        return StageOutcome.unavailable(stage)

    try:
        items = await search(query)
    except Exception as e:
        logger.warning(f"[ENRICH] {stage.value}: search for '{query[:40]}' failed: {e}")
        return StageOutcome.from_error(stage, e, query=query)

    logger.debug(f"[ENRICH] {stage.value}: '{query[:40]}' -> {len(items)} results")
    return StageOutcome.success(stage, items, query)
