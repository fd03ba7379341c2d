"""
Pipeline Module - listing scan and enrichment

- extractor: feed node -> ListingRecord
- resellability: skip jobs, services, rentals, lost pets
- stages / enrichment: exact -> AI title -> AI image comp search cascade
- scanner: one task per discovered listing

Usage:
    from pipeline import EnrichmentPipeline
    result = await EnrichmentPipeline(search, enhance, analyze).enrich(record)
"""

from .extractor import ListingRecord, extract_listing, find_listing_nodes, is_marketplace_listing
from .resellability import ResellabilityFilter, is_resellable_basic
from .stages import Stage, OutcomeTag, Action, StageOutcome, STAGE_POLICY
from .enrichment import (
    EnrichmentPipeline,
    EnrichmentSuccess,
    EnrichmentFailure,
    FailureReason,
    compute_profit,
)

__all__ = [
    'ListingRecord',
    'extract_listing',
    'find_listing_nodes',
    'is_marketplace_listing',
    'ResellabilityFilter',
    'is_resellable_basic',
    'Stage',
    'OutcomeTag',
    'Action',
    'StageOutcome',
    'STAGE_POLICY',
    'EnrichmentPipeline',
    'EnrichmentSuccess',
    'EnrichmentFailure',
    'FailureReason',
    'compute_profit',
]
