"""
Services Package

Proxy-side upstream adapters and account gate, plus the scanner-side
proxy client, listing tracker and session context.
"""

from .exceptions import (
    ErrorKind,
    HALTING_KINDS,
    ProxyException,
    ValidationError,
    AuthenticationError,
    SubscriptionInactiveError,
    QuotaExceededError,
    UpstreamServiceError,
    EbayAPIError,
    LanguageModelError,
    NetworkFailure,
    ConfigurationError,
    MissingAPIKeyError,
)
from .deduplication import ListingTracker, listing_fingerprint
from .session import SessionContext, Settings, SessionStats, JsonFileStore, MemoryStore
from .proxy_client import ProxyClient, SoldItem

__all__ = [
    # Errors
    'ErrorKind',
    'HALTING_KINDS',
    'ProxyException',
    'ValidationError',
    'AuthenticationError',
    'SubscriptionInactiveError',
    'QuotaExceededError',
    'UpstreamServiceError',
    'EbayAPIError',
    'LanguageModelError',
    'NetworkFailure',
    'ConfigurationError',
    'MissingAPIKeyError',
    # Scanner side
    'ListingTracker',
    'listing_fingerprint',
    'SessionContext',
    'Settings',
    'SessionStats',
    'JsonFileStore',
    'MemoryStore',
    'ProxyClient',
    'SoldItem',
]
