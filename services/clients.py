"""
API client initialization for upstream services.

Creates and configures OpenAI, Anthropic (Claude) and the shared httpx
client used for eBay calls.
"""

import logging
from typing import Optional, Any

import httpx

from config import EBAY_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


def create_openai_client(api_key: Optional[str]) -> Optional[Any]:
    """
    Create an async OpenAI client.

    Returns None if api_key is not provided.
    """
    if not api_key:
        logger.warning("[CLIENTS] No OpenAI API key provided")
        return None

    from openai import AsyncOpenAI
    client = AsyncOpenAI(api_key=api_key)
    logger.info("[CLIENTS] OpenAI client initialized")
    return client


def create_anthropic_client(api_key: Optional[str]) -> Optional[Any]:
    """Create an async Anthropic client for Claude API calls."""
    if not api_key:
        logger.warning("[CLIENTS] No Anthropic API key provided")
        return None

    import anthropic
    client = anthropic.AsyncAnthropic(api_key=api_key)
    logger.info("[CLIENTS] Anthropic client initialized")
    return client


def create_http_client(timeout: float = EBAY_REQUEST_TIMEOUT) -> httpx.AsyncClient:
    """Shared httpx client for connection pooling to eBay."""
    return httpx.AsyncClient(timeout=timeout)
