"""
eBay Sold Item Search

Looks up completed listings that ended with a sale through the Finding API
(findCompletedItems). These are the comparable sales the pipeline averages
into an estimated resale value.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, List, Dict, Any

import httpx

from config import EBAY_APP_ID, EBAY_FINDING_URL, EBAY_REQUEST_TIMEOUT
from services.exceptions import EbayAPIError, MissingAPIKeyError

logger = logging.getLogger(__name__)

DEFAULT_FETCH_SIZE = 20
DEFAULT_RESULT_LIMIT = 3


def build_search_params(app_id: str, query: str, limit: Optional[int] = None) -> List[tuple]:
    """Query params for findCompletedItems (repeated keys, so a list of pairs)."""
    return [
        ("OPERATION-NAME", "findCompletedItems"),
        ("SERVICE-VERSION", "1.0.0"),
        ("SECURITY-APPNAME", app_id),
        ("RESPONSE-DATA-FORMAT", "JSON"),
        ("REST-PAYLOAD", ""),
        ("keywords", query),
        ("itemFilter(0).name", "SoldItemsOnly"),
        ("itemFilter(0).value", "true"),
        ("itemFilter(1).name", "ListingType"),
        ("itemFilter(1).value(0)", "AuctionWithBIN"),
        ("itemFilter(1).value(1)", "FixedPrice"),
        ("sortOrder", "EndTimeSoonest"),
        ("paginationInput.entriesPerPage", str(limit or DEFAULT_FETCH_SIZE)),
    ]


def _first(value: Any, default: Any = None) -> Any:
    """Finding API wraps every scalar in a one-element list."""
    if isinstance(value, list):
        return value[0] if value else default
    return value if value is not None else default


def parse_sold_items(data: Dict[str, Any], limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Pull sold items out of a findCompletedItems JSON response.

    Keeps items whose sellingState is EndedWithSales, slices to ``limit``
    (default 3) and drops anything without a positive price.
    """
    response = _first(data.get("findCompletedItemsResponse"), {}) or {}
    search_result = _first(response.get("searchResult"), {}) or {}
    items = search_result.get("item") or []

    sold = [
        item for item in items
        if _first(_first(item.get("sellingStatus"), {}).get("sellingState")) == "EndedWithSales"
    ]

    results = []
    for item in sold[:limit or DEFAULT_RESULT_LIMIT]:
        selling_status = _first(item.get("sellingStatus"), {}) or {}
        current_price = _first(selling_status.get("currentPrice"), {}) or {}
        try:
            price = Decimal(str(current_price.get("__value__", "0")))
        except (InvalidOperation, ValueError):
            price = Decimal("0")
        if price <= 0:
            continue

        listing_info = _first(item.get("listingInfo"), {}) or {}
        results.append({
            "title": _first(item.get("title"), ""),
            "price": price,
            "endTime": _first(listing_info.get("endTime"), ""),
        })

    return results


async def search_sold_items(
    query: str,
    limit: Optional[int] = None,
    app_id: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> List[Dict[str, Any]]:
    """
    Search eBay for sold listings matching ``query``.

    Raises:
        MissingAPIKeyError: no eBay App ID configured
        EbayAPIError: transport failure or non-200 response
    """
    app_id = app_id or EBAY_APP_ID
    if not app_id:
        raise MissingAPIKeyError("ebay")

    params = build_search_params(app_id, query, limit)

    try:
        if http_client is not None:
            response = await http_client.get(EBAY_FINDING_URL, params=params)
        else:
            async with httpx.AsyncClient(timeout=EBAY_REQUEST_TIMEOUT) as client:
                response = await client.get(EBAY_FINDING_URL, params=params)
    except httpx.HTTPError as e:
        logger.error(f"[EBAY] Request error: {e}")
        raise EbayAPIError(cause=e)

    if response.status_code != 200:
        logger.warning(f"[EBAY] API returned {response.status_code}")
        raise EbayAPIError(status_code=response.status_code)

    try:
        data = response.json()
    except ValueError as e:
        raise EbayAPIError("eBay API returned invalid JSON", cause=e)

    items = parse_sold_items(data, limit)
    logger.info(f"[EBAY] '{query[:50]}' -> {len(items)} sold items")
    return items
