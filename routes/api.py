"""
Proxy API Routes - sold item search and AI helpers

Every route here sits behind the subscription gate and forwards to a
third-party API with server-held credentials:
- POST /api/search          -> eBay findCompletedItems
- POST /api/enhance-title   -> language model, title specificity check
- POST /api/analyze-image   -> language model, product name from photo

The older /api/ebay/* and /api/ai/* paths used by early extension builds
are kept as aliases.
"""

import logging
from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Request

from services.app_state import AppState, get_app_state_from_request
from services.ebay_search import search_sold_items
from services.exceptions import (
    ProxyException,
    UpstreamServiceError,
    ValidationError,
    ConfigurationError,
)
from services.llm import enhance_title, analyze_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["proxy"])


# ============================================================
# Dependencies
# ============================================================

async def verify_subscription(request: Request) -> Dict[str, Any]:
    """Auth -> subscription -> quota gate. Returns the caller's claims."""
    app_state = get_app_state_from_request(request)
    app_state.increment_stat("total_requests")
    try:
        return app_state.accounts.authorize(request.headers.get("authorization"))
    except ProxyException:
        app_state.increment_stat("rejected")
        raise


async def read_json(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("Request body must be JSON")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def require_str(body: Dict[str, Any], field: str) -> str:
    value = body.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{field}' is required", field=field)
    return value.strip()


def parse_limit(body: Dict[str, Any]) -> Optional[int]:
    limit = body.get("limit")
    if limit is None:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError("'limit' must be a positive integer", field="limit")
    return limit


def upstream_failure(app_state: AppState, service: str, message: str, exc: Exception) -> UpstreamServiceError:
    """Log an upstream failure and wrap it as the 500 the extension expects."""
    app_state.increment_stat("upstream_errors")
    if isinstance(exc, ConfigurationError):
        logger.error(f"[{service.upper()}] Not configured: {exc}")
    else:
        logger.error(f"[{service.upper()}] {message}: {exc}")
    return UpstreamServiceError(service=service, message=message, cause=exc)


# ============================================================
# Routes
# ============================================================

@router.post("/search")
@router.post("/ebay/search", include_in_schema=False)
async def search(request: Request, user: Dict[str, Any] = Depends(verify_subscription)):
    """Sold listings for a query, newest-ending first."""
    app_state = get_app_state_from_request(request)
    body = await read_json(request)
    query = require_str(body, "query")
    limit = parse_limit(body)

    try:
        items = await search_sold_items(
            query,
            limit=limit,
            app_id=app_state.ebay_app_id,
            http_client=app_state.http_client,
        )
    except Exception as e:
        raise upstream_failure(app_state, "ebay", "eBay API request failed", e)

    app_state.accounts.record_usage(user["userId"], "ebay_search")
    app_state.increment_stat("search_calls")

    return {
        "soldItems": [
            {"title": item["title"], "price": float(item["price"]), "endTime": item["endTime"]}
            for item in items
        ]
    }


@router.post("/enhance-title")
@router.post("/ai/enhance-title", include_in_schema=False)
async def enhance_title_route(request: Request, user: Dict[str, Any] = Depends(verify_subscription)):
    """A more specific product name, or null when the title is fine / hopeless."""
    app_state = get_app_state_from_request(request)
    body = await read_json(request)
    title = require_str(body, "title")

    try:
        enhanced = await enhance_title(app_state.llm, title)
    except Exception as e:
        raise upstream_failure(app_state, "llm", "AI enhancement failed", e)

    app_state.accounts.record_usage(user["userId"], "ai_enhance_title")
    app_state.increment_stat("enhance_calls")
    return {"enhancedTitle": enhanced}


@router.post("/analyze-image")
@router.post("/ai/analyze-image", include_in_schema=False)
async def analyze_image_route(request: Request, user: Dict[str, Any] = Depends(verify_subscription)):
    """A searchable product name inferred from a listing photo, or null."""
    app_state = get_app_state_from_request(request)
    body = await read_json(request)
    image_url = require_str(body, "imageUrl")

    try:
        product_name = await analyze_image(app_state.llm, image_url)
    except Exception as e:
        raise upstream_failure(app_state, "llm", "Image analysis failed", e)

    app_state.accounts.record_usage(user["userId"], "ai_analyze_image")
    app_state.increment_stat("image_calls")
    return {"productName": product_name}
