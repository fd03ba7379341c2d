"""
Proxy Client - scanner-side HTTP client for the FlipFinder proxy

Sends the user's bearer token with every call and turns HTTP status codes
into distinct exception kinds so the enrichment pipeline can tell a quota
stop from a flaky network:

    401 -> AuthenticationError        (halts the listing)
    403 -> SubscriptionInactiveError  (halts the listing)
    429 -> QuotaExceededError         (halts the listing)
    500 -> UpstreamServiceError       (stage counts as zero results)
    anything else / transport error -> NetworkFailure
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from config import API_BASE_URL, PROXY_TIMEOUT
from services.exceptions import (
    AuthenticationError,
    NetworkFailure,
    QuotaExceededError,
    SubscriptionInactiveError,
    UpstreamServiceError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SoldItem:
    title: str
    price: Decimal
    end_time: str


def parse_sold_item(raw: Dict[str, Any]) -> Optional[SoldItem]:
    try:
        price = Decimal(str(raw.get("price")))
    except (InvalidOperation, ValueError):
        return None
    if price <= 0:
        return None
    return SoldItem(
        title=str(raw.get("title") or ""),
        price=price,
        end_time=str(raw.get("endTime") or ""),
    )


class ProxyClient:
    """Async client for /api/search, /api/enhance-title, /api/analyze-image"""

    def __init__(
        self,
        token: str = "",
        base_url: str = API_BASE_URL,
        timeout: Optional[float] = PROXY_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_call: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        """
        Args:
            token: bearer token from /api/auth/login
            timeout: None means no client-side timeout
            transport: custom httpx transport (tests use MockTransport)
            on_call: awaited after every successful proxy call
        """
        self.token = token
        self.on_call = on_call
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ProxyClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ============================================================
    # Transport
    # ============================================================

    @staticmethod
    def _error_message(response: httpx.Response, default: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return default
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return default

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status == 401:
            raise AuthenticationError(self._error_message(response, "Invalid authorization token"))
        if status == 403:
            raise SubscriptionInactiveError()
        if status == 429:
            raise QuotaExceededError()
        if status == 500:
            raise UpstreamServiceError(
                service="proxy",
                message=self._error_message(response, "Proxy upstream failure"),
            )
        raise NetworkFailure(f"Unexpected proxy response {status}", status_code=status)

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            raise NetworkFailure(f"Request to {path} failed", cause=e)

        if response.status_code != 200:
            logger.warning(f"[PROXY] {path} -> {response.status_code}")
            self._raise_for_status(response)

        try:
            data = response.json()
        except ValueError as e:
            raise NetworkFailure(f"Invalid JSON from {path}", status_code=200, cause=e)
        if not isinstance(data, dict):
            raise NetworkFailure(f"Unexpected body from {path}", status_code=200)

        if self.on_call is not None:
            await self.on_call()
        return data

    # ============================================================
    # API calls
    # ============================================================

    async def search(self, query: str, limit: Optional[int] = None) -> List[SoldItem]:
        payload: Dict[str, Any] = {"query": query}
        if limit is not None:
            payload["limit"] = limit
        data = await self._post("/api/search", payload)

        items = []
        for raw in data.get("soldItems") or []:
            item = parse_sold_item(raw) if isinstance(raw, dict) else None
            if item is not None:
                items.append(item)
        return items

    async def enhance_title(self, title: str) -> Optional[str]:
        data = await self._post("/api/enhance-title", {"title": title})
        return data.get("enhancedTitle") or None

    async def analyze_image(self, image_url: str) -> Optional[str]:
        data = await self._post("/api/analyze-image", {"imageUrl": image_url})
        return data.get("productName") or None

    async def login(self, email: str, subscription_key: str) -> Dict[str, Any]:
        """Exchange a subscription key for a token; does not count as an API call."""
        try:
            response = await self._client.post(
                "/api/auth/login",
                json={"email": email, "subscriptionKey": subscription_key},
            )
        except httpx.HTTPError as e:
            raise NetworkFailure("Login request failed", cause=e)
        if response.status_code != 200:
            self._raise_for_status(response)
        data = response.json()
        self.token = data.get("token", "")
        self._client.headers["Authorization"] = f"Bearer {self.token}"
        return data
