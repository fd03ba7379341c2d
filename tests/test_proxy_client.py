# tests/test_proxy_client.py

"""Tests for the scanner-side proxy client and its status mapping."""

import json
import unittest
from decimal import Decimal
from unittest.mock import AsyncMock

import httpx

from services.exceptions import (
    AuthenticationError,
    ErrorKind,
    NetworkFailure,
    QuotaExceededError,
    SubscriptionInactiveError,
    UpstreamServiceError,
)
from services.proxy_client import ProxyClient, SoldItem


def _client(handler, **kwargs) -> ProxyClient:
    return ProxyClient(
        token="tok-123",
        base_url="http://proxy.test",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _status(code: int, body=None):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(code, json=body if body is not None else {"error": "nope"})
    return handler


class TestProxyClientCalls(unittest.IsolatedAsyncioTestCase):
    """Successful request/response handling."""

    async def test_search_sends_token_and_parses_items(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("authorization")
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"soldItems": [
                {"title": "Blue Yeti", "price": 89.99, "endTime": "2024-01-01T00:00:00Z"},
                {"title": "Broken", "price": 0, "endTime": ""},
            ]})

        async with _client(handler) as client:
            items = await client.search("Yeti Mic", 3)

        self.assertEqual(seen["auth"], "Bearer tok-123")
        self.assertEqual(seen["path"], "/api/search")
        self.assertEqual(seen["body"], {"query": "Yeti Mic", "limit": 3})
        self.assertEqual(items, [
            SoldItem(title="Blue Yeti", price=Decimal("89.99"), end_time="2024-01-01T00:00:00Z")
        ])

    async def test_enhance_title_null(self) -> None:
        async with _client(_status(200, {"enhancedTitle": None})) as client:
            self.assertIsNone(await client.enhance_title("Yeti Mic"))

    async def test_analyze_image(self) -> None:
        async with _client(_status(200, {"productName": "Blue Yeti"})) as client:
            self.assertEqual(await client.analyze_image("https://img/1.jpg"), "Blue Yeti")

    async def test_on_call_after_success_only(self) -> None:
        on_call = AsyncMock()
        async with _client(_status(200, {"soldItems": []}), on_call=on_call) as client:
            await client.search("x")
        on_call.assert_awaited_once()

        on_call.reset_mock()
        async with _client(_status(500), on_call=on_call) as client:
            with self.assertRaises(UpstreamServiceError):
                await client.search("x")
        on_call.assert_not_awaited()

    async def test_login_stores_token(self) -> None:
        body = {"token": "new-token", "user": {"email": "a@b.c", "plan": "pro", "expiresAt": None}}
        async with _client(_status(200, body)) as client:
            data = await client.login("a@b.c", "key")
            self.assertEqual(data["token"], "new-token")
            self.assertEqual(client._client.headers["Authorization"], "Bearer new-token")


class TestProxyClientErrors(unittest.IsolatedAsyncioTestCase):
    """HTTP status -> exception kind."""

    async def _search_error(self, handler):
        async with _client(handler) as client:
            with self.assertRaises(Exception) as ctx:
                await client.search("x")
        return ctx.exception

    async def test_401(self) -> None:
        error = await self._search_error(_status(401, {"error": "Invalid authorization token"}))
        self.assertIsInstance(error, AuthenticationError)
        self.assertEqual(error.kind, ErrorKind.AUTH_FAILED)
        self.assertTrue(error.halts_pipeline)

    async def test_403(self) -> None:
        error = await self._search_error(_status(403))
        self.assertIsInstance(error, SubscriptionInactiveError)
        self.assertTrue(error.halts_pipeline)

    async def test_429_is_quota_not_network(self) -> None:
        error = await self._search_error(_status(429))
        self.assertIsInstance(error, QuotaExceededError)
        self.assertNotIsInstance(error, NetworkFailure)
        self.assertEqual(error.kind, ErrorKind.QUOTA_EXCEEDED)

    async def test_500(self) -> None:
        error = await self._search_error(_status(500, {"error": "eBay API request failed"}))
        self.assertIsInstance(error, UpstreamServiceError)
        self.assertEqual(error.message, "eBay API request failed")
        self.assertFalse(error.halts_pipeline)

    async def test_other_status_is_network(self) -> None:
        error = await self._search_error(_status(502))
        self.assertIsInstance(error, NetworkFailure)
        self.assertEqual(error.details["status_code"], 502)

    async def test_transport_error_is_network(self) -> None:
        def handler(request):
            raise httpx.ConnectError("refused", request=request)
        error = await self._search_error(handler)
        self.assertIsInstance(error, NetworkFailure)
        self.assertFalse(error.halts_pipeline)

    async def test_bad_json_is_network(self) -> None:
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")
        error = await self._search_error(handler)
        self.assertIsInstance(error, NetworkFailure)


if __name__ == "__main__":
    unittest.main()
