# tests/test_ebay_search.py

"""Tests for the eBay Finding API adapter."""

import unittest
from decimal import Decimal
from unittest.mock import patch

import httpx

from services.ebay_search import build_search_params, parse_sold_items, search_sold_items
from services.exceptions import EbayAPIError, MissingAPIKeyError


def _item(title: str, price: str, state: str = "EndedWithSales", end: str = "2024-05-01T10:00:00.000Z"):
    """One item in the Finding API's list-wrapped JSON shape."""
    return {
        "title": [title],
        "sellingStatus": [{
            "currentPrice": [{"@currencyId": "USD", "__value__": price}],
            "sellingState": [state],
        }],
        "listingInfo": [{"endTime": [end]}],
    }


def _response(*items):
    return {
        "findCompletedItemsResponse": [{
            "ack": ["Success"],
            "searchResult": [{"@count": str(len(items)), "item": list(items)}],
        }]
    }


class TestBuildParams(unittest.TestCase):
    """findCompletedItems query parameters."""

    def test_filters_and_sort(self) -> None:
        params = dict(build_search_params("APP", "yeti mic"))
        self.assertEqual(params["OPERATION-NAME"], "findCompletedItems")
        self.assertEqual(params["SECURITY-APPNAME"], "APP")
        self.assertEqual(params["keywords"], "yeti mic")
        self.assertEqual(params["itemFilter(0).name"], "SoldItemsOnly")
        self.assertEqual(params["itemFilter(0).value"], "true")
        self.assertEqual(params["itemFilter(1).value(0)"], "AuctionWithBIN")
        self.assertEqual(params["itemFilter(1).value(1)"], "FixedPrice")
        self.assertEqual(params["sortOrder"], "EndTimeSoonest")
        self.assertEqual(params["paginationInput.entriesPerPage"], "20")

    def test_limit_sets_page_size(self) -> None:
        params = dict(build_search_params("APP", "q", 5))
        self.assertEqual(params["paginationInput.entriesPerPage"], "5")


class TestParseSoldItems(unittest.TestCase):
    """parse_sold_items filtering."""

    def test_keeps_only_sold(self) -> None:
        data = _response(
            _item("A", "80.00"),
            _item("B", "90.00", state="EndedWithoutSales"),
            _item("C", "100.00"),
        )
        items = parse_sold_items(data)
        self.assertEqual([i["title"] for i in items], ["A", "C"])
        self.assertEqual(items[0]["price"], Decimal("80.00"))
        self.assertEqual(items[0]["endTime"], "2024-05-01T10:00:00.000Z")

    def test_default_limit_is_three(self) -> None:
        data = _response(*[_item(str(n), "10") for n in range(6)])
        self.assertEqual(len(parse_sold_items(data)), 3)

    def test_explicit_limit(self) -> None:
        data = _response(*[_item(str(n), "10") for n in range(6)])
        self.assertEqual(len(parse_sold_items(data, 5)), 5)

    def test_drops_non_positive_prices(self) -> None:
        data = _response(_item("free", "0.0"), _item("ok", "12.50"))
        self.assertEqual([i["title"] for i in parse_sold_items(data)], ["ok"])

    def test_empty_response(self) -> None:
        self.assertEqual(parse_sold_items({}), [])


class TestSearchSoldItems(unittest.IsolatedAsyncioTestCase):
    """search_sold_items transport handling."""

    async def test_success(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            self.assertEqual(request.url.params["keywords"], "yeti")
            return httpx.Response(200, json=_response(_item("Yeti", "85.00")))

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            items = await search_sold_items("yeti", app_id="APP", http_client=client)
        self.assertEqual(items[0]["price"], Decimal("85.00"))

    async def test_missing_app_id(self) -> None:
        with patch("services.ebay_search.EBAY_APP_ID", None):
            with self.assertRaises(MissingAPIKeyError):
                await search_sold_items("yeti")

    async def test_non_200(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        async with httpx.AsyncClient(transport=transport) as client:
            with self.assertRaises(EbayAPIError) as ctx:
                await search_sold_items("yeti", app_id="APP", http_client=client)
        self.assertEqual(ctx.exception.details["status_code"], 503)

    async def test_transport_error(self) -> None:
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with self.assertRaises(EbayAPIError):
                await search_sold_items("yeti", app_id="APP", http_client=client)


if __name__ == "__main__":
    unittest.main()
