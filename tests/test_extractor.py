# tests/test_extractor.py

"""Tests for marketplace listing extraction."""

import unittest
from decimal import Decimal

from bs4 import BeautifulSoup

from pipeline.extractor import (
    ListingRecord,
    extract_listing,
    find_listing_nodes,
    is_marketplace_listing,
    parse_price,
)

MARKETPLACE_URL = "https://www.facebook.com/marketplace/nyc/"


def _node(html: str):
    """Parse a fragment and return its first element."""
    return BeautifulSoup(html, "html.parser").find()


LISTING_HTML = """
<div role="article">
  <a href="/marketplace/item/123/">
    <img src="https://cdn.example.com/yeti.jpg">
    <span>$50</span>
    <span dir="auto">Yeti Microphone</span>
  </a>
</div>
"""


class TestParsePrice(unittest.TestCase):
    """parse_price behaviour."""

    def test_plain_dollars(self) -> None:
        self.assertEqual(parse_price("$50"), Decimal("50"))

    def test_thousands_and_cents(self) -> None:
        self.assertEqual(parse_price("Now $1,250.99 obo"), Decimal("1250.99"))

    def test_first_match_wins(self) -> None:
        self.assertEqual(parse_price("$20 was $40"), Decimal("20"))

    def test_no_price(self) -> None:
        self.assertIsNone(parse_price("Free to a good home"))


class TestIsMarketplaceListing(unittest.TestCase):
    """is_marketplace_listing gate."""

    def test_listing_on_marketplace_page(self) -> None:
        self.assertTrue(is_marketplace_listing(_node(LISTING_HTML), MARKETPLACE_URL))

    def test_wrong_page(self) -> None:
        """Same node outside /marketplace is ignored."""
        self.assertFalse(
            is_marketplace_listing(_node(LISTING_HTML), "https://www.facebook.com/groups/1")
        )

    def test_missing_image(self) -> None:
        node = _node('<div><span dir="auto">Yeti Microphone</span> $50</div>')
        self.assertFalse(is_marketplace_listing(node, MARKETPLACE_URL))

    def test_price_testid_counts_as_price(self) -> None:
        node = _node(
            '<div><img src="a.jpg"><span data-testid="listing-price">Free</span></div>'
        )
        self.assertTrue(is_marketplace_listing(node, MARKETPLACE_URL))

    def test_none_node(self) -> None:
        self.assertFalse(is_marketplace_listing(None, MARKETPLACE_URL))


class TestExtractListing(unittest.TestCase):
    """extract_listing field extraction."""

    def test_full_listing(self) -> None:
        record = extract_listing(_node(LISTING_HTML))
        self.assertEqual(
            record,
            ListingRecord(
                title="Yeti Microphone",
                price=Decimal("50"),
                image_url="https://cdn.example.com/yeti.jpg",
                link="/marketplace/item/123/",
            ),
        )

    def test_title_selector_order(self) -> None:
        """Short span text is skipped in favour of the next selector."""
        node = _node(
            '<div><span dir="auto">$5</span><h3>Nintendo Switch OLED</h3>'
            '<img data-src="lazy.jpg"> $5</div>'
        )
        record = extract_listing(node)
        self.assertEqual(record.title, "Nintendo Switch OLED")
        self.assertEqual(record.image_url, "lazy.jpg")
        self.assertIsNone(record.link)

    def test_missing_title_skipped(self) -> None:
        node = _node('<div><img src="a.jpg"><span>$50</span></div>')
        self.assertIsNone(extract_listing(node))

    def test_zero_price_skipped(self) -> None:
        node = _node('<div><img src="a.jpg"><h3>Free couch pickup</h3> $0</div>')
        self.assertIsNone(extract_listing(node))

    def test_missing_price_skipped(self) -> None:
        node = _node('<div><img src="a.jpg"><h3>Vintage lamp, make offer</h3></div>')
        self.assertIsNone(extract_listing(node))


class TestFindListingNodes(unittest.TestCase):
    """find_listing_nodes candidate selection."""

    def test_document_order_no_duplicates(self) -> None:
        soup = BeautifulSoup(
            '<div role="article" id="a"></div>'
            '<a role="link" id="b" href="/x"></a>'
            '<div role="article" id="c"></div>'
            '<div id="ignored"></div>',
            "html.parser",
        )
        ids = [node.get("id") for node in find_listing_nodes(soup)]
        self.assertEqual(ids, ["a", "b", "c"])


if __name__ == "__main__":
    unittest.main()
