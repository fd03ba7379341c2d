"""
Listing Extractor - turns a raw marketplace feed node into a ListingRecord

Feed nodes are BeautifulSoup elements. A node that is not a listing, or
that is missing a title or a positive price, yields None; that is a normal
skip, not an error.
"""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, List

from bs4 import BeautifulSoup, Tag

from config import PIPELINE

logger = logging.getLogger(__name__)

PRICE_PATTERN = re.compile(r'\$[\d,]+(?:\.\d{2})?')

TITLE_SELECTORS = [
    'span[dir="auto"]',
    'div[dir="auto"]',
    'h3',
    '.x1i10hfl',
]

LISTING_NODE_SELECTORS = 'div[role="article"], a[role="link"]'


@dataclass(frozen=True)
class ListingRecord:
    """One extracted listing. Discarded after a single enrichment attempt."""
    title: str
    price: Decimal
    image_url: Optional[str] = None
    link: Optional[str] = None


def parse_price(text: str) -> Optional[Decimal]:
    """First "$1,234.56"-style token in text, or None."""
    match = PRICE_PATTERN.search(text or "")
    if not match:
        return None
    try:
        return Decimal(match.group(0).replace('$', '').replace(',', ''))
    except InvalidOperation:
        return None


def node_text(node: Tag) -> str:
    return node.get_text()


def node_link(node: Tag) -> Optional[str]:
    """href of the first link inside (or on) the node."""
    if node.name == 'a' and node.get('href'):
        return node['href']
    anchor = node.select_one('a[href]')
    return anchor['href'] if anchor else None


def is_marketplace_listing(node: Optional[Tag], page_url: str) -> bool:
    """Price-like token + an image + a marketplace page."""
    if node is None:
        return False

    has_price = node.select_one('[data-testid*="price"]') is not None \
        or PRICE_PATTERN.search(node_text(node)) is not None
    has_image = node.select_one('img') is not None
    in_marketplace = '/marketplace' in (page_url or '')

    return has_price and has_image and in_marketplace


def extract_title(node: Tag) -> Optional[str]:
    for selector in TITLE_SELECTORS:
        element = node.select_one(selector)
        if element is None:
            continue
        text = element.get_text().strip()
        if len(text) > PIPELINE.title_min_length:
            return text
    return None


def extract_image_url(node: Tag) -> Optional[str]:
    img = node.select_one('img')
    if img is None:
        return None
    return img.get('src') or img.get('data-src') or None


def extract_listing(node: Tag) -> Optional[ListingRecord]:
    """
    Pull title, price, image and link out of a listing node.

    Returns None (ExtractionSkipped) when the title is missing or the
    price is not positive.
    """
    title = extract_title(node)
    if not title:
        logger.debug("[EXTRACT] Skipped node: no title")
        return None

    price = parse_price(node_text(node))
    if price is None or price <= 0:
        logger.debug(f"[EXTRACT] Skipped '{title[:40]}': no usable price")
        return None

    return ListingRecord(
        title=title,
        price=price,
        image_url=extract_image_url(node),
        link=node_link(node),
    )


def find_listing_nodes(soup: BeautifulSoup) -> List[Tag]:
    """Candidate listing nodes, document order, each node at most once."""
    nodes = []
    seen = set()
    for node in soup.select(LISTING_NODE_SELECTORS):
        if id(node) in seen:
            continue
        seen.add(id(node))
        nodes.append(node)
    return nodes
