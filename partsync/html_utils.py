"""HTML parsing and extraction utilities for the parts site."""

import re
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urljoin, urlparse

from bs4 import BeautifulSoup, Tag

__all__ = [
    "extract_product_cards",
    "extract_description",
    "extract_specifications",
    "extract_next_page_url",
    "extract_current_page",
    "parse_price",
    "clean_sku",
]

PRODUCT_CARD_SELECTOR = ".product-item, [data-product], .product-card"
NAME_SELECTOR = ".product-name, .title, h3, h4"
SKU_SELECTOR = ".sku, .product-sku, [data-sku]"
PRICE_SELECTOR = ".price, .product-price"
DESCRIPTION_SELECTOR = ".product-description, .description, .product-details"
SPECS_SELECTOR = ".specifications, .product-specs, .specs-table"

SKU_PREFIX_RE = re.compile(r"^\s*SKU:?\s*", re.IGNORECASE)
PRICE_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)")


def clean_sku(text: str) -> str:
    """Strip a leading 'SKU:' label and surrounding whitespace."""
    return SKU_PREFIX_RE.sub("", text).strip()


def parse_price(text: Optional[str]) -> Optional[float]:
    """Parse the first number in a price string like '$12.99' or '1,299.00 USD'."""
    if not text:
        return None
    match = PRICE_RE.search(text)
    if not match:
        return None
    try:
        return float(match.group(1).replace(",", ""))
    except ValueError:
        return None


def _image_src(img: Optional[Tag], page_url: str) -> Optional[str]:
    if img is None:
        return None
    src = img.get("src") or img.get("data-src")
    if not src or not isinstance(src, str):
        return None
    return urljoin(page_url, src)


def extract_product_cards(soup: BeautifulSoup, page_url: str) -> List[Dict[str, Any]]:
    """Extract basic product info from every product card on a category page.

    Cards without a name or SKU are skipped. URLs are made absolute against
    ``page_url``.
    """
    products: List[Dict[str, Any]] = []
    seen_skus = set()

    for card in soup.select(PRODUCT_CARD_SELECTOR):
        name_el = card.select_one(NAME_SELECTOR)
        sku_el = card.select_one(SKU_SELECTOR)
        if not name_el or not sku_el:
            continue

        sku_text = sku_el.get_text(strip=True)
        if not sku_text and isinstance(sku_el.get("data-sku"), str):
            sku_text = sku_el["data-sku"]
        sku = clean_sku(sku_text)
        name = name_el.get_text(strip=True)
        if not sku or not name or sku in seen_skus:
            continue
        seen_skus.add(sku)

        price_el = card.select_one(PRICE_SELECTOR)
        link_el = card.select_one("a[href]")
        href = link_el.get("href") if link_el else None

        products.append({
            "name": name,
            "sku": sku,
            "price": parse_price(price_el.get_text(strip=True)) if price_el else None,
            "imageUrl": _image_src(card.select_one("img"), page_url),
            "productUrl": urljoin(page_url, href) if isinstance(href, str) else None,
        })

    return products


def extract_description(soup: BeautifulSoup, fallback: str = "") -> str:
    """Product description text from a detail page, or ``fallback`` if absent."""
    desc_el = soup.select_one(DESCRIPTION_SELECTOR)
    if not desc_el:
        return fallback
    text = " ".join(desc_el.stripped_strings)
    return text or fallback


def extract_specifications(soup: BeautifulSoup) -> List[Dict[str, Any]]:
    """Attribute/values pairs from the specifications table of a detail page.

    Supports table rows (``<tr><td>label</td><td>value</td></tr>``),
    ``.spec-row`` blocks and ``<dl><dt><dd>`` lists. Multiple values in
    a cell can be separated by commas or line breaks.
    """
    container = soup.select_one(SPECS_SELECTOR)
    if not container:
        return []

    specs: List[Dict[str, Any]] = []
    for row in container.select("tr, .spec-row"):
        cells = row.select("td, th, .spec-label, .spec-value")
        if len(cells) < 2:
            continue
        attribute = cells[0].get_text(strip=True).rstrip(":")
        values = _split_values(cells[1])
        if attribute and values:
            specs.append({"attribute": attribute, "values": values})

    for dl in container.find_all("dl"):
        for dt, dd in zip(dl.find_all("dt"), dl.find_all("dd")):
            attribute = dt.get_text(strip=True).rstrip(":")
            values = _split_values(dd)
            if attribute and values:
                specs.append({"attribute": attribute, "values": values})

    return specs


def _split_values(cell: Tag) -> List[str]:
    parts = []
    for chunk in cell.stripped_strings:
        parts.extend(v.strip() for v in chunk.split(","))
    return [p for p in parts if p]


# =============================================================================
# Pagination Extraction
# =============================================================================

def extract_next_page_url(soup: BeautifulSoup, current_url: str) -> Optional[str]:
    """Extract the next page URL from a category listing page.

    Looks for:
    1. <link rel="next" href="...">
    2. Pagination links (rel=next, .next, or ?page=N+1)

    Returns the full URL of the next page, or None if no next page.
    """
    next_link = soup.find("link", rel="next")
    if next_link and next_link.get("href"):
        return urljoin(current_url, next_link["href"])

    pagination = soup.select_one("nav.pagination, div.pagination, ul.pagination, .pagination")
    if pagination:
        next_btn = pagination.select_one('a[rel="next"], a.next, li.next a, .pagination-item--next a')
        if next_btn and next_btn.get("href"):
            return urljoin(current_url, next_btn["href"])

        current_page = extract_current_page(current_url)
        next_page_link = pagination.select_one(f'a[href*="page={current_page + 1}"]')
        if next_page_link:
            return urljoin(current_url, next_page_link["href"])

    return None


def extract_current_page(url: str) -> int:
    """Extract the current page number from a URL. Returns 1 if not found."""
    params = parse_qs(urlparse(url).query)
    page_values = params.get("page", ["1"])
    try:
        return int(page_values[0])
    except (ValueError, IndexError):
        return 1
