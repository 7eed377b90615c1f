"""Scraper for the parts site: category listing pages -> ScrapedRecord.

This is the backend behind ``GET /api/scrape/<category>``. It parses server
rendered HTML only; pages that need JavaScript to render will yield no
products.
"""

import random
import time
from typing import Any, Dict, List, Optional

import requests  # type: ignore[import-untyped]
from bs4 import BeautifulSoup

from partsync.config import (
    CATEGORY_DELAY,
    CATEGORY_PATHS,
    DELAY_MAX,
    DELAY_MIN,
    MAX_PAGES_PER_CATEGORY,
    MAX_PRODUCTS_PER_CATEGORY,
    REQUEST_TIMEOUT,
    SOURCE_BASE_URL,
)
from partsync.errors import FetchError
from partsync.fetcher import create_session
from partsync.html_utils import (
    extract_description,
    extract_next_page_url,
    extract_product_cards,
    extract_specifications,
)
from partsync.logging_config import get_logger, log_sync_event
from partsync.models import ScrapedRecord
from partsync.normalizer import parse_scraped_record

__all__ = ["PartsSiteScraper"]

logger = get_logger("scraper")


class PartsSiteScraper:
    """Scrapes product records from the parts site's category pages."""

    def __init__(
        self,
        base_url: str = SOURCE_BASE_URL,
        session: Optional[requests.Session] = None,
        max_products: int = MAX_PRODUCTS_PER_CATEGORY,
        max_pages: int = MAX_PAGES_PER_CATEGORY,
        delay_min: float = DELAY_MIN,
        delay_max: float = DELAY_MAX,
        timeout: float = REQUEST_TIMEOUT,
        category_delay: float = CATEGORY_DELAY,
    ):
        self.base_url = base_url.rstrip("/")
        self.category_delay = category_delay
        self.session = session or create_session()
        self.max_products = max_products
        self.max_pages = max_pages
        self.delay_min = delay_min
        self.delay_max = delay_max
        self.timeout = timeout

    def fetch_html(self, url: str) -> str:
        """GET a page and return its HTML, then sleep a polite random delay.

        Raises:
            FetchError: If the request fails or returns a non-2xx status
        """
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise FetchError(f"HTTP error {status} for {url}", status_code=status) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Failed to fetch {url}: {e}") from e

        if self.delay_max > 0:
            time.sleep(random.uniform(self.delay_min, self.delay_max))
        return str(resp.text)

    def scrape_category(self, category_path: str) -> List[ScrapedRecord]:
        """Scrape up to ``max_products`` products from a category, following pagination.

        Raises:
            FetchError: If the first listing page cannot be fetched
        """
        category_path = category_path.strip("/")
        category = category_path.split("/")[0] or "Unknown"
        current_url: Optional[str] = f"{self.base_url}/{category_path}"
        logger.info(f"Scraping category {category_path}: {current_url}")

        cards: List[Dict[str, Any]] = []
        seen_skus = set()
        page_num = 0
        while current_url and page_num < self.max_pages and len(cards) < self.max_products:
            page_num += 1
            try:
                html = self.fetch_html(current_url)
            except FetchError as e:
                if page_num == 1:
                    e.category = category_path
                    raise
                logger.warning(f"  Stopping pagination at page {page_num}: {e}")
                break

            soup = BeautifulSoup(html, "html.parser")
            page_cards = extract_product_cards(soup, current_url)
            logger.info(f"  Page {page_num}: {len(page_cards)} products")
            for card in page_cards:
                if card["sku"] not in seen_skus:
                    seen_skus.add(card["sku"])
                    cards.append(card)

            next_url = extract_next_page_url(soup, current_url)
            current_url = next_url if next_url != current_url else None

        records: List[ScrapedRecord] = []
        for card in cards[: self.max_products]:
            details = self._scrape_details(card)
            details["category"] = category
            records.append(parse_scraped_record(details))

        log_sync_event("category_scraped", {
            "category": category_path,
            "pages": page_num,
            "products": len(records),
        })
        return records

    def _scrape_details(self, card: Dict[str, Any]) -> Dict[str, Any]:
        """Enrich card info from the product page; falls back to the card on failure."""
        basic = dict(card)
        basic.setdefault("description", card["name"])
        basic.setdefault("specifications", [{"attribute": "SKU", "values": [card["sku"]]}])

        product_url = card.get("productUrl")
        if not product_url:
            return basic

        try:
            html = self.fetch_html(product_url)
        except FetchError as e:
            logger.warning(f"  Error getting details for {card['sku']}: {e}")
            return basic

        soup = BeautifulSoup(html, "html.parser")
        specs = extract_specifications(soup)
        return {
            **card,
            "description": extract_description(soup, fallback=card["name"]),
            "specifications": specs or basic["specifications"],
        }

    def scrape_all_categories(self, categories: Optional[List[str]] = None) -> List[ScrapedRecord]:
        """Scrape every category, logging (not raising) per-category failures."""
        all_records: List[ScrapedRecord] = []
        for idx, category in enumerate(categories or CATEGORY_PATHS):
            if idx and self.category_delay > 0:
                time.sleep(self.category_delay)
            try:
                all_records.extend(self.scrape_category(category))
            except FetchError as e:
                logger.error(f"Failed to scrape {category}: {e}")
        return all_records
