"""HTTP client for the category scrape endpoint."""

from typing import List, Optional
from urllib.parse import quote

import requests  # type: ignore[import-untyped]

from partsync.config import API_BASE_URL, HEADERS, REQUEST_TIMEOUT
from partsync.errors import FetchError
from partsync.logging_config import get_logger
from partsync.models import ScrapedRecord
from partsync.normalizer import parse_scraped_record

__all__ = ["CatalogFetcher", "create_session"]

logger = get_logger("fetcher")


def create_session() -> requests.Session:
    """Create a requests Session with the default headers and keep-alive."""
    session = requests.Session()
    session.headers.update(HEADERS)
    session.headers.setdefault("Accept-Encoding", "gzip, deflate")
    return session


class CatalogFetcher:
    """Fetches the scraped records of one category from ``GET /api/scrape/{category}``.

    There is no retry here; a failure surfaces as :class:`FetchError` and is
    handled by the caller.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = create_session()
        return self._session

    def category_url(self, category: str) -> str:
        return f"{self.base_url}/api/scrape/{quote(category.strip('/'), safe='/')}"

    def fetch_category(self, category: str) -> List[ScrapedRecord]:
        """Return the scraped records for ``category``.

        Raises:
            FetchError: On network failure, timeout, non-2xx status or a malformed payload
        """
        url = self.category_url(category)
        logger.debug(f"GET {url}")

        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise FetchError(f"Timed out after {self.timeout}s", category=category) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Request failed: {e}", category=category) from e

        if not 200 <= resp.status_code < 300:
            reason = resp.reason or "error"
            raise FetchError(
                f"Failed to scrape category: {resp.status_code} {reason}",
                category=category,
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise FetchError("Response is not valid JSON", category=category) from e

        if not isinstance(payload, list):
            raise FetchError(
                f"Expected a JSON array, got {type(payload).__name__}", category=category
            )

        records: List[ScrapedRecord] = []
        for index, item in enumerate(payload):
            try:
                records.append(parse_scraped_record(item))
            except ValueError as e:
                raise FetchError(f"Malformed record at index {index}: {e}", category=category) from e

        logger.info(f"Fetched {len(records)} records for {category}")
        return records

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "CatalogFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
