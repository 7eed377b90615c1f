"""Shared test fixtures for the partsync test suite."""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from partsync.errors import FetchError
from partsync.models import ScrapedRecord, Specification
from partsync.storage import CatalogRepository, MemoryStore

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class StubFetcher:
    """Serves canned records per category; an Exception value is raised instead."""

    def __init__(self, responses: Optional[Dict[str, object]] = None):
        self.responses: Dict[str, object] = dict(responses or {})
        self.calls: List[str] = []

    def fetch_category(self, category: str) -> List[ScrapedRecord]:
        self.calls.append(category)
        response = self.responses.get(category, [])
        if isinstance(response, Exception):
            raise response
        return list(response)


def make_record(sku: str, name: str = "", category: str = "motion", **kwargs) -> ScrapedRecord:
    """Build a ScrapedRecord with sensible defaults."""
    return ScrapedRecord(
        sku=sku,
        name=name or f"Part {sku}",
        category=category,
        description=kwargs.pop("description", f"Description of {sku}"),
        specifications=kwargs.pop("specifications", [Specification("SKU", [sku])]),
        image_url=kwargs.pop("image_url", f"https://img.example.com/{sku}.jpg"),
        **kwargs,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def repository(store):
    return CatalogRepository(store)


@pytest.fixture
def fetch_failure():
    """A FetchError as raised for an unreachable category."""
    return FetchError("Failed to scrape category: 500 Internal Server Error", status_code=500)
