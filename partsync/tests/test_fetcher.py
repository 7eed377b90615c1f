"""Tests for the scrape-endpoint HTTP client (requests session mocked)."""

from unittest.mock import MagicMock

import pytest
import requests

from partsync.errors import FetchError
from partsync.fetcher import CatalogFetcher


def _response(status_code=200, payload=None, reason="OK", json_error=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.reason = reason
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = payload
    return resp


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def fetcher(session):
    return CatalogFetcher(base_url="http://scraper.test/", timeout=5, session=session)


class TestCategoryUrl:
    def test_url_keeps_path_separators(self, fetcher):
        assert fetcher.category_url("motion/motors-servos") == "http://scraper.test/api/scrape/motion/motors-servos"

    def test_url_quotes_unsafe_characters(self, fetcher):
        assert fetcher.category_url("/hardware/nuts & bolts/") == "http://scraper.test/api/scrape/hardware/nuts%20%26%20bolts"


class TestFetchCategory:
    def test_success(self, fetcher, session):
        session.get.return_value = _response(payload=[
            {"sku": "A", "name": "Motor", "category": "motion", "price": 44.99},
            {"sku": "B", "name": "Servo", "imageUrl": "servo.jpg"},
        ])

        records = fetcher.fetch_category("motion/motors-servos")

        session.get.assert_called_once_with("http://scraper.test/api/scrape/motion/motors-servos", timeout=5)
        assert [r.sku for r in records] == ["A", "B"]
        assert records[0].price == 44.99
        assert records[1].image_url == "servo.jpg"

    def test_empty_array(self, fetcher, session):
        session.get.return_value = _response(payload=[])
        assert fetcher.fetch_category("hardware/fasteners") == []

    def test_non_2xx_status(self, fetcher, session):
        session.get.return_value = _response(status_code=500, reason="Internal Server Error")

        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch_category("motion/wheels-hubs")

        assert str(exc_info.value) == "Failed to scrape category: 500 Internal Server Error"
        assert exc_info.value.status_code == 500
        assert exc_info.value.category == "motion/wheels-hubs"

    def test_timeout(self, fetcher, session):
        session.get.side_effect = requests.exceptions.ReadTimeout("read timed out")

        with pytest.raises(FetchError, match="Timed out after 5s"):
            fetcher.fetch_category("motion/wheels-hubs")

    def test_connection_error(self, fetcher, session):
        session.get.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(FetchError, match="Request failed"):
            fetcher.fetch_category("motion/wheels-hubs")

    def test_invalid_json(self, fetcher, session):
        session.get.return_value = _response(json_error=ValueError("bad json"))

        with pytest.raises(FetchError, match="not valid JSON"):
            fetcher.fetch_category("motion/wheels-hubs")

    def test_payload_must_be_array(self, fetcher, session):
        session.get.return_value = _response(payload={"products": []})

        with pytest.raises(FetchError, match="Expected a JSON array, got dict"):
            fetcher.fetch_category("motion/wheels-hubs")

    def test_malformed_record(self, fetcher, session):
        session.get.return_value = _response(payload=[{"sku": "A"}, {"name": "no sku"}])

        with pytest.raises(FetchError, match="Malformed record at index 1"):
            fetcher.fetch_category("motion/wheels-hubs")


class TestSessionLifecycle:
    def test_close_releases_session(self, fetcher, session):
        with fetcher:
            pass
        session.close.assert_called_once()

    def test_default_session_is_created_lazily(self):
        fetcher = CatalogFetcher(base_url="http://scraper.test")
        session = fetcher.session
        assert isinstance(session, requests.Session)
        assert fetcher.session is session
        assert "User-Agent" in session.headers
        fetcher.close()
