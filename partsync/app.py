"""Flask app serving the scrape endpoint and the sync control API.

Building the app wires the services together but starts nothing; the
scheduler is started by whoever runs the server (``partsync serve`` or
``python -m partsync.app``).
"""

from typing import Optional

from flask import Flask, jsonify

from partsync.api import api
from partsync.config import FLASK_DEBUG, FLASK_HOST, FLASK_PORT, STORE_PATH
from partsync.fetcher import CatalogFetcher
from partsync.models import to_iso, utc_now
from partsync.scheduler import UpdateScheduler
from partsync.scraper import PartsSiteScraper
from partsync.storage import CatalogRepository, SqliteStore
from partsync.updater import PartsUpdater

__all__ = ["create_app"]


def create_app(
    repository: Optional[CatalogRepository] = None,
    updater: Optional[PartsUpdater] = None,
    scheduler: Optional[UpdateScheduler] = None,
    scraper: Optional[PartsSiteScraper] = None,
) -> Flask:
    """Create the Flask app. Missing services are built from config defaults."""
    if repository is None:
        repository = updater.repository if updater is not None else CatalogRepository(SqliteStore(STORE_PATH))
    if updater is None:
        updater = PartsUpdater(repository, CatalogFetcher())
    if scheduler is None:
        scheduler = UpdateScheduler(updater, repository)
    if scraper is None:
        scraper = PartsSiteScraper()

    app = Flask(__name__)
    app.extensions["partsync"] = {
        "repository": repository,
        "updater": updater,
        "scheduler": scheduler,
        "scraper": scraper,
    }
    app.register_blueprint(api)

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "OK", "timestamp": to_iso(utc_now())})

    return app


if __name__ == "__main__":
    from partsync.logging_config import setup_logging

    setup_logging()

    app = create_app()
    app.extensions["partsync"]["scheduler"].start()
    app.run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG, use_reloader=False)
