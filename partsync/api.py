"""API endpoints for the parts catalog sync.

- ``GET /api/scrape/<category>`` serves scraped records for one category
  (the endpoint the fetcher consumes); ``GET /api/scrape-all`` scrapes
  every configured category.
- ``POST /api/parts/update`` is the manual "force update" trigger.
- The remaining endpoints expose catalog, status, schedule and notifications
  for a status panel.
"""

import math
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, current_app, jsonify, request

from partsync.errors import FetchError, SyncError, UpdateInProgressError
from partsync.logging_config import get_logger

__all__ = ["api", "get_services"]

logger = get_logger("api")

api = Blueprint("api", __name__, url_prefix="/api")


def get_services() -> Dict[str, Any]:
    """Services registered on the app by ``create_app``."""
    return current_app.extensions["partsync"]


def _error(message: str, status: int) -> Tuple[Response, int]:
    return jsonify({"error": message}), status


@api.route("/scrape/<path:category>", methods=["GET"])
def scrape_category(category: str):
    """Scrape one category of the parts site and return its records."""
    scraper = get_services()["scraper"]
    try:
        records = scraper.scrape_category(category)
    except FetchError as e:
        logger.error(f"Scraping error for {category}: {e}")
        return _error(str(e), 502)
    return jsonify([r.to_dict() for r in records])


@api.route("/scrape-all", methods=["GET"])
def scrape_all():
    """Scrape every configured category. Categories that fail are skipped."""
    records = get_services()["scraper"].scrape_all_categories()
    return jsonify({
        "success": True,
        "count": len(records),
        "data": [r.to_dict() for r in records],
    })


@api.route("/parts", methods=["GET"])
def list_parts():
    repository = get_services()["repository"]
    return jsonify([p.to_dict() for p in repository.load_catalog()])


@api.route("/parts/status", methods=["GET"])
def parts_status():
    services = get_services()
    status = services["updater"].get_update_status(services["scheduler"].interval_ms)
    return jsonify(status.to_dict())


@api.route("/parts/update", methods=["POST"])
def force_update():
    """Run an update now. Returns the UpdateResult; 409 if one is already running."""
    services = get_services()
    try:
        result = services["updater"].force_update()
    except UpdateInProgressError as e:
        return _error(str(e), 409)
    except SyncError as e:
        logger.error(f"Manual update failed: {e}")
        return _error(str(e), 500)

    services["scheduler"].record_notification(result)
    return jsonify(result.to_dict())


@api.route("/schedule", methods=["GET"])
def schedule_info():
    return jsonify(get_services()["scheduler"].get_schedule_info().to_dict())


@api.route("/schedule", methods=["PUT"])
def update_schedule():
    """Change the update interval. Body: ``{"interval": <milliseconds>}``."""
    data = request.get_json(silent=True)
    interval = data.get("interval") if isinstance(data, dict) else None
    if (
        isinstance(interval, bool)
        or not isinstance(interval, (int, float))
        or not math.isfinite(interval)
        or int(interval) <= 0
    ):
        return _error("'interval' must be a positive number of milliseconds", 400)

    scheduler = get_services()["scheduler"]
    try:
        scheduler.update_interval(int(interval))
    except ValueError as e:
        return _error(str(e), 400)
    return jsonify(scheduler.get_schedule_info().to_dict())


@api.route("/notifications", methods=["GET"])
def list_notifications():
    scheduler = get_services()["scheduler"]
    return jsonify([n.to_dict() for n in scheduler.get_recent_notifications()])


@api.route("/notifications", methods=["DELETE"])
def clear_notifications():
    get_services()["scheduler"].clear_notifications()
    return jsonify({"cleared": True})
