"""Configuration and constants for the parts catalog sync."""

import os
from typing import List

from dotenv import load_dotenv

# Values below may be overridden from a .env file in the working directory
load_dotenv()

__all__ = [
    "API_BASE_URL",
    "SOURCE_BASE_URL",
    "CATEGORY_PATHS",
    "HEADERS",
    "REQUEST_TIMEOUT",
    "UPDATE_INTERVAL_MS",
    "MAX_UPDATE_INTERVAL_MS",
    "MAX_NOTIFICATIONS",
    "NOTIFICATION_ERROR_PREVIEW",
    "NOTIFICATION_TYPE",
    "STAMP_FAILED_RUNS",
    "STORE_PATH",
    "CATALOG_KEY",
    "LAST_UPDATE_KEY",
    "NOTIFICATIONS_KEY",
    "MAX_PRODUCTS_PER_CATEGORY",
    "MAX_PAGES_PER_CATEGORY",
    "DELAY_MIN",
    "DELAY_MAX",
    "CATEGORY_DELAY",
    "FLASK_HOST",
    "FLASK_PORT",
    "FLASK_DEBUG",
]


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("1", "true", "yes")


# Scrape endpoint serving ScrapedRecord JSON (GET {API_BASE_URL}/api/scrape/{category})
API_BASE_URL = os.getenv("PARTSYNC_API_URL", "http://localhost:3001")

# Parts site crawled by the scraper backend
SOURCE_BASE_URL = os.getenv("PARTSYNC_SOURCE_URL", "https://www.gobilda.com")

# Categories synced on every run. Adding one requires a code change.
CATEGORY_PATHS: List[str] = [
    "motion/motors-servos",
    "motion/wheels-hubs",
    "structure/channels-brackets",
    "motion/bearings-shafts",
    "hardware/fasteners",
]

HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "application/json, text/html;q=0.9",
}

# Per-request deadline in seconds
REQUEST_TIMEOUT = float(os.getenv("PARTSYNC_REQUEST_TIMEOUT", "30"))

# Due-ness interval (milliseconds)
UPDATE_INTERVAL_MS = 24 * 60 * 60 * 1000
MAX_UPDATE_INTERVAL_MS = 365 * UPDATE_INTERVAL_MS

# Notifications
MAX_NOTIFICATIONS = 10
NOTIFICATION_ERROR_PREVIEW = 3
NOTIFICATION_TYPE = "parts-update"

# When False, a run in which every category failed does not advance the due-timer
STAMP_FAILED_RUNS = _env_bool("PARTSYNC_STAMP_FAILED_RUNS", True)

# Storage
STORE_PATH = os.getenv("PARTSYNC_STORE_PATH", "data/partsync.db")
CATALOG_KEY = "gobilda_parts"
LAST_UPDATE_KEY = "lastPartsUpdate"
NOTIFICATIONS_KEY = "update_notifications"

# Scraper limits
MAX_PRODUCTS_PER_CATEGORY = 20
MAX_PAGES_PER_CATEGORY = int(os.getenv("PARTSYNC_MAX_PAGES", "5"))

# Delay between scraper requests (in seconds)
DELAY_MIN = 0.5
DELAY_MAX = 1.5
CATEGORY_DELAY = 2.0

# Flask app settings (env overrides; debug off by default)
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "3001")))
FLASK_DEBUG = _env_bool("FLASK_DEBUG", False)
