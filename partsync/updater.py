"""Update orchestration: fetch every category, merge into the catalog, stamp the sync time.

A run walks the fixed category list sequentially. A category that fails to
fetch is recorded in ``UpdateResult.errors`` and skipped; the others still
merge, and each successful merge is saved immediately so partial progress
survives a later failure. Store errors are not swallowed.
"""

import logging
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from partsync.config import CATEGORY_PATHS, STAMP_FAILED_RUNS, UPDATE_INTERVAL_MS
from partsync.errors import UpdateInProgressError
from partsync.logging_config import get_logger, log_sync_event
from partsync.merger import merge_catalog
from partsync.models import UpdateResult, UpdateStatus, to_iso, utc_now
from partsync.storage import CatalogRepository

__all__ = ["PartsUpdater"]

logger = get_logger("updater")


class PartsUpdater:
    """Runs the fetch -> normalize -> merge -> persist pipeline over all categories.

    ``fetcher`` is anything with ``fetch_category(category) -> list[ScrapedRecord]``.
    At most one run executes at a time; a concurrent call raises
    :class:`UpdateInProgressError` instead of racing on the stored catalog.
    """

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"

    def __init__(
        self,
        repository: CatalogRepository,
        fetcher,
        categories: Optional[Sequence[str]] = None,
        update_interval_ms: int = UPDATE_INTERVAL_MS,
        clock: Callable[[], datetime] = utc_now,
        stamp_failed_runs: bool = STAMP_FAILED_RUNS,
    ):
        self.repository = repository
        self.fetcher = fetcher
        self.categories: List[str] = list(CATEGORY_PATHS if categories is None else categories)
        self.update_interval_ms = update_interval_ms
        self.clock = clock
        self.stamp_failed_runs = stamp_failed_runs
        self.state = self.IDLE
        self._run_lock = threading.Lock()

    @property
    def is_updating(self) -> bool:
        return self._run_lock.locked()

    def should_update(self, interval_ms: Optional[int] = None) -> bool:
        """True if there was never a sync or the last one is older than the interval.

        Args:
            interval_ms: Interval to check against (default: ``update_interval_ms``)
        """
        last_update = self.repository.load_last_update()
        if last_update is None:
            return True
        interval = interval_ms or self.update_interval_ms
        return self.clock() - last_update > timedelta(milliseconds=interval)

    def run_update(self) -> UpdateResult:
        """Sync every category once and return the aggregated result.

        Raises:
            UpdateInProgressError: If another run is in progress
            PersistenceError: If the store cannot be read or written
        """
        if not self._run_lock.acquire(blocking=False):
            raise UpdateInProgressError("A parts update is already running")

        try:
            self.state = self.RUNNING
            results = self._run_categories()
            self.state = self.COMPLETED_WITH_ERRORS if results.has_errors else self.COMPLETED
            return results
        except Exception:
            self.state = self.FAILED
            raise
        finally:
            self._run_lock.release()

    def force_update(self) -> UpdateResult:
        """Run an update now, regardless of whether one is due."""
        logger.info("Forced parts update requested")
        return self.run_update()

    def _run_categories(self) -> UpdateResult:
        results = UpdateResult()
        failed = 0
        started = time.monotonic()

        logger.info("Starting parts database update...")
        log_sync_event("update_start", {"categories": self.categories})

        total = len(self.categories)
        for idx, category in enumerate(self.categories, start=1):
            logger.info(f"[{idx}/{total}] {category}")
            try:
                records = self.fetcher.fetch_category(category)
            except Exception as e:
                failed += 1
                message = f"Error scraping {category}: {e}"
                results.errors.append(message)
                logger.error(f"  -> {message}")
                log_sync_event("category_error", {
                    "category": category,
                    "error": str(e),
                }, level=logging.WARNING)
                continue

            merge = merge_catalog(self.repository.load_catalog(), records)
            self.repository.save_catalog(merge.catalog)
            results.added += merge.added
            results.updated += merge.updated

            logger.info(f"  -> {len(records)} records: {merge.added} added, {merge.updated} updated")
            log_sync_event("category_complete", {
                "category": category,
                "records": len(records),
                "added": merge.added,
                "updated": merge.updated,
            }, level=logging.DEBUG)

        all_failed = total > 0 and failed == total
        if all_failed and not self.stamp_failed_runs:
            logger.warning("Every category failed; leaving the last-update timestamp untouched")
        else:
            self.repository.save_last_update(self.clock())

        duration = time.monotonic() - started
        logger.info(
            f"Parts update complete: {results.added} added, {results.updated} updated "
            f"({len(results.errors)} errors, {duration:.1f}s)"
        )
        log_sync_event("update_complete", {
            **results.to_dict(),
            "duration_seconds": round(duration, 3),
        })
        return results

    def get_update_status(self, interval_ms: Optional[int] = None) -> UpdateStatus:
        """Last sync time, catalog size and when the next sync falls due.

        Args:
            interval_ms: Interval the next due time is computed with (default: ``update_interval_ms``)
        """
        last_update = self.repository.load_last_update()
        if last_update is not None:
            next_due = last_update + timedelta(milliseconds=interval_ms or self.update_interval_ms)
        else:
            next_due = self.clock()

        return UpdateStatus(
            last_update=to_iso(last_update) if last_update else None,
            total_parts=len(self.repository.load_catalog()),
            next_update_due=to_iso(next_due),
        )
