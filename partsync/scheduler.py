"""Periodic parts updates with notifications for a status panel.

The scheduler owns a daemon timer thread. Nothing happens until ``start()``
is called; constructing a scheduler performs no I/O.
"""

import threading
from datetime import timedelta
from typing import Callable, List, Optional

from partsync.config import MAX_UPDATE_INTERVAL_MS, UPDATE_INTERVAL_MS
from partsync.errors import UpdateInProgressError
from partsync.logging_config import get_logger, log_sync_event
from partsync.models import Notification, ScheduleInfo, UpdateResult, to_iso
from partsync.storage import CatalogRepository
from partsync.updater import PartsUpdater

__all__ = ["UpdateScheduler", "UpdateListener", "validate_interval"]

logger = get_logger("scheduler")

UpdateListener = Callable[[UpdateResult], None]


def validate_interval(interval_ms: int) -> int:
    """Return ``interval_ms`` if the timer thread can wait that long.

    Raises:
        ValueError: If the interval is not positive or exceeds the platform wait limit
    """
    if interval_ms <= 0:
        raise ValueError(f"Interval must be positive, got {interval_ms}")
    if interval_ms > MAX_UPDATE_INTERVAL_MS or interval_ms / 1000 > threading.TIMEOUT_MAX:
        raise ValueError(f"Interval too large, got {interval_ms} ms")
    return interval_ms


class UpdateScheduler:
    """Runs :class:`PartsUpdater` on a timer.

    Usage:
        scheduler = UpdateScheduler(updater)
        scheduler.add_listener(lambda result: print(result.added))
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(
        self,
        updater: PartsUpdater,
        repository: Optional[CatalogRepository] = None,
        interval_ms: Optional[int] = None,
    ):
        self.updater = updater
        self.repository = repository or updater.repository
        self.custom_interval_ms = validate_interval(interval_ms) if interval_ms is not None else None
        self._listeners: List[UpdateListener] = []
        self._state_lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._is_running = False

    @property
    def interval_ms(self) -> int:
        """Effective interval: the custom one if set, else 24h."""
        return self.custom_interval_ms or UPDATE_INTERVAL_MS

    @property
    def is_running(self) -> bool:
        return self._is_running

    # ---------- lifecycle ----------

    def start(self) -> None:
        """Arm the timer and run an immediate due-check on the timer thread."""
        with self._state_lock:
            if self._is_running:
                logger.warning("Update scheduler is already running")
                return

            interval = self.interval_ms
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run_loop,
                args=(stop_event, interval),
                name="partsync-scheduler",
                daemon=True,
            )
            self._stop_event = stop_event
            self._thread = thread
            self._is_running = True

        logger.info(f"Starting update scheduler with {interval / 1000 / 60 / 60:g}h interval")
        thread.start()

    def stop(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        """Disarm the timer. A run already in progress is not cancelled.

        Args:
            wait: Block until the timer thread exits (lets an in-flight run finish)
            timeout: Maximum seconds to wait
        """
        with self._state_lock:
            if not self._is_running:
                return
            thread = self._thread
            if self._stop_event is not None:
                self._stop_event.set()
            self._stop_event = None
            self._thread = None
            self._is_running = False
        logger.info("Update scheduler stopped")

        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def update_interval(self, new_interval_ms: int) -> None:
        """Change the interval; a running scheduler is restarted.

        The restart performs an immediate due-check under the new interval.
        """
        self.custom_interval_ms = validate_interval(new_interval_ms)

        if self._is_running:
            self.stop()
            self.start()

    def _run_loop(self, stop_event: threading.Event, interval_ms: int) -> None:
        self._initial_check()
        while not stop_event.wait(interval_ms / 1000):
            self.tick()

    # ---------- runs ----------

    def _initial_check(self) -> None:
        try:
            if not self.updater.should_update(self.interval_ms):
                return
            logger.info("Running initial parts update check...")
            result = self.updater.run_update()
            if result.has_changes:
                logger.info(f"Initial update completed: {result.added} added, {result.updated} updated")
                self._notify(result)
        except UpdateInProgressError:
            logger.info("Initial update check skipped: an update is already running")
        except Exception:
            logger.warning("Initial update check failed", exc_info=True)

    def tick(self) -> Optional[UpdateResult]:
        """One timer tick: run the updater if due. Never raises.

        Returns:
            The run's result, or None if nothing ran
        """
        try:
            log_sync_event("scheduler_tick", {"interval_ms": self.interval_ms})
            if not self.updater.should_update(self.interval_ms):
                logger.debug("Parts are up to date, skipping scheduled update")
                return None

            logger.info("Scheduled parts update starting...")
            result = self.updater.run_update()
            logger.info(f"Scheduled update completed: {result.added} added, {result.updated} updated")
            if result.has_errors:
                logger.warning(f"Update completed with errors: {result.errors}")

            self._notify(result)
            return result

        except UpdateInProgressError:
            logger.info("Scheduled update skipped: an update is already running")
        except Exception:
            logger.exception("Scheduled update failed")
        return None

    # ---------- notifications & listeners ----------

    def add_listener(self, listener: UpdateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: UpdateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def record_notification(self, result: UpdateResult) -> Notification:
        """Prepend a notification for ``result`` to the stored list (capped)."""
        notification = Notification.from_result(result, self.updater.clock())
        self.repository.push_notification(notification)
        return notification

    def _notify(self, result: UpdateResult) -> None:
        self.record_notification(result)
        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception:
                logger.exception("Update listener raised")

    def get_recent_notifications(self) -> List[Notification]:
        return self.repository.load_notifications()

    def clear_notifications(self) -> None:
        self.repository.clear_notifications()

    def get_schedule_info(self) -> ScheduleInfo:
        """Running state, interval and projected next update (None before the first sync)."""
        interval = self.interval_ms
        last_update = self.repository.load_last_update()
        next_update = None
        if last_update is not None:
            next_update = to_iso(last_update + timedelta(milliseconds=interval))

        return ScheduleInfo(is_running=self._is_running, interval=interval, next_update=next_update)
