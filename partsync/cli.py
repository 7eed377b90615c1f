"""Command-line interface for the parts catalog sync."""

import argparse
import json
import logging
import sys
import threading
from typing import List, Optional

__all__ = ["main", "parse_args", "build_updater", "print_result", "show_status"]

from partsync.config import API_BASE_URL, FLASK_DEBUG, FLASK_HOST, FLASK_PORT, STORE_PATH
from partsync.errors import SyncError
from partsync.fetcher import CatalogFetcher
from partsync.logging_config import setup_logging
from partsync.models import UpdateResult, summarize_errors
from partsync.scheduler import UpdateScheduler
from partsync.storage import CatalogRepository, SqliteStore
from partsync.updater import PartsUpdater


def build_updater(store_path: str, api_url: str) -> PartsUpdater:
    """Wire a repository and fetcher into an updater."""
    repository = CatalogRepository(SqliteStore(store_path))
    return PartsUpdater(repository, CatalogFetcher(base_url=api_url))


def print_result(result: UpdateResult) -> None:
    print(f"Added: {result.added}")
    print(f"Updated: {result.updated}")
    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for line in summarize_errors(result.errors):
            print(f"  {line}")


def show_status(store_path: str, updater: PartsUpdater, scheduler: UpdateScheduler) -> None:
    """Display catalog and schedule status."""
    info = scheduler.get_schedule_info()
    status = updater.get_update_status(info.interval)

    print(f"\n{'='*50}")
    print(f"Store: {store_path}")
    print(f"{'='*50}")
    print(f"\nTotal parts: {status.total_parts}")
    print(f"Last update: {status.last_update or 'never'}")
    print(f"Next update due: {status.next_update_due}")
    print(f"Update interval: {info.interval / 1000 / 60 / 60:g}h")
    print()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Parts catalog sync: fetch category records, merge by SKU, persist",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Update the catalog if the last sync is older than 24h
  python -m partsync.cli run

  # Update now regardless of the last sync time
  python -m partsync.cli force

  # Run the scheduler in the foreground with a 6h interval
  python -m partsync.cli schedule --interval-hours 6

  # Serve the scrape endpoint and control API, with the scheduler
  python -m partsync.cli serve
        """,
    )

    parser.add_argument(
        "--store",
        default=STORE_PATH,
        help=f"SQLite store path (default: {STORE_PATH})",
    )
    parser.add_argument(
        "--api-url",
        default=API_BASE_URL,
        help=f"Base URL of the scrape endpoint (default: {API_BASE_URL})",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="Update the catalog if an update is due")
    subparsers.add_parser("force", help="Update the catalog now")
    subparsers.add_parser("status", help="Show catalog and schedule status")

    notifications = subparsers.add_parser("notifications", help="List recent update notifications")
    notifications.add_argument(
        "--clear",
        action="store_true",
        help="Clear stored notifications",
    )

    schedule = subparsers.add_parser("schedule", help="Run the update scheduler in the foreground")
    schedule.add_argument(
        "--interval-hours",
        type=float,
        help="Update interval in hours (default: 24)",
    )

    scrape = subparsers.add_parser("scrape", help="Scrape one category of the parts site and print JSON")
    scrape.add_argument("category", help="Category path, e.g. 'motion/motors-servos'")

    subparsers.add_parser("serve", help="Run the HTTP API with the scheduler")

    return parser.parse_args(argv)


def _run_schedule(scheduler: UpdateScheduler) -> None:
    scheduler.add_listener(print_result)
    scheduler.start()
    print("Scheduler running. Press Ctrl+C to stop.")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        print("\nStopping scheduler...")
    finally:
        scheduler.stop(wait=True, timeout=5)


def _serve(args: argparse.Namespace) -> None:
    from partsync.app import create_app

    updater = build_updater(args.store, args.api_url)
    app = create_app(updater=updater)
    app.extensions["partsync"]["scheduler"].start()
    app.run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG, use_reloader=False)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        if args.command == "scrape":
            from partsync.scraper import PartsSiteScraper

            records = PartsSiteScraper().scrape_category(args.category)
            print(json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False))
            return 0

        if args.command == "serve":
            _serve(args)
            return 0

        updater = build_updater(args.store, args.api_url)
        scheduler = UpdateScheduler(updater)

        if args.command == "run":
            if not updater.should_update():
                print("Parts are up to date, nothing to do")
                return 0
            result = updater.run_update()
            scheduler.record_notification(result)
            print_result(result)

        elif args.command == "force":
            result = updater.force_update()
            scheduler.record_notification(result)
            print_result(result)

        elif args.command == "status":
            show_status(args.store, updater, scheduler)

        elif args.command == "notifications":
            if args.clear:
                scheduler.clear_notifications()
                print("Notifications cleared")
                return 0
            notifications = scheduler.get_recent_notifications()
            if not notifications:
                print("No notifications")
            for n in notifications:
                print(f"[{n.timestamp}] {n.message}")
                for line in n.error_summary():
                    print(f"  {line}")

        elif args.command == "schedule":
            if args.interval_hours is not None:
                try:
                    scheduler.update_interval(int(args.interval_hours * 60 * 60 * 1000))
                except (ValueError, OverflowError) as e:
                    print(f"Error: invalid --interval-hours {args.interval_hours:g}: {e}", file=sys.stderr)
                    return 2
            _run_schedule(scheduler)

    except SyncError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
