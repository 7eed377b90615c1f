"""Tests for the command-line interface."""

import pytest
from conftest import StubFetcher, make_record

from partsync import cli
from partsync.errors import FetchError, PersistenceError
from partsync.models import UpdateResult
from partsync.storage import CatalogRepository, MemoryStore
from partsync.updater import PartsUpdater

CATEGORIES = ["c1", "c2", "c3", "c4", "c5"]


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


@pytest.fixture
def use_updater(monkeypatch):
    """Make the CLI build the given updater instead of a SQLite-backed one."""
    def install(updater):
        monkeypatch.setattr(cli, "build_updater", lambda store_path, api_url: updater)
        return updater
    return install


def _updater(fetcher, clock, store=None):
    return PartsUpdater(CatalogRepository(store or MemoryStore()), fetcher, categories=CATEGORIES, clock=clock)


class TestPrintResult:
    def test_counts_only(self, capsys):
        cli.print_result(UpdateResult(added=2, updated=1))
        assert capsys.readouterr().out == "Added: 2\nUpdated: 1\n"

    def test_error_preview(self, capsys):
        cli.print_result(UpdateResult(errors=[f"Error scraping c{i}: down" for i in range(1, 6)]))

        out = capsys.readouterr().out
        assert "Errors (5):" in out
        assert "Error scraping c3: down" in out
        assert "Error scraping c4: down" not in out
        assert "... and 2 more" in out


class TestCommands:
    def test_force(self, capsys, clock, use_updater):
        updater = use_updater(_updater(StubFetcher({"c1": [make_record("A")]}), clock))

        assert cli.main(["force"]) == 0

        assert "Added: 1" in capsys.readouterr().out
        assert len(updater.repository.load_notifications()) == 1

    def test_run_skips_when_up_to_date(self, capsys, clock, use_updater):
        updater = use_updater(_updater(StubFetcher(), clock))
        updater.repository.save_last_update(clock.now)

        assert cli.main(["run"]) == 0

        assert "up to date" in capsys.readouterr().out
        assert updater.fetcher.calls == []

    def test_run_when_due(self, capsys, clock, use_updater):
        fetcher = StubFetcher({"c2": FetchError("down")})
        use_updater(_updater(fetcher, clock))

        assert cli.main(["run"]) == 0

        out = capsys.readouterr().out
        assert "Added: 0" in out
        assert "Error scraping c2: down" in out

    def test_status(self, capsys, clock, use_updater):
        use_updater(_updater(StubFetcher(), clock))

        assert cli.main(["--store", "custom.db", "status"]) == 0

        out = capsys.readouterr().out
        assert "Store: custom.db" in out
        assert "Last update: never" in out
        assert "Update interval: 24h" in out

    def test_notifications_list_and_clear(self, capsys, clock, use_updater):
        updater = use_updater(_updater(StubFetcher({"c1": [make_record("A")]}), clock))
        cli.main(["force"])
        capsys.readouterr()

        cli.main(["notifications"])
        assert "Parts database updated: 1 new, 0 updated" in capsys.readouterr().out

        cli.main(["notifications", "--clear"])
        assert updater.repository.load_notifications() == []

    def test_sync_error_exits_with_1(self, capsys, clock, use_updater):
        class BrokenStore(MemoryStore):
            def get(self, key):
                raise PersistenceError("store offline")

        use_updater(_updater(StubFetcher(), clock, store=BrokenStore()))

        assert cli.main(["force"]) == 1
        assert "store offline" in capsys.readouterr().err

    def test_schedule_rejects_non_positive_interval(self, clock, use_updater):
        use_updater(_updater(StubFetcher(), clock))
        assert cli.main(["schedule", "--interval-hours", "0"]) == 2

    @pytest.mark.parametrize("hours", ["1e-8", "1e12", "nan", "inf"])
    def test_schedule_rejects_unusable_interval(self, capsys, clock, use_updater, hours):
        use_updater(_updater(StubFetcher(), clock))

        assert cli.main(["schedule", "--interval-hours", hours]) == 2
        assert "invalid --interval-hours" in capsys.readouterr().err

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            cli.parse_args([])
