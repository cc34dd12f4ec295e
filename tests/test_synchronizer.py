"""
CalendarSynchronizer orchestration tests with an injected fake client.
"""

import logging

import pytest

from ics_gcal_sync import sync as sync_module
from ics_gcal_sync.models import DuplicateMatchKeyError
from ics_gcal_sync.sync import CalendarSynchronizer
from tests.conftest import make_api_event
from tests.conftest import make_source
from tests.fake_client import FakeCalendarClient


@pytest.fixture
def feed(monkeypatch):
    events = []
    monkeypatch.setattr(sync_module, "load_source_events", lambda config: list(events))
    return events


def test_sync_run_reports_stats(sync_config, feed):
    feed.extend([make_source("New"), make_source("Same"), make_source("Edited", description="v2")])
    client = FakeCalendarClient(
        [
            make_api_event("same", "Same"),
            make_api_event("edited", "Edited", description="v1"),
            make_api_event("stale", "Stale"),
        ]
    )

    stats = CalendarSynchronizer(sync_config, client=client).run()

    assert (stats.added, stats.modified, stats.unchanged, stats.deleted, stats.errors) == (
        1,
        1,
        1,
        1,
        0,
    )
    assert client.find("New") is not None
    assert client.get("stale") is None
    assert client.get("edited")["description"] == "v2"


def test_second_sync_changes_nothing(sync_config, feed):
    feed.extend([make_source("A"), make_source("B", location="Room 2")])
    client = FakeCalendarClient()
    CalendarSynchronizer(sync_config, client=client).run()
    client.reset_counters()

    stats = CalendarSynchronizer(sync_config, client=client).run()

    assert (stats.added, stats.modified, stats.deleted) == (0, 0, 0)
    assert stats.unchanged == 2
    assert client.batches == []


def test_clear_mode_skips_feed(sync_config, monkeypatch):
    def _fail(config):
        raise AssertionError("feed must not be loaded when clearing")

    monkeypatch.setattr(sync_module, "load_source_events", _fail)
    sync_config.clear = True
    client = FakeCalendarClient([make_api_event("a", "A"), make_api_event("b", "B")])

    stats = CalendarSynchronizer(sync_config, client=client).run()

    assert stats.deleted == 2
    assert client.event_count == 0


def test_strict_keys_aborts_before_any_write(sync_config, feed):
    feed.extend([make_source("Dup"), make_source("Dup")])
    sync_config.strict_keys = True
    client = FakeCalendarClient([make_api_event("x", "Other")])

    with pytest.raises(DuplicateMatchKeyError):
        CalendarSynchronizer(sync_config, client=client).run()

    assert client.batches == []
    assert client.event_count == 1


def test_run_logs_target_calendar(sync_config, feed, caplog):
    client = FakeCalendarClient()
    client.summary = "Work mirror"

    with caplog.at_level(logging.INFO):
        CalendarSynchronizer(sync_config, client=client).run()

    assert "Target calendar: Work mirror (America/New_York)" in caplog.text
