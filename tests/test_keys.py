"""
Unit tests for match-key derivation and keyed lookup tables.
"""

from datetime import date
from datetime import datetime

import pytest

from ics_gcal_sync.gcal_client import target_event_from_api
from ics_gcal_sync.models import DuplicateMatchKeyError
from ics_gcal_sync.models import InvalidEventError
from ics_gcal_sync.models import SourceEvent
from ics_gcal_sync.models import TemporalPoint
from ics_gcal_sync.sync.differ import build_fields
from ics_gcal_sync.sync.utils import build_lookup
from ics_gcal_sync.sync.utils import derive_key
from tests.conftest import make_source
from tests.conftest import make_target


def test_timed_key_format():
    assert derive_key(make_source("Standup")) == (
        "Standup|2025-03-10 13:00:00Z|2025-03-10 14:00:00Z"
    )


def test_all_day_end_component_ignores_time_of_day():
    event = SourceEvent(
        title="Offsite",
        start=TemporalPoint(datetime(2025, 3, 10, 8, 0), "Europe/Berlin"),
        end=TemporalPoint(datetime(2025, 3, 11, 17, 45), "Europe/Berlin"),
        all_day=True,
    )
    assert derive_key(event) == "Offsite|2025-03-10|2025-03-11"


def test_source_and_target_forms_share_a_key():
    assert derive_key(make_source("Review")) == derive_key(make_target("t1", "Review"))


def test_key_survives_create_and_reload():
    """The target written from a feed event, once listed back, keys identically."""
    for source in (
        make_source("Timed"),
        SourceEvent(
            title="All day",
            start=TemporalPoint(date(2025, 3, 10)),
            end=TemporalPoint(date(2025, 3, 11)),
            all_day=True,
        ),
    ):
        body = build_fields(source).to_body()
        reloaded = target_event_from_api({"id": "x", **body})
        assert derive_key(reloaded) == derive_key(source)


def test_title_not_normalized():
    assert derive_key(make_source("standup")) != derive_key(make_source("Standup "))


def test_timed_event_with_date_value_is_rejected():
    event = make_source(start=TemporalPoint(date(2025, 3, 10)))
    with pytest.raises(InvalidEventError):
        derive_key(event)


class TestBuildLookup:
    def test_first_event_wins_on_collision(self):
        first = make_source("Dup", description="first")
        second = make_source("Dup", description="second")
        lookup = build_lookup([first, second])
        assert list(lookup.values()) == [first]

    def test_strict_mode_raises_on_collision(self):
        with pytest.raises(DuplicateMatchKeyError):
            build_lookup([make_source("Dup"), make_source("Dup")], strict=True)

    def test_distinct_events_all_indexed(self):
        lookup = build_lookup([make_target("a", "One"), make_target("b", "Two")])
        assert {t.id for t in lookup.values()} == {"a", "b"}
