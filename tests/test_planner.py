"""
Planner tests: intent classification, the end-to-end reconciliation
scenario, and idempotence when the planned intents are applied to an
in-memory calendar and the planner is run again.
"""

from datetime import date

from ics_gcal_sync.models import Create
from ics_gcal_sync.models import Delete
from ics_gcal_sync.models import SourceEvent
from ics_gcal_sync.models import SyncStats
from ics_gcal_sync.models import TemporalPoint
from ics_gcal_sync.models import Update
from ics_gcal_sync.sync import run_one_way
from ics_gcal_sync.sync.planner import plan
from ics_gcal_sync.sync.planner import reconcile
from ics_gcal_sync.sync.planner import summarize
from tests.conftest import make_api_event
from tests.conftest import make_source
from tests.conftest import make_target
from tests.conftest import timed
from tests.fake_client import FakeCalendarClient


def _by_kind(intents):
    return {kind: [i for i in intents if i.kind == kind] for kind in ("create", "update", "delete")}


def test_end_to_end_scenario():
    """A new, B location cleared, C identical, D orphaned on the target."""
    source = [
        make_source("A"),
        make_source("B", location=""),
        make_source("C", location="Room 3"),
    ]
    target = [
        make_target("id-b", "B", location="Room 1"),
        make_target("id-c", "C", location="Room 3"),
        make_target("id-d", "D"),
    ]

    intents = _by_kind(plan(source, target))

    assert [i.title for i in intents["create"]] == ["A"]
    assert isinstance(intents["create"][0], Create)

    assert [i.target_id for i in intents["update"]] == ["id-b"]
    update = intents["update"][0]
    assert isinstance(update, Update)
    assert update.changed == ("location",)
    assert update.fields.location == ""

    assert [i.target_id for i in intents["delete"]] == ["id-d"]
    assert isinstance(intents["delete"][0], Delete)


def test_empty_inputs_produce_no_intents():
    assert plan([], []) == []


def test_everything_new_is_created():
    intents = plan([make_source("One"), make_source("Two")], [])
    assert summarize(intents) == {"create": 2, "update": 0, "delete": 0}


def test_empty_feed_deletes_everything():
    intents = plan([], [make_target("a", "One"), make_target("b", "Two")])
    assert summarize(intents) == {"create": 0, "update": 0, "delete": 2}


def test_duplicate_source_events_create_once():
    intents = plan([make_source("Dup"), make_source("Dup", description="later")], [])
    assert len(intents) == 1
    assert intents[0].event.description is None


def test_duplicate_target_events_extra_copy_left_alone():
    """Only the first target per key takes part; the second is neither kept nor deleted."""
    intents = plan([make_source("Dup")], [make_target("a", "Dup"), make_target("b", "Dup")])
    assert intents == []


def test_retimed_event_is_delete_plus_create():
    moved = make_source("Standup", start=timed(2025, 3, 10, 11), end=timed(2025, 3, 10, 12))
    intents = plan([moved], [make_target("t1", "Standup")])
    assert summarize(intents) == {"create": 1, "update": 0, "delete": 1}


class TestIdempotence:
    def _feed(self):
        return [
            make_source(
                "Weekly", rrules=("FREQ=WEEKLY;BYDAY=MO",), exdates=(timed(2025, 3, 17, 9),)
            ),
            make_source("Described", description="d" * 9000, location="HQ"),
            SourceEvent(
                title="Holiday",
                start=TemporalPoint(date(2025, 3, 14)),
                end=TemporalPoint(date(2025, 3, 15)),
                all_day=True,
            ),
            make_source(
                "Windows zone",
                start=timed(2025, 3, 10, 9, tzid="Eastern Standard Time"),
                end=timed(2025, 3, 10, 10, tzid="Eastern Standard Time"),
            ),
            make_source("Unknown zone", start=timed(2025, 3, 10, 9, tzid="Atlantis/Central")),
        ]

    def test_second_run_is_empty(self, sync_config, sync_logger):
        client = FakeCalendarClient([make_api_event("orphan", "Orphan")])
        feed = self._feed()

        stats = SyncStats()
        run_one_way(sync_config, stats, sync_logger, client, feed)
        assert stats.added == len(feed)
        assert stats.deleted == 1
        assert stats.errors == 0

        assert plan(feed, client.get_target_events()) == []

    def test_second_run_after_update_is_empty(self, sync_config, sync_logger):
        client = FakeCalendarClient(
            [make_api_event("t1", "Test Event", description="stale", location="Room 1")]
        )
        feed = [make_source(description="fresh", location="")]

        stats = SyncStats()
        run_one_way(sync_config, stats, sync_logger, client, feed)
        assert stats.modified == 1
        assert client.updates == ["t1"]

        assert plan(feed, client.get_target_events()) == []

    def test_truncating_store_does_not_loop(self, sync_config, sync_logger):
        """Simulate a store that cuts descriptions at 8000 characters."""
        full = "lorem ipsum " * 800
        client = FakeCalendarClient([make_api_event("t1", description=full[:8000])])
        stats = SyncStats()
        run_one_way(sync_config, stats, sync_logger, client, [make_source(description=full)])
        assert stats.modified == 0
        assert stats.unchanged == 1


def test_reconcile_counts_matched_keys():
    result = reconcile(
        [make_source("Same"), make_source("Edited", description="v2"), make_source("New")],
        [
            make_target("s", "Same"),
            make_target("e", "Edited", description="v1"),
            make_target("o", "Orphan"),
        ],
    )
    assert result.matched == 2
    assert result.unchanged == 1
    assert summarize(result.intents) == {"create": 1, "update": 1, "delete": 1}
