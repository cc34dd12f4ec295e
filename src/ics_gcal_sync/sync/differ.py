"""
Field-level comparison of a matched (target, feed) event pair.
"""

from dataclasses import dataclass

from ics_gcal_sync.models import DEFAULT_DESCRIPTION_LIMIT
from ics_gcal_sync.models import EventFields
from ics_gcal_sync.models import SourceEvent
from ics_gcal_sync.models import TargetEvent
from ics_gcal_sync.models import TemporalPoint
from ics_gcal_sync.recurrence import build_recurrence
from ics_gcal_sync.recurrence import recurrence_differs
from ics_gcal_sync.timezones import canonical
from ics_gcal_sync.timezones import to_event_datetime
from ics_gcal_sync.timezones import write_timezone


@dataclass(frozen=True)
class EventDiff:
    needs_update: bool
    fields: EventFields
    changed: tuple[str, ...] = ()


def build_fields(source: SourceEvent) -> EventFields:
    """Return the field set written to the store for a feed event."""
    return EventFields(
        title=source.title,
        description=source.description,
        location=source.location,
        start=to_event_datetime(source.start, source.all_day),
        end=to_event_datetime(source.end, source.all_day),
        recurrence=tuple(build_recurrence(source.rrules, source.exdates, source.all_day)),
    )


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def description_differs(current: str | None, desired: str | None, limit: int) -> bool:
    """Compare descriptions, tolerating the store's length truncation.

    A stored description that is a prefix of the feed description and at
    least ``limit`` characters long was cut by the store; rewriting it would
    only be truncated again.
    """
    if (current or "") == (desired or ""):
        return False
    if current and desired and len(current) >= limit and desired.startswith(current):
        return False
    return True


def location_differs(current: str | None, desired: str | None) -> bool:
    """Locations differ only when one side is blank and the other is not.

    A change between two non-blank values is not detected.
    """
    return current != desired and _is_blank(current) != _is_blank(desired)


def _temporal_differs(
    current: TemporalPoint | None,
    all_day: bool,
    desired: TemporalPoint,
    desired_all_day: bool,
) -> bool:
    if current is None:
        return True
    if all_day != desired_all_day:
        return True
    if canonical(current, all_day) != canonical(desired, desired_all_day):
        return True
    if desired_all_day:
        return False
    return write_timezone(current) != write_timezone(desired)


def diff_event(
    target: TargetEvent,
    source: SourceEvent,
    description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
) -> EventDiff:
    """Decide whether ``target`` must be rewritten to match ``source``.

    Pure function: neither argument is modified.  The returned field set is
    the complete replacement for the target event; description and location
    keep the target's value when their rule reports no change.
    """
    desired = build_fields(source)
    changed: list[str] = []

    if target.title != source.title:
        changed.append("title")

    description = target.description
    if description_differs(target.description, source.description, description_limit):
        changed.append("description")
        description = source.description

    location = target.location
    if location_differs(target.location, source.location):
        changed.append("location")
        location = source.location

    if _temporal_differs(target.start, target.all_day, source.start, source.all_day):
        changed.append("start")
    if _temporal_differs(target.end, target.all_day, source.end, source.all_day):
        changed.append("end")

    if recurrence_differs(target.recurrence, desired.recurrence):
        changed.append("recurrence")

    fields = EventFields(
        title=desired.title,
        description=description,
        location=location,
        start=desired.start,
        end=desired.end,
        recurrence=desired.recurrence,
    )
    return EventDiff(needs_update=bool(changed), fields=fields, changed=tuple(changed))
