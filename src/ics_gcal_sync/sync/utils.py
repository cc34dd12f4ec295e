"""
Stateless match-key helpers.

Neither the feed nor the target calendar carries a shared identifier, so an
event's identity is reconstructed from its title and normalized start/end.
"""

import logging
from typing import Iterable
from typing import TypeVar

from ics_gcal_sync.models import DuplicateMatchKeyError
from ics_gcal_sync.models import SourceEvent
from ics_gcal_sync.models import TargetEvent
from ics_gcal_sync.timezones import canonical

_logger = logging.getLogger(__name__)

KEY_DELIMITER = "|"

E = TypeVar("E", SourceEvent, TargetEvent)


def derive_key(event: SourceEvent | TargetEvent) -> str:
    """Return ``title|start|end`` for a feed or target event.

    Start and end are civil dates (``YYYY-MM-DD``) for all-day events and
    UTC instants (``YYYY-MM-DD HH:MM:SSZ``) otherwise.  The title is used
    verbatim: differently-titled events never match.
    """
    all_day = event.all_day
    start = canonical(event.start, all_day)
    end = canonical(event.end, all_day)
    return KEY_DELIMITER.join((event.title or "", start, end))


def build_lookup(events: Iterable[E], strict: bool = False) -> dict[str, E]:
    """Index events by match key, keeping the first event seen per key.

    With ``strict`` a collision raises DuplicateMatchKeyError instead.
    """
    lookup: dict[str, E] = {}
    for event in events:
        key = derive_key(event)
        if key in lookup:
            if strict:
                raise DuplicateMatchKeyError(key)
            _logger.debug("Duplicate match key %r, keeping first event", key)
            continue
        lookup[key] = event
    return lookup
