"""
Reconciliation planner: classifies every match key into create / update /
no-op / delete and returns the resulting mutation intents.
"""

from collections import Counter
from dataclasses import dataclass
from dataclasses import field
from typing import Iterable

from ics_gcal_sync.models import DEFAULT_DESCRIPTION_LIMIT
from ics_gcal_sync.models import Create
from ics_gcal_sync.models import Delete
from ics_gcal_sync.models import MutationIntent
from ics_gcal_sync.models import SourceEvent
from ics_gcal_sync.models import TargetEvent
from ics_gcal_sync.models import Update
from ics_gcal_sync.sync.differ import build_fields
from ics_gcal_sync.sync.differ import diff_event
from ics_gcal_sync.sync.utils import build_lookup


@dataclass
class Reconciliation:
    """Planned intents plus the number of keys present on both sides."""

    intents: list[MutationIntent] = field(default_factory=list)
    matched: int = 0

    @property
    def unchanged(self) -> int:
        return self.matched - summarize(self.intents)["update"]


def reconcile(
    source_events: Iterable[SourceEvent],
    target_events: Iterable[TargetEvent],
    description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
    strict_keys: bool = False,
) -> Reconciliation:
    """Plan the intents that make the target calendar match the feed.

    Intents carry no ordering dependencies on one another.
    """
    source_by_key = build_lookup(source_events, strict=strict_keys)
    target_by_key = build_lookup(target_events, strict=strict_keys)

    result = Reconciliation()

    for key, source in source_by_key.items():
        target = target_by_key.get(key)
        if target is None:
            result.intents.append(Create(event=source, fields=build_fields(source)))
            continue

        result.matched += 1
        diff = diff_event(target, source, description_limit=description_limit)
        if diff.needs_update:
            result.intents.append(
                Update(
                    target_id=target.id,
                    fields=diff.fields,
                    changed=diff.changed,
                    title=source.title,
                )
            )

    for key, target in target_by_key.items():
        if key not in source_by_key:
            result.intents.append(Delete(target_id=target.id, title=target.title))

    return result


def plan(
    source_events: Iterable[SourceEvent],
    target_events: Iterable[TargetEvent],
    description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
    strict_keys: bool = False,
) -> list[MutationIntent]:
    """Return only the intents of :func:`reconcile`."""
    return reconcile(source_events, target_events, description_limit, strict_keys).intents


def summarize(intents: Iterable[MutationIntent]) -> dict[str, int]:
    """Count intents by kind (``create``, ``update``, ``delete``)."""
    counts = Counter(intent.kind for intent in intents)
    return {kind: counts.get(kind, 0) for kind in ("create", "update", "delete")}
