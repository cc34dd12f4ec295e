"""
Dispatch stage: executes mutation intents against the target calendar.
"""

from ics_gcal_sync.gcal_client import BatchOperation
from ics_gcal_sync.gcal_client import GoogleCalendarClient
from ics_gcal_sync.models import Create
from ics_gcal_sync.models import Delete
from ics_gcal_sync.models import MutationIntent
from ics_gcal_sync.models import SyncConfig
from ics_gcal_sync.models import SyncStats
from ics_gcal_sync.models import Update


def to_operation(intent: MutationIntent) -> BatchOperation:
    """Map an intent to the corresponding store call."""
    if isinstance(intent, Create):
        return BatchOperation("insert", body=intent.fields.to_body(), label=intent.title)
    if isinstance(intent, Update):
        return BatchOperation(
            "update",
            event_id=intent.target_id,
            body=intent.fields.to_body(),
            label=intent.title or intent.target_id,
        )
    if isinstance(intent, Delete):
        return BatchOperation(
            "delete", event_id=intent.target_id, label=intent.title or intent.target_id
        )
    raise TypeError(f"Unknown intent: {intent!r}")


def _count(stats: SyncStats, kind: str):
    if kind == "create":
        stats.added += 1
    elif kind == "update":
        stats.modified += 1
    elif kind == "delete":
        stats.deleted += 1


def _describe(intent: MutationIntent) -> str:
    if isinstance(intent, Update) and intent.changed:
        return f"{intent.title!r} ({', '.join(intent.changed)})"
    if isinstance(intent, Create):
        return repr(intent.title)
    return f"{intent.title!r} [{intent.target_id}]"


def dispatch_intents(
    config: SyncConfig,
    stats: SyncStats,
    logger,
    client: GoogleCalendarClient,
    intents: list[MutationIntent],
):
    """Apply intents in batches, recording per-item outcomes in ``stats``."""
    if config.dry_run:
        for intent in intents:
            logger.info(f"[DRY RUN] Would {intent.kind.upper()} event: {_describe(intent)}")
            _count(stats, intent.kind)
        return

    size = max(1, config.batch_size)
    for offset in range(0, len(intents), size):
        chunk = intents[offset : offset + size]
        results = client.run_batch([to_operation(intent) for intent in chunk])

        for intent, result in zip(chunk, results):
            if result.ok:
                _count(stats, intent.kind)
                logger.debug(f"{intent.kind.capitalize()}d event {_describe(intent)}")
            else:
                logger.error(f"Failed to {intent.kind} event {_describe(intent)}: {result.error}")
                stats.errors += 1
