"""
Clear operation: remove every event from the target calendar.
"""

from ics_gcal_sync.gcal_client import GoogleCalendarClient
from ics_gcal_sync.models import Delete
from ics_gcal_sync.models import SyncConfig
from ics_gcal_sync.models import SyncStats
from ics_gcal_sync.sync.dispatch import dispatch_intents


def perform_clear(
    config: SyncConfig,
    stats: SyncStats,
    logger,
    client: GoogleCalendarClient,
):
    """Delete all events (one call per recurring series) from the calendar."""
    logger.warning("CLEAR MODE: Removing all events from the target calendar...")

    targets = client.get_target_events()
    if not targets:
        logger.info("No events found - calendar is already empty")
        return

    intents = [Delete(target_id=t.recurring_event_id or t.id, title=t.title) for t in targets]
    logger.info(f"Found {len(intents)} events to remove")
    dispatch_intents(config, stats, logger, client, intents)

    if not config.dry_run:
        logger.info(f"Clear complete: Removed {stats.deleted} events")
