"""
CalendarSynchronizer: thin orchestrator that delegates to sync submodules.
"""

import logging

from ics_gcal_sync.feed import load_source_events
from ics_gcal_sync.gcal_client import GoogleCalendarClient
from ics_gcal_sync.models import SyncConfig
from ics_gcal_sync.models import SyncStats
from ics_gcal_sync.sync.clear import perform_clear
from ics_gcal_sync.sync.dispatch import dispatch_intents
from ics_gcal_sync.sync.planner import reconcile
from ics_gcal_sync.sync.planner import summarize


def run_one_way(
    config: SyncConfig,
    stats: SyncStats,
    logger,
    client: GoogleCalendarClient,
    source_events: list,
):
    """Reconcile already-loaded feed events into the target calendar."""
    logger.info("Fetching target events...")
    target_events = client.get_target_events()
    logger.info(f"Loaded {len(source_events)} feed events, {len(target_events)} target events")

    result = reconcile(
        source_events,
        target_events,
        description_limit=config.description_limit,
        strict_keys=config.strict_keys,
    )
    intents = result.intents
    counts = summarize(intents)
    stats.unchanged += result.unchanged

    logger.info(
        f"Planned {counts['create']} create(s), {counts['update']} update(s), "
        f"{counts['delete']} delete(s)"
    )
    dispatch_intents(config, stats, logger, client, intents)


class CalendarSynchronizer:
    """Main synchronization engine."""

    def __init__(self, config: SyncConfig, client: GoogleCalendarClient | None = None):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.stats = SyncStats()
        self.client = client

    def run(self) -> SyncStats:
        """Execute the synchronization process."""
        if self.client is None:
            self.client = GoogleCalendarClient(
                self.config.calendar_id,
                self.config.client_secret_file,
                self.config.token_file,
            )
        self.logger.info("Connecting to Google Calendar...")
        self.client.connect()
        name, tz = self.client.get_calendar_summary()
        self.logger.info(f"Target calendar: {name} ({tz or 'no time zone'})")

        if self.config.clear:
            perform_clear(self.config, self.stats, self.logger, self.client)
        else:
            source_events = load_source_events(self.config)
            run_one_way(self.config, self.stats, self.logger, self.client, source_events)

        return self.stats
