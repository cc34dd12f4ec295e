"""
Pure data models: no network or Google API imports.
"""

from dataclasses import dataclass
from dataclasses import field
from datetime import date
from datetime import datetime
from pathlib import Path
from typing import ClassVar

DEFAULT_CONFIG = Path.home() / ".config/ics-gcal-sync.conf"
DEFAULT_CLIENT_SECRET = Path.home() / ".config/ics-gcal-sync/client_secret.json"
DEFAULT_TOKEN_FILE = Path.home() / ".local/share/ics-gcal-sync/token.json"

# Google Calendar truncates descriptions; a stored description at least this
# long that prefixes the feed description is treated as unchanged.
DEFAULT_DESCRIPTION_LIMIT = 8000

# Google batch endpoint accepts at most 50 calls per HTTP request.
DEFAULT_BATCH_SIZE = 50


class CalendarSyncError(Exception):
    """Base exception for calendar sync errors."""

    pass


class FeedError(CalendarSyncError):
    """The ICS feed could not be downloaded or parsed."""


class InvalidEventError(CalendarSyncError):
    """An event violates a data-model invariant."""


class DuplicateMatchKeyError(CalendarSyncError):
    """Two events on the same side share a match key (strict mode only)."""

    def __init__(self, key: str):
        super().__init__(f"Duplicate match key: {key}")
        self.key = key


@dataclass(frozen=True)
class TemporalPoint:
    """A civil date, or a date-time with its originating timezone identifier.

    ``value`` may be naive (wall-clock in ``tzid``) or timezone-aware.  The
    owning event's all-day flag decides how the point is read.
    """

    value: date | datetime
    tzid: str | None = None

    @property
    def has_time(self) -> bool:
        return isinstance(self.value, datetime)


@dataclass(frozen=True)
class SourceEvent:
    """One VEVENT from the feed."""

    title: str
    start: TemporalPoint
    end: TemporalPoint
    all_day: bool = False
    description: str | None = None
    location: str | None = None
    rrules: tuple[str, ...] = ()
    exdates: tuple[TemporalPoint, ...] = ()
    uid: str | None = None


@dataclass(frozen=True)
class TargetEvent:
    """One event as listed from the target calendar."""

    id: str
    title: str | None
    start: TemporalPoint | None
    end: TemporalPoint | None
    description: str | None = None
    location: str | None = None
    recurrence: tuple[str, ...] = ()
    recurring_event_id: str | None = None

    @property
    def all_day(self) -> bool:
        return self.start is not None and not self.start.has_time


@dataclass(frozen=True)
class EventFields:
    """Complete replacement field set written to the target calendar."""

    title: str | None
    description: str | None
    location: str | None
    start: dict
    end: dict
    recurrence: tuple[str, ...] = ()

    def to_body(self) -> dict:
        """Return the Google Calendar event resource for these fields."""
        body = {
            "summary": self.title,
            "description": self.description,
            "location": self.location,
            "start": dict(self.start),
            "end": dict(self.end),
        }
        if self.recurrence:
            body["recurrence"] = list(self.recurrence)
        return body


# ---------------------------------------------------------------------------
# Mutation intents
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Create:
    kind: ClassVar[str] = "create"

    event: SourceEvent
    fields: EventFields

    @property
    def title(self) -> str:
        return self.event.title


@dataclass(frozen=True)
class Update:
    kind: ClassVar[str] = "update"

    target_id: str
    fields: EventFields
    changed: tuple[str, ...] = ()
    title: str | None = None


@dataclass(frozen=True)
class Delete:
    kind: ClassVar[str] = "delete"

    target_id: str
    title: str | None = None


MutationIntent = Create | Update | Delete


@dataclass
class SyncConfig:
    """Configuration for calendar sync operation."""

    calendar_id: str
    feed_url: str | None = None
    client_secret_file: Path = field(default_factory=lambda: DEFAULT_CLIENT_SECRET)
    token_file: Path = field(default_factory=lambda: DEFAULT_TOKEN_FILE)
    dry_run: bool = False
    verbose: bool = False
    clear: bool = False
    yes: bool = False  # Auto-confirm without prompting
    exclude_prefixes: tuple[str, ...] = ("Declined:",)
    exclude_titles: tuple[str, ...] = ()
    description_limit: int = DEFAULT_DESCRIPTION_LIMIT
    strict_keys: bool = False
    batch_size: int = DEFAULT_BATCH_SIZE
    feed_timeout: int = 30


@dataclass
class SyncStats:
    """Statistics for sync operation."""

    added: int = 0
    modified: int = 0
    unchanged: int = 0
    deleted: int = 0
    errors: int = 0
