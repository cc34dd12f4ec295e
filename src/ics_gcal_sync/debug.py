"""
Debug/inspect tools for feed events.

Importable functions:
  dump_event(event, console, show_keys=True) : render one feed event in a Rich Panel
"""

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from ics_gcal_sync.models import InvalidEventError
from ics_gcal_sync.models import SourceEvent
from ics_gcal_sync.recurrence import build_recurrence
from ics_gcal_sync.recurrence import canonicalize_rule
from ics_gcal_sync.sync.utils import derive_key
from ics_gcal_sync.timezones import to_event_datetime


def _fmt_point(point) -> str:
    if point.tzid:
        return f"{point.value}  TZID={point.tzid}"
    return str(point.value)


def dump_event(event: SourceEvent, console: Console, show_keys: bool = True) -> None:
    """Render a single feed event as a Rich Panel."""
    lines = Text()

    def row(label: str, value) -> None:
        if value is None:
            return
        lines.append(f"  {label:<14}: ", style="bold cyan")
        lines.append(f"{value}\n")

    row("SUMMARY", event.title)
    row("UID", event.uid)
    row("ALL-DAY", "yes" if event.all_day else None)
    row("DTSTART", _fmt_point(event.start))
    row("DTEND", _fmt_point(event.end))
    row("LOCATION", event.location)
    for rule in event.rrules:
        row("RRULE", rule)
    for point in event.exdates:
        row("EXDATE", _fmt_point(point))

    if show_keys:
        try:
            row("MATCH KEY", derive_key(event))
            row("START (out)", to_event_datetime(event.start, event.all_day))
            row("END (out)", to_event_datetime(event.end, event.all_day))
            for rule in build_recurrence(event.rrules, event.exdates, event.all_day):
                row("RECURRENCE", canonicalize_rule(rule))
        except InvalidEventError as e:
            lines.append(f"  {'ERROR':<14}: ", style="bold red")
            lines.append(f"{e}\n")

    console.print(Panel(lines, title=f"[bold]{event.title}[/bold]", expand=False))
