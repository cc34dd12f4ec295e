"""
Command-line interface for ICS → Google Calendar sync.
"""

import logging
from configparser import ConfigParser
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ics_gcal_sync.models import DEFAULT_BATCH_SIZE
from ics_gcal_sync.models import DEFAULT_CLIENT_SECRET
from ics_gcal_sync.models import DEFAULT_CONFIG
from ics_gcal_sync.models import DEFAULT_DESCRIPTION_LIMIT
from ics_gcal_sync.models import DEFAULT_TOKEN_FILE
from ics_gcal_sync.models import CalendarSyncError
from ics_gcal_sync.models import SyncConfig
from ics_gcal_sync.sync import CalendarSynchronizer

CONFIG_SECTION = "ics-gcal-sync"

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="One-way sync from an ICS feed into a Google Calendar.",
)

console = Console()


# ---------------------------------------------------------------------------
# Global state shared across subcommands
# ---------------------------------------------------------------------------


@dataclass
class _State:
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG)
    verbose: bool = False


state = _State()


@app.callback()
def _global(
    config: Annotated[
        Path,
        typer.Option("--config", "-c", help=f"Config file path (default: {DEFAULT_CONFIG})"),
    ] = DEFAULT_CONFIG,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug output"),
    ] = False,
) -> None:
    state.config_path = config
    state.verbose = verbose
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False, console=console)],
    )
    # googleapiclient logs every discovery/batch request at INFO
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)


def _load_config_file(config_path: Path) -> dict[str, str]:
    if not config_path.exists():
        return {}
    parser = ConfigParser(interpolation=None)
    parser.read(config_path)
    if CONFIG_SECTION not in parser:
        return {}
    return dict(parser[CONFIG_SECTION])


def _split_list(value: str | None) -> tuple[str, ...]:
    """Split a newline- or comma-separated config value."""
    if not value:
        return ()
    items = []
    for line in value.splitlines():
        items.extend(part.strip() for part in line.split(","))
    return tuple(item for item in items if item)


def _get_bool(config_file: dict[str, str], key: str) -> bool:
    return config_file.get(key, "").strip().lower() in ("1", "true", "yes", "on")


def _get_int(config_file: dict[str, str], key: str, default: int) -> int:
    raw = config_file.get(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise typer.BadParameter(f"{key} must be an integer, got {raw!r}") from None


def _build_config(
    feed_url: str | None,
    calendar: str | None,
    dry_run: bool,
    clear: bool,
    yes: bool,
) -> SyncConfig:
    config_file = _load_config_file(state.config_path)
    calendar_id = calendar or config_file.get("calendar_id")
    feed = feed_url or config_file.get("feed_url")

    if not calendar_id or (not feed and not clear):
        console.print(
            "[bold red]Error:[/] A feed URL and a calendar ID must be provided via "
            "[cyan]--feed-url[/]/[cyan]--calendar[/] or in the config file."
        )
        raise typer.Exit(1)

    exclude_prefixes = config_file.get("exclude_prefixes")

    return SyncConfig(
        calendar_id=calendar_id,
        feed_url=feed,
        client_secret_file=Path(
            config_file.get("client_secret_file", str(DEFAULT_CLIENT_SECRET))
        ).expanduser(),
        token_file=Path(config_file.get("token_file", str(DEFAULT_TOKEN_FILE))).expanduser(),
        dry_run=dry_run,
        verbose=state.verbose,
        clear=clear,
        yes=yes,
        exclude_prefixes=(
            _split_list(exclude_prefixes) if exclude_prefixes is not None else ("Declined:",)
        ),
        exclude_titles=_split_list(config_file.get("exclude_titles")),
        description_limit=_get_int(config_file, "description_limit", DEFAULT_DESCRIPTION_LIMIT),
        strict_keys=_get_bool(config_file, "strict_keys"),
        batch_size=_get_int(config_file, "batch_size", DEFAULT_BATCH_SIZE),
    )


def _run_sync(cfg: SyncConfig) -> None:
    """Core sync runner: display panel, confirm, run, show results."""
    from ics_gcal_sync.preflight import run_preflight_checks

    if not run_preflight_checks(cfg, console):
        raise typer.Exit(1)

    # -- Info panel ----------------------------------------------------------
    if cfg.clear:
        op_line = Text("CLEAR (remove all events from the calendar)", style="bold red")
    else:
        op_line = Text("SYNC", style="bold green")

    info = Text()
    if not cfg.clear:
        info.append("  Feed:      ", style="bold")
        info.append(f"{cfg.feed_url}\n")
    info.append("  Calendar:  ", style="bold")
    info.append(f"{cfg.calendar_id}\n")
    info.append("  Operation: ")
    info.append_text(op_line)
    if cfg.strict_keys:
        info.append("\n  Keys:      ")
        info.append("strict (duplicates abort)", style="yellow")
    if cfg.dry_run:
        info.append("\n  Mode:      ")
        info.append("DRY RUN", style="bold magenta")

    console.print(Panel(info, title="[bold]ICS → Google Calendar Sync[/bold]"))

    # -- Confirmation --------------------------------------------------------
    if not cfg.yes and not cfg.dry_run:
        typer.confirm("Proceed?", abort=True)

    # -- Run -----------------------------------------------------------------
    try:
        stats = CalendarSynchronizer(cfg).run()
    except CalendarSyncError as e:
        console.print(f"[bold red]Sync failed:[/] {e}")
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted by user[/]")
        raise typer.Exit(130) from None
    except Exception as e:
        console.print_exception()
        console.print(f"[bold red]Unexpected error:[/] {e}")
        raise typer.Exit(1) from e

    # -- Results table -------------------------------------------------------
    results = Table.grid(padding=(0, 2))
    results.add_column(style="bold")
    results.add_column(justify="right")
    results.add_row("Added", str(stats.added))
    results.add_row("Modified", str(stats.modified))
    results.add_row("Unchanged", str(stats.unchanged))
    results.add_row("Deleted", str(stats.deleted))
    error_val = Text(str(stats.errors))
    if stats.errors == 0:
        error_val.append(" ✓", style="green")
    else:
        error_val.stylize("bold red")
    results.add_row("Errors", error_val)

    console.print(Panel(results, title="[bold]Results[/bold]", expand=False))

    if stats.errors:
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

_FEED_OPT = Annotated[
    str | None,
    typer.Option("--feed-url", "-f", help="ICS feed URL (overrides config)"),
]
_CAL_OPT = Annotated[
    str | None,
    typer.Option("--calendar", "-k", help="Google Calendar ID (overrides config)"),
]
_DRY_RUN = Annotated[bool, typer.Option("--dry-run", "-n", help="Preview changes without applying")]
_YES = Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")]


@app.command()
def sync(
    feed_url: _FEED_OPT = None,
    calendar: _CAL_OPT = None,
    dry_run: _DRY_RUN = False,
    yes: _YES = False,
) -> None:
    """Make the Google Calendar match the ICS feed."""
    _run_sync(_build_config(feed_url, calendar, dry_run=dry_run, clear=False, yes=yes))


@app.command()
def clear(
    calendar: _CAL_OPT = None,
    dry_run: _DRY_RUN = False,
    yes: _YES = False,
) -> None:
    """Remove [bold]every[/bold] event from the Google Calendar without re-syncing."""
    _run_sync(_build_config(None, calendar, dry_run=dry_run, clear=True, yes=yes))


@app.command()
def inspect(
    feed_url: _FEED_OPT = None,
    title: Annotated[
        str | None, typer.Option(help="Filter by SUMMARY substring (case-insensitive)")
    ] = None,
    no_keys: Annotated[
        bool, typer.Option("--no-keys", help="Omit match keys and normalized values")
    ] = False,
) -> None:
    """Inspect / debug events in the ICS feed."""
    from ics_gcal_sync.debug import dump_event
    from ics_gcal_sync.feed import ExclusionPolicy
    from ics_gcal_sync.feed import download_feed
    from ics_gcal_sync.feed import parse_feed

    config_file = _load_config_file(state.config_path)
    url = feed_url or config_file.get("feed_url")
    if not url:
        console.print("[bold red]Error:[/] Feed URL required.")
        raise typer.Exit(1)

    try:
        events = parse_feed(download_feed(url), ExclusionPolicy())
    except CalendarSyncError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None

    console.print(f"[bold]Events:[/] {len(events)} total")

    title_filter = title.lower() if title else None
    count = 0
    for event in events:
        if title_filter and title_filter not in event.title.lower():
            continue
        count += 1
        dump_event(event, console, show_keys=not no_keys)

    console.print(f"\n[bold]Matched {count} event(s)[/bold]")


@app.command()
def status() -> None:
    """Show sync configuration."""
    config_exists = state.config_path.exists()
    config_file = _load_config_file(state.config_path)

    cfg_info = Text()
    cfg_info.append("  Config:        ", style="bold")
    cfg_info.append(str(state.config_path) + " ")
    cfg_info.append(
        "✓" if config_exists else "(not found)", style="green" if config_exists else "red"
    )

    for label, key in (("Feed", "feed_url"), ("Calendar", "calendar_id")):
        cfg_info.append(f"\n  {label + ':':<15}", style="bold")
        value = config_file.get(key)
        cfg_info.append(value or "(not set)", style=None if value else "yellow")

    for label, key, default in (
        ("Client secret", "client_secret_file", DEFAULT_CLIENT_SECRET),
        ("Token", "token_file", DEFAULT_TOKEN_FILE),
    ):
        path = Path(config_file.get(key, str(default))).expanduser()
        cfg_info.append(f"\n  {label + ':':<15}", style="bold")
        cfg_info.append(str(path) + " ")
        exists = path.exists()
        cfg_info.append("✓" if exists else "(not found)", style="green" if exists else "yellow")

    excluded = _split_list(config_file.get("exclude_prefixes", "Declined:"))
    excluded += _split_list(config_file.get("exclude_titles"))
    if excluded:
        cfg_info.append(f"\n  {'Excluded:':<15}", style="bold")
        cfg_info.append(", ".join(excluded), style="dim")

    console.print(Panel(cfg_info, title="[bold]ICS → Google Calendar Sync — Status[/bold]"))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    app()
