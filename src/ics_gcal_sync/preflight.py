"""
Preflight checks run before sync to catch common misconfigurations early.
"""

import logging
import os

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from ics_gcal_sync.models import SyncConfig

logger = logging.getLogger(__name__)


def run_preflight_checks(cfg: SyncConfig, console: Console) -> bool:
    """Return True if sync may proceed; print issues and return False otherwise."""
    issues: list[tuple[str, str, str]] = []  # (label, detail, hint)

    # 1. Feed URL present and plausible (clear does not need it)
    if not cfg.clear:
        url = cfg.feed_url or ""
        if not url.lower().startswith(("http://", "https://", "webcal://")):
            logger.error("Feed URL missing or not HTTP(S): %r", url)
            issues.append(
                (
                    "Feed URL",
                    url or "(not set)",
                    "Set feed_url in the config file or pass --feed-url",
                )
            )

    # 2. OAuth material: a cached token, or a client secret to start the flow
    if not cfg.token_file.exists() and not cfg.client_secret_file.exists():
        logger.error(
            "Neither token %s nor client secret %s exists", cfg.token_file, cfg.client_secret_file
        )
        issues.append(
            (
                "Google credentials",
                f"{cfg.client_secret_file} not found",
                "Download an OAuth desktop client secret from the Google Cloud console",
            )
        )

    # 3. Token directory writable (refreshed tokens are written back)
    token_dir = cfg.token_file.parent
    try:
        token_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Cannot create token directory %s: %s", token_dir, e)
        issues.append(("Token file", f"{cfg.token_file}: {e}", f"Check permissions on {token_dir}"))
    else:
        if not os.access(token_dir, os.W_OK):
            logger.error("Token directory not writable: %s", token_dir)
            issues.append(
                ("Token file", f"{token_dir} is read-only", f"Check permissions on {token_dir}")
            )

    # 4. Batch size within the Google batch endpoint limit
    if not 1 <= cfg.batch_size <= 50:
        issues.append(
            ("Batch size", str(cfg.batch_size), "batch_size must be between 1 and 50")
        )

    if issues:
        _print_issues(issues, console)
        return False

    return True


def _print_issues(issues: list[tuple[str, str, str]], console: Console) -> None:
    body = Text()
    for i, (label, detail, hint) in enumerate(issues):
        if i:
            body.append("\n")
        body.append(f"  ✗  {label}: ", style="bold red")
        body.append(detail, style="bold red")
        body.append(f"\n       → {hint}", style="yellow")

    console.print(Panel(body, title="[bold red]Preflight checks failed[/bold red]"))
