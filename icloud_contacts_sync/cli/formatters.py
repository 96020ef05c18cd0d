"""CLI output formatting functions.

This module contains functions for displaying notifications, sync results
and status information on the command line.
"""

import logging
from typing import TYPE_CHECKING, Any

import click

if TYPE_CHECKING:
    from icloud_contacts_sync.sync.engine import SyncResult

# Outcomes listed per action when showing details
MAX_LISTED_OUTCOMES = 10


def echo_notification(message: str, level: int) -> None:
    """Print a sync notification; errors go to stderr in red."""
    if level >= logging.ERROR:
        click.echo(click.style(message, fg="red"), err=True)
    elif level >= logging.WARNING:
        click.echo(click.style(message, fg="yellow"))
    else:
        click.echo(message)


def show_sync_summary(result: "SyncResult", verbose: bool = False) -> None:
    """
    Display the statistics of a finished sync pass.

    Args:
        result: The SyncResult to display
        verbose: Also list the notes touched, grouped by action
    """
    stats = result.stats

    click.echo("\n=== Sync Summary ===")
    click.echo(f"Contacts fetched:      {stats.contacts_fetched}")
    if stats.skipped_nameless:
        click.echo(f"Skipped (no name):     {stats.skipped_nameless}")
    click.echo(f"Notes created:         {stats.created}")
    click.echo(f"Notes updated:         {stats.updated}")
    click.echo(f"Notes renamed:         {stats.renamed}")
    click.echo(f"Disambiguated:         {stats.disambiguated}")

    if stats.conflicts:
        click.echo(
            click.style(f"Conflicts:             {stats.conflicts}", fg="yellow")
        )
    if stats.failed:
        click.echo(click.style(f"Failed:                {stats.failed}", fg="red"))

    if not verbose or not result.outcomes:
        return

    by_action: dict[str, list[str]] = {}
    for outcome in result.outcomes:
        by_action.setdefault(outcome.action.value, []).append(outcome.path)

    for action, paths in by_action.items():
        click.echo(f"\n{action.capitalize()}:")
        for path in paths[:MAX_LISTED_OUTCOMES]:
            click.echo(f"  {path}")
        if len(paths) > MAX_LISTED_OUTCOMES:
            click.echo(f"  ... and {len(paths) - MAX_LISTED_OUTCOMES} more")


def show_settings(settings: dict[str, Any]) -> None:
    """Display effective settings, one per line."""
    width = max(len(key) for key in settings)
    for key, value in settings.items():
        click.echo(f"  {key.ljust(width)}  {value}")
