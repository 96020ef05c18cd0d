"""
Command-line interface for icloud_contacts_sync.

Provides CLI commands for configuring and running a one-way sync of iCloud
contacts into a Markdown notes vault.

Usage:
    # Show help
    icloud-contacts-sync --help

    # Create a configuration file
    icloud-contacts-sync init-config

    # Check settings and vault state
    icloud-contacts-sync status

    # Run synchronization
    icloud-contacts-sync sync
    icloud-contacts-sync sync --vault ~/Notes --people-path people
"""

import sys
from pathlib import Path
from typing import Optional

import click

from icloud_contacts_sync import __version__
from icloud_contacts_sync.cli.formatters import (
    echo_notification,
    show_settings,
    show_sync_summary,
)
from icloud_contacts_sync.config.generator import save_config_file
from icloud_contacts_sync.config.loader import ConfigError, ConfigLoader
from icloud_contacts_sync.config.settings import SyncSettings
from icloud_contacts_sync.storage.vault import EntryKind, StorageError, Vault
from icloud_contacts_sync.sync.frontmatter import SYNC_ID_KEY
from icloud_contacts_sync.utils import DEFAULT_CONFIG_DIR, resolve_config_dir
from icloud_contacts_sync.utils.logging import (
    cleanup_old_logs,
    get_logger,
    setup_logging,
)
from icloud_contacts_sync.utils.paths import normalize_vault_path

# Default configuration file
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

# Environment variable holding the iCloud password
PASSWORD_ENV_VAR = "ICLOUD_CONTACTS_SYNC_PASSWORD"


def get_config_dir(config_dir: Optional[str]) -> Path:
    """Get the configuration directory path."""
    return resolve_config_dir(config_dir)


def get_config_file(config_file: Optional[str], config_dir: Path) -> Path:
    """Get the configuration file path."""
    if config_file:
        return Path(config_file).expanduser()
    return config_dir / "config.yaml"


def load_settings(ctx: click.Context, strict: bool = False) -> SyncSettings:
    """
    Build SyncSettings from the loaded configuration file.

    With strict, a configuration error found at startup stops the command
    instead of falling back to defaults.
    """
    config_error = ctx.obj.get("config_error")
    if strict and config_error:
        click.echo(
            click.style(f"Error: Configuration error: {config_error}", fg="red"),
            err=True,
        )
        sys.exit(1)
    try:
        return SyncSettings.from_dict(ctx.obj.get("config", {}))
    except ConfigError as e:
        click.echo(click.style(f"Error: Configuration error: {e}", fg="red"), err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="icloud-contacts-sync")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="ICLOUD_CONTACTS_SYNC_CONFIG_DIR",
    help="Configuration directory path (default: ~/.icloud-contacts-sync).",
)
@click.option(
    "--config-file",
    "-f",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="ICLOUD_CONTACTS_SYNC_CONFIG_FILE",
    help="Configuration file path (default: <config-dir>/config.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: Optional[str],
    config_file: Optional[str],
) -> None:
    """
    iCloud Contacts Sync.

    Copies your iCloud contacts into a folder of Markdown notes, one note
    per contact, keeping each note up to date on every sync.
    """
    ctx.ensure_object(dict)

    resolved_config_dir = get_config_dir(config_dir)
    resolved_config_file = get_config_file(config_file, resolved_config_dir)

    ctx.obj["config_dir"] = resolved_config_dir
    ctx.obj["config_file"] = resolved_config_file

    config = {}
    ctx.obj["config_error"] = None
    try:
        loader = ConfigLoader(config_dir=resolved_config_dir)
        config = loader.load_from_file(resolved_config_file)
        if config:
            loader.validate(config)
    except ConfigError as e:
        # Keep going with defaults so init-config still works; sync stops later
        ctx.obj["config_error"] = str(e)
        if ctx.invoked_subcommand != "sync":
            click.echo(
                click.style(f"Warning: Configuration error: {e}", fg="yellow"),
                err=True,
            )
        config = {}

    ctx.obj["config"] = config

    effective_verbose = verbose or config.get("verbose", False)
    ctx.obj["verbose"] = effective_verbose

    log_dir = (
        Path(config["log_dir"]).expanduser()
        if config.get("log_dir")
        else resolved_config_dir / "logs"
    )
    setup_logging(verbose=effective_verbose, log_dir=log_dir, enable_file_logging=True)

    log_retention = config.get("log_retention_count", 10)
    if log_retention > 0:
        cleanup_old_logs(log_dir=log_dir, keep_count=log_retention)


# =============================================================================
# Init Config Command
# =============================================================================


@cli.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite existing configuration file if it exists.",
)
@click.pass_context
def init_config_command(ctx: click.Context, force: bool) -> None:
    """
    Generate a default configuration file.

    Creates a configuration file with all available options documented
    and commented out.

    Examples:

        # Create config file (fails if already exists)
        icloud-contacts-sync init-config

        # Overwrite existing config file
        icloud-contacts-sync init-config --force
    """
    logger = get_logger(__name__)
    config_file = ctx.obj["config_file"]

    click.echo(f"Creating configuration file: {config_file}")

    success, error = save_config_file(config_file, overwrite=force)

    if success:
        click.echo(click.style("Configuration file created successfully!", fg="green"))
        click.echo(f"\nLocation: {config_file}")
        click.echo("\nNext steps:")
        click.echo("1. Enter your iCloud username and app-specific password")
        click.echo("2. Set vault_dir to your notes vault")
        click.echo("3. Run 'icloud-contacts-sync sync'")
    else:
        click.echo(click.style(f"Error: {error}", fg="red"), err=True)
        logger.error(f"Failed to create configuration file: {error}")
        sys.exit(1)


# =============================================================================
# Status Command
# =============================================================================


@cli.command("status")
@click.option(
    "--vault",
    type=click.Path(file_okay=False, dir_okay=True),
    help="Vault directory (overrides vault_dir).",
)
@click.pass_context
def status_command(ctx: click.Context, vault: Optional[str]) -> None:
    """
    Show settings and vault status.

    Displays the effective settings (password masked), whether the people
    folder exists, and how many of its notes are linked to a contact.

    Example:

        icloud-contacts-sync status
    """
    logger = get_logger(__name__)
    settings = load_settings(ctx).with_overrides(vault_dir=vault)

    click.echo("=== iCloud Contacts Sync Status ===\n")
    click.echo(f"Configuration file: {ctx.obj['config_file']}")
    click.echo("\nSettings:")
    show_settings(settings.to_display_dict())

    credentials = (
        click.style("Configured", fg="green")
        if settings.has_credentials
        else click.style("Missing", fg="red")
    )
    click.echo(f"\nCredentials: {credentials}")

    store = Vault(settings.vault_dir)
    people_path = normalize_vault_path(settings.people_path)
    kind = store.lookup(people_path)

    if kind is EntryKind.ABSENT:
        click.echo(f"People folder: {people_path} (will be created on first sync)")
        return
    if kind is EntryKind.FILE:
        click.echo(
            click.style(f"People folder: {people_path} is a file, not a folder", fg="red")
        )
        return

    notes = list(store.iter_notes(people_path))
    linked = 0
    for note in notes:
        try:
            if store.read_header(note).get(SYNC_ID_KEY) is not None:
                linked += 1
        except StorageError as e:
            logger.debug(f"Skipping {note}: {e}")

    click.echo(f"People folder: {people_path}")
    click.echo(f"Notes: {len(notes)} ({linked} linked to iCloud contacts)")


# =============================================================================
# Sync Command
# =============================================================================


@cli.command("sync")
@click.option(
    "--vault",
    type=click.Path(file_okay=False, dir_okay=True),
    help="Vault directory (overrides vault_dir).",
)
@click.option(
    "--people-path",
    "-p",
    help="Folder inside the vault for contact notes (default: people).",
)
@click.option("--username", "-u", help="iCloud username (Apple ID).")
@click.option(
    "--password",
    envvar=PASSWORD_ENV_VAR,
    help=f"iCloud app-specific password (or set {PASSWORD_ENV_VAR}).",
)
@click.option(
    "--include-nameless/--skip-nameless",
    default=None,
    help="Include contacts without a structured name.",
)
@click.option(
    "--tagging/--no-tagging",
    default=None,
    help="Add type labels such as (work) to phone numbers and emails.",
)
@click.pass_context
def sync_command(
    ctx: click.Context,
    vault: Optional[str],
    people_path: Optional[str],
    username: Optional[str],
    password: Optional[str],
    include_nameless: Optional[bool],
    tagging: Optional[bool],
) -> None:
    """
    Synchronize iCloud contacts into the vault.

    Fetches every contact from iCloud and creates or updates one note per
    contact in the people folder. Notes are matched to contacts by the
    SyncID stored in their front matter; when two contacts share a name the
    second one gets a note with a short id suffix.

    Examples:

        # Use settings from the configuration file
        icloud-contacts-sync sync

        # Override the vault and folder
        icloud-contacts-sync sync --vault ~/Notes --people-path contacts

        # Include companies and other contacts without a name
        icloud-contacts-sync sync --include-nameless
    """
    from icloud_contacts_sync.sync.engine import SyncEngine

    logger = get_logger(__name__)
    verbose = ctx.obj["verbose"]

    settings = load_settings(ctx, strict=True).with_overrides(
        vault_dir=vault,
        people_path=people_path,
        icloud_user_name=username,
        icloud_password=password,
        include_contacts_without_names=include_nameless,
        include_contact_info_tagging=tagging,
    )
    logger.debug(f"Syncing into {settings.vault_dir}")

    engine = SyncEngine(
        settings=settings,
        vault=Vault(settings.vault_dir),
        notifier=echo_notification,
    )

    try:
        result = engine.sync()
    except StorageError as e:
        logger.exception(f"Sync failed: {e}")
        click.echo(click.style(f"\nSync failed: {e}", fg="red"), err=True)
        sys.exit(1)

    if not result.success:
        sys.exit(1)

    show_sync_summary(result, verbose=verbose)
