"""CLI package for icloud_contacts_sync."""

from icloud_contacts_sync.cli.formatters import (
    echo_notification,
    show_settings,
    show_sync_summary,
)
from icloud_contacts_sync.cli.main import (
    DEFAULT_CONFIG_FILE,
    PASSWORD_ENV_VAR,
    cli,
    get_config_dir,
    get_config_file,
)
from icloud_contacts_sync.utils import DEFAULT_CONFIG_DIR

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
    "PASSWORD_ENV_VAR",
    "cli",
    "echo_notification",
    "get_config_dir",
    "get_config_file",
    "show_settings",
    "show_sync_summary",
]
