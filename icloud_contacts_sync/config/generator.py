"""
Configuration file generator for iCloud contacts synchronization.

Provides functionality to generate a default configuration file with
documentation for all available options.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def generate_default_config() -> str:
    """
    Generate default YAML configuration with all options documented.

    Returns:
        String containing YAML configuration with comments
    """
    return """# iCloud Contacts Sync Configuration
# ==================================
#
# Default options for icloud-contacts-sync.
# CLI arguments will always override these values.
#
# To use this configuration:
#   1. Save as ~/.icloud-contacts-sync/config.yaml (or custom location)
#   2. Uncomment and modify options as needed
#   3. Run: icloud-contacts-sync sync


# iCloud Account
# --------------

# Apple ID used to sign in to iCloud
# icloud_user_name: you@icloud.com

# App-specific password, generated at appleid.apple.com
# Can also be supplied with the ICLOUD_CONTACTS_SYNC_PASSWORD environment variable
# icloud_password: abcd-efgh-ijkl-mnop


# Vault Layout
# ------------

# Directory containing your notes vault
# Default: current directory
# vault_dir: ~/Notes

# Folder inside the vault where contact notes are written
# Default: people
# people_path: people


# Sync Behavior
# -------------

# Also sync contacts whose structured name is empty (e.g. companies)
# Default: false
# include_contacts_without_names: false

# Add type labels such as (work) or (home) to phone numbers and emails
# Default: false
# include_contact_info_tagging: false


# Advanced Options
# ----------------

# CardDAV service base URL
# Default: https://contacts.icloud.com
# carddav_url: https://contacts.icloud.com

# HTTP timeout for CardDAV requests, in seconds
# Default: 30
# request_timeout: 30

# Enable verbose output with detailed logging
# Default: false
# verbose: false

# Directory for log files
# Default: ~/.icloud-contacts-sync/logs
# log_dir: ~/.icloud-contacts-sync/logs

# Number of daily log files to keep (0 keeps all)
# Default: 10
# log_retention_count: 10
"""


def save_config_file(
    config_path: Path, overwrite: bool = False
) -> tuple[bool, str | None]:
    """
    Save default configuration file to specified path.

    Creates parent directories if they don't exist. The file holds
    credentials, so it is written readable by the owner only.

    Args:
        config_path: Path where the config file should be saved
        overwrite: If True, overwrite existing file. If False, fail if file exists.

    Returns:
        Tuple of (success, error_message); error_message is None on success
    """
    try:
        config_path = config_path.expanduser().resolve()

        if config_path.exists() and not overwrite:
            return (
                False,
                f"Configuration file already exists: {config_path}\n"
                "Use --force to overwrite.",
            )

        config_path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)
        config_path.write_text(generate_default_config(), encoding="utf-8")
        config_path.chmod(0o600)

        logger.info(f"Created configuration file: {config_path}")
        return (True, None)

    except OSError as e:
        error_msg = f"Failed to create configuration file: {e}"
        logger.error(error_msg)
        return (False, error_msg)
