"""
icloud_contacts_sync.config - Configuration management module

Contains configuration loading, validation, and default settings.
"""

from icloud_contacts_sync.config.loader import ConfigError, ConfigLoader
from icloud_contacts_sync.config.settings import (
    DEFAULT_PEOPLE_PATH,
    SyncSettings,
)

__all__ = [
    "ConfigError",
    "ConfigLoader",
    "DEFAULT_PEOPLE_PATH",
    "SyncSettings",
]
