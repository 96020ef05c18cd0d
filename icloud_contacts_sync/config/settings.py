"""
Sync settings for iCloud contacts synchronization.

Holds the fixed set of options that drive a sync pass. A SyncSettings
value is built once (config file merged with CLI overrides) and passed
explicitly to the sync engine; nothing reads settings from global state.

Configuration file keys (config.yaml):

    icloud_user_name: you@icloud.com
    icloud_password: abcd-efgh-ijkl-mnop   # app-specific password
    people_path: people
    include_contacts_without_names: false
    include_contact_info_tagging: false
    vault_dir: ~/Notes

The camelCase names used by the Obsidian plugin (icloudUserName,
peoplePath, ...) are accepted as aliases.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from icloud_contacts_sync.config.loader import ConfigError

# Default folder, relative to the vault, that holds contact notes
DEFAULT_PEOPLE_PATH = "people"

# Default CardDAV endpoint for iCloud
DEFAULT_CARDDAV_URL = "https://contacts.icloud.com"

# Default HTTP timeout for CardDAV requests (seconds)
DEFAULT_REQUEST_TIMEOUT = 30.0

# Plugin setting names mapped to settings attributes
CAMEL_CASE_ALIASES = {
    "icloudUserName": "icloud_user_name",
    "icloudPassword": "icloud_password",
    "peoplePath": "people_path",
    "includeContactsWithoutNames": "include_contacts_without_names",
    "includeContactInfoTagging": "include_contact_info_tagging",
}


@dataclass(frozen=True)
class SyncSettings:
    """
    Options for a single sync pass.

    Attributes:
        icloud_user_name: Apple ID used for CardDAV basic auth
        icloud_password: App-specific password for the Apple ID
        people_path: Vault folder holding contact notes (default: "people")
        include_contacts_without_names: Also sync contacts whose structured
            name is empty
        include_contact_info_tagging: Append type labels such as "(work)"
            to phone numbers and emails
        vault_dir: Local directory the vault lives in
        carddav_url: Base URL of the CardDAV service
        request_timeout: HTTP timeout in seconds
    """

    icloud_user_name: str = ""
    icloud_password: str = ""
    people_path: str = DEFAULT_PEOPLE_PATH
    include_contacts_without_names: bool = False
    include_contact_info_tagging: bool = False
    vault_dir: Path = Path(".")
    carddav_url: str = DEFAULT_CARDDAV_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SyncSettings:
        """
        Create SyncSettings from a configuration dictionary.

        Args:
            data: Loaded configuration, or None for defaults

        Returns:
            SyncSettings with defaults for missing keys

        Raises:
            ConfigError: If a recognized option has the wrong type
        """
        if data is None:
            return cls()

        if not isinstance(data, dict):
            raise ConfigError(
                f"Settings must be a dictionary, got {type(data).__name__}"
            )

        values: dict[str, Any] = {}
        for key, value in data.items():
            name = CAMEL_CASE_ALIASES.get(key, key)
            values[name] = value

        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in values.items() if k in known and v is not None}

        for name in ("icloud_user_name", "icloud_password", "people_path"):
            if name in kwargs and not isinstance(kwargs[name], str):
                raise ConfigError(
                    f"{name} must be a string, got {type(kwargs[name]).__name__}"
                )

        for name in ("include_contacts_without_names", "include_contact_info_tagging"):
            if name in kwargs and not isinstance(kwargs[name], bool):
                raise ConfigError(
                    f"{name} must be a boolean, got {type(kwargs[name]).__name__}"
                )

        if "vault_dir" in kwargs:
            kwargs["vault_dir"] = Path(kwargs["vault_dir"]).expanduser()

        if "request_timeout" in kwargs:
            timeout = kwargs["request_timeout"]
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise ConfigError(
                    f"request_timeout must be a number, got {type(timeout).__name__}"
                )
            kwargs["request_timeout"] = float(timeout)

        return cls(**kwargs)

    def with_overrides(self, **overrides: Any) -> SyncSettings:
        """
        Return a copy with the given values applied.

        None values are skipped, so unset CLI options keep the config value.
        """
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "vault_dir" in changes:
            changes["vault_dir"] = Path(changes["vault_dir"]).expanduser()
        return replace(self, **changes)

    @property
    def has_credentials(self) -> bool:
        """True when both username and password are non-blank."""
        return bool(self.icloud_user_name.strip() and self.icloud_password.strip())

    def to_display_dict(self) -> dict[str, Any]:
        """Settings as a dictionary with the password masked."""
        return {
            "icloud_user_name": self.icloud_user_name,
            "icloud_password": "********" if self.icloud_password else "",
            "people_path": self.people_path,
            "include_contacts_without_names": self.include_contacts_without_names,
            "include_contact_info_tagging": self.include_contact_info_tagging,
            "vault_dir": str(self.vault_dir),
            "carddav_url": self.carddav_url,
            "request_timeout": self.request_timeout,
        }
