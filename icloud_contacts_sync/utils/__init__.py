"""
icloud_contacts_sync.utils - Utility module

Common utilities including logging configuration, vault path handling and
contact value formatting.
"""

from icloud_contacts_sync.utils.normalization import (
    decode_html_entities,
    format_phone_number,
)
from icloud_contacts_sync.utils.paths import (
    DEFAULT_CONFIG_DIR,
    normalize_vault_path,
    resolve_config_dir,
)

__all__ = [
    "decode_html_entities",
    "format_phone_number",
    "normalize_vault_path",
    "resolve_config_dir",
    "DEFAULT_CONFIG_DIR",
]
