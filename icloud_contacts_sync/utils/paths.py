"""
Path utilities for configuration directory resolution and vault paths.

Provides consistent path resolution for the icloud-contacts-sync
configuration directory, and normalization of vault-relative note paths
so the same contact always maps onto the same string key.
"""

from __future__ import annotations

import os
import re
import unicodedata
from pathlib import Path

# Default configuration directory
DEFAULT_CONFIG_DIR = Path.home() / ".icloud-contacts-sync"

# Environment variable for overriding config directory
CONFIG_DIR_ENV_VAR = "ICLOUD_CONTACTS_SYNC_CONFIG_DIR"

# Characters that render as spaces but would produce distinct file names
_SPACE_LIKE = re.compile("[\u00a0\u202f]")


def resolve_config_dir(config_dir: Path | str | None = None) -> Path:
    """
    Resolve the configuration directory path.

    Priority:
        1. Explicit config_dir parameter (if provided)
        2. ICLOUD_CONTACTS_SYNC_CONFIG_DIR environment variable
        3. Default directory (~/.icloud-contacts-sync)

    Args:
        config_dir: Optional explicit configuration directory path.
                   Can be a Path object or string.

    Returns:
        Resolved Path to the configuration directory (expanduser and resolve applied)
    """
    if config_dir is not None:
        return Path(config_dir).expanduser().resolve()

    env_dir = os.environ.get(CONFIG_DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    return DEFAULT_CONFIG_DIR.expanduser().resolve()


def normalize_vault_path(path: str) -> str:
    """
    Normalize a vault-relative path into its canonical string form.

    Backslashes become forward slashes, repeated slashes collapse, ``.``
    segments and leading/trailing slashes are dropped, space-like characters
    become plain spaces and the result is NFC-normalized. The vault root is
    represented as ``/``.

    Args:
        path: Vault-relative path using any separator style

    Returns:
        Normalized POSIX-style path

    Example:
        >>> normalize_vault_path("people//Jane Doe.md")
        'people/Jane Doe.md'
        >>> normalize_vault_path("/people/")
        'people'
    """
    normalized = path.replace("\\", "/")
    normalized = _SPACE_LIKE.sub(" ", normalized)

    segments = [s for s in normalized.split("/") if s and s != "."]
    normalized = "/".join(segments)

    normalized = unicodedata.normalize("NFC", normalized)
    return normalized or "/"
