"""
Note path resolution for contacts.

A contact's note normally lives at ``{people_path}/{name}.md``. When that
name is already taken by a different contact, the note is written to a
disambiguated path that adds a short token derived from the contact UID:
``{people_path}/{name} ({token}).md``.
"""

from __future__ import annotations

from typing import NamedTuple

from icloud_contacts_sync.utils.paths import normalize_vault_path

# Note file extension
NOTE_EXTENSION = ".md"

# Token length used when a UID has no hyphen-delimited prefix
FALLBACK_TOKEN_LENGTH = 8


class ContactPaths(NamedTuple):
    """Canonical and disambiguated note paths for one contact."""

    canonical: str
    disambiguated: str


def disambiguation_token(uid: str) -> str:
    """
    Short, stable token identifying a contact UID.

    iCloud UIDs are uppercase UUIDs, so the first hyphen-delimited segment
    (8 hex digits) is used. UIDs without a hyphen use their first 8
    characters instead.

    Example:
        >>> disambiguation_token("ABCD1234-5678-90EF-1234-567890ABCDEF")
        'ABCD1234'
    """
    prefix = uid.split("-")[0]
    if "-" in uid and prefix:
        return prefix
    return uid[:FALLBACK_TOKEN_LENGTH]


def resolve_paths(people_path: str, name: str, uid: str) -> ContactPaths:
    """
    Compute the note paths for a contact.

    Args:
        people_path: Vault folder holding contact notes
        name: Contact display name
        uid: Contact unique identifier

    Returns:
        ContactPaths with normalized canonical and disambiguated paths
    """
    canonical = normalize_vault_path(f"{people_path}/{name}{NOTE_EXTENSION}")
    disambiguated = normalize_vault_path(
        f"{people_path}/{name} ({disambiguation_token(uid)}){NOTE_EXTENSION}"
    )
    return ContactPaths(canonical=canonical, disambiguated=disambiguated)
