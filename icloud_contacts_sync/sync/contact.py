"""
Contact data model for iCloud contacts synchronization.

Provides a normalized RemoteContact built from a parsed vCard with:
- Display name decoding and name-presence detection
- Address, organization, phone and email formatting
- Optional type tagging of phone numbers and emails ("(work)", "(home)")

A RemoteContact lives for a single sync pass: it is built from one fetched
record, handed to the reconciler and then discarded.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Optional

from icloud_contacts_sync.utils.normalization import (
    decode_html_entities,
    format_phone_number,
)

# Type labels that carry no useful information for display
UNINTERESTING_PHONE_TYPES = frozenset({"voice", "pref"})
UNINTERESTING_EMAIL_TYPES = frozenset({"internet", "pref"})

# Structured ADR components, in vCard order
ADDRESS_COMPONENTS = (
    "box",
    "extended",
    "street",
    "city",
    "region",
    "code",
    "country",
)

# Structured N components, in vCard order
NAME_COMPONENTS = ("family", "given", "additional", "prefix", "suffix")


class MissingIdentifierError(ValueError):
    """Raised when a vCard has no UID and cannot be tracked across syncs."""

    pass


def _lines(card: Any, name: str) -> list[Any]:
    """All content lines of a vCard property, or an empty list."""
    contents = getattr(card, "contents", None) or {}
    return list(contents.get(name, []))


def _as_strings(value: Any) -> list[str]:
    """Flatten a structured vCard component (string or list) to strings."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return [str(value)]


def _text(card: Any, name: str) -> Optional[str]:
    """First value of a single-valued text property, None if missing or blank."""
    lines = _lines(card, name)
    if not lines:
        return None
    value = lines[0].value
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _type_labels(line: Any) -> list[str]:
    """Lower-cased TYPE parameter labels of a content line."""
    params = getattr(line, "params", None) or {}
    labels: list[str] = []
    for raw in params.get("TYPE", []):
        labels.extend(part.strip().lower() for part in str(raw).split(","))
    return [label for label in labels if label]


def _tag(value: str, line: Any, ignored: Iterable[str], enabled: bool) -> str:
    """Append the first interesting type label as " (label)" when enabled."""
    if not enabled:
        return value
    labels = [label for label in _type_labels(line) if label not in ignored]
    if not labels:
        return value
    return f"{value} ({labels[0]})"


def _format_address(value: Any) -> str:
    if isinstance(value, str):
        parts = value.split(";")
    else:
        parts = []
        for component in ADDRESS_COMPONENTS:
            parts.extend(_as_strings(getattr(value, component, None)))

    joined = ", ".join(p for p in parts if p)
    return joined.replace("\\n", " ").replace("\r\n", " ").replace("\n", " ")


def _format_organization(value: Any) -> Optional[str]:
    organization = "".join(_as_strings(value)).replace(";", "")
    return organization or None


def has_name(card: Any) -> bool:
    """
    Check whether a vCard has a structured name.

    A card has a name when its N property exists and at least one of its
    components (family, given, additional, prefix, suffix) is non-empty.
    Contacts failing this check are usually companies or bare phone
    numbers.

    Args:
        card: Parsed vCard component

    Returns:
        True if the structured name has any non-empty component
    """
    lines = _lines(card, "n")
    if not lines:
        return False

    value = lines[0].value
    if isinstance(value, str):
        components = value.split(";")
    else:
        components = []
        for component in NAME_COMPONENTS:
            components.extend(_as_strings(getattr(value, component, None)))

    return any(len(c) > 0 for c in components)


@dataclass
class RemoteContact:
    """
    Normalized contact as fetched from the remote directory.

    Attributes:
        uid: Stable unique identifier assigned by the directory
        name: Display name (HTML entities decoded), None if nameless
        organization: Organization on a single line
        birthday: Birthday as given by the directory
        note: Free-text note
        addresses: Formatted postal addresses, one line each
        phone_numbers: Formatted phone numbers
        emails: Email addresses

    Usage:
        card = vobject.readOne(vcard_text)
        contact = RemoteContact.from_vcard(card, include_contact_info_tagging=True)
    """

    uid: str
    name: Optional[str] = None
    organization: Optional[str] = None
    birthday: Optional[str] = None
    note: Optional[str] = None
    addresses: list[str] = field(default_factory=list)
    phone_numbers: list[str] = field(default_factory=list)
    emails: list[str] = field(default_factory=list)

    @classmethod
    def from_vcard(
        cls, card: Any, include_contact_info_tagging: bool = False
    ) -> RemoteContact:
        """
        Create a RemoteContact from a parsed vCard.

        Missing optional properties are left empty; only a missing UID is
        an error.

        Args:
            card: vCard component as returned by ``vobject.readOne``
            include_contact_info_tagging: Append type labels to phone numbers
                and emails

        Returns:
            RemoteContact populated from the card

        Raises:
            MissingIdentifierError: If the card has no UID
        """
        uid = _text(card, "uid")
        if uid is None or not uid.strip():
            raise MissingIdentifierError("vCard has no UID")

        name = decode_html_entities(_text(card, "fn"))
        if name is not None and not name.strip():
            name = None

        org_lines = _lines(card, "org")
        organization = _format_organization(org_lines[0].value) if org_lines else None

        addresses = [_format_address(line.value) for line in _lines(card, "adr")]

        phone_numbers = [
            _tag(
                format_phone_number(str(line.value)),
                line,
                UNINTERESTING_PHONE_TYPES,
                include_contact_info_tagging,
            )
            for line in _lines(card, "tel")
            if line.value
        ]

        emails = [
            _tag(
                str(line.value),
                line,
                UNINTERESTING_EMAIL_TYPES,
                include_contact_info_tagging,
            )
            for line in _lines(card, "email")
            if line.value
        ]

        return cls(
            uid=uid.strip(),
            name=name,
            organization=organization,
            birthday=_text(card, "bday"),
            note=_text(card, "note"),
            addresses=[a for a in addresses if a],
            phone_numbers=phone_numbers,
            emails=emails,
        )

    @property
    def file_stem(self) -> str:
        """
        Name used to derive the contact's note file name.

        Falls back to the organization, then the UID, for nameless contacts.
        """
        return self.name or self.organization or self.uid
