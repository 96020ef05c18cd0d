"""
YAML front matter handling for contact notes.

A contact note is a Markdown file whose header block holds the contact
fields:

    ---
    Name: Jane Doe
    Email:
    - jane@example.com
    - jane@work.example.com
    Phone: +1 (415) 555-2671
    SyncID: ABCD1234-5678-90EF-1234-567890ABCDEF
    ---

The functions here are pure: they turn contacts into header values and
apply a contact to an existing header. Reading and writing files is left to
the vault storage layer.
"""

from __future__ import annotations

from typing import Any, Optional, Union

import yaml

from icloud_contacts_sync.sync.contact import RemoteContact

FRONT_MATTER_DELIMITER = "---"

# Header key holding the remote contact UID
SYNC_ID_KEY = "SyncID"

# Header keys written for every contact, in note order
CONTACT_FIELD_KEYS = (
    "Name",
    "Organization",
    "Address",
    "Birthday",
    "Email",
    "Phone",
    SYNC_ID_KEY,
    "Note",
)

FieldValue = Union[str, list[str], None]


class FrontMatterError(ValueError):
    """Raised when a note's front matter cannot be parsed."""

    pass


def collapse_values(values: Optional[list[str]]) -> FieldValue:
    """
    Header value for a multi-valued field.

    Returns None for no values, the bare string for exactly one value and
    the list otherwise, so single values never render as one-item lists.
    """
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return list(values)


def contact_fields(contact: RemoteContact) -> dict[str, FieldValue]:
    """
    Header fields for a contact, in note order.

    Absent fields are present with a None value so callers can clear them.
    """
    return {
        "Name": contact.name,
        "Organization": contact.organization,
        "Address": collapse_values(contact.addresses),
        "Birthday": contact.birthday,
        "Email": collapse_values(contact.emails),
        "Phone": collapse_values(contact.phone_numbers),
        SYNC_ID_KEY: contact.uid,
        "Note": contact.note,
    }


def dump_header(header: dict[str, Any]) -> str:
    """Serialize a header to YAML, keeping key order and without wrapping."""
    return yaml.safe_dump(
        header,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=float("inf"),
    )


def split_note(text: str) -> tuple[dict[str, Any], str]:
    """
    Split a note into its front matter and body.

    Args:
        text: Full note contents

    Returns:
        Tuple of (header, body). Notes without a front matter block return
        an empty header and the whole text as body.

    Raises:
        FrontMatterError: If the front matter is not a valid YAML mapping
    """
    lines = text.split("\n")
    if not lines or lines[0].rstrip("\r") != FRONT_MATTER_DELIMITER:
        return {}, text

    for index in range(1, len(lines)):
        if lines[index].rstrip("\r") == FRONT_MATTER_DELIMITER:
            break
    else:
        # Unterminated block, treat the whole file as body
        return {}, text

    raw_header = "\n".join(lines[1:index])
    body = "\n".join(lines[index + 1 :])

    try:
        header = yaml.safe_load(raw_header)
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid front matter: {e}") from e

    if header is None:
        return {}, body
    if not isinstance(header, dict):
        raise FrontMatterError(
            f"Front matter must be a mapping, got {type(header).__name__}"
        )
    return header, body


def join_note(header: dict[str, Any], body: str) -> str:
    """Assemble a note from its header and body."""
    if not header:
        return body
    return (
        f"{FRONT_MATTER_DELIMITER}\n{dump_header(header)}"
        f"{FRONT_MATTER_DELIMITER}\n{body}"
    )


def render_new_note(contact: RemoteContact) -> str:
    """
    Contents of a brand-new note for a contact.

    Only present fields are written, in the fixed field order, followed by
    an empty body.
    """
    header = {
        key: value for key, value in contact_fields(contact).items() if value is not None
    }
    return join_note(header, "\n")


def patch_header(
    current: dict[str, Any], contact: RemoteContact
) -> tuple[dict[str, Any], bool]:
    """
    Apply a contact's fields to an existing note header.

    The header is owned by the contact when its SyncID equals the contact
    UID, or when it has no SyncID yet (first sync claims it). For an owned
    header every contact field is replaced, fields missing on the contact
    are removed, and unrelated keys are kept.

    Args:
        current: Existing note header
        contact: Contact to write

    Returns:
        Tuple of (new_header, mismatch). On mismatch the header belongs to a
        different contact and is returned unchanged.
    """
    sync_id = current.get(SYNC_ID_KEY)
    if sync_id is not None and str(sync_id) != contact.uid:
        return dict(current), True

    patched = dict(current)
    for key, value in contact_fields(contact).items():
        if value is None:
            patched.pop(key, None)
        else:
            patched[key] = value
    return patched, False
