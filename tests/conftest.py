"""Shared fixtures for icloud_contacts_sync tests."""

import logging

import pytest
import vobject

from icloud_contacts_sync.storage.vault import Vault
from icloud_contacts_sync.sync.contact import RemoteContact
from icloud_contacts_sync.utils.logging import LOGGER_NAME


def make_vcard_text(
    uid="ABCD1234-5678-90EF-1234-567890ABCDEF",
    fn="Jane Doe",
    n="Doe;Jane;;;",
    lines=(),
):
    """Build vCard 3.0 text; pass None to omit UID, FN or N."""
    parts = ["BEGIN:VCARD", "VERSION:3.0"]
    if uid is not None:
        parts.append(f"UID:{uid}")
    if n is not None:
        parts.append(f"N:{n}")
    if fn is not None:
        parts.append(f"FN:{fn}")
    parts.extend(lines)
    parts.append("END:VCARD")
    return "\r\n".join(parts) + "\r\n"


def make_card(**kwargs):
    """Parse a vCard built by make_vcard_text."""
    return vobject.readOne(make_vcard_text(**kwargs))


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() so caplog sees package records in every test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.disabled = False
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def vault(tmp_path):
    """Empty vault with a people folder."""
    store = Vault(tmp_path)
    store.create_folder("people")
    return store


@pytest.fixture
def jane():
    """A contact with one email."""
    return RemoteContact(
        uid="ABCD1234-5678-90EF-1234-567890ABCDEF",
        name="Jane Doe",
        emails=["jane@example.com"],
    )


@pytest.fixture
def other_jane():
    """A different contact with the same name."""
    return RemoteContact(
        uid="FFFF0000-1111-2222-3333-444455556666",
        name="Jane Doe",
        phone_numbers=["+1 (415) 555-2671"],
    )
