"""
Reconciliation of remote contacts onto vault notes.

For each contact the reconciler decides, from what currently sits at the
contact's canonical and disambiguated paths, whether to create a note,
update one in place, move a previously disambiguated note back to its
canonical name, or fall back to the disambiguated path because the
canonical name belongs to someone else.

Name collisions are an expected condition and are resolved here without
raising; only storage failures propagate to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from icloud_contacts_sync.storage.vault import EntryKind, Vault
from icloud_contacts_sync.sync.contact import RemoteContact
from icloud_contacts_sync.sync.frontmatter import patch_header, render_new_note
from icloud_contacts_sync.sync.paths import ContactPaths, resolve_paths

logger = logging.getLogger(__name__)


class ReconcileAction(str, Enum):
    """What the reconciler did with a contact."""

    CREATED = "created"  # New note at the canonical path
    UPDATED = "updated"  # Existing note updated in place
    RENAMED = "renamed"  # Disambiguated note moved to canonical path, then updated
    DISAMBIGUATED = "disambiguated"  # New note at the disambiguated path
    CONFLICT = "conflict"  # Target note belongs to another contact, left untouched


@dataclass(frozen=True)
class ReconcileOutcome:
    """
    Result of reconciling one contact.

    Attributes:
        uid: Contact UID
        action: Action taken
        path: Vault path of the contact's note after reconciliation
    """

    uid: str
    action: ReconcileAction
    path: str


class Reconciler:
    """
    Maps remote contacts onto notes in a vault folder.

    Contacts must be reconciled one at a time: each decision reads the
    current vault state, so a rename or create must complete before the
    next contact is looked at.

    Usage:
        reconciler = Reconciler(vault, people_path="people")
        for contact in contacts:
            outcome = reconciler.reconcile(contact)
    """

    def __init__(self, vault: Vault, people_path: str):
        self.vault = vault
        self.people_path = people_path

    def paths_for(self, contact: RemoteContact) -> ContactPaths:
        """Canonical and disambiguated note paths for a contact."""
        return resolve_paths(self.people_path, contact.file_stem, contact.uid)

    def reconcile(self, contact: RemoteContact) -> ReconcileOutcome:
        """
        Create, update or move the note for a contact.

        Args:
            contact: Normalized remote contact

        Returns:
            ReconcileOutcome describing the action taken

        Raises:
            StorageError: If a vault operation fails
        """
        paths = self.paths_for(contact)
        canonical = self.vault.lookup(paths.canonical)
        disambiguated = self.vault.lookup(paths.disambiguated)

        logger.debug(
            f"Reconciling {contact.uid}: {paths.canonical} is {canonical.value}, "
            f"{paths.disambiguated} is {disambiguated.value}"
        )

        # The collision that forced disambiguation is gone
        if disambiguated is EntryKind.FILE and canonical is EntryKind.ABSENT:
            self.vault.rename_file(paths.disambiguated, paths.canonical)
            logger.info(f"Renamed {paths.disambiguated} -> {paths.canonical}")
            return self._update_in_place(
                contact, paths.canonical, ReconcileAction.RENAMED
            )

        if disambiguated is EntryKind.FILE:
            return self._update_in_place(
                contact, paths.disambiguated, ReconcileAction.UPDATED
            )

        # A folder can't be turned into a note, never move it
        if canonical is EntryKind.FOLDER:
            return self._create(
                contact, paths.disambiguated, ReconcileAction.DISAMBIGUATED
            )

        if canonical is EntryKind.ABSENT:
            return self._create(contact, paths.canonical, ReconcileAction.CREATED)

        mismatch = self._update(contact, paths.canonical)
        if not mismatch:
            return ReconcileOutcome(
                contact.uid, ReconcileAction.UPDATED, paths.canonical
            )

        logger.info(
            f"{paths.canonical} belongs to another contact, "
            f"using {paths.disambiguated}"
        )
        return self._create(
            contact, paths.disambiguated, ReconcileAction.DISAMBIGUATED
        )

    def _update(self, contact: RemoteContact, path: str) -> bool:
        """Patch the note header with the contact; returns the mismatch flag."""
        return self.vault.read_and_patch_header(
            path, lambda header: patch_header(header, contact)
        )

    def _update_in_place(
        self, contact: RemoteContact, path: str, action: ReconcileAction
    ) -> ReconcileOutcome:
        if self._update(contact, path):
            logger.warning(
                f"{path} is synced to a different contact, "
                f"leaving it unchanged for {contact.uid}"
            )
            return ReconcileOutcome(contact.uid, ReconcileAction.CONFLICT, path)
        return ReconcileOutcome(contact.uid, action, path)

    def _create(
        self, contact: RemoteContact, path: str, action: ReconcileAction
    ) -> ReconcileOutcome:
        self.vault.create_file(path, render_new_note(contact))
        logger.debug(f"Created {path}")
        return ReconcileOutcome(contact.uid, action, path)
