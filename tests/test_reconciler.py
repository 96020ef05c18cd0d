"""
Tests for the Reconciler.

Covers every branch of the create/update/rename decision, name collisions
in both processing orders and repeat runs on an unchanged vault.
"""

import pytest

from icloud_contacts_sync.storage.vault import EntryKind, StorageError, Vault
from icloud_contacts_sync.sync.contact import RemoteContact
from icloud_contacts_sync.sync.frontmatter import SYNC_ID_KEY
from icloud_contacts_sync.sync.reconciler import (
    ReconcileAction,
    ReconcileOutcome,
    Reconciler,
)

CANONICAL = "people/Jane Doe.md"
JANE_ALT = "people/Jane Doe (ABCD1234).md"
OTHER_ALT = "people/Jane Doe (FFFF0000).md"


@pytest.fixture
def reconciler(vault):
    """Reconciler writing into the people folder."""
    return Reconciler(vault, "people")


def sync_ids(vault):
    """SyncID of every note in the people folder, keyed by path."""
    return {
        path: vault.read_header(path).get(SYNC_ID_KEY)
        for path in vault.iter_notes("people")
    }


class TestPathsFor:
    """Tests for note path computation."""

    def test_paths(self, reconciler, jane):
        paths = reconciler.paths_for(jane)
        assert paths.canonical == CANONICAL
        assert paths.disambiguated == JANE_ALT

    def test_nameless_contact_uses_organization(self, reconciler):
        contact = RemoteContact(uid="ABCD1234-x", organization="Acme Corp")
        assert reconciler.paths_for(contact).canonical == "people/Acme Corp.md"


class TestReconcileCreate:
    """Tests for notes that do not exist yet."""

    def test_creates_canonical_note(self, reconciler, vault, jane):
        outcome = reconciler.reconcile(jane)

        assert outcome == ReconcileOutcome(jane.uid, ReconcileAction.CREATED, CANONICAL)
        assert vault.read_header(CANONICAL) == {
            "Name": "Jane Doe",
            "Email": "jane@example.com",
            SYNC_ID_KEY: jane.uid,
        }

    def test_folder_at_canonical_path(self, reconciler, vault, jane):
        vault.create_folder(CANONICAL)

        outcome = reconciler.reconcile(jane)

        assert outcome.action is ReconcileAction.DISAMBIGUATED
        assert outcome.path == JANE_ALT
        assert vault.lookup(CANONICAL) is EntryKind.FOLDER
        assert vault.lookup(JANE_ALT) is EntryKind.FILE

    def test_missing_people_folder_raises(self, tmp_path, jane):
        with pytest.raises(StorageError):
            Reconciler(Vault(tmp_path), "people").reconcile(jane)


class TestReconcileUpdate:
    """Tests for notes that already exist."""

    def test_updates_owned_note(self, reconciler, vault, jane):
        reconciler.reconcile(jane)
        jane.emails = ["jane@new.example.com"]

        outcome = reconciler.reconcile(jane)

        assert outcome.action is ReconcileAction.UPDATED
        assert outcome.path == CANONICAL
        assert vault.read_header(CANONICAL)["Email"] == "jane@new.example.com"

    def test_claims_note_without_sync_id(self, reconciler, vault, jane):
        vault.create_file(CANONICAL, "---\ntags:\n- friend\n---\n\nMet in 2019\n")

        outcome = reconciler.reconcile(jane)

        assert outcome.action is ReconcileAction.UPDATED
        text = vault.read_file(CANONICAL)
        assert text.endswith("---\n\nMet in 2019\n")
        header = vault.read_header(CANONICAL)
        assert header[SYNC_ID_KEY] == jane.uid
        assert header["tags"] == ["friend"]

    def test_user_body_preserved(self, reconciler, vault, jane, tmp_path):
        reconciler.reconcile(jane)
        note = tmp_path / CANONICAL
        note.write_text(note.read_text() + "## Notes\n\nCall back\n")

        jane.phone_numbers = ["(415) 555-2671"]
        reconciler.reconcile(jane)

        assert vault.read_file(CANONICAL).endswith("\n## Notes\n\nCall back\n")

    def test_updates_existing_disambiguated_note(
        self, reconciler, vault, jane, other_jane
    ):
        reconciler.reconcile(other_jane)
        reconciler.reconcile(jane)
        jane.emails = ["jane@new.example.com"]

        outcome = reconciler.reconcile(jane)

        assert outcome == ReconcileOutcome(jane.uid, ReconcileAction.UPDATED, JANE_ALT)
        assert vault.read_header(JANE_ALT)["Email"] == "jane@new.example.com"
        assert vault.read_header(CANONICAL)[SYNC_ID_KEY] == other_jane.uid


class TestReconcileCollisions:
    """Tests for two contacts with the same name."""

    def test_second_contact_disambiguated(self, reconciler, vault, jane, other_jane):
        first = reconciler.reconcile(jane)
        second = reconciler.reconcile(other_jane)

        assert first.action is ReconcileAction.CREATED
        assert second.action is ReconcileAction.DISAMBIGUATED
        assert second.path == OTHER_ALT
        assert sync_ids(vault) == {
            CANONICAL: jane.uid,
            OTHER_ALT: other_jane.uid,
        }

    def test_reverse_order(self, reconciler, vault, jane, other_jane):
        reconciler.reconcile(other_jane)
        reconciler.reconcile(jane)

        assert sync_ids(vault) == {
            CANONICAL: other_jane.uid,
            JANE_ALT: jane.uid,
        }

    def test_canonical_note_not_modified_by_other_contact(
        self, reconciler, vault, jane, other_jane
    ):
        reconciler.reconcile(jane)
        before = vault.read_file(CANONICAL)

        reconciler.reconcile(other_jane)

        assert vault.read_file(CANONICAL) == before

    def test_renamed_back_when_collision_gone(
        self, reconciler, vault, jane, other_jane
    ):
        reconciler.reconcile(other_jane)
        reconciler.reconcile(jane)

        # other_jane is renamed and the user archives the old note
        other_jane.name = "Janet Doe"
        reconciler.reconcile(other_jane)
        vault.rename_file(CANONICAL, "people/Archive.md")

        outcome = reconciler.reconcile(jane)

        assert outcome == ReconcileOutcome(jane.uid, ReconcileAction.RENAMED, CANONICAL)
        assert vault.lookup(JANE_ALT) is EntryKind.ABSENT
        assert vault.read_header(CANONICAL)[SYNC_ID_KEY] == jane.uid

    def test_one_note_per_sync_id(self, reconciler, vault, jane, other_jane):
        for _ in range(3):
            reconciler.reconcile(jane)
            reconciler.reconcile(other_jane)

        ids = list(sync_ids(vault).values())
        assert sorted(ids) == sorted([jane.uid, other_jane.uid])


class TestReconcileConflict:
    """Tests for in-place targets owned by another contact."""

    def test_disambiguated_note_owned_by_other(self, reconciler, vault, jane):
        foreign = "---\nName: Someone\nSyncID: OTHER-UID\n---\n\n"
        vault.create_file(CANONICAL, "---\nSyncID: OTHER-UID-2\n---\n\n")
        vault.create_file(JANE_ALT, foreign)

        outcome = reconciler.reconcile(jane)

        assert outcome == ReconcileOutcome(jane.uid, ReconcileAction.CONFLICT, JANE_ALT)
        assert vault.read_file(JANE_ALT) == foreign

    def test_renamed_note_owned_by_other(self, reconciler, vault, jane):
        foreign = "---\nSyncID: OTHER-UID\n---\n\n"
        vault.create_file(JANE_ALT, foreign)

        outcome = reconciler.reconcile(jane)

        assert outcome.action is ReconcileAction.CONFLICT
        assert outcome.path == CANONICAL
        assert vault.read_file(CANONICAL) == foreign

    def test_conflict_logged(self, reconciler, vault, jane, caplog):
        vault.create_file(JANE_ALT, "---\nSyncID: OTHER-UID\n---\n\n")
        vault.create_file(CANONICAL, "---\nSyncID: OTHER-UID-2\n---\n\n")

        with caplog.at_level("WARNING"):
            reconciler.reconcile(jane)

        assert "synced to a different contact" in caplog.text


class TestReconcileIdempotence:
    """Tests for repeated runs with unchanged data."""

    def test_second_run_leaves_bytes_unchanged(
        self, reconciler, vault, jane, other_jane
    ):
        reconciler.reconcile(jane)
        reconciler.reconcile(other_jane)
        first = {path: vault.read_file(path) for path in vault.iter_notes("people")}

        outcomes = [reconciler.reconcile(jane), reconciler.reconcile(other_jane)]
        second = {path: vault.read_file(path) for path in vault.iter_notes("people")}

        assert first == second
        assert [o.action for o in outcomes] == [
            ReconcileAction.UPDATED,
            ReconcileAction.UPDATED,
        ]

    def test_rich_contact_round_trips(self, reconciler, vault):
        contact = RemoteContact(
            uid="ABCD1234-x",
            name="Jane Doe",
            organization="Acme Corp",
            birthday="1990-04-01",
            note="Line one: with colon",
            addresses=["1 Main St, Springfield", "9 Market St, San Francisco"],
            phone_numbers=["+1 (415) 555-2671"],
            emails=["jane@example.com", "jane@work.example.com"],
        )
        reconciler.reconcile(contact)
        before = vault.read_file(CANONICAL)

        reconciler.reconcile(contact)

        assert vault.read_file(CANONICAL) == before
