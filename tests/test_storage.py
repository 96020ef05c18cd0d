"""
Unit tests for the storage module.

Tests the Vault class for note lookup, creation, rename and front matter
patching on a temporary directory.
"""

from unittest.mock import patch

import pytest

from icloud_contacts_sync.storage.vault import (
    TEMP_SUFFIX,
    EntryKind,
    StorageError,
    Vault,
)

NOTE = "---\nName: Jane Doe\nSyncID: u-1\n---\n\nMy notes\n"


class TestVaultLookup:
    """Tests for entry lookup."""

    def test_absent(self, vault):
        assert vault.lookup("people/Jane Doe.md") is EntryKind.ABSENT

    def test_folder(self, vault):
        assert vault.lookup("people") is EntryKind.FOLDER

    def test_file(self, vault):
        vault.create_file("people/Jane Doe.md", NOTE)
        assert vault.lookup("people/Jane Doe.md") is EntryKind.FILE

    def test_root_is_folder(self, vault):
        assert vault.lookup("/") is EntryKind.FOLDER

    def test_path_is_normalized(self, vault):
        vault.create_file("people/Jane Doe.md", NOTE)
        assert vault.lookup("/people//Jane Doe.md") is EntryKind.FILE

    def test_escape_rejected(self, vault):
        with pytest.raises(StorageError, match="escapes"):
            vault.lookup("../outside.md")


class TestVaultCreate:
    """Tests for folder and file creation."""

    def test_create_nested_folder(self, tmp_path):
        store = Vault(tmp_path)
        store.create_folder("contacts/people")
        assert (tmp_path / "contacts" / "people").is_dir()

    def test_create_existing_folder_is_noop(self, vault):
        vault.create_folder("people")
        assert vault.lookup("people") is EntryKind.FOLDER

    def test_create_folder_over_file_fails(self, vault):
        vault.create_file("people/Jane Doe.md", NOTE)
        with pytest.raises(StorageError):
            vault.create_folder("people/Jane Doe.md")

    def test_create_file(self, vault, tmp_path):
        vault.create_file("people/Jane Doe.md", NOTE)
        assert (tmp_path / "people" / "Jane Doe.md").read_text() == NOTE

    def test_create_existing_file_fails(self, vault):
        vault.create_file("people/Jane Doe.md", NOTE)
        with pytest.raises(StorageError, match="already exists"):
            vault.create_file("people/Jane Doe.md", "other")

    def test_create_file_without_folder_fails(self, vault):
        with pytest.raises(StorageError, match="Folder does not exist"):
            vault.create_file("missing/Jane Doe.md", NOTE)

    def test_line_endings_preserved(self, vault):
        vault.create_file("people/Jane Doe.md", "a\r\nb\n")
        assert vault.read_file("people/Jane Doe.md") == "a\r\nb\n"


class TestVaultRename:
    """Tests for file renames."""

    def test_rename(self, vault):
        vault.create_file("people/Jane Doe (u).md", NOTE)
        vault.rename_file("people/Jane Doe (u).md", "people/Jane Doe.md")

        assert vault.lookup("people/Jane Doe (u).md") is EntryKind.ABSENT
        assert vault.read_file("people/Jane Doe.md") == NOTE

    def test_rename_missing_source_fails(self, vault):
        with pytest.raises(StorageError, match="not a file"):
            vault.rename_file("people/a.md", "people/b.md")

    def test_rename_onto_existing_fails(self, vault):
        vault.create_file("people/a.md", "a")
        vault.create_file("people/b.md", "b")

        with pytest.raises(StorageError, match="exists"):
            vault.rename_file("people/a.md", "people/b.md")
        assert vault.read_file("people/b.md") == "b"

    def test_rename_into_missing_folder_fails(self, vault):
        vault.create_file("people/a.md", "a")
        with pytest.raises(StorageError, match="Folder does not exist"):
            vault.rename_file("people/a.md", "other/a.md")


class TestVaultReadAndPatchHeader:
    """Tests for transactional front matter updates."""

    def test_patch_applied_and_body_kept(self, vault):
        vault.create_file("people/Jane Doe.md", NOTE)

        mismatch = vault.read_and_patch_header(
            "people/Jane Doe.md",
            lambda header: ({**header, "Name": "Jane Smith"}, False),
        )

        assert mismatch is False
        assert vault.read_file("people/Jane Doe.md") == (
            "---\nName: Jane Smith\nSyncID: u-1\n---\n\nMy notes\n"
        )

    def test_patch_receives_current_header(self, vault):
        vault.create_file("people/Jane Doe.md", NOTE)
        seen = []

        def record(header):
            seen.append(dict(header))
            return header, False

        vault.read_and_patch_header("people/Jane Doe.md", record)
        assert seen == [{"Name": "Jane Doe", "SyncID": "u-1"}]

    def test_mismatch_leaves_file_untouched(self, vault, tmp_path):
        vault.create_file("people/Jane Doe.md", NOTE)
        target = tmp_path / "people" / "Jane Doe.md"
        before = target.stat().st_mtime_ns

        mismatch = vault.read_and_patch_header(
            "people/Jane Doe.md", lambda header: ({"Name": "Other"}, True)
        )

        assert mismatch is True
        assert target.read_text() == NOTE
        assert target.stat().st_mtime_ns == before

    def test_unchanged_header_skips_write(self, vault):
        vault.create_file("people/Jane Doe.md", NOTE)

        with patch.object(Vault, "_write_atomic") as write:
            vault.read_and_patch_header(
                "people/Jane Doe.md", lambda header: (header, False)
            )

        write.assert_not_called()

    def test_note_without_front_matter_gets_one(self, vault):
        vault.create_file("people/Jane Doe.md", "Just text\n")

        vault.read_and_patch_header(
            "people/Jane Doe.md", lambda header: ({"SyncID": "u-1"}, False)
        )

        assert vault.read_file("people/Jane Doe.md") == (
            "---\nSyncID: u-1\n---\nJust text\n"
        )

    def test_invalid_front_matter_raises(self, vault):
        vault.create_file("people/Jane Doe.md", "---\nName: [bad\n---\n")
        with pytest.raises(StorageError, match="Cannot update"):
            vault.read_and_patch_header(
                "people/Jane Doe.md", lambda header: (header, False)
            )

    def test_missing_note_raises(self, vault):
        with pytest.raises(StorageError, match="Failed to read"):
            vault.read_and_patch_header("people/x.md", lambda header: (header, False))

    def test_failed_write_leaves_original_and_no_temp_file(self, vault, tmp_path):
        vault.create_file("people/Jane Doe.md", NOTE)

        with patch(
            "icloud_contacts_sync.storage.vault.os.replace",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(StorageError, match="Failed to write"):
                vault.read_and_patch_header(
                    "people/Jane Doe.md",
                    lambda header: ({**header, "Name": "Changed"}, False),
                )

        assert vault.read_file("people/Jane Doe.md") == NOTE
        assert not (tmp_path / "people" / ("Jane Doe.md" + TEMP_SUFFIX)).exists()


class TestVaultNotes:
    """Tests for note listing and header reading."""

    def test_iter_notes_sorted(self, vault):
        vault.create_file("people/b.md", "b")
        vault.create_file("people/a.md", "a")
        vault.create_file("people/readme.txt", "x")

        assert list(vault.iter_notes("people")) == ["people/a.md", "people/b.md"]

    def test_iter_notes_missing_folder(self, vault):
        assert list(vault.iter_notes("missing")) == []

    def test_read_header(self, vault):
        vault.create_file("people/Jane Doe.md", NOTE)
        assert vault.read_header("people/Jane Doe.md") == {
            "Name": "Jane Doe",
            "SyncID": "u-1",
        }

    def test_read_header_without_front_matter(self, vault):
        vault.create_file("people/a.md", "text")
        assert vault.read_header("people/a.md") == {}

    def test_read_invalid_header_raises(self, vault):
        vault.create_file("people/a.md", "---\n- a\n---\n")
        with pytest.raises(StorageError):
            vault.read_header("people/a.md")
