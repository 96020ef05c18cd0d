"""
Local vault storage for contact notes.

Maps vault-relative POSIX paths (``people/Jane Doe.md``) onto a directory
on disk and provides the small set of operations the reconciler needs:
entry lookup, note creation, rename, and transactional front matter
patching.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator
from enum import Enum
from pathlib import Path
from typing import Any

from icloud_contacts_sync.sync.frontmatter import (
    FrontMatterError,
    join_note,
    split_note,
)
from icloud_contacts_sync.utils.paths import normalize_vault_path

# Suffix for temporary files written before an atomic replace
TEMP_SUFFIX = ".tmpwrite"

logger = logging.getLogger(__name__)

HeaderPatch = Callable[[dict[str, Any]], tuple[dict[str, Any], bool]]


class StorageError(Exception):
    """Raised when a vault operation fails."""

    pass


class EntryKind(str, Enum):
    """What a vault path currently refers to."""

    ABSENT = "absent"
    FILE = "file"
    FOLDER = "folder"


class Vault:
    """
    Notes vault rooted at a local directory.

    Attributes:
        root: Directory containing the vault

    Usage:
        vault = Vault(Path("~/Notes").expanduser())
        if vault.lookup("people") is EntryKind.ABSENT:
            vault.create_folder("people")
        vault.create_file("people/Jane Doe.md", "---\\nName: Jane Doe\\n---\\n\\n")
    """

    def __init__(self, root: Path | str):
        self.root = Path(root).expanduser()

    def __repr__(self) -> str:
        return f"Vault(root={str(self.root)!r})"

    def _resolve(self, path: str) -> Path:
        """Absolute filesystem path for a vault path."""
        normalized = normalize_vault_path(path)
        if normalized == "/":
            return self.root
        if ".." in normalized.split("/"):
            raise StorageError(f"Path escapes the vault: {path}")
        return self.root / normalized

    def lookup(self, path: str) -> EntryKind:
        """
        Report whether a vault path is absent, a file, or a folder.

        Args:
            path: Vault-relative path

        Returns:
            EntryKind for the path
        """
        target = self._resolve(path)
        if target.is_dir():
            return EntryKind.FOLDER
        if target.exists():
            return EntryKind.FILE
        return EntryKind.ABSENT

    def create_folder(self, path: str) -> None:
        """
        Create a folder, including missing parents.

        Raises:
            StorageError: If a file is in the way
        """
        target = self._resolve(path)
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create folder {path}: {e}") from e
        logger.debug(f"Created folder {path}")

    def create_file(self, path: str, content: str) -> None:
        """
        Create a new file.

        Args:
            path: Vault-relative path of the new file
            content: File contents

        Raises:
            StorageError: If the file already exists or its folder is missing
        """
        target = self._resolve(path)
        if not target.parent.is_dir():
            raise StorageError(f"Folder does not exist for {path}")
        try:
            with open(target, "x", encoding="utf-8", newline="") as f:
                f.write(content)
        except FileExistsError as e:
            raise StorageError(f"File already exists: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to create {path}: {e}") from e
        logger.debug(f"Created {path}")

    def read_file(self, path: str) -> str:
        """
        Read a file's contents.

        Raises:
            StorageError: If the file cannot be read
        """
        target = self._resolve(path)
        try:
            with open(target, encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def _write_atomic(self, target: Path, content: str) -> None:
        tmp = target.with_name(target.name + TEMP_SUFFIX)
        try:
            with open(tmp, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            os.replace(tmp, target)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    def rename_file(self, source: str, destination: str) -> None:
        """
        Move a file to a new path.

        Raises:
            StorageError: If the source is not a file, or the destination is
                taken or has no parent folder
        """
        src = self._resolve(source)
        dst = self._resolve(destination)

        if not src.is_file():
            raise StorageError(f"Cannot rename {source}: not a file")
        if dst.exists():
            raise StorageError(f"Cannot rename {source}: {destination} exists")
        if not dst.parent.is_dir():
            raise StorageError(f"Folder does not exist for {destination}")

        try:
            os.rename(src, dst)
        except OSError as e:
            raise StorageError(f"Failed to rename {source}: {e}") from e
        logger.debug(f"Renamed {source} -> {destination}")

    def read_and_patch_header(self, path: str, patch: HeaderPatch) -> bool:
        """
        Rewrite a note's front matter through a patch function.

        The patch receives the current header and returns the new header
        and a mismatch flag. The note is only rewritten when there is no
        mismatch, and the write replaces the file atomically. The body is
        kept as-is.

        Args:
            path: Vault-relative note path
            patch: Function (header) -> (new_header, mismatch)

        Returns:
            The mismatch flag reported by the patch

        Raises:
            StorageError: If the note cannot be read, parsed or written
        """
        target = self._resolve(path)
        text = self.read_file(path)

        try:
            header, body = split_note(text)
        except FrontMatterError as e:
            raise StorageError(f"Cannot update {path}: {e}") from e

        new_header, mismatch = patch(header)
        if mismatch:
            return True

        new_text = join_note(new_header, body)
        if new_text == text:
            logger.debug(f"No changes for {path}")
            return False

        try:
            self._write_atomic(target, new_text)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        logger.debug(f"Updated front matter of {path}")
        return False

    def iter_notes(self, folder: str) -> Iterator[str]:
        """Vault paths of the Markdown notes under a folder, sorted."""
        base = self._resolve(folder)
        if not base.is_dir():
            return
        for note in sorted(base.rglob("*.md")):
            if note.is_file():
                yield note.relative_to(self.root).as_posix()

    def read_header(self, path: str) -> dict[str, Any]:
        """
        Front matter of a note, or an empty dict if it has none.

        Raises:
            StorageError: If the note cannot be read or parsed
        """
        try:
            header, _ = split_note(self.read_file(path))
        except FrontMatterError as e:
            raise StorageError(f"Cannot read front matter of {path}: {e}") from e
        return header
