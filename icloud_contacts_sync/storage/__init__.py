"""
Vault storage for contact notes.
"""

from icloud_contacts_sync.storage.vault import EntryKind, StorageError, Vault

__all__ = ["EntryKind", "StorageError", "Vault"]
