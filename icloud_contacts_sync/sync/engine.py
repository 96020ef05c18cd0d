"""
Sync engine for one-way iCloud contacts synchronization.

Drives a full sync pass: checks preconditions, fetches contacts from the
CardDAV directory, filters them and reconciles each one into the vault.

A pass either completes or stops before touching any contact. Once
reconciliation starts, a failure on one contact is logged and counted but
never stops the remaining contacts.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

from icloud_contacts_sync.api.carddav import (
    CardDAVError,
    Credentials,
    fetch_remote_contacts,
)
from icloud_contacts_sync.config.settings import SyncSettings
from icloud_contacts_sync.storage.vault import EntryKind, StorageError, Vault
from icloud_contacts_sync.sync.contact import (
    MissingIdentifierError,
    RemoteContact,
    has_name,
)
from icloud_contacts_sync.sync.reconciler import (
    ReconcileAction,
    ReconcileOutcome,
    Reconciler,
)
from icloud_contacts_sync.utils.paths import normalize_vault_path

logger = logging.getLogger(__name__)

# User-facing notification messages
MSG_PEOPLE_PATH_IS_FILE = 'Error: "People path" option must be a folder.'
MSG_FOLDER_CREATED = 'Created iCloud contacts folder "{path}"'
MSG_MISSING_CREDENTIALS = "Error: Make sure you have entered valid iCloud credentials"
MSG_SYNC_STARTED = "Starting iCloud contacts sync"
MSG_SYNC_FAILED = "Error: Sync failed, check your iCloud credentials"
MSG_SYNC_COMPLETED = "Completed iCloud contacts sync"

# Notifier receives (message, level) where level is a logging level
Notifier = Callable[[str, int], None]
Fetcher = Callable[[Credentials], list[Any]]


def log_notifier(message: str, level: int) -> None:
    """Default notifier: send notifications to the log."""
    logger.log(level, message)


@dataclass
class SyncStats:
    """
    Statistics from a sync pass.

    Tracks counts of all operations performed during sync.
    """

    contacts_fetched: int = 0
    skipped_nameless: int = 0
    created: int = 0
    updated: int = 0
    renamed: int = 0
    disambiguated: int = 0
    conflicts: int = 0
    failed: int = 0

    def record(self, action: ReconcileAction) -> None:
        """Count one reconciliation outcome."""
        if action is ReconcileAction.CREATED:
            self.created += 1
        elif action is ReconcileAction.UPDATED:
            self.updated += 1
        elif action is ReconcileAction.RENAMED:
            self.renamed += 1
        elif action is ReconcileAction.DISAMBIGUATED:
            self.disambiguated += 1
        elif action is ReconcileAction.CONFLICT:
            self.conflicts += 1

    @property
    def contacts_processed(self) -> int:
        """Contacts handed to the reconciler, including failures."""
        return (
            self.created
            + self.updated
            + self.renamed
            + self.disambiguated
            + self.conflicts
            + self.failed
        )

    def summary(self) -> str:
        """One-line human readable summary."""
        return (
            f"{self.contacts_fetched} fetched, {self.created} created, "
            f"{self.updated} updated, {self.renamed} renamed, "
            f"{self.disambiguated} disambiguated, {self.conflicts} conflicts, "
            f"{self.failed} failed, {self.skipped_nameless} skipped without name"
        )


@dataclass
class SyncResult:
    """
    Result of a sync pass.

    Attributes:
        success: False if the pass stopped on a precondition or fetch failure
        error: Notification shown for the failure, if any
        stats: Operation counts
        outcomes: Per-contact reconciliation outcomes, in processing order
    """

    success: bool = True
    error: Optional[str] = None
    stats: SyncStats = field(default_factory=SyncStats)
    outcomes: list[ReconcileOutcome] = field(default_factory=list)


class SyncEngine:
    """
    Runs sync passes from the CardDAV directory into a vault.

    Attributes:
        settings: Options for the pass
        vault: Target vault
        fetcher: Callable returning parsed vCards for a Credentials pair
        notifier: Callable receiving user-facing notifications

    Usage:
        engine = SyncEngine(settings, Vault(settings.vault_dir))
        result = engine.sync()
        print(result.stats.summary())
    """

    def __init__(
        self,
        settings: SyncSettings,
        vault: Vault,
        fetcher: Optional[Fetcher] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.settings = settings
        self.vault = vault
        self.fetcher = fetcher or self._default_fetcher
        self.notifier = notifier or log_notifier

    def _default_fetcher(self, credentials: Credentials) -> list[Any]:
        return fetch_remote_contacts(
            credentials,
            base_url=self.settings.carddav_url,
            timeout=self.settings.request_timeout,
        )

    def _fail(self, result: SyncResult, message: str) -> SyncResult:
        self.notifier(message, logging.ERROR)
        result.success = False
        result.error = message
        return result

    def sync(self) -> SyncResult:
        """
        Execute one sync pass.

        Returns:
            SyncResult with statistics and per-contact outcomes
        """
        result = SyncResult()
        people_path = normalize_vault_path(self.settings.people_path)

        folder = self.vault.lookup(people_path)
        if folder is EntryKind.FILE:
            return self._fail(result, MSG_PEOPLE_PATH_IS_FILE)
        if folder is EntryKind.ABSENT:
            try:
                self.vault.create_folder(people_path)
            except StorageError as e:
                logger.error(f"Could not create {people_path}: {e}")
                return self._fail(result, f"Error: {e}")
            self.notifier(MSG_FOLDER_CREATED.format(path=people_path), logging.INFO)

        if not self.settings.has_credentials:
            return self._fail(result, MSG_MISSING_CREDENTIALS)

        self.notifier(MSG_SYNC_STARTED, logging.INFO)

        credentials = Credentials(
            self.settings.icloud_user_name, self.settings.icloud_password
        )
        try:
            cards = self.fetcher(credentials)
        except CardDAVError as e:
            # Details go to the log only
            logger.error(f"Fetching contacts failed: {e}")
            return self._fail(result, MSG_SYNC_FAILED)
        except Exception as e:
            logger.exception(f"Unexpected error fetching contacts: {e}")
            return self._fail(result, MSG_SYNC_FAILED)

        result.stats.contacts_fetched = len(cards)

        if self.settings.include_contacts_without_names:
            selected = list(cards)
        else:
            selected = [card for card in cards if has_name(card)]
            result.stats.skipped_nameless = len(cards) - len(selected)
            if result.stats.skipped_nameless:
                logger.debug(
                    f"Skipping {result.stats.skipped_nameless} contacts without names"
                )

        reconciler = Reconciler(self.vault, people_path)
        for card in selected:
            outcome = self._sync_one(reconciler, card)
            if outcome is None:
                result.stats.failed += 1
                continue
            result.outcomes.append(outcome)
            result.stats.record(outcome.action)

        logger.info(f"Sync finished: {result.stats.summary()}")
        self.notifier(MSG_SYNC_COMPLETED, logging.INFO)
        return result

    def _sync_one(
        self, reconciler: Reconciler, card: Any
    ) -> Optional[ReconcileOutcome]:
        """Reconcile one card; failures are logged and reported as None."""
        try:
            contact = RemoteContact.from_vcard(
                card,
                include_contact_info_tagging=self.settings.include_contact_info_tagging,
            )
        except MissingIdentifierError as e:
            logger.warning(f"Skipping contact: {e}")
            return None
        except Exception as e:
            logger.exception(f"Could not read contact: {e}")
            return None

        try:
            return reconciler.reconcile(contact)
        except StorageError as e:
            logger.error(f"Failed to sync {contact.uid}: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error syncing {contact.uid}: {e}")
        return None
