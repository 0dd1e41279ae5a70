"""Account store.

Owns the configured accounts and which one is active. Every mutation is a
single load-mutate-save transaction against the accounts document: state is
read in full, changed in memory and written back in full, so a failed write
leaves the previous document untouched.
"""

import logging

from pydantic import ValidationError

from gho.config import SERVICE_NAME
from gho.errors import (
    AccountNotFound,
    DuplicateAccount,
    NoActiveAccount,
    PersistenceError,
    SecretStoreError,
)
from gho.keychain import SecretStore
from gho.models import Account, AccountCollection
from gho.storage import DocumentStore

logger = logging.getLogger(__name__)


class AccountStore:
    """Persistent set of accounts plus the active account id."""

    def __init__(
        self,
        documents: DocumentStore,
        secrets: SecretStore | None = None,
        service: str = SERVICE_NAME,
    ) -> None:
        """Initialize account store.

        Args:
            documents: Persistence for the accounts document.
            secrets: Secret store for account tokens. Required to add accounts
                with a token and to clean up tokens on removal.
            service: Secret store service namespace.
        """
        self._documents = documents
        self._secrets = secrets
        self._service = service

    def load(self) -> AccountCollection:
        """Load the account collection.

        Returns:
            Stored collection, or an empty one if nothing is stored yet.

        Raises:
            PersistenceError: If the document is unreadable or invalid.
        """
        data = self._documents.load()
        if data is None:
            return AccountCollection()

        try:
            return AccountCollection.model_validate(data)
        except ValidationError as e:
            msg = f"Invalid accounts document: {e}"
            raise PersistenceError(msg) from e

    def _save(self, collection: AccountCollection) -> None:
        self._documents.save(collection.model_dump(mode="json"))

    def add(self, account: Account, token: str | None = None) -> AccountCollection:
        """Add an account.

        The first account ever added becomes active. Adding further accounts
        never changes the active account.

        Args:
            account: Account to add.
            token: Optional token to store in the secret store under the
                account id.

        Returns:
            Updated collection.

        Raises:
            DuplicateAccount: If the id is already configured.
            PersistenceError: If the accounts document cannot be written. A
                token stored by this call is removed again.
        """
        collection = self.load()
        if collection.find(account.id) is not None:
            raise DuplicateAccount(account.id)

        if token is not None:
            if self._secrets is None:
                msg = "No secret store configured to hold the account token"
                raise PersistenceError(msg)
            self._secrets.set(self._service, account.id, token)

        collection.accounts.append(account)
        if collection.active_id is None:
            collection.active_id = account.id

        try:
            self._save(collection)
        except PersistenceError:
            if token is not None and self._secrets is not None:
                logger.warning("Saving accounts failed, removing token for %s", account.id)
                self._forget_token(account.id)
            raise

        logger.info("Added account %s (%s)", account.id, account.username)
        return collection

    def list(self) -> AccountCollection:
        """Return all accounts in insertion order, with the active id."""
        return self.load()

    def get(self, account_id: str) -> Account:
        """Return a configured account.

        Raises:
            AccountNotFound: If the id is not configured.
        """
        account = self.load().find(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        return account

    def use(self, account_id: str) -> Account:
        """Make an account the active one.

        Raises:
            AccountNotFound: If the id is not configured.
        """
        collection = self.load()
        account = collection.find(account_id)
        if account is None:
            raise AccountNotFound(account_id)

        collection.active_id = account_id
        self._save(collection)
        logger.info("Switched active account to %s", account_id)
        return account

    def show_active(self) -> Account:
        """Return the active account.

        Raises:
            NoActiveAccount: If no account is active.
        """
        account = self.load().active()
        if account is None:
            raise NoActiveAccount()
        return account

    def resolve(self, account_id: str | None = None) -> Account:
        """Return the named account, or the active one when no id is given."""
        if account_id is not None:
            return self.get(account_id)
        return self.show_active()

    def remove(self, account_id: str) -> Account:
        """Remove an account and its stored token.

        Removing the active account clears the active id; no other account
        is promoted.

        Raises:
            AccountNotFound: If the id is not configured.
        """
        collection = self.load()
        account = collection.find(account_id)
        if account is None:
            raise AccountNotFound(account_id)

        collection.accounts = [a for a in collection.accounts if a.id != account_id]
        if collection.active_id == account_id:
            collection.active_id = None

        self._save(collection)
        logger.info("Removed account %s", account_id)

        self._forget_token(account_id)

        return account

    def _forget_token(self, account_id: str) -> None:
        if self._secrets is None:
            return
        try:
            if not self._secrets.delete(self._service, account_id):
                logger.debug("No keychain entry to delete for %s", account_id)
        except SecretStoreError as e:
            logger.warning("Could not delete keychain entry for %s: %s", account_id, e)
