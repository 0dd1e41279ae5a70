"""OS secret store access for account tokens.

Tokens live in the platform keychain under the ``gho`` service, keyed by
account id.
"""

import logging
from typing import Protocol

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from gho.config import SERVICE_NAME
from gho.errors import SecretStoreError

logger = logging.getLogger(__name__)


class SecretStore(Protocol):
    """Namespaced key/value store for small secrets."""

    def get(self, service: str, key: str) -> str | None:
        """Return the secret, or None if there is no entry."""
        ...

    def set(self, service: str, key: str, secret: str) -> None:
        """Create or replace an entry."""
        ...

    def delete(self, service: str, key: str) -> bool:
        """Delete an entry. Returns False if there was none."""
        ...


class KeyringSecretStore:
    """SecretStore backed by the ``keyring`` library."""

    def get(self, service: str, key: str) -> str | None:
        try:
            return keyring.get_password(service, key)
        except KeyringError as e:
            msg = f"Failed to read token for '{key}' from keychain: {e}"
            raise SecretStoreError(msg) from e

    def set(self, service: str, key: str, secret: str) -> None:
        try:
            keyring.set_password(service, key, secret)
        except KeyringError as e:
            msg = f"Failed to store token for '{key}' in keychain: {e}"
            raise SecretStoreError(msg) from e
        logger.debug("Stored token for %s in keychain service %s", key, service)

    def delete(self, service: str, key: str) -> bool:
        try:
            keyring.delete_password(service, key)
        except PasswordDeleteError:
            return False
        except KeyringError as e:
            msg = f"Failed to delete token for '{key}' from keychain: {e}"
            raise SecretStoreError(msg) from e
        logger.debug("Deleted token for %s from keychain service %s", key, service)
        return True


def mask_token(token: str) -> str:
    """Mask a token for display, keeping only its first and last 4 chars."""
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}...{token[-4:]}"
