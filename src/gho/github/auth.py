"""Token resolution for configured accounts.

Tokens are resolved by trying an ordered list of token sources; the first
source that yields a token wins:

1. GH_TOKEN / GITHUB_TOKEN environment variables (override any account)
2. The OS secret store entry for the account id under the ``gho`` service

If no source yields a token, NoTokenConfigured is raised.
"""

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from gho.config import SERVICE_NAME, TOKEN_ENV_VARS
from gho.errors import NoTokenConfigured
from gho.keychain import SecretStore
from gho.models import Account, TokenRef

logger = logging.getLogger(__name__)


class TokenSource(ABC):
    """A single place a token may come from."""

    name: str = "base"

    @abstractmethod
    def lookup(self, account: Account) -> str | None:
        """Return a token for the account, or None if this source does not apply."""


class EnvironmentTokenSource(TokenSource):
    """Token from environment variables, checked in a fixed order."""

    name = "environment"

    def __init__(
        self,
        env: Mapping[str, str] | None = None,
        names: Sequence[str] = TOKEN_ENV_VARS,
    ) -> None:
        """Initialize environment token source.

        Args:
            env: Environment mapping. If None, os.environ is read at lookup time.
            names: Variable names in priority order.
        """
        self._env = env
        self._names = tuple(names)

    def lookup(self, account: Account) -> str | None:  # noqa: ARG002
        env = os.environ if self._env is None else self._env
        for name in self._names:
            token = env.get(name)
            if token:
                logger.debug("Using token from %s environment variable", name)
                return token
        return None


class SecretStoreTokenSource(TokenSource):
    """Token from the OS secret store, keyed by account id."""

    name = "keychain"

    def __init__(self, store: SecretStore, service: str = SERVICE_NAME) -> None:
        self._store = store
        self._service = service

    def lookup(self, account: Account) -> str | None:
        if account.token_ref is not TokenRef.KEYCHAIN:
            return None

        token = self._store.get(self._service, account.id)
        if token:
            logger.debug("Using token for %s from keychain", account.id)
            return token
        return None


class CredentialResolver:
    """Resolves an account's token from an ordered list of sources."""

    def __init__(self, sources: Sequence[TokenSource]) -> None:
        """Initialize resolver.

        Args:
            sources: Token sources in priority order.
        """
        self.sources: list[TokenSource] = list(sources)

    @classmethod
    def default(
        cls,
        store: SecretStore,
        env: Mapping[str, str] | None = None,
        service: str = SERVICE_NAME,
    ) -> "CredentialResolver":
        """Build the standard environment-then-keychain resolver."""
        return cls([EnvironmentTokenSource(env), SecretStoreTokenSource(store, service)])

    def resolve_token(self, account: Account) -> str:
        """Resolve the token for an account.

        Args:
            account: Account to resolve a token for.

        Returns:
            Token from the first source that yields one.

        Raises:
            NoTokenConfigured: If no source yields a token.
            SecretStoreError: If the secret store cannot be queried.
        """
        for source in self.sources:
            token = source.lookup(account)
            if token:
                logger.info("Using %s token for account %s", source.name, account.id)
                return token

        raise NoTokenConfigured(account.id)
