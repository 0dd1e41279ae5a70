"""Tests for token resolution."""

import pytest

from gho.errors import NoTokenConfigured
from gho.github.auth import (
    CredentialResolver,
    EnvironmentTokenSource,
    SecretStoreTokenSource,
)
from gho.models import Account, TokenRef


class TestEnvironmentTokenSource:
    """Tests for EnvironmentTokenSource."""

    def test_gh_token_first(self, personal_account: Account) -> None:
        """Test GH_TOKEN takes priority over GITHUB_TOKEN."""
        source = EnvironmentTokenSource({"GH_TOKEN": "from_gh", "GITHUB_TOKEN": "from_github"})
        assert source.lookup(personal_account) == "from_gh"

    def test_github_token_fallback(self, personal_account: Account) -> None:
        """Test GITHUB_TOKEN is used when GH_TOKEN is absent."""
        source = EnvironmentTokenSource({"GITHUB_TOKEN": "from_github"})
        assert source.lookup(personal_account) == "from_github"

    def test_empty_value_ignored(self, personal_account: Account) -> None:
        """Test an empty variable does not count as a token."""
        source = EnvironmentTokenSource({"GH_TOKEN": "", "GITHUB_TOKEN": "from_github"})
        assert source.lookup(personal_account) == "from_github"

    def test_reads_process_environment(
        self, personal_account: Account, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test os.environ is read at lookup time by default."""
        source = EnvironmentTokenSource()
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.setenv("GH_TOKEN", "late_token")
        assert source.lookup(personal_account) == "late_token"


class TestSecretStoreTokenSource:
    """Tests for SecretStoreTokenSource."""

    def test_lookup_by_account_id(self, secret_store, personal_account: Account) -> None:
        """Test the token is keyed by account id."""
        secret_store.set("gho", "personal", "ghp_stored")
        source = SecretStoreTokenSource(secret_store)
        assert source.lookup(personal_account) == "ghp_stored"

    def test_env_only_account_skipped(self, secret_store) -> None:
        """Test accounts referencing the environment skip the keychain."""
        secret_store.set("gho", "ci", "ghp_stored")
        account = Account(id="ci", username="bot", token_ref=TokenRef.ENV)
        assert SecretStoreTokenSource(secret_store).lookup(account) is None


class TestCredentialResolver:
    """Tests for CredentialResolver."""

    def test_environment_overrides_keychain(self, secret_store, personal_account: Account) -> None:
        """Test an environment token wins over the stored token."""
        secret_store.set("gho", "personal", "ghp_stored")
        resolver = CredentialResolver.default(secret_store, env={"GH_TOKEN": "ghp_env"})
        assert resolver.resolve_token(personal_account) == "ghp_env"

    def test_keychain_used_without_env(
        self, resolver: CredentialResolver, secret_store, personal_account: Account
    ) -> None:
        """Test the stored token is used when the environment has none."""
        secret_store.set("gho", "personal", "ghp_stored")
        assert resolver.resolve_token(personal_account) == "ghp_stored"

    def test_no_token(self, resolver: CredentialResolver, personal_account: Account) -> None:
        """Test NoTokenConfigured when nothing yields a token."""
        with pytest.raises(NoTokenConfigured) as exc_info:
            resolver.resolve_token(personal_account)

        assert exc_info.value.account_id == "personal"
        assert exc_info.value.exit_code == 13

    def test_sources_in_order(self, secret_store) -> None:
        """Test the default resolver checks the environment first."""
        resolver = CredentialResolver.default(secret_store, env={})
        assert [s.name for s in resolver.sources] == ["environment", "keychain"]
