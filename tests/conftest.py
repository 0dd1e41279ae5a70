"""Test fixtures for gho.

Provides fixtures for:
- An in-memory secret store standing in for the OS keychain
- Account and run state stores backed by a temporary config directory
- Factories for GitHub API repository and pull request payloads
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from gho.accounts import AccountStore
from gho.github.auth import CredentialResolver
from gho.models import Account, CloneProtocol
from gho.state import RunStateStore
from gho.storage import ConfigPaths, JSONDocumentStore


class MemorySecretStore:
    """SecretStore keeping entries in a dict."""

    def __init__(self) -> None:
        self.entries: dict[tuple[str, str], str] = {}

    def get(self, service: str, key: str) -> str | None:
        return self.entries.get((service, key))

    def set(self, service: str, key: str, secret: str) -> None:
        self.entries[(service, key)] = secret

    def delete(self, service: str, key: str) -> bool:
        return self.entries.pop((service, key), None) is not None


@pytest.fixture
def secret_store() -> MemorySecretStore:
    """Create an empty in-memory secret store."""
    return MemorySecretStore()


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Temporary configuration directory (not created yet)."""
    return tmp_path / "config" / "gho"


@pytest.fixture
def paths(config_dir: Path) -> ConfigPaths:
    """Config paths rooted at the temporary config directory."""
    return ConfigPaths(config_dir)


@pytest.fixture
def account_store(paths: ConfigPaths, secret_store: MemorySecretStore) -> AccountStore:
    """Account store persisting to the temporary config directory."""
    return AccountStore(JSONDocumentStore(paths.accounts_path), secret_store)


@pytest.fixture
def state_store(paths: ConfigPaths) -> RunStateStore:
    """Run state store persisting to the temporary config directory."""
    return RunStateStore(JSONDocumentStore(paths.state_path))


@pytest.fixture
def resolver(secret_store: MemorySecretStore) -> CredentialResolver:
    """Resolver reading an empty environment and the in-memory secret store."""
    return CredentialResolver.default(secret_store, env={})


@pytest.fixture
def personal_account() -> Account:
    """A personal account preferring SSH clones."""
    return Account(id="personal", username="octocat")


@pytest.fixture
def work_account() -> Account:
    """A work account preferring HTTPS clones with a default org."""
    return Account(
        id="work",
        username="octocat-work",
        clone_protocol=CloneProtocol.HTTPS,
        default_org="acme",
    )


@pytest.fixture
def repo_payload() -> Callable[..., dict[str, Any]]:
    """Factory for GitHub REST repository objects."""

    def make(name: str, owner: str = "acme", **overrides: Any) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": name,
            "full_name": f"{owner}/{name}",
            "owner": {"login": owner},
            "default_branch": "main",
            "ssh_url": f"git@github.com:{owner}/{name}.git",
            "clone_url": f"https://github.com/{owner}/{name}.git",
            "html_url": f"https://github.com/{owner}/{name}",
            "private": False,
            "fork": False,
            "pushed_at": "2026-01-01T00:00:00Z",
        }
        data.update(overrides)
        return data

    return make


@pytest.fixture
def pr_payload() -> Callable[..., dict[str, Any]]:
    """Factory for GitHub REST pull request objects."""

    def make(number: int, **overrides: Any) -> dict[str, Any]:
        data: dict[str, Any] = {
            "number": number,
            "title": f"Change #{number}",
            "user": {"login": "hubot"},
            "head": {"ref": f"feature-{number}"},
            "base": {"ref": "main"},
            "html_url": f"https://github.com/acme/widgets/pull/{number}",
        }
        data.update(overrides)
        return data

    return make
