"""Data models for accounts, run state and GitHub resources."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class CloneProtocol(str, Enum):
    """Transport used for clone URLs."""

    SSH = "ssh"
    HTTPS = "https"


class AccountKind(str, Enum):
    """Whether an identity is a personal or a work account."""

    PERSONAL = "personal"
    WORK = "work"


class TokenRef(str, Enum):
    """Where an account's token lives.

    KEYCHAIN means a secret-store entry keyed by the account id. ENV means the
    token is expected from GH_TOKEN/GITHUB_TOKEN only.
    """

    KEYCHAIN = "keychain"
    ENV = "env"


class MergeableState(str, Enum):
    """Merge readiness of a pull request."""

    CLEAN = "clean"
    DIRTY = "dirty"
    BLOCKED = "blocked"
    UNKNOWN = "unknown"


class Account(BaseModel):
    """One configured GitHub identity."""

    id: str = Field(min_length=1)
    username: str = Field(min_length=1)
    kind: AccountKind = AccountKind.PERSONAL
    token_ref: TokenRef = TokenRef.KEYCHAIN
    clone_protocol: CloneProtocol = CloneProtocol.SSH
    default_org: str | None = None
    clone_dir: str | None = None


class AccountCollection(BaseModel):
    """Persisted set of accounts plus the active account id.

    Accounts keep insertion order. ``active_id`` is either None or the id of
    one of ``accounts``.
    """

    accounts: list[Account] = Field(default_factory=list)
    active_id: str | None = None

    @model_validator(mode="after")
    def validate_ids(self) -> "AccountCollection":
        """Reject duplicate ids and a dangling active id."""
        seen: set[str] = set()
        for account in self.accounts:
            if account.id in seen:
                msg = f"duplicate account id '{account.id}'"
                raise ValueError(msg)
            seen.add(account.id)

        if self.active_id is not None and self.active_id not in seen:
            msg = f"active account '{self.active_id}' is not configured"
            raise ValueError(msg)

        return self

    def find(self, account_id: str) -> Account | None:
        """Return the account with the given id, if any."""
        for account in self.accounts:
            if account.id == account_id:
                return account
        return None

    def active(self) -> Account | None:
        """Return the active account, if any."""
        if self.active_id is None:
            return None
        return self.find(self.active_id)


class RunState(BaseModel):
    """Last-used context, kept only to bias future prompts."""

    last_org: str | None = None
    last_repo: str | None = None


class Repository(BaseModel):
    """Repository as returned by the GitHub REST API."""

    owner: str
    name: str
    full_name: str
    default_branch: str = "main"
    ssh_url: str | None = None
    https_url: str | None = None
    html_url: str | None = None
    is_private: bool = False
    is_fork: bool = False
    pushed_at: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Repository":
        """Build a Repository from a REST API repository object."""
        owner = (data.get("owner") or {}).get("login", "")
        name = data["name"]
        return cls(
            owner=owner,
            name=name,
            full_name=data.get("full_name") or f"{owner}/{name}",
            default_branch=data.get("default_branch") or "main",
            ssh_url=data.get("ssh_url") or None,
            https_url=data.get("clone_url") or None,
            html_url=data.get("html_url"),
            is_private=bool(data.get("private", False)),
            is_fork=bool(data.get("fork", False)),
            pushed_at=data.get("pushed_at"),
        )


def classify_mergeable_state(raw: str | None) -> MergeableState:
    """Map GitHub's ``mergeable_state`` field onto MergeableState.

    GitHub also reports values such as "behind", "unstable", "has_hooks" and
    "draft"; those, and a missing value, classify as UNKNOWN.
    """
    if not raw:
        return MergeableState.UNKNOWN
    try:
        return MergeableState(raw.lower())
    except ValueError:
        return MergeableState.UNKNOWN


class PullRequest(BaseModel):
    """Open pull request with its merge readiness."""

    number: int
    title: str
    author: str
    head_ref: str
    base_ref: str
    mergeable_state: MergeableState = MergeableState.UNKNOWN
    url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PullRequest":
        """Build a PullRequest from a REST API pull request object."""
        return cls(
            number=int(data["number"]),
            title=data.get("title") or "",
            author=(data.get("user") or {}).get("login", ""),
            head_ref=(data.get("head") or {}).get("ref", ""),
            base_ref=(data.get("base") or {}).get("ref", ""),
            mergeable_state=classify_mergeable_state(data.get("mergeable_state")),
            url=data.get("html_url") or "",
        )
