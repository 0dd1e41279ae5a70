"""Repository operations: listing and cloning as a given account.

Combines an account's resolved token with a REST client to list
repositories and clone them over the account's preferred transport. Bulk
clones run one repository at a time and never stop at the first failure;
each repository gets its own entry in the returned report.
"""

import logging
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from gho.context import parse_repo_spec
from gho.errors import CloneFailed
from gho.github.auth import CredentialResolver
from gho.github.rest import RestClient
from gho.models import Account, CloneProtocol, Repository
from gho.state import RunStateStore

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], RestClient]


class GitCloner(Protocol):
    """Runs the actual clone of a URL into a destination path."""

    def clone(self, url: str, destination: Path) -> None:
        """Clone url into destination.

        Raises:
            CloneFailed: If the clone does not succeed.
        """
        ...


class SubprocessGitCloner:
    """GitCloner that shells out to ``git clone``."""

    def __init__(self, git: str = "git") -> None:
        self._git = git

    def clone(self, url: str, destination: Path) -> None:
        logger.debug("git clone %s %s", url, destination)
        try:
            result = subprocess.run(
                [self._git, "clone", url, str(destination)],
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise CloneFailed(destination.name, f"{self._git} not found on PATH", url) from e

        if result.returncode != 0:
            lines = result.stderr.strip().splitlines()
            reason = lines[-1] if lines else f"git exited with status {result.returncode}"
            raise CloneFailed(destination.name, reason, url)


class CloneStatus(str, Enum):
    """Outcome of cloning one repository."""

    CLONED = "cloned"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class CloneResult:
    """Outcome of cloning one repository."""

    repo: str
    destination: Path
    status: CloneStatus
    url: str | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """True unless the clone failed. An already-present checkout counts."""
        return self.status is not CloneStatus.FAILED


@dataclass
class CloneReport:
    """Per-repository outcomes of a bulk clone, sorted by repository name."""

    org: str
    results: list[CloneResult] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> list[CloneResult]:
        return [r for r in self.results if r.succeeded]

    @property
    def failed(self) -> list[CloneResult]:
        return [r for r in self.results if not r.succeeded]


def choose_clone_url(repo: Repository, protocol: CloneProtocol) -> str:
    """Pick the clone URL for a repository.

    The preferred transport is used when the repository offers it; otherwise
    whichever URL is present is used.

    Raises:
        CloneFailed: If the repository has neither an SSH nor an HTTPS URL.
    """
    if protocol is CloneProtocol.SSH:
        candidates = (repo.ssh_url, repo.https_url)
    else:
        candidates = (repo.https_url, repo.ssh_url)

    for url in candidates:
        if url:
            return url
    raise CloneFailed(repo.full_name, "repository has no clone URL")


def clone_destination(account: Account, repo_name: str, destination: Path | None = None) -> Path:
    """Resolve where a repository should be cloned.

    Explicit destination first, then ``<account.clone_dir>/<name>``, then
    ``./<name>``.
    """
    if destination is not None:
        return destination
    if account.clone_dir:
        return Path(account.clone_dir).expanduser() / repo_name
    return Path(repo_name)


class RepoOperations:
    """Lists and clones repositories as a given account."""

    def __init__(
        self,
        resolver: CredentialResolver,
        client_factory: ClientFactory = RestClient.from_token,
        cloner: GitCloner | None = None,
        state: RunStateStore | None = None,
    ) -> None:
        """Initialize repository operations.

        Args:
            resolver: Resolves the token for an account.
            client_factory: Builds a REST client for a token.
            cloner: Performs clones. Defaults to SubprocessGitCloner.
            state: Optional run state store to record last-used context.
        """
        self._resolver = resolver
        self._client_factory = client_factory
        self._cloner = cloner or SubprocessGitCloner()
        self._state = state

    def _client(self, account: Account) -> RestClient:
        return self._client_factory(self._resolver.resolve_token(account))

    def list(
        self,
        account: Account,
        org: str | None = None,
        limit: int | None = None,
    ) -> list[Repository]:
        """List repositories as returned by the API, without local filtering.

        Args:
            account: Account to act as.
            org: Organization to list. Defaults to the account's default_org;
                with neither, the account user's own repositories are listed.
            limit: Stop after this many repositories.
        """
        org = org or account.default_org
        with self._client(account) as client:
            if org:
                repos = client.list_org_repos(org, limit=limit)
            else:
                repos = client.list_repos(account.username, limit=limit)

        if org and self._state is not None:
            self._state.record_org(org)
        return repos

    def clone(
        self,
        account: Account,
        repo_identifier: str,
        destination: Path | None = None,
    ) -> CloneResult:
        """Clone a single ``owner/repo``.

        Raises:
            InvalidRepositorySpec: If repo_identifier is not owner/repo.
            NotFound: If the repository does not exist or is not visible.
            CloneFailed: If the destination exists or git fails.
        """
        owner, name = parse_repo_spec(repo_identifier)
        with self._client(account) as client:
            repo = client.get_repo(owner, name)

        url = choose_clone_url(repo, account.clone_protocol)
        target = clone_destination(account, repo.name, destination)
        if target.exists():
            raise CloneFailed(repo.full_name, f"destination '{target}' already exists", url)

        logger.info("Cloning %s into %s", repo.full_name, target)
        self._cloner.clone(url, target)

        if self._state is not None:
            self._state.record_repo(repo.full_name)
        return CloneResult(repo.full_name, target, CloneStatus.CLONED, url=url)

    def clone_org(
        self,
        account: Account,
        org: str,
        base_dir: Path | None = None,
        limit: int | None = None,
    ) -> CloneReport:
        """Clone every repository of an organization.

        Repositories are cloned sequentially. A failing repository is recorded
        in the report and the remaining ones are still attempted; existing
        checkouts are skipped.

        Args:
            account: Account to act as.
            org: Organization login.
            base_dir: Directory to clone into. Defaults to the account's
                clone_dir, then the current directory.
            limit: Clone at most this many repositories.

        Returns:
            Report with one entry per listed repository, sorted by name.
        """
        with self._client(account) as client:
            repos = client.list_org_repos(org, limit=limit)

        logger.info("Cloning %d repositories from %s", len(repos), org)
        results = [self._clone_one(account, repo, base_dir) for repo in repos]
        results.sort(key=lambda r: r.repo.lower())

        if self._state is not None:
            self._state.record_org(org)
        return CloneReport(org=org, results=results)

    def _clone_one(self, account: Account, repo: Repository, base_dir: Path | None) -> CloneResult:
        target = (
            base_dir / repo.name
            if base_dir is not None
            else clone_destination(account, repo.name)
        )

        try:
            url = choose_clone_url(repo, account.clone_protocol)
        except CloneFailed as e:
            logger.warning("Skipping %s: %s", repo.full_name, e.reason)
            return CloneResult(repo.full_name, target, CloneStatus.FAILED, error=e.reason)

        if target.exists():
            logger.info("Skipping %s (%s already exists)", repo.full_name, target)
            return CloneResult(repo.full_name, target, CloneStatus.SKIPPED, url=url)

        try:
            self._cloner.clone(url, target)
        except CloneFailed as e:
            logger.warning("Failed to clone %s: %s", repo.full_name, e.reason)
            return CloneResult(repo.full_name, target, CloneStatus.FAILED, url=url, error=e.reason)

        logger.info("Cloned %s", repo.full_name)
        return CloneResult(repo.full_name, target, CloneStatus.CLONED, url=url)
