"""Pull request listing as a given account."""

import logging

from gho.errors import RepositoryContextMissing
from gho.github.auth import CredentialResolver
from gho.github.rest import RestClient
from gho.models import Account, PullRequest
from gho.repos import ClientFactory
from gho.state import RunStateStore

logger = logging.getLogger(__name__)


class PullRequestOperations:
    """Lists open pull requests for an already-resolved repository."""

    def __init__(
        self,
        resolver: CredentialResolver,
        client_factory: ClientFactory = RestClient.from_token,
        state: RunStateStore | None = None,
    ) -> None:
        self._resolver = resolver
        self._client_factory = client_factory
        self._state = state

    def list_prs(
        self,
        account: Account,
        owner: str | None,
        repo: str | None,
        limit: int | None = None,
    ) -> list[PullRequest]:
        """List open pull requests sorted by number, ascending.

        Args:
            account: Account to act as.
            owner: Repository owner. Detecting it is the caller's job.
            repo: Repository name.
            limit: Fetch at most this many pull requests.

        Raises:
            RepositoryContextMissing: If owner or repo is missing.
        """
        if not owner or not repo:
            raise RepositoryContextMissing()

        token = self._resolver.resolve_token(account)
        with self._client_factory(token) as client:
            prs = client.list_open_prs(owner, repo, limit=limit)

        logger.debug("Fetched %d open pull requests for %s/%s", len(prs), owner, repo)

        if self._state is not None:
            self._state.record_repo(f"{owner}/{repo}")
        return sorted(prs, key=lambda pr: pr.number)
