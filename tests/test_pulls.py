"""Tests for pull request listing."""

from unittest.mock import MagicMock

import pytest

from gho.errors import RepositoryContextMissing
from gho.github.auth import CredentialResolver
from gho.models import Account, MergeableState, PullRequest
from gho.pulls import PullRequestOperations
from gho.state import RunStateStore


def make_pr(number: int, state: MergeableState = MergeableState.UNKNOWN) -> PullRequest:
    return PullRequest(
        number=number,
        title=f"Change #{number}",
        author="hubot",
        head_ref=f"feature-{number}",
        base_ref="main",
        mergeable_state=state,
    )


@pytest.fixture
def client() -> MagicMock:
    mock = MagicMock()
    mock.__enter__.return_value = mock
    return mock


@pytest.fixture
def ops(secret_store, client: MagicMock, state_store: RunStateStore) -> PullRequestOperations:
    secret_store.set("gho", "personal", "ghp_personal")
    resolver = CredentialResolver.default(secret_store, env={})
    return PullRequestOperations(resolver, lambda token: client, state_store)


class TestPullRequestOperations:
    """Tests for PullRequestOperations.list_prs."""

    def test_sorted_by_number(
        self, ops: PullRequestOperations, client: MagicMock, personal_account: Account
    ) -> None:
        """Test results are ordered by ascending PR number."""
        client.list_open_prs.return_value = [
            make_pr(42, MergeableState.DIRTY),
            make_pr(7, MergeableState.CLEAN),
            make_pr(19, MergeableState.BLOCKED),
        ]

        prs = ops.list_prs(personal_account, "acme", "widgets")

        assert [pr.number for pr in prs] == [7, 19, 42]
        assert prs[0].mergeable_state is MergeableState.CLEAN
        client.list_open_prs.assert_called_once_with("acme", "widgets", limit=None)

    def test_records_last_repo(
        self,
        ops: PullRequestOperations,
        client: MagicMock,
        personal_account: Account,
        state_store: RunStateStore,
    ) -> None:
        """Test the repository is remembered."""
        client.list_open_prs.return_value = []
        ops.list_prs(personal_account, "acme", "widgets")
        assert state_store.load().last_repo == "acme/widgets"

    @pytest.mark.parametrize(("owner", "repo"), [(None, None), ("acme", None), (None, "widgets")])
    def test_missing_context(
        self,
        ops: PullRequestOperations,
        client: MagicMock,
        personal_account: Account,
        owner: str | None,
        repo: str | None,
    ) -> None:
        """Test missing owner or repo fails without calling the API."""
        with pytest.raises(RepositoryContextMissing) as exc_info:
            ops.list_prs(personal_account, owner, repo)

        assert exc_info.value.exit_code == 30
        client.list_open_prs.assert_not_called()
