"""Error kinds raised by gho.

Every error carries a stable ``exit_code`` so the CLI can map failures to
distinct process exit statuses that scripts can rely on.
"""

from datetime import datetime


class GhoError(Exception):
    """Base class for all gho errors."""

    exit_code = 1


class InvalidRepositorySpec(GhoError):
    """Raised when a repository identifier is not in owner/repo form."""

    exit_code = 3

    def __init__(self, spec: str) -> None:
        self.spec = spec
        super().__init__(f"Invalid repository '{spec}', expected owner/repo")


# Account store


class DuplicateAccount(GhoError):
    """Raised when adding an account whose id is already configured."""

    exit_code = 10

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(f"Account '{account_id}' already exists")


class AccountNotFound(GhoError):
    """Raised when an account id is not configured."""

    exit_code = 11

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class NoActiveAccount(GhoError):
    """Raised when an operation needs the active account and none is set."""

    exit_code = 12

    def __init__(self) -> None:
        super().__init__("No active account configured. Run 'gho account use <id>'")


# Credentials


class CredentialError(GhoError):
    """Base class for token resolution failures."""


class NoTokenConfigured(CredentialError):
    """Raised when no token source yields a token for an account."""

    exit_code = 13

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(
            f"No token configured for account '{account_id}'. "
            "Set GH_TOKEN/GITHUB_TOKEN or re-add the account with --token"
        )


class SecretStoreError(CredentialError):
    """Raised when the OS secret store cannot be read or written."""

    exit_code = 14


# Persistence


class PersistenceError(GhoError):
    """Raised when a configuration document cannot be read or written."""

    exit_code = 15


# Remote API


class GitHubAPIError(GhoError):
    """Base class for errors reported by the GitHub API."""


class AuthenticationFailed(GitHubAPIError):
    """Raised on 401/403 responses that are not rate limits."""

    exit_code = 20

    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        detail = f": {message}" if message else ""
        super().__init__(f"GitHub rejected the token (HTTP {status_code}){detail}")


class NotFound(GitHubAPIError):
    """Raised on 404 responses.

    GitHub answers 404 both for missing resources and for private resources
    the token cannot see, so the two cases are reported as one.
    """

    exit_code = 21

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Not found (or no access): {path}")


class RateLimited(GitHubAPIError):
    """Raised on 429 responses and on 403 responses flagged as rate limits."""

    exit_code = 22

    def __init__(self, retry_after: int | None = None, reset_at: datetime | None = None) -> None:
        self.retry_after = retry_after
        self.reset_at = reset_at
        if retry_after is not None:
            hint = f"retry after {retry_after}s"
        elif reset_at is not None:
            hint = f"resets at {reset_at.isoformat()}"
        else:
            hint = "retry later"
        super().__init__(f"GitHub rate limit exceeded ({hint})")


class UnexpectedApiError(GitHubAPIError):
    """Raised on any other non-2xx response or malformed payload."""

    exit_code = 23

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"GitHub API error {status_code}: {body[:200]}")


class NetworkError(GitHubAPIError):
    """Raised when the API cannot be reached after retries."""

    exit_code = 24


# Repository operations


class RepositoryContextMissing(GhoError):
    """Raised when a PR command has no owner/repo to operate on."""

    exit_code = 30

    def __init__(self) -> None:
        super().__init__(
            "No repository detected. Pass owner/repo, set GITHUB_REPOSITORY, "
            "or run inside a GitHub working copy"
        )


class CloneFailed(GhoError):
    """Raised when cloning a single repository fails."""

    exit_code = 40

    def __init__(self, repo: str, reason: str, url: str | None = None) -> None:
        self.repo = repo
        self.reason = reason
        self.url = url
        super().__init__(f"Failed to clone {repo}: {reason}")
