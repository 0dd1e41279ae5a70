"""GitHub API clients and token resolution."""

from gho.github.auth import (
    CredentialResolver,
    EnvironmentTokenSource,
    SecretStoreTokenSource,
    TokenSource,
)
from gho.github.http import (
    GitHubClient,
    GitHubResponse,
    HTTPRateLimitState,
    RateLimitInfo,
    raise_for_status,
)
from gho.github.rest import RestClient, parse_link_header

__all__ = [
    # Auth
    "CredentialResolver",
    "EnvironmentTokenSource",
    # HTTP Client
    "GitHubClient",
    "GitHubResponse",
    "HTTPRateLimitState",
    "RateLimitInfo",
    # REST API Client
    "RestClient",
    "SecretStoreTokenSource",
    "TokenSource",
    "parse_link_header",
    "raise_for_status",
]
