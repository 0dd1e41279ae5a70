"""Repository context detection.

Works out which ``owner/repo`` a command refers to when none is given, from
the GITHUB_REPOSITORY environment variable or the ``origin`` remote of the
current git working copy.
"""

import logging
import os
import re
import subprocess
from collections.abc import Mapping
from pathlib import Path

from gho.config import REPOSITORY_ENV_VAR
from gho.errors import InvalidRepositorySpec

logger = logging.getLogger(__name__)

# git@github.com:owner/repo.git, ssh://git@github.com/owner/repo.git,
# https://github.com/owner/repo(.git)
REMOTE_URL_PATTERNS = (
    re.compile(r"^git@github\.com:(?P<path>.+)$"),
    re.compile(r"^ssh://git@github\.com(?::\d+)?/(?P<path>.+)$"),
    re.compile(r"^https://(?:[^@/]+@)?github\.com/(?P<path>.+)$"),
)


def parse_repo_spec(spec: str) -> tuple[str, str]:
    """Split an ``owner/repo`` identifier.

    Raises:
        InvalidRepositorySpec: If it is not exactly two non-empty parts.
    """
    parts = spec.strip().split("/")
    if len(parts) != 2 or not all(parts):
        raise InvalidRepositorySpec(spec)
    return parts[0], parts[1]


def parse_remote_url(url: str) -> tuple[str, str] | None:
    """Extract ``(owner, repo)`` from a GitHub remote URL.

    Returns:
        Owner and repo, or None if the URL does not point at github.com.
    """
    url = url.strip()
    for pattern in REMOTE_URL_PATTERNS:
        match = pattern.match(url)
        if not match:
            continue
        path = match.group("path").rstrip("/")
        path = path.removesuffix(".git")
        try:
            return parse_repo_spec(path)
        except InvalidRepositorySpec:
            return None
    return None


def _git_origin_url(cwd: Path | None) -> str | None:
    """Return the origin remote URL of the working copy at cwd, if any."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
            cwd=cwd,
        )
    except FileNotFoundError:
        logger.debug("git not found on PATH")
        return None
    except subprocess.TimeoutExpired:
        logger.debug("git remote lookup timed out after 5 seconds")
        return None

    if result.returncode != 0:
        logger.debug("No origin remote (git exited %d)", result.returncode)
        return None
    return result.stdout.strip() or None


def detect_repo_context(
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> tuple[str, str] | None:
    """Detect the repository a command should operate on.

    Args:
        env: Environment mapping. Defaults to os.environ.
        cwd: Working directory to inspect. Defaults to the process cwd.

    Returns:
        ``(owner, repo)``, or None if no GitHub repository could be detected.

    Raises:
        InvalidRepositorySpec: If GITHUB_REPOSITORY is set but malformed.
    """
    env = os.environ if env is None else env

    from_env = env.get(REPOSITORY_ENV_VAR)
    if from_env:
        logger.debug("Using repository from %s", REPOSITORY_ENV_VAR)
        return parse_repo_spec(from_env)

    url = _git_origin_url(cwd)
    if url is None:
        return None

    context = parse_remote_url(url)
    if context is None:
        logger.debug("Origin remote is not a GitHub URL: %s", url)
    return context
