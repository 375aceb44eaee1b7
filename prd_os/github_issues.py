"""GitHub issue lookups used by the dashboard (triage count)."""

from __future__ import annotations

import json
import logging
import re
import subprocess
from pathlib import Path

import httpx

logger = logging.getLogger(__name__)

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
TRIAGE_LABEL = "triage"
LOOKUP_TIMEOUT = 8.0

RE_GITHUB_REMOTE = re.compile(
    r"^(?:https?://(?:[^@/]+@)?github\.com/|(?:ssh://)?git@github\.com[:/])"
    r"([^/]+)/([^/]+?)(?:\.git)?/?$"
)


class GitHubIssueClient:
    """Minimal GraphQL client for reading issue counts from one repository."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        timeout: float = LOOKUP_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self._client = httpx.Client(
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def _graphql(self, query: str, variables: dict | None = None) -> dict:
        """Execute a GraphQL query and return the response data."""
        payload: dict = {"query": query}
        if variables:
            payload["variables"] = variables
        resp = self._client.post(GITHUB_GRAPHQL_URL, json=payload)
        resp.raise_for_status()
        body = resp.json()
        if "errors" in body:
            raise RuntimeError(f"GraphQL errors: {json.dumps(body['errors'], indent=2)}")
        return body.get("data") or {}

    def count_open_issues(self, label: str) -> int:
        """Number of open issues in the repository carrying ``label``."""
        query = """
        query($owner: String!, $name: String!, $labels: [String!]) {
          repository(owner: $owner, name: $name) {
            issues(states: OPEN, labels: $labels) {
              totalCount
            }
          }
        }
        """
        data = self._graphql(
            query, {"owner": self.owner, "name": self.repo, "labels": [label]}
        )
        repository = data.get("repository")
        if repository is None:
            raise RuntimeError(f"Repository {self.owner}/{self.repo} not found")
        return int(repository["issues"]["totalCount"])

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()


def parse_github_remote(url: str) -> tuple[str, str] | None:
    """Extract ``(owner, repo)`` from a GitHub https or ssh remote URL."""
    m = RE_GITHUB_REMOTE.match(url.strip())
    if not m:
        return None
    return m.group(1), m.group(2)


def get_origin_url(cwd: str | Path) -> str | None:
    """URL of the ``origin`` remote of the git repo at ``cwd``, if any."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=LOOKUP_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("git unavailable in %s: %s", cwd, e)
        return None
    if result.returncode != 0:
        logger.debug("No origin remote in %s: %s", cwd, result.stderr.strip())
        return None
    return result.stdout.strip() or None


def get_triage_issue_count(
    cwd: str | Path,
    token: str | None,
    transport: httpx.BaseTransport | None = None,
) -> int | None:
    """Count open ``triage`` issues for the GitHub repo checked out at ``cwd``.

    Returns None when the count is unavailable (no token, not a GitHub
    checkout, network or API failure). Never raises.
    """
    if not token:
        logger.debug("No GitHub token; triage count unavailable")
        return None

    url = get_origin_url(cwd)
    if url is None:
        return None
    repo = parse_github_remote(url)
    if repo is None:
        logger.debug("Origin %s is not a GitHub remote", url)
        return None

    client = GitHubIssueClient(token=token, owner=repo[0], repo=repo[1], transport=transport)
    try:
        return client.count_open_issues(TRIAGE_LABEL)
    except (httpx.HTTPError, RuntimeError, KeyError, TypeError, ValueError) as e:
        logger.debug("Triage lookup for %s/%s failed: %s", repo[0], repo[1], e)
        return None
    finally:
        client.close()
