"""Tests for the triage issue count lookup (no network)."""

from __future__ import annotations

import json
import subprocess
from unittest.mock import patch

import httpx

from prd_os.github_issues import (
    GitHubIssueClient,
    get_origin_url,
    get_triage_issue_count,
    parse_github_remote,
)

ORIGIN = "git@github.com:acme/product-docs.git"


def _transport(total_count: int = 3, status: int = 200, errors: list | None = None):
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        if status != 200:
            return httpx.Response(status, json={"message": "Bad credentials"})
        if errors:
            return httpx.Response(200, json={"errors": errors})
        return httpx.Response(
            200,
            json={"data": {"repository": {"issues": {"totalCount": total_count}}}},
        )

    return httpx.MockTransport(handler), seen


def _completed(stdout: str = "", returncode: int = 0) -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(
        args=["git"], returncode=returncode, stdout=stdout, stderr=""
    )


class TestParseGithubRemote:
    def test_ssh(self):
        assert parse_github_remote("git@github.com:acme/docs.git") == ("acme", "docs")

    def test_https(self):
        assert parse_github_remote("https://github.com/acme/docs.git") == ("acme", "docs")

    def test_https_without_suffix(self):
        assert parse_github_remote("https://github.com/acme/docs") == ("acme", "docs")

    def test_https_with_credentials(self):
        assert parse_github_remote("https://x-token@github.com/acme/docs.git") == ("acme", "docs")

    def test_ssh_url_form(self):
        assert parse_github_remote("ssh://git@github.com/acme/docs.git") == ("acme", "docs")

    def test_other_host(self):
        assert parse_github_remote("git@gitlab.com:acme/docs.git") is None


def test_client_counts_issues():
    transport, seen = _transport(total_count=5)
    client = GitHubIssueClient("tok", "acme", "docs", transport=transport)
    try:
        assert client.count_open_issues("triage") == 5
    finally:
        client.close()
    assert seen[0]["variables"] == {"owner": "acme", "name": "docs", "labels": ["triage"]}


def test_no_token_is_unavailable(tmp_path):
    with patch("prd_os.github_issues.subprocess.run") as run:
        assert get_triage_issue_count(tmp_path, None) is None
    run.assert_not_called()


def test_count_from_origin(tmp_path):
    transport, _ = _transport(total_count=3)
    with patch("prd_os.github_issues.subprocess.run", return_value=_completed(ORIGIN + "\n")) as run:
        assert get_triage_issue_count(tmp_path, "tok", transport=transport) == 3
    assert run.call_args.kwargs["cwd"] == str(tmp_path)


def test_zero_is_a_real_count(tmp_path):
    transport, _ = _transport(total_count=0)
    with patch("prd_os.github_issues.subprocess.run", return_value=_completed(ORIGIN)):
        assert get_triage_issue_count(tmp_path, "tok", transport=transport) == 0


def test_no_remote_is_unavailable(tmp_path):
    with patch("prd_os.github_issues.subprocess.run", return_value=_completed(returncode=2)):
        assert get_triage_issue_count(tmp_path, "tok") is None


def test_git_missing_is_unavailable(tmp_path):
    with patch("prd_os.github_issues.subprocess.run", side_effect=FileNotFoundError("git")):
        assert get_origin_url(tmp_path) is None
        assert get_triage_issue_count(tmp_path, "tok") is None


def test_git_timeout_is_unavailable(tmp_path):
    err = subprocess.TimeoutExpired(cmd="git", timeout=8)
    with patch("prd_os.github_issues.subprocess.run", side_effect=err):
        assert get_triage_issue_count(tmp_path, "tok") is None


def test_non_github_remote_is_unavailable(tmp_path):
    with patch(
        "prd_os.github_issues.subprocess.run",
        return_value=_completed("https://gitlab.com/acme/docs.git"),
    ):
        assert get_triage_issue_count(tmp_path, "tok") is None


def test_http_error_is_unavailable(tmp_path):
    transport, _ = _transport(status=401)
    with patch("prd_os.github_issues.subprocess.run", return_value=_completed(ORIGIN)):
        assert get_triage_issue_count(tmp_path, "tok", transport=transport) is None


def test_graphql_error_is_unavailable(tmp_path):
    transport, _ = _transport(errors=[{"message": "Could not resolve to a Repository"}])
    with patch("prd_os.github_issues.subprocess.run", return_value=_completed(ORIGIN)):
        assert get_triage_issue_count(tmp_path, "tok", transport=transport) is None


def test_network_error_is_unavailable(tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    transport = httpx.MockTransport(handler)
    with patch("prd_os.github_issues.subprocess.run", return_value=_completed(ORIGIN)):
        assert get_triage_issue_count(tmp_path, "tok", transport=transport) is None
