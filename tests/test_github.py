"""Tests for gh_notify.github."""

import json
import subprocess
from unittest.mock import patch

import pytest

from gh_notify import github
from gh_notify.github import GitHubError


def _completed(stdout="", returncode=0):
    return subprocess.CompletedProcess([], returncode, stdout=stdout, stderr="")


def test_api_builds_gh_command():
    with patch("gh_notify.github.subprocess.run", return_value=_completed("[]")) as mock_run:
        result = github.api(
            "notifications",
            fields={"per_page": 100, "all": False},
            raw_fields={"since": "x"},
            cache="0s",
        )
    assert result == []
    cmd = mock_run.call_args.args[0]
    assert cmd[:2] == ["gh", "api"]
    assert "notifications" in cmd
    assert cmd[cmd.index("--cache") + 1] == "0s"
    assert "per_page=100" in cmd
    assert "all=false" in cmd
    assert cmd[cmd.index("--raw-field") + 1] == "since=x"


def test_api_empty_body_is_none():
    with patch("gh_notify.github.subprocess.run", return_value=_completed("")):
        assert github.api("notifications/threads/1", method="PATCH") is None


def test_api_failure_raises():
    error = subprocess.CalledProcessError(1, ["gh"], stderr="HTTP 401: Bad credentials")
    with (
        patch("gh_notify.github.subprocess.run", side_effect=error),
        pytest.raises(GitHubError, match="Bad credentials"),
    ):
        github.api("notifications")


def test_missing_gh_raises():
    with (
        patch("gh_notify.github.subprocess.run", side_effect=FileNotFoundError()),
        pytest.raises(GitHubError, match="not installed"),
    ):
        github.api("notifications")


def test_list_notifications_parses_page():
    payload = [
        {
            "id": "1",
            "unread": True,
            "updated_at": "2024-05-01T12:34:56Z",
            "repository": {"full_name": "o/r", "name": "r", "owner": {"login": "o"}},
            "subject": {
                "title": "Bug",
                "url": "https://api.github.com/repos/o/r/issues/4",
                "latest_comment_url": None,
                "type": "Issue",
            },
        }
    ]
    completed = _completed(json.dumps(payload))
    with patch("gh_notify.github.subprocess.run", return_value=completed) as mock_run:
        page = github.list_notifications(2, per_page=50, participating=True)
    assert [n.thread_id for n in page] == ["1"]
    cmd = mock_run.call_args.args[0]
    assert "page=2" in cmd
    assert "per_page=50" in cmd
    assert "participating=true" in cmd


def test_mark_all_read_sends_put():
    with patch("gh_notify.github.subprocess.run", return_value=_completed("")) as mock_run:
        github.mark_all_read("2024-05-02T08:00:00Z")
    cmd = mock_run.call_args.args[0]
    assert cmd[cmd.index("--method") + 1] == "PUT"
    assert "last_read_at=2024-05-02T08:00:00Z" in cmd
    assert "read=true" in cmd


def test_search_discussion_returns_first_number():
    response = {"data": {"search": {"nodes": [{"number": 12}, {"number": 13}]}}}
    completed = _completed(json.dumps(response))
    with patch("gh_notify.github.subprocess.run", return_value=completed) as mock_run:
        assert github.search_discussion("Title", "updated:>=2024-05 repo:o/r") == "12"
    cmd = mock_run.call_args.args[0]
    assert "q=Title updated:>=2024-05 repo:o/r" in cmd


def test_search_discussion_no_match():
    response = {"data": {"search": {"nodes": []}}}
    with patch("gh_notify.github.subprocess.run", return_value=_completed(json.dumps(response))):
        assert github.search_discussion("Title", "repo:o/r") is None


def test_graphql_errors_raise():
    response = {"errors": [{"message": "Something went wrong"}]}
    with (
        patch("gh_notify.github.subprocess.run", return_value=_completed(json.dumps(response))),
        pytest.raises(GitHubError, match="Something went wrong"),
    ):
        github.graphql("query { viewer { login } }")


def test_commit_patches_joins_files():
    commit = {"files": [{"patch": "@@ a"}, {"filename": "bin"}, {"patch": "@@ b"}]}
    with patch("gh_notify.github.subprocess.run", return_value=_completed(json.dumps(commit))):
        assert github.commit_patches("o/r", "abc1234") == "@@ a\n@@ b"


def test_preview_env_forces_tty(monkeypatch):
    monkeypatch.setenv("FZF_PREVIEW_COLUMNS", "80")
    assert github.preview_env()["GH_FORCE_TTY"] == "80"
