"""GitHub access through the gh CLI.

Every request goes through `gh api`, which owns authentication, the HTTP
cache (--cache) and request timeouts. A failing call raises GitHubError;
nothing here retries.
"""

from __future__ import annotations

import json
import os
import shlex
import shutil
import subprocess
from typing import Any

from .errors import GhNotifyError
from .log import get_logger
from .models import RawNotification

REST_API_VERSION_HEADER = "X-GitHub-Api-Version: 2022-11-28"

_log = get_logger("github")

_DISCUSSION_SEARCH_QUERY = """
query ($q: String!) {
  search(query: $q, type: DISCUSSION, first: 1) {
    nodes { ... on Discussion { number } }
  }
}
"""

_SUBSCRIPTION_QUERY = """
query ($owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    issueOrPullRequest(number: $number) {
      ... on Issue { id viewerSubscription }
      ... on PullRequest { id viewerSubscription }
    }
  }
}
"""

_UPDATE_SUBSCRIPTION_MUTATION = """
mutation ($id: ID!, $state: SubscriptionState!) {
  updateSubscription(input: {subscribableId: $id, state: $state}) {
    subscribable { viewerSubscription }
  }
}
"""


class GitHubError(GhNotifyError):
    """A gh invocation failed."""

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


def require_gh() -> None:
    if shutil.which("gh") is None:
        raise GhNotifyError("gh is not installed, see https://cli.github.com")


def _run(cmd: list[str], env: dict[str, str] | None = None) -> str:
    _log.debug("run: %s", shlex.join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=True, env=env)
    except FileNotFoundError as e:
        raise GitHubError(f"{cmd[0]} is not installed") from e
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise GitHubError(f"`{shlex.join(cmd[:3])}` failed: {stderr}", stderr=stderr) from e
    return result.stdout


def _decode(output: str) -> Any:
    if not output.strip():
        return None
    try:
        return json.loads(output)
    except json.JSONDecodeError as e:
        raise GitHubError(f"unexpected response from gh: {e}") from e


def api(
    endpoint: str,
    *,
    method: str = "GET",
    fields: dict[str, Any] | None = None,
    raw_fields: dict[str, str] | None = None,
    cache: str | None = None,
) -> Any:
    """Call a REST endpoint and return the decoded JSON (None for an empty body).

    `fields` are typed (--field: true/false/numbers are converted by gh),
    `raw_fields` are always sent as strings. For GET both become query
    parameters.
    """
    cmd = ["gh", "api", "--header", REST_API_VERSION_HEADER, "--method", method, endpoint]
    if cache:
        cmd += ["--cache", cache]
    for key, value in (fields or {}).items():
        if isinstance(value, bool):
            value = str(value).lower()
        cmd += ["--field", f"{key}={value}"]
    for key, value in (raw_fields or {}).items():
        cmd += ["--raw-field", f"{key}={value}"]
    return _decode(_run(cmd))


def graphql(query: str, *, cache: str | None = None, **variables: Any) -> dict[str, Any]:
    """Run a GraphQL query and return its `data` object."""
    cmd = ["gh", "api", "graphql", "--raw-field", f"query={query}"]
    if cache:
        cmd += ["--cache", cache]
    for key, value in variables.items():
        flag = "--raw-field" if isinstance(value, str) else "--field"
        cmd += [flag, f"{key}={value}"]
    response = _decode(_run(cmd)) or {}
    if response.get("errors"):
        raise GitHubError(f"GraphQL error: {response['errors'][0].get('message', response)}")
    return response.get("data") or {}


def gh(*args: str, env: dict[str, str] | None = None, capture: bool = False) -> str:
    """Run a gh subcommand (issue view, pr diff, ...).

    With capture=False the command inherits the terminal, so gh can page
    output or open an editor.
    """
    cmd = ["gh", *args]
    if capture:
        return _run(cmd, env=env)
    _log.debug("run: %s", shlex.join(cmd))
    try:
        subprocess.run(cmd, check=True, env=env)
    except FileNotFoundError as e:
        raise GitHubError("gh is not installed") from e
    except subprocess.CalledProcessError as e:
        raise GitHubError(f"`{shlex.join(cmd[:3])}` exited with {e.returncode}") from e
    return ""


def preview_env() -> dict[str, str]:
    """Environment for gh output rendered inside the fzf preview pane.

    gh only colours output and sizes tables when GH_FORCE_TTY is set, and takes
    its value as the width.
    """
    env = dict(os.environ)
    columns = os.environ.get("FZF_PREVIEW_COLUMNS")
    if columns:
        env["GH_FORCE_TTY"] = columns
    return env


# --- Notifications ---


def list_notifications(
    page: int,
    *,
    per_page: int = 100,
    participating: bool = False,
    include_all: bool = False,
) -> list[RawNotification]:
    """Fetch one page of notifications."""
    data = api(
        "notifications",
        fields={
            "per_page": per_page,
            "page": page,
            "participating": participating,
            "all": include_all,
        },
        cache="0s",
    )
    notifications = [RawNotification.from_api(item) for item in data or []]
    _log.info("page %d: %d notifications", page, len(notifications))
    return notifications


def mark_all_read(last_read_at: str) -> None:
    """Mark every notification updated up to last_read_at as read."""
    api(
        "notifications",
        method="PUT",
        raw_fields={"last_read_at": last_read_at},
        fields={"read": True},
    )
    _log.info("marked all read up to %s", last_read_at)


def mark_thread_read(thread_id: str) -> None:
    api(f"notifications/threads/{thread_id}", method="PATCH")
    _log.info("marked thread %s read", thread_id)


# --- Lookups ---


def get_release(url: str) -> dict[str, Any]:
    return api(url, cache="100h") or {}


def search_discussion(title: str, qualifier: str) -> str | None:
    """Return the number of the first discussion matching title and qualifier."""
    data = graphql(_DISCUSSION_SEARCH_QUERY, cache="100h", q=f"{title} {qualifier}")
    nodes = (data.get("search") or {}).get("nodes") or []
    if not nodes or nodes[0].get("number") is None:
        return None
    return str(nodes[0]["number"])


def commit_patches(repo_full_name: str, sha: str) -> str:
    """Concatenate the patches of every file touched by a commit."""
    commit = api(f"repos/{repo_full_name}/commits/{sha}", cache="24h") or {}
    return "\n".join(f["patch"] for f in commit.get("files", []) if f.get("patch"))


# --- Subscriptions ---


def get_subscription(owner: str, name: str, number: int) -> tuple[str, str]:
    """Return (node_id, viewerSubscription) for an issue or pull request."""
    data = graphql(_SUBSCRIPTION_QUERY, owner=owner, name=name, number=number)
    subject = (data.get("repository") or {}).get("issueOrPullRequest")
    if not subject:
        raise GitHubError(f"{owner}/{name}#{number} is not an issue or pull request")
    return subject["id"], subject["viewerSubscription"]


def update_subscription(subscribable_id: str, state: str) -> str:
    data = graphql(_UPDATE_SUBSCRIPTION_MUTATION, id=subscribable_id, state=state)
    return data["updateSubscription"]["subscribable"]["viewerSubscription"]
