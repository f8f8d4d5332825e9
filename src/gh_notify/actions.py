"""Actions on selected notifications.

Also the entry point fzf key bindings call while the selector stays open:

    python -m gh_notify.actions <action> [ROW ...]

where each ROW is a line of the table as fzf passes it through {} or {+}.
"""

from __future__ import annotations

import argparse
import os
import re
import shutil
import subprocess
import sys
import webbrowser
from collections.abc import Callable
from datetime import UTC, datetime

from rich.console import Console
from rich.syntax import Syntax
from rich.text import Text

from . import github
from .config import Config, KeysConfig, load_config
from .encoder import format_instant
from .errors import GhNotifyError
from .log import get_logger
from .models import NULL, Row, SubjectType
from .pipeline import Options, build_table, is_reload
from .selector import Selection

GITHUB_URL = "https://github.com"

_log = get_logger("actions")

_SUBJECT_URL_RE = re.compile(r"github\.com/([^/]+)/([^/]+)/(?:issues|pull)/(\d+)")


def _console() -> Console:
    """Console for the terminal, or for the fzf preview pane when run from one."""
    columns = os.environ.get("FZF_PREVIEW_COLUMNS")
    if columns:
        return Console(force_terminal=True, width=int(columns), highlight=False)
    return Console(highlight=False)


# --- Open in browser ---


def _repo_url(row: Row) -> str:
    return f"{GITHUB_URL}/{row.repo_full_name}"


def _issue_url(row: Row) -> str:
    url = f"{_repo_url(row)}/issues/{row.number}"
    # without comments the latest comment URL is the issue itself
    if row.comment_anchor not in (NULL, row.number):
        url += f"#issuecomment-{row.comment_anchor}"
    return url


BROWSER_URLS: dict[SubjectType, Callable[[Row], str]] = {
    SubjectType.CHECK_SUITE: lambda row: f"{_repo_url(row)}/actions",
    SubjectType.COMMIT: lambda row: f"{_repo_url(row)}/commit/{row.number}",
    SubjectType.DISCUSSION: lambda row: f"{_repo_url(row)}/discussions/{row.number}",
    SubjectType.ISSUE: _issue_url,
    SubjectType.PULL_REQUEST: _issue_url,
    SubjectType.RELEASE: lambda row: f"{_repo_url(row)}/releases/tag/{row.number}",
    SubjectType.PRE_RELEASE: lambda row: f"{_repo_url(row)}/releases/tag/{row.number}",
}


def browser_url(row: Row) -> str:
    kind = row.kind
    if kind is not SubjectType.CHECK_SUITE and not row.number:
        return _repo_url(row)
    return BROWSER_URLS.get(kind, _repo_url)(row)


def open_in_browser(row: Row) -> None:
    url = browser_url(row)
    _log.info("open: %s", url)
    webbrowser.open(url)


# --- Detail and diff views ---


def highlight_diff(diff: str, console: Console) -> None:
    """Show a diff through delta or bat when installed, else through Rich."""
    columns = os.environ.get("FZF_PREVIEW_COLUMNS") or str(shutil.get_terminal_size().columns)
    delta = shutil.which("delta")
    bat = shutil.which("bat")
    if delta:
        subprocess.run(
            [delta, "--paging=never", "--width", columns], input=diff, text=True, check=False
        )
    elif bat:
        subprocess.run(
            [bat, "--color=always", "--plain", "--paging=never", "--language", "diff"],
            input=diff,
            text=True,
            check=False,
        )
    else:
        console.print(Syntax(diff, "diff", background_color="default", word_wrap=True))


def _view_commit(row: Row, all_comments: bool, console: Console) -> None:
    highlight_diff(github.commit_patches(row.repo_full_name, row.number), console)


def _view_issue(row: Row, all_comments: bool, console: Console) -> None:
    args = ["issue", "view", row.number, "--repo", row.repo_full_name]
    if all_comments:
        args.append("--comments")
    github.gh(*args, env=github.preview_env())


def _view_pull_request(row: Row, all_comments: bool, console: Console) -> None:
    args = ["pr", "view", row.number, "--repo", row.repo_full_name]
    if all_comments:
        args.append("--comments")
    github.gh(*args, env=github.preview_env())


def _view_release(row: Row, all_comments: bool, console: Console) -> None:
    github.gh("release", "view", row.number, "--repo", row.repo_full_name, env=github.preview_env())


DETAIL_VIEWS: dict[SubjectType, Callable[[Row, bool, Console], None]] = {
    SubjectType.COMMIT: _view_commit,
    SubjectType.ISSUE: _view_issue,
    SubjectType.PULL_REQUEST: _view_pull_request,
    SubjectType.RELEASE: _view_release,
    SubjectType.PRE_RELEASE: _view_release,
}


def view_notification(row: Row, keys: KeysConfig, all_comments: bool = False) -> None:
    console = _console()
    console.print(Text(f"[{row.display_time} - {row.subject_type}]", style="bold magenta"))
    view = DETAIL_VIEWS.get(row.kind)
    if view is None or not row.number:
        console.print(
            f"Nothing to show here, press {keys.open_browser} to open it in the browser.",
            markup=False,
        )
        return
    view(row, all_comments, console)


def view_diff(row: Row, keys: KeysConfig, patch: bool = False) -> None:
    """Show a pull request's diff (or patch); other subjects get the detail view."""
    if row.kind is not SubjectType.PULL_REQUEST or not row.number:
        view_notification(row, keys)
        return
    args = ["pr", "diff", row.number, "--repo", row.repo_full_name, "--color=never"]
    if patch:
        args.append("--patch")
    highlight_diff(github.gh(*args, capture=True), _console())


PREVIEWS: dict[SubjectType, Callable[[Row, KeysConfig], None]] = {
    SubjectType.PULL_REQUEST: view_diff,
}


def preview(row: Row, keys: KeysConfig) -> None:
    PREVIEWS.get(row.kind, view_notification)(row, keys)


# --- Mutations ---


def mark_read(rows: list[Row]) -> None:
    """Mark each unread thread as read."""
    for row in rows:
        if row.is_unread:
            github.mark_thread_read(row.thread_id)


def mark_all_read(row: Row | None = None) -> None:
    """Mark everything read up to the row's fetch time (or now)."""
    github.mark_all_read(row.timestamp if row else format_instant(datetime.now(UTC)))


COMMENTABLE = frozenset({SubjectType.ISSUE, SubjectType.PULL_REQUEST})


def comment(row: Row) -> None:
    """Comment on an issue or pull request via gh's editor prompt, then mark it read."""
    if row.kind in COMMENTABLE and row.number:
        github.gh("issue", "comment", row.number, "--repo", row.repo_full_name)
    else:
        _console().print("Commenting is only supported for issues and pull requests.")
    mark_read([row])


def toggle_subscription(url: str) -> str:
    """Subscribe to or unsubscribe from an issue or pull request; returns the new state."""
    match = _SUBJECT_URL_RE.search(url)
    if match is None:
        raise GhNotifyError(f"not an issue or pull request URL: {url}")
    owner, name, number = match.group(1), match.group(2), int(match.group(3))
    subject_id, state = github.get_subscription(owner, name, number)
    new_state = "UNSUBSCRIBED" if state == "SUBSCRIBED" else "SUBSCRIBED"
    return github.update_subscription(subject_id, new_state)


# --- Selector results ---


def handle_selection(selection: Selection, config: Config) -> None:
    """Act on the key that closed fzf."""
    row = selection.row
    if row is None or selection.key == "esc":
        return

    keys = config.keys
    if selection.key == keys.comment:
        comment(row)
    elif selection.key == keys.view:
        view_notification(row, keys, all_comments=True)
        mark_read([row])


# --- Help ---


def help_entries(keys: KeysConfig) -> list[tuple[str, str]]:
    return [
        (keys.view, "view the notification with all comments and mark it read"),
        ("esc", "quit"),
        (keys.comment, "comment on an issue or pull request"),
        (keys.toggle_preview, "toggle the preview"),
        (keys.view_diff, "view a pull request's diff"),
        (keys.view_patch, "view a pull request's patch"),
        (keys.resize_preview, "resize or move the preview"),
        (keys.open_browser, "open in the browser"),
        (keys.mark_read, "mark the selected notifications read"),
        (keys.mark_all_read, "mark all notifications read"),
        (keys.reload, "reload"),
        (keys.select, "select the current notification"),
        (keys.toggle_help, "toggle this help"),
    ]


def print_help(keys: KeysConfig) -> None:
    console = _console()
    console.print(Text("Key bindings", style="bold"))
    for key, description in help_entries(keys):
        line = Text()
        line.append(f"  {key:<10}", style="bold cyan")
        line.append(description)
        console.print(line)


# --- fzf callbacks ---


def _reload(config: Config) -> None:
    print(build_table(Options.from_env(), config, reload=is_reload(), color=True))


def _rows(lines: list[str]) -> list[Row]:
    return [row for line in lines if (row := Row.parse_display(line)) is not None]


def run_action(action: str, lines: list[str], config: Config) -> None:
    keys = config.keys
    if action == "reload":
        _reload(config)
        return
    if action == "help":
        print_help(keys)
        return

    rows = _rows(lines)
    if action == "mark-read":
        mark_read(rows)
        return
    if action == "mark-all-read":
        mark_all_read(rows[0] if rows else None)
        return
    if not rows:
        # the "all caught up" placeholder
        return

    row = rows[0]
    if action == "preview":
        preview(row, keys)
    elif action == "view":
        view_notification(row, keys)
    elif action == "diff":
        view_diff(row, keys)
    elif action == "patch":
        view_diff(row, keys, patch=True)
    elif action == "open":
        open_in_browser(row)


ACTIONS = (
    "reload",
    "help",
    "mark-read",
    "mark-all-read",
    "preview",
    "view",
    "diff",
    "patch",
    "open",
)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="gh_notify.actions",
        description="gh-notify actions run from fzf key bindings",
    )
    parser.add_argument("action", choices=ACTIONS)
    parser.add_argument("rows", nargs="*", help="Table rows as passed by fzf")
    args = parser.parse_args(argv)

    try:
        run_action(args.action, args.rows, load_config())
    except GhNotifyError as e:
        _log.error("%s failed: %s", args.action, e)
        print(f"gh-notify: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
