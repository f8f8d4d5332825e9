"""Interactive selection through fzf.

fzf owns the terminal while it runs. Keys that keep it open (reload, mark
read, preview, open in browser) call back into `python -m gh_notify.actions`;
keys that close it (esc, enter, the comment key) are reported through
--expect and handled by the caller.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
import sys
from dataclasses import dataclass

from .config import Config
from .errors import GhNotifyError
from .log import get_logger
from .models import Row
from .pipeline import OPTIONS_ENV, RELOAD_ENV, Options
from .table import HIDDEN_COLUMNS

MIN_FZF_VERSION = (0, 29, 0)

_log = get_logger("selector")


@dataclass(frozen=True)
class Selection:
    """What fzf reported when it closed."""

    query: str
    key: str
    row: Row | None


def parse_version(text: str) -> tuple[int, ...]:
    """Parse `fzf --version` output such as "0.44.1 (d7d2ac3)"."""
    version = text.split()[0] if text.split() else ""
    parts = []
    for part in version.split("."):
        digits = "".join(ch for ch in part if ch.isdigit())
        if not digits:
            break
        parts.append(int(digits))
    return tuple(parts)


def check_fzf() -> None:
    """Fail unless a recent enough fzf is on PATH."""
    minimum = ".".join(map(str, MIN_FZF_VERSION))
    if shutil.which("fzf") is None:
        raise GhNotifyError(f"fzf {minimum} or newer is required, or run with -s for static output")

    result = subprocess.run(["fzf", "--version"], capture_output=True, text=True, check=False)
    found = parse_version(result.stdout)
    if not found or found < MIN_FZF_VERSION:
        raise GhNotifyError(
            f"fzf {result.stdout.strip() or 'unknown'} is too old, {minimum} or newer is required"
        )


def action_command(action: str, placeholder: str = "") -> str:
    """Shell command fzf runs to call back into gh_notify.actions.

    fzf quotes {} and {+} itself, so the placeholder is appended unquoted.
    """
    command = shlex.join([sys.executable, "-m", "gh_notify.actions", action])
    return f"{command} {placeholder}".rstrip()


def _preview_window(options: Options, config: Config) -> str:
    border = "border-top" if config.preview.position == "down" else "border-left"
    visibility = "nohidden" if options.preview else "hidden"
    return f"{config.preview.size}:{config.preview.position}:wrap:{visibility}:{border}"


def _header(config: Config) -> str:
    keys = config.keys
    return (
        f"{keys.toggle_help} help  {keys.toggle_preview} preview  "
        f"{keys.open_browser} browser  {keys.mark_read} mark read  esc quit"
    )


def build_command(options: Options, config: Config) -> list[str]:
    keys = config.keys
    reload = action_command("reload")
    current = "{}"
    marked = "{+}"
    bindings = [
        "change:first",
        f"{keys.mark_all_read}:execute-silent({action_command('mark-all-read', current)})"
        f"+reload({reload})",
        f"{keys.mark_read}:execute-silent({action_command('mark-read', marked)})+reload({reload})",
        f"{keys.reload}:reload({reload})",
        f"{keys.open_browser}:execute-silent({action_command('open', current)})",
        f"{keys.toggle_preview}:toggle-preview"
        f"+change-preview({action_command('preview', current)})",
        f"{keys.view_diff}:toggle-preview+change-preview({action_command('diff', current)})",
        f"{keys.view_patch}:toggle-preview+change-preview({action_command('patch', current)})",
        f"{keys.toggle_help}:toggle-preview+change-preview({action_command('help')})",
        f"{keys.resize_preview}:change-preview-window(75%:nohidden|75%:down:nohidden:border-top|)",
        f"{keys.select}:toggle+down",
    ]
    cmd = [
        "fzf",
        "--ansi",
        "--multi",
        "--reverse",
        "--info=inline",
        "--print-query",
        f"--expect=esc,{keys.view},{keys.comment}",
        f"--with-nth={HIDDEN_COLUMNS + 1}..",
        "--prompt=GitHub Notifications > ",
        f"--header={_header(config)}",
        f"--preview={action_command('preview', current)}",
        f"--preview-window={_preview_window(options, config)}",
    ]
    for binding in bindings:
        cmd.append(f"--bind={binding}")
    return cmd


def parse_output(output: str, view_key: str = "enter") -> Selection:
    """Interpret the three lines fzf prints: query, pressed key, selected row.

    An empty key means fzf closed on its own accept key, i.e. `view_key`.
    """
    lines = output.split("\n")
    query = lines[0] if lines else ""
    key = lines[1] if len(lines) > 1 else ""
    selected = lines[2] if len(lines) > 2 else ""
    row = Row.parse_display(selected) if selected.strip() else None
    return Selection(query=query, key=key or view_key, row=row)


def run(table: str, options: Options, config: Config) -> Selection | None:
    """Run fzf over the table; None when it was interrupted."""
    env = dict(os.environ)
    env[RELOAD_ENV] = "1"
    env[OPTIONS_ENV] = options.to_env()
    # bindings are POSIX shell commands, whatever the user's login shell is
    env["SHELL"] = shutil.which("sh") or "/bin/sh"

    cmd = build_command(options, config)
    _log.debug("fzf: %s", shlex.join(cmd))
    result = subprocess.run(
        cmd, input=table, stdout=subprocess.PIPE, text=True, env=env, check=False
    )

    # 0: selection made, 1: no match, 130: interrupted (ctrl-c)
    if result.returncode == 130:
        return None
    if result.returncode not in (0, 1):
        raise GhNotifyError(f"fzf exited with status {result.returncode}")
    return parse_output(result.stdout, view_key=config.keys.view)
