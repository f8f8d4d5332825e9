"""Shared logging for gh-notify.

All components log to ~/.local/state/gh-notify/logs/gh-notify.log via Python's
logging module. fzf owns the terminal while we run, so nothing is logged to
stderr. Set GH_NOTIFY_DEBUG to also record every gh invocation.
Filter with grep: grep 'gh_notify.enricher' ~/.local/state/gh-notify/logs/gh-notify.log
"""

import logging
import os

from .paths import get_log_path

_handler = logging.FileHandler(get_log_path("gh-notify"))
_handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(message)s", datefmt="%H:%M:%S"))

_root = logging.getLogger("gh_notify")
_root.addHandler(_handler)
_root.setLevel(logging.DEBUG if os.environ.get("GH_NOTIFY_DEBUG") else logging.INFO)
# don't propagate to root logger (avoids duplicate output if someone
# configures the root logger elsewhere)
_root.propagate = False


def get_logger(name: str) -> logging.Logger:
    return _root.getChild(name)
