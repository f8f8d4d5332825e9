"""Fetch, encode, enrich, filter and format notifications.

The same pipeline serves static output, the initial fzf input and every
reload triggered from inside fzf. A reload runs it again from scratch in a
new process; it finds its options in GH_NOTIFY_OPTIONS and knows it is a
reload from GH_NOTIFY_RELOAD.
"""

from __future__ import annotations

import dataclasses
import json
import os
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import partial

from . import github, paginator
from .config import Config
from .encoder import encode, to_row
from .enricher import enrich_page
from .log import get_logger
from .models import NotificationRecord
from .table import NEVER_MATCH, filter_rows, placeholder, render

OPTIONS_ENV = "GH_NOTIFY_OPTIONS"
RELOAD_ENV = "GH_NOTIFY_RELOAD"

_log = get_logger("pipeline")


@dataclass(frozen=True)
class Options:
    """Command-line options that shape the notification list."""

    include_all: bool = False
    participating: bool = False
    exclude: str = NEVER_MATCH
    include: str = ""
    limit: int = 0
    static: bool = False
    preview: bool = False

    def to_env(self) -> str:
        return json.dumps(dataclasses.asdict(self))

    @classmethod
    def from_env(cls) -> Options:
        raw = os.environ.get(OPTIONS_ENV)
        if not raw:
            return cls()
        known = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in json.loads(raw).items() if k in known})


def is_reload() -> bool:
    return os.environ.get(RELOAD_ENV) == "1"


def collect(
    options: Options, config: Config, now: datetime | None = None
) -> list[NotificationRecord]:
    """Fetch every page and return the enriched records in API order."""
    if now is None:
        now = datetime.now(UTC)

    fetch_page = partial(
        github.list_notifications,
        per_page=paginator.page_size(options.limit),
        participating=options.participating,
        include_all=options.include_all,
    )
    records: list[NotificationRecord] = []
    for page in paginator.iter_pages(fetch_page, options.limit):
        encoded = [encode(raw, now) for raw in page]
        records.extend(enrich_page(encoded, workers=config.api.lookup_workers))
    _log.info("collected %d notifications", len(records))
    return records


def build_table(
    options: Options,
    config: Config,
    *,
    reload: bool = False,
    color: bool = True,
    now: datetime | None = None,
) -> str:
    """Run the whole pipeline and return the table text.

    An empty result gives an empty string, except on a reload, where fzf gets
    the placeholder row instead.
    """
    records = collect(options, config, now=now)
    rows = filter_rows(
        (to_row(record) for record in records),
        exclude=options.exclude,
        include=options.include,
    )
    if not rows:
        return placeholder() if reload else ""
    return render(rows, color=color)
