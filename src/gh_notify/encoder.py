"""Turn raw API notifications into display records and fzf rows."""

from __future__ import annotations

import re
from datetime import UTC, datetime

from .models import (
    BLANK_GLYPH,
    NULL,
    UNREAD_GLYPH,
    NotificationRecord,
    RawNotification,
    Row,
    ThreadState,
)

# tabs and newlines would break the row format
_LINE_BREAKS_RE = re.compile(r"[\t\r\n]+")


def parse_timestamp(value: str) -> datetime:
    """Parse a GitHub timestamp ("2024-05-01T12:34:56Z") into an aware UTC datetime."""
    return datetime.fromisoformat(value.replace("Z", "+00:00")).astimezone(UTC)


def format_instant(now: datetime) -> str:
    """Format an instant the way the notifications API expects last_read_at."""
    return now.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def last_segment(url: str) -> str:
    return url.rstrip("/").rsplit("/", 1)[-1]


def encode(raw: RawNotification, now: datetime) -> NotificationRecord:
    """Build the record for one notification; reference_number is left for the enricher."""
    updated = parse_timestamp(raw.updated_at)
    owner, name = raw.owner, raw.name
    if not (owner and name) and "/" in raw.repo_full_name:
        owner, name = raw.repo_full_name.split("/", 1)

    return NotificationRecord(
        search_qualifier=f"updated:>={updated:%Y-%m} repo:{owner}/{name}",
        timestamp=format_instant(now),
        thread_id=raw.thread_id,
        thread_state=ThreadState.UNREAD if raw.unread else ThreadState.READ,
        comment_anchor=last_segment(raw.latest_comment_url) if raw.latest_comment_url else NULL,
        display_time=updated.strftime("%d/%b %H:%M"),
        owner=owner,
        name=name,
        subject_type=raw.subject_type,
        subject_url=raw.subject_url or None,
        unread_glyph=UNREAD_GLYPH if raw.unread else BLANK_GLYPH,
        title=raw.title,
    )


def to_row(record: NotificationRecord) -> Row:
    date, time = record.display_time.split(" ", 1)
    return Row(
        timestamp=record.timestamp,
        thread_id=record.thread_id,
        thread_state=str(record.thread_state),
        comment_anchor=record.comment_anchor,
        date=date,
        time=time,
        unread_glyph=record.unread_glyph,
        repo_full_name=record.repo_full_name,
        subject_type=record.subject_type,
        reference_number=record.reference_number,
        title=_LINE_BREAKS_RE.sub(" ", record.title),
    )
