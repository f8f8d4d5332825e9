"""Notification types for gh-notify."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, NamedTuple

UNREAD_GLYPH = "●"
# A no-break space is not a field separator for fzf or for Row.parse_display,
# so read rows and empty references still occupy their column.
BLANK_GLYPH = "\u00a0"
NULL = "null"

REFERENCE_WIDTH = 5

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
_SEPARATOR_RE = re.compile(r"[ \t]+")


class SubjectType(StrEnum):
    ISSUE = "Issue"
    PULL_REQUEST = "PullRequest"
    COMMIT = "Commit"
    RELEASE = "Release"
    PRE_RELEASE = "Pre-release"
    DISCUSSION = "Discussion"
    CHECK_SUITE = "CheckSuite"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: str) -> SubjectType:
        """Map an API subject type to the enum; unknown types become OTHER."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class ThreadState(StrEnum):
    UNREAD = "UNREAD"
    READ = "READ"


@dataclass(frozen=True)
class RawNotification:
    """One element of the GET /notifications response."""

    thread_id: str
    updated_at: str
    repo_full_name: str
    owner: str
    name: str
    subject_type: str
    subject_url: str | None
    title: str
    unread: bool
    latest_comment_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RawNotification:
        """Create from GitHub API response."""
        repo = data.get("repository") or {}
        subject = data.get("subject") or {}
        return cls(
            thread_id=str(data["id"]),
            updated_at=data["updated_at"],
            repo_full_name=repo.get("full_name", ""),
            owner=(repo.get("owner") or {}).get("login", ""),
            name=repo.get("name", ""),
            subject_type=subject.get("type", ""),
            subject_url=subject.get("url"),
            title=subject.get("title", ""),
            unread=bool(data.get("unread")),
            latest_comment_url=subject.get("latest_comment_url"),
        )


@dataclass(frozen=True)
class NotificationRecord:
    """A notification prepared for display and actions."""

    search_qualifier: str
    timestamp: str
    thread_id: str
    thread_state: ThreadState
    comment_anchor: str
    display_time: str
    owner: str
    name: str
    subject_type: str
    subject_url: str | None
    unread_glyph: str
    title: str
    reference_number: str = ""

    @property
    def repo_full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def kind(self) -> SubjectType:
        return SubjectType.parse(self.subject_type)


class Row(NamedTuple):
    """The positional form of a record exchanged with fzf.

    The first ten fields never contain whitespace; only the title may, and it
    is always last.
    """

    timestamp: str
    thread_id: str
    thread_state: str
    comment_anchor: str
    date: str
    time: str
    unread_glyph: str
    repo_full_name: str
    subject_type: str
    reference_number: str
    title: str

    @property
    def kind(self) -> SubjectType:
        return SubjectType.parse(self.subject_type)

    @property
    def display_time(self) -> str:
        return f"{self.date} {self.time}"

    @property
    def number(self) -> str:
        """The reference without its '#' prefix."""
        return self.reference_number.strip().removeprefix("#")

    @property
    def is_unread(self) -> bool:
        return self.thread_state == ThreadState.UNREAD

    def serialize(self) -> str:
        return "\t".join(self)

    @classmethod
    def parse(cls, line: str) -> Row:
        """Parse a tab-serialized row (see serialize)."""
        parts = line.rstrip("\n").split("\t", len(cls._fields) - 1)
        if len(parts) != len(cls._fields):
            raise ValueError(f"expected {len(cls._fields)} tab-separated fields: {line!r}")
        return cls(*parts)

    @classmethod
    def parse_display(cls, line: str) -> Row | None:
        """Parse an aligned row as fzf prints it back.

        Returns None when the line does not hold a full row (nothing was
        selected, or the "all caught up" placeholder was).
        """
        plain = _ANSI_RE.sub("", line).strip(" \t\n")
        parts = _SEPARATOR_RE.split(plain, maxsplit=len(cls._fields) - 1)
        if len(parts) != len(cls._fields):
            return None
        # empty cells are rendered as the blank glyph, which is also the read marker
        return cls(
            *(
                part if name == "unread_glyph" or part != BLANK_GLYPH else ""
                for name, part in zip(cls._fields, parts, strict=True)
            )
        )

