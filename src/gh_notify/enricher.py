"""Compute the per-type reference number of each record."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from . import github
from .encoder import last_segment
from .errors import GhNotifyError
from .github import GitHubError
from .log import get_logger
from .models import NotificationRecord, SubjectType

_log = get_logger("enricher")


def enrich(record: NotificationRecord) -> NotificationRecord | None:
    """Return the record with its reference number set, or None to drop it.

    Only a release whose detail can no longer be fetched is dropped. A failed
    discussion search is fatal.
    """
    kind = record.kind
    url = record.subject_url

    if kind is SubjectType.DISCUSSION:
        try:
            number = github.search_discussion(record.title, record.search_qualifier)
        except GitHubError as e:
            raise GhNotifyError(f"discussion search failed: {e}") from e
        if number is None:
            _log.info("no discussion found for %r (%s)", record.title, record.search_qualifier)
        return dataclasses.replace(record, reference_number=number or "")

    if url is None:
        return record

    if kind is SubjectType.COMMIT:
        return dataclasses.replace(record, reference_number=last_segment(url)[:7])

    if kind is SubjectType.RELEASE:
        try:
            release = github.get_release(url)
        except GitHubError as e:
            # deleted releases keep their notification around
            _log.info("dropping release notification %s: %s", record.thread_id, e)
            return None
        subject_type = SubjectType.PRE_RELEASE if release.get("prerelease") else record.subject_type
        return dataclasses.replace(
            record,
            reference_number=str(release.get("tag_name") or ""),
            subject_type=str(subject_type),
        )

    return dataclasses.replace(record, reference_number=f"#{last_segment(url)}")


def enrich_page(
    records: Iterable[NotificationRecord], workers: int = 1
) -> list[NotificationRecord]:
    """Enrich records in input order, dropping the ones enrich() rejects.

    With workers > 1 lookups run on a thread pool; output order still matches
    input order.
    """
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            enriched = list(pool.map(enrich, records))
    else:
        enriched = [enrich(record) for record in records]
    return [record for record in enriched if record is not None]
