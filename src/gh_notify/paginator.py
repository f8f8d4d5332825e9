"""Walk the pages of the notification list."""

from __future__ import annotations

from collections.abc import Callable, Iterator

from .log import get_logger
from .models import RawNotification

MAX_PAGE_SIZE = 100

_log = get_logger("paginator")


def page_size(cap: int) -> int:
    """Page size to request: the cap when one is set, else 100.

    The API silently clamps anything above 100.
    """
    return cap if cap > 0 else MAX_PAGE_SIZE


def iter_pages(
    fetch_page: Callable[[int], list[RawNotification]],
    cap: int = 0,
) -> Iterator[list[RawNotification]]:
    """Yield non-empty pages, starting at page 1.

    Stops at the first empty page. With a cap (cap > 0) only the first page is
    requested, so a cap above 100 still yields at most 100 notifications.
    Errors from fetch_page propagate; pages already yielded are the caller's
    to discard.
    """
    page_number = 1
    while True:
        page = fetch_page(page_number)
        if not page:
            break
        yield page
        if cap > 0:
            break
        page_number += 1
    _log.debug("stopped after page %d", page_number)
