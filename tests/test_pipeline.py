"""Tests for gh_notify.pipeline."""

import json
from datetime import UTC, datetime
from unittest.mock import patch

from gh_notify.config import Config
from gh_notify.models import RawNotification, Row
from gh_notify.pipeline import OPTIONS_ENV, Options, build_table, collect, is_reload
from gh_notify.table import FINAL_MSG

NOW = datetime(2024, 5, 2, 8, 0, 0, tzinfo=UTC)


def _raw(thread_id, subject_type="Issue", url=None, title="Title"):
    return RawNotification(
        thread_id=thread_id,
        updated_at="2024-05-01T12:34:56Z",
        repo_full_name="o/r",
        owner="o",
        name="r",
        subject_type=subject_type,
        subject_url=url or f"https://api.github.com/repos/o/r/issues/{thread_id}",
        title=title,
        unread=True,
    )


def _pages(*pages):
    def fetch(page, **kwargs):
        return pages[page - 1] if page <= len(pages) else []

    return fetch


def test_collect_accumulates_pages_in_order():
    pages = _pages([_raw("1"), _raw("2")], [_raw("3")])
    with patch("gh_notify.pipeline.github.list_notifications", side_effect=pages) as mock_list:
        records = collect(Options(), Config(), now=NOW)
    assert [r.thread_id for r in records] == ["1", "2", "3"]
    assert [r.reference_number for r in records] == ["#1", "#2", "#3"]
    assert mock_list.call_count == 3
    assert mock_list.call_args.kwargs["per_page"] == 100


def test_collect_with_cap_fetches_one_page():
    pages = _pages([_raw("1")], [_raw("2")])
    with patch("gh_notify.pipeline.github.list_notifications", side_effect=pages) as mock_list:
        records = collect(Options(limit=5, participating=True, include_all=True), Config(), now=NOW)
    assert [r.thread_id for r in records] == ["1"]
    mock_list.assert_called_once_with(1, per_page=5, participating=True, include_all=True)


def test_build_table_empty_outside_reload():
    with patch("gh_notify.pipeline.github.list_notifications", return_value=[]):
        assert build_table(Options(), Config(), now=NOW) == ""


def test_build_table_empty_on_reload_gives_placeholder():
    with patch("gh_notify.pipeline.github.list_notifications", return_value=[]):
        table = build_table(Options(), Config(), reload=True, now=NOW)
    assert table.endswith(FINAL_MSG)


def test_build_table_applies_filters():
    pages = _pages(
        [_raw("1", title="keep me"), _raw("2", title="drop me"), _raw("3", title="other")]
    )
    with patch("gh_notify.pipeline.github.list_notifications", side_effect=pages):
        table = build_table(Options(exclude="drop", include="me$"), Config(), color=False, now=NOW)
    rows = [Row.parse_display(line) for line in table.split("\n")]
    assert [row.title for row in rows] == ["keep me"]


def test_options_env_round_trip(monkeypatch):
    options = Options(include_all=True, exclude="foo", include="bar", limit=10, preview=True)
    monkeypatch.setenv(OPTIONS_ENV, options.to_env())
    assert Options.from_env() == options


def test_options_from_env_ignores_unknown_keys(monkeypatch):
    monkeypatch.setenv(OPTIONS_ENV, json.dumps({"limit": 3, "bogus": 1}))
    assert Options.from_env() == Options(limit=3)


def test_is_reload(monkeypatch):
    monkeypatch.delenv("GH_NOTIFY_RELOAD", raising=False)
    assert is_reload() is False
    monkeypatch.setenv("GH_NOTIFY_RELOAD", "1")
    assert is_reload() is True
