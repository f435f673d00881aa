"""Tests for gh_contributions.retrieval.collectors covering probing, paging and fan-out.

Run with coverage to exercise the search logic:
    pytest tests/test_collectors.py --maxfail=1 -v --cov=gh_contributions.retrieval.collectors --cov-report=term-missing
"""

import pytest

from gh_contributions.retrieval import collectors
from gh_contributions.retrieval.errors import FetchError


def _search_handler(total, pages, fail_page=None):
    def handler(path, params, stage):
        assert path == collectors.SEARCH_PATH
        if params["per_page"] == 1:
            return {"total_count": total, "items": []}
        page = params["page"]
        if page == fail_page:
            raise FetchError(stage, "HTTP 502")
        return {"total_count": total, "items": pages.get(page, [])}

    return handler


def _requested_pages(client):
    return sorted(params["page"] for _, params, stage in client.calls if stage.startswith("page "))


def test_page_numbers_keeps_legacy_boundary():
    assert collectors.page_numbers(250, 100) == [1, 2]
    assert collectors.page_numbers(200, 100) == [1]
    assert collectors.page_numbers(201, 100) == [1, 2]
    assert collectors.page_numbers(50, 100) == []
    assert collectors.page_numbers(0, 100) == []


def test_page_numbers_complete_last_page():
    assert collectors.page_numbers(250, 100, complete_last_page=True) == [1, 2, 3]
    assert collectors.page_numbers(200, 100, complete_last_page=True) == [1, 2]
    assert collectors.page_numbers(50, 100, complete_last_page=True) == [1]


def test_page_numbers_stop_at_search_result_limit():
    assert collectors.page_numbers(1500, 100) == list(range(1, 11))
    assert collectors.page_numbers(1500, 100, complete_last_page=True) == list(range(1, 11))
    assert collectors.page_numbers(5000, 30, complete_last_page=True) == list(range(1, 34))


def test_page_numbers_rejects_bad_page_size():
    with pytest.raises(ValueError):
        collectors.page_numbers(10, 0)


def test_build_search_params_uses_fixed_predicate():
    params = collectors.build_search_params("alice", page=3, per_page=100)
    assert params == {
        "q": "author:alice type:pr is:merged",
        "sort": "created",
        "order": "desc",
        "per_page": 100,
        "page": 3,
    }


def test_probe_total_count_requests_single_result(fake_client):
    client = fake_client(_search_handler(250, {}))
    assert collectors.probe_total_count(client, "alice") == 250
    path, params, stage = client.calls[0]
    assert params["per_page"] == 1 and params["page"] == 1
    assert stage == "probe"


def test_probe_total_count_rejects_missing_total(fake_client):
    client = fake_client(lambda *args: {"items": []})
    with pytest.raises(FetchError) as excinfo:
        collectors.probe_total_count(client, "alice")
    assert excinfo.value.stage == "probe"


def test_fetch_page_drops_own_repositories(fake_client, search_item):
    items = [
        search_item("acme/widget", "Fix bug", number=1),
        search_item("alice/dotfiles", "Tweak", number=2),
        search_item("acme/gizmo", "Add docs", number=3),
    ]
    client = fake_client(_search_handler(3, {2: items}))
    records = collectors.fetch_page(client, "alice", page=2, per_page=100)
    assert [r.repo_name for r in records] == ["acme/widget", "acme/gizmo"]
    assert all(not r.belongs_to_self for r in records)
    assert client.calls[0][2] == "page 2"


def test_fetch_page_reports_malformed_items(fake_client):
    client = fake_client(_search_handler(1, {4: [{"title": "no repo"}]}))
    with pytest.raises(FetchError) as excinfo:
        collectors.fetch_page(client, "alice", page=4)
    assert excinfo.value.stage == "page 4"


def test_fetch_all_prs_skips_last_partial_page(fake_client, search_item):
    pages = {
        1: [search_item("acme/widget", f"pr {i}", number=i) for i in range(3)],
        2: [search_item("acme/gizmo", "pr x", number=9)],
        3: [search_item("acme/never", "unreachable", number=10)],
    }
    client = fake_client(_search_handler(250, pages))
    records = collectors.fetch_all_prs(client, "alice", per_page=100, max_workers=2)
    assert _requested_pages(client) == [1, 2]
    assert sorted(r.repo_name for r in records) == ["acme/gizmo"] + ["acme/widget"] * 3


def test_fetch_all_prs_can_fetch_final_page(fake_client, search_item):
    pages = {3: [search_item("acme/tail", "last", number=1)]}
    client = fake_client(_search_handler(250, pages))
    records = collectors.fetch_all_prs(client, "alice", per_page=100, complete_last_page=True)
    assert _requested_pages(client) == [1, 2, 3]
    assert [r.repo_name for r in records] == ["acme/tail"]


def test_fetch_all_prs_without_pages_returns_empty(fake_client):
    client = fake_client(_search_handler(0, {}))
    assert collectors.fetch_all_prs(client, "alice") == []
    assert _requested_pages(client) == []


def test_fetch_all_prs_strict_failure_names_page_and_cancels(fake_client, search_item):
    pages = {1: [search_item("acme/widget", "ok")]}
    client = fake_client(_search_handler(450, pages, fail_page=2))
    with pytest.raises(FetchError) as excinfo:
        collectors.fetch_all_prs(client, "alice", per_page=100, max_workers=1)
    assert excinfo.value.stage == "page 2"
    assert client.cancelled


def test_fetch_all_prs_lenient_collects_failures(fake_client, search_item, capsys):
    pages = {1: [search_item("acme/widget", "ok")], 3: [search_item("acme/gizmo", "ok")]}
    client = fake_client(_search_handler(350, pages, fail_page=2))
    failures = []
    records = collectors.fetch_all_prs(client, "alice", per_page=100, strict=False, failures=failures)
    assert sorted(r.repo_name for r in records) == ["acme/gizmo", "acme/widget"]
    assert [f.stage for f in failures] == ["page 2"]
    assert not client.cancelled
    assert "[warn]" not in capsys.readouterr().out


def test_fetch_all_prs_never_requests_pages_past_result_limit(fake_client, search_item, capsys):
    def handler(path, params, stage):
        if params["per_page"] == 1:
            return {"total_count": 1500, "items": []}
        if params["page"] > 10:
            raise FetchError(stage, "HTTP 422 Only the first 1000 search results are available")
        return {"total_count": 1500, "items": [search_item("acme/widget", "ok", number=params["page"])]}

    client = fake_client(handler)
    records = collectors.fetch_all_prs(client, "alice", per_page=100, max_workers=3)
    assert _requested_pages(client) == list(range(1, 11))
    assert len(records) == 10
    assert "first 1000 results" in capsys.readouterr().out
