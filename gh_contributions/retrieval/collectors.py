"""Search helpers that discover, page through, and merge a user's merged pull requests."""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional

from .config import COMPLETE_LAST_PAGE, MAX_WORKERS, PER_PAGE, SEARCH_RESULT_LIMIT
from .errors import AuthError, ContributionsError, FetchError, FetchFailure
from .http_client import GitHubClient, print_verbose
from .models import PullRequestRecord

SEARCH_PATH = "search/issues"
PROBE_STAGE = "probe"


def page_stage(page: int) -> str:
    return f"page {page}"


def build_search_params(username: str, page: int, per_page: int) -> Dict[str, Any]:
    """Fixed predicate: merged PRs authored by `username`, newest first."""
    return {
        "q": f"author:{username} type:pr is:merged",
        "sort": "created",
        "order": "desc",
        "per_page": per_page,
        "page": page,
    }


def _search(client: GitHubClient, username: str, page: int, per_page: int, stage: str) -> Dict[str, Any]:
    payload = client.get_json(SEARCH_PATH, build_search_params(username, page, per_page), stage=stage)
    if not isinstance(payload, dict):
        raise FetchError(stage, f"unexpected search response of type {type(payload).__name__}")
    return payload


def probe_total_count(client: GitHubClient, username: str) -> int:
    """Ask for a single result to learn the total number of matches."""
    payload = _search(client, username, page=1, per_page=1, stage=PROBE_STAGE)
    total = payload.get("total_count")
    if isinstance(total, bool) or not isinstance(total, int):
        raise FetchError(PROBE_STAGE, f"search response has no integer total_count: {total!r}")
    return total


def page_numbers(total: int, per_page: int = PER_PAGE, complete_last_page: bool = False) -> List[int]:
    """Return the 1-indexed pages to request for `total` matches.

    By default pages are issued while ``page * per_page < total``, the long-standing
    behavior of this tool: 250 matches give pages 1 and 2, and fewer than `per_page`
    matches give no pages at all. `complete_last_page` requests every page that
    holds at least one match instead. Pages past SEARCH_RESULT_LIMIT are never
    requested since search cannot serve them.
    """
    if per_page <= 0:
        raise ValueError("per_page must be positive")
    if total <= 0:
        return []
    last_page = max(1, SEARCH_RESULT_LIMIT // per_page)
    if complete_last_page:
        return list(range(1, min(math.ceil(total / per_page), last_page) + 1))
    pages = []
    page = 1
    while page * per_page < total and page <= last_page:
        pages.append(page)
        page += 1
    return pages


def fetch_page(
    client: GitHubClient,
    username: str,
    page: int,
    per_page: int = PER_PAGE,
) -> List[PullRequestRecord]:
    """Fetch one search page, dropping PRs against the user's own repositories."""
    stage = page_stage(page)
    print_verbose(f"start fetching page {page}")
    payload = _search(client, username, page=page, per_page=per_page, stage=stage)
    items = payload.get("items")
    if not isinstance(items, list):
        raise FetchError(stage, "search response has no items list")

    records: List[PullRequestRecord] = []
    for item in items:
        try:
            record = PullRequestRecord.from_search_item(item, username)
        except (AttributeError, TypeError, ValueError) as exc:
            raise FetchError(stage, f"malformed search item: {exc}") from exc
        if record.belongs_to_self:
            continue
        records.append(record)
    return records


def fetch_all_prs(
    client: GitHubClient,
    username: str,
    *,
    per_page: int = PER_PAGE,
    max_workers: int = MAX_WORKERS,
    strict: bool = True,
    failures: Optional[List[FetchFailure]] = None,
    complete_last_page: bool = COMPLETE_LAST_PAGE,
) -> List[PullRequestRecord]:
    """Probe, fan page fetches out over a bounded pool, and merge the results.

    With `strict` the first failing page cancels outstanding work and is raised.
    Otherwise failed pages are appended to `failures` and skipped.
    """
    total = probe_total_count(client, username)
    pages = page_numbers(total, per_page, complete_last_page=complete_last_page)
    print(f"[info] {total} merged PRs reported for {username}; fetching {len(pages)} page(s)")
    if total > SEARCH_RESULT_LIMIT:
        print(f"[warn] search only serves the first {SEARCH_RESULT_LIMIT} results; older PRs are left out")
    if not pages:
        return []

    by_page: Dict[int, List[PullRequestRecord]] = {}
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(pages)))) as executor:
        futures = {
            executor.submit(fetch_page, client, username, page, per_page): page
            for page in pages
        }
        for future in as_completed(futures):
            page = futures[future]
            try:
                by_page[page] = future.result()
            except ContributionsError as exc:
                if strict or isinstance(exc, AuthError):
                    client.cancel()
                    executor.shutdown(wait=False, cancel_futures=True)
                    raise
                print_verbose(f"page {page} failed, continuing without it")
                if failures is not None:
                    failures.append(FetchFailure.from_error(exc))

    records: List[PullRequestRecord] = []
    for page in sorted(by_page):
        records.extend(by_page[page])
    return records


__all__ = [
    "SEARCH_PATH",
    "PROBE_STAGE",
    "page_stage",
    "build_search_params",
    "probe_total_count",
    "page_numbers",
    "fetch_page",
    "fetch_all_prs",
]
