"""Attach repository star counts to merged pull requests, one lookup per repository."""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional

from .config import MAX_WORKERS, UNRESOLVED_STARS
from .errors import AuthError, ContributionsError, FetchError, FetchFailure
from .http_client import GitHubClient, print_verbose
from .models import PullRequestRecord


def star_stage(repo_name: str) -> str:
    return f"star lookup for {repo_name}"


def get_repo_star(client: GitHubClient, repo_name: str) -> int:
    """Return `stargazers_count` for `owner/repo`."""
    stage = star_stage(repo_name)
    print_verbose(f"get repo({repo_name}) star count")
    payload = client.get_json(f"repos/{repo_name}", stage=stage)
    stars = payload.get("stargazers_count") if isinstance(payload, dict) else None
    if isinstance(stars, bool) or not isinstance(stars, int):
        raise FetchError(stage, f"repository response has no integer stargazers_count: {stars!r}")
    return stars


class StarEnricher:
    """Single-flight star lookups shared by every record of the same repository."""

    def __init__(
        self,
        client: GitHubClient,
        max_workers: int = MAX_WORKERS,
        strict: bool = True,
    ) -> None:
        self.client = client
        self.max_workers = max(1, max_workers)
        self.strict = strict
        self.failures: List[FetchFailure] = []
        self._lock = threading.Lock()
        self._pending: Dict[str, Future] = {}
        self._stars: Dict[str, int] = {}

    @property
    def stars(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._stars)

    def _lookup(self, repo_name: str) -> int:
        stars = get_repo_star(self.client, repo_name)
        with self._lock:
            self._stars[repo_name] = stars
        return stars

    def _forget_unresolved(self) -> None:
        # cancelled or failed lookups must not be handed out again
        with self._lock:
            for repo_name in [name for name in self._pending if name not in self._stars]:
                del self._pending[repo_name]

    def request(self, executor: Executor, repo_name: str) -> Future:
        """Return the lookup future for `repo_name`, submitting it on first demand."""
        with self._lock:
            future = self._pending.get(repo_name)
            if future is None:
                future = executor.submit(self._lookup, repo_name)
                self._pending[repo_name] = future
            return future

    def enrich(self, records: List[PullRequestRecord]) -> List[PullRequestRecord]:
        """Populate `repo_star_count` on every record and return the same list."""
        if not records:
            return records

        repo_count = len({record.repo_name for record in records})
        print(f"[info] looking up stars for {repo_count} repositories")
        with ThreadPoolExecutor(max_workers=min(self.max_workers, repo_count)) as executor:
            futures = {self.request(executor, record.repo_name): record.repo_name for record in records}
            for future in as_completed(futures):
                repo_name = futures[future]
                try:
                    future.result()
                except ContributionsError as exc:
                    if self.strict or isinstance(exc, AuthError):
                        self.client.cancel()
                        executor.shutdown(wait=False, cancel_futures=True)
                        self._forget_unresolved()
                        raise
                    print_verbose(f"rendering {repo_name} without a star count")
                    self.failures.append(FetchFailure.from_error(exc))

        stars = self.stars
        for record in records:
            record.repo_star_count = stars.get(record.repo_name, UNRESOLVED_STARS)
        return records


def enrich_with_stars(
    client: GitHubClient,
    records: List[PullRequestRecord],
    *,
    max_workers: int = MAX_WORKERS,
    strict: bool = True,
    failures: Optional[List[FetchFailure]] = None,
) -> List[PullRequestRecord]:
    enricher = StarEnricher(client, max_workers=max_workers, strict=strict)
    try:
        return enricher.enrich(records)
    finally:
        if failures is not None:
            failures.extend(enricher.failures)


__all__ = ["StarEnricher", "enrich_with_stars", "get_repo_star", "star_stage"]
