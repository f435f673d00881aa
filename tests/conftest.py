"""Shared fixtures: a thread-safe stand-in for GitHubClient and search item builders."""

import threading
import time
from collections import Counter
from typing import Any, Callable, Dict, Optional

import pytest

from gh_contributions.retrieval.errors import FetchError


class FakeGitHubClient:
    """Routes get_json calls to `handler(path, params, stage)` and records every call."""

    def __init__(self, handler: Callable[[str, Dict[str, Any], str], Any], token: str = "tok", delay: float = 0.0):
        self.handler = handler
        self.token = token
        self.delay = delay
        self.calls = []
        self.cancel_event = threading.Event()
        self._lock = threading.Lock()

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None, *, stage: str) -> Any:
        with self._lock:
            self.calls.append((path, dict(params or {}), stage))
        if self.cancelled:
            raise FetchError(stage, "cancelled")
        if self.delay:
            time.sleep(self.delay)
        return self.handler(path, dict(params or {}), stage)

    def path_counts(self) -> Counter:
        with self._lock:
            return Counter(path for path, _, _ in self.calls)


def make_search_item(
    repo: str,
    title: str,
    created_at: str = "2024-01-01T00:00:00Z",
    number: int = 1,
    login: str = "alice",
) -> Dict[str, Any]:
    return {
        "html_url": f"https://github.com/{repo}/pull/{number}",
        "repository_url": f"https://api.github.com/repos/{repo}",
        "title": title,
        "created_at": created_at,
        "author_association": "CONTRIBUTOR",
        "user": {"login": login},
    }


@pytest.fixture
def fake_client():
    return FakeGitHubClient


@pytest.fixture
def search_item():
    return make_search_item
