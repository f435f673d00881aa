"""Authenticated GitHub REST access with retry/backoff and cooperative cancellation."""

from __future__ import annotations

import os
import threading
import time
from typing import Any, Dict, Optional

import requests

from . import config
from .config import (
    BACKOFF_BASE_SEC,
    BASE_URL,
    MAX_RETRIES,
    MAX_WAIT_ON_403,
    REQUEST_TIMEOUT,
    USER_AGENT,
)
from .errors import AuthError, FetchError

TERMINAL_ERRORS = {400, 403, 404, 410, 422}


def print_verbose(message: str) -> None:
    """Print per-request progress only when debug output is enabled."""
    if config.DEBUG:
        print(message)


def sleep_with_jitter(base: float, cancel_event: Optional[threading.Event] = None) -> None:
    """Pause with +/- 25% jitter; returns early when `cancel_event` is set."""
    jitter = base * 0.25 * (0.5 - (os.urandom(1)[0] / 255.0))
    delay = max(0.0, base + jitter)
    if cancel_event is not None:
        cancel_event.wait(delay)
    else:
        time.sleep(delay)


def http_error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = {"text": (resp.text or "")[:300]}
    if not isinstance(body, dict):
        body = {"text": str(body)[:300]}
    return str(body.get("message") or body.get("error") or body.get("text") or "")


def log_http_error(resp: requests.Response, url: str) -> None:
    """Print a short, human-readable message when GitHub returns an error."""
    print(f"[error] HTTP {resp.status_code} for {url}\n  -> {http_error_message(resp)}")


def rate_limit_wait(resp: requests.Response, attempt: int) -> Optional[int]:
    """Return seconds to wait for a rate-limited 403/429, or None when not rate limited."""
    headers = resp.headers or {}
    remaining = headers.get("X-RateLimit-Remaining")
    reset = headers.get("X-RateLimit-Reset")
    retry_after = headers.get("Retry-After")

    if retry_after and str(retry_after).isdigit():
        wait_sec = int(retry_after)
    elif remaining == "0" and reset and str(reset).isdigit():
        wait_sec = max(0, int(reset) - int(time.time())) + 1
    elif remaining == "0" or resp.status_code == 429:
        wait_sec = BACKOFF_BASE_SEC * (2 ** (attempt - 1))
    else:
        return None
    return min(wait_sec, MAX_WAIT_ON_403)


class GitHubClient:
    """Session-scoped GitHub REST client shared by every stage of one report run."""

    def __init__(
        self,
        token: Optional[str],
        base_url: str = BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        max_retries: int = MAX_RETRIES,
    ) -> None:
        self.token = (token or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.cancel_event = threading.Event()
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": USER_AGENT,
            }
        )
        if self.token:
            self.session.headers["Authorization"] = f"token {self.token}"

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def cancel(self) -> None:
        """Stop issuing requests; in-flight backoff sleeps wake up immediately."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def request_with_backoff(
        self,
        method: str,
        path: str,
        *,
        stage: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """Perform a REST call with timeout, retry and exponential backoff."""
        if not self.token:
            raise AuthError(stage, "GitHub token is required (use -t, GITHUB_TOKEN or local_secrets.json)")

        url = self._url(path)
        last_reason = "no attempts made"

        for attempt in range(1, self.max_retries + 1):
            if self.cancelled:
                raise FetchError(stage, "cancelled")
            try:
                resp = self.session.request(method, url, params=params, timeout=self.timeout)
            except requests.RequestException as exc:
                last_reason = str(exc)
                if attempt == self.max_retries:
                    break
                delay = BACKOFF_BASE_SEC * (2 ** (attempt - 1))
                print(f"[retry {attempt}/{self.max_retries}] {exc} -> sleep {delay:.1f}s")
                sleep_with_jitter(delay, self.cancel_event)
                continue

            if 200 <= resp.status_code < 300:
                return resp

            if resp.status_code == 401:
                log_http_error(resp, url)
                raise AuthError(stage, f"HTTP 401 {http_error_message(resp)}".strip())

            if resp.status_code in (403, 429):
                wait_sec = rate_limit_wait(resp, attempt)
                if wait_sec is not None and attempt < self.max_retries:
                    print(f"[backoff {resp.status_code}] waiting {wait_sec}s for {url}")
                    sleep_with_jitter(wait_sec, self.cancel_event)
                    continue

            if resp.status_code in TERMINAL_ERRORS or resp.status_code == 429:
                log_http_error(resp, url)
                raise FetchError(stage, f"HTTP {resp.status_code} {http_error_message(resp)}".strip())

            last_reason = f"HTTP {resp.status_code}"
            if attempt < self.max_retries:
                delay = BACKOFF_BASE_SEC * (2 ** (attempt - 1))
                print(f"[retry {attempt}/{self.max_retries}] HTTP {resp.status_code} -> sleep {delay:.1f}s")
                sleep_with_jitter(delay, self.cancel_event)
                continue
            log_http_error(resp, url)

        raise FetchError(stage, f"request failed after {self.max_retries} attempts: {last_reason}")

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None, *, stage: str) -> Any:
        """GET `path` and return the decoded JSON body."""
        resp = self.request_with_backoff("GET", path, stage=stage, params=params)
        try:
            return resp.json()
        except ValueError as exc:
            raise FetchError(stage, f"invalid JSON from {self._url(path)}: {exc}") from exc


__all__ = [
    "GitHubClient",
    "print_verbose",
    "sleep_with_jitter",
    "http_error_message",
    "log_http_error",
    "rate_limit_wait",
]
