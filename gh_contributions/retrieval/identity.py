"""Resolve the login of the token owner once per run."""

from __future__ import annotations

import threading
from typing import Optional

from .errors import AuthError, FetchError
from .http_client import GitHubClient, print_verbose

IDENTITY_STAGE = "identity"


class Authenticator:
    """Memoizes `GET /user` so the identity lookup happens at most once."""

    def __init__(self, client: GitHubClient) -> None:
        self.client = client
        self._lock = threading.Lock()
        self._username: Optional[str] = None

    def resolve_username(self) -> str:
        with self._lock:
            if self._username is None:
                self._username = self._lookup()
            return self._username

    def _lookup(self) -> str:
        if not self.client.token:
            raise AuthError(IDENTITY_STAGE, "GitHub token is required (use -t, GITHUB_TOKEN or local_secrets.json)")
        try:
            payload = self.client.get_json("user", stage=IDENTITY_STAGE)
        except AuthError:
            raise
        except FetchError as exc:
            raise AuthError(IDENTITY_STAGE, exc.reason) from exc

        login = payload.get("login") if isinstance(payload, dict) else None
        if not login:
            raise AuthError(IDENTITY_STAGE, "identity response has no login field")
        print_verbose(f"Login to GitHub as [{login}] ...")
        return str(login)


__all__ = ["Authenticator", "IDENTITY_STAGE"]
