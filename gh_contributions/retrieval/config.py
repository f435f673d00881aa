"""Central configuration constants for fetching merged pull requests and star counts."""

from __future__ import annotations

import os

from gh_contributions.secrets import github_token_from_secrets, load_local_secrets

_SECRETS = load_local_secrets()
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN") or github_token_from_secrets(_SECRETS)
USER_AGENT = "gh-contributions/1.0"
BASE_URL = "https://api.github.com"
WEB_URL = "https://github.com"
PER_PAGE = int(os.getenv("PER_PAGE", "100"))
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "4"))
BACKOFF_BASE_SEC = 2
MAX_WAIT_ON_403 = int(os.getenv("MAX_WAIT_ON_403", "180"))
MAX_WORKERS = max(1, int(os.getenv("MAX_WORKERS", "4")))
DEBUG = os.getenv("GH_CONTRIB_DEBUG", "0") == "1"
# 0 = keep the legacy `page * per_page < total` page loop
COMPLETE_LAST_PAGE = os.getenv("COMPLETE_LAST_PAGE", "0") == "1"
# search API serves at most this many results; later pages return 422
SEARCH_RESULT_LIMIT = 1000
UNRESOLVED_STARS = -1

__all__ = [
    "GITHUB_TOKEN",
    "USER_AGENT",
    "BASE_URL",
    "WEB_URL",
    "PER_PAGE",
    "REQUEST_TIMEOUT",
    "MAX_RETRIES",
    "BACKOFF_BASE_SEC",
    "MAX_WAIT_ON_403",
    "MAX_WORKERS",
    "DEBUG",
    "COMPLETE_LAST_PAGE",
    "SEARCH_RESULT_LIMIT",
    "UNRESOLVED_STARS",
]
