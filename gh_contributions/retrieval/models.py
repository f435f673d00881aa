"""Record types for merged pull requests and their per-repository grouping."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from .config import UNRESOLVED_STARS, WEB_URL

REPOS_SEGMENT = "/repos/"


def repo_name_from_api_url(repo_api_url: str) -> str:
    """Return `owner/repo` from an API resource path such as .../repos/owner/repo."""
    if REPOS_SEGMENT in repo_api_url:
        parts = [part for part in repo_api_url.rsplit(REPOS_SEGMENT, 1)[1].split("/") if part][:2]
    else:
        parts = [part for part in urlparse(repo_api_url).path.split("/") if part][-2:]
    if len(parts) < 2:
        raise ValueError(f"cannot derive owner/repo from {repo_api_url!r}")
    return "/".join(parts)


def repo_url_from_name(repo_name: str) -> str:
    return f"{WEB_URL}/{repo_name}"


def owner_of(repo_name: str) -> str:
    return repo_name.split("/", 1)[0]


def parse_github_timestamp(raw: Optional[str]) -> dt.datetime:
    """Parse GitHub's ISO-8601 timestamps into timezone-aware datetimes."""
    if not raw:
        raise ValueError("missing created_at")
    parsed = dt.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


@dataclass
class PullRequestRecord:
    """One merged pull request; only `repo_star_count` changes after construction."""

    url: str
    repo_api_url: str
    title: str
    created_at: dt.datetime
    author_association: str = ""
    author_login: str = ""
    repo_name: str = ""
    repo_url: str = ""
    belongs_to_self: bool = False
    repo_star_count: int = UNRESOLVED_STARS

    def __post_init__(self) -> None:
        self.repo_name = repo_name_from_api_url(self.repo_api_url)
        self.repo_url = repo_url_from_name(self.repo_name)

    @classmethod
    def from_search_item(cls, item: Dict[str, Any], username: str) -> "PullRequestRecord":
        """Build a record from one `search/issues` item for the acting `username`."""
        repo_api_url = item.get("repository_url")
        if not repo_api_url:
            raise ValueError("search item has no repository_url")
        record = cls(
            url=item.get("html_url") or "",
            repo_api_url=repo_api_url,
            title=item.get("title") or "",
            created_at=parse_github_timestamp(item.get("created_at")),
            author_association=item.get("author_association") or "",
            author_login=((item.get("user") or {}).get("login")) or "",
        )
        record.belongs_to_self = owner_of(record.repo_name).lower() == username.lower()
        return record


@dataclass
class RepoGroup:
    """Render-time projection of the records sharing one repository."""

    repo_name: str
    repo_url: str
    repo_star_count: int
    records: List[PullRequestRecord] = field(default_factory=list)


__all__ = [
    "PullRequestRecord",
    "RepoGroup",
    "repo_name_from_api_url",
    "repo_url_from_name",
    "owner_of",
    "parse_github_timestamp",
]
