"""Sort, filter, group, and render merged pull requests as a markdown report."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from gh_contributions.retrieval.config import UNRESOLVED_STARS
from gh_contributions.retrieval.models import PullRequestRecord, RepoGroup

SIDE_PROJECTS_HEADING = "## Side projects"


@dataclass(frozen=True)
class SideProject:
    name: str
    url: str
    description: str = ""


def normalize_ignore(entries: Iterable[str]) -> List[str]:
    """Case-fold ignore entries and drop blanks, which would match everything."""
    return [entry.strip().casefold() for entry in entries if entry and entry.strip()]


def sort_records(records: Iterable[PullRequestRecord]) -> List[PullRequestRecord]:
    """Order by repo name desc, then newest first; the PR url breaks remaining ties."""
    return sorted(records, key=lambda r: (r.repo_name, r.created_at, r.url), reverse=True)


def is_ignored(record: PullRequestRecord, ignore: Sequence[str]) -> bool:
    name = record.repo_name.casefold()
    title = record.title.casefold()
    for entry in ignore:
        if entry in name or entry in title:
            return True
        if record.repo_name == entry:
            return True
    return False


def filter_ignored(records: Iterable[PullRequestRecord], ignore: Iterable[str]) -> List[PullRequestRecord]:
    """Drop records whose repo name or title contains, or whose name equals, an entry."""
    entries = normalize_ignore(ignore)
    return [record for record in records if not record.belongs_to_self and not is_ignored(record, entries)]


def group_by_repo(records: Iterable[PullRequestRecord]) -> List[RepoGroup]:
    """Group records by repository in first-seen order."""
    groups: List[RepoGroup] = []
    index = {}
    for record in records:
        group = index.get(record.repo_name)
        if group is None:
            group = RepoGroup(
                repo_name=record.repo_name,
                repo_url=record.repo_url,
                repo_star_count=record.repo_star_count,
            )
            index[record.repo_name] = group
            groups.append(group)
        group.records.append(record)
    return groups


def format_stars(count: int) -> str:
    return "?" if count == UNRESOLVED_STARS else str(count)


def render_contributions(records: Iterable[PullRequestRecord], ignore: Iterable[str] = ()) -> bytes:
    """Render the contributions section: count header, one line per repo, one bullet per PR."""
    kept = filter_ignored(sort_records(records), ignore)
    lines = [f"## {len(kept)} merged PRs", ""]
    for group in group_by_repo(kept):
        lines.append(f"* [**{group.repo_name}**(★{format_stars(group.repo_star_count)})]({group.repo_url})")
        for record in group.records:
            lines.append(f"  * [{record.title}]({record.url})")
    return ("\n".join(lines) + "\n").encode("utf-8")


def render_side_projects(projects: Sequence[SideProject]) -> bytes:
    if not projects:
        return b""
    lines = ["", SIDE_PROJECTS_HEADING, ""]
    for project in projects:
        line = f"* [{project.name}]({project.url})"
        if project.description:
            line += f": {project.description}"
        lines.append(line)
    return ("\n".join(lines) + "\n").encode("utf-8")


def render_report(
    records: Iterable[PullRequestRecord],
    ignore: Iterable[str] = (),
    side_projects: Sequence[SideProject] = (),
) -> bytes:
    return render_contributions(records, ignore) + render_side_projects(side_projects)


__all__ = [
    "SideProject",
    "SIDE_PROJECTS_HEADING",
    "normalize_ignore",
    "sort_records",
    "is_ignored",
    "filter_ignored",
    "group_by_repo",
    "format_stars",
    "render_contributions",
    "render_side_projects",
    "render_report",
]
