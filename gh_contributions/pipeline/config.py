"""Command-line settings and report config loading for the contributions report."""

from __future__ import annotations

import argparse
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from gh_contributions.report.markdown import SideProject, normalize_ignore
from gh_contributions.retrieval.config import COMPLETE_LAST_PAGE, DEBUG, GITHUB_TOKEN, MAX_WORKERS

DEFAULT_CONFIG_PATH = "config.json"
DEFAULT_OUTPUT_PATH = "contributions.md"
STDOUT_OUTPUT = "-"


@dataclass(frozen=True)
class ReportConfig:
    """Ignore-list and side projects read from the JSON report config."""

    ignore: List[str] = field(default_factory=list)
    side_projects: List[SideProject] = field(default_factory=list)


@dataclass(frozen=True)
class ReportSettings:
    """Resolved runtime settings for one report run."""

    token: str
    config_path: Path
    config_required: bool
    output: str
    debug: bool
    max_workers: int
    strict: bool
    complete_last_page: bool


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser used by the report entry point."""

    parser = argparse.ArgumentParser(
        description="Render a markdown summary of your merged pull requests to other people's repositories.",
    )
    parser.add_argument("-t", "--token", default=None, help="GitHub token (defaults to GITHUB_TOKEN)")
    parser.add_argument("-c", "--config", default=None, help=f"report config JSON (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT_PATH, help="output file, or - for stdout")
    parser.add_argument("--debug", action="store_true", default=DEBUG)
    parser.add_argument("--workers", type=positive_int, default=MAX_WORKERS)
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="render what was fetched when a page or star lookup fails",
    )
    parser.add_argument(
        "--complete-last-page",
        action="store_true",
        default=COMPLETE_LAST_PAGE,
        help="also fetch the final partial page of search results",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    return build_arg_parser().parse_args(argv)


def resolve_settings(args: Optional[argparse.Namespace] = None) -> ReportSettings:
    args = args or parse_args([])
    return ReportSettings(
        token=(args.token or GITHUB_TOKEN or "").strip(),
        config_path=Path(args.config or DEFAULT_CONFIG_PATH),
        config_required=args.config is not None,
        output=args.output,
        debug=bool(args.debug),
        max_workers=int(args.workers),
        strict=not args.keep_going,
        complete_last_page=bool(args.complete_last_page),
    )


def _side_projects(raw: Any) -> List[SideProject]:
    projects: List[SideProject] = []
    for entry in raw or []:
        if not isinstance(entry, dict) or not entry.get("name"):
            continue
        projects.append(
            SideProject(
                name=str(entry["name"]),
                url=str(entry.get("url") or ""),
                description=str(entry.get("introduction") or entry.get("description") or ""),
            )
        )
    return projects


def parse_report_config(data: Dict[str, Any]) -> ReportConfig:
    github_project = data.get("github_project") or {}
    ignore = github_project.get("ignore") if isinstance(github_project, dict) else None
    return ReportConfig(
        ignore=normalize_ignore(str(entry) for entry in (ignore or [])),
        side_projects=_side_projects(data.get("side_project")),
    )


def load_report_config(path: Path, required: bool = False) -> ReportConfig:
    """Read the report config; a missing optional file yields an empty config."""

    if not path.exists():
        if required:
            raise FileNotFoundError(f"report config not found: {path}")
        return ReportConfig()
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"report config {path} must contain a JSON object")
    return parse_report_config(data)


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_OUTPUT_PATH",
    "STDOUT_OUTPUT",
    "ReportConfig",
    "ReportSettings",
    "build_arg_parser",
    "parse_args",
    "resolve_settings",
    "parse_report_config",
    "load_report_config",
]
