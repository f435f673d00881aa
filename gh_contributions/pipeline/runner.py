"""Entry points for building and writing the merged pull request report."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

from gh_contributions.report.markdown import render_report
from gh_contributions.retrieval import config as retrieval_config
from gh_contributions.retrieval.collectors import fetch_all_prs
from gh_contributions.retrieval.enrich import enrich_with_stars
from gh_contributions.retrieval.errors import ContributionsError, FetchFailure
from gh_contributions.retrieval.http_client import GitHubClient
from gh_contributions.retrieval.identity import Authenticator

from .config import (
    STDOUT_OUTPUT,
    ReportConfig,
    ReportSettings,
    load_report_config,
    parse_args,
    resolve_settings,
)


def build_report(
    settings: ReportSettings,
    report_config: ReportConfig,
    client: Optional[GitHubClient] = None,
    failures: Optional[List[FetchFailure]] = None,
) -> bytes:
    """Run identity -> search -> star enrichment -> render and return markdown bytes."""
    if client is None:
        with GitHubClient(settings.token) as owned_client:
            return build_report(settings, report_config, owned_client, failures)
    failures = failures if failures is not None else []

    print("  resolving GitHub identity...")
    username = Authenticator(client).resolve_username()

    print(f"  fetching merged pull requests for {username}...")
    records = fetch_all_prs(
        client,
        username,
        max_workers=settings.max_workers,
        strict=settings.strict,
        failures=failures,
        complete_last_page=settings.complete_last_page,
    )

    print(f"  fetching star counts for {len(records)} pull requests...")
    enrich_with_stars(
        client,
        records,
        max_workers=settings.max_workers,
        strict=settings.strict,
        failures=failures,
    )

    for failure in failures:
        print(f"[warn] incomplete report, {failure}")
    return render_report(records, report_config.ignore, report_config.side_projects)


def write_report(output: str, body: bytes) -> None:
    """Write the report to `output`, or to stdout when `output` is '-'."""
    if output == STDOUT_OUTPUT:
        sys.stdout.write(body.decode("utf-8"))
        sys.stdout.flush()
        return
    path = Path(output)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(body)
    print(f"    DONE WRITING REPORT → {path}")


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point; exits with status 1 when the report cannot be produced."""
    settings = resolve_settings(parse_args(argv))
    if settings.debug:
        retrieval_config.DEBUG = True

    try:
        report_config = load_report_config(settings.config_path, required=settings.config_required)
    except (OSError, ValueError) as exc:
        print(f"[error] config: {exc}")
        sys.exit(1)

    try:
        body = build_report(settings, report_config)
    except ContributionsError as exc:
        print(f"[error] {exc}")
        sys.exit(1)

    write_report(settings.output, body)


if __name__ == "__main__":
    main()
