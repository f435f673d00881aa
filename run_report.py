"""Convenience shim to render the merged pull request report."""

from __future__ import annotations

import sys

from gh_contributions.pipeline.runner import main as report_main


if __name__ == "__main__":
    report_main(sys.argv[1:])
