"""Contributions report pipeline: identity, search, star enrichment, rendering."""

from .runner import build_report, main

__all__ = ["main", "build_report"]
