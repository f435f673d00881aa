"""Exception types raised while resolving identity and fetching contribution data."""

from __future__ import annotations

from dataclasses import dataclass


class ContributionsError(RuntimeError):
    """Base error; `stage` names the failing unit (identity, probe, page N, star lookup for R)."""

    def __init__(self, stage: str, reason: str) -> None:
        super().__init__(f"{stage}: {reason}")
        self.stage = stage
        self.reason = reason


class AuthError(ContributionsError):
    """Missing or rejected credential, or a failed identity lookup."""


class FetchError(ContributionsError):
    """Transport or decode failure while probing, paging, or looking up stars."""


@dataclass(frozen=True)
class FetchFailure:
    """A non-fatal failure collected when the pipeline runs with strict=False."""

    stage: str
    reason: str

    @classmethod
    def from_error(cls, exc: ContributionsError) -> "FetchFailure":
        return cls(stage=exc.stage, reason=exc.reason)

    def __str__(self) -> str:
        return f"{self.stage}: {self.reason}"


__all__ = ["ContributionsError", "AuthError", "FetchError", "FetchFailure"]
