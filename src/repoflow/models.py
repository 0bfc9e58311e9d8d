"""Domain models for pull-request flow metrics.

Records are built by the GitHub client from API pages and are immutable
afterwards. Flow points and summaries are derived values owned by whoever
called the metrics engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

PR_STATES = ("open", "closed", "merged", "unknown")


@dataclass(frozen=True, slots=True)
class RepoId:
    """Identifies a GitHub repository by owner and name."""

    owner: str
    repo: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"

    def to_dict(self) -> Dict[str, str]:
        return {"owner": self.owner, "repo": self.repo}


@dataclass(frozen=True, slots=True)
class PullRequestRecord:
    """The minimal pull request data needed for flow metrics.

    Merge-ness is decided by ``merged_at`` alone; ``state`` is informational.
    """

    id: Union[int, str]
    created_at: datetime
    merged_at: Optional[datetime]
    state: str


@dataclass(frozen=True, slots=True)
class FlowPoint:
    """Trailing-window counts whose window ends on ``date`` (inclusive)."""

    date: date
    opened: int
    merged: int

    @property
    def spread(self) -> int:
        return self.opened - self.merged

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "opened": self.opened,
            "merged": self.merged,
            "spread": self.spread,
        }


@dataclass(frozen=True, slots=True)
class SummaryMetrics:
    """Digest of the most recent flow point plus trend direction."""

    current_opened: int
    current_merged: int
    current_spread: int
    merge_rate: int
    is_widening: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_opened": self.current_opened,
            "current_merged": self.current_merged,
            "current_spread": self.current_spread,
            "merge_rate": self.merge_rate,
            "is_widening": self.is_widening,
        }


@dataclass(frozen=True, slots=True)
class RepoMetrics:
    """Metrics response for one repository: summary and the full series."""

    summary: SummaryMetrics
    time_series: List[FlowPoint]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "time_series": [point.to_dict() for point in self.time_series],
        }
