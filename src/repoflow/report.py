"""Text rendering helpers for flow metrics reports.

This module provides utilities for:
- Describing the spread trend in words.
- Formatting a merge rate as a percentage string.
- Building a human-readable report for a repository's flow metrics.
"""

from __future__ import annotations

from typing import List

from .models import RepoMetrics, SummaryMetrics


def describe_trend(summary: SummaryMetrics) -> str:
    """Return ``"widening"`` when the backlog spread grew, else ``"tightening"``."""
    return "widening" if summary.is_widening else "tightening"


def format_merge_rate(summary: SummaryMetrics) -> str:
    """Format the merge rate, or ``"n/a"`` when nothing was opened in the window."""
    if summary.current_opened == 0:
        return "n/a"
    return f"{summary.merge_rate}%"


def generate_report(repo_name: str, metrics: RepoMetrics, window_size: int) -> str:
    """Generate a human-readable flow report for a repository.

    The report has a header with the latest window's counts, merge rate and
    trend, followed by one row per day of the series. A repository without
    any activity renders the same way with zero counts.

    Args:
        repo_name: Repository display name (``owner/repo``).
        metrics: Output of :func:`repoflow.metrics.compute_repo_metrics`.
        window_size: Trailing window length in days, for the header.

    Returns:
        Formatted multi-line text report.
    """
    summary = metrics.summary
    series = metrics.time_series

    lines: List[str] = [
        f"Repository: {repo_name}",
        f"PR Flow Report ({window_size}-day trailing window)",
        "",
        f"   Opened: {summary.current_opened}",
        f"   Merged: {summary.current_merged}",
        f"   Spread: {summary.current_spread:+d}",
        f"   Merge rate: {format_merge_rate(summary)}",
        f"   Trend: {describe_trend(summary)}",
    ]

    if summary.current_opened == 0 and summary.current_merged == 0:
        lines.append("   No pull request activity in the latest window.")

    lines.extend(["", f"{'Date':<12}{'Opened':>8}{'Merged':>8}{'Spread':>8}"])
    for point in series:
        lines.append(
            f"{point.date.isoformat():<12}{point.opened:>8}{point.merged:>8}{point.spread:>+8d}"
        )

    return "\n".join(lines)
