"""Tests for flow report rendering."""

import sys
from datetime import date
from pathlib import Path

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from repoflow.models import FlowPoint, RepoMetrics, SummaryMetrics
from repoflow.report import describe_trend, format_merge_rate, generate_report


def _summary(opened: int = 5, merged: int = 2, widening: bool = True, rate: int = 40) -> SummaryMetrics:
    return SummaryMetrics(
        current_opened=opened,
        current_merged=merged,
        current_spread=opened - merged,
        merge_rate=rate,
        is_widening=widening,
    )


def test_describe_trend():
    """Verify trend wording for widening and tightening spreads."""
    assert describe_trend(_summary(widening=True)) == "widening"
    assert describe_trend(_summary(widening=False)) == "tightening"


def test_format_merge_rate_handles_zero_opened():
    """Verify merge rate shows n/a when nothing was opened."""
    assert format_merge_rate(_summary()) == "40%"
    assert format_merge_rate(_summary(opened=0, merged=0, rate=0)) == "n/a"


def test_generate_report_contains_summary_and_series_rows():
    """Verify the report includes header, summary values and one row per day."""
    metrics = RepoMetrics(
        summary=_summary(),
        time_series=[
            FlowPoint(date=date(2026, 3, 30), opened=4, merged=2),
            FlowPoint(date=date(2026, 3, 31), opened=5, merged=2),
        ],
    )

    report = generate_report(repo_name="octo/repo", metrics=metrics, window_size=30)

    assert "Repository: octo/repo" in report
    assert "PR Flow Report (30-day trailing window)" in report
    assert "Opened: 5" in report
    assert "Merged: 2" in report
    assert "Spread: +3" in report
    assert "Merge rate: 40%" in report
    assert "Trend: widening" in report
    assert "2026-03-30" in report
    assert "2026-03-31" in report
    assert "No pull request activity" not in report


def test_generate_report_no_activity():
    """Verify an all-zero result renders as a no-activity report rather than an error."""
    metrics = RepoMetrics(
        summary=_summary(opened=0, merged=0, widening=False, rate=0),
        time_series=[FlowPoint(date=date(2026, 3, 31), opened=0, merged=0)],
    )

    report = generate_report(repo_name="octo/quiet", metrics=metrics, window_size=7)

    assert "No pull request activity in the latest window." in report
    assert "Merge rate: n/a" in report
