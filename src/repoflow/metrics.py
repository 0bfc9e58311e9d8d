"""Rolling-window flow metrics over pull request records.

For every displayed day ``d`` the trailing window is
``(end_of_day(d) - window_size days, end_of_day(d)]``, where ``end_of_day``
is 23:59:59.999 UTC. ``opened`` counts records created in the window and
``merged`` counts records merged in it. A record is counted in every window
it falls in, so the series is a rate curve rather than a partition.

Timestamps are sorted once and each window is counted with two binary
searches, which yields the same counts as rescanning every record per day.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from datetime import datetime, time, timedelta, timezone
from typing import Iterable, List, Sequence

from .models import FlowPoint, PullRequestRecord, RepoMetrics, SummaryMetrics

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59, 999000, tzinfo=timezone.utc)


def _count_in_window(sorted_times: Sequence[datetime], start: datetime, end: datetime) -> int:
    """Count timestamps ``t`` with ``start < t <= end``."""
    return bisect_right(sorted_times, end) - bisect_right(sorted_times, start)


def compute_series(
    records: Iterable[PullRequestRecord],
    display_days: int,
    window_size: int,
    now: datetime,
) -> List[FlowPoint]:
    """Compute one flow point per calendar day, oldest first.

    Args:
        records: Pull request records in any order.
        display_days: Number of days before ``now`` to include; the result has
            ``display_days + 1`` points ending on ``now``'s UTC date.
        window_size: Trailing window length in days.
        now: Timezone-aware reference instant.

    Raises:
        ValueError: If ``display_days`` or ``window_size`` is negative, or
            ``now`` is naive.
    """
    if display_days < 0:
        raise ValueError("'display_days' must be >= 0.")
    if window_size < 0:
        raise ValueError("'window_size' must be >= 0.")
    if now.tzinfo is None:
        raise ValueError("'now' must be timezone-aware.")

    created_times: List[datetime] = []
    merged_times: List[datetime] = []
    for record in records:
        created_times.append(record.created_at)
        if record.merged_at is not None:
            merged_times.append(record.merged_at)
    created_times.sort()
    merged_times.sort()

    window = timedelta(days=window_size)
    latest_date = now.astimezone(timezone.utc).date()
    series: List[FlowPoint] = []

    for offset in range(display_days, -1, -1):
        point_date = latest_date - timedelta(days=offset)
        window_end = datetime.combine(point_date, END_OF_DAY)
        window_start = window_end - window

        series.append(
            FlowPoint(
                date=point_date,
                opened=_count_in_window(created_times, window_start, window_end),
                merged=_count_in_window(merged_times, window_start, window_end),
            )
        )

    logger.debug(
        "Computed flow series",
        extra={
            "records": len(created_times),
            "points": len(series),
            "window_size": window_size,
        },
    )
    return series


def compute_summary(series: Sequence[FlowPoint]) -> SummaryMetrics:
    """Summarize the latest point of a flow series.

    ``is_widening`` compares the latest spread with the one before it; with a
    single point there is no trend and the result is ``False``.

    Raises:
        ValueError: If ``series`` is empty.
    """
    if not series:
        raise ValueError("Cannot summarize an empty flow series.")

    latest = series[-1]
    previous = series[-2] if len(series) > 1 else latest

    if latest.opened > 0:
        merge_rate = int(100 * latest.merged / latest.opened + 0.5)
    else:
        merge_rate = 0

    return SummaryMetrics(
        current_opened=latest.opened,
        current_merged=latest.merged,
        current_spread=latest.spread,
        merge_rate=merge_rate,
        is_widening=latest.spread > previous.spread,
    )


def compute_repo_metrics(
    records: Iterable[PullRequestRecord],
    display_days: int,
    window_size: int,
    now: datetime,
) -> RepoMetrics:
    """Compute the flow series and its summary in one call."""
    series = compute_series(records, display_days, window_size, now)
    return RepoMetrics(summary=compute_summary(series), time_series=series)
