"""Fetch-then-compute orchestration with a small in-memory result cache."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from .config import Config
from .errors import RepoFlowError
from .github_client import GitHubClient
from .metrics import compute_repo_metrics
from .models import RepoId, RepoMetrics

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MetricsService:
    """Serves repository metrics, fetching from GitHub on cache misses.

    Cached entries live in process memory only, expire after
    ``config.cache_ttl_seconds`` and are evicted oldest-first beyond
    ``config.cache_max_capacity``. Failures are never cached. Popular
    repositories can be kept warm by a background refresh thread.
    """

    def __init__(
        self,
        config: Config,
        client: Optional[GitHubClient] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._config = config
        self._client = client or GitHubClient(config=config)
        self._clock = clock
        self._cache: "OrderedDict[str, Tuple[datetime, RepoMetrics]]" = OrderedDict()
        self._lock = threading.Lock()
        self._stop_refresh = threading.Event()

    @property
    def config(self) -> Config:
        return self._config

    def popular_repos(self) -> List[RepoId]:
        return list(self._config.popular_repos)

    def _cached(self, key: str, now: datetime) -> Optional[RepoMetrics]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            stored_at, metrics = entry
            if (now - stored_at).total_seconds() > self._config.cache_ttl_seconds:
                del self._cache[key]
                return None
            return metrics

    def _store(self, key: str, now: datetime, metrics: RepoMetrics) -> None:
        with self._lock:
            self._cache[key] = (now, metrics)
            self._cache.move_to_end(key)
            while len(self._cache) > self._config.cache_max_capacity:
                self._cache.popitem(last=False)

    def get_metrics(
        self,
        repo_id: RepoId,
        cancel_event: Optional[threading.Event] = None,
    ) -> RepoMetrics:
        """Return metrics for a repository, computing them on a cache miss.

        The same ``now`` instant drives both the fetch cutoff and the series,
        so the two never disagree about the current day. A repository with no
        pull requests in the horizon yields an all-zero series, not an error.

        Raises:
            RateLimitedError, NotFoundError, UpstreamFailureError,
            FetchCancelledError: Propagated from the GitHub client.
        """
        now = self._clock()

        cached = self._cached(str(repo_id).lower(), now)
        if cached is not None:
            logger.debug("Returning cached metrics", extra={"repo": str(repo_id)})
            return cached

        return self._load(repo_id, now, cancel_event)

    def _load(
        self,
        repo_id: RepoId,
        now: datetime,
        cancel_event: Optional[threading.Event] = None,
    ) -> RepoMetrics:
        """Fetch and compute metrics, replacing any cached entry."""
        records = self._client.fetch_pull_requests(
            owner=repo_id.owner,
            repo=repo_id.repo,
            lookback_days=self._config.lookback_days,
            cancel_event=cancel_event,
            now=now,
        )
        metrics = compute_repo_metrics(
            records,
            display_days=self._config.display_days,
            window_size=self._config.window_size,
            now=now,
        )
        self._store(str(repo_id).lower(), now, metrics)
        return metrics

    def warm_popular_repos(self) -> int:
        """Reload metrics for every popular repository, bypassing the cache.

        Failures are logged and skipped; the previous cache entry, if any,
        stays in place until it expires.

        Returns:
            Number of repositories whose metrics were loaded.
        """
        loaded = 0
        for repo_id in self._config.popular_repos:
            try:
                self._load(repo_id, self._clock())
            except RepoFlowError as exc:
                logger.warning(
                    "Failed to refresh metrics",
                    extra={"repo": str(repo_id), "error": str(exc)},
                )
                continue
            loaded += 1

        logger.info(
            "Refreshed popular repositories",
            extra={"loaded": loaded, "total": len(self._config.popular_repos)},
        )
        return loaded

    def refresh_interval(self) -> float:
        """Seconds between popular-repo refreshes: half the cache TTL, at least one."""
        return max(1.0, self._config.cache_ttl_seconds / 2)

    def start_background_refresh(self, interval: Optional[float] = None) -> threading.Thread:
        """Warm popular repositories now and keep them warm from a daemon thread.

        The thread reloads them every ``interval`` seconds (default
        :meth:`refresh_interval`) so their entries never expire, until
        :meth:`stop_background_refresh` is called.
        """
        interval = self.refresh_interval() if interval is None else interval
        self._stop_refresh.clear()

        def _run() -> None:
            self.warm_popular_repos()
            while not self._stop_refresh.wait(interval):
                self.warm_popular_repos()

        thread = threading.Thread(target=_run, name="repoflow-refresh", daemon=True)
        thread.start()
        logger.info(
            "Started popular repository refresh",
            extra={"interval_seconds": interval, "total": len(self._config.popular_repos)},
        )
        return thread

    def stop_background_refresh(self) -> None:
        self._stop_refresh.set()
