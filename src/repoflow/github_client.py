"""GitHub REST API client for pull request ingestion."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .errors import (
    FetchCancelledError,
    NotFoundError,
    RateLimitedError,
    UpstreamFailureError,
)
from .models import PullRequestRecord

logger = logging.getLogger(__name__)


class GitHubClient:
    """Small, typed client for the GitHub pull request list API.

    Pagination relies on GitHub returning pulls sorted by creation time,
    newest first. Once a page contains a pull request created before the
    lookback cutoff, later pages are assumed to hold only older ones and are
    not requested. Only creation events inside the horizon are guaranteed
    complete: a pull request created before the horizon but merged inside it
    is missed once pagination stops. ``max_pages`` bounds the request count
    even if the upstream ordering cannot be trusted.
    """

    _BASE_URL = "https://api.github.com"
    _API_VERSION = "2022-11-28"
    _PULL_REQUEST_PAGE_SIZE = 100

    def __init__(self, config: Config, timeout_seconds: int = 30) -> None:
        """Initialize a GitHub API client.

        Args:
            config: Validated runtime configuration; supplies the page ceiling
                and the optional access token.
            timeout_seconds: Per-request timeout in seconds.
        """
        self._config = config
        self._timeout_seconds = timeout_seconds

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": self._API_VERSION,
                "User-Agent": "repoflow",
            }
        )
        if config.github_token:
            self._session.headers["Authorization"] = f"Bearer {config.github_token}"

    @property
    def authenticated(self) -> bool:
        return "Authorization" in self._session.headers

    def _build_url(self, path: str) -> str:
        """Build a fully qualified API URL from a path below the API root."""
        return f"{self._BASE_URL}/{path.lstrip('/')}"

    def _parse_datetime(self, value: Optional[str]) -> Optional[datetime]:
        """Parse GitHub ISO8601 timestamps into timezone-aware UTC datetimes."""
        if not value:
            return None

        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Execute a single GET request and decode its JSON payload.

        Requests are never retried; each one counts against the hourly budget.

        Raises:
            RateLimitedError: On HTTP 403 or 429.
            NotFoundError: On HTTP 404.
            UpstreamFailureError: On any other HTTP >= 400, on transport errors,
                or when the body is not valid JSON.
        """
        url = self._build_url(path)

        try:
            response = self._session.get(url, params=params, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise UpstreamFailureError(f"GitHub request failed: GET {url}: {exc}") from exc

        status_code = response.status_code
        if status_code in (403, 429):
            raise RateLimitedError(
                "GitHub API rate limit exceeded. Set GITHUB_TOKEN to raise the request budget."
            )
        if status_code == 404:
            raise NotFoundError(f"GitHub resource not found: GET {url}")
        if status_code >= 400:
            raise UpstreamFailureError(
                f"GitHub API request failed: GET {url} returned {status_code} {response.reason}",
                status_code=status_code,
                status_text=response.reason or "",
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamFailureError(
                f"GitHub API returned invalid JSON: GET {url}",
                status_code=status_code,
                status_text=response.reason or "",
            ) from exc

    def _to_record(self, item: Dict[str, Any]) -> Optional[PullRequestRecord]:
        """Convert one API item to a record, or ``None`` when it is unusable."""
        try:
            created_at = self._parse_datetime(item.get("created_at"))
            merged_at = self._parse_datetime(item.get("merged_at"))
        except (TypeError, ValueError):
            created_at = None
            merged_at = None

        pr_id = item.get("id")
        if pr_id is None or created_at is None:
            logger.warning(
                "Skipping pull request with missing id or created_at",
                extra={"pr_id": pr_id, "number": item.get("number")},
            )
            return None

        if merged_at is not None:
            state = "merged"
        else:
            state = str(item.get("state") or "").lower()
            if state not in ("open", "closed"):
                state = "unknown"

        return PullRequestRecord(id=pr_id, created_at=created_at, merged_at=merged_at, state=state)

    def fetch_pull_requests(
        self,
        owner: str,
        repo: str,
        lookback_days: int,
        cancel_event: Optional[threading.Event] = None,
        now: Optional[datetime] = None,
    ) -> List[PullRequestRecord]:
        """List pull requests of a repository, newest first, back to the cutoff.

        Pagination stops after the first page holding a pull request created
        before ``now - lookback_days``, after an empty or short page, or once
        ``max_pages`` pages have been requested. Records on the final page are
        returned as-is, including those older than the cutoff.

        Raises:
            FetchCancelledError: If ``cancel_event`` is set before the fetch
                completes; records collected so far are discarded.
            RateLimitedError, NotFoundError, UpstreamFailureError: See
                :meth:`_get_json`.
        """
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=lookback_days)
        max_pages = self._config.max_pages
        pull_requests: List[PullRequestRecord] = []

        for page in range(1, max_pages + 1):
            self._raise_if_cancelled(cancel_event, owner, repo)

            params: Dict[str, Any] = {
                "state": "all",
                "sort": "created",
                "direction": "desc",
                "per_page": self._PULL_REQUEST_PAGE_SIZE,
                "page": page,
            }
            payload = self._get_json(f"repos/{owner}/{repo}/pulls", params=params)

            self._raise_if_cancelled(cancel_event, owner, repo)

            if not isinstance(payload, list):
                raise UpstreamFailureError(
                    f"GitHub API returned unexpected payload shape for {owner}/{repo}"
                )
            if not payload:
                break

            page_records = [record for record in map(self._to_record, payload) if record]
            pull_requests.extend(page_records)

            logger.debug(
                "Fetched pull request page",
                extra={"repo": f"{owner}/{repo}", "page": page, "items": len(payload)},
            )

            if any(record.created_at < cutoff for record in page_records):
                logger.debug("Reached pull requests older than %s, stopping", cutoff.isoformat())
                break

            if len(payload) < self._PULL_REQUEST_PAGE_SIZE:
                break
        else:
            logger.warning(
                "Page limit reached before cutoff; history may be truncated",
                extra={"repo": f"{owner}/{repo}", "max_pages": max_pages},
            )

        logger.info(
            "Fetched pull requests",
            extra={"repo": f"{owner}/{repo}", "count": len(pull_requests)},
        )
        return pull_requests

    @staticmethod
    def _raise_if_cancelled(
        cancel_event: Optional[threading.Event], owner: str, repo: str
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise FetchCancelledError(f"Fetch cancelled for {owner}/{repo}")
