"""Configuration parsing and validation for repoflow."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .errors import ConfigurationError
from .models import RepoId

DEFAULT_LOOKBACK_DAYS = 30
DEFAULT_WINDOW_SIZE = 30
DEFAULT_DISPLAY_DAYS = 30
DEFAULT_MAX_PAGES = 10
DEFAULT_CACHE_TTL_SECONDS = 600
DEFAULT_CACHE_MAX_CAPACITY = 100


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the fetcher, engine and service."""

    lookback_days: int = DEFAULT_LOOKBACK_DAYS
    window_size: int = DEFAULT_WINDOW_SIZE
    display_days: int = DEFAULT_DISPLAY_DAYS
    max_pages: int = DEFAULT_MAX_PAGES
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    cache_max_capacity: int = DEFAULT_CACHE_MAX_CAPACITY
    popular_repos: Tuple[RepoId, ...] = ()
    github_token: Optional[str] = field(default=None, repr=False)


def _int_setting(
    name: str,
    env_var: str,
    override: Optional[int],
    default: int,
    minimum: int,
) -> int:
    """Resolve an integer setting from an explicit override, the environment, or a default."""
    if override is not None:
        value = override
    else:
        raw = os.getenv(env_var, "").strip()
        if not raw:
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid value for '{env_var}': expected an integer, got {raw!r}."
            ) from exc

    if value < minimum:
        raise ConfigurationError(
            f"Invalid value for '{name}': expected an integer >= {minimum}, got {value}."
        )
    return value


def parse_popular_repos(value: str) -> Tuple[RepoId, ...]:
    """Parse a comma-separated ``owner/repo`` list, ignoring malformed entries."""
    repos = []
    for part in value.split(","):
        pieces = [piece.strip() for piece in part.strip().split("/")]
        if len(pieces) == 2 and all(pieces):
            repos.append(RepoId(owner=pieces[0], repo=pieces[1]))
    return tuple(repos)


def load_config(
    lookback_days: Optional[int] = None,
    window_size: Optional[int] = None,
    display_days: Optional[int] = None,
    max_pages: Optional[int] = None,
) -> Config:
    """Build and validate application configuration.

    Explicit arguments win over environment variables, which win over the
    built-in defaults. ``GITHUB_TOKEN`` is optional: without it GitHub still
    serves anonymous requests under a much lower hourly budget.

    Raises:
        ConfigurationError: If any numeric setting is not an integer or is out
            of range.
    """
    token = os.getenv("GITHUB_TOKEN", "").strip() or None

    return Config(
        lookback_days=_int_setting(
            "lookback_days", "PR_FETCH_DAYS", lookback_days, DEFAULT_LOOKBACK_DAYS, 1
        ),
        window_size=_int_setting(
            "window_size", "METRICS_WINDOW_SIZE", window_size, DEFAULT_WINDOW_SIZE, 1
        ),
        display_days=_int_setting(
            "display_days", "METRICS_DAYS_TO_DISPLAY", display_days, DEFAULT_DISPLAY_DAYS, 0
        ),
        max_pages=_int_setting(
            "max_pages", "MAX_GITHUB_API_PAGES", max_pages, DEFAULT_MAX_PAGES, 1
        ),
        cache_ttl_seconds=_int_setting(
            "cache_ttl_seconds", "CACHE_TTL_SECONDS", None, DEFAULT_CACHE_TTL_SECONDS, 0
        ),
        cache_max_capacity=_int_setting(
            "cache_max_capacity", "CACHE_MAX_CAPACITY", None, DEFAULT_CACHE_MAX_CAPACITY, 1
        ),
        popular_repos=parse_popular_repos(os.getenv("POPULAR_REPOS", "")),
        github_token=token,
    )


def load_port(default: int = 3000) -> int:
    """Read the API server's listen port from ``PORT``.

    Raises:
        ConfigurationError: If ``PORT`` is not an integer in ``1..65535``.
    """
    port = _int_setting("port", "PORT", None, default, 1)
    if port > 65535:
        raise ConfigurationError(f"Invalid value for 'port': expected at most 65535, got {port}.")
    return port
