"""Command-line argument parsing for repoflow."""

from __future__ import annotations

import argparse

from .models import RepoId


def _positive_int(value: str) -> int:
    """Parse and validate a positive integer CLI value.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")

    return parsed


def _non_negative_int(value: str) -> int:
    """Parse and validate a CLI value that must be 0 or greater."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed < 0:
        raise argparse.ArgumentTypeError("must be 0 or greater")

    return parsed


def _repo_id(value: str) -> RepoId:
    """Parse an ``owner/repo`` argument."""
    parts = [part.strip() for part in value.strip().strip("/").split("/")]
    if len(parts) != 2 or not all(parts):
        raise argparse.ArgumentTypeError("expected OWNER/REPO, for example 'facebook/react'")
    return RepoId(owner=parts[0], repo=parts[1])


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments for a flow metrics report.

    Numeric options default to ``None`` so that environment configuration
    (or the built-in defaults) applies when they are omitted.
    """
    parser = argparse.ArgumentParser(
        prog="repoflow",
        description=(
            "Report opened vs. merged pull requests over a trailing window "
            "for a GitHub repository."
        ),
    )

    parser.add_argument(
        "repository",
        type=_repo_id,
        help="Repository to analyze, as OWNER/REPO.",
    )
    parser.add_argument(
        "--lookback-days",
        type=_positive_int,
        default=None,
        help="Days of pull request history to fetch (default: 30).",
    )
    parser.add_argument(
        "--window-size",
        type=_positive_int,
        default=None,
        help="Trailing window length in days (default: 30).",
    )
    parser.add_argument(
        "--display-days",
        type=_non_negative_int,
        default=None,
        help="Days of series to report before today (default: 30).",
    )
    parser.add_argument(
        "--max-pages",
        type=_positive_int,
        default=None,
        help="Hard limit on GitHub API pages requested (default: 10).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the metrics as JSON instead of a text report.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser.parse_args()
