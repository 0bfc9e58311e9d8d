"""Command-line entry point: fetch pull requests, compute flow metrics, print a report."""

from __future__ import annotations

import json
import logging
import signal
import sys
import threading
from datetime import datetime, timezone

from .cli import parse_args
from .config import load_config
from .errors import (
    ApiError,
    ConfigurationError,
    FetchCancelledError,
    RateLimitedError,
)
from .github_client import GitHubClient
from .metrics import compute_repo_metrics
from .report import generate_report

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIG = 2
EXIT_RATE_LIMITED = 3
EXIT_API = 4
EXIT_CANCELLED = 130


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        stream=sys.stderr,
    )


def orchestrate_report() -> int:
    """Run the end-to-end flow report and map failures to exit codes.

    Ctrl+C while fetching cancels the fetch; that is an expected interruption
    and exits quietly with code 130.
    """
    cancel_event = threading.Event()

    def handle_interrupt(signum, frame) -> None:
        cancel_event.set()
        logger.info("Interrupt received, cancelling fetch...")

    try:
        args = parse_args()
        _configure_logging(args.verbose)

        config = load_config(
            lookback_days=args.lookback_days,
            window_size=args.window_size,
            display_days=args.display_days,
            max_pages=args.max_pages,
        )
        repo_id = args.repository

        client = GitHubClient(config=config)
        if not client.authenticated:
            logger.warning("Running without GITHUB_TOKEN; GitHub rate limits will be strict.")

        now = datetime.now(timezone.utc)
        print(
            f"Fetching PRs for repository '{repo_id}' from the last {config.lookback_days} days...",
            file=sys.stderr,
        )
        original_handler = signal.signal(signal.SIGINT, handle_interrupt)
        try:
            records = client.fetch_pull_requests(
                owner=repo_id.owner,
                repo=repo_id.repo,
                lookback_days=config.lookback_days,
                cancel_event=cancel_event,
                now=now,
            )
        finally:
            signal.signal(signal.SIGINT, original_handler)

        metrics = compute_repo_metrics(
            records,
            display_days=config.display_days,
            window_size=config.window_size,
            now=now,
        )

        if args.json:
            print(json.dumps(metrics.to_dict(), indent=2))
        else:
            print(generate_report(repo_name=str(repo_id), metrics=metrics, window_size=config.window_size))
        return EXIT_OK

    except FetchCancelledError:
        logger.info("Fetch cancelled")
        return EXIT_CANCELLED
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except RateLimitedError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_RATE_LIMITED
    except ApiError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_API
    except Exception:
        logger.exception("Unexpected error while generating flow report")
        return EXIT_UNEXPECTED


def main() -> None:
    sys.exit(orchestrate_report())


if __name__ == "__main__":
    main()
