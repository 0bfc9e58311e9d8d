"""JSON HTTP API exposing repository flow metrics."""

from __future__ import annotations

import logging
import re

from flask import Flask, jsonify

from . import __version__
from .config import load_config, load_port
from .errors import ConfigurationError, NotFoundError, RateLimitedError, UpstreamFailureError
from .models import RepoId
from .service import MetricsService

logger = logging.getLogger(__name__)

# GitHub owner and repository names: alphanumerics, '-', '_' and '.'.
_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]{1,100}$")


def _valid_name(name: str) -> bool:
    """Check a path segment is a plausible GitHub name and not ``.``/``..``."""
    return bool(_NAME_RE.match(name)) and name.strip(".") != ""


def create_app(service: MetricsService) -> Flask:
    """Build the Flask application around a metrics service."""
    app = Flask(__name__)

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "service": "repoflow", "version": __version__})

    @app.route("/api/repos/popular", methods=["GET"])
    def popular_repos():
        return jsonify([repo_id.to_dict() for repo_id in service.popular_repos()])

    @app.route("/api/repos/<owner>/<repo>/metrics", methods=["GET"])
    def repo_metrics(owner: str, repo: str):
        if not (_valid_name(owner) and _valid_name(repo)):
            return jsonify({"error": "Invalid repository identifier."}), 400

        repo_id = RepoId(owner=owner, repo=repo)
        try:
            metrics = service.get_metrics(repo_id)
        except NotFoundError:
            return jsonify({"error": "Repository not found."}), 404
        except RateLimitedError as exc:
            logger.warning("Rate limited", extra={"repo": str(repo_id)})
            return (
                jsonify({"error": str(exc), "hint": "Set GITHUB_TOKEN to raise the request budget."}),
                429,
            )
        except UpstreamFailureError as exc:
            logger.error("Failed to fetch pull requests", extra={"repo": str(repo_id), "error": str(exc)})
            return jsonify({"error": exc.status_text or "Upstream request failed."}), 502

        return jsonify(metrics.to_dict())

    return app


def main() -> None:
    """Run the development server on ``PORT`` (default 3000).

    Popular repositories are preloaded and then kept warm by a background
    thread, so serving starts without waiting for GitHub.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    try:
        config = load_config()
        port = load_port()
    except ConfigurationError as exc:
        logger.error("Failed to load configuration: %s", exc)
        raise SystemExit(2) from exc

    if not config.github_token:
        logger.warning("Running without GITHUB_TOKEN. Rate limits will be strict.")

    service = MetricsService(config=config)
    if config.popular_repos:
        service.start_background_refresh()

    try:
        create_app(service).run(host="0.0.0.0", port=port)
    finally:
        service.stop_background_refresh()


if __name__ == "__main__":
    main()
