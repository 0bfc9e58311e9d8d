"""Tests for the metrics HTTP API using Flask's test client."""

import sys
from datetime import date
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from repoflow.api import _valid_name, create_app, main
from repoflow.errors import NotFoundError, RateLimitedError, UpstreamFailureError
from repoflow.models import FlowPoint, RepoId, RepoMetrics, SummaryMetrics


def _metrics() -> RepoMetrics:
    series = [
        FlowPoint(date=date(2026, 3, 30), opened=4, merged=2),
        FlowPoint(date=date(2026, 3, 31), opened=5, merged=2),
    ]
    summary = SummaryMetrics(
        current_opened=5,
        current_merged=2,
        current_spread=3,
        merge_rate=40,
        is_widening=True,
    )
    return RepoMetrics(summary=summary, time_series=series)


@pytest.fixture
def service():
    service = Mock()
    service.popular_repos.return_value = [RepoId("facebook", "react")]
    service.get_metrics.return_value = _metrics()
    return service


@pytest.fixture
def client(service):
    return create_app(service).test_client()


def test_health_check(client):
    """Verify the health endpoint reports service status."""
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"
    assert response.get_json()["service"] == "repoflow"


def test_popular_repos(client):
    """Verify the popular list is returned as owner/repo objects."""
    response = client.get("/api/repos/popular")

    assert response.status_code == 200
    assert response.get_json() == [{"owner": "facebook", "repo": "react"}]


def test_repo_metrics_success(client, service):
    """Verify metrics are returned with summary and time_series."""
    response = client.get("/api/repos/octo/repo/metrics")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["summary"]["current_spread"] == 3
    assert payload["summary"]["is_widening"] is True
    assert payload["time_series"][-1] == {"date": "2026-03-31", "opened": 5, "merged": 2, "spread": 3}
    service.get_metrics.assert_called_once_with(RepoId("octo", "repo"))


def test_repo_metrics_not_found_returns_404(client, service):
    """Verify a missing repository maps to 404 rather than a generic failure."""
    service.get_metrics.side_effect = NotFoundError("missing")

    response = client.get("/api/repos/octo/missing/metrics")

    assert response.status_code == 404


def test_repo_metrics_rate_limited_returns_429_with_hint(client, service):
    """Verify rate limiting maps to 429 and suggests configuring a token."""
    service.get_metrics.side_effect = RateLimitedError("GitHub API rate limit exceeded.")

    response = client.get("/api/repos/octo/repo/metrics")

    assert response.status_code == 429
    assert "GITHUB_TOKEN" in response.get_json()["hint"]


def test_repo_metrics_upstream_failure_returns_502_with_status_text(client, service):
    """Verify other upstream failures map to 502 carrying the upstream status text."""
    service.get_metrics.side_effect = UpstreamFailureError(
        "failed", status_code=503, status_text="Service Unavailable"
    )

    response = client.get("/api/repos/octo/repo/metrics")

    assert response.status_code == 502
    assert response.get_json()["error"] == "Service Unavailable"


def test_repo_metrics_rejects_invalid_identifier(client, service):
    """Verify malformed owner or repo segments are rejected before fetching."""
    response = client.get("/api/repos/octo/bad%20name/metrics")

    assert response.status_code == 400
    service.get_metrics.assert_not_called()


@pytest.mark.parametrize("path", ["/api/repos/octo/.../metrics", "/api/repos/.../repo/metrics"])
def test_repo_metrics_rejects_dot_only_names(client, service, path):
    """Verify names made only of dots are rejected before fetching."""
    response = client.get(path)

    assert response.status_code == 400
    service.get_metrics.assert_not_called()


@pytest.mark.parametrize(
    "name, expected",
    [(".", False), ("..", False), (".github", True), ("socket.io", True), ("", False)],
)
def test_valid_name(name, expected):
    """Verify dotted names are allowed unless they consist only of dots."""
    assert _valid_name(name) is expected


@pytest.fixture
def server_env(monkeypatch):
    for name in ("PORT", "POPULAR_REPOS", "GITHUB_TOKEN", "CACHE_TTL_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_main_invalid_port_exits_with_config_code(server_env):
    """Verify a non-numeric PORT exits with code 2 before the server is built."""
    server_env.setenv("PORT", "abc")

    with patch("repoflow.api.create_app") as create_app_mock, pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 2
    create_app_mock.assert_not_called()


def test_main_out_of_range_port_exits_with_config_code(server_env):
    """Verify a PORT above 65535 exits with code 2."""
    server_env.setenv("PORT", "70000")

    with patch("repoflow.api.create_app") as create_app_mock, pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 2
    create_app_mock.assert_not_called()


def test_main_starts_refresh_for_popular_repos_and_serves_on_port(server_env):
    """Verify popular repos are kept warm in the background while the server runs on PORT."""
    server_env.setenv("PORT", "8080")
    server_env.setenv("POPULAR_REPOS", "facebook/react")

    with patch("repoflow.api.MetricsService") as service_cls, patch(
        "repoflow.api.create_app"
    ) as create_app_mock:
        main()

    service = service_cls.return_value
    service.start_background_refresh.assert_called_once_with()
    create_app_mock.assert_called_once_with(service)
    create_app_mock.return_value.run.assert_called_once_with(host="0.0.0.0", port=8080)
    service.stop_background_refresh.assert_called_once_with()


def test_main_without_popular_repos_skips_refresh(server_env):
    """Verify no refresh thread starts when no popular repos are configured."""
    with patch("repoflow.api.MetricsService") as service_cls, patch(
        "repoflow.api.create_app"
    ) as create_app_mock:
        main()

    service_cls.return_value.start_background_refresh.assert_not_called()
    create_app_mock.return_value.run.assert_called_once_with(host="0.0.0.0", port=3000)
