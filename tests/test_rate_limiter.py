import pytest

from hireall.core import rate_limiter
from hireall.core.rate_limiter import (
    RATE_LIMITS,
    RateLimitConfig,
    check_rate_limit,
    cleanup_expired_limits,
    endpoint_from_path,
    get_rate_limit_status,
    reset_rate_limit,
)


@pytest.fixture
def clock(monkeypatch):
    now = {"ms": 1_000_000}
    monkeypatch.setattr(rate_limiter, "_now_ms", lambda: now["ms"])
    return now


def test_window_allows_max_requests_then_denies(clock):
    config = RateLimitConfig(max_requests=3, window_ms=60_000)
    results = [check_rate_limit("ip-1", "job-add", config) for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert results[0].reset_in_ms == 60_000


def test_denied_result_reports_time_left_in_window(clock):
    config = RateLimitConfig(max_requests=1, window_ms=60_000)
    check_rate_limit("ip-1", "contact", config)

    clock["ms"] += 500
    denied = check_rate_limit("ip-1", "contact", config)

    assert not denied.allowed
    assert denied.reset_in_ms == 59_500
    assert denied.retry_after == 60


def test_expired_window_starts_fresh(clock):
    config = RateLimitConfig(max_requests=1, window_ms=1_000)
    assert check_rate_limit("user-1", "jobs", config).allowed
    assert not check_rate_limit("user-1", "jobs", config).allowed

    clock["ms"] += 1_000
    result = check_rate_limit("user-1", "jobs", config)
    assert result.allowed
    assert result.remaining == 0


def test_identifiers_and_endpoints_are_counted_separately(clock):
    config = RateLimitConfig(max_requests=1)
    assert check_rate_limit("a", "jobs", config).allowed
    assert check_rate_limit("b", "jobs", config).allowed
    assert check_rate_limit("a", "job-add", config).allowed
    assert not check_rate_limit("a", "jobs", config).allowed


def test_unknown_endpoint_uses_general_limit(clock):
    result = check_rate_limit("ip-9", "no-such-endpoint")
    assert result.max_requests == RATE_LIMITS["general"].max_requests == 100


def test_named_limits():
    assert RATE_LIMITS["job-add"].max_requests == 30
    assert RATE_LIMITS["sponsor-batch"].max_requests == 10
    assert RATE_LIMITS["user-profile"].max_requests == 5
    assert all(c.window_ms == 60_000 for c in RATE_LIMITS.values())


def test_status_does_not_count_a_request(clock):
    check_rate_limit("u", "subscription")
    status = get_rate_limit_status("u", "subscription")
    again = get_rate_limit_status("u", "subscription")

    assert status.remaining == again.remaining == 4
    assert status.allowed


def test_reset_single_endpoint_and_all_endpoints(clock):
    config = RateLimitConfig(max_requests=1)
    check_rate_limit("u", "jobs", config)
    check_rate_limit("u", "job-add", config)

    reset_rate_limit("u", "jobs")
    assert check_rate_limit("u", "jobs", config).allowed
    assert not check_rate_limit("u", "job-add", config).allowed

    reset_rate_limit("u")
    assert check_rate_limit("u", "job-add", config).allowed


def test_cleanup_drops_only_expired_windows(clock):
    check_rate_limit("old", "jobs", RateLimitConfig(5, window_ms=1_000))
    check_rate_limit("new", "jobs", RateLimitConfig(5, window_ms=10_000))

    clock["ms"] += 2_000
    assert cleanup_expired_limits() == 1
    assert cleanup_expired_limits() == 0


@pytest.mark.parametrize("path, endpoint", [
    ("/api/app/sponsorship/check", "sponsor-lookup"),
    ("/api/app/jobs/123", "jobs"),
    ("/api/app/applications", "applications"),
    ("/api/cv/upload", "cv-analysis"),
    ("/api/users/abc/settings", "user-settings"),
    ("/api/users/abc", "user-profile"),
    ("/api/health", "general"),
])
def test_endpoint_from_path(path, endpoint):
    assert endpoint_from_path(path) == endpoint
