"""
Rate Limiter - fixed-window request counters.

Each (identifier, endpoint) pair gets its own window. The first request of a
window (or the first after it expires) opens a new window with count 1;
once count reaches ``max_requests`` further calls are denied until the
window resets.

State lives in process memory, so each server instance enforces its own
limits. That is fine for abuse protection; it is not a billing meter.

Usage:
    result = check_rate_limit(user_id, "job-add")
    if not result.allowed:
        raise RateLimitError(retry_after=result.retry_after)
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger(__name__)

ONE_MINUTE_MS = 60 * 1000


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int
    window_ms: int = ONE_MINUTE_MS


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    max_requests: int
    reset_in_ms: int

    @property
    def retry_after(self) -> int:
        """Seconds until the window resets (rounded up, at least 1)."""
        return max(1, math.ceil(self.reset_in_ms / 1000))


# Named endpoint limits (requests per minute)
RATE_LIMITS: Dict[str, RateLimitConfig] = {
    "job-add": RateLimitConfig(30),
    "job-sync": RateLimitConfig(20),
    "jobs": RateLimitConfig(50),
    "sponsor-lookup": RateLimitConfig(50),
    "sponsor-batch": RateLimitConfig(10),
    "sponsorship": RateLimitConfig(50),
    "user-settings": RateLimitConfig(10),
    "user-profile": RateLimitConfig(5),
    "subscription": RateLimitConfig(5),
    "cv-analysis": RateLimitConfig(20),
    "cv-upload": RateLimitConfig(10),
    "applications": RateLimitConfig(50),
    "ai-generation": RateLimitConfig(10),
    "contact": RateLimitConfig(5),
    "admin": RateLimitConfig(100),
    "general": RateLimitConfig(100),
}

# key -> {"count": int, "reset_time": epoch ms}
_windows: Dict[str, Dict[str, int]] = {}
_lock = threading.Lock()


def _now_ms() -> int:
    return int(time.time() * 1000)


def get_limit_config(endpoint: str, override: Optional[RateLimitConfig] = None) -> RateLimitConfig:
    if override is not None:
        return override
    return RATE_LIMITS.get(endpoint, RATE_LIMITS["general"])


def check_rate_limit(
    identifier: str,
    endpoint: str = "general",
    override: Optional[RateLimitConfig] = None,
) -> RateLimitResult:
    """Count one request against ``identifier``'s window for ``endpoint``."""
    config = get_limit_config(endpoint, override)
    key = f"{identifier}:{endpoint}"
    now = _now_ms()

    with _lock:
        window = _windows.get(key)

        if window is None or now >= window["reset_time"]:
            _windows[key] = {"count": 1, "reset_time": now + config.window_ms}
            return RateLimitResult(
                allowed=True,
                remaining=config.max_requests - 1,
                max_requests=config.max_requests,
                reset_in_ms=config.window_ms,
            )

        reset_in = window["reset_time"] - now
        if window["count"] >= config.max_requests:
            logger.warning("Rate limit exceeded for %s", key)
            return RateLimitResult(
                allowed=False,
                remaining=0,
                max_requests=config.max_requests,
                reset_in_ms=reset_in,
            )

        window["count"] += 1
        return RateLimitResult(
            allowed=True,
            remaining=config.max_requests - window["count"],
            max_requests=config.max_requests,
            reset_in_ms=reset_in,
        )


def get_rate_limit_status(identifier: str, endpoint: str = "general") -> RateLimitResult:
    """Peek at a window without counting a request."""
    config = get_limit_config(endpoint)
    now = _now_ms()
    with _lock:
        window = _windows.get(f"{identifier}:{endpoint}")
        if window is None or now >= window["reset_time"]:
            return RateLimitResult(True, config.max_requests, config.max_requests, config.window_ms)
        remaining = max(0, config.max_requests - window["count"])
        return RateLimitResult(remaining > 0, remaining, config.max_requests, window["reset_time"] - now)


def reset_rate_limit(identifier: str, endpoint: Optional[str] = None) -> None:
    """Drop one window, or every window of ``identifier`` when no endpoint is given."""
    with _lock:
        if endpoint is not None:
            _windows.pop(f"{identifier}:{endpoint}", None)
            return
        prefix = f"{identifier}:"
        for key in [k for k in _windows if k.startswith(prefix)]:
            del _windows[key]


def cleanup_expired_limits() -> int:
    """Remove expired windows. Returns how many were dropped."""
    now = _now_ms()
    with _lock:
        expired = [k for k, w in _windows.items() if now >= w["reset_time"]]
        for key in expired:
            del _windows[key]
    if expired:
        logger.debug("Cleaned up %d expired rate limit windows", len(expired))
    return len(expired)


def clear_all_limits() -> None:
    with _lock:
        _windows.clear()


def endpoint_from_path(path: str) -> str:
    """Guess the named limit for a request path."""
    if "sponsorship" in path or "sponsor" in path:
        return "sponsor-lookup"
    if "/jobs" in path:
        return "jobs"
    if "/applications" in path:
        return "applications"
    if "/cv" in path:
        return "cv-analysis"
    if "/subscription" in path:
        return "subscription"
    if "/users/" in path and "settings" in path:
        return "user-settings"
    if "/users/" in path:
        return "user-profile"
    return "general"


