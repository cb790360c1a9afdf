"""
Authentication Utility - JWT verification and user tiers.

Provides:
- JWT token creation/verification (bearer header or session cookie)
- A development-only mock token for local extension testing
- User tier lookup (free / premium / admin) with a short-lived cache

Tokens carry the user id in ``sub`` plus ``email``, ``name``,
``email_verified`` and an optional ``admin`` claim.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import Request
from jose import JWTError, jwt
from pymongo.errors import PyMongoError

from hireall.core.config import get_settings
from hireall.db.mongodb import get_collection

logger = logging.getLogger(__name__)

# Base64 of "mock-signature-for-testing"; accepted only in development
MOCK_TOKEN_SIGNATURE = "bW9jay1zaWduYXR1cmUtZm9yLXRlc3Rpbmc"
MOCK_USER_ID = "test-user-123"
MOCK_USER_EMAIL = "test@example.com"

TIER_CACHE_TTL_SECONDS = 5 * 60

AUTH_NONE = "none"
AUTH_OPTIONAL = "optional"
AUTH_REQUIRED = "required"
AUTH_ADMIN = "admin"

TIER_FREE = "free"
TIER_PREMIUM = "premium"
TIER_ADMIN = "admin"


@dataclass
class AuthenticatedUser:
    uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    email_verified: bool = False
    tier: str = TIER_FREE
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.tier == TIER_ADMIN or bool(self.claims.get("admin"))

    @property
    def is_premium(self) -> bool:
        return self.is_admin or self.tier == TIER_PREMIUM


# uid -> (tier, expires_at)
_tier_cache: Dict[str, Tuple[str, float]] = {}


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug("Token verification failed: %s", e)
        return None


def extract_token(request: Request) -> Optional[str]:
    """Session cookie first, then the Authorization header."""
    settings = get_settings()
    cookie = request.cookies.get(settings.session_cookie_name)
    if cookie:
        return cookie

    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        token = header[7:].strip()
        return token or None
    return None


def _is_mock_token(token: str) -> bool:
    return get_settings().is_development and MOCK_TOKEN_SIGNATURE in token


def verify_token(token: str) -> Optional[AuthenticatedUser]:
    """Turn a raw token into a user, or None if it does not verify."""
    if _is_mock_token(token):
        logger.debug("Accepted development mock token")
        return AuthenticatedUser(
            uid=MOCK_USER_ID,
            email=MOCK_USER_EMAIL,
            name="Test User",
            email_verified=True,
        )

    payload = decode_token(token)
    if not payload or not payload.get("sub"):
        return None

    return AuthenticatedUser(
        uid=str(payload["sub"]),
        email=payload.get("email"),
        name=payload.get("name"),
        email_verified=bool(payload.get("email_verified", False)),
        claims=payload,
    )


def authenticate_request(request: Request) -> Optional[Tuple[AuthenticatedUser, str]]:
    """Return ``(user, token)`` for an authenticated request, else None."""
    token = extract_token(request)
    if not token:
        return None

    user = verify_token(token)
    if user is None:
        return None

    user.tier = get_user_tier(user.uid)
    return user, token


def _resolve_tier(user_doc: Optional[dict]) -> str:
    if not user_doc:
        return TIER_FREE
    if user_doc.get("is_admin"):
        return TIER_ADMIN
    subscription = user_doc.get("subscription") or {}
    if subscription.get("tier") == TIER_PREMIUM or subscription.get("status") == "active":
        return TIER_PREMIUM
    if user_doc.get("plan") == TIER_PREMIUM:
        return TIER_PREMIUM
    return TIER_FREE


def get_user_tier(uid: str) -> str:
    """
    Look up a user's tier, cached for five minutes.

    If the lookup fails we keep serving the last known tier (even if it
    expired), or ``free`` when nothing is cached.
    """
    cached = _tier_cache.get(uid)
    now = time.time()
    if cached and cached[1] > now:
        return cached[0]

    try:
        user_doc = get_collection("users").find_one({"_id": uid})
    except PyMongoError as e:
        logger.error("Tier lookup failed for %s: %s", uid, e)
        return cached[0] if cached else TIER_FREE

    tier = _resolve_tier(user_doc)
    _tier_cache[uid] = (tier, now + TIER_CACHE_TTL_SECONDS)
    return tier


def invalidate_tier_cache(uid: Optional[str] = None) -> None:
    """Forget one cached tier, or all of them."""
    if uid is None:
        _tier_cache.clear()
    else:
        _tier_cache.pop(uid, None)
