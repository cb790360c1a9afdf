"""
Spam Detection - scores contact form submissions.

Layers (scores add up):
1. Honeypot field filled: +100
2. Form filled too quickly: +50 under 2s, +20 under 5s
3. More than 3 submissions per IP in an hour: +80
4. Email checks (disposable domains, generated-looking addresses)
5. Content checks (spam keywords, URLs, shouting, repeated characters)
6. Name checks

A score of 50 or more is spam; 80 or more is rejected outright.
"""

import logging
import re
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

SPAM_THRESHOLD = 50
BLOCK_THRESHOLD = 80

SUBMISSION_WINDOW_MS = 60 * 60 * 1000
MAX_SUBMISSIONS_PER_HOUR = 3
_MAX_TRACKED_IPS = 1000

SPAM_KEYWORDS = [
    "viagra", "cialis", "casino", "poker", "slots", "lottery",
    "crypto", "bitcoin", "nft ", "forex", "trading bot",
    "weight loss", "make money fast", "work from home opportunity",
    "click here", "act now", "limited time offer", "free money",
    "million dollars", "congratulations you won", "claim your prize",
    "nigerian prince", "wire transfer", "urgent assistance",
    "seo service", "backlink", "link building", "guest post",
    "buy followers", "increase traffic", "rank higher",
]

URL_PATTERNS = [
    re.compile(r"https?://[^\s]+\.[^\s]+", re.IGNORECASE),
    re.compile(r"\b(?:http|www)\.[^\s]+", re.IGNORECASE),
]

SPAM_PATTERNS = [
    re.compile(r"[A-Z]{10,}"),                # long all-caps runs
    re.compile(r"<[^>]+>"),                   # HTML tags
    re.compile(r"\[url\]", re.IGNORECASE),    # BBCode
    re.compile("[\u4e00-\u9fff]{10,}"),  # long CJK blocks
    re.compile("[\u0400-\u04ff]{20,}"),  # long Cyrillic blocks
    re.compile(r"(.)\1{5,}"),                 # repeated characters
    re.compile(r"@\w+\.\w+.*@\w+\.\w+"),      # several emails
]

DISPOSABLE_EMAIL_DOMAINS = [
    "tempmail", "guerrillamail", "mailinator", "10minutemail", "throwaway",
    "temp-mail", "fakeinbox", "sharklasers", "getnada", "maildrop",
    "yopmail", "trashmail", "discard", "spamgourmet", "mintemail",
    "mailnesia", "mohmal", "gemailinator", "fakemailgenerator", "tempail",
]


@dataclass
class SpamCheckResult:
    is_spam: bool
    score: int
    reasons: List[str] = field(default_factory=list)
    should_block: bool = False


@dataclass
class _Tracker:
    count: int
    first_time: int
    last_time: int


_submissions: Dict[str, _Tracker] = {}
_lock = threading.Lock()


def _now_ms() -> int:
    return int(time.time() * 1000)


def _track_submission(ip: str) -> int:
    """Count a submission for ``ip`` and return the count in the current hour."""
    now = _now_ms()
    with _lock:
        if len(_submissions) > _MAX_TRACKED_IPS:
            stale = [k for k, t in _submissions.items() if now - t.last_time > SUBMISSION_WINDOW_MS * 2]
            for key in stale:
                del _submissions[key]

        tracker = _submissions.get(ip)
        if tracker is None or now - tracker.first_time > SUBMISSION_WINDOW_MS:
            _submissions[ip] = _Tracker(count=1, first_time=now, last_time=now)
            return 1

        tracker.count += 1
        tracker.last_time = now
        return tracker.count


def check_email(email: str):
    score = 0
    reasons = []
    lower = (email or "").lower()

    for domain in DISPOSABLE_EMAIL_DOMAINS:
        if domain in lower:
            score += 60
            reasons.append("Disposable email address detected")
            break

    if re.search(r"\d{6,}", email or ""):
        score += 15
        reasons.append("Email contains many consecutive numbers")

    if re.search(r"[a-z]{20,}@", lower):
        score += 10
        reasons.append("Unusually long email prefix")

    if re.match(r"^[a-z0-9]{1,3}[0-9]+[a-z0-9]{1,3}@", email or "", re.IGNORECASE):
        score += 25
        reasons.append("Email looks auto-generated")

    return score, reasons


def analyze_content(message: str, subject: str = ""):
    score = 0
    reasons = []
    message = message or ""
    full_text = f"{subject or ''} {message}".lower()

    found = [kw for kw in SPAM_KEYWORDS if kw in full_text]
    if found:
        score += min(len(found) * 15, 60)
        reasons.append(f"Spam keywords detected: {', '.join(found[:3])}")

    url_count = sum(len(p.findall(message)) for p in URL_PATTERNS)
    for pattern in SPAM_PATTERNS:
        matches = pattern.findall(message)
        if matches:
            score += min(len(matches) * 10, 30)

    # One link is normal, several is not
    if url_count > 2:
        score += 40
        reasons.append(f"Multiple URLs detected ({url_count})")
    elif url_count > 0:
        score += url_count * 5

    if len(message) < 10:
        score += 20
        reasons.append("Message too short")

    if len(message) > 20:
        caps_ratio = sum(1 for c in message if "A" <= c <= "Z") / len(message)
        if caps_ratio > 0.7:
            score += 25
            reasons.append("Excessive capitalization")

    return score, reasons


def check_name(name: str):
    score = 0
    reasons = []
    name = name or ""

    if len(name) <= 1:
        score += 30
        reasons.append("Name too short")
    if re.search(r"https?://|www\.|@", name):
        score += 50
        reasons.append("Name contains URL or email")
    if re.fullmatch(r"\d+", name):
        score += 40
        reasons.append("Name is only numbers")
    if re.search(r"[<>{}\[\]\\|`~]", name):
        score += 30
        reasons.append("Name contains suspicious characters")

    return score, reasons


def check_for_spam(
    name: str,
    email: str,
    message: str,
    ip: str,
    subject: str = "",
    honeypot: Optional[str] = None,
    loaded_at: Optional[int] = None,
    submitted_at: Optional[int] = None,
) -> SpamCheckResult:
    """Score one contact form submission. Counts it against ``ip``."""
    score = 0
    reasons: List[str] = []

    if honeypot and honeypot.strip():
        score += 100
        reasons.append("Honeypot field filled")

    if loaded_at and submitted_at:
        fill_time = submitted_at - loaded_at
        if fill_time < 2000:
            score += 50
            reasons.append("Form submitted too quickly")
        elif fill_time < 5000:
            score += 20
            reasons.append("Suspiciously fast form completion")

    count = _track_submission(ip)
    if count > MAX_SUBMISSIONS_PER_HOUR:
        score += 80
        reasons.append(f"Rate limit exceeded ({count}/{MAX_SUBMISSIONS_PER_HOUR} in last hour)")

    for extra_score, extra_reasons in (
        check_email(email),
        analyze_content(message, subject),
        check_name(name),
    ):
        score += extra_score
        reasons.extend(extra_reasons)

    result = SpamCheckResult(
        is_spam=score >= SPAM_THRESHOLD,
        score=score,
        reasons=reasons,
        should_block=score >= BLOCK_THRESHOLD,
    )
    if result.is_spam:
        logger.info("Contact submission from %s scored %d: %s", ip, score, "; ".join(reasons))
    return result


def get_spam_stats() -> Dict[str, int]:
    with _lock:
        return {
            "tracked_ips": len(_submissions),
            "blocked_count": sum(1 for t in _submissions.values() if t.count > MAX_SUBMISSIONS_PER_HOUR),
        }


def reset_submission_tracking() -> None:
    with _lock:
        _submissions.clear()
