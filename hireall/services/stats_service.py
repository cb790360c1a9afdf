"""
Admin dashboard statistics.

Growth figures compare the last 30 days with the 30 days before. Counting
is done with range queries on ``created_at``; if that fails (documents
written with ISO strings or datetimes instead of epoch ms) the collection
is scanned and each value converted with ``to_millis``.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pymongo.errors import PyMongoError

from hireall.db.mongodb import get_collection, now_ms
from hireall.schemas.schemas import ContactStatus, FeedbackSentiment
from hireall.services.ai_feedback_service import sentiment_score

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
THIRTY_DAYS_MS = 30 * DAY_MS
SEVEN_DAYS_MS = 7 * DAY_MS


def to_millis(value: Any) -> Optional[int]:
    """Epoch ms from a number, numeric / ISO string or datetime; else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, str):
        try:
            return int(float(value))
        except ValueError:
            pass
        try:
            return to_millis(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def compute_growth_pct(current: Optional[int], previous: Optional[int]) -> Optional[int]:
    """
    >>> compute_growth_pct(15, 10)
    50
    >>> compute_growth_pct(3, 0)
    100
    """
    if current is None or previous is None:
        return None
    if previous <= 0:
        return 0 if current <= 0 else 100
    return round((current - previous) / previous * 100)


def count_window(collection_name: str, start_ms: int, end_ms: int, field: str = "created_at") -> Dict[str, Optional[int]]:
    """Documents created in ``[start, end)`` and in the equally long window before."""
    collection = get_collection(collection_name)
    prev_start = start_ms - (end_ms - start_ms)
    try:
        return {
            "current": collection.count_documents({field: {"$gte": start_ms, "$lt": end_ms}}),
            "previous": collection.count_documents({field: {"$gte": prev_start, "$lt": start_ms}}),
        }
    except PyMongoError as e:
        logger.warning("Count query on %s failed, scanning instead: %s", collection_name, e)

    current = previous = 0
    try:
        for doc in collection.find({}, {field: 1}):
            ms = to_millis(doc.get(field))
            if ms is None:
                continue
            if start_ms <= ms < end_ms:
                current += 1
            elif prev_start <= ms < start_ms:
                previous += 1
    except PyMongoError as e:
        logger.error("Scan of %s failed: %s", collection_name, e)
        return {"current": None, "previous": None}
    return {"current": current, "previous": previous}


def _window_summary(window: Dict[str, Optional[int]]) -> dict:
    return {
        "new_last_30_days": window["current"],
        "new_prev_30_days": window["previous"],
        "growth_pct_from_last_month": compute_growth_pct(window["current"], window["previous"]),
    }


def _feedback_summary(week_start: int) -> dict:
    feedback = get_collection("ai_feedback")
    total = feedback.count_documents({})
    positive = feedback.count_documents({"sentiment": FeedbackSentiment.positive.value})
    return {
        "total": total,
        "new_this_week": feedback.count_documents({"created_at": {"$gte": week_start}}),
        "sentiment_score": sentiment_score(positive, total),
    }


def get_dashboard_stats() -> dict:
    now = now_ms()
    month_start = now - THIRTY_DAYS_MS
    week_start = now - SEVEN_DAYS_MS

    users = get_collection("users")
    sponsors = get_collection("sponsors")
    jobs = get_collection("jobs")

    return {
        "users": {
            "total": users.count_documents({}),
            **_window_summary(count_window("users", month_start, now)),
        },
        "sponsors": {
            "active": sponsors.count_documents({"is_active": {"$ne": False}}),
            **_window_summary(count_window("sponsors", month_start, now)),
        },
        "jobs": {
            "total": jobs.count_documents({}),
            "new_this_week": jobs.count_documents({"created_at": {"$gte": week_start}}),
        },
        "applications": {
            "total": get_collection("applications").count_documents({}),
        },
        "inquiries": {
            "pending": get_collection("contacts").count_documents({"status": ContactStatus.new.value}),
        },
        "ai_feedback": _feedback_summary(week_start),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
