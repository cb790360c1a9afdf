"""
AI Feedback Service - thumbs up / down on generated content.

Users rate cover letters, CV analyses and resumes; admins see the totals
and a sentiment score (share of positive ratings, 0-100).
"""

import logging
from typing import Any, Dict, Optional

from pymongo import DESCENDING
from pymongo.collection import Collection

from hireall.core.auth import AuthenticatedUser
from hireall.core.errors import ForbiddenError, NotFoundError
from hireall.db.mongodb import get_collection, now_ms
from hireall.schemas.schemas import AiFeedbackCreate, FeedbackSentiment
from hireall.services.mongo_service import paginate, serialize_doc, to_object_id
from hireall.utils.text import sanitize_multiline, sanitize_string

logger = logging.getLogger(__name__)

SEVEN_DAYS_MS = 7 * 24 * 60 * 60 * 1000


def sentiment_score(positive: int, total: int) -> int:
    """
    >>> sentiment_score(3, 4)
    75
    >>> sentiment_score(0, 0)
    0
    """
    return round(positive / total * 100) if total else 0


class AiFeedbackService:
    def __init__(self):
        self.collection: Collection = get_collection("ai_feedback")

    def create(self, user: AuthenticatedUser, data: AiFeedbackCreate) -> dict:
        now = now_ms()
        doc = {
            "user_id": user.uid,
            "content_type": data.content_type.value,
            "sentiment": data.sentiment.value,
            "content_id": sanitize_string(data.content_id, 128) if data.content_id else None,
            "comment": sanitize_multiline(data.comment, 2000) if data.comment else None,
            "created_at": now,
            "updated_at": now,
        }
        doc["_id"] = self.collection.insert_one(doc).inserted_id
        logger.info("AI feedback (%s, %s) from %s", doc["content_type"], doc["sentiment"], user.uid)
        return serialize_doc(doc)

    def list(self, page: int, limit: int, user_id: Optional[str] = None,
             content_type: Optional[str] = None, sentiment: Optional[str] = None) -> dict:
        query: Dict[str, Any] = {}
        if user_id:
            query["user_id"] = user_id
        if content_type:
            query["content_type"] = content_type
        if sentiment:
            query["sentiment"] = sentiment
        result = paginate(self.collection, query, page, limit, sort=[("created_at", DESCENDING)])
        result["feedback"] = result.pop("items")
        return result

    def delete(self, feedback_id: str, user: AuthenticatedUser) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(feedback_id, "Feedback")})
        if not doc:
            raise NotFoundError("Feedback not found")
        if doc.get("user_id") != user.uid and not user.is_admin:
            raise ForbiddenError("You do not have access to this feedback")
        self.collection.delete_one({"_id": doc["_id"]})
        return {"id": feedback_id}

    def summary(self) -> dict:
        total = self.collection.count_documents({})
        positive = self.collection.count_documents({"sentiment": FeedbackSentiment.positive.value})
        by_type = {
            row["_id"]: row["count"]
            for row in self.collection.aggregate([
                {"$group": {"_id": "$content_type", "count": {"$sum": 1}}},
            ])
        }
        return {
            "total": total,
            "positive": positive,
            "negative": total - positive,
            "new_this_week": self.collection.count_documents({"created_at": {"$gte": now_ms() - SEVEN_DAYS_MS}}),
            "by_type": by_type,
            "sentiment_score": sentiment_score(positive, total),
        }
