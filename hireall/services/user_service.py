"""
User Service - admin user management, the autofill profile and the email list.

User documents are keyed by the auth uid (``_id`` is the uid string).
"""

import logging
import re
from typing import Any, Dict, Optional

from pymongo import DESCENDING
from pymongo.collection import Collection

from hireall.core.auth import invalidate_tier_cache
from hireall.core.errors import NotFoundError, ValidationError
from hireall.db.mongodb import get_collection, now_ms
from hireall.schemas.schemas import AutofillProfile
from hireall.services.mongo_service import paginate, serialize_doc

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
SEGMENTS = ("admin", "premium", "basic", "new_users", "active_users", "all_users")


def user_segment(doc: dict, now: int) -> str:
    """First match in ``SEGMENTS`` order."""
    if doc.get("is_admin"):
        return "admin"
    plan = doc.get("plan") or (doc.get("subscription") or {}).get("plan")
    if plan in ("premium", "basic"):
        return plan
    created = doc.get("created_at") or 0
    if isinstance(created, (int, float)) and created >= now - 30 * DAY_MS:
        return "new_users"
    last_active = doc.get("last_login_at") or doc.get("updated_at") or 0
    if isinstance(last_active, (int, float)) and last_active >= now - 7 * DAY_MS:
        return "active_users"
    return "all_users"


class UserService:
    def __init__(self):
        self.collection: Collection = get_collection("users")

    def list(self, page: int, limit: int, search: Optional[str] = None) -> dict:
        query: Dict[str, Any] = {}
        if search and search.strip():
            pattern = re.escape(search.strip())
            query["$or"] = [
                {"email": {"$regex": pattern, "$options": "i"}},
                {"name": {"$regex": pattern, "$options": "i"}},
            ]
        result = paginate(self.collection, query, page, limit, sort=[("created_at", DESCENDING)])
        result["users"] = result.pop("items")
        return result

    def set_admin_role(self, user_id: str, is_admin: bool, acting_uid: str) -> dict:
        """Grant or revoke admin. Admins cannot revoke their own role."""
        if user_id == acting_uid and not is_admin:
            raise ValidationError("You cannot remove your own admin role")

        result = self.collection.update_one(
            {"_id": user_id},
            {"$set": {"is_admin": is_admin, "updated_at": now_ms()}},
        )
        if not result.matched_count:
            raise NotFoundError("User not found")

        invalidate_tier_cache(user_id)
        logger.info("User %s admin=%s (set by %s)", user_id, is_admin, acting_uid)
        return serialize_doc(self.collection.find_one({"_id": user_id}))

    # ------------------------------------------------------------
    # Autofill profile
    # ------------------------------------------------------------

    def get_autofill_profile(self, user_id: str) -> Optional[dict]:
        doc = self.collection.find_one({"_id": user_id}, {"autofill_profile": 1})
        if not doc:
            raise NotFoundError("User not found")
        return doc.get("autofill_profile")

    def save_autofill_profile(self, user_id: str, profile: AutofillProfile) -> dict:
        data = profile.model_dump(mode="json")
        result = self.collection.update_one(
            {"_id": user_id},
            {"$set": {"autofill_profile": data, "updated_at": now_ms()}},
        )
        if not result.matched_count:
            raise NotFoundError("User not found")
        return data

    def delete_autofill_profile(self, user_id: str) -> None:
        result = self.collection.update_one(
            {"_id": user_id},
            {"$set": {"autofill_profile": None, "updated_at": now_ms()}},
        )
        if not result.matched_count:
            raise NotFoundError("User not found")

    # ------------------------------------------------------------
    # Email list
    # ------------------------------------------------------------

    def email_list(self, segment: Optional[str] = None, active_only: bool = False) -> dict:
        """Every user with an email, tagged with one marketing segment."""
        query: Dict[str, Any] = {"email": {"$nin": [None, ""]}}
        if active_only:
            query["email_preferences.marketing"] = True

        now = now_ms()
        recipients = []
        for doc in self.collection.find(query).sort("created_at", DESCENDING):
            recipients.append({
                "id": doc["_id"],
                "email": doc["email"],
                "name": doc.get("name"),
                "segment": user_segment(doc, now),
                "created_at": doc.get("created_at"),
            })

        stats = {name: 0 for name in SEGMENTS}
        for recipient in recipients:
            stats[recipient["segment"]] += 1
        if segment:
            recipients = [r for r in recipients if r["segment"] == segment]
        return {"users": recipients, "total": len(recipients), "segments": stats}
