"""
Contact Service - public contact form and the admin inbox.

Every submission is spam-scored before it is stored:
- should_block (score >= 80): rejected with a 400, nothing stored
- is_spam (score >= 50): stored with status ``spam``
- otherwise stored as ``new``
"""

import logging
from typing import Any, Dict, Optional

from pymongo import DESCENDING
from pymongo.collection import Collection

from hireall.core.errors import NotFoundError, ValidationError
from hireall.db.mongodb import get_collection, now_ms
from hireall.schemas.schemas import ContactCreate, ContactStatus, ContactUpdate
from hireall.services.mongo_service import paginate, serialize_doc, to_object_id
from hireall.utils.spam_detection import check_for_spam
from hireall.utils.text import sanitize_multiline, sanitize_string

logger = logging.getLogger(__name__)


class ContactService:
    def __init__(self):
        self.collection: Collection = get_collection("contacts")

    def submit(self, data: ContactCreate, ip: str, user_agent: Optional[str] = None) -> dict:
        spam = check_for_spam(
            name=data.name,
            email=data.email,
            message=data.message,
            ip=ip,
            subject=data.subject or "",
            honeypot=data.honeypot,
            loaded_at=data.loaded_at,
            submitted_at=data.submitted_at,
        )
        if spam.should_block:
            logger.warning("Blocked contact submission from %s (score %d)", ip, spam.score)
            raise ValidationError("Your message could not be sent. Please try again later.")

        now = now_ms()
        doc = {
            "name": sanitize_string(data.name, 200),
            "email": str(data.email).lower(),
            "subject": sanitize_string(data.subject, 300) if data.subject else None,
            "message": sanitize_multiline(data.message, 5000),
            "status": ContactStatus.spam.value if spam.is_spam else ContactStatus.new.value,
            "spam_score": spam.score,
            "spam_reasons": spam.reasons,
            "ip": ip,
            "user_agent": user_agent,
            "created_at": now,
            "updated_at": now,
        }
        result = self.collection.insert_one(doc)
        logger.info("Contact %s stored as %s", result.inserted_id, doc["status"])
        return {"id": str(result.inserted_id)}

    # ------------------------------------------------------------
    # Admin inbox
    # ------------------------------------------------------------

    def list(self, page: int, limit: int, status: Optional[str] = None) -> dict:
        query: Dict[str, Any] = {"status": status} if status else {}
        result = paginate(self.collection, query, page, limit, sort=[("created_at", DESCENDING)])
        result["contacts"] = result.pop("items")
        return result

    def get(self, contact_id: str) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(contact_id, "Contact")})
        if not doc:
            raise NotFoundError("Contact not found")
        return serialize_doc(doc)

    def update(self, contact_id: str, data: ContactUpdate, admin_uid: str) -> dict:
        """Only ``status`` and ``response`` can change."""
        changes = data.model_dump(exclude_none=True, mode="json")
        if not changes:
            raise ValidationError("No valid fields to update")

        if "response" in changes:
            changes["response"] = sanitize_multiline(changes["response"], 10000)
        if changes.get("status") == ContactStatus.responded.value and changes.get("response"):
            changes["responded_at"] = now_ms()
            changes["responded_by"] = admin_uid
        changes["updated_at"] = now_ms()

        oid = to_object_id(contact_id, "Contact")
        result = self.collection.update_one({"_id": oid}, {"$set": changes})
        if not result.matched_count:
            raise NotFoundError("Contact not found")
        return self.get(contact_id)

    def count_pending(self) -> int:
        return self.collection.count_documents({"status": ContactStatus.new.value})
