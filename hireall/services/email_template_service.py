"""
Email Template Service - marketing / onboarding templates kept by admins.

Placeholders are written ``{{name}}``. The list of placeholders is
worked out from the subject and bodies on every save, and ``render``
fills them in from the supplied variables (unknown ones render as "").
"""

import logging
import re
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING
from pymongo.collection import Collection

from hireall.core.errors import ConflictError, NotFoundError, ValidationError
from hireall.db.mongodb import get_collection, now_ms
from hireall.schemas.schemas import EmailTemplateCreate, EmailTemplateUpdate
from hireall.services.mongo_service import paginate, serialize_doc, to_object_id
from hireall.utils.text import sanitize_string

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")
_TEMPLATE_TEXT_FIELDS = ("subject", "html_content", "text_content")


def extract_variables(*texts: Optional[str]) -> List[str]:
    """
    Placeholder names in order of first appearance.

    >>> extract_variables("Hi {{firstName}}", "{{ firstName }}, see {{link}}")
    ['firstName', 'link']
    """
    names: Dict[str, None] = {}
    for text in texts:
        for match in _PLACEHOLDER.finditer(text or ""):
            names.setdefault(match.group(1))
    return list(names)


def fill_placeholders(text: Optional[str], variables: Dict[str, str]) -> Optional[str]:
    if text is None:
        return None
    return _PLACEHOLDER.sub(lambda m: variables.get(m.group(1), ""), text)


class EmailTemplateService:
    def __init__(self):
        self.collection: Collection = get_collection("email_templates")

    def _check_name_free(self, name: str, exclude_id=None) -> None:
        query: Dict[str, Any] = {"name": {"$regex": f"^{re.escape(name)}$", "$options": "i"}}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        if self.collection.find_one(query, {"_id": 1}):
            raise ConflictError(f"A template named '{name}' already exists", field="name")

    def list(self, page: int, limit: int, category: Optional[str] = None,
             active: Optional[bool] = None, search: Optional[str] = None) -> dict:
        query: Dict[str, Any] = {}
        if category:
            query["category"] = category
        if active is not None:
            query["active"] = active
        if search and search.strip():
            pattern = re.escape(search.strip())
            query["$or"] = [
                {"name": {"$regex": pattern, "$options": "i"}},
                {"subject": {"$regex": pattern, "$options": "i"}},
                {"tags": {"$regex": pattern, "$options": "i"}},
            ]
        result = paginate(self.collection, query, page, limit, sort=[("updated_at", DESCENDING)])
        result["templates"] = result.pop("items")
        return result

    def _get_doc(self, template_id: str) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(template_id, "Template")})
        if not doc:
            raise NotFoundError("Template not found")
        return doc

    def get(self, template_id: str) -> dict:
        return serialize_doc(self._get_doc(template_id))

    def create(self, data: EmailTemplateCreate, admin_uid: str) -> dict:
        name = sanitize_string(data.name, 200)
        self._check_name_free(name)

        now = now_ms()
        doc = data.model_dump(mode="json")
        doc["name"] = name
        doc["tags"] = [t.strip().lower() for t in (doc.get("tags") or []) if t and t.strip()]
        doc["variables"] = extract_variables(*(doc.get(f) for f in _TEMPLATE_TEXT_FIELDS))
        doc.update({"created_by": admin_uid, "created_at": now, "updated_at": now})
        doc["_id"] = self.collection.insert_one(doc).inserted_id
        logger.info("Email template %s (%s) created by %s", doc["_id"], name, admin_uid)
        return serialize_doc(doc)

    def update(self, template_id: str, data: EmailTemplateUpdate) -> dict:
        doc = self._get_doc(template_id)
        changes = data.model_dump(mode="json", exclude_unset=True)
        if changes.get("name"):
            changes["name"] = sanitize_string(changes["name"], 200)
            self._check_name_free(changes["name"], exclude_id=doc["_id"])
        if "tags" in changes:
            changes["tags"] = [t.strip().lower() for t in (changes["tags"] or []) if t and t.strip()]

        merged = {**doc, **changes}
        if not merged.get("html_content") and not merged.get("text_content"):
            raise ValidationError("Either html_content or text_content is required")
        changes["variables"] = extract_variables(*(merged.get(f) for f in _TEMPLATE_TEXT_FIELDS))
        changes["updated_at"] = now_ms()

        self.collection.update_one({"_id": doc["_id"]}, {"$set": changes})
        doc.update(changes)
        return serialize_doc(doc)

    def delete(self, template_id: str) -> dict:
        oid = to_object_id(template_id, "Template")
        if not self.collection.delete_one({"_id": oid}).deleted_count:
            raise NotFoundError("Template not found")
        return {"id": template_id}

    def render(self, template_id: str, variables: Dict[str, str]) -> dict:
        doc = self._get_doc(template_id)
        return {
            "id": template_id,
            "subject": fill_placeholders(doc.get("subject"), variables),
            "html_content": fill_placeholders(doc.get("html_content"), variables),
            "text_content": fill_placeholders(doc.get("text_content"), variables),
            "missing_variables": [v for v in doc.get("variables", []) if v not in variables],
        }
