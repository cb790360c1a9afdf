"""
CV Template Service - per-industry analysis templates (``cv_analysis_templates``).

A template lists the sections, keywords and skills an analysis should
look for in a given industry and career level. CV analysis picks the
best active template and feeds it into the prompt.
"""

import logging
import re
from typing import Any, Dict, Optional

from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection

from hireall.core.errors import NotFoundError
from hireall.db.mongodb import get_collection, now_ms
from hireall.schemas.schemas import CvTemplateCreate, CvTemplateUpdate
from hireall.services.mongo_service import serialize_doc, to_object_id

logger = logging.getLogger(__name__)


def _industry_filter(industry: str) -> dict:
    return {"$regex": f"^{re.escape(industry.strip())}$", "$options": "i"}


def build_template_guidance(template: dict) -> str:
    """Prompt lines describing what ``template`` expects from a CV."""
    lines = [f"Use the '{template['name']}' checklist for {template['industry']} ({template['job_level']} level)."]
    labels = (
        ("required_sections", "Required sections"),
        ("recommended_keywords", "Recommended keywords"),
        ("common_skills", "Common skills"),
        ("industry_specific_tips", "Industry tips"),
    )
    for field, label in labels:
        values = template.get(field) or []
        if values:
            lines.append(f"{label}: {', '.join(values)}")
    return "\n".join(lines)


class CvTemplateService:
    def __init__(self):
        self.collection: Collection = get_collection("cv_analysis_templates")

    def list(self, industry: Optional[str] = None, job_level: Optional[str] = None,
             include_inactive: bool = False) -> list:
        query: Dict[str, Any] = {}
        if not include_inactive:
            query["is_active"] = True
        if industry and industry.strip():
            query["industry"] = _industry_filter(industry)
        if job_level:
            query["job_level"] = job_level
        cursor = self.collection.find(query).sort([("industry", ASCENDING), ("name", ASCENDING)])
        return [serialize_doc(doc) for doc in cursor]

    def get(self, template_id: str) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(template_id, "Template")})
        if not doc:
            raise NotFoundError("Template not found")
        return serialize_doc(doc)

    def create(self, data: CvTemplateCreate, admin_uid: str) -> dict:
        now = now_ms()
        doc = data.model_dump(mode="json")
        for field in ("required_sections", "recommended_keywords", "common_skills", "industry_specific_tips"):
            doc[field] = [v.strip() for v in (doc.get(field) or []) if v and v.strip()]
        doc.update({"created_by": admin_uid, "created_at": now, "updated_at": now})
        doc["_id"] = self.collection.insert_one(doc).inserted_id
        logger.info("CV template %s (%s) created by %s", doc["_id"], doc["industry"], admin_uid)
        return serialize_doc(doc)

    def update(self, template_id: str, data: CvTemplateUpdate) -> dict:
        oid = to_object_id(template_id, "Template")
        changes = data.model_dump(mode="json", exclude_unset=True)
        changes["updated_at"] = now_ms()
        if not self.collection.update_one({"_id": oid}, {"$set": changes}).matched_count:
            raise NotFoundError("Template not found")
        return self.get(template_id)

    def delete(self, template_id: str) -> dict:
        oid = to_object_id(template_id, "Template")
        if not self.collection.delete_one({"_id": oid}).deleted_count:
            raise NotFoundError("Template not found")
        return {"id": template_id}

    def find_for(self, industry: Optional[str], job_level: Optional[str] = None) -> Optional[dict]:
        """Newest active template for ``industry``, preferring an exact level match."""
        if not industry or not industry.strip():
            return None
        query = {"is_active": True, "industry": _industry_filter(industry)}
        newest = [("created_at", DESCENDING)]
        if job_level:
            doc = self.collection.find_one({**query, "job_level": job_level}, sort=newest)
            if doc:
                return doc
        return self.collection.find_one(query, sort=newest)
