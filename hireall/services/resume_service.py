"""
Resume Versions - the CV files a user keeps on file.

Uploads go through the same PDF/DOCX/TXT extraction as CV analysis; the
extracted text is stored as ``parsed_content`` so a version can be sent
for analysis or attached to an application later without re-uploading.
"""

import logging
from typing import Optional

from pymongo import DESCENDING
from pymongo.collection import Collection

from hireall.core.auth import AuthenticatedUser
from hireall.core.errors import ForbiddenError, NotFoundError
from hireall.db.mongodb import get_collection, now_ms
from hireall.schemas.schemas import ResumeVersionUpdate
from hireall.services.mongo_service import paginate, serialize_doc, to_object_id
from hireall.utils.file_upload import ExtractedCv
from hireall.utils.text import sanitize_string

logger = logging.getLogger(__name__)


class ResumeService:
    def __init__(self):
        self.collection: Collection = get_collection("resume_versions")
        self.applications: Collection = get_collection("applications")

    def create(self, user_id: str, cv: ExtractedCv, file_url: Optional[str] = None) -> dict:
        now = now_ms()
        doc = {
            "user_id": user_id,
            "file_name": sanitize_string(cv.filename, 255),
            "file_url": file_url or None,
            "file_size": cv.size,
            "content_type": cv.content_type,
            "parsed_content": cv.text,
            "created_at": now,
            "updated_at": now,
        }
        doc["_id"] = self.collection.insert_one(doc).inserted_id
        logger.info("Resume version %s stored for %s", doc["_id"], user_id)
        return serialize_doc(doc)

    def list(self, user_id: str, page: int, limit: int) -> dict:
        result = paginate(
            self.collection, {"user_id": user_id}, page, limit, sort=[("created_at", DESCENDING)]
        )
        for item in result["items"]:
            item.pop("parsed_content", None)
        result["resumes"] = result.pop("items")
        return result

    def _get_owned(self, resume_id: str, user: AuthenticatedUser) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(resume_id, "Resume")})
        if not doc:
            raise NotFoundError("Resume not found")
        if doc.get("user_id") != user.uid and not user.is_admin:
            raise ForbiddenError("You do not have access to this resume")
        return doc

    def get(self, resume_id: str, user: AuthenticatedUser) -> dict:
        return serialize_doc(self._get_owned(resume_id, user))

    def update(self, resume_id: str, user: AuthenticatedUser, data: ResumeVersionUpdate) -> dict:
        doc = self._get_owned(resume_id, user)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("file_name"):
            changes["file_name"] = sanitize_string(changes["file_name"], 255)
        changes["updated_at"] = now_ms()

        self.collection.update_one({"_id": doc["_id"]}, {"$set": changes})
        doc.update(changes)
        return serialize_doc(doc)

    def delete(self, resume_id: str, user: AuthenticatedUser) -> dict:
        """Delete a version and detach it from any application that used it."""
        doc = self._get_owned(resume_id, user)
        self.collection.delete_one({"_id": doc["_id"]})
        detached = self.applications.update_many(
            {"resume_version_id": resume_id},
            {"$unset": {"resume_version_id": ""}, "$set": {"updated_at": now_ms()}},
        ).modified_count
        return {"id": resume_id, "applications_updated": detached}

    def exists_for(self, resume_id: str, user_id: str) -> bool:
        oid = to_object_id(resume_id, "Resume")
        return self.collection.find_one({"_id": oid, "user_id": user_id}, {"_id": 1}) is not None
