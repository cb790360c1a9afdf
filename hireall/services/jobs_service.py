"""
Job Board Service - jobs and applications.

Jobs arrive mostly from the browser extension. Every stored job carries:
- normalized_url: the posting URL with tracking params stripped
- job_identifier: a site-specific id such as ``linkedin:3812345678``

Both are used to reject duplicates for the same user.
"""

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from hireall.core.auth import AuthenticatedUser
from hireall.core.errors import ConflictError, DatabaseError, ForbiddenError, NotFoundError, ValidationError
from hireall.db.mongodb import get_collection, now_ms
from hireall.schemas.schemas import (
    ApplicationCreate,
    ApplicationStatus,
    ApplicationUpdate,
    JobCreate,
    JobUpdate,
)
from hireall.services.mongo_service import paginate, serialize_doc, to_object_id
from hireall.services.resume_service import ResumeService
from hireall.services.usage_service import UsageService
from hireall.utils.text import sanitize_multiline, sanitize_string
from hireall.utils.url_normalizer import extract_job_identifier, normalize_job_url

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000

SHORT_TEXT_FIELDS = (
    "title", "company", "location", "salary", "job_type", "experience_level",
    "company_size", "industry", "posted_date", "application_deadline",
    "sponsorship_type", "source",
)
LIST_FIELDS = ("skills", "requirements", "benefits")
BOOL_FIELDS = ("remote_work", "is_sponsored", "is_recruitment_agency")


def _clean_list(values: Optional[List[str]]) -> List[str]:
    cleaned = (sanitize_string(v, 200) for v in values or [])
    return [v for v in cleaned if v]


def _clean_job_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Sanitize the user-supplied fields present in ``data``."""
    out: Dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if key in SHORT_TEXT_FIELDS:
            out[key] = sanitize_string(value, 500)
        elif key == "description":
            out[key] = sanitize_multiline(value)
        elif key in LIST_FIELDS:
            out[key] = _clean_list(value)
        else:
            out[key] = value
    return out


def _ensure_owner(doc: dict, user: AuthenticatedUser, label: str) -> None:
    if doc.get("user_id") != user.uid and not user.is_admin:
        raise ForbiddenError(f"You do not have access to this {label}")


# ============================================================
# JOBS COLLECTION
# ============================================================

class JobService:
    """CRUD for the ``jobs`` collection."""

    def __init__(self):
        self.collection: Collection = get_collection("jobs")
        self.applications: Collection = get_collection("applications")

    def _build_doc(self, user_id: str, data: JobCreate) -> dict:
        fields = data.model_dump(exclude={"user_id"}, exclude_none=True)
        doc = _clean_job_fields(fields)
        for key in LIST_FIELDS:
            doc.setdefault(key, [])
        for key in BOOL_FIELDS:
            doc.setdefault(key, False)

        url = data.url.strip()
        now = now_ms()
        doc.update({
            "user_id": user_id,
            "url": url,
            "normalized_url": normalize_job_url(url),
            "job_identifier": extract_job_identifier(url),
            "date_found": data.date_found or now,
            "created_at": now,
            "updated_at": now,
        })
        return doc

    def find_duplicate(self, user_id: str, url: str) -> Optional[dict]:
        """Same user + same normalized URL, or same site job id."""
        normalized = normalize_job_url(url)
        existing = self.collection.find_one({"user_id": user_id, "normalized_url": normalized})
        if existing:
            return existing
        identifier = extract_job_identifier(url)
        return self.collection.find_one({"user_id": user_id, "job_identifier": identifier})

    def _reject_duplicate(self, user_id: str, url: str) -> None:
        existing = self.find_duplicate(user_id, url)
        if existing:
            raise ConflictError(
                "This job is already on your board",
                details={"existing_job_id": str(existing["_id"])},
            )

    def create(self, user_id: str, data: JobCreate) -> dict:
        self._reject_duplicate(user_id, data.url)
        doc = self._build_doc(user_id, data)
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("Job %s added for user %s", result.inserted_id, user_id)
        return serialize_doc(doc)

    def create_with_application(
        self,
        user: AuthenticatedUser,
        job: JobCreate,
        application: ApplicationCreate,
        owner_id: Optional[str] = None,
    ) -> dict:
        """
        Add a job and its application together.

        The application insert is undone by deleting the job if it fails, so
        the board never shows a job whose application was lost.
        """
        owner_id = owner_id or user.uid
        self._reject_duplicate(owner_id, job.url)
        UsageService().check_feature_limit(owner_id, "applications_per_month", is_admin=user.is_admin)

        job_doc = self._build_doc(owner_id, job)
        job_id = self.collection.insert_one(job_doc).inserted_id

        now = now_ms()
        app_doc = {
            "job_id": str(job_id),
            "user_id": owner_id,
            "status": application.status.value,
            "applied_date": application.applied_date or (
                now if application.status == ApplicationStatus.applied else None
            ),
            "notes": sanitize_multiline(application.notes) if application.notes else None,
            "follow_ups": [],
            "interview_dates": [],
            "created_at": now,
            "updated_at": now,
        }
        try:
            app_id = self.applications.insert_one(app_doc).inserted_id
        except PyMongoError as e:
            logger.error("Application insert failed, rolling back job %s: %s", job_id, e)
            self.collection.delete_one({"_id": job_id})
            raise DatabaseError("Failed to save application", operation="add-with-application")

        return {"job_id": str(job_id), "application_id": str(app_id)}

    def get_doc(self, job_id: str) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(job_id, "Job")})
        if not doc:
            raise NotFoundError("Job not found")
        return doc

    def get(self, job_id: str, user: AuthenticatedUser) -> dict:
        doc = self.get_doc(job_id)
        _ensure_owner(doc, user, "job")
        return serialize_doc(doc)

    def list(self, page: int, limit: int, user_id: Optional[str] = None) -> dict:
        query = {"user_id": user_id} if user_id else {}
        result = paginate(self.collection, query, page, limit, sort=[("created_at", DESCENDING)])
        result["jobs"] = result.pop("items")
        return result

    def update(self, job_id: str, user: AuthenticatedUser, data: JobUpdate) -> dict:
        doc = self.get_doc(job_id)
        _ensure_owner(doc, user, "job")

        changes = _clean_job_fields(data.model_dump(exclude_unset=True))
        if "url" in changes:
            url = data.url.strip()
            changes["url"] = url
            changes["normalized_url"] = normalize_job_url(url)
            changes["job_identifier"] = extract_job_identifier(url)
        changes["updated_at"] = now_ms()

        self.collection.update_one({"_id": doc["_id"]}, {"$set": changes})
        doc.update(changes)
        return serialize_doc(doc)

    def delete(self, job_id: str, user: AuthenticatedUser) -> dict:
        doc = self.get_doc(job_id)
        _ensure_owner(doc, user, "job")

        self.collection.delete_one({"_id": doc["_id"]})
        removed = self.applications.delete_many({"job_id": str(doc["_id"])}).deleted_count
        logger.info("Job %s deleted (%d applications removed)", job_id, removed)
        return {"id": job_id, "deleted_applications": removed}

    def get_stats(self, user_id: str) -> dict:
        """Board summary computed by scanning the user's jobs and applications."""
        day_ago = now_ms() - DAY_MS
        stats = {
            "total_jobs": 0,
            "sponsored_jobs": 0,
            "recruitment_agency_jobs": 0,
            "jobs_today": 0,
        }
        projection = {"is_sponsored": 1, "is_recruitment_agency": 1, "created_at": 1}
        for job in self.collection.find({"user_id": user_id}, projection):
            stats["total_jobs"] += 1
            if job.get("is_sponsored"):
                stats["sponsored_jobs"] += 1
            if job.get("is_recruitment_agency"):
                stats["recruitment_agency_jobs"] += 1
            if (job.get("created_at") or 0) >= day_ago:
                stats["jobs_today"] += 1

        by_status = {status.value: 0 for status in ApplicationStatus}
        for application in self.applications.find({"user_id": user_id}, {"status": 1}):
            status = application.get("status")
            if status in by_status:
                by_status[status] += 1

        stats["by_status"] = by_status
        stats["total_applications"] = by_status[ApplicationStatus.applied.value]
        return stats


# ============================================================
# APPLICATIONS COLLECTION
# ============================================================

class ApplicationService:
    """Applications are always owned by the user who created the job."""

    def __init__(self):
        self.collection: Collection = get_collection("applications")
        self.jobs: Collection = get_collection("jobs")

    def list(self, user_id: str, page: int, limit: int, status: Optional[str] = None) -> dict:
        query: Dict[str, Any] = {"user_id": user_id}
        if status:
            query["status"] = status
        result = paginate(self.collection, query, page, limit, sort=[("created_at", DESCENDING)])

        # Attach a small job summary for the board view
        job_ids = [ObjectId(a["job_id"]) for a in result["items"] if ObjectId.is_valid(a.get("job_id") or "")]
        jobs = {
            str(job["_id"]): job
            for job in self.jobs.find({"_id": {"$in": job_ids}}, {"title": 1, "company": 1, "location": 1, "url": 1})
        }
        for application in result["items"]:
            job = jobs.get(application.get("job_id"))
            application["job"] = serialize_doc(job) if job else None

        result["applications"] = result.pop("items")
        return result

    def _get_owned(self, application_id: str, user: AuthenticatedUser) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(application_id, "Application")})
        if not doc:
            raise NotFoundError("Application not found")
        _ensure_owner(doc, user, "application")
        return doc

    def update(self, application_id: str, user: AuthenticatedUser, data: ApplicationUpdate) -> dict:
        doc = self._get_owned(application_id, user)
        changes = data.model_dump(exclude_unset=True, mode="json")
        if changes.get("notes"):
            changes["notes"] = sanitize_multiline(changes["notes"])
        resume_id = changes.get("resume_version_id")
        if resume_id and not ResumeService().exists_for(resume_id, doc["user_id"]):
            raise ValidationError("Resume version not found", field="resume_version_id")
        if changes.get("status") == ApplicationStatus.applied.value and not doc.get("applied_date"):
            changes.setdefault("applied_date", now_ms())
        changes["updated_at"] = now_ms()

        self.collection.update_one({"_id": doc["_id"]}, {"$set": changes})
        doc.update(changes)
        return serialize_doc(doc)

    def delete(self, application_id: str, user: AuthenticatedUser) -> dict:
        doc = self._get_owned(application_id, user)
        self.collection.delete_one({"_id": doc["_id"]})
        return {"id": application_id}
