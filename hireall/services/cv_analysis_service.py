"""
CV Analysis Service

Each analysis is a document in ``cv_analyses`` that moves through
``pending -> processing -> completed | failed``. The AI is asked for a
fixed JSON shape (see ANALYSIS_PROMPT); results are stored on the record
in snake_case.
"""

import logging
from typing import Optional

from pymongo import DESCENDING
from pymongo.collection import Collection

from hireall.core.auth import AuthenticatedUser
from hireall.core.errors import ApiError, ExternalServiceError, ForbiddenError, NotFoundError
from hireall.db.mongodb import get_collection, now_ms
from hireall.services.ai_client import get_ai_client
from hireall.services.cv_template_service import CvTemplateService, build_template_guidance
from hireall.services.mongo_service import paginate, serialize_doc, to_object_id
from hireall.services.usage_service import UsageService

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

PARSE_FAILED_MESSAGE = "Failed to parse AI analysis results"

ANALYSIS_PROMPT = """You are an expert CV/Resume analyzer and career coach.
Return ONLY valid JSON in this format:
{
  "overallScore": <number 0-100>,
  "strengths": ["string"],
  "weaknesses": ["string"],
  "missingSkills": ["string"],
  "recommendations": ["string"],
  "industryAlignment": {"score": <number 0-100>, "feedback": "string"},
  "atsCompatibility": {"score": <number 0-100>, "issues": ["string"], "suggestions": ["string"]},
  "keywordAnalysis": {"presentKeywords": ["string"], "missingKeywords": ["string"], "keywordDensity": <number 0-100>},
  "sectionAnalysis": {"hasSummary": bool, "hasExperience": bool, "hasEducation": bool,
                      "hasSkills": bool, "hasContact": bool, "missingSections": ["string"]}
}
Be specific, constructive, and give actionable feedback on content and format."""


def build_user_prompt(
    cv_text: str,
    target_role: Optional[str] = None,
    industry: Optional[str] = None,
    guidance: Optional[str] = None,
) -> str:
    role = f"for a {target_role} position" if target_role else "for general job applications"
    context = f"Analyze the following CV {role}"
    if industry:
        context += f" in the {industry} industry"
    if guidance:
        context += f".\n\n{guidance}"
    return f"{context}.\n\nCV Content:\n{cv_text}"


def _list(value) -> list:
    return [str(v) for v in value] if isinstance(value, list) else []


def _score(value) -> int:
    try:
        return max(0, min(100, int(round(float(value)))))
    except (TypeError, ValueError):
        return 0


def normalize_analysis(data: dict) -> dict:
    """Map the model's camelCase JSON onto the stored snake_case fields."""
    if not isinstance(data, dict) or "overallScore" not in data:
        raise ValueError("analysis is missing overallScore")

    alignment = data.get("industryAlignment") or {}
    ats = data.get("atsCompatibility") or {}
    keywords = data.get("keywordAnalysis") or {}
    sections = data.get("sectionAnalysis") or {}
    return {
        "overall_score": _score(data.get("overallScore")),
        "strengths": _list(data.get("strengths")),
        "weaknesses": _list(data.get("weaknesses")),
        "missing_skills": _list(data.get("missingSkills")),
        "recommendations": _list(data.get("recommendations")),
        "industry_alignment": {
            "score": _score(alignment.get("score")),
            "feedback": str(alignment.get("feedback") or ""),
        },
        "ats_compatibility": {
            "score": _score(ats.get("score")),
            "issues": _list(ats.get("issues")),
            "suggestions": _list(ats.get("suggestions")),
        },
        "keyword_analysis": {
            "present_keywords": _list(keywords.get("presentKeywords")),
            "missing_keywords": _list(keywords.get("missingKeywords")),
            "keyword_density": _score(keywords.get("keywordDensity")),
        },
        "section_analysis": {
            "has_summary": bool(sections.get("hasSummary")),
            "has_experience": bool(sections.get("hasExperience")),
            "has_education": bool(sections.get("hasEducation")),
            "has_skills": bool(sections.get("hasSkills")),
            "has_contact": bool(sections.get("hasContact")),
            "missing_sections": _list(sections.get("missingSections") or sections.get("missingsections")),
        },
    }


class CvAnalysisService:
    def __init__(self):
        self.collection: Collection = get_collection("cv_analyses")

    def _set(self, analysis_id, fields: dict) -> None:
        fields["updated_at"] = now_ms()
        self.collection.update_one({"_id": analysis_id}, {"$set": fields})

    def analyze(
        self,
        user: AuthenticatedUser,
        cv_text: str,
        target_role: Optional[str] = None,
        industry: Optional[str] = None,
        file_name: Optional[str] = None,
        file_size: Optional[int] = None,
        file_type: Optional[str] = None,
        job_level: Optional[str] = None,
    ) -> dict:
        """
        Create the analysis record and run it.

        The record is stored before the AI call so a failure leaves a
        ``failed`` entry behind (with ``error_message``) instead of nothing.
        """
        UsageService().check_feature_limit(user.uid, "cv_analyses_per_month", is_admin=user.is_admin)
        template = CvTemplateService().find_for(industry, job_level)

        now = now_ms()
        doc = {
            "user_id": user.uid,
            "file_name": file_name,
            "file_size": file_size if file_size is not None else len(cv_text.encode("utf-8")),
            "file_type": file_type or "text/plain",
            "cv_text": cv_text,
            "target_role": target_role,
            "industry": industry,
            "job_level": job_level,
            "template_id": str(template["_id"]) if template else None,
            "analysis_status": STATUS_PENDING,
            "created_at": now,
            "updated_at": now,
        }
        analysis_id = self.collection.insert_one(doc).inserted_id
        self._set(analysis_id, {"analysis_status": STATUS_PROCESSING})

        guidance = build_template_guidance(template) if template else None
        try:
            raw = get_ai_client().complete_json(
                ANALYSIS_PROMPT, build_user_prompt(cv_text, target_role, industry, guidance), max_tokens=2000
            )
            results = normalize_analysis(raw)
        except ValueError as e:
            logger.error("CV analysis %s returned unparseable results: %s", analysis_id, e)
            self._set(analysis_id, {"analysis_status": STATUS_FAILED, "error_message": PARSE_FAILED_MESSAGE})
            raise ExternalServiceError(PARSE_FAILED_MESSAGE)
        except ApiError as e:
            self._set(analysis_id, {"analysis_status": STATUS_FAILED, "error_message": e.message})
            raise

        results["analysis_status"] = STATUS_COMPLETED
        self._set(analysis_id, results)
        logger.info("CV analysis %s completed for %s (score %d)", analysis_id, user.uid, results["overall_score"])
        return self.get(str(analysis_id), user)

    def list(self, user_id: str, page: int, limit: int) -> dict:
        result = paginate(
            self.collection, {"user_id": user_id}, page, limit, sort=[("created_at", DESCENDING)]
        )
        # cv_text can be large; the list view leaves it out
        for item in result["items"]:
            item.pop("cv_text", None)
        result["analyses"] = result.pop("items")
        return result

    def _get_owned(self, analysis_id: str, user: AuthenticatedUser) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(analysis_id, "Analysis")})
        if not doc:
            raise NotFoundError("Analysis not found")
        if doc.get("user_id") != user.uid and not user.is_admin:
            raise ForbiddenError("You do not have access to this analysis")
        return doc

    def get(self, analysis_id: str, user: AuthenticatedUser) -> dict:
        return serialize_doc(self._get_owned(analysis_id, user))

    def delete(self, analysis_id: str, user: AuthenticatedUser) -> dict:
        doc = self._get_owned(analysis_id, user)
        self.collection.delete_one({"_id": doc["_id"]})
        return {"id": analysis_id}
