"""
AI Routes

POST   /ai/cover-letter             - Draft a cover letter (premium)
POST   /ai/resume                   - Draft and ATS-score a resume (premium)
GET    /ai/resumes                  - Caller's generated resumes
DELETE /ai/resumes/{resume_id}      - Delete a generated resume
POST   /cv/analyze                  - Analyze pasted CV text
POST   /cv/upload                   - Upload a PDF/DOCX/TXT CV and analyze it
GET    /cv/templates                - Active analysis templates
GET    /cv/analyses                 - Caller's analyses, newest first
GET    /cv/analyses/{analysis_id}   - One analysis
DELETE /cv/analyses/{analysis_id}   - Delete an analysis
"""

from fastapi import APIRouter
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from hireall.api.with_api import ApiContext, ApiResult, with_authenticated_api
from hireall.core.errors import ErrorCode, ValidationError
from hireall.schemas.schemas import (
    AiResumeListQuery,
    AnalysisIdParams,
    CareerLevel,
    CoverLetterRequest,
    CvAnalysisListQuery,
    CvAnalyzeRequest,
    CvTemplateQuery,
    ResumeIdParams,
    ResumeRequest,
)
from hireall.services.cover_letter_service import CoverLetterService
from hireall.services.cv_analysis_service import CvAnalysisService
from hireall.services.cv_template_service import CvTemplateService
from hireall.services.resume_builder_service import ResumeBuilderService
from hireall.utils.file_upload import extract_cv_upload
from hireall.utils.text import sanitize_string

router = APIRouter(tags=["AI"])


@router.post("/ai/cover-letter")
@with_authenticated_api(rate_limit="ai-generation", body_schema=CoverLetterRequest)
def generate_cover_letter(ctx: ApiContext):
    return CoverLetterService().generate(ctx.user, ctx.body)


@router.post("/ai/resume")
@with_authenticated_api(rate_limit="ai-generation", body_schema=ResumeRequest)
def generate_resume(ctx: ApiContext):
    return ApiResult(data=ResumeBuilderService().generate(ctx.user, ctx.body), message="Resume generated")


@router.get("/ai/resumes")
@with_authenticated_api(rate_limit="ai-generation", query_schema=AiResumeListQuery)
def list_generated_resumes(ctx: ApiContext):
    return ResumeBuilderService().list(ctx.uid, ctx.query.page, ctx.query.limit)


@router.delete("/ai/resumes/{resume_id}")
@with_authenticated_api(rate_limit="ai-generation", params_schema=ResumeIdParams)
def delete_generated_resume(ctx: ApiContext):
    return ApiResult(data=ResumeBuilderService().delete(ctx.params.resume_id, ctx.user), message="Resume deleted")


@router.post("/cv/analyze")
@with_authenticated_api(rate_limit="cv-analysis", body_schema=CvAnalyzeRequest)
def analyze_cv(ctx: ApiContext):
    body = ctx.body
    analysis = CvAnalysisService().analyze(
        ctx.user,
        body.cv_text,
        target_role=body.target_role,
        industry=body.industry,
        job_level=body.job_level.value if body.job_level else None,
    )
    return ApiResult(data=analysis, message="CV analysis completed", status_code=201)


@router.post("/cv/upload")
@with_authenticated_api(rate_limit="cv-upload")
async def upload_cv(ctx: ApiContext):
    """Multipart form: ``file`` plus optional ``target_role``, ``industry`` and ``job_level``."""
    form = await ctx.request.form()
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        raise ValidationError("No file uploaded", code=ErrorCode.MISSING_REQUIRED_FIELD, field="file")

    cv = await extract_cv_upload(upload)
    target_role = sanitize_string(form.get("target_role") or form.get("targetRole") or "", 200) or None
    industry = sanitize_string(form.get("industry") or "", 200) or None
    job_level = form.get("job_level") or form.get("jobLevel") or None
    if job_level not in (None, *(level.value for level in CareerLevel)):
        raise ValidationError("Invalid job level", field="job_level")

    analysis = await run_in_threadpool(
        CvAnalysisService().analyze,
        ctx.user,
        cv.text,
        target_role=target_role,
        industry=industry,
        file_name=cv.filename,
        file_size=cv.size,
        file_type=cv.content_type,
        job_level=job_level,
    )
    return ApiResult(data=analysis, message="CV uploaded and analyzed", status_code=201)


@router.get("/cv/templates")
@with_authenticated_api(rate_limit="cv-analysis", query_schema=CvTemplateQuery)
def list_cv_templates(ctx: ApiContext):
    level = ctx.query.job_level.value if ctx.query.job_level else None
    return CvTemplateService().list(industry=ctx.query.industry, job_level=level)


@router.get("/cv/analyses")
@with_authenticated_api(rate_limit="cv-analysis", query_schema=CvAnalysisListQuery)
def list_analyses(ctx: ApiContext):
    return CvAnalysisService().list(ctx.uid, ctx.query.page, ctx.query.limit)


@router.get("/cv/analyses/{analysis_id}")
@with_authenticated_api(rate_limit="cv-analysis", params_schema=AnalysisIdParams)
def get_analysis(ctx: ApiContext):
    return CvAnalysisService().get(ctx.params.analysis_id, ctx.user)


@router.delete("/cv/analyses/{analysis_id}")
@with_authenticated_api(rate_limit="cv-analysis", params_schema=AnalysisIdParams)
def delete_analysis(ctx: ApiContext):
    return ApiResult(
        data=CvAnalysisService().delete(ctx.params.analysis_id, ctx.user),
        message="Analysis deleted",
    )
