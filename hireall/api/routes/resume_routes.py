"""
Resume Version Routes

POST   /app/resumes               - Upload a PDF/DOCX/TXT resume version
GET    /app/resumes               - Caller's versions, newest first
GET    /app/resumes/{resume_id}   - One version, with its parsed text
PATCH  /app/resumes/{resume_id}   - Rename / edit a version
DELETE /app/resumes/{resume_id}   - Delete a version (detaches applications)
"""

from fastapi import APIRouter
from starlette.datastructures import UploadFile

from hireall.api.with_api import ApiContext, ApiResult, with_authenticated_api
from hireall.core.errors import ErrorCode, ValidationError
from hireall.schemas.schemas import PageQuery, ResumeIdParams, ResumeVersionUpdate
from hireall.services.resume_service import ResumeService
from hireall.utils.file_upload import extract_cv_upload
from hireall.utils.text import sanitize_string

router = APIRouter(prefix="/app/resumes", tags=["Resumes"])


@router.post("")
@with_authenticated_api(rate_limit="cv-upload")
async def upload_resume(ctx: ApiContext):
    """Multipart form: ``file`` plus an optional ``file_url`` where the original is kept."""
    form = await ctx.request.form()
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        raise ValidationError("No file uploaded", code=ErrorCode.MISSING_REQUIRED_FIELD, field="file")

    cv = await extract_cv_upload(upload)
    file_url = sanitize_string(form.get("file_url") or form.get("fileUrl") or "", 2000) or None
    resume = ResumeService().create(ctx.uid, cv, file_url=file_url)
    return ApiResult(data=resume, message="Resume uploaded", status_code=201)


@router.get("")
@with_authenticated_api(rate_limit="applications", query_schema=PageQuery)
def list_resumes(ctx: ApiContext):
    return ResumeService().list(ctx.uid, ctx.query.page, ctx.query.limit)


@router.get("/{resume_id}")
@with_authenticated_api(rate_limit="applications", params_schema=ResumeIdParams)
def get_resume(ctx: ApiContext):
    return ResumeService().get(ctx.params.resume_id, ctx.user)


@router.patch("/{resume_id}")
@with_authenticated_api(rate_limit="applications", params_schema=ResumeIdParams, body_schema=ResumeVersionUpdate)
def update_resume(ctx: ApiContext):
    return ApiResult(data=ResumeService().update(ctx.params.resume_id, ctx.user, ctx.body), message="Resume updated")


@router.delete("/{resume_id}")
@with_authenticated_api(rate_limit="applications", params_schema=ResumeIdParams)
def delete_resume(ctx: ApiContext):
    return ApiResult(data=ResumeService().delete(ctx.params.resume_id, ctx.user), message="Resume deleted")
