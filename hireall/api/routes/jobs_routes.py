"""
Job Board Routes

POST   /app/jobs                       - Save a job (extension or web)
GET    /app/jobs                       - List jobs (own; admins see all)
GET    /app/jobs/stats                 - Board summary for the caller
POST   /app/jobs/add-with-application  - Save a job and its application together
GET    /app/jobs/{job_id}              - Job details
PUT    /app/jobs/{job_id}              - Update job
PATCH  /app/jobs/{job_id}              - Update job (partial, same as PUT)
DELETE /app/jobs/{job_id}              - Delete job and its applications
"""

from fastapi import APIRouter

from hireall.api.with_api import ApiContext, ApiResult, with_authenticated_api
from hireall.core.errors import ForbiddenError
from hireall.schemas.schemas import (
    JobCreate,
    JobIdParams,
    JobListQuery,
    JobUpdate,
    JobWithApplicationCreate,
)
from hireall.services.jobs_service import JobService

router = APIRouter(prefix="/app/jobs", tags=["Jobs"])


def _job_owner(ctx: ApiContext, user_id) -> str:
    """Admins may file jobs on another user's board; everyone else only on their own."""
    if not user_id or user_id == ctx.uid:
        return ctx.uid
    if not ctx.is_admin:
        raise ForbiddenError("Cannot create jobs for another user")
    return user_id


@router.post("")
@with_authenticated_api(rate_limit="job-add", body_schema=JobCreate)
def create_job(ctx: ApiContext):
    """Save a job to the caller's board. Duplicates (same URL or site id) get a 409."""
    owner_id = _job_owner(ctx, ctx.body.user_id)
    job = JobService().create(owner_id, ctx.body)
    return ApiResult(
        data={"id": job["id"], "message": "Job added successfully"},
        status_code=201,
    )


@router.get("")
@with_authenticated_api(rate_limit="jobs", query_schema=JobListQuery)
def list_jobs(ctx: ApiContext):
    """Admins may list every job (optionally one user's); others get their own."""
    if ctx.is_admin:
        user_id = ctx.query.user_id
    else:
        user_id = ctx.uid
    return JobService().list(ctx.query.page, ctx.query.limit, user_id=user_id)


@router.get("/stats")
@with_authenticated_api(rate_limit="jobs")
def job_stats(ctx: ApiContext):
    return JobService().get_stats(ctx.uid)


@router.post("/add-with-application")
@with_authenticated_api(rate_limit="job-add", body_schema=JobWithApplicationCreate)
def add_job_with_application(ctx: ApiContext):
    owner_id = _job_owner(ctx, ctx.body.job.user_id)
    created = JobService().create_with_application(
        ctx.user, ctx.body.job, ctx.body.application, owner_id=owner_id,
    )
    return ApiResult(data=created, message="Job and application added", status_code=201)


@router.get("/{job_id}")
@with_authenticated_api(rate_limit="jobs", params_schema=JobIdParams)
def get_job(ctx: ApiContext):
    return JobService().get(ctx.params.job_id, ctx.user)


@router.put("/{job_id}")
@router.patch("/{job_id}")
@with_authenticated_api(rate_limit="jobs", params_schema=JobIdParams, body_schema=JobUpdate)
def update_job(ctx: ApiContext):
    job = JobService().update(ctx.params.job_id, ctx.user, ctx.body)
    return ApiResult(data=job, message="Job updated")


@router.delete("/{job_id}")
@with_authenticated_api(rate_limit="jobs", params_schema=JobIdParams)
def delete_job(ctx: ApiContext):
    result = JobService().delete(ctx.params.job_id, ctx.user)
    return ApiResult(data=result, message="Job deleted")
