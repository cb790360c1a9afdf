"""
Application Routes

GET    /app/applications                   - Caller's applications (optional status filter)
PATCH  /app/applications/{application_id}  - Update status / notes / dates
DELETE /app/applications/{application_id}  - Delete an application
"""

from fastapi import APIRouter

from hireall.api.with_api import ApiContext, ApiResult, with_authenticated_api
from hireall.schemas.schemas import ApplicationIdParams, ApplicationListQuery, ApplicationUpdate
from hireall.services.jobs_service import ApplicationService

router = APIRouter(prefix="/app/applications", tags=["Applications"])


@router.get("")
@with_authenticated_api(rate_limit="applications", query_schema=ApplicationListQuery)
def list_applications(ctx: ApiContext):
    status = ctx.query.status.value if ctx.query.status else None
    return ApplicationService().list(ctx.uid, ctx.query.page, ctx.query.limit, status=status)


@router.patch("/{application_id}")
@with_authenticated_api(
    rate_limit="applications",
    params_schema=ApplicationIdParams,
    body_schema=ApplicationUpdate,
)
def update_application(ctx: ApiContext):
    application = ApplicationService().update(ctx.params.application_id, ctx.user, ctx.body)
    return ApiResult(data=application, message="Application updated")


@router.delete("/{application_id}")
@with_authenticated_api(rate_limit="applications", params_schema=ApplicationIdParams)
def delete_application(ctx: ApiContext):
    return ApiResult(
        data=ApplicationService().delete(ctx.params.application_id, ctx.user),
        message="Application deleted",
    )
