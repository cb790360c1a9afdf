"""
Admin Routes

GET    /admin/dashboard/stats             - Users, sponsors, inquiries, board and feedback totals
GET    /admin/users                       - Paged user list with email/name search
PUT    /admin/users/{user_id}/role        - Grant / revoke admin
GET    /admin/circuits                    - Circuit breaker states
GET    /admin/cv-templates                - All CV analysis templates
POST   /admin/cv-templates                - Create a template
PUT    /admin/cv-templates/{template_id}  - Update a template
DELETE /admin/cv-templates/{template_id}  - Delete a template
"""

from fastapi import APIRouter

from hireall.api.with_api import ApiContext, ApiResult, with_admin_api
from hireall.core.circuit_breaker import get_all_circuit_statuses
from hireall.schemas.schemas import (
    CvTemplateCreate,
    CvTemplateQuery,
    CvTemplateUpdate,
    RoleUpdate,
    TemplateIdParams,
    UserIdParams,
    UserListQuery,
)
from hireall.services.cv_template_service import CvTemplateService
from hireall.services.stats_service import get_dashboard_stats
from hireall.services.user_service import UserService

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/dashboard/stats")
@with_admin_api(rate_limit="admin")
def dashboard_stats(ctx: ApiContext):
    return get_dashboard_stats()


@router.get("/users")
@with_admin_api(rate_limit="admin", query_schema=UserListQuery)
def list_users(ctx: ApiContext):
    return UserService().list(ctx.query.page, ctx.query.limit, search=ctx.query.search)


@router.put("/users/{user_id}/role")
@with_admin_api(rate_limit="admin", params_schema=UserIdParams, body_schema=RoleUpdate)
def set_user_role(ctx: ApiContext):
    user = UserService().set_admin_role(ctx.params.user_id, ctx.body.is_admin, acting_uid=ctx.uid)
    message = "Admin role granted" if ctx.body.is_admin else "Admin role revoked"
    return ApiResult(data=user, message=message)


@router.get("/circuits")
@with_admin_api(rate_limit="admin")
def circuits(ctx: ApiContext):
    return get_all_circuit_statuses()


@router.get("/cv-templates")
@with_admin_api(rate_limit="admin", query_schema=CvTemplateQuery)
def list_cv_templates(ctx: ApiContext):
    query = ctx.query
    return CvTemplateService().list(
        industry=query.industry,
        job_level=query.job_level.value if query.job_level else None,
        include_inactive=query.include_inactive,
    )


@router.post("/cv-templates")
@with_admin_api(rate_limit="admin", body_schema=CvTemplateCreate)
def create_cv_template(ctx: ApiContext):
    template = CvTemplateService().create(ctx.body, admin_uid=ctx.uid)
    return ApiResult(data=template, message="Template created", status_code=201)


@router.put("/cv-templates/{template_id}")
@with_admin_api(rate_limit="admin", params_schema=TemplateIdParams, body_schema=CvTemplateUpdate)
def update_cv_template(ctx: ApiContext):
    return ApiResult(data=CvTemplateService().update(ctx.params.template_id, ctx.body), message="Template updated")


@router.delete("/cv-templates/{template_id}")
@with_admin_api(rate_limit="admin", params_schema=TemplateIdParams)
def delete_cv_template(ctx: ApiContext):
    return ApiResult(data=CvTemplateService().delete(ctx.params.template_id), message="Template deleted")
