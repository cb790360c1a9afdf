"""
Email Template Routes (admin)

GET    /admin/email-templates                      - Paged list, filter by category / active / search
POST   /admin/email-templates                      - Create a template
GET    /admin/email-templates/{template_id}        - One template
PUT    /admin/email-templates/{template_id}        - Update a template
DELETE /admin/email-templates/{template_id}        - Delete a template
POST   /admin/email-templates/{template_id}/render - Fill in ``{{placeholders}}``
GET    /admin/email-list                           - Recipients with their segment
"""

from fastapi import APIRouter

from hireall.api.with_api import ApiContext, ApiResult, with_admin_api
from hireall.schemas.schemas import (
    EmailListQuery,
    EmailTemplateCreate,
    EmailTemplateListQuery,
    EmailTemplateRender,
    EmailTemplateUpdate,
    TemplateIdParams,
)
from hireall.services.email_template_service import EmailTemplateService
from hireall.services.user_service import UserService

router = APIRouter(prefix="/admin", tags=["Email Templates"])


@router.get("/email-templates")
@with_admin_api(rate_limit="admin", query_schema=EmailTemplateListQuery)
def list_templates(ctx: ApiContext):
    query = ctx.query
    return EmailTemplateService().list(
        query.page,
        query.limit,
        category=query.category.value if query.category else None,
        active=query.active,
        search=query.search,
    )


@router.post("/email-templates")
@with_admin_api(rate_limit="admin", body_schema=EmailTemplateCreate)
def create_template(ctx: ApiContext):
    template = EmailTemplateService().create(ctx.body, admin_uid=ctx.uid)
    return ApiResult(data=template, message="Template created", status_code=201)


@router.get("/email-templates/{template_id}")
@with_admin_api(rate_limit="admin", params_schema=TemplateIdParams)
def get_template(ctx: ApiContext):
    return EmailTemplateService().get(ctx.params.template_id)


@router.put("/email-templates/{template_id}")
@with_admin_api(rate_limit="admin", params_schema=TemplateIdParams, body_schema=EmailTemplateUpdate)
def update_template(ctx: ApiContext):
    return ApiResult(data=EmailTemplateService().update(ctx.params.template_id, ctx.body), message="Template updated")


@router.delete("/email-templates/{template_id}")
@with_admin_api(rate_limit="admin", params_schema=TemplateIdParams)
def delete_template(ctx: ApiContext):
    return ApiResult(data=EmailTemplateService().delete(ctx.params.template_id), message="Template deleted")


@router.post("/email-templates/{template_id}/render")
@with_admin_api(rate_limit="admin", params_schema=TemplateIdParams, body_schema=EmailTemplateRender)
def render_template(ctx: ApiContext):
    return EmailTemplateService().render(ctx.params.template_id, ctx.body.variables)


@router.get("/email-list")
@with_admin_api(rate_limit="admin", query_schema=EmailListQuery)
def email_list(ctx: ApiContext):
    return UserService().email_list(segment=ctx.query.segment, active_only=ctx.query.active_only)
