"""
Contact Routes

POST /contact                           - Public contact form (spam-scored)
GET  /app/contacts/admin                - Inbox (admin)
GET  /app/contacts/admin/{contact_id}   - One message (admin)
PUT  /app/contacts/admin/{contact_id}   - Set status / response (admin)
"""

from fastapi import APIRouter

from hireall.api.with_api import ApiContext, ApiResult, get_client_ip, with_admin_api, with_public_api
from hireall.schemas.schemas import ContactCreate, ContactIdParams, ContactListQuery, ContactUpdate
from hireall.services.contact_service import ContactService

router = APIRouter(tags=["Contact"])


@router.post("/contact")
@with_public_api(rate_limit="contact", body_schema=ContactCreate)
def submit_contact(ctx: ApiContext):
    result = ContactService().submit(
        ctx.body,
        ip=get_client_ip(ctx.request),
        user_agent=ctx.request.headers.get("user-agent"),
    )
    return ApiResult(data=result, message="Thank you for your message. We'll get back to you soon.", status_code=201)


@router.get("/app/contacts/admin")
@with_admin_api(rate_limit="admin", query_schema=ContactListQuery)
def list_contacts(ctx: ApiContext):
    status = ctx.query.status.value if ctx.query.status else None
    return ContactService().list(ctx.query.page, ctx.query.limit, status=status)


@router.get("/app/contacts/admin/{contact_id}")
@with_admin_api(rate_limit="admin", params_schema=ContactIdParams)
def get_contact(ctx: ApiContext):
    return ContactService().get(ctx.params.contact_id)


@router.put("/app/contacts/admin/{contact_id}")
@with_admin_api(rate_limit="admin", params_schema=ContactIdParams, body_schema=ContactUpdate)
def update_contact(ctx: ApiContext):
    contact = ContactService().update(ctx.params.contact_id, ctx.body, admin_uid=ctx.uid)
    return ApiResult(data=contact, message="Contact updated")
