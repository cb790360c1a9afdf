"""
User Routes

GET    /user/usage            - Plan, monthly limits and this month's usage
GET    /user/autofill-profile - Saved application autofill profile (null if none)
POST   /user/autofill-profile - Save the autofill profile
DELETE /user/autofill-profile - Clear the autofill profile
"""

from fastapi import APIRouter

from hireall.api.with_api import ApiContext, ApiResult, with_authenticated_api
from hireall.schemas.schemas import AutofillProfile
from hireall.services.usage_service import UsageService
from hireall.services.user_service import UserService

router = APIRouter(prefix="/user", tags=["User"])


@router.get("/usage")
@with_authenticated_api(rate_limit="subscription")
def get_usage(ctx: ApiContext):
    return UsageService().get_monthly_usage(ctx.uid, is_admin=ctx.is_admin)


@router.get("/autofill-profile")
@with_authenticated_api(rate_limit="user-settings")
def get_autofill_profile(ctx: ApiContext):
    return UserService().get_autofill_profile(ctx.uid)


@router.post("/autofill-profile")
@with_authenticated_api(rate_limit="user-settings", body_schema=AutofillProfile)
def save_autofill_profile(ctx: ApiContext):
    profile = UserService().save_autofill_profile(ctx.uid, ctx.body)
    return ApiResult(data=profile, message="Autofill profile saved")


@router.delete("/autofill-profile")
@with_authenticated_api(rate_limit="user-settings")
def delete_autofill_profile(ctx: ApiContext):
    UserService().delete_autofill_profile(ctx.uid)
    return ApiResult(data=None, message="Autofill profile deleted")
