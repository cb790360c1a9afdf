"""
Subscription Routes

GET  /subscription/status - Plan, limits, this month's usage and available actions
POST /subscription/cancel - Cancel at the end of the current period
"""

from fastapi import APIRouter

from hireall.api.with_api import ApiContext, ApiResult, with_authenticated_api
from hireall.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/subscription", tags=["Subscription"])


@router.get("/status")
@with_authenticated_api(rate_limit="subscription")
def subscription_status(ctx: ApiContext):
    return SubscriptionService().get_status(ctx.user)


@router.post("/cancel")
@with_authenticated_api(rate_limit="subscription")
def cancel_subscription(ctx: ApiContext):
    result = SubscriptionService().cancel(ctx.user)
    return ApiResult(data=result["subscription"], message=result["message"])
