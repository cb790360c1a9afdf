"""
Subscription Service - plan status and cancellation.

Subscriptions live in ``subscriptions`` and are linked from the user by
``subscription_id``. Payment-provider calls are out of scope here:
cancelling only marks the subscription to end with the current period.
"""

import logging
from typing import Optional

from hireall.core.auth import AuthenticatedUser, invalidate_tier_cache
from hireall.core.errors import NotFoundError
from hireall.db.mongodb import get_collection, now_ms
from hireall.services.usage_service import UsageService, limits_for, start_of_month_ms

logger = logging.getLogger(__name__)

SUBSCRIPTION_FIELDS = (
    "status",
    "plan",
    "current_period_start",
    "current_period_end",
    "cancel_at_period_end",
    "canceled_at",
    "created_at",
)


def _subscription_view(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    return {"id": str(doc["_id"]), **{field: doc.get(field) for field in SUBSCRIPTION_FIELDS}}


def _actions(subscription: Optional[dict], plan: str) -> dict:
    """Plan actions the client may offer."""
    active = bool(subscription) and subscription.get("status") == "active"
    ending = active and bool(subscription.get("cancel_at_period_end"))
    return {
        "can_upgrade": plan == "free",
        "can_cancel": active and not ending,
        "can_resume": ending,
    }


class SubscriptionService:
    def __init__(self):
        self.users = get_collection("users")
        self.subscriptions = get_collection("subscriptions")

    def _subscription_for(self, user_doc: dict) -> Optional[dict]:
        subscription_id = user_doc.get("subscription_id")
        if not subscription_id:
            return None
        return self.subscriptions.find_one({"_id": subscription_id})

    def get_status(self, user: AuthenticatedUser) -> dict:
        usage_service = UsageService()
        user_doc = self.users.find_one({"_id": user.uid}) or {}
        subscription = self._subscription_for(user_doc)
        plan = usage_service.resolve_plan(user_doc)

        return {
            "subscription": _subscription_view(subscription),
            "plan": plan,
            "limits": limits_for("premium" if user.is_admin else plan),
            "current_usage": {
                "cv_analyses": usage_service.count_this_month(user.uid, "cv_analyses_per_month"),
                "applications": usage_service.count_this_month(user.uid, "applications_per_month"),
            },
            "period_start": start_of_month_ms(),
            "is_admin": user.is_admin,
            "actions": _actions(subscription, plan),
        }

    def cancel(self, user: AuthenticatedUser) -> dict:
        user_doc = self.users.find_one({"_id": user.uid}) or {}
        subscription = self._subscription_for(user_doc)
        if not subscription:
            raise NotFoundError("No subscription found")

        if subscription.get("cancel_at_period_end"):
            return {
                "subscription": _subscription_view(subscription),
                "message": "Subscription is already scheduled for cancellation",
            }

        now = now_ms()
        changes = {"cancel_at_period_end": True, "canceled_at": now, "updated_at": now}
        self.subscriptions.update_one({"_id": subscription["_id"]}, {"$set": changes})
        subscription.update(changes)
        invalidate_tier_cache(user.uid)
        logger.info("Subscription %s for %s set to cancel at period end", subscription["_id"], user.uid)
        return {
            "subscription": _subscription_view(subscription),
            "message": "Subscription will be canceled at the end of the current period",
        }
