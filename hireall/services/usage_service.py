"""
Usage Service - monthly feature limits per subscription plan.

Limits are counted from the first day of the current month (UTC).
``-1`` means unlimited; admins are never limited.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from hireall.core.errors import RateLimitError
from hireall.db.mongodb import get_collection

logger = logging.getLogger(__name__)

UNLIMITED = -1

SUBSCRIPTION_LIMITS: Dict[str, Dict] = {
    "free": {
        "applications_per_month": 50,
        "cv_analyses_per_month": 3,
        "ai_generations_per_month": 5,
        "export_formats": ["csv"],
    },
    "premium": {
        "applications_per_month": UNLIMITED,
        "cv_analyses_per_month": UNLIMITED,
        "ai_generations_per_month": UNLIMITED,
        "export_formats": ["csv", "json", "pdf"],
    },
}

# feature -> (collection, human label)
FEATURES = {
    "applications_per_month": ("applications", "Application"),
    "cv_analyses_per_month": ("cv_analyses", "CV analysis"),
    "ai_generations_per_month": ("cover_letters", "AI generation"),
}


def limits_for(plan: str) -> Dict:
    """Limits for ``plan``; unknown plans get the free limits."""
    return SUBSCRIPTION_LIMITS.get(plan, SUBSCRIPTION_LIMITS["free"])


def start_of_month_ms(now: Optional[datetime] = None) -> int:
    now = now or datetime.now(timezone.utc)
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return int(start.timestamp() * 1000)


class UsageService:
    def __init__(self):
        self.users = get_collection("users")
        self.subscriptions = get_collection("subscriptions")

    def get_active_subscription(self, user: dict) -> Optional[dict]:
        subscription_id = user.get("subscription_id")
        if not subscription_id:
            return None
        subscription = self.subscriptions.find_one({"_id": subscription_id})
        if subscription and subscription.get("status") == "active":
            return subscription
        return None

    def resolve_plan(self, user: dict) -> str:
        """A known plan on the active subscription wins, then a known plan on the user, else free."""
        subscription = self.get_active_subscription(user)
        if subscription and subscription.get("plan", "premium") in SUBSCRIPTION_LIMITS:
            return subscription.get("plan", "premium")
        if user.get("plan") in SUBSCRIPTION_LIMITS:
            return user["plan"]
        return "free"

    def get_user_plan(self, user_id: str) -> str:
        return self.resolve_plan(self.users.find_one({"_id": user_id}) or {})

    def count_this_month(self, user_id: str, feature: str) -> int:
        collection_name, _ = FEATURES[feature]
        return get_collection(collection_name).count_documents({
            "user_id": user_id,
            "created_at": {"$gte": start_of_month_ms()},
        })

    def check_feature_limit(self, user_id: str, feature: str, is_admin: bool = False) -> None:
        """Raise RateLimitError when ``feature`` is used up for this month."""
        if is_admin:
            return

        plan = self.get_user_plan(user_id)
        limit = limits_for(plan)[feature]
        if limit == UNLIMITED:
            return

        used = self.count_this_month(user_id, feature)
        if used >= limit:
            _, label = FEATURES[feature]
            logger.info("User %s hit %s limit (%d/%d, plan %s)", user_id, feature, used, limit, plan)
            raise RateLimitError(
                f"{label} limit reached for your {plan} plan. "
                f"You've used {used} of {limit} this month.",
                retry_after=3600,
            )

    def get_monthly_usage(self, user_id: str, is_admin: bool = False) -> dict:
        plan = "admin" if is_admin else self.get_user_plan(user_id)
        limits = limits_for("premium" if is_admin else plan)
        usage = {feature: self.count_this_month(user_id, feature) for feature in FEATURES}
        return {
            "plan": plan,
            "limits": limits,
            "usage": usage,
            "period_start": start_of_month_ms(),
        }
