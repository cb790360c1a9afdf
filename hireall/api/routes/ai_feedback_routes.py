"""
AI Feedback Routes

POST   /ai/feedback                 - Rate a piece of generated content
GET    /ai/feedback                 - Caller's ratings
DELETE /ai/feedback/{feedback_id}   - Remove a rating (owner or admin)
GET    /admin/ai-feedback           - All ratings plus a sentiment summary (admin)
"""

from fastapi import APIRouter

from hireall.api.with_api import ApiContext, ApiResult, with_admin_api, with_authenticated_api
from hireall.schemas.schemas import AiFeedbackCreate, AiFeedbackListQuery, FeedbackIdParams
from hireall.services.ai_feedback_service import AiFeedbackService

router = APIRouter(tags=["AI Feedback"])


def _filters(query: AiFeedbackListQuery) -> dict:
    return {
        "content_type": query.content_type.value if query.content_type else None,
        "sentiment": query.sentiment.value if query.sentiment else None,
    }


@router.post("/ai/feedback")
@with_authenticated_api(rate_limit="general", body_schema=AiFeedbackCreate)
def submit_feedback(ctx: ApiContext):
    feedback = AiFeedbackService().create(ctx.user, ctx.body)
    return ApiResult(data=feedback, message="Thanks for the feedback", status_code=201)


@router.get("/ai/feedback")
@with_authenticated_api(rate_limit="general", query_schema=AiFeedbackListQuery)
def list_my_feedback(ctx: ApiContext):
    return AiFeedbackService().list(ctx.query.page, ctx.query.limit, user_id=ctx.uid, **_filters(ctx.query))


@router.delete("/ai/feedback/{feedback_id}")
@with_authenticated_api(rate_limit="general", params_schema=FeedbackIdParams)
def delete_feedback(ctx: ApiContext):
    return ApiResult(data=AiFeedbackService().delete(ctx.params.feedback_id, ctx.user), message="Feedback deleted")


@router.get("/admin/ai-feedback")
@with_admin_api(rate_limit="admin", query_schema=AiFeedbackListQuery)
def list_all_feedback(ctx: ApiContext):
    service = AiFeedbackService()
    result = service.list(ctx.query.page, ctx.query.limit, **_filters(ctx.query))
    result["summary"] = service.summary()
    return result
