"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from hireall.api.routes.jobs_routes import router as jobs_router
from hireall.api.routes.application_routes import router as application_router
from hireall.api.routes.sponsorship_routes import router as sponsorship_router
from hireall.api.routes.soc_code_routes import router as soc_code_router
from hireall.api.routes.contact_routes import router as contact_router
from hireall.api.routes.admin_routes import router as admin_router
from hireall.api.routes.ai_routes import router as ai_router
from hireall.api.routes.user_routes import router as user_router
from hireall.api.routes.resume_routes import router as resume_router
from hireall.api.routes.ai_feedback_routes import router as ai_feedback_router
from hireall.api.routes.email_template_routes import router as email_template_router
from hireall.api.routes.subscription_routes import router as subscription_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(jobs_router)
api_router.include_router(application_router)
api_router.include_router(sponsorship_router)
api_router.include_router(soc_code_router)
api_router.include_router(contact_router)
api_router.include_router(admin_router)
api_router.include_router(ai_router)
api_router.include_router(user_router)
api_router.include_router(resume_router)
api_router.include_router(ai_feedback_router)
api_router.include_router(email_template_router)
api_router.include_router(subscription_router)
