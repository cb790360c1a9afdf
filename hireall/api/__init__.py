"""
API module - FastAPI routers and the ``with_api`` handler wrapper.

Usage:
    from hireall.api.routes import api_router
    app.include_router(api_router, prefix="/api")
"""
