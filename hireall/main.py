"""
HireAll API - Main Application

FastAPI backend for the HireAll web app and browser extension:
- MongoDB for every document (jobs, sponsors, users, ...)
- JWT / session-cookie authentication
- OpenAI-compatible AI provider for cover letters and CV analysis
- Every route wrapped by ``with_api`` (auth, rate limits, validation, envelopes)

Run: uvicorn hireall.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from hireall import __version__
from hireall.api.routes import api_router
from hireall.api.with_api import error_response, generate_request_id
from hireall.core.circuit_breaker import get_all_circuit_statuses
from hireall.core.config import get_settings
from hireall.core.errors import ApiError, ErrorCode, ValidationError
from hireall.core.logging_config import configure_logging
from hireall.db.mongodb import init_mongo_indexes, test_mongo_connection

settings = get_settings()
logger = logging.getLogger(__name__)

# Browser extension pages call the API from their own origins
EXTENSION_ORIGIN_REGEX = r"^(chrome|moz)-extension://.*$"

HTTP_STATUS_CODES = {
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.CONTENT_NOT_FOUND,
    413: ErrorCode.FILE_TOO_LARGE,
    429: ErrorCode.RATE_LIMIT_EXCEEDED,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}

# Create FastAPI app
app = FastAPI(
    title="HireAll API",
    description="""
    Job search backend for the HireAll web app and browser extension.

    ## Features
    - **Job board**: save jobs from any board, duplicate detection, applications
    - **Sponsorship**: UK visa sponsor register lookups and batch checks
    - **SOC codes**: match job titles to occupation codes and visa eligibility
    - **AI tools**: cover letters and CV analysis
    - **Admin**: dashboard stats, users, contact inbox, sponsors
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=EXTENSION_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID", "X-Requested-With"],
    expose_headers=["X-Request-ID", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


# ============================================================
# ERROR HANDLERS (errors raised outside with_api handlers)
# ============================================================

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return error_response(exc, generate_request_id())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = HTTP_STATUS_CODES.get(exc.status_code)
    if code is None:
        code = ErrorCode.VALIDATION_FAILED if exc.status_code < 500 else ErrorCode.INTERNAL_SERVER_ERROR
    message = exc.detail if isinstance(exc.detail, str) else None
    error = ApiError(message, code=code, status_code=exc.status_code)
    return error_response(error, generate_request_id(), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]
    first = errors[0] if errors else {}
    field_path = ".".join(str(part) for part in first.get("loc", ()))
    error = ValidationError(
        first.get("msg") or "Validation failed",
        field=field_path or None,
        details={"validation_errors": errors},
    )
    return error_response(error, generate_request_id())


# Startup event
@app.on_event("startup")
async def startup_event():
    """Configure logging and initialize MongoDB indexes on startup."""
    configure_logging()
    try:
        init_mongo_indexes()
    except PyMongoError as e:
        logger.warning("MongoDB index initialization failed: %s", e)
    if not settings.ai_enabled:
        logger.info("AI_API_KEY not set, AI features will use template fallbacks or return 503")


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "HireAll API", "version": __version__}


@app.get("/health", tags=["Health"])
def health_check():
    """Detailed health check."""
    mongo_ok = test_mongo_connection()
    return {
        "status": "healthy" if mongo_ok else "degraded",
        "environment": settings.environment,
        "mongodb": "connected" if mongo_ok else "disconnected",
        "ai": "configured" if settings.ai_enabled else "not_configured",
        "circuits": get_all_circuit_statuses(),
    }
