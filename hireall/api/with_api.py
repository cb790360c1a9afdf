"""
with_api - the wrapper every route handler goes through.

It centralizes, in this order:
1. request id + extension detection
2. authentication (none / optional / required / admin)
3. rate limiting (keyed by user id, else client IP)
4. query, body and route-param validation with pydantic
5. running the handler (sync handlers run in the threadpool)
6. the success / error JSON envelopes and their headers

Usage:
    router = APIRouter(prefix="/app/jobs", tags=["Jobs"])

    @router.post("")
    @with_api(auth="required", rate_limit="job-add", body_schema=JobCreate)
    def create_job(ctx: ApiContext):
        return {"id": JobService().create(ctx.user.uid, ctx.body)}

Handlers receive a single ``ApiContext`` and return plain data (wrapped in
``{"success": true, "data": ...}``), an ``ApiResult`` to set the status
code or message, or a Starlette ``Response`` which is passed through as is.
"""

import inspect
import json
import logging
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Type

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from jose import JWTError
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import (
    ConnectionFailure,
    DuplicateKeyError,
    ExecutionTimeout,
    PyMongoError,
)
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from hireall.core.auth import (
    AUTH_ADMIN,
    AUTH_NONE,
    AUTH_OPTIONAL,
    AUTH_REQUIRED,
    AuthenticatedUser,
    authenticate_request,
    extract_token,
)
from hireall.core.config import get_settings
from hireall.core.errors import (
    ApiError,
    AuthorizationError,
    ConflictError,
    DatabaseError,
    ErrorCode,
    ForbiddenError,
    RateLimitError,
    ServiceUnavailableError,
    ValidationError,
)
from hireall.core.rate_limiter import RateLimitConfig, RateLimitResult, check_rate_limit

logger = logging.getLogger(__name__)

BODY_METHODS = {"POST", "PUT", "PATCH"}
EXTENSION_ORIGINS = ("chrome-extension://", "moz-extension://")


@dataclass
class ApiContext:
    request: Request
    request_id: str
    user: Optional[AuthenticatedUser] = None
    token: Optional[str] = None
    body: Any = None
    query: Any = None
    params: Any = None
    is_extension: bool = False
    rate_limit: Optional[RateLimitResult] = None

    @property
    def uid(self) -> Optional[str]:
        return self.user.uid if self.user else None

    @property
    def is_admin(self) -> bool:
        return bool(self.user and self.user.is_admin)


@dataclass
class ApiResult:
    """Handler return value when the default 200 / no message won't do."""

    data: Any = None
    message: Optional[str] = None
    status_code: int = 200
    headers: Dict[str, str] = field(default_factory=dict)


# ============================================================
# HELPERS
# ============================================================

def generate_request_id() -> str:
    return f"req_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def is_extension_request(request: Request) -> bool:
    origin = request.headers.get("origin") or ""
    return origin.startswith(EXTENSION_ORIGINS)


def success_response(
    data: Any,
    request_id: str,
    message: Optional[str] = None,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {"success": True, "data": data}
    if message:
        content["message"] = message
    content["meta"] = {"request_id": request_id, "timestamp": _timestamp()}
    response_headers = {"X-Request-ID": request_id}
    response_headers.update(headers or {})
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content),
        headers=response_headers,
    )


def error_response(
    error: ApiError,
    request_id: str,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    response_headers = {"X-Request-ID": request_id}
    retry_after = getattr(error, "retry_after", None)
    if retry_after is not None:
        response_headers["Retry-After"] = str(retry_after)
    response_headers.update(headers or {})
    return JSONResponse(
        status_code=error.status_code,
        content=jsonable_encoder({
            "success": False,
            "error": error.to_dict(),
            "meta": {"request_id": request_id, "timestamp": _timestamp()},
        }),
        headers=response_headers,
    )


def validation_error_from(exc: PydanticValidationError, message: Optional[str] = None) -> ValidationError:
    errors = exc.errors(include_url=False, include_context=False, include_input=False)
    first = errors[0] if errors else {}
    field_path = ".".join(str(part) for part in first.get("loc", ()))
    return ValidationError(
        message or first.get("msg") or "Validation failed",
        field=field_path or None,
        details={"validation_errors": errors},
    )


def map_exception(exc: Exception, request_id: str) -> ApiError:
    """Translate anything a handler raised into an ApiError."""
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, PydanticValidationError):
        return validation_error_from(exc)
    if isinstance(exc, JWTError):
        return AuthorizationError("Authentication failed", code=ErrorCode.INVALID_TOKEN)
    if isinstance(exc, DuplicateKeyError):
        return ConflictError()
    if isinstance(exc, ExecutionTimeout):
        return ApiError("Database query timed out", code=ErrorCode.TIMEOUT)
    if isinstance(exc, ConnectionFailure):
        logger.error("[%s] Database unavailable: %s", request_id, exc)
        return ServiceUnavailableError("Database temporarily unavailable", retry_after=30)
    if isinstance(exc, PyMongoError):
        logger.exception("[%s] Database error", request_id)
        return DatabaseError(operation=type(exc).__name__)

    logger.exception("[%s] Unhandled error", request_id)
    message = str(exc) if get_settings().debug else None
    return ApiError(message, code=ErrorCode.INTERNAL_SERVER_ERROR)


def _rate_limit_headers(result: Optional[RateLimitResult]) -> Dict[str, str]:
    if result is None:
        return {}
    return {
        "X-RateLimit-Limit": str(result.max_requests),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_in_ms),
    }


async def _parse_json_body(request: Request) -> Any:
    raw = await request.body()
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        raise ValidationError(code=ErrorCode.INVALID_JSON)


def _validate(schema: Type[BaseModel], data: Any, message: Optional[str]) -> BaseModel:
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise validation_error_from(e, message)


# ============================================================
# DECORATOR
# ============================================================

def with_api(
    auth: str = AUTH_NONE,
    rate_limit: Optional[str] = None,
    rate_limit_config: Optional[RateLimitConfig] = None,
    body_schema: Optional[Type[BaseModel]] = None,
    query_schema: Optional[Type[BaseModel]] = None,
    params_schema: Optional[Type[BaseModel]] = None,
    error_messages: Optional[Dict[str, str]] = None,
    include_rate_limit_headers: bool = True,
):
    """
    Wrap ``handler(ctx)`` into a FastAPI endpoint taking the raw Request.

    ``error_messages`` may override ``unauthorized``, ``forbidden``,
    ``rate_limited`` and ``validation_failed``.
    """
    if auth not in (AUTH_NONE, AUTH_OPTIONAL, AUTH_REQUIRED, AUTH_ADMIN):
        raise ValueError(f"Unknown auth level: {auth}")
    messages = error_messages or {}

    def decorator(handler: Callable[[ApiContext], Any]):
        is_async = inspect.iscoroutinefunction(handler)

        async def endpoint(request: Request):
            request_id = generate_request_id()
            rate_headers: Dict[str, str] = {}

            try:
                ctx = ApiContext(
                    request=request,
                    request_id=request_id,
                    is_extension=is_extension_request(request),
                )

                # 1. Authentication
                if auth != AUTH_NONE:
                    auth_result = await run_in_threadpool(authenticate_request, request)
                    if auth_result:
                        ctx.user, ctx.token = auth_result
                    elif auth in (AUTH_REQUIRED, AUTH_ADMIN):
                        code = ErrorCode.INVALID_TOKEN if extract_token(request) else ErrorCode.UNAUTHORIZED
                        raise AuthorizationError(messages.get("unauthorized"), code=code)

                    if auth == AUTH_ADMIN and not ctx.is_admin:
                        raise ForbiddenError(messages.get("forbidden") or "Admin access required")

                # 2. Rate limiting
                if rate_limit:
                    identifier = ctx.uid or get_client_ip(request)
                    result = check_rate_limit(identifier, rate_limit, rate_limit_config)
                    ctx.rate_limit = result
                    if not result.allowed:
                        headers = {}
                        if include_rate_limit_headers:
                            headers = {
                                "X-RateLimit-Remaining": "0",
                                "X-RateLimit-Reset": str(result.reset_in_ms),
                            }
                        error = RateLimitError(
                            messages.get("rate_limited") or "Rate limit exceeded. Please try again later.",
                            retry_after=result.retry_after,
                        )
                        return error_response(error, request_id, headers)
                    if include_rate_limit_headers:
                        rate_headers = _rate_limit_headers(result)

                validation_message = messages.get("validation_failed")

                # 3. Query
                if query_schema is not None:
                    ctx.query = _validate(query_schema, dict(request.query_params), validation_message)

                # 4. Body
                if body_schema is not None and request.method in BODY_METHODS:
                    data = await _parse_json_body(request)
                    ctx.body = _validate(body_schema, data, validation_message)

                # 5. Route params
                if params_schema is not None:
                    ctx.params = _validate(params_schema, dict(request.path_params), validation_message)
                else:
                    ctx.params = dict(request.path_params)

                # 6. Handler
                if is_async:
                    result = await handler(ctx)
                else:
                    result = await run_in_threadpool(handler, ctx)

            except Exception as exc:
                error = map_exception(exc, request_id)
                if error.status_code >= 500:
                    logger.error("[%s] %s %s -> %s %s", request_id, request.method,
                                 request.url.path, error.status_code, error.code)
                return error_response(error, request_id, rate_headers)

            # 7. Envelope
            if isinstance(result, Response):
                result.headers.setdefault("X-Request-ID", request_id)
                return result

            if isinstance(result, ApiResult):
                headers = dict(rate_headers)
                headers.update(result.headers)
                return success_response(result.data, request_id, result.message, result.status_code, headers)

            return success_response(result, request_id, headers=rate_headers)

        # No functools.wraps: FastAPI would read the handler's signature via
        # __wrapped__ and treat ``ctx`` as a query parameter.
        endpoint.__name__ = handler.__name__
        endpoint.__doc__ = handler.__doc__
        endpoint.__module__ = handler.__module__
        return endpoint

    return decorator


def with_public_api(**options):
    return with_api(auth=AUTH_NONE, **options)


def with_authenticated_api(**options):
    return with_api(auth=AUTH_REQUIRED, **options)


def with_admin_api(**options):
    return with_api(auth=AUTH_ADMIN, **options)
