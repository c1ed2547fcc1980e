"""
Request context and global error handling for the Job Portal API.

RequestContextMiddleware stamps every request with an id, times it and writes
one access line. ExceptionHandlerMiddleware turns anything a route lets escape
into the {"success": false, ...} envelope the API uses for errors.
"""
import time
import traceback
import uuid
from datetime import datetime
from typing import Any, Dict

from fastapi import Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import ValidationError

from app.utils.exceptions import JobPortalBaseException, map_to_http_exception
from app.utils.logging_config import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if request_id is None:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
    return request_id


def create_error_response(request_id: str, status_code: int, detail: Any) -> JSONResponse:
    """Build the error envelope; detail may be a message or a dict of extra fields"""
    if isinstance(detail, str):
        detail = {"message": detail}
    elif not isinstance(detail, dict):
        detail = {"message": str(detail)}

    body = {
        "success": False,
        "status_code": status_code,
        "request_id": request_id,
        "timestamp": datetime.utcnow().isoformat(),
        **detail
    }
    return JSONResponse(status_code=status_code, content=body, headers={REQUEST_ID_HEADER: request_id})


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Render exceptions that escape the routes as error envelopes"""

    async def dispatch(self, request: Request, call_next):
        request_id = _request_id(request)
        where = f"{request.method} {request.url.path}"
        context: Dict[str, Any] = {"request_id": request_id, "user_id": getattr(request.state, "user_id", None)}

        try:
            return await call_next(request)

        except JobPortalBaseException as exc:
            logger.error(
                f"{exc.__class__.__name__} in {where}: {exc.message}",
                extra={**context, "error_code": exc.error_code, "details": exc.details}
            )
            http_exc = map_to_http_exception(exc)
            return create_error_response(request_id, http_exc.status_code, http_exc.detail)

        except RequestValidationError as exc:
            logger.warning(f"Invalid request body for {where}", extra={**context, "validation_errors": exc.errors()})
            return create_error_response(request_id, 422, {
                "message": "Request data validation failed",
                "validation_errors": jsonable_encoder(exc.errors())
            })

        except ValidationError as exc:
            # raised while building a stored document from request data
            logger.warning(f"Document validation failed in {where}: {exc}", extra=context)
            return create_error_response(request_id, 400, {
                "message": "Invalid data format or values",
                "validation_errors": exc.errors(include_url=False, include_context=False)
            })

        except HTTPException as exc:
            logger.warning(f"HTTP {exc.status_code} in {where}: {exc.detail}", extra=context)
            return create_error_response(request_id, exc.status_code, exc.detail)

        except Exception as exc:
            logger.error(
                f"Unhandled {exc.__class__.__name__} in {where}: {exc}",
                extra={**context, "traceback": traceback.format_exc()},
                exc_info=True
            )
            return create_error_response(request_id, 500, {
                "message": "An unexpected error occurred. Please try again later."
            })


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request id, timing header and one access log line per request"""

    # credentials travel in these bodies; only the path is logged for them
    SENSITIVE_PATHS = ("/api/auth/login", "/api/auth/register")

    def __init__(self, app, slow_request_threshold: float = 2.0, slow_ai_threshold: float = 10.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold
        self.slow_ai_threshold = slow_ai_threshold

    def threshold_for(self, path: str) -> float:
        # AI routes wait on the generative API
        return self.slow_ai_threshold if path.startswith("/api/ai/") else self.slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        request_id = _request_id(request)
        path = request.url.path
        started = time.perf_counter()

        if path not in self.SENSITIVE_PATHS:
            logger.debug(
                f"{request.method} {path} started",
                extra={"request_id": request_id, "query_params": dict(request.query_params)}
            )

        response = await call_next(request)
        elapsed = time.perf_counter() - started

        line = f"{request.method} {path} -> {response.status_code} in {elapsed:.3f}s"
        extra = {
            "request_id": request_id,
            "status_code": response.status_code,
            "processing_time": elapsed,
            "user_id": getattr(request.state, "user_id", None),
            "client_ip": request.client.host if request.client else "unknown"
        }
        if elapsed > self.threshold_for(path):
            logger.warning(f"Slow request: {line}", extra=extra)
        else:
            logger.info(line, extra=extra)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Processing-Time"] = f"{elapsed:.3f}"
        return response
