"""
Exception handlers

Every failure leaves the API in one flat shape:

    {"error": "Post 'hello-world' not found",
     "errorCode": "RESOURCE_POST_NOT_FOUND",
     "details": {"resource_type": "Post", "resource_id": "hello-world"},
     "path": "/api/posts/hello-world/view"}

``details`` and ``errorCode`` are omitted when empty.
"""

import logging
from typing import Any, Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from blog.exceptions import BlogError, ErrorCode
from blog.middleware.logging import get_request_id

logger = logging.getLogger(__name__)

# errorCode for framework-raised HTTP errors (404 on unknown routes, 405, ...)
HTTP_ERROR_CODES = {
    400: ErrorCode.VALIDATION_FAILED,
    401: ErrorCode.AUTH_FAILED,
    403: ErrorCode.AUTH_PERMISSION_DENIED,
    404: ErrorCode.RESOURCE_NOT_FOUND,
    409: ErrorCode.VALIDATION_DUPLICATE_RESOURCE,
    422: ErrorCode.VALIDATION_FAILED,
    500: ErrorCode.INTERNAL_ERROR,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}


def error_response(
    request: Request,
    status_code: int,
    message: str,
    error_code: ErrorCode,
    details: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    body: dict[str, Any] = {"error": message, "errorCode": error_code.value}
    if details:
        body["details"] = details
    body["path"] = request.url.path
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def handle_blog_error(request: Request, exc: BlogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code.value} on {request.url.path}: {exc.message}", extra={"error_code": exc.error_code.value})
    else:
        logger.info(f"{exc.error_code.value} on {request.url.path}", extra={"error_code": exc.error_code.value})
    return error_response(request, exc.status_code, exc.message, exc.error_code, exc.details)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.warning(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")
    return error_response(
        request,
        exc.status_code,
        str(exc.detail),
        HTTP_ERROR_CODES.get(exc.status_code, ErrorCode.UNKNOWN_ERROR),
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """Report each failing field as ``{field, message, type}``."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.info(f"Validation failed on {request.url.path}: {len(errors)} error(s)")
    return error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        ErrorCode.VALIDATION_FAILED,
        {"validation_errors": errors},
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
        ErrorCode.INTERNAL_ERROR,
        {"request_id": get_request_id()},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BlogError, handle_blog_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(PydanticValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
