# backend/hris/errors.py
"""
Failure kinds surfaced by the API.

Every kind is an ``HTTPException`` so routers can raise them the same way
they raise plain ones; the handlers installed by ``install_error_handlers``
render them as ``{"message": ..., "details": ...}``.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or type(self).message
        self.details = details
        super().__init__(status_code=type(self).status_code, detail=self.message)


class Unauthorized(ApiError):
    status_code = 401
    message = "Not authenticated"


class Forbidden(ApiError):
    status_code = 403
    message = "Forbidden"


class ValidationFailed(ApiError):
    status_code = 400
    message = "Validation failed"

    def __init__(self, details: List[dict], message: Optional[str] = None):
        super().__init__(message, details=details)


class NotFound(ApiError):
    status_code = 404
    message = "Not found"


class Conflict(ApiError):
    status_code = 409
    message = "Conflict"


class MethodNotAllowed(ApiError):
    status_code = 405

    def __init__(self, method: str):
        super().__init__(f"Method {method} not allowed")


class StorageError(ApiError):
    status_code = 500
    message = "Storage error"


def _body(message: str, details: Any = None) -> dict:
    body = {"message": message}
    if details is not None:
        body["details"] = details
    return body


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error("[%s %s] %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_body(exc.message, exc.details))

    @app.exception_handler(RequestValidationError)
    async def _request_invalid(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err["loc"][1:]) or "body", "reason": err["type"]}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content=_body(ValidationFailed.message, details))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        # routing-level 405 for verbs a route does not declare
        if exc.status_code == 405:
            return JSONResponse(
                status_code=405,
                content=_body(f"Method {request.method} not allowed"),
                headers=exc.headers,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_body(str(exc.detail)),
            headers=exc.headers,
        )
