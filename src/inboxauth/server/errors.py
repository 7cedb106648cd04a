"""Global exception handlers rendering every error in one envelope:
``{"error": {"code", "message", "details"}, "request_id"}``.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..exceptions import InboxAuthError

_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "AUTHENTICATION_ERROR",
    403: "FORBIDDEN",
    404: "NOT_FOUND_ERROR",
    405: "METHOD_NOT_ALLOWED",
    429: "RATE_LIMIT_ERROR",
}


def _req_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", object()), "request_id", None)


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Any | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {"error": {"code": code, "message": message, "details": details}}
    rid = _req_id(request)
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    log = logging.getLogger("inboxauth.errors")

    @app.exception_handler(InboxAuthError)
    async def _inboxauth_handler(request: Request, exc: InboxAuthError):
        status_code = exc.status_code or 500
        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        return error_response(request, status_code, exc.code, exc.message, exc.details, headers)

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        code = _HTTP_CODES.get(exc.status_code, "SERVER_ERROR" if exc.status_code >= 500 else "HTTP_ERROR")
        return error_response(
            request,
            exc.status_code,
            code,
            str(exc.detail or "HTTP error"),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        return error_response(request, 422, "VALIDATION_ERROR", "Validation error", exc.errors())

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        rid = _req_id(request)
        log.exception("Unhandled error request_id=%s", rid)
        return error_response(request, 500, "SERVER_ERROR", "Internal server error")
