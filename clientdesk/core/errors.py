from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from clientdesk.core.config import settings

_LOG = logging.getLogger("clientdesk.errors")


class ApiError(Exception):
    """Terminal outcome of a pipeline stage, rendered as ``{error, message?, details?}``."""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str | None = None,
        *,
        details: list[dict[str, str]] | None = None,
        headers: dict[str, str] | None = None,
        extra: dict[str, Any] | None = None,
    ):
        super().__init__(message or error)
        self.status_code = status_code
        self.error = error
        self.message = message
        self.details = details
        self.headers = headers
        self.extra = extra or {}

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error}
        if self.message is not None:
            body["message"] = self.message
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


def validation_details(errors) -> list[dict[str, str]]:
    details = []
    for item in errors:
        loc = [str(part) for part in item.get("loc") or () if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc), "message": str(item.get("msg") or "Invalid value")})
    return details


def validation_error(errors) -> ApiError:
    return ApiError(
        400,
        "Validation error",
        "Request validation failed",
        details=validation_details(errors),
    )


def internal_error(exc: BaseException) -> ApiError:
    message = str(exc) if settings.is_development else "Internal server error"
    return ApiError(500, "Internal server error", message)


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=validation_error(exc.errors()).to_body())

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            _LOG.warning("404 - Route not found: %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=404,
                content={"error": "Route not found", "path": request.url.path, "method": request.method},
            )
        if exc.status_code == 405:
            return JSONResponse(
                status_code=405,
                content={"error": "Method not allowed", "path": request.url.path, "method": request.method},
                headers=getattr(exc, "headers", None),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception):
        _LOG.error(
            "Error: %s url=%s method=%s",
            exc,
            request.url.path,
            request.method,
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content=internal_error(exc).to_body())
