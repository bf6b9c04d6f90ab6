from __future__ import annotations

import logging
import os
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from coinboard.api.health import router as health_router
from coinboard.api.market import router as market_router
from coinboard.config.logging import configure_logging
from coinboard.config.settings import Settings, get_settings, parse_csv
from coinboard.services.errors import INTERNAL, NOT_FOUND, VALIDATION, ApiError, UpstreamError
from coinboard.utils.time import utcnow_iso

logger = logging.getLogger("coinboard.api")


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    status: dict[str, Any] = {
        "timestamp": utcnow_iso(),
        "error_code": status_code,
        "error_message": message,
        "code": code,
    }
    if details:
        status["details"] = details
    return JSONResponse(status_code=status_code, content={"status": status, "data": None})


async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    if isinstance(exc, UpstreamError):
        logger.error(
            "upstream failure | %s %s | upstream_status=%s",
            request.method,
            request.url.path,
            exc.upstream_status,
        )
    return _error_response(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = [
        {"parameter": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg")}
        for err in exc.errors()
    ]
    first = problems[0] if problems else {"parameter": "", "message": "invalid request"}
    return _error_response(
        status_code=400,
        code=VALIDATION,
        message=f"Invalid value for '{first['parameter']}': {first['message']}",
        details={"errors": problems},
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return _error_response(
            status_code=404,
            code=NOT_FOUND,
            message=f"Route not found: {request.method} {request.url.path}",
        )
    return _error_response(
        status_code=exc.status_code,
        code=INTERNAL if exc.status_code >= 500 else VALIDATION,
        message=str(exc.detail),
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error | %s %s", request.method, request.url.path)
    err = ApiError.internal()
    return _error_response(status_code=err.status_code, code=err.code, message=err.message)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; without ``settings`` they are read at startup."""
    app = FastAPI(title="Coinboard Market API")

    origins = settings.CORS_ORIGINS if settings else parse_csv(os.getenv("CORS_ORIGINS"), ["*"])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(market_router)

    if settings is not None:
        app.dependency_overrides[get_settings] = lambda: settings

    @app.on_event("startup")
    async def on_startup() -> None:
        # Refuse to start without an API key.
        active = settings or get_settings()
        configure_logging(active.LOG_LEVEL)
        logger.info("coinboard started | upstream=%s convert=%s", active.CMC_BASE_URL, active.CMC_CONVERT)

    return app


app = create_app()
