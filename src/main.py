"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import settings
from src.cc_common.errors import AppError, InternalError, InvalidRequestError
from src.cc_common.response import error_response
from src.cc_gateway.middleware.request_log import RequestLogMiddleware
from src.cc_ledger.api.router import router as balance_router
from src.cc_market.api.router import router as marketplace_router
from src.container import ServiceContainer, build_container
from src.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: reload marketplace collections. Shutdown: close the content store."""
    container: ServiceContainer = app.state.container
    if container.settings.HYDRATE_ON_STARTUP:
        await container.marketplace.hydrate()
    yield
    await container.content_store.close()


def _error_json(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, getattr(request.state, "request_id", None))
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(by_alias=True),
    )


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    # Built eagerly so the app is usable even when lifespan does not run
    app.state.container = container or build_container(settings)

    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "x-admin-token"],
        max_age=86400,
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return _error_json(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            detail = f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", "")
        else:
            detail = "Invalid request"
        return _error_json(request, InvalidRequestError(detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_json(request, InternalError())

    prefix = settings.API_PREFIX
    app.include_router(balance_router, prefix=prefix)
    app.include_router(marketplace_router, prefix=prefix)

    @app.get(f"{prefix}/ping")
    async def ping() -> dict[str, str]:
        return {"message": settings.PING_MESSAGE}

    return app


app = create_app()
