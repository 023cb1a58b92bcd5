"""FastAPI application issuing Agora RTC access tokens."""
from __future__ import annotations

import logging
import sys
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import Settings, get_settings, load_settings
from .core.errors import ConfigMissingError, MissingChannelError, SigningFailedError
from .routers import rtc as rtc_router
from .services import rtc as rtc_service

logger = logging.getLogger(__name__)

SERVICE_NAME = "Agora Token Server"
AVAILABLE_ROUTES = ["/", "/token", "/test"]
ENDPOINTS = [
    "GET /token?channel=CHANNEL_NAME&uid=USER_ID",
    "POST /token (body: {channelName: '...', uid: '...'})",
]
SELF_TEST_CHANNEL = "test-channel"
SELF_TEST_UID = 123


def run_self_test(settings: Settings) -> bool:
    """Sign a short-lived token to catch bad credentials at boot."""

    try:
        token = rtc_service.agora_signer(
            settings.app_id,
            settings.app_certificate,
            SELF_TEST_CHANNEL,
            SELF_TEST_UID,
            rtc_service.ROLE_PUBLISHER,
            int(time.time()) + 3600,
        )
    except Exception as exc:  # noqa: BLE001 - a failed self-test must not stop the server
        logger.error("Startup token self-test failed: %s", exc)
        return False
    logger.info("Startup token self-test passed, token preview: %s...", token[:30])
    return True


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application around an explicit, immutable configuration."""

    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if not settings.is_production:
            run_self_test(settings)
        yield

    app = FastAPI(title=SERVICE_NAME, version="0.1.0", lifespan=lifespan)
    app.state.settings = settings

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    @app.exception_handler(MissingChannelError)
    async def missing_channel_handler(_: Request, exc: MissingChannelError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})

    @app.exception_handler(SigningFailedError)
    async def signing_failed_handler(_: Request, exc: SigningFailedError) -> JSONResponse:
        logger.error("Token generation failed: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Token generation failed", "message": str(exc)},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        messages = "; ".join(str(error.get("msg", "")) for error in exc.errors())
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid request", "message": messages},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={"error": "Route not found", "availableRoutes": AVAILABLE_ROUTES},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled server error: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error", "message": str(exc)},
        )

    @app.get("/", tags=["meta"])
    async def index() -> dict[str, object]:
        """Describe the service and whether its secrets are configured."""

        return {
            "status": "online",
            "service": SERVICE_NAME,
            "timestamp": rtc_service.to_iso8601(int(time.time())),
            "config": {
                "appId": bool(settings.app_id),
                "appCertificate": bool(settings.app_certificate),
            },
            "endpoints": ENDPOINTS,
            "documentation": "Call /token with a channel name to obtain an Agora token",
        }

    @app.head("/", tags=["meta"])
    async def index_head() -> Response:
        """Fast health checks issue HEAD /; answer with 200 to avoid noisy 405s."""

        return Response(status_code=200)

    @app.get("/test", tags=["meta"])
    async def liveness() -> dict[str, object]:
        """Simple liveness probe."""

        return {
            "message": "Server is running",
            "configCheck": {
                "appId": "OK" if settings.app_id else "MISSING",
                "certificate": "OK" if settings.app_certificate else "MISSING",
            },
        }

    app.include_router(rtc_router.router, tags=["rtc"])
    return app


def run() -> None:
    """Console entry point: load configuration and serve with uvicorn."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        settings = load_settings()
    except ConfigMissingError as exc:
        logger.error("Fatal: %s", exc)
        for name in exc.missing:
            logger.error("  %s is not set", name)
        sys.exit(1)

    logger.info("Configuration loaded, APP_ID and APP_CERTIFICATE present")
    logger.info("%s listening on port %d", SERVICE_NAME, settings.port)
    logger.info("Health check: http://localhost:%d/", settings.port)
    logger.info("Token endpoint: http://localhost:%d/token", settings.port)

    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
