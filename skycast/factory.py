from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.trustedhost import TrustedHostMiddleware

from skycast.api.router import api_router
from skycast.clients.weatherapi import WeatherApiClient
from skycast.core.config import Settings, load_settings
from skycast.core.errors import SkyCastError
from skycast.core.logging import configure_logging
from skycast.services.gateway import ResponseCache

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.weather_api_client = WeatherApiClient(
            api_key=settings.weather_api_key,
            timeout_seconds=settings.weather_timeout_seconds,
            base_url=settings.api_base_url,
        )
        logger.info(
            "Weather gateway ready (provider key %s, cache ttl %ss)",
            "configured" if settings.weather_api_key else "missing",
            settings.cache_ttl_seconds,
        )
        if not settings.tile_api_key:
            logger.warning("Tile API key is missing; precipitation tiles will not load")
        yield
        app.state.weather_api_client.close()

    docs_enabled = settings.docs_enabled and not settings.is_production
    app = FastAPI(
        title="SkyCast Weather Gateway",
        version="0.1.0",
        debug=settings.debug,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.response_cache = ResponseCache(ttl_seconds=settings.cache_ttl_seconds)

    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    if settings.trusted_hosts:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)

    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        if request.query_params:
            logger.debug("Query params: %s", dict(request.query_params))
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if settings.is_production:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )
        return response

    @app.exception_handler(SkyCastError)
    async def skycast_error(request: Request, exc: SkyCastError) -> JSONResponse:
        logger.warning(
            "%s %s failed with %d: %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def invalid_params(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        field = ".".join(str(p) for p in errors[0].get("loc", ())[1:]) if errors else ""
        message = f"Invalid parameter: {field}" if field else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            logger.info("404 - Endpoint not found: %s %s", request.method, request.url.path)
            return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
        return JSONResponse(
            status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Server error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/", tags=["meta"])
    def root():
        return {"name": "skycast", "status": "ok"}

    app.include_router(api_router)
    return app
