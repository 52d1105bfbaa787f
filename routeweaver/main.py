"""Main FastAPI application."""
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from routeweaver.config import Settings, settings as default_settings
from routeweaver.database import build_engine, build_sessionmaker, init_models
from routeweaver.logging_config import setup_logging
from routeweaver.routers import destinations, geocoding, places, routes, saved_routes, suggestions, travel
from routeweaver.services.cache import build_cache
from routeweaver.services.destinations import PopularDestinationService
from routeweaver.services.geocoder import Geocoder
from routeweaver.services.google_places import GooglePlacesClient
from routeweaver.services.nominatim import NominatimClient
from routeweaver.services.rate_limiter import FixedWindowRateLimiter
from routeweaver.services.routing import build_routing_provider
from routeweaver.services.suggestions import SuggestionEngine
from routeweaver.services.text_generation import GeminiTextGenerator

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def _init_services(app: FastAPI, settings: Settings) -> None:
    """Construct process-wide collaborators once and hang them on ``app.state``."""
    state = app.state
    state.settings = settings
    state.text_generator = GeminiTextGenerator.from_settings(settings)
    state.google = GooglePlacesClient.from_settings(settings)
    state.nominatim = NominatimClient.from_settings(settings)
    state.routing_provider = build_routing_provider(settings)
    state.cache = build_cache(settings)
    state.rate_limiter = FixedWindowRateLimiter(
        settings.rate_limit_max_requests,
        settings.rate_limit_window_seconds,
    )
    state.geocoder = Geocoder(state.google, state.nominatim, state.text_generator, settings.region_bounds)
    state.suggestion_engine = SuggestionEngine(
        state.text_generator,
        settings.region_bounds,
        clamp_tolerance_deg=settings.bounds_clamp_tolerance_deg,
        corridor_km=settings.route_corridor_km,
    )
    state.destinations = PopularDestinationService(
        state.google,
        state.geocoder,
        state.cache,
        ttl_seconds=settings.cache_ttl_seconds,
    )
    state.engine = build_engine(settings.database_url)
    state.sessionmaker = build_sessionmaker(state.engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models(app.state.engine)
    logger.info(f"RouteWeaver API started ({app.state.settings.environment})")
    yield
    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.log_level, settings.environment)

    app = FastAPI(
        title="RouteWeaver API",
        description="Backend API for RouteWeaver - road trip planning with place suggestions",
        version="1.0.0",
        docs_url="/docs" if settings.environment == "development" else None,
        redoc_url="/redoc" if settings.environment == "development" else None,
        lifespan=lifespan,
    )
    _init_services(app, settings)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            settings.frontend_url,
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        elapsed = time.time() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed:.3f}s)")
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))
        return JSONResponse(status_code=422, content={"success": False, "error": message})

    # Include routers
    for module in (suggestions, routes, geocoding, travel, destinations, places, saved_routes):
        app.include_router(module.router, prefix=API_PREFIX)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Welcome to RouteWeaver API",
            "version": "1.0.0",
            "docs": "/docs" if settings.environment == "development" else "disabled",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        cache_ok = app.state.cache.ping()
        return {"status": "healthy", "cache": "connected" if cache_ok else "unavailable"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "routeweaver.main:app",
        host=default_settings.api_host,
        port=default_settings.api_port,
        reload=default_settings.api_reload,
    )
