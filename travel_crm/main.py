"""FastAPI application entry point.

Wiring only: logging, tracing, lifespan, exception handlers, middleware, routers.
No business logic here. See travel_crm.core.lifespan and
travel_crm.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and optionally
clear get_settings cache) before calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from travel_crm.api.v1 import api_router
from travel_crm.core.config import get_settings
from travel_crm.core.exception_handlers import register_exception_handlers
from travel_crm.core.lifespan import create_lifespan
from travel_crm.core.limiter import limiter
from travel_crm.middleware import RequestIDMiddleware, TimeoutMiddleware
from travel_crm.shared.telemetry.logging import setup_logging
from travel_crm.shared.telemetry.telemetry import TelemetryConfig, set_telemetry


def create_app() -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import)."""
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    # Middleware: last added = outermost. Order on the way in: timeout → request ID → CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)
    app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)

    app.include_router(api_router, prefix="/api/v1")

    if settings.telemetry_enabled:
        # FastAPI instrumentation adds middleware, so it runs before the app starts.
        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            enabled=True,
            environment=settings.telemetry_environment,
        )
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument_fastapi(app)

    return app


app = create_app()
