"""
FastAPI application factory.

* Registers routes for requesters, admins and the completion simulator.
* Maps domain errors to typed JSON responses.
* Starts / stops the auto-completion worker via lifespan events when
  ``AUTO_COMPLETE_ENABLED`` is set.
* Applies rate-limiting.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.errors import register_error_handlers
from src.api.middleware import limiter
from src.api.routes import admin, rides, simulation
from src.config import settings
from src.infrastructure.redis_client import close_redis
from src.workers import completer as _completer

logging.basicConfig(level=settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the auto-completion worker on startup; stop on shutdown."""
    if settings.auto_complete_enabled:
        await _completer.start_completion_loop()
    yield
    if settings.auto_complete_enabled:
        await _completer.stop_completion_loop()
        await close_redis()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Corporate Ride Scheduling API",
        description=(
            "Employees request rides, administrators approve, reject or "
            "cancel them with a full audit trail, and a dashboard reports "
            "on ride activity."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_error_handlers(app)

    # Routers
    app.include_router(rides.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")
    app.include_router(simulation.router, prefix="/api/v1")

    return app
