"""
FastAPI application factory.

* Registers routes for trips and admin.
* Creates the database tables on startup via lifespan events.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from tapfare.api.middleware import limiter
from tapfare.api.routes import admin, trips
from tapfare.config import settings
from tapfare.infrastructure.database import init_models

logging.basicConfig(level=settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Make sure the runs / trips tables exist before serving."""
    await init_models()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Tap Fare Processing API",
        description=(
            "Pairs smart-card tap-on / tap-off events into trips and prices "
            "them.  Completed, cancelled and incomplete trips are written "
            "to a trips file and stored per processing run."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Routers
    app.include_router(trips.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
