"""
FastAPI application factory.

* Registers routes for errands and admin.
* Maps ``ErrandError`` to ``{code, message}`` JSON with its HTTP status.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from errandhub.api.middleware import limiter
from errandhub.api.routes import admin, errands
from errandhub.domain.errors import ErrandError
from errandhub.infrastructure.database import engine

logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release pooled DB connections on shutdown."""
    yield
    await engine.dispose()


async def errand_error_handler(request: Request, exc: ErrandError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_dict(), headers=headers
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="ErrandHub API",
        description=(
            "Two-sided errand marketplace.  Customers post errands; runners "
            "accept, start and complete them.  Pricing is fixed at creation "
            "and re-derived at completion."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(ErrandError, errand_error_handler)

    # Routers
    app.include_router(errands.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
