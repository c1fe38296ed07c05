"""PhoneDesk — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from phonedesk.adapters.persistence.database import engine
from phonedesk.config import settings
from phonedesk.domain.errors import DomainError
from phonedesk.infrastructure.api.routes_analytics import router as analytics_router
from phonedesk.infrastructure.api.routes_assignments import router as assignments_router
from phonedesk.infrastructure.api.routes_distributors import router as distributors_router
from phonedesk.infrastructure.api.routes_health import router as health_router
from phonedesk.infrastructure.api.routes_iam import router as iam_router
from phonedesk.infrastructure.api.routes_sims import router as sims_router
from phonedesk.infrastructure.api.routes_stock import router as stock_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except Exception as e:
        logger.warning("Database not available on startup: %s", e)
    yield
    await engine.dispose()


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid data",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _domain_error_handler(request: Request, exc: DomainError):
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content={"success": False, "error": exc.message},
    )


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s | %(message)s",
    )

    app = FastAPI(
        title="PhoneDesk: device custody tracking",
        description="Corporate phone stock, assignments, shipping and returns",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(DomainError, _domain_error_handler)

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(iam_router, prefix="/api")
    app.include_router(stock_router, prefix="/api")
    app.include_router(sims_router, prefix="/api")
    app.include_router(distributors_router, prefix="/api")
    app.include_router(assignments_router, prefix="/api")
    app.include_router(analytics_router, prefix="/api")

    return app


app = create_app()
