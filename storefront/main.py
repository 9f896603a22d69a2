"""Storefront query service entry point.

Builds the FastAPI application: search and recommendation routers,
health probes, the middleware stack and the mapping from domain errors
to the JSON error envelope.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.api.health import router as health_router
from storefront.api.middleware import error_response, internal_error, setup_middleware
from storefront.api.recommendations import router as recommendations_router
from storefront.api.search import router as search_router
from storefront.catalog.store import get_catalog_store
from storefront.domain.exceptions import (
    DataSourceUnavailableError,
    DomainError,
    UnknownRecommendationTypeError,
)
from storefront.infrastructure.config import settings
from storefront.infrastructure.database import create_tables, dispose_engine
from storefront.infrastructure.logging import configure_logging
from storefront.recommendation.history import get_history_store

logger = structlog.get_logger()

# Most specific first; DomainError itself is the catch-all.
DOMAIN_ERROR_CODES: list[tuple[type[DomainError], int, str]] = [
    (DataSourceUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE, "DATA_SOURCE_UNAVAILABLE"),
    (UnknownRecommendationTypeError, status.HTTP_404_NOT_FOUND, "UNKNOWN_RECOMMENDATION_TYPE"),
    (DomainError, status.HTTP_400_BAD_REQUEST, "DOMAIN_ERROR"),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Prepare the catalog and history stores, release the engine on exit."""
    configure_logging(settings)
    uses_database = settings.catalog_backend == "database"
    log = logger.bind(version=settings.api_version, catalog_backend=settings.catalog_backend)
    log.info("Storefront query API starting", debug=settings.debug)

    if uses_database:
        await create_tables()
    get_catalog_store()
    get_history_store()

    yield

    log.info("Storefront query API stopping")
    if uses_database:
        await dispose_engine()


# ============================================================================
# Exception Handlers
# ============================================================================


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    """Render a domain error with the status its type maps to."""
    for error_type, status_code, error_code in DOMAIN_ERROR_CODES:
        if isinstance(exc, error_type):
            break

    if isinstance(exc, DataSourceUnavailableError):
        logger.error(
            "Data source unavailable",
            path=request.url.path,
            source=exc.source,
            operation=exc.operation,
            error=exc.reason,
        )
    return error_response(request, status_code, error_code, exc.message, exc.details)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap router-level HTTP errors, keeping structured details if given."""
    detail = exc.detail if isinstance(exc.detail, dict) else {"message": str(exc.detail)}
    return error_response(
        request,
        exc.status_code,
        detail.get("error_code", "ERROR"),
        detail.get("message", str(exc.detail)),
        detail.get("details"),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed query strings and bodies."""
    return error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        jsonable_encoder(exc.errors()),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    return internal_error(request, exc)


def create_app() -> FastAPI:
    """Assemble the storefront application."""
    application = FastAPI(
        title="Storefront Query API",
        description="Product search and recommendations for the cosmetics storefront",
        version=settings.api_version,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    setup_middleware(application)

    application.add_exception_handler(DomainError, handle_domain_error)
    application.add_exception_handler(StarletteHTTPException, handle_http_error)
    application.add_exception_handler(RequestValidationError, handle_validation_error)
    application.add_exception_handler(Exception, handle_unexpected_error)

    application.include_router(health_router, tags=["Health"])
    application.include_router(search_router)
    application.include_router(recommendations_router)
    return application


app = create_app()
