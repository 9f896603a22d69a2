"""Liveness and readiness probes."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from storefront.catalog.clauses import IdIn
from storefront.catalog.store import get_catalog_store
from storefront.domain.exceptions import DataSourceUnavailableError
from storefront.infrastructure.config import settings

router = APIRouter()

SERVICE_NAME = "storefront-api"


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report that the process is up, without touching the catalog."""
    return HealthResponse(status="healthy", service=SERVICE_NAME, version=settings.api_version)


@router.get("/ready", response_model=None)
async def readiness_check() -> dict[str, str] | JSONResponse:
    """Probe the catalog with an empty lookup.

    Returns:
        ``{"status": "ready"}``, or a 503 carrying the failure reason when
        the catalog store cannot be queried.
    """
    try:
        await get_catalog_store().find_products([IdIn(frozenset())])
    except DataSourceUnavailableError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "reason": e.reason},
        )
    return {"status": "ready"}
