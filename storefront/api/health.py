"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from storefront.domain.exceptions import StoreUnavailableError

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name and version.
    """
    settings = request.app.state.settings

    return HealthResponse(
        status="healthy",
        service="storefront-catalog",
        version=settings.api_version,
    )


@router.get("/ready", responses={503: {"description": "Document store unreachable"}})
async def readiness_check(request: Request) -> JSONResponse:
    """Check if service is ready to accept requests.

    Runs a one-document query against the store.

    Returns:
        Readiness status.
    """
    try:
        await request.app.state.catalog_service.check_store()
    except StoreUnavailableError as e:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "reason": e.message},
        )
    return JSONResponse(content={"status": "ready"})
