"""
Health check endpoints.

Liveness and readiness probes. Readiness checks that the database is
reachable and the catalog tables exist.
"""

import logging

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import func, select

from cardshop.api.deps import SessionDep
from cardshop.config import settings
from cardshop.models.db import ProductDB

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str = settings.app_name
    database: str | None = None
    products: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(response: Response, session: SessionDep) -> HealthResponse:
    """
    Readiness probe.

    Counts catalog products. Returns 503 if the database is unavailable.
    """
    try:
        products = (await session.execute(select(func.count(ProductDB.id)))).scalar_one()
    except Exception as e:
        logger.warning("Readiness check failed: %s", e)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected")
    return HealthResponse(status="ready", database="connected", products=int(products))
