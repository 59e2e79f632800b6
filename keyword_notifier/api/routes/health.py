"""
Health check endpoint.
"""

import time

import structlog
from fastapi import APIRouter, Depends

from keyword_notifier.api.dependencies import get_item_store, get_scheduler
from keyword_notifier.api.models import ComponentHealth, HealthResponse
from keyword_notifier.services.scheduler import Scheduler
from keyword_notifier.storage.base import ItemStore, StoreError

router = APIRouter()
logger = structlog.get_logger(__name__)


async def _check_store(store: ItemStore) -> ComponentHealth:
    """Check store connectivity and measure latency."""
    start = time.perf_counter()
    try:
        healthy = await store.health_check()
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="healthy" if healthy else "unhealthy",
            latency_ms=round(latency_ms, 2),
        )
    except Exception as e:
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="unhealthy",
            latency_ms=round(latency_ms, 2),
            details={"error": str(e)},
        )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Check the item store and, when running in-process, the scheduler.",
)
async def health_check(
    store: ItemStore = Depends(get_item_store),
    scheduler: Scheduler | None = Depends(get_scheduler),
) -> HealthResponse:
    """
    Check service health.

    Status logic:
    - unhealthy: the store is unreachable
    - healthy: otherwise
    """
    store_health = await _check_store(store)

    counts: dict[str, int] = {}
    if store_health.status == "healthy":
        try:
            counts = await store.count_by_source()
        except StoreError as e:
            logger.warning("Failed to count items", error=str(e))

    return HealthResponse(
        status=store_health.status,
        store=store_health,
        counts=counts,
        scheduler=scheduler.status() if scheduler else None,
    )
