"""Health check endpoints for liveness and readiness probes."""

from fastapi import APIRouter

from imgbed.api.dependencies import BackendRegistryDep, RandomCacheDep
from imgbed.schemas.health import HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get("/ready", response_model=ReadinessResponse)
def readiness_check(
    registry: BackendRegistryDep, random_cache: RandomCacheDep
) -> ReadinessResponse:
    """Return loaded uploader count and random pool size (503 before startup completes)."""
    return ReadinessResponse(
        backends_loaded=len(registry), random_pool_size=len(random_cache)
    )
