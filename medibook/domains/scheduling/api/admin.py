"""
Admin Routes

Payout sweep trigger, platform commission, cache metrics and cache clearing.
"""

import logging

from fastapi import APIRouter, Depends

from medibook.core.domain import ValidationException
from medibook.domains.scheduling.api.dependencies import ContainerDep, verify_cron_secret
from medibook.domains.scheduling.api.schemas import (
    CacheClearRequest,
    CacheClearResponse,
    CacheMetricsResponse,
    CommissionRequest,
    CommissionResponse,
    PayoutSweepResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"])


@router.post("/payouts/sweep", response_model=PayoutSweepResponse, dependencies=[Depends(verify_cron_secret)])
async def run_payout_sweep(container: ContainerDep):
    """Run one payout sweep now. Safe to call while the scheduler is running."""
    result = await container.run_payout_sweep.execute()
    logger.info(f"Manual payout sweep: {result.to_dict()}")
    return PayoutSweepResponse(**result.to_dict())


@router.get("/settings/commission", response_model=CommissionResponse)
async def get_commission(container: ContainerDep):
    percentage = await container.get_commission_percentage.execute()
    return CommissionResponse(commission_percentage=percentage)


@router.put("/settings/commission", response_model=CommissionResponse)
async def update_commission(request: CommissionRequest, container: ContainerDep):
    """Applies to settlements created from now on."""
    percentage = await container.update_commission_percentage.execute(request.commission_percentage)
    return CommissionResponse(commission_percentage=percentage)


@router.get("/cache/metrics", response_model=CacheMetricsResponse)
async def get_cache_metrics(container: ContainerDep):
    return CacheMetricsResponse(enabled=container.cache.enabled, metrics=container.cache_metrics.to_dict())


@router.post("/cache/clear", response_model=CacheClearResponse, dependencies=[Depends(verify_cron_secret)])
async def clear_cache(request: CacheClearRequest, container: ContainerDep):
    """Clear everything (and reset metrics), one pattern, or one key."""
    cache, keys = container.cache, container.keys
    if request.all:
        removed = await cache.invalidate_pattern(keys.all())
        container.cache_metrics.reset()
        logger.info(f"Cache cleared: {removed} keys removed")
        return CacheClearResponse(message="All cache cleared", removed=removed)
    if request.pattern:
        removed = await cache.invalidate_pattern(keys.build(request.pattern))
        return CacheClearResponse(message=f"Cache pattern '{request.pattern}' cleared", removed=removed)
    if request.key:
        await cache.invalidate(keys.build(request.key))
        return CacheClearResponse(message=f"Cache key '{request.key}' cleared")
    raise ValidationException("Provide 'key', 'pattern' or 'all'", code="INVALID_CACHE_CLEAR_REQUEST")
