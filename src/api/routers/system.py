"""
System API Router - Status, rate limit and usage monitoring
"""

import logging
import time
from typing import List

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_app_settings, get_rate_limiters, get_usage_tracker
from api.exceptions import safe_endpoint
from schemas import RateLimitStatus, SystemStatus, UsageStatistics

logger = logging.getLogger(__name__)

router = APIRouter()

# Track start time
START_TIME = time.time()


@router.get("/health")
@safe_endpoint
async def get_health(
    request: Request,
    settings=Depends(get_app_settings),
    rate_limiters=Depends(get_rate_limiters),
) -> SystemStatus:
    """Get system status"""
    return SystemStatus(
        status="healthy",
        uptime=time.time() - START_TIME,
        environment=settings.environment,
        rate_limit_identities=len(rate_limiters.identities()),
        generation_enabled=getattr(request.app.state, "generation_service", None) is not None,
    )


@router.get("/rate-limits")
@safe_endpoint
async def get_rate_limits(rate_limiters=Depends(get_rate_limiters)) -> List[RateLimitStatus]:
    """Get window status of every rate-limit identity"""
    return [RateLimitStatus(**status) for status in rate_limiters.snapshot().values()]


@router.post("/rate-limits/reset")
@safe_endpoint
async def reset_rate_limits(rate_limiters=Depends(get_rate_limiters)) -> List[RateLimitStatus]:
    """Reset all rate-limit windows"""
    rate_limiters.reset()
    return [RateLimitStatus(**status) for status in rate_limiters.snapshot().values()]


@router.get("/usage")
@safe_endpoint
async def get_usage(usage_tracker=Depends(get_usage_tracker)) -> UsageStatistics:
    """Get API usage statistics"""
    return UsageStatistics(**usage_tracker.get_statistics())


@router.get("/config")
@safe_endpoint
async def get_config(settings=Depends(get_app_settings)) -> dict:
    """Get active configuration"""
    config = settings.to_dict()
    config.pop("config_file", None)
    return config
