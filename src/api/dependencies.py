"""
Shared FastAPI dependencies for the Craftus selection API.
Session-scoped components are created once in the lifespan handler and read
from app state here.
"""

import logging

from fastapi import HTTPException, Request

from common.exceptions import GenerationNotConfiguredError
from config import Settings
from core.dispatch import ApiUsageTracker, RateLimiterRegistry
from services import GenerationService, SelectionService

logger = logging.getLogger(__name__)


def _from_state(request: Request, name: str):
    try:
        return getattr(request.app.state, name)
    except AttributeError as e:
        logger.error(f"{name} not initialized in app state: {e}")
        raise HTTPException(status_code=500, detail=f"Internal server error: {name} not initialized")


def get_selection_service(request: Request) -> SelectionService:
    """Get SelectionService instance."""
    return _from_state(request, "selection_service")


def get_generation_service(request: Request) -> GenerationService:
    """
    Get GenerationService instance.

    Raises:
        GenerationNotConfiguredError: If no generation client is attached
    """
    service = _from_state(request, "generation_service")
    if service is None:
        raise GenerationNotConfiguredError()
    return service


def get_rate_limiters(request: Request) -> RateLimiterRegistry:
    """Get the session rate limiter registry."""
    return _from_state(request, "rate_limiters")


def get_usage_tracker(request: Request) -> ApiUsageTracker:
    """Get the session API usage tracker."""
    return _from_state(request, "usage_tracker")


def get_app_settings(request: Request) -> Settings:
    """Get application settings."""
    return _from_state(request, "settings")
