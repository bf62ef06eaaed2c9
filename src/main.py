"""
Craftus Selection Pipeline - Main FastAPI Application
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Add parent directory to path
sys.path.append(str(Path(__file__).parent))

from api.exceptions import register_exception_handlers  # noqa: E402
from api.routers import generation, selection, system  # noqa: E402
from common.constants import SystemConstants  # noqa: E402
from config import get_settings  # noqa: E402
from core.dispatch import (  # noqa: E402
    ApiUsageTracker,
    RateLimiterRegistry,
    RetryPolicy,
    SequentialDispatchQueue,
)
from services import (  # noqa: E402
    GeminiClient,
    GenerationClient,
    GenerationService,
    SelectionService,
)

# Get configuration
settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.system.log_level),
    format=SystemConstants.LOG_FORMAT,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    # Startup
    logger.info("Starting Craftus selection server...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.system.debug}")

    # Session-scoped dispatch components, shared by every outbound call
    rate_limiters = RateLimiterRegistry.from_settings(settings.rate_limit)
    usage_tracker = ApiUsageTracker()
    step_queue = SequentialDispatchQueue(
        inter_entry_delay_ms=settings.dispatch.inter_entry_delay_ms, name="step-images"
    )

    app.state.settings = settings
    app.state.selection_service = SelectionService(settings.selection)
    app.state.rate_limiters = rate_limiters
    app.state.usage_tracker = usage_tracker
    app.state.retry_policy = RetryPolicy.from_settings(settings.retry)
    app.state.step_queue = step_queue
    app.state.generation_service = None
    app.state.debug = settings.system.debug

    if settings.generation.enabled:
        attach_generation_client(app, GeminiClient.from_settings(settings.generation))
    else:
        logger.warning("No generation API key configured, generation endpoints are disabled")

    logger.info("All components initialized successfully")

    yield

    # Shutdown
    logger.info("Shutting down Craftus selection server...")
    dropped = step_queue.cancel()
    if dropped:
        logger.info(f"Dropped {dropped} pending step image requests")
    logger.info("Server shutdown complete")


def attach_generation_client(app: FastAPI, client: GenerationClient) -> GenerationService:
    """
    Connect a generation transport to the running application.

    The service shares the session rate limiters, retry policy, step queue
    and usage tracker created at startup.
    """
    service = GenerationService(
        client=client,
        registry=app.state.rate_limiters,
        retry_policy=app.state.retry_policy,
        queue=app.state.step_queue,
        usage=app.state.usage_tracker,
    )
    app.state.generation_service = service
    logger.info(f"Generation client attached: {type(client).__name__}")
    return service


# Create FastAPI app
app = FastAPI(
    title="Craftus Selection Pipeline",
    description="Selection-to-region pipeline with throttled dispatch to a generation service",
    version="1.0.0",
    lifespan=lifespan,
)

if settings.api.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(selection.router, prefix="/api/selection", tags=["Selection"])
app.include_router(generation.router, prefix="/api/generation", tags=["Generation"])
app.include_router(system.router, prefix="/api/system", tags=["System"])


# Root endpoint
@app.get("/")
async def root():
    return {
        "name": "Craftus Selection Pipeline",
        "status": "running",
        "version": "1.0.0",
        "api_version": settings.api.api_version,
        "endpoints": {
            "selection": "/api/selection",
            "generation": "/api/generation",
            "system": "/api/system",
            "docs": "/docs",
        },
    }


if __name__ == "__main__":
    server_config = uvicorn.Config(
        "main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.system.debug,
        log_level=settings.system.log_level.lower(),
        loop="asyncio",
    )

    server = uvicorn.Server(server_config)

    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        logger.info("Server exiting...")
