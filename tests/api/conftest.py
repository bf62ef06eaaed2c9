"""
Pytest configuration for API integration tests
"""

import base64

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient


def encode_png(image: np.ndarray) -> str:
    """Encode an image as base64 PNG"""
    success, buffer = cv2.imencode(".png", image)
    assert success
    return base64.b64encode(buffer).decode("utf-8")


@pytest.fixture(scope="function")
def client():
    """
    Create a test client with properly initialized app state.
    Each test gets a fresh client to avoid state contamination.
    """
    from config import Settings
    from core.dispatch import (
        ApiUsageTracker,
        RateLimiterRegistry,
        RetryPolicy,
        SequentialDispatchQueue,
    )
    from main import app
    from services import SelectionService

    settings = Settings(environment="test")

    app.state.settings = settings
    app.state.selection_service = SelectionService(settings.selection)
    app.state.rate_limiters = RateLimiterRegistry.from_settings(settings.rate_limit)
    app.state.usage_tracker = ApiUsageTracker()
    app.state.retry_policy = RetryPolicy.from_settings(settings.retry)
    app.state.step_queue = SequentialDispatchQueue(inter_entry_delay_ms=0)
    app.state.generation_service = None
    app.state.debug = False

    # Create test client (no context manager to avoid running the lifespan)
    yield TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def scene_payload():
    """Source image and mask payloads for a 40x40 object in a 120x100 image"""
    image = np.zeros((100, 120, 3), dtype=np.uint8)
    image[30:70, 40:80] = (0, 128, 255)

    mask = np.zeros((100, 120), dtype=np.uint8)
    mask[30:70, 40:80] = 255
    mask[2:4, 2:4] = 255

    return {"image": encode_png(image), "mask": mask}
