"""
Pytest configuration and fixtures for Craftus selection pipeline tests
"""

import cv2
import numpy as np
import pytest

from config import SelectionConfig
from core.dispatch import RateLimiterRegistry
from core.image import Mask
from services import SelectionService


class FakeClock:
    """Manually advanced millisecond clock"""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays in seconds"""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeGenerationClient:
    """Scripted generation client; each script item is a value or an exception"""

    def __init__(self, identifications=None, dissections=None, images=None):
        self.identifications = list(identifications or [])
        self.dissections = list(dissections or [])
        self.images = list(images or [])
        self.identify_calls = []
        self.dissect_calls = []
        self.image_calls = []

    @staticmethod
    def _next(script):
        item = script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def identify(self, images, prompt):
        self.identify_calls.append((list(images), prompt))
        return self._next(self.identifications)

    async def dissect(self, images, prompt):
        self.dissect_calls.append((list(images), prompt))
        return self._next(self.dissections)

    async def generate_image(self, prompt, reference_png):
        self.image_calls.append(prompt)
        return self._next(self.images)


@pytest.fixture
def fake_clock():
    """Manually advanced clock for throttler tests"""
    return FakeClock()


@pytest.fixture
def recording_sleep():
    """Sleep that returns immediately and records delays"""
    return RecordingSleep()


@pytest.fixture
def rate_limiters(fake_clock):
    """Registry with default identities on a fake clock"""
    registry = RateLimiterRegistry(clock=fake_clock)
    registry.register("image-generation", capacity=10, window_ms=60_000)
    registry.register("dissection", capacity=5, window_ms=60_000)
    return registry


@pytest.fixture
def test_image():
    """Create a test image for testing"""
    image = np.zeros((100, 120, 3), dtype=np.uint8)
    # Gradient so crops of different regions differ
    image[:, :, 0] = np.arange(120, dtype=np.uint8)[np.newaxis, :]
    image[:, :, 1] = np.arange(100, dtype=np.uint8)[:, np.newaxis]
    cv2.rectangle(image, (40, 30), (79, 69), (255, 255, 255), -1)
    return image


@pytest.fixture
def object_mask():
    """Mask selecting a 40x40 square at (40, 30) matching test_image"""
    data = np.zeros((100, 120), dtype=np.uint8)
    data[30:70, 40:80] = 255
    return Mask.from_array(data)


@pytest.fixture
def noisy_mask():
    """Mask with a 40x40 object and a small detached speck"""
    data = np.zeros((100, 120), dtype=np.uint8)
    data[30:70, 40:80] = 255
    data[5:8, 5:8] = 200
    return Mask.from_array(data)


@pytest.fixture
def selection_config():
    """Selection configuration with defaults"""
    return SelectionConfig()


@pytest.fixture
def selection_service(selection_config):
    """Create SelectionService instance for testing"""
    return SelectionService(selection_config)


@pytest.fixture
def generation_client():
    """Factory for scripted generation clients"""
    return FakeGenerationClient
