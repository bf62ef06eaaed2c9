"""
Service Layer - Business logic layer between routers and core utilities.

Services orchestrate operations involving several core utilities,
implement business rules, and provide a clean interface for routers.
"""

from .gemini_client import GeminiClient
from .generation_service import GenerationClient, GenerationService
from .selection_service import SelectionResult, SelectionService

__all__ = [
    "GeminiClient",
    "GenerationClient",
    "GenerationService",
    "SelectionResult",
    "SelectionService",
]
