"""
Gemini transport for the generation service.

Implements ``GenerationClient`` with the google-genai SDK. Errors raised by the
SDK (``google.genai.errors.APIError`` carrying ``code``) are left to the retry
executor, which classifies them by status.
"""

import logging
from typing import Any, List, Optional, Sequence, Tuple

from google import genai
from google.genai import types

from common.constants import GenerationConstants

logger = logging.getLogger(__name__)


DISSECTION_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "complexity": types.Schema(
            type=types.Type.STRING, enum=["Simple", "Moderate", "Complex"]
        ),
        "complexityScore": types.Schema(type=types.Type.NUMBER),
        "materials": types.Schema(
            type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING)
        ),
        "steps": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "stepNumber": types.Schema(type=types.Type.NUMBER),
                    "title": types.Schema(type=types.Type.STRING),
                    "description": types.Schema(type=types.Type.STRING),
                    "safetyWarning": types.Schema(type=types.Type.STRING, nullable=True),
                },
                required=["stepNumber", "title", "description"],
            ),
        ),
    },
    required=["complexity", "complexityScore", "materials", "steps"],
)


def _parts_of(response: types.GenerateContentResponse) -> List[types.Part]:
    if not response.candidates:
        return []
    content = response.candidates[0].content
    return list(content.parts or []) if content else []


def split_text(response: types.GenerateContentResponse) -> Tuple[str, str]:
    """Split a response into (answer text, thinking text)."""
    answer, thoughts = [], []
    for part in _parts_of(response):
        if not part.text:
            continue
        (thoughts if part.thought else answer).append(part.text)
    return "".join(answer), "\n".join(thoughts)


def first_image(response: types.GenerateContentResponse) -> Optional[bytes]:
    """Bytes of the first inline image of a response, if any."""
    for part in _parts_of(response):
        if part.inline_data and part.inline_data.data:
            return part.inline_data.data
    return None


class GeminiClient:
    """Gemini implementation of the generation transport."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        text_model: str = GenerationConstants.TEXT_MODEL,
        image_model: str = GenerationConstants.IMAGE_MODEL,
        step_image_aspect_ratio: str = GenerationConstants.STEP_IMAGE_ASPECT_RATIO,
        include_thoughts: bool = True,
        client: Any = None,
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key (ignored when ``client`` is given)
            text_model: Model for identification and dissection
            image_model: Model for step images
            step_image_aspect_ratio: Aspect ratio requested for step images
            include_thoughts: Request thinking output and log it at debug level
            client: Pre-built ``genai.Client``

        Raises:
            ValueError: If neither an API key nor a client is provided
        """
        if client is None:
            if not api_key:
                raise ValueError("Gemini API key is required")
            client = genai.Client(api_key=api_key)

        self.client = client
        self.text_model = text_model
        self.image_model = image_model
        self.step_image_aspect_ratio = step_image_aspect_ratio
        self.include_thoughts = include_thoughts

        logger.info(f"GeminiClient initialized (text: {text_model}, image: {image_model})")

    @classmethod
    def from_settings(cls, generation_config) -> "GeminiClient":
        """Build the client from ``GenerationConfig`` settings."""
        return cls(
            api_key=generation_config.api_key,
            text_model=generation_config.text_model,
            image_model=generation_config.image_model,
            step_image_aspect_ratio=generation_config.step_image_aspect_ratio,
            include_thoughts=generation_config.include_thoughts,
        )

    @staticmethod
    def _contents(images: Sequence[bytes], prompt: str) -> List[Any]:
        parts: List[Any] = [
            types.Part.from_bytes(data=image, mime_type=GenerationConstants.REFERENCE_MIME_TYPE)
            for image in images
        ]
        parts.append(prompt)
        return parts

    def _thinking(self) -> Optional[types.ThinkingConfig]:
        return types.ThinkingConfig(include_thoughts=True) if self.include_thoughts else None

    async def _generate_text(
        self, images: Sequence[bytes], prompt: str, config: types.GenerateContentConfig
    ) -> str:
        response = await self.client.aio.models.generate_content(
            model=self.text_model, contents=self._contents(images, prompt), config=config
        )
        answer, thoughts = split_text(response)
        if thoughts:
            logger.debug(f"Model thinking:\n{thoughts}")
        return answer

    async def identify(self, images: Sequence[bytes], prompt: str) -> Optional[str]:
        config = types.GenerateContentConfig(thinking_config=self._thinking())
        return await self._generate_text(images, prompt, config)

    async def dissect(self, images: Sequence[bytes], prompt: str) -> Optional[str]:
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=DISSECTION_SCHEMA,
            thinking_config=self._thinking(),
        )
        return await self._generate_text(images, prompt, config)

    async def generate_image(self, prompt: str, reference_png: bytes) -> Optional[bytes]:
        config = types.GenerateContentConfig(
            image_config=types.ImageConfig(aspect_ratio=self.step_image_aspect_ratio)
        )
        response = await self.client.aio.models.generate_content(
            model=self.image_model,
            contents=self._contents([reference_png], prompt),
            config=config,
        )
        image = first_image(response)
        if image is not None:
            logger.debug(f"Step image generated ({len(image)} bytes)")
        return image
