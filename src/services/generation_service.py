"""
Generation Service - Outbound calls to the remote generation service.

The selection pipeline makes three kinds of call:
- identify_selection names the selected object (falls back to a generic label)
- dissect_selection breaks it down into materials and steps
- generate_step_image illustrates one step

Every call goes through the same gate:
1. The identity's throttler admits or rejects it (RateLimitExceeded)
2. The retry executor absorbs transient failures with backoff
3. The payload is validated before it reaches the caller (InvalidResponse)
4. The outcome is recorded in the usage tracker

Step images for a dissection are produced through the sequential dispatch
queue so a burst of N steps is spaced out instead of firing at once.
"""

import asyncio
import base64
import json
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from pydantic import ValidationError

from common.constants import GenerationConstants
from common.enums import ErrorKind, RateLimitIdentity
from common.exceptions import CraftusException, InvalidResponseError
from core.dispatch import (
    ApiUsageTracker,
    QueueEntry,
    RateLimiterRegistry,
    RetryPolicy,
    SequentialDispatchQueue,
    classify_error,
    retry_with_backoff,
)
from schemas import DissectionResponse, ErrorResponse, InstructionStep, StepImageResult

logger = logging.getLogger(__name__)

IDENTIFY_OPERATION = "identify_selection"
DISSECT_OPERATION = "dissect_selection"
STEP_IMAGE_OPERATION = "generate_step_image"

IDENTIFY_PROMPT = """\
You are analyzing an object that was selected from a larger image.

IMAGE 1 shows the selected object. IMAGE 2, when present, shows the complete
scene for reference.

Identify the specific object selected in IMAGE 1:
- Give a short, specific name (2-5 words)
- Include the character name for characters (e.g. "Hamm the pig")
- Name only the selected object, never the whole scene or its surroundings

Return ONLY the object name, nothing else.
"""

DISSECTION_PROMPT = """\
You are an expert maker. The first image shows ONE object selected from a
larger craft project: "{label}".{context}

Create instructions for "{label}" only. Ignore other objects and background
that may be visible because of an imperfect selection.

1. Determine the complexity (Simple, Moderate, Complex) and a score 1-10.
2. List the essential materials visible or implied.
3. Break down the construction into logical, step-by-step instructions.

Return strict JSON with the keys complexity, complexityScore, materials and
steps (stepNumber, title, description, optional safetyWarning).
"""

DISSECTION_CONTEXT_NOTE = "\nThe second image shows the complete project for reference only."

STEP_IMAGE_PROMPT = """\
REFERENCE IMAGE: This is the finished craft.
TASK: Generate a photorealistic step image for: "{title}: {description}".

Show only the materials or sub-components of this step, on a clean neutral
background, using the textures and colors of the reference image.
"""


class GenerationClient(Protocol):
    """Transport to the remote generation service. Images are PNG bytes."""

    async def identify(self, images: Sequence[bytes], prompt: str) -> Optional[str]:
        """Return the plain-text name of the selected object."""
        ...

    async def dissect(
        self, images: Sequence[bytes], prompt: str
    ) -> Union[str, Dict[str, Any], None]:
        """Return the dissection as JSON text or an already decoded mapping."""
        ...

    async def generate_image(self, prompt: str, reference_png: bytes) -> Optional[bytes]:
        """Return generated image bytes, or None when the service produced no image."""
        ...


class GenerationService:
    """
    Service for identification, dissection and step image generation.

    Holds no per-call state; throttlers, queue and usage tracker are the
    session-scoped instances created at startup.
    """

    def __init__(
        self,
        client: GenerationClient,
        registry: RateLimiterRegistry,
        retry_policy: Optional[RetryPolicy] = None,
        queue: Optional[SequentialDispatchQueue] = None,
        usage: Optional[ApiUsageTracker] = None,
    ):
        """
        Initialize generation service.

        Args:
            client: Remote generation transport
            registry: Rate limiter registry with dissection and image-generation identities
            retry_policy: Retry policy for transient failures
            queue: Sequential queue for step image requests
            usage: Usage tracker for outbound calls
        """
        self.client = client
        self.registry = registry
        self.retry_policy = retry_policy or RetryPolicy()
        self.queue = queue or SequentialDispatchQueue(name="step-images")
        self.usage = usage or ApiUsageTracker()

    async def _call(self, identity: RateLimitIdentity, operation: str, fn):
        """Throttle, retry and track one logical outbound call."""
        self.registry.get(identity).acquire()

        try:
            result = await retry_with_backoff(fn, self.retry_policy, operation=operation)
        except CraftusException:
            self.usage.track(operation, False)
            raise

        self.usage.track(operation, True)
        return result

    @staticmethod
    def _parse_dissection(payload: Union[str, bytes, Dict[str, Any], None]) -> DissectionResponse:
        if not payload:
            raise InvalidResponseError(DISSECT_OPERATION, "no content returned")

        try:
            if isinstance(payload, (str, bytes)):
                data = json.loads(payload)
            else:
                data = payload
            return DissectionResponse.model_validate(data)
        except json.JSONDecodeError as e:
            raise InvalidResponseError(DISSECT_OPERATION, f"malformed JSON: {e.msg}") from e
        except ValidationError as e:
            raise InvalidResponseError(
                DISSECT_OPERATION, f"{e.error_count()} validation errors"
            ) from e

    @staticmethod
    def _clean_label(text: Optional[str]) -> str:
        """First line of the answer without surrounding quotes, length limited."""
        if not text:
            return ""
        lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
        if not lines:
            return ""
        label = lines[0].strip("\"'` ").rstrip(".")
        return label[: GenerationConstants.MAX_LABEL_LENGTH].strip()

    async def identify_selection(self, crop_png: bytes, full_png: Optional[bytes] = None) -> str:
        """
        Name the selected object.

        Shares the dissection throttler. Any failure, including an exhausted
        window, yields the fallback label so dissection can still proceed.

        Args:
            crop_png: PNG bytes of the cropped selection
            full_png: PNG bytes of the full source image, sent as context

        Returns:
            Short object name, or GenerationConstants.FALLBACK_LABEL
        """
        images = [crop_png] if full_png is None else [crop_png, full_png]

        async def attempt() -> str:
            label = self._clean_label(await self.client.identify(images, IDENTIFY_PROMPT))
            if not label:
                raise InvalidResponseError(IDENTIFY_OPERATION, "no label returned")
            return label

        try:
            label = await self._call(RateLimitIdentity.DISSECTION, IDENTIFY_OPERATION, attempt)
        except CraftusException as e:
            logger.warning(
                f"Identification failed ({e.kind.value}: {e.message}), "
                f"using '{GenerationConstants.FALLBACK_LABEL}'"
            )
            return GenerationConstants.FALLBACK_LABEL

        logger.info(f"Identified selection as '{label}'")
        return label

    async def dissect_selection(
        self,
        image_png: bytes,
        label: Optional[str] = None,
        context_png: Optional[bytes] = None,
    ) -> DissectionResponse:
        """
        Break the selected object down into materials and instruction steps.

        Args:
            image_png: PNG bytes of the cropped selection
            label: Name of the object (fallback label when missing)
            context_png: PNG bytes of the full source image, sent after the crop

        Returns:
            Validated DissectionResponse

        Raises:
            RateLimitExceededError: If the dissection window is exhausted
            TransientServiceError: If the service stays overloaded after all retries
            PermanentServiceError: If the service rejects the request
            InvalidResponseError: If the payload is missing or malformed
        """
        label = label or GenerationConstants.FALLBACK_LABEL
        images = [image_png] if context_png is None else [image_png, context_png]
        prompt = DISSECTION_PROMPT.format(
            label=label, context=DISSECTION_CONTEXT_NOTE if context_png is not None else ""
        )

        async def attempt() -> DissectionResponse:
            payload = await self.client.dissect(images, prompt)
            return self._parse_dissection(payload)

        dissection = await self._call(RateLimitIdentity.DISSECTION, DISSECT_OPERATION, attempt)
        logger.info(
            f"Dissection complete: {dissection.complexity.value} "
            f"({dissection.complexity_score}/10), {len(dissection.steps)} steps"
        )
        return dissection

    async def generate_step_image(self, reference_png: bytes, step: InstructionStep) -> bytes:
        """
        Generate the illustration for one instruction step.

        Args:
            reference_png: PNG bytes of the selection, used as style reference
            step: Instruction step to illustrate

        Returns:
            Generated image bytes

        Raises:
            RateLimitExceededError: If the image-generation window is exhausted
            TransientServiceError, PermanentServiceError: On service failure
            InvalidResponseError: If no image was returned
        """
        prompt = STEP_IMAGE_PROMPT.format(title=step.title, description=step.description)

        async def attempt() -> bytes:
            image = await self.client.generate_image(prompt, reference_png)
            if not image:
                raise InvalidResponseError(STEP_IMAGE_OPERATION, "no image returned")
            return image

        return await self._call(
            RateLimitIdentity.IMAGE_GENERATION, STEP_IMAGE_OPERATION, attempt
        )

    async def generate_step_images(
        self, reference_png: bytes, dissection: DissectionResponse
    ) -> List[StepImageResult]:
        """
        Generate images for every step, one at a time, in step order.

        A failing step does not stop the others; its result carries the error
        instead of an image.

        Args:
            reference_png: PNG bytes of the selection
            dissection: Dissection whose steps should be illustrated

        Returns:
            One StepImageResult per step, in the order of ``dissection.steps``
        """
        futures = []
        for step in dissection.steps:
            entry = QueueEntry(
                execute=lambda step=step: self.generate_step_image(reference_png, step),
                id=f"step_{step.step_number}",
            )
            futures.append(self.queue.enqueue(entry))

        outcomes = await asyncio.gather(*futures, return_exceptions=True)

        results = []
        for step, outcome in zip(dissection.steps, outcomes):
            if isinstance(outcome, bytes):
                results.append(
                    StepImageResult(
                        step_number=step.step_number,
                        image=base64.b64encode(outcome).decode("utf-8"),
                    )
                )
                continue

            if isinstance(outcome, asyncio.CancelledError):
                error = ErrorResponse(
                    kind=ErrorKind.TRANSIENT_SERVICE_ERROR,
                    message="Step image request was cancelled",
                    recoverable=True,
                )
            else:
                error = ErrorResponse(**classify_error(outcome).to_dict())
            results.append(StepImageResult(step_number=step.step_number, error=error))

        failed = sum(1 for r in results if not r.succeeded)
        logger.info(f"Step images generated: {len(results) - failed} ok, {failed} failed")
        return results
