"""
SpiritArt Backend: OpenAI Service Implementation
=================================================

What:  Vision description (Responses API) and image generation (Images API)
       on one shared `AsyncOpenAI` client.
Who:   Built per request from the client created at startup; called by
       ImageTransformService.

Calls are made once. There is no retry or backoff: a failed transformation
costs the user nothing, so they can simply try again.

Error translation:
    describe_image:
        400 from provider      → ProviderRejectedRequestError (friendly text)
        any other SDK error    → UpstreamServiceError (provider text)
    generate_image:
        "Invalid input image"  → IncompatibleImageFormatError
        any other SDK error    → GenerationFailedError
        no URL in response     → MalformedUpstreamResponseError
"""

import base64
import logging
import time

import openai
from openai import AsyncOpenAI

from spiritart.exceptions import (
    GenerationFailedError,
    IncompatibleImageFormatError,
    MalformedUpstreamResponseError,
    ProviderRejectedRequestError,
    UpstreamServiceError,
)
from spiritart.services.ai_base import ImageGenerator, VisionDescriber

logger = logging.getLogger(__name__)

VISION_INSTRUCTION = (
    "Analyze this image in extreme detail, as if it were a frame from a Studio Ghibli "
    "film. Imagine you are a master at describing visual scenes, meticulously noting "
    "every element to craft the perfect prompt for DALL·E 3. Your goal is to enable the "
    "accurate recreation of this image in Miyazaki’s signature Ghibli style."
)


def friendly_provider_message(message: str) -> str:
    """Rewrite a provider 400 message into something a user can act on."""
    if "too long" in message:
        return "The prompt was too long. Please try a shorter description."
    if "image must be a PNG" in message or "invalid_image_format" in message:
        return "There was an issue with the image format. Please try a different image."
    if "Invalid input image" in message or "format must be" in message:
        return "The image format is not compatible. Please try a different image with a simpler format."
    if "content policy" in message or "safety" in message:
        return "Your request was rejected due to content policy. Please try different instructions."
    return message


def to_data_url(image: bytes, media_type: str) -> str:
    encoded = base64.b64encode(image).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


class OpenAIService(VisionDescriber, ImageGenerator):
    """
    Args:
        client: Shared AsyncOpenAI client (owned by the application lifespan)
        vision_model: Model for the describe step, e.g. gpt-4o-mini
        image_model: Model for the generate step, e.g. dall-e-3
        image_size: Output size, e.g. 1024x1024
        image_quality: standard or hd
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        vision_model: str = "gpt-4o-mini",
        image_model: str = "dall-e-3",
        image_size: str = "1024x1024",
        image_quality: str = "standard",
    ):
        self.client = client
        self.vision_model = vision_model
        self.image_model = image_model
        self.image_size = image_size
        self.image_quality = image_quality

    async def describe_image(self, image: bytes, media_type: str) -> str:
        start_time = time.monotonic()
        try:
            response = await self.client.responses.create(
                model=self.vision_model,
                input=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "input_text", "text": VISION_INSTRUCTION},
                            {"type": "input_image", "image_url": to_data_url(image, media_type)},
                        ],
                    }
                ],
            )
        except openai.BadRequestError as e:
            logger.error("Vision request rejected by provider: %s", e.message)
            raise ProviderRejectedRequestError(
                message=friendly_provider_message(e.message),
                provider_message=e.message,
            ) from e
        except openai.OpenAIError as e:
            logger.error("Vision request failed: %s", str(e))
            raise UpstreamServiceError(
                message=str(e) or "An unknown error occurred",
                context={"stage": "describe", "error_type": type(e).__name__},
            ) from e

        description = response.output_text or ""
        logger.info(
            "Vision description received: %d chars in %dms",
            len(description),
            int((time.monotonic() - start_time) * 1000),
        )
        return description

    async def generate_image(self, prompt: str) -> str:
        start_time = time.monotonic()
        try:
            response = await self.client.images.generate(
                model=self.image_model,
                prompt=prompt,
                n=1,
                size=self.image_size,
                quality=self.image_quality,
                response_format="url",
            )
        except openai.OpenAIError as e:
            message = getattr(e, "message", None) or str(e)
            logger.error("Image generation failed: %s", message)
            if "Invalid input image" in message:
                raise IncompatibleImageFormatError(provider_message=message) from e
            raise GenerationFailedError(provider_message=message) from e

        data = getattr(response, "data", None) or []
        url = getattr(data[0], "url", None) if data else None
        if not url:
            logger.error("Image generation response missing URL")
            raise MalformedUpstreamResponseError()

        logger.info(
            "Image generated in %dms", int((time.monotonic() - start_time) * 1000)
        )
        return url

    async def health_check(self) -> bool:
        try:
            await self.client.models.list()
            return True
        except openai.OpenAIError as e:
            logger.warning("OpenAI health check failed: %s", str(e))
            return False
