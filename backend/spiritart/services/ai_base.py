"""
SpiritArt Backend: AI Provider Interfaces
==========================================

What:  Abstract contracts for the two AI steps of a transformation: describing
       the uploaded image and generating the styled image.
How:   ImageTransformService depends only on these interfaces. OpenAIService
       implements both; tests pass in AsyncMock-backed fakes.

Error contract:
    Implementations translate provider exceptions into SpiritArtError
    subclasses before they leave the service, so the transform flow never
    imports a provider SDK.
"""

from abc import ABC, abstractmethod


class VisionDescriber(ABC):
    """Turns an image into a detailed natural-language description."""

    @abstractmethod
    async def describe_image(self, image: bytes, media_type: str) -> str:
        """
        Describe an image for use in an image-generation prompt.

        Args:
            image: Encoded image bytes
            media_type: MIME type used for the data URL (e.g. image/png)

        Returns:
            The model's description. May be a refusal; detecting that is
            the caller's job.

        Raises:
            ProviderRejectedRequestError: The provider answered 400
            UpstreamServiceError: Any other provider failure
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True if the provider is reachable. Must not consume generation quota."""
        ...


class ImageGenerator(ABC):
    """Produces a single image from a text prompt."""

    @abstractmethod
    async def generate_image(self, prompt: str) -> str:
        """
        Returns:
            URL of the generated image, hosted by the provider.

        Raises:
            IncompatibleImageFormatError: Provider reports an invalid input image
            GenerationFailedError: Any other provider failure
            MalformedUpstreamResponseError: The response carries no URL
        """
        ...
