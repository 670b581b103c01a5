"""
SpiritArt Backend: Image Transform Service (Business Logic Orchestrator)
=========================================================================

What:  The upload-and-transform workflow behind POST /api/upload-image.
How:   Composes the ledger store, upload storage, normalizer, vision
       describer, prompt builder and image generator. All collaborators are
       injected, so the service holds no provider clients of its own.

Orchestration Flow:
    ┌────────┐  ┌─────────────┐  ┌───────────┐  ┌───────────┐  ┌──────────┐
    │ Intake │─▶│ Entitlement │─▶│  Persist  │─▶│ Normalize │─▶│ Describe │
    └────────┘  └─────────────┘  │  original │  └───────────┘  └────┬─────┘
                                 └───────────┘                      │
    ┌─────────┐  ┌────────┐  ┌──────────┐  ┌─────────┐              │
    │ Respond │◀─│ Settle │◀─│ Generate │◀─│ Compose │◀─────────────┘
    └─────────┘  └────────┘  └──────────┘  └─────────┘

    Every step up to Generate may fail without side effects on the ledger:
    the credit is only taken in Settle, after the provider has produced a
    URL. The stored original is always cleaned up by its timer.
"""

import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool

from spiritart.config import Settings
from spiritart.exceptions import (
    EmptyFileError,
    ImageProcessingError,
    InsufficientCreditsError,
    MissingFieldError,
    NoFileUploadedError,
    UserNotFoundError,
    ValidationError,
    VisionAnalysisRefusedError,
)
from spiritart.models.transaction import IMAGE_TRANSFORMATION
from spiritart.schemas.image import TransformResponse
from spiritart.services.ai_base import ImageGenerator, VisionDescriber
from spiritart.services.image_normalizer import normalize_image
from spiritart.services.ledger_store import LedgerStore
from spiritart.services.prompt_builder import (
    DEFAULT_STYLE,
    DEFAULT_USER_PROMPT,
    compose_prompt,
)
from spiritart.services.upload_storage import (
    UploadStorage,
    make_upload_name,
    media_type_for,
    validate_extension,
    validate_size,
)

logger = logging.getLogger(__name__)

TRANSFORMATION_COST = 1
DEFAULT_DETAIL_LEVEL = 50

REFUSAL_PREFIXES = (
    "I'm unable to analyze the image in detail as requested",
    "I’m unable to analyze the image in detail as requested",
)


def parse_detail_level(value: Optional[str]) -> int:
    """Multipart fields arrive as text; blank means the default."""
    if value is None or str(value).strip() == "":
        return DEFAULT_DETAIL_LEVEL
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(
            message="detailLevel must be an integer",
            field="detailLevel",
            context={"value": value},
        )


def is_refusal(description: str) -> bool:
    return description.startswith(REFUSAL_PREFIXES)


class ImageTransformService:
    """
    Runs one transformation per call.

    Args:
        store: Ledger store bound to the request's session
        describer: Vision model adapter
        generator: Image model adapter
        storage: Where the original upload is kept for the client
        settings: Size limits, prompt limits and upload URL settings
    """

    def __init__(
        self,
        store: LedgerStore,
        describer: VisionDescriber,
        generator: ImageGenerator,
        storage: UploadStorage,
        settings: Settings,
    ):
        self.store = store
        self.describer = describer
        self.generator = generator
        self.storage = storage
        self.settings = settings

    def _validate_intake(
        self,
        user_id: Optional[str],
        filename: Optional[str],
        content: Optional[bytes],
        content_length: Optional[int],
    ) -> str:
        if not user_id:
            raise MissingFieldError("userId", "User ID")
        if content is None:
            raise NoFileUploadedError()
        if len(content) == 0:
            raise EmptyFileError()
        ext = validate_extension(filename or "")
        validate_size(content_length, len(content), self.settings.max_upload_size)
        return ext

    def upload_url(self, base_url: str, name: str) -> str:
        base = (self.settings.public_base_url or base_url).rstrip("/")
        return f"{base}{self.settings.upload_url_prefix}/{name}"

    async def transform(
        self,
        user_id: Optional[str],
        filename: Optional[str],
        content: Optional[bytes],
        base_url: str,
        content_type: Optional[str] = None,
        content_length: Optional[int] = None,
        prompt: Optional[str] = None,
        style: Optional[str] = None,
        detail_level: Optional[str] = None,
    ) -> TransformResponse:
        """
        Transform an uploaded photo into a styled image and charge one credit.

        Args:
            user_id: Account to charge
            filename: Original upload file name (for the extension check)
            content: Raw upload bytes; None when no file part was sent
            base_url: Request base URL, used for originalImageUrl
            content_type: Upload MIME type, used if normalization degrades
            content_length: Declared part size, if known
            prompt: Optional user instruction appended to the prompt
            style: Style key; unknown keys use the default
            detail_level: Stored with the image record (default 50)

        Raises:
            ValidationError subclasses (400), UserNotFoundError (404),
            UpstreamServiceError subclasses (500)
        """
        # ── 1. Intake ─────────────────────────────────────────────────────
        ext = self._validate_intake(user_id, filename, content, content_length)
        level = parse_detail_level(detail_level)

        # ── 2. Entitlement ────────────────────────────────────────────────
        user = await self.store.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        if not user.credits or user.credits < TRANSFORMATION_COST:
            raise InsufficientCreditsError(user_id, user.credits or 0)

        # ── 3. Persist original (cleanup timer starts now) ────────────────
        name = make_upload_name(ext)
        await self.storage.save(name, content)
        self.storage.schedule_cleanup(name, self.settings.upload_cleanup_delay)
        original_url = self.upload_url(base_url, name)

        # ── 4. Normalize ──────────────────────────────────────────────────
        try:
            normalized = await run_in_threadpool(
                normalize_image,
                content,
                self.settings.normalize_max_side,
                self.settings.normalize_fallback_side,
                self.settings.normalized_max_bytes,
                content_type or media_type_for(filename or ""),
            )
        except Exception as e:
            logger.error("Unexpected error processing image: %s", str(e), exc_info=True)
            raise ImageProcessingError(
                context={"filename": filename, "error_type": type(e).__name__},
            ) from e

        # ── 5. Describe ───────────────────────────────────────────────────
        description = await self.describer.describe_image(normalized.data, normalized.media_type)
        if is_refusal(description):
            logger.info("Vision model unable to analyze image for user %s", user_id)
            raise VisionAnalysisRefusedError()

        # ── 6. Compose ────────────────────────────────────────────────────
        composed = compose_prompt(
            description,
            style=style,
            user_prompt=prompt,
            max_length=self.settings.max_prompt_length,
            truncate=self.settings.truncate_prompt,
        )
        logger.debug("Final prompt for image model: %s...", composed.text[:100])

        # ── 7. Generate ───────────────────────────────────────────────────
        image_url = await self.generator.generate_image(composed.text)

        # ── 8. Settle ─────────────────────────────────────────────────────
        user_prompt = prompt or DEFAULT_USER_PROMPT
        balance = await self.store.adjust_credits(user_id, -TRANSFORMATION_COST)
        logger.info("Deducted 1 credit from user %s. New balance: %d", user_id, balance)

        record = await self.store.append_image(
            user_id=user_id,
            prompt=user_prompt,
            enhanced_prompt=composed.text,
            image_description=description,
            original_image_url=original_url,
            style=style or DEFAULT_STYLE,
            detail_level=level,
            image_url=image_url,
        )
        await self.store.append_transaction(
            user_id=user_id,
            image_id=record.id,
            credits=-TRANSFORMATION_COST,
            type=IMAGE_TRANSFORMATION,
            prompt=user_prompt,
        )

        # ── 9. Respond ────────────────────────────────────────────────────
        return TransformResponse(
            success=True,
            image_url=image_url,
            original_image_url=original_url,
            credits=balance,
            original_prompt=user_prompt,
            enhanced_prompt=composed.text,
            image_description=description,
        )
