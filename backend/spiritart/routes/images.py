"""
SpiritArt Backend: Image Transformation Routes
===============================================

What:  POST /api/upload-image runs the upload-and-transform workflow;
       POST /api/generate-image is retired and always answers 400.

Request Flow (upload-image):
    1. Client sends multipart/form-data: `image` file plus `userId`,
       optional `prompt`, `style`, `detailLevel`
    2. At most max_upload_size + 1 bytes are read, so an oversize body is
       never buffered whole; of a part declared oversize only one byte is
       read, enough for intake to reach its size check
    3. ImageTransformService does the rest; its errors reach the global
       exception handlers unchanged
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from spiritart.config import Settings
from spiritart.dependencies import get_settings, get_transform_service
from spiritart.exceptions import EndpointRetiredError
from spiritart.schemas.common import ErrorResponse
from spiritart.schemas.image import TransformResponse
from spiritart.services.transform_service import ImageTransformService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Images"])

UPLOAD_ENDPOINT = "/api/upload-image"


@router.post(
    "/upload-image",
    response_model=TransformResponse,
    responses={
        400: {"description": "Invalid input or provider rejected the request", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        500: {"description": "Provider or server failure", "model": ErrorResponse},
        503: {"description": "AI provider not configured", "model": ErrorResponse},
    },
    summary="Transform a photo into a Studio Ghibli style image",
)
async def upload_image(
    request: Request,
    image: Optional[UploadFile] = File(None, description="JPG or PNG, max 4MB"),
    user_id: Optional[str] = Form(None, alias="userId"),
    prompt: Optional[str] = Form(None),
    style: Optional[str] = Form(None),
    detail_level: Optional[str] = Form(None, alias="detailLevel"),
    service: ImageTransformService = Depends(get_transform_service),
    settings: Settings = Depends(get_settings),
) -> TransformResponse:
    """
    Costs one credit, charged only after the image has been generated.
    """
    content = None
    if image is not None:
        # One byte past the limit is enough for the size check to fail
        limit = settings.max_upload_size + 1
        if image.size is not None and image.size > settings.max_upload_size:
            limit = 1
        content = await image.read(limit)
        logger.info(
            "Upload request received: user=%s filename=%s size=%d bytes",
            user_id, image.filename or "unknown",
            image.size if image.size is not None else len(content),
        )

    try:
        return await service.transform(
            user_id=user_id,
            filename=image.filename if image is not None else None,
            content=content,
            base_url=str(request.base_url),
            content_type=image.content_type if image is not None else None,
            content_length=image.size if image is not None else None,
            prompt=prompt,
            style=style,
            detail_level=detail_level,
        )
    finally:
        if image is not None:
            await image.close()


@router.post(
    "/generate-image",
    status_code=400,
    responses={400: {"description": "Endpoint retired", "model": ErrorResponse}},
    summary="Retired: use /api/upload-image",
)
async def generate_image():
    raise EndpointRetiredError(UPLOAD_ENDPOINT)
