"""
SpiritArt Backend: Temporary Upload Route
==========================================

What:  Serves originals stored by the transform workflow at
       `GET <UPLOAD_URL_PREFIX>/<name>` until their cleanup timer fires.
How:   Reads through the configured UploadStorage, so the same URL works for
       the disk and memory strategies. Unknown, expired or path-escaping
       names are 404s.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from spiritart.config import settings
from spiritart.dependencies import get_upload_storage
from spiritart.schemas.common import ErrorResponse
from spiritart.services.upload_storage import UploadStorage

router = APIRouter(prefix=settings.upload_url_prefix, tags=["Uploads"])


@router.get(
    "/{name}",
    response_class=Response,
    responses={404: {"description": "Upload not found or expired", "model": ErrorResponse}},
    summary="Fetch a temporarily stored original upload",
)
async def get_upload(name: str, storage: UploadStorage = Depends(get_upload_storage)) -> Response:
    item = await storage.read(name)
    return Response(
        content=item.content,
        media_type=item.media_type,
        headers={"Cache-Control": "no-store"},
    )
