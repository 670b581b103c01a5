"""
SpiritArt Backend: Image Normalizer
====================================

What:  Converts an arbitrary JPEG/PNG upload into a bounded RGBA PNG for the
       vision model.
How:   Pillow, synchronously. Callers run it through `run_in_threadpool`
       because decoding and PNG encoding are CPU-bound.

Pipeline:
    decode ─▶ fit inside 1024×1024 (never upscale) ─▶ RGBA ─▶ PNG
                                                              │
                                             > ~3.9 MiB?  ────┤
                                                              ▼
                                   fit inside 800×800, compress_level=9

A file Pillow cannot decode is not an error here: the original bytes come
back with `degraded=True` and the vision call receives them as-is.
"""

import io
import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image

logger = logging.getLogger(__name__)

PNG_MEDIA_TYPE = "image/png"

# Everything Pillow raises for unreadable or hostile input
_DECODE_ERRORS = (OSError, ValueError, SyntaxError, Image.DecompressionBombError)


@dataclass(frozen=True)
class NormalizedImage:
    data: bytes
    degraded: bool
    media_type: str
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def size_mb(self) -> float:
        return len(self.data) / (1024 * 1024)


def _encode_png(content: bytes, max_side: int, compress_level: int = 6) -> NormalizedImage:
    with Image.open(io.BytesIO(content)) as img:
        # thumbnail() preserves aspect ratio and only ever shrinks
        img.thumbnail((max_side, max_side), Image.LANCZOS)
        rgba = img.convert("RGBA")

    buf = io.BytesIO()
    rgba.save(buf, format="PNG", compress_level=compress_level)
    return NormalizedImage(
        data=buf.getvalue(),
        degraded=False,
        media_type=PNG_MEDIA_TYPE,
        width=rgba.width,
        height=rgba.height,
    )


def normalize_image(
    content: bytes,
    max_side: int = 1024,
    fallback_side: int = 800,
    max_bytes: int = int(3.9 * 1024 * 1024),
    original_media_type: str = "application/octet-stream",
) -> NormalizedImage:
    """
    Fit an image within `max_side` and re-encode it as RGBA PNG.

    Args:
        content: Raw upload bytes
        max_side: Bounding box side for the first pass
        fallback_side: Bounding box side for the oversize second pass
        max_bytes: PNG size above which the second pass runs
        original_media_type: Reported media type if decoding fails

    Returns:
        NormalizedImage. `degraded` is True when the original bytes were
        passed through unchanged.
    """
    try:
        result = _encode_png(content, max_side)
    except _DECODE_ERRORS as e:
        logger.warning("Image normalization failed, using original bytes: %s", str(e))
        return NormalizedImage(data=content, degraded=True, media_type=original_media_type)

    logger.info(
        "Normalized image to %sx%s PNG (%.2f MB)",
        result.width, result.height, result.size_mb,
    )

    if len(result.data) > max_bytes:
        try:
            result = _encode_png(result.data, fallback_side, compress_level=9)
            logger.info(
                "Compressed oversize image to %sx%s (%.2f MB)",
                result.width, result.height, result.size_mb,
            )
        except _DECODE_ERRORS as e:
            # Keep the first-pass PNG; the provider decides whether it is too big
            logger.warning("Skipping compression due to error: %s", str(e))

    return result
