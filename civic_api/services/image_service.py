"""Image normalisation for uploads: bounded dimensions, WebP output."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import ValidationError

logger = logging.getLogger(__name__)

MAX_WIDTH = 1920
MAX_HEIGHT = 1080
WEBP_QUALITY = 85
WEBP_CONTENT_TYPE = "image/webp"


@dataclass(frozen=True)
class ProcessedImage:
    data: bytes
    width: int
    height: int
    content_type: str = WEBP_CONTENT_TYPE


def process_image(raw: bytes) -> ProcessedImage:
    """Fit ``raw`` within 1920x1080 without enlarging and re-encode it as WebP."""

    try:
        with Image.open(BytesIO(raw)) as source:
            image = ImageOps.exif_transpose(source)
            if image.mode not in ("RGB", "RGBA"):
                image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
            # thumbnail() only ever shrinks.
            image.thumbnail((MAX_WIDTH, MAX_HEIGHT), Image.Resampling.LANCZOS)

            buffer = BytesIO()
            image.save(buffer, format="WEBP", quality=WEBP_QUALITY)
            width, height = image.size
    except (UnidentifiedImageError, OSError) as exc:
        logger.info("Rejected unreadable image upload: %s", exc)
        raise ValidationError("Invalid image file") from exc

    return ProcessedImage(data=buffer.getvalue(), width=width, height=height)


__all__ = ["ProcessedImage", "process_image", "MAX_WIDTH", "MAX_HEIGHT", "WEBP_QUALITY"]
