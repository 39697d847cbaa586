"""Logo ingestion: downscale, flatten and JPEG-encode an image under a byte budget."""
from __future__ import annotations

import base64
import binascii
import io
import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError

from fatura.core.errors import AppMessages, FaturaError

logger = logging.getLogger(__name__)

MAX_SIDE = 1024
TARGET_MAX_BYTES = 180 * 1024
START_QUALITY = 85
MIN_QUALITY = 50
QUALITY_STEP = 10

DATA_URL_PREFIX = "data:image/jpeg;base64,"


def fit_dimensions(width: int, height: int, max_side: int = MAX_SIDE) -> Tuple[int, int]:
    """Scale (width, height) to fit inside max_side x max_side; never upscales."""
    if width <= 0 or height <= 0:
        return max(width, 1), max(height, 1)
    ratio = min(max_side / width, max_side / height, 1.0)
    return max(1, round(width * ratio)), max(1, round(height * ratio))


def _encode(img: Image.Image, quality: int) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=quality, optimize=True)
    return buf.getvalue()


def compress_image(
    source: Union[str, Path, bytes],
    *,
    max_side: int = MAX_SIDE,
    target_bytes: int = TARGET_MAX_BYTES,
    start_quality: int = START_QUALITY,
    min_quality: int = MIN_QUALITY,
) -> str:
    """Return an embeddable data URL for an image file or raw bytes.

    Quality starts at start_quality and drops by QUALITY_STEP while the encoded
    size exceeds target_bytes and quality is still above min_quality.
    Raises FaturaError(VALIDATION) for unreadable input.
    """
    try:
        raw = source if isinstance(source, bytes) else Path(source).read_bytes()
        with Image.open(io.BytesIO(raw)) as opened:
            opened.load()
            src = opened.convert("RGBA")
    except (OSError, UnidentifiedImageError, ValueError) as e:
        logger.warning("Unreadable image: %s", e)
        raise FaturaError.validation(AppMessages.IMAGE_UNREADABLE) from e

    size = fit_dimensions(src.width, src.height, max_side)
    if size != src.size:
        src = src.resize(size, Image.Resampling.LANCZOS)

    # JPEG has no alpha; transparent logos would otherwise turn black
    flat = Image.new("RGB", src.size, (255, 255, 255))
    flat.paste(src, mask=src.split()[3])

    quality = start_quality
    data = _encode(flat, quality)
    while len(data) > target_bytes and quality > min_quality:
        quality = max(min_quality, quality - QUALITY_STEP)
        data = _encode(flat, quality)
    logger.info("Compressed logo to %dx%d, %d bytes at quality %d", flat.width, flat.height, len(data), quality)
    return DATA_URL_PREFIX + base64.b64encode(data).decode("ascii")


def decode_data_url(value: Optional[str]) -> Optional[bytes]:
    """Bytes of an embeddable image string, or None when it is not one."""
    s = (value or "").strip()
    if not s.startswith("data:") or "," not in s:
        return None
    header, payload = s.split(",", 1)
    if ";base64" not in header:
        return None
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError):
        return None


def compress_logo(source: Union[str, Path, bytes], settings) -> str:
    """compress_image() with the logo budget configured in Settings."""
    return compress_image(
        source,
        max_side=settings.image_max_side,
        target_bytes=settings.image_target_bytes,
        start_quality=settings.image_start_quality,
        min_quality=settings.image_min_quality,
    )
