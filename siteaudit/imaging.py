"""Screenshot compression for storage and serving.

Screenshots are re-encoded as WebP and bounded to 1280x800 so full analyses
stay under 90s and the results page loads small blobs.
"""

import asyncio
import io
import time
from dataclasses import dataclass

from PIL import Image

from siteaudit.logging import get_logger
from siteaudit.metrics import record_screenshot_compression

logger = get_logger(__name__)

MAX_WIDTH = 1280
MAX_HEIGHT = 800
WEBP_QUALITY = 85
WEBP_CONTENT_TYPE = "image/webp"


@dataclass(frozen=True)
class CompressedImage:
    buffer: bytes
    content_type: str


def compress_screenshot_to_webp(png_buffer: bytes) -> CompressedImage:
    """Fit a screenshot inside MAX_WIDTH x MAX_HEIGHT and encode it as WebP.

    Aspect ratio is preserved and smaller images are never enlarged.
    Undecodable input raises ``PIL.UnidentifiedImageError``.
    """
    start = time.perf_counter()
    with Image.open(io.BytesIO(png_buffer)) as image:
        image.load()
        original_size = image.size
        if image.mode.startswith("I"):
            # 16-bit greyscale: scale samples down to 8 bits first
            image = image.convert("I").point(lambda v: v * (1 / 256)).convert("L")
        if image.mode not in ("RGB", "RGBA"):
            has_alpha = "A" in image.getbands() or "transparency" in image.info
            image = image.convert("RGBA" if has_alpha else "RGB")
        # thumbnail() keeps the aspect ratio and only ever shrinks
        image.thumbnail((MAX_WIDTH, MAX_HEIGHT))
        out = io.BytesIO()
        image.save(out, format="WEBP", quality=WEBP_QUALITY)

    buffer = out.getvalue()
    elapsed = time.perf_counter() - start
    record_screenshot_compression(elapsed, len(png_buffer), len(buffer))
    logger.debug(
        "screenshot_compressed",
        original_size=original_size,
        size=image.size,
        bytes_in=len(png_buffer),
        bytes_out=len(buffer),
        duration_ms=round(elapsed * 1000, 2),
    )
    return CompressedImage(buffer=buffer, content_type=WEBP_CONTENT_TYPE)


async def compress_screenshot_to_webp_async(png_buffer: bytes) -> CompressedImage:
    """Run ``compress_screenshot_to_webp`` in a worker thread."""
    return await asyncio.to_thread(compress_screenshot_to_webp, png_buffer)
