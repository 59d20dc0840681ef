"""Image input helpers for pantry photo detection.

Accepts the image forms a caller may hand over and turns them into one
validated InlineImage for the vision model:

- Direct bytes: used as-is
- HTTP/HTTPS URLs: fetched asynchronously (10s timeout)
- Data URLs (data:image/jpeg;base64,...): decoded from base64
- Plain base64 strings: decoded directly

Core Functions:
- load_image_bytes(): Get image bytes from any supported source (async)
- validate_image_format(): Check JPEG/PNG only
- validate_image_size(): Check MAX_IMAGE_SIZE_MB limit
- compress_image(): Optional JPEG re-encode of large images
- prepare_image(): All of the above, raising ValueError on unusable input
"""

import base64
from io import BytesIO
from typing import Optional

import aiohttp
import filetype
from PIL import Image

from pantry_chef.models.models import InlineImage
from pantry_chef.utils.config import GenerationSettings
from pantry_chef.utils.logger import logger


FETCH_TIMEOUT_SECONDS = 10
MAX_IMAGE_WIDTH = 1024


# ============================================================================
# Error Handling Helpers
# ============================================================================


def _log_error(operation_name: str, exception: Exception, log_level: str = "warning") -> None:
    msg = f"{operation_name}: {exception}"
    if log_level == "debug":
        logger.debug(msg)
    elif log_level == "error":
        logger.error(msg)
    else:
        logger.warning(msg)


async def safe_execute_async(
    coro,
    operation_name: str,
    log_level: str = "warning",
    default_return=None,
    reraise: bool = False,
):
    """Await an optional operation, logging and degrading on failure.

    Args:
        coro: Awaitable coroutine to execute.
        operation_name: Description for logging (e.g., "Fetch image from URL").
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
        default_return: Value to return on exception.
        reraise: If True, re-raise the exception after logging.

    Returns:
        Result of the coroutine, or default_return on exception if reraise=False.
    """
    try:
        return await coro
    except Exception as e:
        _log_error(operation_name, e, log_level)
        if reraise:
            raise
        return default_return


def safe_execute_sync(
    func,
    operation_name: str,
    log_level: str = "warning",
    default_return=None,
    reraise: bool = False,
):
    """Synchronous version of safe_execute_async (func takes no args)."""
    try:
        return func()
    except Exception as e:
        _log_error(operation_name, e, log_level)
        if reraise:
            raise
        return default_return


# ============================================================================
# Loading
# ============================================================================


async def fetch_image_bytes(url: str) -> Optional[bytes]:
    """Fetch an image over HTTP(S). Returns None on any failure (logged)."""

    async def _fetch_url():
        async with aiohttp.ClientSession() as session:
            async with session.get(url, timeout=aiohttp.ClientTimeout(total=FETCH_TIMEOUT_SECONDS)) as response:
                response.raise_for_status()
                return await response.read()

    return await safe_execute_async(
        _fetch_url(),
        f"Fetch image from URL: {url}",
        log_level="warning",
        default_return=None,
    )


def decode_base64_image(image_source: str) -> Optional[bytes]:
    """Decode a data URL or a plain base64 string. Returns None if it is not valid base64."""

    def _decode():
        encoded = image_source.split(",", 1)[1] if image_source.startswith("data:") else image_source
        return base64.b64decode("".join(encoded.split()), validate=True)

    decoded = safe_execute_sync(_decode, "Decode base64 image", log_level="warning", default_return=None)
    return decoded or None


async def load_image_bytes(image_source: str | bytes) -> Optional[bytes]:
    """Get raw image bytes from bytes, a URL, a data URL or plain base64.

    Args:
        image_source: Image bytes or a string in one of the supported forms.

    Returns:
        Image bytes, or None if the source could not be read.
    """
    if isinstance(image_source, (bytes, bytearray)):
        return bytes(image_source) or None

    if not isinstance(image_source, str) or not image_source.strip():
        return None

    source = image_source.strip()
    if source.startswith(("http://", "https://")):
        return await fetch_image_bytes(source)
    return decode_base64_image(source)


# ============================================================================
# Validation
# ============================================================================


def guess_mime_type(image_bytes: bytes) -> Optional[str]:
    """MIME type detected from magic bytes (not from any file name)."""
    kind = filetype.guess(image_bytes)
    return kind.mime if kind is not None else None


def validate_image_format(image_bytes: bytes) -> bool:
    """Validate image format (JPEG or PNG only), detected from magic bytes."""
    kind = filetype.guess(image_bytes)
    if kind is None or kind.extension not in ("jpg", "jpeg", "png"):
        logger.warning(f"Invalid image format: {kind.mime if kind else 'unknown'}. Only JPEG and PNG supported.")
        return False
    return True


def validate_image_size(image_bytes: bytes, max_size_mb: int) -> bool:
    """Validate raw byte length against max_size_mb."""
    size_mb = len(image_bytes) / (1024 * 1024)
    if size_mb > max_size_mb:
        logger.warning(f"Image size {size_mb:.2f}MB exceeds limit of {max_size_mb}MB")
        return False
    return True


# ============================================================================
# Compression
# ============================================================================


def compress_image(image_bytes: bytes, threshold_kb: int, max_width: int = MAX_IMAGE_WIDTH) -> bytes:
    """Re-encode large images as JPEG (quality 85, optimize, progressive).

    Images smaller than threshold_kb are returned unchanged. Oversized images
    are resized to max_width and color modes with alpha are flattened to RGB.
    Any Pillow failure returns the original bytes.
    """
    size_kb = len(image_bytes) / 1024
    if size_kb < threshold_kb:
        logger.debug(f"Image size {size_kb:.1f}KB below compression threshold ({threshold_kb}KB), skipping")
        return image_bytes

    def _compress():
        img = Image.open(BytesIO(image_bytes))

        if img.mode in ("RGBA", "LA", "P"):
            img = img.convert("RGBA")
            rgb_img = Image.new("RGB", img.size, (255, 255, 255))
            rgb_img.paste(img, mask=img.split()[-1])
            img = rgb_img
        elif img.mode != "RGB":
            img = img.convert("RGB")

        if img.width > max_width:
            ratio = max_width / img.width
            img = img.resize((max_width, int(img.height * ratio)), Image.Resampling.LANCZOS)

        output = BytesIO()
        img.save(output, format="JPEG", quality=85, optimize=True, progressive=True)
        compressed_bytes = output.getvalue()

        logger.debug(
            f"Image compressed: {size_kb:.1f}KB → {len(compressed_bytes) / 1024:.1f}KB "
            f"({(1 - len(compressed_bytes) / len(image_bytes)) * 100:.1f}% reduction)"
        )
        return compressed_bytes

    return safe_execute_sync(_compress, "Image compression", log_level="warning", default_return=image_bytes)


async def prepare_image(image_source: str | bytes, settings: GenerationSettings) -> InlineImage:
    """Load, validate and optionally compress an image for the vision model.

    Args:
        image_source: Image bytes, http(s) URL, data URL or base64 string.
        settings: Size limit and compression settings.

    Returns:
        InlineImage ready to send with a prompt.

    Raises:
        ValueError: If the image cannot be read, is not JPEG/PNG, or is too large.
    """
    image_bytes = await load_image_bytes(image_source)
    if not image_bytes:
        raise ValueError("Could not read image data")
    if not validate_image_format(image_bytes):
        raise ValueError("Unsupported image format. Only JPEG and PNG are supported.")
    if not validate_image_size(image_bytes, settings.max_image_size_mb):
        raise ValueError(f"Image exceeds the {settings.max_image_size_mb}MB size limit")

    if settings.compress_images:
        image_bytes = compress_image(image_bytes, settings.compress_threshold_kb)

    return InlineImage(data=image_bytes, mime_type=guess_mime_type(image_bytes) or "image/jpeg")
