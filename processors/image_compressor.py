"""
Image Compressor

Downsizes and re-encodes captured photos before upload.
"""

import base64
import logging
from io import BytesIO
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_MAX_DIMENSION = 1200
DEFAULT_COMPRESS_QUALITY = 0.8
PREVIEW_SIZE = 256


class PhotoProcessingError(RuntimeError):
    """Raised when a photo cannot be decoded, transformed or encoded."""


def to_jpeg_quality(quality: float) -> int:
    """Map a 0..1 quality factor to Pillow's 1..95 JPEG quality scale."""
    if not (0 < quality <= 1):
        raise ValueError(f"Quality must be in (0, 1], got {quality}")
    return max(1, min(95, int(round(quality * 100))))


def open_rgb(data: bytes) -> Image.Image:
    """
    Decode image bytes into an upright RGB image.

    Raises:
        PhotoProcessingError: If the bytes are not a readable image
    """
    try:
        with Image.open(BytesIO(data)) as source:
            return ImageOps.exif_transpose(source).convert('RGB')
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise PhotoProcessingError(f"Cannot decode image: {e}") from e


def encode_jpeg(img: Image.Image, quality: float) -> bytes:
    buffer = BytesIO()
    try:
        img.save(buffer, format='JPEG', quality=to_jpeg_quality(quality), optimize=True)
    except (OSError, ValueError) as e:
        raise PhotoProcessingError(f"Cannot encode image: {e}") from e
    return buffer.getvalue()


class ImageCompressor:
    """
    Resizes photos to a bounded maximum dimension and re-encodes as JPEG.

    Aspect ratio is preserved and images already within bounds are never
    enlarged.

    Attributes:
        max_dimension: Longest allowed side in pixels
        quality: JPEG quality factor in (0, 1]

    Example:
        >>> compressor = ImageCompressor(max_dimension=1200, quality=0.8)
        >>> small = compressor.compress(raw_bytes)
    """

    def __init__(self, max_dimension: int = DEFAULT_MAX_DIMENSION,
                 quality: float = DEFAULT_COMPRESS_QUALITY):
        if max_dimension <= 0:
            raise ValueError(f"max_dimension must be positive, got {max_dimension}")
        to_jpeg_quality(quality)
        self.max_dimension = max_dimension
        self.quality = quality

    def compress(self, data: bytes) -> bytes:
        """
        Compress one photo.

        Raises:
            PhotoProcessingError: If the photo cannot be processed
        """
        img = open_rgb(data)
        original_size = img.size
        img.thumbnail((self.max_dimension, self.max_dimension), Image.Resampling.LANCZOS)
        output = encode_jpeg(img, self.quality)

        logger.debug(
            f"Compressed {original_size[0]}x{original_size[1]} -> {img.size[0]}x{img.size[1]}, "
            f"{len(data) / 1024:.1f}KB -> {len(output) / 1024:.1f}KB"
        )
        return output


def make_preview_url(data: bytes, size: int = PREVIEW_SIZE) -> Optional[str]:
    """Small JPEG thumbnail as a data URI, or None if the bytes are not an image."""
    try:
        img = open_rgb(data)
        img.thumbnail((size, size))
        encoded = base64.b64encode(encode_jpeg(img, 0.7)).decode('ascii')
    except PhotoProcessingError as e:
        logger.debug(f"No preview: {e}")
        return None
    return f"data:image/jpeg;base64,{encoded}"
