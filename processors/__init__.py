"""
Processors package: image compression, watermarking and the per-photo
evidence pipeline.
"""

from .image_compressor import (
    ImageCompressor,
    PhotoProcessingError,
    make_preview_url,
)
from .watermark import (
    WatermarkInfo,
    WatermarkRenderer,
    build_watermark_lines,
)
from .photo_pipeline import PhotoContext, PhotoPipeline

__all__ = [
    'ImageCompressor',
    'PhotoProcessingError',
    'make_preview_url',
    'WatermarkInfo',
    'WatermarkRenderer',
    'build_watermark_lines',
    'PhotoContext',
    'PhotoPipeline',
]
