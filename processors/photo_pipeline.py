"""
Photo Pipeline

Per-photo evidence processing: capture (timestamp, location, background
address lookup), then compression, geotagging and watermarking.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import yaml

from models import PhotoEvidence
from geolocation import (
    GeocodeTask,
    LocationProvider,
    NullLocationProvider,
    ReverseGeocoder,
    acquire_location,
    create_location_provider,
    create_reverse_geocoder,
)
from geolocation.location_provider import DEFAULT_LOCATION_TIMEOUT
from geolocation.reverse_geocoder import DEFAULT_GEOCODE_TIMEOUT
from processors.image_compressor import (
    DEFAULT_COMPRESS_QUALITY,
    DEFAULT_MAX_DIMENSION,
    ImageCompressor,
    make_preview_url,
)
from processors.watermark import (
    DEFAULT_BRAND_LABEL,
    DEFAULT_DATE_FORMAT,
    DEFAULT_TIME_FORMAT,
    DEFAULT_WATERMARK_QUALITY,
    WatermarkInfo,
    WatermarkRenderer,
)

logger = logging.getLogger(__name__)


@dataclass
class PhotoContext:
    """Per-photo information the pipeline needs beyond the image itself."""

    location_name: str
    index: int = 0


class PhotoPipeline:
    """
    Turns captured photos into finalized, watermarked evidence.

    Photos are processed one at a time. Location and address lookups are
    best effort: the address is used only if its lookup has finished by the
    time the photo is finalized (optionally after a short bounded wait),
    otherwise the raw coordinates are burned in.

    If compression or watermarking fails, the photo is finalized with its
    original bytes so it can still be uploaded.

    Attributes:
        compressor: ImageCompressor instance
        watermark: WatermarkRenderer instance
        location_provider: LocationProvider used at capture time
        geocoder: Optional ReverseGeocoder started at capture time
        location_timeout: Seconds allowed for a position
        geocode_timeout: Hard limit for one address lookup
        address_wait_seconds: How long finalization may wait for a pending
            address, never more than geocode_timeout

    Example:
        >>> pipeline = PhotoPipeline.from_config('config.yaml')
        >>> evidence = await pipeline.capture(raw_bytes, component='floor_cleanliness')
        >>> await pipeline.finalize_photo(evidence, PhotoContext('Lobby Restroom'))
    """

    def __init__(self, compressor: Optional[ImageCompressor] = None,
                 watermark: Optional[WatermarkRenderer] = None,
                 location_provider: Optional[LocationProvider] = None,
                 geocoder: Optional[ReverseGeocoder] = None,
                 location_timeout: float = DEFAULT_LOCATION_TIMEOUT,
                 geocode_timeout: float = DEFAULT_GEOCODE_TIMEOUT,
                 address_wait_seconds: float = 0.0,
                 clock: Callable[[], datetime] = datetime.now):
        self.compressor = compressor or ImageCompressor()
        self.watermark = watermark or WatermarkRenderer()
        self.location_provider = location_provider or NullLocationProvider()
        self.geocoder = geocoder
        self.location_timeout = location_timeout
        self.geocode_timeout = geocode_timeout
        self.address_wait_seconds = min(max(0.0, address_wait_seconds), geocode_timeout)
        self.clock = clock

    @classmethod
    def from_config(cls, config_path: str = 'config.yaml') -> 'PhotoPipeline':
        """Create PhotoPipeline from configuration file."""
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}

        photos_config = config.get('photos', {}) or {}
        geo_config = config.get('geolocation', {}) or {}
        geocoding_config = config.get('geocoding', {}) or {}

        compressor = ImageCompressor(
            max_dimension=int(photos_config.get('max_dimension', DEFAULT_MAX_DIMENSION)),
            quality=float(photos_config.get('compress_quality', DEFAULT_COMPRESS_QUALITY))
        )
        watermark = WatermarkRenderer(
            brand_label=photos_config.get('brand_label', DEFAULT_BRAND_LABEL),
            quality=float(photos_config.get('watermark_quality', DEFAULT_WATERMARK_QUALITY)),
            date_format=photos_config.get('date_format', DEFAULT_DATE_FORMAT),
            time_format=photos_config.get('time_format', DEFAULT_TIME_FORMAT),
            font_path=photos_config.get('font_path')
        )

        return cls(
            compressor=compressor,
            watermark=watermark,
            location_provider=create_location_provider(config_path),
            geocoder=create_reverse_geocoder(config_path),
            location_timeout=float(geo_config.get('timeout_seconds', DEFAULT_LOCATION_TIMEOUT)),
            geocode_timeout=float(geocoding_config.get('timeout_seconds', DEFAULT_GEOCODE_TIMEOUT)),
            address_wait_seconds=float(geocoding_config.get('address_wait_seconds', 0.0))
        )

    async def capture(self, raw_bytes: bytes, component: Optional[str] = None) -> PhotoEvidence:
        """
        Record a newly taken photo.

        Stamps the capture time, tries once to get a position and, if one is
        found, starts the address lookup in the background without waiting
        for it.
        """
        captured_at = self.clock()
        location = await acquire_location(
            self.location_provider, self.location_timeout, photo_bytes=raw_bytes
        )
        preview_url = await asyncio.to_thread(make_preview_url, raw_bytes)

        evidence = PhotoEvidence(
            source_bytes=raw_bytes,
            captured_at=captured_at,
            component=component,
            geolocation=location,
            preview_url=preview_url,
        )

        if location is not None and self.geocoder is not None:
            evidence.geocode_task = GeocodeTask.start(
                self.geocoder, location.lat, location.lng, self.geocode_timeout
            )

        logger.debug(f"Captured photo for {component or 'documentation'}, location: {location}")
        return evidence

    async def finalize_photo(self, evidence: PhotoEvidence, context: PhotoContext) -> PhotoEvidence:
        """
        Compress, geotag and watermark one photo.

        Already finalized evidence is returned unchanged. Any failure falls
        back to the original bytes, unwatermarked.
        """
        if evidence.is_finalized:
            return evidence

        try:
            compressed = await asyncio.to_thread(self.compressor.compress, evidence.source_bytes)
            await self._geotag(evidence)

            info = WatermarkInfo(
                location_name=context.location_name,
                captured_at=evidence.captured_at,
                geolocation=evidence.geolocation,
            )
            stamped = await asyncio.to_thread(self.watermark.render, compressed, info)
            evidence.finalize(stamped, watermarked=True)

        except Exception as e:
            logger.error(f"Photo {context.index + 1} processing failed, keeping original bytes: {e}")
            evidence.finalize(evidence.source_bytes, watermarked=False)

        return evidence

    async def process_photo(self, raw_bytes: bytes, context: PhotoContext,
                            component: Optional[str] = None) -> PhotoEvidence:
        """Capture and finalize a photo in one step."""
        evidence = await self.capture(raw_bytes, component=component)
        return await self.finalize_photo(evidence, context)

    async def _geotag(self, evidence: PhotoEvidence):
        task = evidence.geocode_task
        if task is None or evidence.geolocation is None:
            return

        address = await task.wait(self.address_wait_seconds)
        if address:
            evidence.attach_address(address)
        else:
            logger.debug("Address not available yet, using coordinates")
