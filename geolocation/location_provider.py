"""
Location Provider

Best-effort acquisition of the coordinates where a photo was taken.
Providers behave like a device geolocation API: they either return a
position or raise. `acquire_location` turns every failure into "no location".
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from io import BytesIO
from typing import Optional

import yaml
from PIL import Image, UnidentifiedImageError

from models import GeoLocation

logger = logging.getLogger(__name__)

DEFAULT_LOCATION_TIMEOUT = 10.0

# EXIF pointer to the GPS IFD and the tags inside it
GPS_IFD = 0x8825
GPS_LATITUDE_REF = 1
GPS_LATITUDE = 2
GPS_LONGITUDE_REF = 3
GPS_LONGITUDE = 4


class LocationUnavailableError(RuntimeError):
    """Raised by a provider that cannot produce a position."""


class LocationProvider(ABC):
    """Interface for position sources."""

    @abstractmethod
    async def get_current_position(self, timeout_seconds: float,
                                   photo_bytes: Optional[bytes] = None) -> GeoLocation:
        """
        Get the current position.

        Args:
            timeout_seconds: How long the provider may take
            photo_bytes: Photo being captured, for providers that read it

        Raises:
            LocationUnavailableError: If no position can be determined
        """
        pass


class NullLocationProvider(LocationProvider):
    """Provider for deployments without any location source."""

    async def get_current_position(self, timeout_seconds: float,
                                   photo_bytes: Optional[bytes] = None) -> GeoLocation:
        raise LocationUnavailableError("Geolocation not supported")


class StaticLocationProvider(LocationProvider):
    """
    Always reports the same configured point.

    Suitable for fixed-site deployments where the inspected facility does
    not move.
    """

    def __init__(self, lat: float, lng: float):
        self.location = GeoLocation(lat=lat, lng=lng)

    async def get_current_position(self, timeout_seconds: float,
                                   photo_bytes: Optional[bytes] = None) -> GeoLocation:
        return GeoLocation(lat=self.location.lat, lng=self.location.lng)


class ExifLocationProvider(LocationProvider):
    """
    Reads the GPS position the camera embedded in the photo's EXIF data.

    Example:
        >>> provider = ExifLocationProvider()
        >>> location = await provider.get_current_position(10, photo_bytes=data)
    """

    async def get_current_position(self, timeout_seconds: float,
                                   photo_bytes: Optional[bytes] = None) -> GeoLocation:
        if not photo_bytes:
            raise LocationUnavailableError("No photo to read GPS data from")

        location = read_exif_location(photo_bytes)
        if location is None:
            raise LocationUnavailableError("Photo has no GPS data")
        return location


def dms_to_degrees(dms, ref) -> float:
    """
    Convert EXIF degrees/minutes/seconds to signed decimal degrees.

    Example:
        >>> dms_to_degrees((6, 12, 36), 'S')
        -6.21
    """
    degrees, minutes, seconds = (float(v) for v in dms)
    value = degrees + minutes / 60.0 + seconds / 3600.0

    if isinstance(ref, bytes):
        ref = ref.decode('ascii', errors='ignore')
    if ref and ref.strip().upper() in ('S', 'W'):
        value = -value
    return round(value, 6)


def read_exif_location(photo_bytes: bytes) -> Optional[GeoLocation]:
    """Extract GPS coordinates from image bytes, or None if absent."""
    try:
        with Image.open(BytesIO(photo_bytes)) as img:
            gps = img.getexif().get_ifd(GPS_IFD)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        logger.debug(f"Could not read EXIF: {e}")
        return None

    if not gps or GPS_LATITUDE not in gps or GPS_LONGITUDE not in gps:
        return None

    try:
        return GeoLocation(
            lat=dms_to_degrees(gps[GPS_LATITUDE], gps.get(GPS_LATITUDE_REF)),
            lng=dms_to_degrees(gps[GPS_LONGITUDE], gps.get(GPS_LONGITUDE_REF)),
        )
    except (TypeError, ValueError, ZeroDivisionError) as e:
        logger.debug(f"Malformed GPS data: {e}")
        return None


async def acquire_location(provider: LocationProvider,
                           timeout_seconds: float = DEFAULT_LOCATION_TIMEOUT,
                           photo_bytes: Optional[bytes] = None) -> Optional[GeoLocation]:
    """
    Try once to get a position; never raises.

    Permission errors, missing hardware, timeouts and any other provider
    failure all resolve to None.
    """
    try:
        return await asyncio.wait_for(
            provider.get_current_position(timeout_seconds, photo_bytes=photo_bytes),
            timeout=timeout_seconds
        )
    except asyncio.TimeoutError:
        logger.warning(f"Geolocation timed out after {timeout_seconds}s")
    except Exception as e:
        logger.warning(f"Geolocation unavailable: {e}")
    return None


def create_location_provider(config_path: str = 'config.yaml') -> LocationProvider:
    """
    Factory function to create a location provider from configuration.

    Example:
        >>> provider = create_location_provider('config.yaml')
    """
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    geo_config = config.get('geolocation', {}) or {}
    provider_type = geo_config.get('type', 'none')

    if provider_type == 'none':
        return NullLocationProvider()

    elif provider_type == 'static':
        static_config = geo_config.get('static', {}) or {}
        return StaticLocationProvider(
            lat=float(static_config['lat']),
            lng=float(static_config['lng'])
        )

    elif provider_type == 'exif':
        return ExifLocationProvider()

    else:
        raise ValueError(f"Unsupported geolocation type: {provider_type}")
