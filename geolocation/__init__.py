"""
Geolocation package: capture location and reverse geocoding.
"""

from .location_provider import (
    LocationProvider,
    LocationUnavailableError,
    NullLocationProvider,
    StaticLocationProvider,
    ExifLocationProvider,
    acquire_location,
    create_location_provider,
    dms_to_degrees,
    read_exif_location,
)
from .reverse_geocoder import (
    ReverseGeocoder,
    NullReverseGeocoder,
    NominatimReverseGeocoder,
    GeocodeTask,
    create_reverse_geocoder,
    format_short_address,
)

__all__ = [
    'LocationProvider',
    'LocationUnavailableError',
    'NullLocationProvider',
    'StaticLocationProvider',
    'ExifLocationProvider',
    'acquire_location',
    'create_location_provider',
    'dms_to_degrees',
    'read_exif_location',
    'ReverseGeocoder',
    'NullReverseGeocoder',
    'NominatimReverseGeocoder',
    'GeocodeTask',
    'create_reverse_geocoder',
    'format_short_address',
]
