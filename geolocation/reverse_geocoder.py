"""
Reverse Geocoder

Looks up a short street address for a coordinate pair. Lookups are started
as background tasks so photo processing never waits on the network.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx
import yaml

logger = logging.getLogger(__name__)

DEFAULT_GEOCODE_TIMEOUT = 3.0
NOMINATIM_URL = "https://nominatim.openstreetmap.org"


class ReverseGeocoder(ABC):
    """Interface for address lookup services."""

    @abstractmethod
    async def reverse_geocode(self, lat: float, lng: float) -> Optional[str]:
        """Return a short address for the coordinates, or None."""
        pass


class NullReverseGeocoder(ReverseGeocoder):
    """Geocoder that never resolves an address."""

    async def reverse_geocode(self, lat: float, lng: float) -> Optional[str]:
        return None


class NominatimReverseGeocoder(ReverseGeocoder):
    """
    OpenStreetMap Nominatim reverse geocoder.

    The whole lookup is bounded by a client-side timeout, independent of the
    service's own. Network errors, timeouts and unexpected responses all
    yield None.

    Attributes:
        base_url: Nominatim server
        user_agent: User-Agent header (required by the public server)
        timeout_seconds: Hard limit for one lookup

    Example:
        >>> geocoder = NominatimReverseGeocoder(user_agent='FacilityCheck/1.0')
        >>> await geocoder.reverse_geocode(-6.2088, 106.8456)
        'Jalan M.H. Thamrin, Menteng'
    """

    def __init__(self, base_url: str = NOMINATIM_URL, user_agent: str = 'FacilityCheck/1.0',
                 timeout_seconds: float = DEFAULT_GEOCODE_TIMEOUT,
                 client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip('/')
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds
        self.client = client

    async def reverse_geocode(self, lat: float, lng: float) -> Optional[str]:
        try:
            return await asyncio.wait_for(self._lookup(lat, lng), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Geocoding timeout - using GPS coordinates only")
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Geocoding error - using GPS coordinates only: {e}")
        return None

    async def _lookup(self, lat: float, lng: float) -> Optional[str]:
        params = {'format': 'json', 'lat': lat, 'lon': lng, 'zoom': 18, 'addressdetails': 1}
        headers = {'User-Agent': self.user_agent}

        if self.client is not None:
            response = await self.client.get(f"{self.base_url}/reverse", params=params, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(f"{self.base_url}/reverse", params=params, headers=headers)

        if response.status_code != 200:
            logger.warning(f"Geocoding failed: HTTP {response.status_code}")
            return None

        return format_short_address(response.json().get('address') or {})


def format_short_address(address: dict) -> Optional[str]:
    """
    Build "road, suburb" style address from Nominatim address details.

    Example:
        >>> format_short_address({'road': 'Main St', 'suburb': 'Downtown', 'city': 'Springfield'})
        'Main St, Downtown'
    """
    parts = [
        address.get('road'),
        address.get('suburb') or address.get('neighbourhood'),
        address.get('city') or address.get('county'),
    ]
    parts = [p for p in parts if p]
    if not parts:
        return None
    return ', '.join(parts[:2])


class GeocodeTask:
    """
    Handle for a reverse geocoding lookup running in the background.

    The photo that starts the lookup owns the handle: it reads the address
    only if it is ready by the time the photo is finalized, and cancels the
    lookup otherwise. The lookup can never outlive its own timeout.

    Example:
        >>> task = GeocodeTask.start(geocoder, lat, lng)
        >>> ...  # keep processing
        >>> address = task.address_if_ready()
        >>> task.cancel()
    """

    def __init__(self, task: 'asyncio.Task'):
        self._task = task

    @classmethod
    def start(cls, geocoder: ReverseGeocoder, lat: float, lng: float,
              timeout_seconds: float = DEFAULT_GEOCODE_TIMEOUT) -> 'GeocodeTask':
        """Start a lookup on the running event loop and return its handle."""
        loop = asyncio.get_running_loop()
        task = loop.create_task(_bounded_lookup(geocoder, lat, lng, timeout_seconds))
        return cls(task)

    def done(self) -> bool:
        return self._task.done()

    def address_if_ready(self) -> Optional[str]:
        """The resolved address, or None if still pending, cancelled or failed."""
        if not self._task.done() or self._task.cancelled():
            return None
        return self._task.result()

    async def wait(self, timeout_seconds: float) -> Optional[str]:
        """Wait up to timeout_seconds for the address without cancelling the lookup."""
        if timeout_seconds > 0 and not self._task.done():
            await asyncio.wait({self._task}, timeout=timeout_seconds)
        return self.address_if_ready()

    def cancel(self):
        if not self._task.done():
            self._task.cancel()


async def _bounded_lookup(geocoder: ReverseGeocoder, lat: float, lng: float,
                          timeout_seconds: float) -> Optional[str]:
    try:
        return await asyncio.wait_for(geocoder.reverse_geocode(lat, lng), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(f"Reverse geocoding exceeded {timeout_seconds}s")
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.warning(f"Reverse geocoding failed: {e}")
    return None


def create_reverse_geocoder(config_path: str = 'config.yaml') -> ReverseGeocoder:
    """Factory function to create a reverse geocoder from configuration."""
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    geocoding_config = config.get('geocoding', {}) or {}
    geocoder_type = geocoding_config.get('type', 'none')

    if geocoder_type == 'none':
        return NullReverseGeocoder()

    elif geocoder_type == 'nominatim':
        return NominatimReverseGeocoder(
            base_url=geocoding_config.get('base_url', NOMINATIM_URL),
            user_agent=geocoding_config.get('user_agent', 'FacilityCheck/1.0'),
            timeout_seconds=float(geocoding_config.get('timeout_seconds', DEFAULT_GEOCODE_TIMEOUT))
        )

    else:
        raise ValueError(f"Unsupported geocoding type: {geocoder_type}")
