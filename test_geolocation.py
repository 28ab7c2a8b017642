"""
Geolocation Tests
Tests: soft-fail location acquisition, EXIF GPS reading, Nominatim lookups,
background geocoding with hard timeouts
"""

import asyncio
import time
from io import BytesIO

import httpx
import pytest
from PIL import Image

from geolocation import (
    ExifLocationProvider,
    GeocodeTask,
    LocationProvider,
    NominatimReverseGeocoder,
    NullLocationProvider,
    NullReverseGeocoder,
    ReverseGeocoder,
    StaticLocationProvider,
    acquire_location,
    create_location_provider,
    create_reverse_geocoder,
    dms_to_degrees,
    format_short_address,
)
from geolocation.location_provider import GPS_IFD, read_exif_location


class HangingLocationProvider(LocationProvider):
    async def get_current_position(self, timeout_seconds, photo_bytes=None):
        await asyncio.sleep(30)


class DeniedLocationProvider(LocationProvider):
    async def get_current_position(self, timeout_seconds, photo_bytes=None):
        raise PermissionError("User denied geolocation")


class HangingGeocoder(ReverseGeocoder):
    async def reverse_geocode(self, lat, lng):
        await asyncio.sleep(30)
        return "never"


class FixedGeocoder(ReverseGeocoder):
    def __init__(self, address):
        self.address = address

    async def reverse_geocode(self, lat, lng):
        return self.address


def _jpeg_with_gps() -> bytes:
    exif = Image.Exif()
    exif[GPS_IFD] = {
        1: 'S',
        2: (6.0, 12.0, 36.0),
        3: 'E',
        4: (106.0, 49.0, 0.0),
    }
    buffer = BytesIO()
    Image.new('RGB', (32, 32), 'white').save(buffer, format='JPEG', exif=exif)
    return buffer.getvalue()


# ===========================
# Location acquisition
# ===========================

@pytest.mark.asyncio
async def test_null_provider_yields_no_location():
    assert await acquire_location(NullLocationProvider(), 1) is None


@pytest.mark.asyncio
async def test_provider_errors_yield_no_location():
    assert await acquire_location(DeniedLocationProvider(), 1) is None


@pytest.mark.asyncio
async def test_provider_timeout_yields_no_location():
    started = time.monotonic()
    assert await acquire_location(HangingLocationProvider(), 0.05) is None
    assert time.monotonic() - started < 2


@pytest.mark.asyncio
async def test_static_provider():
    location = await acquire_location(StaticLocationProvider(-6.2, 106.816666), 1)

    assert location.lat == -6.2
    assert location.format_coordinates() == '-6.200000, 106.816666'


@pytest.mark.asyncio
async def test_exif_provider_reads_gps():
    location = await acquire_location(ExifLocationProvider(), 1, photo_bytes=_jpeg_with_gps())

    assert location.lat == pytest.approx(-6.21)
    assert location.lng == pytest.approx(106.816667)


@pytest.mark.asyncio
async def test_exif_provider_without_gps():
    buffer = BytesIO()
    Image.new('RGB', (8, 8)).save(buffer, format='JPEG')

    assert await acquire_location(ExifLocationProvider(), 1, photo_bytes=buffer.getvalue()) is None
    assert await acquire_location(ExifLocationProvider(), 1, photo_bytes=b'not an image') is None
    assert await acquire_location(ExifLocationProvider(), 1) is None


def test_exif_reader_ignores_oversized_images(monkeypatch):
    photo = _jpeg_with_gps()
    monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 1)

    assert read_exif_location(photo) is None


def test_dms_conversion():
    assert dms_to_degrees((6, 12, 36), 'S') == -6.21
    assert dms_to_degrees((6, 12, 36), b'N') == 6.21
    assert dms_to_degrees((106, 49, 0), 'W') == pytest.approx(-106.816667)


def test_location_provider_factory(tmp_path):
    config_path = tmp_path / 'config.yaml'

    config_path.write_text('geolocation:\n  type: static\n  static:\n    lat: 1.5\n    lng: 2.5\n')
    assert isinstance(create_location_provider(str(config_path)), StaticLocationProvider)

    config_path.write_text('geolocation:\n  type: exif\n')
    assert isinstance(create_location_provider(str(config_path)), ExifLocationProvider)

    config_path.write_text('geolocation:\n  type: gps-dongle\n')
    with pytest.raises(ValueError):
        create_location_provider(str(config_path))


# ===========================
# Reverse geocoding
# ===========================

def test_short_address():
    assert format_short_address({'road': 'Main St', 'suburb': 'Downtown', 'city': 'Springfield'}) == 'Main St, Downtown'
    assert format_short_address({'neighbourhood': 'Old Town', 'county': 'Kent'}) == 'Old Town, Kent'
    assert format_short_address({'city': 'Springfield'}) == 'Springfield'
    assert format_short_address({}) is None


@pytest.mark.asyncio
async def test_nominatim_lookup():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen['path'] = request.url.path
        seen['params'] = dict(request.url.params)
        seen['agent'] = request.headers.get('user-agent')
        return httpx.Response(200, json={
            'display_name': 'long',
            'address': {'road': 'Jalan Thamrin', 'suburb': 'Menteng', 'city': 'Jakarta'},
        })

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        geocoder = NominatimReverseGeocoder(base_url='https://geo.test', user_agent='Test/1.0', client=client)
        address = await geocoder.reverse_geocode(-6.2, 106.8)

    assert address == 'Jalan Thamrin, Menteng'
    assert seen['path'] == '/reverse'
    assert seen['params']['format'] == 'json'
    assert seen['params']['zoom'] == '18'
    assert seen['params']['lat'] == '-6.2'
    assert seen['params']['lon'] == '106.8'
    assert seen['agent'] == 'Test/1.0'


@pytest.mark.asyncio
async def test_nominatim_failures_yield_none():
    responses = iter([
        httpx.Response(503, text='busy'),
        httpx.Response(200, content=b'<html>not json</html>'),
        httpx.Response(200, json={'error': 'Unable to geocode'}),
    ])

    def handler(request):
        return next(responses)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        geocoder = NominatimReverseGeocoder(base_url='https://geo.test', client=client)
        assert await geocoder.reverse_geocode(0, 0) is None
        assert await geocoder.reverse_geocode(0, 0) is None
        assert await geocoder.reverse_geocode(0, 0) is None


@pytest.mark.asyncio
async def test_nominatim_network_error_yields_none():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        geocoder = NominatimReverseGeocoder(base_url='https://geo.test', client=client)
        assert await geocoder.reverse_geocode(0, 0) is None


@pytest.mark.asyncio
async def test_nominatim_hang_is_cut_off():
    async def handler(request):
        await asyncio.sleep(30)
        return httpx.Response(200, json={})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        geocoder = NominatimReverseGeocoder(base_url='https://geo.test', timeout_seconds=0.05, client=client)
        started = time.monotonic()
        assert await geocoder.reverse_geocode(0, 0) is None

    assert time.monotonic() - started < 2


@pytest.mark.asyncio
async def test_geocode_task_resolves_in_background():
    task = GeocodeTask.start(FixedGeocoder('Main St, Downtown'), 1.0, 2.0, timeout_seconds=1)

    assert await task.wait(1) == 'Main St, Downtown'
    assert task.done()
    assert task.address_if_ready() == 'Main St, Downtown'


@pytest.mark.asyncio
async def test_geocode_task_hang_is_bounded():
    task = GeocodeTask.start(HangingGeocoder(), 1.0, 2.0, timeout_seconds=0.05)

    assert task.address_if_ready() is None
    started = time.monotonic()
    assert await task.wait(5) is None
    assert time.monotonic() - started < 2
    assert task.done()


@pytest.mark.asyncio
async def test_geocode_task_cancel():
    task = GeocodeTask.start(HangingGeocoder(), 1.0, 2.0, timeout_seconds=10)

    assert await task.wait(0) is None
    task.cancel()

    assert await task.wait(1) is None
    assert task.done()
    assert task.address_if_ready() is None


def test_reverse_geocoder_factory(tmp_path):
    config_path = tmp_path / 'config.yaml'

    config_path.write_text('geocoding:\n  type: none\n')
    assert isinstance(create_reverse_geocoder(str(config_path)), NullReverseGeocoder)

    config_path.write_text('geocoding:\n  type: nominatim\n  timeout_seconds: 2\n')
    geocoder = create_reverse_geocoder(str(config_path))
    assert isinstance(geocoder, NominatimReverseGeocoder)
    assert geocoder.timeout_seconds == 2.0
