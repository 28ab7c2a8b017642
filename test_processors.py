"""
Photo Processing Tests
Tests: compression bounds, watermark content and placement, pipeline
fallback to original bytes, bounded address lookup
"""

import asyncio
import time
from datetime import datetime
from io import BytesIO

import pytest
from PIL import Image

from geolocation import ReverseGeocoder, StaticLocationProvider
from models import GeoLocation
from processors import (
    ImageCompressor,
    PhotoContext,
    PhotoPipeline,
    PhotoProcessingError,
    WatermarkInfo,
    WatermarkRenderer,
    build_watermark_lines,
    make_preview_url,
)

CAPTURED_AT = datetime(2024, 3, 5, 14, 7, 9)


def _jpeg(width: int, height: int, color='white') -> bytes:
    buffer = BytesIO()
    Image.new('RGB', (width, height), color).save(buffer, format='JPEG', quality=95)
    return buffer.getvalue()


def _open(data: bytes) -> Image.Image:
    img = Image.open(BytesIO(data))
    img.load()
    return img


class FixedGeocoder(ReverseGeocoder):
    async def reverse_geocode(self, lat, lng):
        return 'Main St, Downtown'


class HangingGeocoder(ReverseGeocoder):
    async def reverse_geocode(self, lat, lng):
        await asyncio.sleep(30)


class BrokenWatermark(WatermarkRenderer):
    def render(self, data, info):
        raise PhotoProcessingError("canvas unavailable")


# ===========================
# Compression
# ===========================

def test_compress_bounds_longest_side():
    output = ImageCompressor(max_dimension=1200, quality=0.8).compress(_jpeg(3000, 2000))
    img = _open(output)

    assert img.format == 'JPEG'
    assert img.size == (1200, 800)


def test_compress_portrait():
    img = _open(ImageCompressor(max_dimension=1200).compress(_jpeg(1000, 2400)))
    assert img.size == (500, 1200)


def test_compress_never_enlarges():
    img = _open(ImageCompressor(max_dimension=1200).compress(_jpeg(640, 480)))
    assert img.size == (640, 480)


def test_compress_rejects_non_images():
    with pytest.raises(PhotoProcessingError):
        ImageCompressor().compress(b'definitely not a jpeg')


def test_compressor_validates_settings():
    with pytest.raises(ValueError):
        ImageCompressor(quality=0)
    with pytest.raises(ValueError):
        ImageCompressor(max_dimension=0)


def test_preview_url():
    assert make_preview_url(_jpeg(600, 400)).startswith('data:image/jpeg;base64,')
    assert make_preview_url(b'garbage') is None


# ===========================
# Watermark
# ===========================

def test_watermark_lines_with_address():
    info = WatermarkInfo('Lobby Restroom', CAPTURED_AT, GeoLocation(-6.2, 106.816666, address='Main St, Downtown'))

    assert build_watermark_lines(info) == ['Lobby Restroom', '05/03/2024 14:07:09', 'Main St, Downtown']


def test_watermark_lines_with_coordinates():
    info = WatermarkInfo('Lobby Restroom', CAPTURED_AT, GeoLocation(-6.2, 106.816666))

    assert build_watermark_lines(info)[2] == '-6.200000, 106.816666'


def test_watermark_lines_without_location():
    assert build_watermark_lines(WatermarkInfo('Lobby', CAPTURED_AT)) == ['Lobby', '05/03/2024 14:07:09']


def test_watermark_is_burned_into_corners():
    """Info box bottom-left and brand label top-right darken a white photo"""
    info = WatermarkInfo('Lobby Restroom', CAPTURED_AT, GeoLocation(-6.2, 106.816666))
    img = _open(WatermarkRenderer().render(_jpeg(800, 600), info)).convert('L')

    assert img.size == (800, 600)
    # inside the info box, left of the text
    assert img.getpixel((25, 575)) < 128
    # inside the brand box, right of the text
    assert img.getpixel((775, 25)) < 170
    # untouched centre
    assert img.getpixel((400, 300)) > 240


def test_watermark_scales_with_width():
    info = WatermarkInfo('Lobby Restroom', CAPTURED_AT)
    img = _open(WatermarkRenderer().render(_jpeg(2400, 1600), info)).convert('L')

    # padding is 60px at this width
    assert img.getpixel((30, 1570)) > 240
    assert img.getpixel((70, 1530)) < 128


# ===========================
# Pipeline
# ===========================

@pytest.mark.asyncio
async def test_process_photo_full_path():
    pipeline = PhotoPipeline(
        location_provider=StaticLocationProvider(-6.2, 106.816666),
        geocoder=FixedGeocoder(),
        address_wait_seconds=1.0,
        clock=lambda: CAPTURED_AT,
    )

    evidence = await pipeline.process_photo(_jpeg(2400, 1800), PhotoContext('Lobby Restroom'), component='floor_cleanliness')

    assert evidence.is_finalized
    assert evidence.watermarked
    assert evidence.captured_at == CAPTURED_AT
    assert evidence.component == 'floor_cleanliness'
    assert evidence.geolocation.address == 'Main St, Downtown'
    assert evidence.preview_url.startswith('data:image/jpeg')
    assert evidence.geocode_task is None
    assert _open(evidence.upload_bytes()).size == (1200, 900)


@pytest.mark.asyncio
async def test_unreadable_photo_falls_back_to_original_bytes():
    raw = b'\xff\xd8 truncated upload'
    evidence = await PhotoPipeline().process_photo(raw, PhotoContext('Lobby'))

    assert evidence.is_finalized
    assert not evidence.watermarked
    assert evidence.upload_bytes() == raw


@pytest.mark.asyncio
async def test_oversized_image_falls_back_to_original_bytes(monkeypatch):
    """Images over Pillow's pixel limit are kept as captured, not dropped"""
    raw = _jpeg(640, 480)
    monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 1000)

    with pytest.raises(PhotoProcessingError):
        ImageCompressor().compress(raw)

    pipeline = PhotoPipeline()
    evidence = await pipeline.capture(raw)
    assert evidence.preview_url is None

    await pipeline.finalize_photo(evidence, PhotoContext('Lobby'))
    assert evidence.is_finalized
    assert not evidence.watermarked
    assert evidence.upload_bytes() == raw


@pytest.mark.asyncio
async def test_watermark_failure_falls_back_to_original_bytes():
    raw = _jpeg(400, 300)
    pipeline = PhotoPipeline(watermark=BrokenWatermark())

    evidence = await pipeline.process_photo(raw, PhotoContext('Lobby'))

    assert not evidence.watermarked
    assert evidence.upload_bytes() == raw


@pytest.mark.asyncio
async def test_hanging_geocoder_does_not_delay_finalization():
    pipeline = PhotoPipeline(
        location_provider=StaticLocationProvider(1.0, 2.0),
        geocoder=HangingGeocoder(),
        geocode_timeout=0.2,
        address_wait_seconds=0.5,
    )

    started = time.monotonic()
    evidence = await pipeline.process_photo(_jpeg(800, 600), PhotoContext('Lobby'))
    elapsed = time.monotonic() - started

    assert elapsed < 0.2 + 2
    assert evidence.watermarked
    assert evidence.geolocation.address is None
    assert evidence.geocode_task is None


@pytest.mark.asyncio
async def test_capture_does_not_wait_for_address():
    pipeline = PhotoPipeline(
        location_provider=StaticLocationProvider(1.0, 2.0),
        geocoder=HangingGeocoder(),
        geocode_timeout=10,
    )

    started = time.monotonic()
    evidence = await pipeline.capture(_jpeg(200, 200))

    assert time.monotonic() - started < 2
    assert evidence.geolocation is not None
    assert evidence.geocode_task is not None
    assert not evidence.geocode_task.done()

    evidence.cancel_geocoding()
    assert evidence.geocode_task is None


@pytest.mark.asyncio
async def test_finalize_is_done_once():
    pipeline = PhotoPipeline()
    evidence = await pipeline.capture(_jpeg(300, 300))

    await pipeline.finalize_photo(evidence, PhotoContext('Lobby'))
    first = evidence.final_bytes
    await pipeline.finalize_photo(evidence, PhotoContext('Lobby'))

    assert evidence.final_bytes is first
    with pytest.raises(RuntimeError):
        evidence.attach_address('Too late')
