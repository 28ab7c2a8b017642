"""
Watermark Renderer

Burns provenance text (facility, capture time, location) and a brand label
into evidence photos.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from PIL import Image, ImageDraw, ImageFont

from models import GeoLocation
from processors.image_compressor import PhotoProcessingError, encode_jpeg, open_rgb

logger = logging.getLogger(__name__)

DEFAULT_BRAND_LABEL = "FACILITY CHECK"
DEFAULT_WATERMARK_QUALITY = 0.9
DEFAULT_DATE_FORMAT = "%d/%m/%Y"
DEFAULT_TIME_FORMAT = "%H:%M:%S"
DEFAULT_FONT = "DejaVuSans-Bold.ttf"

# Sizes relative to image width, with a floor in pixels
PADDING_RATIO = 0.025
FONT_RATIO = 0.03
MIN_PADDING = 20
MIN_FONT_SIZE = 20
LINE_SPACING = 1.4

INFO_BOX_ALPHA = 0.75
BRAND_BOX_ALPHA = 0.6
BRAND_TEXT_ALPHA = 0.95
BRAND_FONT_SCALE = 0.9


@dataclass
class WatermarkInfo:
    """Text content of a watermark."""

    location_name: str
    captured_at: datetime
    geolocation: Optional[GeoLocation] = None


def build_watermark_lines(info: WatermarkInfo,
                          date_format: str = DEFAULT_DATE_FORMAT,
                          time_format: str = DEFAULT_TIME_FORMAT) -> List[str]:
    """
    Lines of the bottom-left info box, top to bottom.

    Facility name, capture date and time, then the resolved address or the
    raw coordinates when no address is known.

    Example:
        >>> build_watermark_lines(WatermarkInfo('Lobby Restroom', datetime(2024, 3, 5, 14, 7, 9),
        ...                                     GeoLocation(-6.2, 106.816666)))
        ['Lobby Restroom', '05/03/2024 14:07:09', '-6.200000, 106.816666']
    """
    lines = [
        info.location_name,
        f"{info.captured_at.strftime(date_format)} {info.captured_at.strftime(time_format)}",
    ]

    if info.geolocation is not None:
        if info.geolocation.address:
            lines.append(info.geolocation.address)
        else:
            lines.append(info.geolocation.format_coordinates())

    return lines


def _alpha(opacity: float) -> int:
    return int(round(255 * opacity))


class WatermarkRenderer:
    """
    Composes the watermark onto a photo and re-encodes it.

    A semi-transparent box anchored bottom-left holds the info lines; a
    smaller semi-transparent brand label sits top-right. Padding and font
    sizes scale with image width so the text stays legible at any
    resolution. One renderer is reused for every photo of a batch, one
    photo at a time.

    Attributes:
        brand_label: Text of the top-right label
        quality: JPEG quality factor of the output
        date_format: strftime format of the capture date
        time_format: strftime format of the capture time
        font_path: TrueType font file; Pillow's built-in font if unavailable

    Example:
        >>> renderer = WatermarkRenderer(brand_label='FACILITY CHECK')
        >>> stamped = renderer.render(jpeg_bytes, WatermarkInfo('Lobby', datetime.now()))
    """

    def __init__(self, brand_label: str = DEFAULT_BRAND_LABEL,
                 quality: float = DEFAULT_WATERMARK_QUALITY,
                 date_format: str = DEFAULT_DATE_FORMAT,
                 time_format: str = DEFAULT_TIME_FORMAT,
                 font_path: Optional[str] = None):
        self.brand_label = brand_label
        self.quality = quality
        self.date_format = date_format
        self.time_format = time_format
        self.font_path = font_path or DEFAULT_FONT
        self._fonts: Dict[int, ImageFont.ImageFont] = {}

    def _font(self, size: int):
        size = max(1, int(size))
        if size not in self._fonts:
            try:
                self._fonts[size] = ImageFont.truetype(self.font_path, size)
            except OSError:
                self._fonts[size] = ImageFont.load_default(size=size)
        return self._fonts[size]

    def render(self, data: bytes, info: WatermarkInfo) -> bytes:
        """
        Watermark one photo.

        Args:
            data: Image bytes (typically already compressed)
            info: Watermark content

        Returns:
            JPEG bytes of the watermarked photo

        Raises:
            PhotoProcessingError: If the image cannot be decoded or encoded
        """
        base = open_rgb(data).convert('RGBA')
        width, height = base.size

        overlay = Image.new('RGBA', base.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)

        padding = max(MIN_PADDING, width * PADDING_RATIO)
        font_size = max(MIN_FONT_SIZE, width * FONT_RATIO)

        self._draw_info_box(draw, info, width, height, padding, font_size)
        self._draw_brand_label(draw, width, padding, font_size)

        try:
            composed = Image.alpha_composite(base, overlay).convert('RGB')
        except ValueError as e:
            raise PhotoProcessingError(f"Cannot compose watermark: {e}") from e

        return encode_jpeg(composed, self.quality)

    def _draw_info_box(self, draw: ImageDraw.ImageDraw, info: WatermarkInfo,
                       width: int, height: int, padding: float, font_size: float):
        lines = build_watermark_lines(info, self.date_format, self.time_format)
        font = self._font(font_size)

        text_width = max(draw.textlength(line, font=font) for line in lines)
        line_height = font_size * LINE_SPACING
        box_height = len(lines) * line_height + padding * 2
        top = height - box_height - padding

        draw.rectangle(
            [padding, top, padding + text_width + padding * 3, top + box_height],
            fill=(0, 0, 0, _alpha(INFO_BOX_ALPHA))
        )

        for index, line in enumerate(lines):
            y = top + padding + index * line_height + (line_height - font_size) / 2
            draw.text((padding * 2, y), line, font=font, fill=(255, 255, 255, 255))

    def _draw_brand_label(self, draw: ImageDraw.ImageDraw, width: int,
                          padding: float, font_size: float):
        if not self.brand_label:
            return

        brand_size = font_size * BRAND_FONT_SCALE
        font = self._font(brand_size)
        brand_width = draw.textlength(self.brand_label, font=font)

        draw.rectangle(
            [width - brand_width - padding * 3, padding, width - padding, padding + font_size * 1.8],
            fill=(0, 0, 0, _alpha(BRAND_BOX_ALPHA))
        )
        draw.text(
            (width - brand_width - padding * 2, padding + (font_size * 1.8 - brand_size) / 2),
            self.brand_label,
            font=font,
            fill=(255, 255, 255, _alpha(BRAND_TEXT_ALPHA))
        )
