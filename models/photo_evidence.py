"""
Photo Evidence Model

Represents a photo captured during an inspection, from capture through
watermarking until it has been handed to object storage.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class GeoLocation:
    """
    Coordinates where a photo was taken, with an optional street address.

    Attributes:
        lat: Latitude in decimal degrees
        lng: Longitude in decimal degrees
        address: Short address from reverse geocoding, if it resolved in time
    """

    lat: float
    lng: float
    address: Optional[str] = None

    def __post_init__(self):
        if not (-90.0 <= self.lat <= 90.0):
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not (-180.0 <= self.lng <= 180.0):
            raise ValueError(f"Longitude out of range: {self.lng}")

    def format_coordinates(self) -> str:
        """Coordinates as "lat, lng" with 6 decimal places."""
        return f"{self.lat:.6f}, {self.lng:.6f}"

    def to_dict(self) -> dict:
        return {'lat': self.lat, 'lng': self.lng, 'address': self.address}


@dataclass
class PhotoEvidence:
    """
    A single evidence photo owned by an inspection session.

    The evidence is mutable while being processed. Once `finalize()` stores
    the watermarked bytes it becomes read-only. Buffers are dropped with
    `discard_buffers()` when the session ends, after which only the uploaded
    URL is kept.

    Attributes:
        source_bytes: Bytes of the photo as captured
        captured_at: Capture timestamp
        component: Component id the photo documents, None for a general
            documentation photo
        geolocation: Best-effort capture location
        preview_url: Small data URI preview for display, if one could be built
        final_bytes: Processed bytes ready for upload
        watermarked: Whether final_bytes carries the watermark
        url: Durable URL after upload
        geocode_task: Pending reverse geocoding handle owned by this photo

    Example:
        >>> evidence = PhotoEvidence(source_bytes=raw, captured_at=datetime.now())
        >>> evidence.finalize(processed, watermarked=True)
        >>> evidence.mark_uploaded('https://bucket/inspections/abc.jpg')
    """

    source_bytes: bytes
    captured_at: datetime
    component: Optional[str] = None
    geolocation: Optional[GeoLocation] = None
    preview_url: Optional[str] = None

    final_bytes: Optional[bytes] = None
    watermarked: bool = False
    url: Optional[str] = None
    geocode_task: Any = field(default=None, repr=False, compare=False)

    _finalized: bool = field(default=False, init=False, repr=False)

    @property
    def is_documentation(self) -> bool:
        return self.component is None

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def attach_location(self, location: Optional[GeoLocation]):
        if self._finalized:
            raise RuntimeError("Cannot change location of a finalized photo")
        self.geolocation = location

    def attach_address(self, address: Optional[str]):
        if self._finalized:
            raise RuntimeError("Cannot change address of a finalized photo")
        if self.geolocation and address:
            self.geolocation.address = address

    def finalize(self, data: bytes, watermarked: bool):
        """Store the bytes that will be uploaded. Can only happen once."""
        if self._finalized:
            raise RuntimeError("Photo evidence is already finalized")
        self.final_bytes = data
        self.watermarked = watermarked
        self._finalized = True
        self.cancel_geocoding()

    def mark_uploaded(self, url: Optional[str]):
        self.url = url

    def discard_buffers(self):
        self.source_bytes = b""
        self.final_bytes = None
        self.preview_url = None
        self.cancel_geocoding()

    def cancel_geocoding(self):
        if self.geocode_task is not None:
            self.geocode_task.cancel()
            self.geocode_task = None

    def upload_bytes(self) -> bytes:
        """Bytes to upload: processed if available, otherwise the original."""
        return self.final_bytes if self.final_bytes is not None else self.source_bytes

    def __repr__(self) -> str:
        return (
            f"PhotoEvidence(component={self.component!r}, "
            f"captured_at={self.captured_at.isoformat()}, "
            f"size={len(self.upload_bytes())}, watermarked={self.watermarked}, "
            f"url={self.url!r})"
        )
