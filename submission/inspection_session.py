"""
Inspection Session

Everything an inspector collects while one inspection form is open:
ratings, notes and evidence photos.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, TYPE_CHECKING

from catalog import ComponentCatalog, InspectionTemplate
from models import ComponentRating, PhotoEvidence, RatingSheet
from scoring import ScoreStatus, calculate_weighted_score, get_score_status

if TYPE_CHECKING:
    from processors import PhotoPipeline

logger = logging.getLogger(__name__)


class InspectionSession:
    """
    State of one open inspection form.

    The session exclusively owns its ratings and photos. Nothing is shared
    with other sessions, and once the session is closed or discarded its
    photo buffers are released and it can no longer be edited.

    Attributes:
        catalog: Components rated in this session
        location_id: Inspected location
        location_name: Facility name burned into watermarks
        user_id: Inspector
        sheet: RatingSheet with the ratings so far
        photos: Evidence photos in the order they were added
        started_at: When the form was opened
        max_photos: Optional cap on documentation photos
        pipeline: PhotoPipeline used to capture photos (optional)

    Example:
        >>> session = InspectionSession.from_template(template, 'loc-12', 'Lobby Restroom', 'user-7')
        >>> session.rate('aroma', 4)
        >>> await session.add_documentation_photo(jpeg_bytes)
        >>> session.current_score()
        80
    """

    def __init__(self, catalog: ComponentCatalog, location_id: str, location_name: str,
                 user_id: str, max_photos: Optional[int] = None,
                 pipeline: Optional['PhotoPipeline'] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.catalog = catalog
        self.location_id = location_id
        self.location_name = location_name
        self.user_id = user_id
        self.max_photos = max_photos
        self.pipeline = pipeline
        self.clock = clock

        self.sheet = RatingSheet(catalog)
        self.photos: List[PhotoEvidence] = []
        self.started_at = clock()
        self._closed = False

    @classmethod
    def from_template(cls, template: InspectionTemplate, location_id: str, location_name: str,
                      user_id: str, **kwargs) -> 'InspectionSession':
        """Open a session rated against a template's components."""
        kwargs.setdefault('max_photos', template.max_photos)
        return cls(template.components, location_id, location_name, user_id, **kwargs)

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self):
        if self._closed:
            raise RuntimeError("Inspection session is closed")

    # ===========================
    # Ratings
    # ===========================

    def rate(self, component_id: str, rating: int) -> ComponentRating:
        self._check_open()
        return self.sheet.rate(component_id, rating)

    def add_note(self, component_id: str, notes: Optional[str]):
        self._check_open()
        self.sheet.set_notes(component_id, notes)

    def apply_ratings(self, ratings: dict):
        """
        Rate several components at once.

        Values are either a star value or a mapping with `rating` and
        optional `notes`, as read from a ratings file or request body.

        Example:
            >>> session.apply_ratings({'aroma': 4, 'floor_cleanliness': {'rating': 2, 'notes': 'Wet'}})
        """
        for component_id, value in ratings.items():
            if isinstance(value, dict):
                self.rate(component_id, value.get('rating'))
                if value.get('notes'):
                    self.add_note(component_id, value['notes'])
            else:
                self.rate(component_id, value)

    def current_score(self) -> int:
        """Score of the ratings entered so far."""
        return calculate_weighted_score(self.sheet.ratings(), self.catalog)

    def current_status(self) -> ScoreStatus:
        return get_score_status(self.current_score())

    def completion(self) -> int:
        """Percentage of catalog components rated so far."""
        if not len(self.catalog):
            return 0
        return int(len(self.sheet) * 100 / len(self.catalog))

    def missing_required(self) -> list:
        return self.sheet.missing_required()

    # ===========================
    # Photos
    # ===========================

    async def add_photo(self, component_id: str, raw_bytes: bytes) -> PhotoEvidence:
        """
        Capture evidence for a single component.

        Raises:
            ValueError: If the component is unknown or does not accept photos
        """
        self.check_photo_component(component_id)
        return await self._capture(raw_bytes, component_id)

    def check_photo_component(self, component_id: str):
        """Raise ValueError unless the component exists and accepts photos."""
        definition = self.catalog.get(component_id)
        if definition is None:
            raise ValueError(f"Unknown component: {component_id}")
        if not definition.allow_photo:
            raise ValueError(f"Component '{component_id}' does not accept photos")

    async def add_documentation_photo(self, raw_bytes: bytes) -> PhotoEvidence:
        """
        Capture a general documentation photo.

        Raises:
            ValueError: If the documentation photo limit is reached
        """
        if self.max_photos is not None and len(self.documentation_photos()) >= self.max_photos:
            raise ValueError(f"Photo limit reached ({self.max_photos})")
        return await self._capture(raw_bytes, None)

    async def _capture(self, raw_bytes: bytes, component_id: Optional[str]) -> PhotoEvidence:
        self._check_open()
        if self.pipeline is not None:
            evidence = await self.pipeline.capture(raw_bytes, component=component_id)
        else:
            evidence = PhotoEvidence(source_bytes=raw_bytes, captured_at=self.clock(),
                                     component=component_id)
        return self.attach_photo(evidence)

    def attach_photo(self, evidence: PhotoEvidence) -> PhotoEvidence:
        """Add an already captured photo to the session."""
        self._check_open()
        self.photos.append(evidence)
        return evidence

    def remove_photo(self, evidence: PhotoEvidence):
        self._check_open()
        self.photos.remove(evidence)
        evidence.discard_buffers()

    def documentation_photos(self) -> List[PhotoEvidence]:
        return [p for p in self.photos if p.is_documentation]

    def component_photos(self, component_id: str) -> List[PhotoEvidence]:
        return [p for p in self.photos if p.component == component_id]

    # ===========================
    # Lifecycle
    # ===========================

    def discard(self):
        """Abandon the form: drop every photo buffer without any network call."""
        for evidence in self.photos:
            evidence.discard_buffers()
        self.photos.clear()
        self._closed = True
        logger.info(f"Discarded inspection session for location {self.location_id}")

    def close(self):
        """End the session after a successful submission, keeping photo URLs only."""
        for evidence in self.photos:
            evidence.discard_buffers()
        self._closed = True

    def __repr__(self) -> str:
        return (
            f"InspectionSession(location={self.location_id!r}, rated={len(self.sheet)}/{len(self.catalog)}, "
            f"photos={len(self.photos)}, closed={self._closed})"
        )
