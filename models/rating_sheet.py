"""
Rating Sheet Model

Holds the ratings of one inspection session, keyed by component id.
"""

from dataclasses import replace
from typing import Dict, Iterator, List, Optional, TYPE_CHECKING

from models.component import ComponentRating, validate_rating

if TYPE_CHECKING:
    from catalog.component_catalog import ComponentCatalog


class RatingSheet:
    """
    Ratings for one inspection, at most one per catalog component.

    Every key is guaranteed to be a component of the catalog the sheet was
    created with, so lookups during scoring never miss.

    Attributes:
        catalog: ComponentCatalog the ratings are validated against

    Example:
        >>> sheet = RatingSheet(catalog)
        >>> sheet.rate('aroma', 4)
        >>> sheet.set_notes('aroma', 'Fresh after cleaning')
        >>> len(sheet)
        1
    """

    def __init__(self, catalog: 'ComponentCatalog'):
        self.catalog = catalog
        self._ratings: Dict[str, ComponentRating] = {}

    def _check_component(self, component_id: str):
        if component_id not in self.catalog:
            raise ValueError(f"Unknown component: {component_id}")

    def rate(self, component_id: str, rating: int) -> ComponentRating:
        """
        Set the star value for a component, creating the rating if needed.

        Existing notes and photo references are preserved.
        """
        self._check_component(component_id)
        validate_rating(rating)

        existing = self._ratings.get(component_id)
        if existing:
            existing.rating = rating
            return existing

        created = ComponentRating(component=component_id, rating=rating)
        self._ratings[component_id] = created
        return created

    def set_notes(self, component_id: str, notes: Optional[str]):
        """Attach notes to an already rated component."""
        self._check_component(component_id)
        existing = self._ratings.get(component_id)
        if not existing:
            raise ValueError(f"Component '{component_id}' must be rated before adding notes")
        existing.notes = notes.strip() if notes and notes.strip() else None

    def set_photo_ref(self, component_id: str, url: Optional[str]):
        self._check_component(component_id)
        existing = self._ratings.get(component_id)
        if existing:
            existing.photo_ref = url

    def get(self, component_id: str) -> Optional[ComponentRating]:
        return self._ratings.get(component_id)

    def clear(self, component_id: str):
        self._ratings.pop(component_id, None)

    def ratings(self) -> List[ComponentRating]:
        """Ratings in catalog order."""
        return [self._ratings[d.id] for d in self.catalog if d.id in self._ratings]

    def snapshot(self) -> List[ComponentRating]:
        """Detached copies of the ratings, safe to hand to persistence."""
        return [replace(r) for r in self.ratings()]

    def missing_required(self) -> list:
        """Required component definitions that have no rating yet."""
        return [d for d in self.catalog.required() if d.id not in self._ratings]

    def __contains__(self, component_id: str) -> bool:
        return component_id in self._ratings

    def __len__(self) -> int:
        return len(self._ratings)

    def __iter__(self) -> Iterator[ComponentRating]:
        return iter(self.ratings())

    def __repr__(self) -> str:
        return f"RatingSheet(rated={len(self)}/{len(self.catalog)})"
