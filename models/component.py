"""
Component Model

Represents one rated aspect of a facility (e.g. floor cleanliness) and the
star rating an inspector gives it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


MIN_RATING = 1
MAX_RATING = 5


class ComponentCategory(str, Enum):
    """Grouping used for inspection components."""
    AROMA = "aroma"
    VISUAL = "visual"
    FUNCTIONAL = "functional"
    AVAILABILITY = "availability"


@dataclass(frozen=True)
class ComponentDefinition:
    """
    Static definition of an inspection component.

    Definitions are loaded once from the catalog and never change afterwards.
    Weights need not sum to 1 across a catalog; the scorer normalizes them.

    Attributes:
        id: Stable component identifier (e.g. "floor_cleanliness")
        category: Component category
        weight: Relative weight in the score, in (0, 1]
        required: Whether a rating is mandatory before submission
        allow_photo: Whether photo evidence can be attached
        label: Human readable name
        rating_labels: Description for each star value 1..5

    Example:
        >>> floor = ComponentDefinition(
        ...     id="floor_cleanliness",
        ...     category=ComponentCategory.VISUAL,
        ...     weight=0.12,
        ...     label="Floor Cleanliness"
        ... )
    """

    id: str
    category: ComponentCategory
    weight: float
    required: bool = True
    allow_photo: bool = False
    label: str = ""
    rating_labels: Dict[int, str] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        if not self.id:
            raise ValueError("Component id must not be empty")
        if not isinstance(self.category, ComponentCategory):
            try:
                object.__setattr__(self, 'category', ComponentCategory(self.category))
            except ValueError:
                raise ValueError(f"Unknown category for component '{self.id}': {self.category}")
        if not (0 < self.weight <= 1):
            raise ValueError(f"Weight for component '{self.id}' must be in (0, 1], got {self.weight}")
        if not self.label:
            object.__setattr__(self, 'label', self.id.replace('_', ' ').title())

    def describe_rating(self, rating: int) -> str:
        """Return the description for a star value, or an empty string."""
        return self.rating_labels.get(rating, "")

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'category': self.category.value,
            'weight': self.weight,
            'required': self.required,
            'allow_photo': self.allow_photo,
            'label': self.label,
            'rating_labels': {str(k): v for k, v in sorted(self.rating_labels.items())},
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ComponentDefinition':
        rating_labels = {int(k): v for k, v in (data.get('rating_labels') or {}).items()}
        return cls(
            id=data['id'],
            category=data['category'],
            weight=float(data['weight']),
            required=bool(data.get('required', True)),
            allow_photo=bool(data.get('allow_photo', False)),
            label=data.get('label', ''),
            rating_labels=rating_labels,
        )


@dataclass
class ComponentRating:
    """
    Inspector's star rating for a single component.

    Created when a star value is first selected and updated in place when
    notes or a photo reference are added.

    Attributes:
        component: Component id this rating belongs to
        rating: Star value, 1..5
        notes: Optional free-text notes
        photo_ref: URL of the uploaded evidence photo, set after upload
    """

    component: str
    rating: int
    notes: Optional[str] = None
    photo_ref: Optional[str] = None

    def __post_init__(self):
        validate_rating(self.rating)

    def to_dict(self) -> dict:
        return {
            'component': self.component,
            'rating': self.rating,
            'notes': self.notes,
            'photo_ref': self.photo_ref,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ComponentRating':
        return cls(
            component=data['component'],
            rating=data['rating'],
            notes=data.get('notes'),
            photo_ref=data.get('photo_ref') or data.get('photo'),
        )


def validate_rating(rating: int) -> int:
    """Raise ValueError unless rating is an integer star value 1..5."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValueError(f"Rating must be an integer, got {rating!r}")
    if not (MIN_RATING <= rating <= MAX_RATING):
        raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}")
    return rating
