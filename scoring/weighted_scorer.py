"""
Weighted Scorer

Turns per-component star ratings into a single 0-100 score and a status.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from models import ComponentRating
from catalog import ComponentCatalog

logger = logging.getLogger(__name__)

PERCENT_PER_STAR = 20

_default_catalog: Optional[ComponentCatalog] = None


@dataclass(frozen=True)
class ScoreStatus:
    """Qualitative classification of a score."""

    label: str
    color: str
    emoji: str
    min_score: int

    @property
    def key(self) -> str:
        """Lower-cased label, as stored in `overall_status`."""
        return self.label.lower()

    def to_dict(self) -> dict:
        return {'label': self.label, 'color': self.color, 'emoji': self.emoji}


# Evaluated top-down, first match wins.
STATUS_TABLE = (
    ScoreStatus(label='Excellent', color='green', emoji='🌟', min_score=85),
    ScoreStatus(label='Good', color='blue', emoji='😊', min_score=70),
    ScoreStatus(label='Fair', color='yellow', emoji='😐', min_score=50),
    ScoreStatus(label='Poor', color='orange', emoji='😟', min_score=30),
    ScoreStatus(label='Critical', color='red', emoji='😨', min_score=0),
)


def _get_default_catalog() -> ComponentCatalog:
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = ComponentCatalog.default()
    return _default_catalog


def calculate_weighted_score(ratings: Iterable[ComponentRating],
                             catalog: Optional[ComponentCatalog] = None) -> int:
    """
    Calculate the weighted 0-100 score of a set of ratings.

    Each star value becomes a percentage (1 star = 20%, 5 stars = 100%),
    weighted by its component weight and normalized by the total weight of
    the rated components. Ratings for components missing from the catalog
    are skipped.

    Args:
        ratings: Component ratings
        catalog: Catalog providing weights (built-in catalog if omitted)

    Returns:
        Score rounded to the nearest integer, or 0 if nothing was rated

    Example:
        >>> calculate_weighted_score([ComponentRating('aroma', 5)])
        100
    """
    catalog = catalog or _get_default_catalog()

    weighted_sum = 0.0
    total_weight = 0.0

    for rating in ratings:
        definition = catalog.get(rating.component)
        if definition is None:
            logger.warning(f"Skipping rating for unknown component: {rating.component}")
            continue

        percentage = rating.rating * PERCENT_PER_STAR
        weighted_sum += percentage * definition.weight
        total_weight += definition.weight

    if total_weight == 0:
        return 0

    return round_half_up(weighted_sum / total_weight)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    # builtin round() uses banker's rounding, 62.5 must give 63
    return int(value + 0.5)


def get_score_status(score: int) -> ScoreStatus:
    """
    Classify a score.

    Example:
        >>> get_score_status(85).label
        'Excellent'
        >>> get_score_status(84).label
        'Good'
    """
    for status in STATUS_TABLE:
        if score >= status.min_score:
            return status
    return STATUS_TABLE[-1]


def overall_status(score: int) -> str:
    """Status key stored with an inspection record (e.g. "good")."""
    return get_score_status(score).key
