"""
Scoring Tests
Tests: weighted score, empty input, rounding, monotonicity, status thresholds
"""

import pytest

from catalog import ComponentCatalog
from models import ComponentDefinition, ComponentRating
from scoring import (
    STATUS_TABLE,
    calculate_weighted_score,
    get_score_status,
    overall_status,
    round_half_up,
)


def _catalog(**weights) -> ComponentCatalog:
    return ComponentCatalog(
        ComponentDefinition(id=component_id, category='visual', weight=weight)
        for component_id, weight in weights.items()
    )


def test_empty_ratings_score_zero():
    """No ratings yet gives a score of 0 instead of dividing by zero"""
    assert calculate_weighted_score([]) == 0
    assert calculate_weighted_score([], _catalog(a=0.5)) == 0


def test_two_component_example():
    """5 stars at weight 0.6 and 1 star at weight 0.4 give 68"""
    catalog = _catalog(a=0.6, b=0.4)
    ratings = [ComponentRating('a', 5), ComponentRating('b', 1)]

    assert calculate_weighted_score(ratings, catalog) == 68


def test_single_rating_percentages():
    """Each star is worth 20 percent"""
    catalog = _catalog(a=0.3)
    for stars in range(1, 6):
        assert calculate_weighted_score([ComponentRating('a', stars)], catalog) == stars * 20


def test_weights_are_normalized_over_rated_components():
    """Unrated components do not drag the score down"""
    catalog = _catalog(a=0.2, b=0.8)
    assert calculate_weighted_score([ComponentRating('a', 4)], catalog) == 80


def test_unknown_components_are_skipped():
    catalog = _catalog(a=0.5)
    ratings = [ComponentRating('a', 2), ComponentRating('ghost', 5)]

    assert calculate_weighted_score(ratings, catalog) == 40
    assert calculate_weighted_score([ComponentRating('ghost', 5)], catalog) == 0


def test_halves_round_up():
    """62.5 rounds to 63, not to the even 62"""
    catalog = _catalog(a=0.875, b=0.125)
    ratings = [ComponentRating('a', 3), ComponentRating('b', 4)]

    assert calculate_weighted_score(ratings, catalog) == 63
    assert round_half_up(62.5) == 63
    assert round_half_up(62.49) == 62
    assert round_half_up(0.0) == 0


def test_default_catalog_used_when_omitted():
    ratings = [ComponentRating('aroma', 5), ComponentRating('trash_bin_condition', 1)]
    # (100 * 0.15 + 20 * 0.05) / 0.20
    assert calculate_weighted_score(ratings) == 80


def test_score_is_monotonic_in_each_rating():
    """Raising one rating never lowers the score"""
    catalog = ComponentCatalog.default()
    base = {d.id: 3 for d in catalog}

    for component_id in base:
        previous = None
        for stars in range(1, 6):
            values = dict(base, **{component_id: stars})
            score = calculate_weighted_score(
                [ComponentRating(c, r) for c, r in values.items()], catalog
            )
            assert 0 <= score <= 100
            if previous is not None:
                assert score >= previous
            previous = score


@pytest.mark.parametrize('score,label', [
    (100, 'Excellent'),
    (85, 'Excellent'),
    (84, 'Good'),
    (70, 'Good'),
    (69, 'Fair'),
    (50, 'Fair'),
    (49, 'Poor'),
    (30, 'Poor'),
    (29, 'Critical'),
    (0, 'Critical'),
])
def test_status_boundaries(score, label):
    assert get_score_status(score).label == label


def test_status_covers_every_score():
    """Every integer score maps to exactly one status"""
    for score in range(0, 101):
        matches = [s for s in STATUS_TABLE if s.min_score <= score]
        assert get_score_status(score) is matches[0]


def test_status_extras():
    excellent = get_score_status(90)
    assert excellent.color == 'green'
    assert excellent.emoji
    assert excellent.to_dict()['label'] == 'Excellent'

    assert overall_status(90) == 'excellent'
    assert overall_status(75) == 'good'
    assert overall_status(10) == 'critical'
