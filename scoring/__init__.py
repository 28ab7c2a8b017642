"""
Scoring package for the facility inspection pipeline.
"""

from .weighted_scorer import (
    ScoreStatus,
    STATUS_TABLE,
    PERCENT_PER_STAR,
    calculate_weighted_score,
    get_score_status,
    overall_status,
    round_half_up,
)

__all__ = [
    'ScoreStatus',
    'STATUS_TABLE',
    'PERCENT_PER_STAR',
    'calculate_weighted_score',
    'get_score_status',
    'overall_status',
    'round_half_up',
]
