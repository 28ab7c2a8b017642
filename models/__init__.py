"""
Domain models for the facility inspection pipeline.

This package contains the dataclasses passed between the catalog, scorer,
photo pipeline, orchestrator and persistence layers.
"""

from .component import (
    ComponentCategory,
    ComponentDefinition,
    ComponentRating,
    MIN_RATING,
    MAX_RATING,
    validate_rating,
)
from .rating_sheet import RatingSheet
from .photo_evidence import GeoLocation, PhotoEvidence
from .submission import (
    InspectionSubmission,
    InspectionRecord,
    ProgressUpdate,
    SubmissionResult,
    SUBMISSION_SCHEMA,
    SUBMISSION_VERSION,
)

__all__ = [
    'ComponentCategory',
    'ComponentDefinition',
    'ComponentRating',
    'MIN_RATING',
    'MAX_RATING',
    'validate_rating',
    'RatingSheet',
    'GeoLocation',
    'PhotoEvidence',
    'InspectionSubmission',
    'InspectionRecord',
    'ProgressUpdate',
    'SubmissionResult',
    'SUBMISSION_SCHEMA',
    'SUBMISSION_VERSION',
]
