"""
Submission package: inspection sessions, validation and the orchestrator
that turns a session into a persisted inspection.
"""

from .errors import (
    InspectionValidationError,
    MissingRatingsError,
    MissingDocumentationPhotoError,
    MissingTemplateError,
)
from .inspection_session import InspectionSession
from .orchestrator import ProgressReporter, SubmissionOrchestrator

__all__ = [
    'InspectionValidationError',
    'MissingRatingsError',
    'MissingDocumentationPhotoError',
    'MissingTemplateError',
    'InspectionSession',
    'ProgressReporter',
    'SubmissionOrchestrator',
]
