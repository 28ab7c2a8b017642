"""
Submission validation errors.

Raised before any photo is processed or uploaded, so the inspector can fix
the form and submit again.
"""

from typing import List

from models import ComponentDefinition


class InspectionValidationError(ValueError):
    """Base class for problems that block a submission before any I/O."""


class MissingRatingsError(InspectionValidationError):
    """One or more required components have no rating."""

    def __init__(self, missing: List[ComponentDefinition]):
        self.missing = list(missing)
        labels = ", ".join(d.label for d in self.missing)
        super().__init__(f"Please rate: {labels}")


class MissingDocumentationPhotoError(InspectionValidationError):
    """Not enough general documentation photos were attached."""

    def __init__(self, required: int = 1, found: int = 0):
        self.required = required
        self.found = found
        if required == 1:
            message = "At least 1 documentation photo is required"
        else:
            message = f"At least {required} documentation photos are required"
        super().__init__(message)


class MissingTemplateError(InspectionValidationError):
    """No inspection template is available to submit against."""

    def __init__(self, message: str = "No default inspection template is configured"):
        super().__init__(message)
