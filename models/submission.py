"""
Submission Models

The finalized inspection bundle handed to persistence, the stored record it
becomes, and the progress updates reported while building it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from models.component import ComponentRating


SUBMISSION_SCHEMA = "inspection_submission"
SUBMISSION_VERSION = 1


@dataclass(frozen=True)
class InspectionSubmission:
    """
    Immutable result of a completed inspection.

    Serialized with an explicit schema tag and version so the persistence
    boundary can reject shapes it does not know.

    Attributes:
        ratings: Component ratings with photo references filled in
        score: Weighted score, 0..100
        overall_status: Lower-cased status label derived from the score
        photo_urls: URLs of every successfully uploaded photo, in order
        duration_seconds: Seconds between opening the form and submitting
        submitted_at: Submission timestamp
        notes: Optional general notes
    """

    ratings: Tuple[ComponentRating, ...]
    score: int
    overall_status: str
    photo_urls: Tuple[str, ...]
    duration_seconds: int
    submitted_at: datetime
    notes: Optional[str] = None
    version: int = SUBMISSION_VERSION

    def to_dict(self) -> dict:
        return {
            'schema': SUBMISSION_SCHEMA,
            'version': self.version,
            'ratings': [r.to_dict() for r in self.ratings],
            'score': self.score,
            'overall_status': self.overall_status,
            'photo_urls': list(self.photo_urls),
            'duration_seconds': self.duration_seconds,
            'submitted_at': self.submitted_at.isoformat(),
            'notes': self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'InspectionSubmission':
        """
        Rebuild a submission from its serialized form.

        Raises:
            ValueError: If the schema tag or version is not recognized
        """
        if data.get('schema') != SUBMISSION_SCHEMA:
            raise ValueError(f"Unknown submission schema: {data.get('schema')!r}")
        version = data.get('version')
        if version != SUBMISSION_VERSION:
            raise ValueError(f"Unsupported submission version: {version!r}")

        return cls(
            ratings=tuple(ComponentRating.from_dict(r) for r in data.get('ratings', [])),
            score=int(data['score']),
            overall_status=data['overall_status'],
            photo_urls=tuple(data.get('photo_urls') or ()),
            duration_seconds=int(data.get('duration_seconds') or 0),
            submitted_at=datetime.fromisoformat(data['submitted_at']),
            notes=data.get('notes'),
            version=version,
        )


@dataclass
class InspectionRecord:
    """
    A persisted inspection as read back from the database.

    Attributes:
        id: Database primary key
        location_id: Inspected location
        template_id: Template the ratings were collected against
        user_id: Inspector
        inspection_date: Date as YYYY-MM-DD
        inspection_time: Time as HH:MM
        submission: Stored submission payload
        created_at: When the row was written
    """

    location_id: str
    template_id: str
    user_id: str
    inspection_date: str
    inspection_time: str
    submission: InspectionSubmission
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def overall_status(self) -> str:
        return self.submission.overall_status

    @property
    def photo_urls(self) -> List[str]:
        return list(self.submission.photo_urls)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'location_id': self.location_id,
            'template_id': self.template_id,
            'user_id': self.user_id,
            'inspection_date': self.inspection_date,
            'inspection_time': self.inspection_time,
            'overall_status': self.overall_status,
            'score': self.submission.score,
            'photo_urls': self.photo_urls,
            'notes': self.submission.notes,
            'duration_seconds': self.submission.duration_seconds,
            'submitted_at': self.submission.submitted_at.isoformat(),
            'responses': self.submission.to_dict(),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class ProgressUpdate:
    """Aggregate photo progress: `current` of `total` photos, 0..100 percent."""

    current: int
    total: int
    percentage: int
    stage: str = "compressing"

    def to_dict(self) -> dict:
        return {
            'current': self.current,
            'total': self.total,
            'percentage': self.percentage,
            'stage': self.stage,
        }


@dataclass
class SubmissionResult:
    """
    Outcome of a submission run.

    Attributes:
        submission: The submission that was persisted
        record_id: Identifier returned by persistence
        failed_photos: Indices (submission order) of photos that did not upload
    """

    submission: InspectionSubmission
    record_id: int
    failed_photos: List[int] = field(default_factory=list)
