"""
Submission Orchestrator

Drives a completed inspection session through photo processing, upload,
scoring and persistence.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from catalog import ConfigTemplateProvider, InspectionTemplate, TemplateProvider
from database import DatabaseManager
from models import InspectionSubmission, ProgressUpdate, SubmissionResult
from processors import PhotoContext, PhotoPipeline
from scoring import calculate_weighted_score, overall_status, round_half_up
from storage import StorageProvider, create_storage_provider
from submission.errors import (
    MissingDocumentationPhotoError,
    MissingRatingsError,
    MissingTemplateError,
)
from submission.inspection_session import InspectionSession

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressUpdate], None]


class ProgressReporter:
    """
    Reports batch progress, never letting the percentage go backwards.

    Compression fills 0-50%, upload fills 50-100%, both proportional to the
    number of photos.
    """

    def __init__(self, total: int, callback: Optional[ProgressCallback] = None):
        self.total = total
        self.callback = callback
        self.percentage = 0
        self.history: List[ProgressUpdate] = []

    def compressed(self, current: int):
        self._emit(current, round_half_up(current / self.total * 50), 'compressing')

    def uploaded(self, current: int):
        self._emit(current, 50 + round_half_up(current / self.total * 50), 'uploading')

    def complete(self):
        self._emit(self.total, 100, 'complete')

    def _emit(self, current: int, percentage: int, stage: str):
        self.percentage = max(self.percentage, min(100, percentage))
        update = ProgressUpdate(current=current, total=self.total,
                                percentage=self.percentage, stage=stage)
        self.history.append(update)

        if self.callback is None:
            return
        try:
            self.callback(update)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")


class SubmissionOrchestrator:
    """
    Sequences the submission of one inspection.

    Photos are handled strictly one at a time: every photo is compressed and
    watermarked first, then every photo is uploaded. A photo that fails to
    upload is left out of the submission instead of failing it. Errors from
    persistence are raised to the caller unchanged, and the session stays
    open so the inspector can submit again.

    Attributes:
        templates: TemplateProvider supplying the default template
        pipeline: PhotoPipeline that finalizes photos
        storage: StorageProvider receiving finalized photos
        store: Persistence collaborator (DatabaseManager or compatible)

    Example:
        >>> orchestrator = SubmissionOrchestrator(templates, pipeline, storage, db)
        >>> result = await orchestrator.submit(session, notes='Refilled soap',
        ...                                    on_progress=lambda p: print(p.percentage))
        >>> result.record_id
        42
    """

    def __init__(self, templates: TemplateProvider, pipeline: PhotoPipeline,
                 storage: StorageProvider, store: DatabaseManager,
                 clock: Callable[[], datetime] = datetime.now):
        self.templates = templates
        self.pipeline = pipeline
        self.storage = storage
        self.store = store
        self.clock = clock

    @classmethod
    def from_config(cls, config_path: str = 'config.yaml') -> 'SubmissionOrchestrator':
        """Wire template provider, photo pipeline, storage and database from one config file."""
        return cls(
            templates=ConfigTemplateProvider.from_config(config_path),
            pipeline=PhotoPipeline.from_config(config_path),
            storage=create_storage_provider(config_path),
            store=DatabaseManager.from_config(config_path),
        )

    def open_session(self, location_id: str, location_name: str, user_id: str) -> InspectionSession:
        """
        Open a session rated against the default template.

        Raises:
            MissingTemplateError: No default template is configured
        """
        template = self.templates.get_default_template()
        if template is None:
            raise MissingTemplateError()
        return InspectionSession.from_template(
            template, location_id, location_name, user_id, pipeline=self.pipeline
        )

    def validate(self, session: InspectionSession, documentation_count: Optional[int] = None,
                 component_ids: Iterable[str] = ()) -> InspectionTemplate:
        """
        Check everything that can be checked without I/O.

        Entry points call this before capturing any photo, passing the number
        of documentation photos and the components of the photos they are
        about to add.

        Args:
            session: Session holding the ratings
            documentation_count: Documentation photos to expect (default: those in the session)
            component_ids: Components that photos will be attached to

        Returns:
            The template the submission will be recorded against

        Raises:
            MissingTemplateError: No default template is configured
            MissingRatingsError: A required component has no rating
            MissingDocumentationPhotoError: Too few documentation photos
            ValueError: Too many documentation photos, or a component that takes no photos
        """
        if session.closed:
            raise RuntimeError("Inspection session is closed")

        template = self.templates.get_default_template()
        if template is None:
            raise MissingTemplateError()

        missing = session.missing_required()
        if missing:
            raise MissingRatingsError(missing)

        for component_id in component_ids:
            session.check_photo_component(component_id)

        documentation = documentation_count
        if documentation is None:
            documentation = len(session.documentation_photos())
        if session.max_photos is not None and documentation > session.max_photos:
            raise ValueError(f"Photo limit reached ({session.max_photos})")
        if documentation < template.min_documentation_photos:
            raise MissingDocumentationPhotoError(template.min_documentation_photos, documentation)

        return template

    async def submit(self, session: InspectionSession, notes: Optional[str] = None,
                     on_progress: Optional[ProgressCallback] = None) -> SubmissionResult:
        """
        Submit an inspection.

        Args:
            session: Session holding ratings and photos
            notes: General notes for the whole inspection
            on_progress: Called with every ProgressUpdate

        Returns:
            SubmissionResult with the persisted submission and record id

        Raises:
            InspectionValidationError: Before any photo work, if the session is incomplete
            Exception: Whatever persistence raises, unchanged
        """
        template = self.validate(session)

        photos = list(session.photos)
        total = len(photos)
        progress = ProgressReporter(total, on_progress)

        logger.info(f"Submitting inspection for {session.location_id} with {total} photos")

        for index, evidence in enumerate(photos):
            context = PhotoContext(location_name=session.location_name, index=index)
            await self.pipeline.finalize_photo(evidence, context)
            progress.compressed(index + 1)

        photo_urls: List[str] = []
        failed: List[int] = []

        for index, evidence in enumerate(photos):
            try:
                url = await asyncio.to_thread(
                    self.storage.upload_photo, evidence.upload_bytes(), evidence.captured_at
                )
            except Exception as e:
                logger.error(f"Upload of photo {index + 1} ({evidence.component or 'documentation'}) failed: {e}")
                evidence.mark_uploaded(None)
                failed.append(index)
            else:
                evidence.mark_uploaded(url)
                photo_urls.append(url)
            progress.uploaded(index + 1)

        self._map_photo_refs(session)

        ratings = session.sheet.snapshot()
        score = calculate_weighted_score(ratings, session.catalog)
        submitted_at = self.clock()
        duration = max(0, int((submitted_at - session.started_at).total_seconds()))

        submission = InspectionSubmission(
            ratings=tuple(ratings),
            score=score,
            overall_status=overall_status(score),
            photo_urls=tuple(photo_urls),
            duration_seconds=duration,
            submitted_at=submitted_at,
            notes=notes.strip() if notes and notes.strip() else None,
        )

        record_id = await asyncio.to_thread(
            self.store.create_inspection_record,
            submission, session.location_id, template.id, session.user_id
        )

        progress.complete()
        session.close()

        if failed:
            logger.warning(f"Inspection {record_id} saved without {len(failed)} of {total} photos")

        return SubmissionResult(submission=submission, record_id=record_id, failed_photos=failed)

    def _map_photo_refs(self, session: InspectionSession):
        """Point each rating at the first uploaded photo of its component."""
        refs: Dict[str, Optional[str]] = {}
        for evidence in session.photos:
            if evidence.component is None:
                continue
            if refs.get(evidence.component) is None:
                refs[evidence.component] = evidence.url

        for component_id, url in refs.items():
            session.sheet.set_photo_ref(component_id, url)
