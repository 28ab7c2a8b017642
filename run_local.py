"""
Local Development Server for Facility Inspections

Provides a JSON API for inspection forms: the component catalog, live
scoring, and submission of ratings with photo evidence.

This server is designed for:
- Testing inspection forms locally
- Driving the submission pipeline from a browser or a mobile client

Usage:
    python run_local.py
    Then send requests to http://localhost:5000/api/...
"""

import json
import asyncio
import logging
import uuid
from typing import Optional

from flask import Flask, request, jsonify
from flask_cors import CORS

from catalog import ComponentCatalog
from scoring import calculate_weighted_score, get_score_status
from submission import InspectionSession, InspectionValidationError, SubmissionOrchestrator

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)
CORS(app)

# Configuration
CONFIG_PATH = 'config.yaml'

# Progress tracking for long-running submissions
progress_store = {}
PROGRESS_STORE_LIMIT = 500
FINISHED_STATUSES = ('complete', 'rejected', 'error')

_orchestrator: Optional[SubmissionOrchestrator] = None


def get_orchestrator() -> SubmissionOrchestrator:
    """Orchestrator shared by all requests, built from CONFIG_PATH on first use."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = SubmissionOrchestrator.from_config(CONFIG_PATH)
    return _orchestrator


def _set_progress(task_id: str, entry: dict):
    """Record progress for a task, evicting the oldest finished tasks past the limit."""
    progress_store[task_id] = entry

    overflow = len(progress_store) - PROGRESS_STORE_LIMIT
    if overflow <= 0:
        return
    finished = [key for key, value in progress_store.items()
                if key != task_id and value.get('status') in FINISHED_STATUSES]
    for key in finished[:overflow]:
        del progress_store[key]


def _current_catalog() -> ComponentCatalog:
    template = get_orchestrator().templates.get_default_template()
    return template.components if template else ComponentCatalog.default()


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'ok',
        'service': 'facility-inspection-local',
        'version': '0.1.0'
    })


@app.route('/api/progress/<task_id>', methods=['GET'])
def get_progress(task_id):
    """Get progress for a running submission."""
    progress = progress_store.get(task_id, {'progress': 0, 'total': 0, 'status': 'unknown'})
    percentage = 0
    if progress['total'] > 0:
        percentage = int((progress['progress'] / progress['total']) * 100)

    return jsonify({
        'percentage': percentage,
        'progress': progress['progress'],
        'total': progress['total'],
        'status': progress.get('status', 'processing'),
        'photos_done': progress.get('photos_done', 0),
        'photos_total': progress.get('photos_total', 0)
    })


@app.route('/api/catalog', methods=['GET'])
def get_catalog():
    """List the components of the default template."""
    try:
        template = get_orchestrator().templates.get_default_template()
        catalog = template.components if template else ComponentCatalog.default()

        return jsonify({
            'success': True,
            'template_id': template.id if template else None,
            'template_name': template.name if template else None,
            'components': catalog.to_list()
        })

    except Exception as e:
        logger.error(f"Error in get_catalog: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@app.route('/api/score', methods=['POST'])
def score_ratings():
    """
    Score ratings without submitting them.

    Request JSON:
        {
            "ratings": {"aroma": 4, "floor_cleanliness": 3, ...}
        }

    Returns:
        JSON with score, status and completion
    """
    try:
        data = request.get_json(silent=True) or {}
        ratings = data.get('ratings')
        if not isinstance(ratings, dict):
            return jsonify({'error': 'ratings must be an object'}), 400

        catalog = _current_catalog()
        session = InspectionSession(catalog, location_id='-', location_name='-', user_id='-')
        try:
            session.apply_ratings(ratings)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        score = calculate_weighted_score(session.sheet.ratings(), catalog)

        return jsonify({
            'success': True,
            'score': score,
            'status': get_score_status(score).to_dict(),
            'completion': session.completion(),
            'missing_required': [d.id for d in session.missing_required()]
        })

    except Exception as e:
        logger.error(f"Error in score_ratings: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


def _parse_ratings(raw: Optional[str]) -> dict:
    ratings = json.loads(raw or '{}')
    if not isinstance(ratings, dict):
        raise ValueError('ratings must be an object')
    return ratings


def _component_uploads(files) -> list:
    uploads = []
    for field_name in files:
        if not field_name.startswith('photo_'):
            continue
        component_id = field_name[len('photo_'):]
        for upload in files.getlist(field_name):
            uploads.append((component_id, upload))
    return uploads


async def _run_submission(form, files, task_id: str):
    orchestrator = get_orchestrator()
    session = orchestrator.open_session(
        location_id=form.get('location_id', ''),
        location_name=form.get('location_name', ''),
        user_id=form.get('user_id', '')
    )

    documentation = files.getlist('photos')
    component_uploads = _component_uploads(files)

    def on_progress(update):
        _set_progress(task_id, {
            'progress': update.percentage,
            'total': 100,
            'status': update.stage,
            'photos_done': update.current,
            'photos_total': update.total
        })

    try:
        session.apply_ratings(_parse_ratings(form.get('ratings')))
        orchestrator.validate(
            session,
            documentation_count=len(documentation),
            component_ids=[component_id for component_id, _ in component_uploads]
        )

        for upload in documentation:
            await session.add_documentation_photo(upload.read())

        for component_id, upload in component_uploads:
            await session.add_photo(component_id, upload.read())

        return await orchestrator.submit(session, notes=form.get('notes'), on_progress=on_progress)
    finally:
        if not session.closed:
            session.discard()


@app.route('/api/inspections', methods=['POST'])
def submit_inspection():
    """
    Submit an inspection with photo evidence.

    Multipart form:
        ratings: JSON object of component ratings
        photos: Documentation photo files
        photo_<component>: Photo files for a component
        location_id, location_name, user_id: Inspection context
        notes: General notes (optional)
        task_id: Key for /api/progress/<task_id> (optional)

    Returns:
        JSON with the record id and the submission
    """
    task_id = request.form.get('task_id') or uuid.uuid4().hex
    try:
        missing = [f for f in ('location_id', 'location_name', 'user_id') if not request.form.get(f)]
        if missing:
            return jsonify({'error': f"Missing fields: {', '.join(missing)}"}), 400

        logger.info(f"=== SUBMIT REQUEST === Location: {request.form.get('location_id')}, Task: {task_id}")

        _set_progress(task_id, {'progress': 0, 'total': 100, 'status': 'starting'})

        result = asyncio.run(_run_submission(request.form, request.files, task_id))

        return jsonify({
            'success': True,
            'task_id': task_id,
            'record_id': result.record_id,
            'failed_photos': result.failed_photos,
            'submission': result.submission.to_dict()
        }), 201

    except (InspectionValidationError, ValueError) as e:
        _set_progress(task_id, {'progress': 0, 'total': 100, 'status': 'rejected'})
        return jsonify({'error': str(e), 'task_id': task_id}), 400

    except Exception as e:
        logger.error(f"Error in submit_inspection: {e}", exc_info=True)
        _set_progress(task_id, {'progress': 100, 'total': 100, 'status': 'error'})
        return jsonify({'error': str(e), 'task_id': task_id}), 500


@app.route('/api/inspections', methods=['GET'])
def list_inspections():
    """
    List stored inspections, newest first.

    Query params:
        location_id: Filter by location
        limit: Maximum number of inspections (default 50)
    """
    try:
        location_id = request.args.get('location_id')
        limit = request.args.get('limit', 50, type=int)

        records = get_orchestrator().store.list_inspections(location_id=location_id, limit=limit)

        return jsonify({
            'success': True,
            'inspections': [r.to_dict() for r in records]
        })

    except Exception as e:
        logger.error(f"Error in list_inspections: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@app.route('/api/inspections/<int:record_id>', methods=['GET'])
def get_inspection(record_id):
    """Get one stored inspection."""
    try:
        record = get_orchestrator().store.get_inspection(record_id)
        if record is None:
            return jsonify({'error': f'Inspection not found: {record_id}'}), 404

        return jsonify({
            'success': True,
            'inspection': record.to_dict()
        })

    except Exception as e:
        logger.error(f"Error in get_inspection: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


def main():
    """Run the development server."""
    logger.info("=" * 80)
    logger.info("Facility Inspections - Local Development Server")
    logger.info("=" * 80)
    logger.info("")
    logger.info("Starting server at http://localhost:5000")
    logger.info("")
    logger.info("API Endpoints:")
    logger.info("  GET  /api/health              - Health check")
    logger.info("  GET  /api/catalog             - Inspection components")
    logger.info("  POST /api/score               - Score ratings")
    logger.info("  POST /api/inspections         - Submit inspection (multipart)")
    logger.info("  GET  /api/inspections         - List inspections")
    logger.info("  GET  /api/inspections/<id>    - Get inspection")
    logger.info("  GET  /api/progress/<task_id>  - Submission progress")
    logger.info("")
    logger.info("Press Ctrl+C to stop the server")
    logger.info("=" * 80)

    app.run(debug=False, host='0.0.0.0', port=5000)


if __name__ == '__main__':
    main()
