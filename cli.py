"""
Command-Line Interface for the Facility Inspection System

Provides commands for browsing the component catalog, scoring ratings,
submitting inspections with photo evidence and listing stored inspections.
"""

import sys
import asyncio
import argparse
import logging
from pathlib import Path

import yaml

from catalog import ComponentCatalog
from database import DatabaseManager
from models import ProgressUpdate
from scoring import calculate_weighted_score, get_score_status
from submission import InspectionSession, InspectionValidationError, SubmissionOrchestrator

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def load_ratings_file(path: str) -> dict:
    """Read a YAML or JSON mapping of component id to star value."""
    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Ratings file must contain a mapping: {path}")
    return data.get('ratings', data)


def _catalog_for(config_path: str) -> ComponentCatalog:
    if Path(config_path).exists():
        return ComponentCatalog.from_config(config_path)
    logger.warning(f"Config not found: {config_path}, using default catalog")
    return ComponentCatalog.default()


def cmd_catalog(args):
    """Print the inspection components."""
    catalog = _catalog_for(args.config)

    logger.info(f"\nComponents ({len(catalog)}), total weight {catalog.total_weight():.2f}:")
    logger.info("-" * 80)
    for definition in catalog:
        flags = []
        if definition.required:
            flags.append('required')
        if definition.allow_photo:
            flags.append('photo')
        logger.info(
            f"  {definition.id:22} | {definition.label:26} | {definition.category.value:12} | "
            f"{definition.weight:.2f} | {', '.join(flags)}"
        )


def cmd_score(args):
    """Score a ratings file without submitting it."""
    catalog = _catalog_for(args.config)
    session = InspectionSession(catalog, location_id='-', location_name='-', user_id='-')
    session.apply_ratings(load_ratings_file(args.ratings))

    score = calculate_weighted_score(session.sheet.ratings(), catalog)
    status = get_score_status(score)

    logger.info(f"✓ Score: {score} {status.emoji} {status.label}")
    logger.info(f"  Completion: {session.completion()}%")

    missing = session.missing_required()
    if missing:
        logger.info(f"  Missing required: {', '.join(d.label for d in missing)}")


def _print_progress(update: ProgressUpdate):
    logger.info(f"  [{update.percentage:3}%] {update.stage} {update.current}/{update.total}")


async def _submit(args) -> int:
    orchestrator = SubmissionOrchestrator.from_config(args.config)
    session = orchestrator.open_session(args.location_id, args.location_name, args.user_id)

    try:
        component_photos = []
        for item in args.component_photo or []:
            if '=' not in item:
                raise ValueError(f"Expected COMPONENT=PATH, got: {item}")
            component_photos.append(tuple(item.split('=', 1)))

        session.apply_ratings(load_ratings_file(args.ratings))
        orchestrator.validate(
            session,
            documentation_count=len(args.photos or []),
            component_ids=[component_id for component_id, _ in component_photos]
        )

        for path in args.photos or []:
            await session.add_documentation_photo(Path(path).read_bytes())

        for component_id, path in component_photos:
            await session.add_photo(component_id, Path(path).read_bytes())

        logger.info(f"Current score: {session.current_score()} ({session.current_status().label})")

        result = await orchestrator.submit(session, notes=args.notes, on_progress=_print_progress)
    finally:
        if not session.closed:
            session.discard()
        orchestrator.store.close()

    submission = result.submission
    logger.info(f"✓ Inspection saved (ID: {result.record_id})")
    logger.info(f"  Score: {submission.score} ({submission.overall_status})")
    logger.info(f"  Photos: {len(submission.photo_urls)} uploaded, {len(result.failed_photos)} failed")
    logger.info(f"  Duration: {submission.duration_seconds}s")
    return result.record_id


def cmd_submit(args):
    """Run the full pipeline for an inspection."""
    try:
        asyncio.run(_submit(args))
    except InspectionValidationError as e:
        logger.error(f"✗ {e}")
        sys.exit(2)


def cmd_list(args):
    """List stored inspections."""
    db = DatabaseManager.from_config(args.config)

    try:
        records = db.list_inspections(location_id=args.location_id, limit=args.limit)
    finally:
        db.close()

    logger.info(f"\nInspections ({len(records)}):")
    logger.info("-" * 80)
    for record in records:
        logger.info(
            f"  [{record.id:4}] {record.location_id:16} | {record.inspection_date} {record.inspection_time} | "
            f"{record.submission.score:3} {record.overall_status:9} | {len(record.photo_urls)} photos"
        )


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Facility Inspection System',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Show the inspection components
  python cli.py catalog

  # Score a ratings file
  python cli.py score --ratings ratings.yaml

  # Submit an inspection with one documentation photo and a floor photo
  python cli.py submit --ratings ratings.yaml --photos overview.jpg \\
      --component-photo floor_cleanliness=floor.jpg \\
      --location-id loc-12 --location-name "Lobby Restroom" --user-id user-7

  # List inspections of a location
  python cli.py list --location-id loc-12
        '''
    )

    parser.add_argument('--config', default='config.yaml', help='Path to config file')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Catalog command
    catalog_parser = subparsers.add_parser('catalog', help='List inspection components')
    catalog_parser.set_defaults(func=cmd_catalog)

    # Score command
    score_parser = subparsers.add_parser('score', help='Score a ratings file')
    score_parser.add_argument('--ratings', required=True, help='YAML/JSON file of component ratings')
    score_parser.set_defaults(func=cmd_score)

    # Submit command
    submit_parser = subparsers.add_parser('submit', help='Submit an inspection')
    submit_parser.add_argument('--ratings', required=True, help='YAML/JSON file of component ratings')
    submit_parser.add_argument('--photos', nargs='*', help='Documentation photos')
    submit_parser.add_argument('--component-photo', action='append',
                               help='Component photo as COMPONENT=PATH (repeatable)')
    submit_parser.add_argument('--location-id', required=True, help='Inspected location ID')
    submit_parser.add_argument('--location-name', required=True, help='Facility name for watermarks')
    submit_parser.add_argument('--user-id', required=True, help='Inspector ID')
    submit_parser.add_argument('--notes', help='General notes')
    submit_parser.set_defaults(func=cmd_submit)

    # List command
    list_parser = subparsers.add_parser('list', help='List inspections')
    list_parser.add_argument('--location-id', help='Filter by location')
    list_parser.add_argument('--limit', type=int, default=50, help='Maximum number of inspections')
    list_parser.set_defaults(func=cmd_list)

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.command:
        parser.print_help()
        return

    try:
        args.func(args)
    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
