"""
Database Manager

Provides database connection and persistence of completed inspections,
backed by SQLite.
"""

import json
import sqlite3
import os
import logging
import threading
from typing import Optional, List, Dict
from datetime import datetime
from contextlib import contextmanager
import yaml

from models import InspectionRecord, InspectionSubmission

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Manages database connections and operations.

    Stores one row per submitted inspection. The full submission is kept as
    a versioned JSON payload next to the columns used for querying.

    Attributes:
        db_type: Type of database ('sqlite')
        connection_string: Path to database file, or ':memory:'
        conn: Active database connection

    Example:
        >>> db = DatabaseManager.from_config('config.yaml')
        >>> record_id = db.create_inspection_record(submission, 'loc-12', 'default-restroom', 'user-7')
        >>> record = db.get_inspection(record_id)
    """

    def __init__(self, db_type: str = 'sqlite', connection_string: str = 'inspections.db'):
        """
        Initialize database manager.

        Args:
            db_type: Type of database (only 'sqlite' is supported)
            connection_string: Path for SQLite
        """
        if db_type != 'sqlite':
            raise ValueError(f"Unsupported database type: {db_type}")

        self.db_type = db_type
        self.connection_string = connection_string
        self.conn = None
        self._lock = threading.RLock()

        # Initialize connection
        self._connect()

        # Initialize schema if needed
        self._initialize_schema()

    @classmethod
    def from_config(cls, config_path: str = 'config.yaml') -> 'DatabaseManager':
        """
        Create DatabaseManager from configuration file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Configured DatabaseManager instance
        """
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}

        db_config = config.get('database', {}) or {}
        db_type = db_config.get('type', 'sqlite')

        if db_type == 'sqlite':
            connection_string = (db_config.get('sqlite', {}) or {}).get('path', 'inspections.db')
        else:
            raise ValueError(f"Unsupported database type: {db_type}")

        return cls(db_type=db_type, connection_string=connection_string)

    def _connect(self):
        """Establish database connection."""
        # Shared with worker threads; access is serialized by get_cursor
        self.conn = sqlite3.connect(self.connection_string, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        logger.info(f"Connected to SQLite database: {self.connection_string}")

    def _initialize_schema(self):
        """Initialize database schema if tables don't exist."""
        schema_path = os.path.join(
            os.path.dirname(__file__),
            'schema.sql'
        )

        with open(schema_path, 'r') as f:
            schema_sql = f.read()

        self.conn.executescript(schema_sql)  # type: ignore
        self.conn.commit()  # type: ignore
        logger.info("Database schema initialized")

    @contextmanager
    def get_cursor(self):
        """
        Context manager for database cursors.

        Yields:
            Database cursor

        Example:
            >>> with db.get_cursor() as cursor:
            ...     cursor.execute("SELECT * FROM inspections")
            ...     rows = cursor.fetchall()
        """
        with self._lock:
            cursor = self.conn.cursor()  # type: ignore
            try:
                yield cursor
                self.conn.commit()  # type: ignore
            except Exception as e:
                self.conn.rollback()  # type: ignore
                logger.error(f"Database error: {e}")
                raise
            finally:
                cursor.close()

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.info("Database connection closed")

    # ===========================
    # Inspection Operations
    # ===========================

    def create_inspection_record(self, submission: InspectionSubmission, location_id: str,
                                 template_id: str, user_id: str) -> int:
        """
        Persist a completed inspection.

        Date and time columns are derived from the submission timestamp
        (YYYY-MM-DD and HH:MM).

        Args:
            submission: Finalized submission
            location_id: Inspected location
            template_id: Template the ratings belong to
            user_id: Inspector

        Returns:
            ID of the new record
        """
        submitted_at = submission.submitted_at

        with self.get_cursor() as cursor:
            cursor.execute("""
                INSERT INTO inspections (
                    location_id, template_id, user_id,
                    inspection_date, inspection_time,
                    overall_status, score, responses, submitted_at, photo_urls,
                    notes, duration_seconds
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                location_id,
                template_id,
                user_id,
                submitted_at.strftime('%Y-%m-%d'),
                submitted_at.strftime('%H:%M'),
                submission.overall_status,
                submission.score,
                json.dumps(submission.to_dict()),
                submitted_at.isoformat(),
                json.dumps(list(submission.photo_urls)),
                submission.notes,
                submission.duration_seconds,
            ))
            record_id = cursor.lastrowid

        logger.info(
            f"Created inspection record {record_id} for location {location_id} "
            f"(score {submission.score}, {submission.overall_status})"
        )
        return record_id  # type: ignore

    def get_inspection(self, record_id: int) -> Optional[InspectionRecord]:
        """Get inspection by ID."""
        with self.get_cursor() as cursor:
            cursor.execute("SELECT * FROM inspections WHERE id = ?", (record_id,))
            row = cursor.fetchone()

        return self._row_to_record(row) if row else None

    def list_inspections(self, location_id: Optional[str] = None, limit: int = 50) -> List[InspectionRecord]:
        """
        List most recent inspections first.

        Args:
            location_id: Only inspections of this location (optional)
            limit: Maximum number of records

        Returns:
            List of InspectionRecord instances
        """
        query = "SELECT * FROM inspections"
        params: list = []

        if location_id:
            query += " WHERE location_id = ?"
            params.append(location_id)

        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            rows = cursor.fetchall()

        return [self._row_to_record(row) for row in rows]

    def count_by_status(self, location_id: Optional[str] = None) -> Dict[str, int]:
        """Number of inspections per overall status."""
        query = "SELECT overall_status, COUNT(*) AS total FROM inspections"
        params: list = []

        if location_id:
            query += " WHERE location_id = ?"
            params.append(location_id)

        query += " GROUP BY overall_status"

        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return {row['overall_status']: row['total'] for row in cursor.fetchall()}

    def _row_to_record(self, row) -> InspectionRecord:
        return InspectionRecord(
            id=row['id'],
            location_id=row['location_id'],
            template_id=row['template_id'],
            user_id=row['user_id'],
            inspection_date=row['inspection_date'],
            inspection_time=row['inspection_time'],
            submission=InspectionSubmission.from_dict(json.loads(row['responses'])),
            created_at=datetime.fromisoformat(row['created_at']) if row['created_at'] else None,
        )

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
