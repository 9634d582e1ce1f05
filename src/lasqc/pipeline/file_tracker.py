"""SQLite-based file processing state tracker.

Tracks LAS files through pipeline stages (parsed, processed, certified).
Enables idempotent batch runs with stop/restart, progress tracking, and
failure recovery.
"""

import sqlite3
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Dict, List
import threading

__all__ = ['FileProcessingTracker', 'TRACKED_STAGES']

logger = logging.getLogger(__name__)

# stage -> column holding the stage's output path
TRACKED_STAGES = {
    'parsed': 'las_path',
    'processed': 'report_path',
    'certified': 'certificate_path',
}


class FileProcessingTracker:
    """Tracks file processing state and progress through pipeline stages.

    **Pipeline Stages:**

    1. **Parsed**: LAS payload read into a dataset
    2. **Processed**: Processing chain finished, report written
    3. **Certified**: Quality certificate issued

    **Database Schema:**

    SQLite table `file_processing`:

    - file_id: Unique file identifier (LAS file stem)
    - well_name: WELL header value, when known
    - status: pending, processing, completed, failed
    - Timestamps: when each stage completed (ISO format)
    - Paths: las_path, report_path, certificate_path, netcdf_path
    - Metadata: file_size_mb, num_curves, overall_grade, error_message

    A file whose ``certified`` stage is recorded is skipped on restart.
    Use ``reset_failed()`` to retry failures and ``cleanup_deleted_files()``
    to forget files removed from the input directory.

    All methods are thread-safe via internal locking.

    Example::

        with FileProcessingTracker(db_path) as tracker:
            tracker.register_file("WELL_A", las_path=path)
            if tracker.should_process("WELL_A", "certified"):
                ...
                tracker.mark_stage_complete("WELL_A", "certified", path=cert_path,
                                            overall_grade="B")
            print(tracker.get_statistics())
    """

    def __init__(self, db_path: Path | str):
        """Initialize tracker.

        Parameters
        ----------
        db_path : Path or str
            Path to SQLite database file. Created if it doesn't exist.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = None
        self._lock = threading.Lock()

        self._init_database()
        logger.info("File tracker initialized: %s", self.db_path)

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_database(self):
        conn = self._get_connection()

        with self._lock:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS file_processing (
                    file_id TEXT PRIMARY KEY,
                    well_name TEXT,

                    las_path TEXT,
                    report_path TEXT,
                    certificate_path TEXT,
                    netcdf_path TEXT,

                    registered_at TEXT,
                    parsed_at TEXT,
                    processed_at TEXT,
                    certified_at TEXT,

                    status TEXT DEFAULT 'pending',
                    error_message TEXT,

                    file_size_mb REAL,
                    num_curves INTEGER,
                    overall_grade TEXT,

                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_status ON file_processing(status)")
            conn.commit()

    def register_file(self, file_id: str, las_path: Optional[Path] = None,
                      well_name: Optional[str] = None) -> bool:
        """Register a new file for tracking.

        Returns
        -------
        bool
            True if newly registered, False if already in the database.
        """
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute("SELECT file_id FROM file_processing WHERE file_id = ?", (file_id,))
            if cursor.fetchone():
                return False

            file_size_mb = None
            if las_path and Path(las_path).exists():
                file_size_mb = Path(las_path).stat().st_size / (1024 * 1024)

            conn.execute("""
                INSERT INTO file_processing
                (file_id, well_name, las_path, file_size_mb, registered_at, status)
                VALUES (?, ?, ?, ?, ?, 'pending')
            """, (
                file_id,
                well_name,
                str(las_path) if las_path else None,
                file_size_mb,
                datetime.now(timezone.utc).isoformat(),
            ))
            conn.commit()

            logger.debug("Registered file: %s", file_id)
            return True

    def mark_stage_complete(self, file_id: str, stage: str,
                            path: Optional[Path] = None,
                            num_curves: Optional[int] = None,
                            overall_grade: Optional[str] = None,
                            netcdf_path: Optional[Path] = None,
                            error: Optional[str] = None):
        """Mark a pipeline stage as complete or failed for a file.

        Parameters
        ----------
        file_id : str
            File identifier (registered via ``register_file``).
        stage : str
            One of ``parsed``, ``processed``, ``certified``.
        path : Path, optional
            Output written by the stage. For ``parsed`` this is the LAS path
            and is only updated when given.
        num_curves, overall_grade : optional
            Metadata recorded when given.
        netcdf_path : Path, optional
            Processed curves written alongside the report.
        error : str, optional
            Failure message. Sets status to ``failed``.

        Raises
        ------
        ValueError
            If stage is not a tracked stage.
        """
        if stage not in TRACKED_STAGES:
            raise ValueError(f"Invalid stage: {stage}. Must be one of {list(TRACKED_STAGES)}")

        if error:
            new_status = 'failed'
        elif stage == 'certified':
            new_status = 'completed'
        else:
            new_status = 'processing'

        now = datetime.now(timezone.utc).isoformat()
        assignments = [f"{stage}_at = ?", "status = ?", "error_message = ?", "updated_at = ?"]
        params = [None if error else now, new_status, error, now]

        optional = {
            TRACKED_STAGES[stage]: str(path) if path else None,
            'num_curves': num_curves,
            'overall_grade': overall_grade,
            'netcdf_path': str(netcdf_path) if netcdf_path else None,
        }
        for column, value in optional.items():
            if value is not None:
                assignments.append(f"{column} = ?")
                params.append(value)

        conn = self._get_connection()
        with self._lock:
            conn.execute(
                f"UPDATE file_processing SET {', '.join(assignments)} WHERE file_id = ?",
                (*params, file_id),
            )
            conn.commit()

        if error:
            logger.debug("Marked %s failed: %s (%s)", stage, file_id, error)
        else:
            logger.debug("Marked %s complete: %s", stage, file_id)

    def get_file_status(self, file_id: str) -> Optional[Dict]:
        """Return the full tracking record for a file, or None."""
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute("SELECT * FROM file_processing WHERE file_id = ?", (file_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_pending_files(self, stage: Optional[str] = None,
                          limit: Optional[int] = None) -> List[Dict]:
        """Files awaiting work.

        Parameters
        ----------
        stage : str, optional
            ``processed``: parsed but not processed. ``certified``: processed
            but not certified. If None, any file not completed or failed.
        limit : int, optional
            Maximum number of records.
        """
        if stage == 'processed':
            condition = "parsed_at IS NOT NULL AND processed_at IS NULL"
        elif stage == 'certified':
            condition = "processed_at IS NOT NULL AND certified_at IS NULL"
        else:
            condition = "status != 'completed' AND status != 'failed'"

        query = f"SELECT * FROM file_processing WHERE {condition} ORDER BY registered_at"
        params = []
        if limit:
            query += " LIMIT ?"
            params.append(limit)

        conn = self._get_connection()
        with self._lock:
            cursor = conn.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def get_statistics(self) -> Dict:
        """Summary counts for progress logging."""
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute("""
                SELECT
                    COUNT(*) as total,
                    COUNT(parsed_at) as parsed,
                    COUNT(processed_at) as processed,
                    COUNT(certified_at) as certified,
                    SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END) as completed,
                    SUM(CASE WHEN status = 'failed' THEN 1 ELSE 0 END) as failed,
                    SUM(CASE WHEN status = 'processing' THEN 1 ELSE 0 END) as processing,
                    SUM(CASE WHEN status = 'pending' THEN 1 ELSE 0 END) as pending
                FROM file_processing
            """)
            row = cursor.fetchone()
            return {k: (v or 0) for k, v in dict(row).items()} if row else {}

    def should_process(self, file_id: str, stage: str = 'certified') -> bool:
        """True if ``stage`` has not completed for ``file_id``."""
        status = self.get_file_status(file_id)
        if not status:
            return True
        return status.get(f"{stage}_at") is None

    def reset_failed(self):
        """Reset all failed files to pending for retry."""
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute("""
                UPDATE file_processing
                SET status = 'pending', error_message = NULL, updated_at = ?
                WHERE status = 'failed'
            """, (datetime.now(timezone.utc).isoformat(),))
            conn.commit()
            count = cursor.rowcount

        logger.info("Reset %d failed file(s) to pending", count)
        return count

    def cleanup_deleted_files(self) -> List[str]:
        """Remove records whose LAS file no longer exists on disk."""
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute("SELECT file_id, las_path FROM file_processing")
            deleted = [
                row['file_id'] for row in cursor.fetchall()
                if row['las_path'] and not Path(row['las_path']).exists()
            ]
            if deleted:
                placeholders = ','.join('?' * len(deleted))
                conn.execute(
                    f"DELETE FROM file_processing WHERE file_id IN ({placeholders})",
                    deleted,
                )
                conn.commit()
                logger.info("Cleaned up %d deleted file(s)", len(deleted))

        return deleted

    def close(self):
        """Close database connection. Safe to call multiple times."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
