"""
Repository pattern for cost record access.

Acts as the record source for analytics: an append-only SQLite ledger of
daily cost-usage records queried by date range.
"""

import logging
from datetime import date
from typing import List, Optional, Protocol

from .db import DEFAULT_DB_PATH, get_connection
from .models import CostRecord

logger = logging.getLogger(__name__)

_INSERT_SQL = """
    INSERT INTO cost_usage_record
    (project_id, service_name, usage_date, cost, credits)
    VALUES (?, ?, ?, ?, ?)
"""


class RecordSource(Protocol):
    """Anything that can supply cost records for an inclusive date range."""

    def get_records(self, start_date: date, end_date: date) -> List[CostRecord]:
        ...


class CostRecordRepository:
    """Repository for reading cost records from the local ledger.

    Satisfies the RecordSource protocol used by the analytics service.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def get_records(
        self,
        start_date: date,
        end_date: date,
        project_id: Optional[str] = None,
        service_name: Optional[str] = None
    ) -> List[CostRecord]:
        """Get cost records with usage dates in [start_date, end_date].

        Args:
            start_date: First usage date to include
            end_date: Last usage date to include
            project_id: Optional filter for a specific project
            service_name: Optional filter for a specific service

        Returns:
            List of cost records ordered by usage date, then insertion order
        """
        if start_date > end_date:
            raise ValueError("start_date must not be after end_date")

        conn = get_connection(self.db_path)
        try:
            query = """
                SELECT project_id, service_name, usage_date, cost, credits
                FROM cost_usage_record
                WHERE usage_date >= ? AND usage_date <= ?
            """
            params = [start_date.isoformat(), end_date.isoformat()]

            if project_id:
                query += " AND project_id = ?"
                params.append(project_id)
            if service_name:
                query += " AND service_name = ?"
                params.append(service_name)

            query += " ORDER BY usage_date ASC, id ASC"

            cursor = conn.execute(query, params)
            records = [_row_to_record(row) for row in cursor.fetchall()]
            logger.debug(
                "Loaded %d records for %s..%s", len(records), start_date, end_date
            )
            return records
        finally:
            conn.close()

    def count_records(self) -> int:
        """Return the number of records in the ledger."""
        conn = get_connection(self.db_path)
        try:
            row = conn.execute("SELECT COUNT(*) FROM cost_usage_record").fetchone()
            return row[0] or 0
        finally:
            conn.close()


# Global repository instance
_default_repository: Optional[CostRecordRepository] = None


def get_repository(db_path: str = DEFAULT_DB_PATH) -> CostRecordRepository:
    """Get a repository instance.

    The instance is shared per process and replaced when a different
    database path is requested.

    Args:
        db_path: Path to SQLite database file

    Returns:
        An instance of CostRecordRepository
    """
    global _default_repository
    if _default_repository is None or _default_repository.db_path != db_path:
        _default_repository = CostRecordRepository(db_path)
    return _default_repository


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the cost_usage_record table if it doesn't exist.

    The table is an append-only ledger; records are never updated or
    deleted, and duplicates for the same day are summed by analytics.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS cost_usage_record (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                project_id TEXT NOT NULL,
                service_name TEXT NOT NULL,
                usage_date TEXT NOT NULL,
                cost REAL NOT NULL,
                credits REAL NOT NULL DEFAULT 0
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_cost_usage_record_date
            ON cost_usage_record (usage_date)
        """)
        conn.commit()
    finally:
        conn.close()


def insert_cost_record(record: CostRecord, db_path: str = DEFAULT_DB_PATH) -> None:
    """Append a single cost record to the ledger.

    Args:
        record: The cost record to store
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute(_INSERT_SQL, _record_to_row(record))
        conn.commit()
    finally:
        conn.close()


def insert_cost_records(records: List[CostRecord], db_path: str = DEFAULT_DB_PATH) -> int:
    """Append multiple cost records atomically.

    All records are inserted in a single transaction; nothing is written
    if any insert fails.

    Args:
        records: Cost records to store
        db_path: Path to SQLite database file

    Returns:
        Number of records inserted
    """
    if not records:
        return 0

    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN TRANSACTION")
        for record in records:
            conn.execute(_INSERT_SQL, _record_to_row(record))
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    logger.info("Inserted %d cost records", len(records))
    return len(records)


def _record_to_row(record: CostRecord) -> tuple:
    return (
        record.project_id,
        record.service_name,
        record.usage_date.isoformat(),
        record.cost,
        record.credits,
    )


def _row_to_record(row) -> CostRecord:
    return CostRecord(
        project_id=row[0],
        service_name=row[1],
        usage_date=date.fromisoformat(row[2]),
        cost=row[3],
        credits=row[4],
    )
