"""
Database connection management.

Provides SQLite connections for the local cost record ledger.
"""

import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = "cost_analytics.db"


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Open a SQLite connection to the cost record ledger.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLite connection; callers close it when done
    """
    return sqlite3.connect(str(Path(db_path)))
