"""
SQLite storage for tool-call analytics and dashboard users.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger("hubspot-analytics-db")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tool_calls (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
        domain TEXT NOT NULL,
        operation TEXT NOT NULL,
        tool_name TEXT,
        success BOOLEAN NOT NULL,
        response_time INTEGER,
        parameters TEXT,
        response_size INTEGER
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS errors (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
        domain TEXT NOT NULL,
        operation TEXT NOT NULL,
        error_type TEXT NOT NULL,
        error_message TEXT NOT NULL,
        stack_trace TEXT,
        parameters TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sessions (
        sid TEXT PRIMARY KEY,
        username TEXT NOT NULL,
        expire DATETIME NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_tool_calls_timestamp ON tool_calls(timestamp)",
    "CREATE INDEX IF NOT EXISTS idx_tool_calls_domain ON tool_calls(domain)",
    "CREATE INDEX IF NOT EXISTS idx_errors_timestamp ON errors(timestamp)",
    "CREATE INDEX IF NOT EXISTS idx_sessions_expire ON sessions(expire)",
]


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """Timestamp in the same layout SQLite's CURRENT_TIMESTAMP uses"""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def days_ago(days: int) -> str:
    return utc_timestamp(datetime.now(timezone.utc) - timedelta(days=days))


class AnalyticsDatabase:
    """Thin wrapper that opens a connection per operation"""

    def __init__(self, db_path: str):
        self.db_path = str(db_path)
        self.initialized = False

    @contextmanager
    def connect(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def initialize(self):
        if self.initialized:
            return
        parent = Path(self.db_path).parent
        parent.mkdir(parents=True, exist_ok=True)
        with self.connect() as conn:
            for statement in SCHEMA:
                conn.execute(statement)
        self.initialized = True
        logger.info(f"Analytics database initialized at {self.db_path}")

    def query(self, sql: str, params: Iterable[Any] = ()) -> List[Dict[str, Any]]:
        self.initialize()
        with self.connect() as conn:
            return [dict(row) for row in conn.execute(sql, tuple(params))]

    def run(self, sql: str, params: Iterable[Any] = ()) -> int:
        """Execute a write and return the number of affected rows"""
        self.initialize()
        with self.connect() as conn:
            return conn.execute(sql, tuple(params)).rowcount
