"""
SQLite-backed claim recorder.

Key properties:
- Implements exactly the same interface as InMemoryClaimRecorder
- Can be swapped without changing the validation service
- One row per validation, newest write for a claim wins

Data stored:
- subject_id, approved flag, explanation, primary citation

Data NEVER stored:
- prompts or model outputs
- credentials
"""

import asyncio
import logging
import sqlite3
import threading
from typing import Optional

from agent.persistence.base import ClaimRecorder, ValidationRecord

logger = logging.getLogger(__name__)


class SQLiteClaimRecorder(ClaimRecorder):
    """
    Design:
    - One table: claim_validations
    - Columns: subject_id (unique), approved, explanation, primary_citation, recorded_at
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Args:
            db_path: Path to SQLite database file.
                    If None, uses ':memory:' (in-memory, useful for testing).
        """
        self.db_path = db_path or ":memory:"
        # :memory: databases vanish with their connection, so keep one open
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        # Worker threads from asyncio.to_thread share the connection; one transaction at a time
        self._lock = threading.RLock()
        self._initialize_db()

    def _initialize_db(self) -> None:
        cursor = self._conn.cursor()
        if self.db_path != ":memory:":
            cursor.execute("PRAGMA journal_mode=WAL")

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS claim_validations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                subject_id TEXT NOT NULL UNIQUE,
                approved INTEGER NOT NULL,
                explanation TEXT NOT NULL,
                primary_citation TEXT,
                recorded_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        self._conn.commit()
        logger.debug(f"SQLite claim recorder initialized: {self.db_path}")

    async def record(self, record: ValidationRecord) -> None:
        await asyncio.to_thread(self._write, record)

    def _write(self, record: ValidationRecord) -> None:
        with self._lock:
            self._insert(record)
        logger.debug(f"Recorded validation for {record.subject_id}")

    def _insert(self, record: ValidationRecord) -> None:
        self._conn.execute(
            """
            INSERT INTO claim_validations (subject_id, approved, explanation, primary_citation)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(subject_id) DO UPDATE SET
                approved = excluded.approved,
                explanation = excluded.explanation,
                primary_citation = excluded.primary_citation,
                recorded_at = CURRENT_TIMESTAMP
            """,
            (record.subject_id, int(record.approved), record.explanation, record.primary_citation),
        )
        self._conn.commit()

    def fetch(self, subject_id: str) -> Optional[ValidationRecord]:
        with self._lock:
            row = self._conn.execute(
                """
                SELECT subject_id, approved, explanation, primary_citation
                FROM claim_validations WHERE subject_id = ?
                """,
                (subject_id,),
            ).fetchone()
        if row is None:
            return None
        return ValidationRecord(
            subject_id=row[0], approved=bool(row[1]), explanation=row[2], primary_citation=row[3]
        )

    def close(self) -> None:
        with self._lock:
            self._conn.close()
