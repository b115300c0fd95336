"""SQLite-backed persistence for suspended runs."""

import re
import sqlite3
import threading
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType

from eventflow.errors import PersistenceError, SnapshotNotFoundError
from eventflow.interrupt import WorkflowInterrupt
from eventflow.persistence.base import PersistenceStore, decode_snapshot, encode_snapshot

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SqlitePersistence(PersistenceStore):
    """Stores snapshots in a ``workflow_interrupts`` table.

    One row per run id; saving an existing run id updates the row in place.
    A single connection is shared behind a lock, which also makes
    ``":memory:"`` databases usable.
    """

    def __init__(self, db_path: str | Path, table: str = "workflow_interrupts") -> None:
        if not _IDENTIFIER.match(table):
            raise ValueError(f"Invalid table name: {table!r}")
        self._table = table
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
            with self._conn:
                self._conn.execute(f"""
                    CREATE TABLE IF NOT EXISTS {table} (
                        workflow_id TEXT PRIMARY KEY,
                        snapshot TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to open snapshot database {db_path}: {e}") from e

    def save(self, run_id: str, interrupt: WorkflowInterrupt) -> None:
        encoded = encode_snapshot(interrupt)
        now = datetime.now(tz=UTC).isoformat()
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    f"""
                    INSERT INTO {self._table} (workflow_id, snapshot, created_at, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(workflow_id) DO UPDATE
                    SET snapshot = excluded.snapshot, updated_at = excluded.updated_at
                    """,
                    (run_id, encoded, now, now),
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save snapshot for {run_id}: {e}") from e

    def load(self, run_id: str) -> WorkflowInterrupt:
        try:
            with self._lock:
                row = self._conn.execute(
                    f"SELECT snapshot FROM {self._table} WHERE workflow_id = ?", (run_id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to load snapshot for {run_id}: {e}") from e
        if row is None:
            raise SnapshotNotFoundError(run_id)
        return decode_snapshot(row[0])

    def delete(self, run_id: str) -> None:
        try:
            with self._lock, self._conn:
                self._conn.execute(f"DELETE FROM {self._table} WHERE workflow_id = ?", (run_id,))
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to delete snapshot for {run_id}: {e}") from e

    def list_runs(self) -> list[tuple[str, str]]:
        """Return ``(run id, updated_at)`` pairs, most recently updated first."""
        with self._lock:
            rows = self._conn.execute(
                f"SELECT workflow_id, updated_at FROM {self._table} ORDER BY updated_at DESC"
            ).fetchall()
        return [(run_id, updated_at) for run_id, updated_at in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "SqlitePersistence":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
