"""Persistence backed by one JSON file per run."""

import os
import tempfile
from pathlib import Path
from urllib.parse import quote

from eventflow.errors import PersistenceError, SnapshotNotFoundError
from eventflow.interrupt import WorkflowInterrupt
from eventflow.persistence.base import PersistenceStore, decode_snapshot, encode_snapshot


class FilePersistence(PersistenceStore):
    """Stores each snapshot as ``<directory>/<run id>.json``.

    Writes go to a temporary file that is atomically renamed over the target,
    so a crash mid-save never leaves a half-written snapshot behind.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, run_id: str) -> Path:
        return self._directory / f"{quote(run_id, safe='')}.json"

    def save(self, run_id: str, interrupt: WorkflowInterrupt) -> None:
        encoded = encode_snapshot(interrupt)
        target = self._path(run_id)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._directory, prefix=".snapshot-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(encoded + "\n")
                os.replace(tmp, target)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to save snapshot for {run_id}: {e}") from e

    def load(self, run_id: str) -> WorkflowInterrupt:
        path = self._path(run_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise SnapshotNotFoundError(run_id) from None
        except OSError as e:
            raise PersistenceError(f"Failed to load snapshot for {run_id}: {e}") from e
        return decode_snapshot(raw)

    def delete(self, run_id: str) -> None:
        try:
            self._path(run_id).unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to delete snapshot for {run_id}: {e}") from e
