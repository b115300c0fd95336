"""In-process persistence, the default for every Workflow."""

import threading

from eventflow.errors import SnapshotNotFoundError
from eventflow.interrupt import WorkflowInterrupt
from eventflow.persistence.base import PersistenceStore, decode_snapshot, encode_snapshot


class InMemoryPersistence(PersistenceStore):
    """Keeps encoded snapshots in a dict.

    Snapshots are stored in their encoded form, so a loaded interrupt never
    aliases the state object of the run that saved it, and values that could
    not survive a real backend fail here too.
    """

    def __init__(self) -> None:
        self._snapshots: dict[str, str] = {}
        self._lock = threading.Lock()

    def save(self, run_id: str, interrupt: WorkflowInterrupt) -> None:
        encoded = encode_snapshot(interrupt)
        with self._lock:
            self._snapshots[run_id] = encoded

    def load(self, run_id: str) -> WorkflowInterrupt:
        with self._lock:
            encoded = self._snapshots.get(run_id)
        if encoded is None:
            raise SnapshotNotFoundError(run_id)
        return decode_snapshot(encoded)

    def delete(self, run_id: str) -> None:
        with self._lock:
            self._snapshots.pop(run_id, None)

    def __contains__(self, run_id: object) -> bool:
        with self._lock:
            return run_id in self._snapshots
