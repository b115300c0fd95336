"""Base persistence interface for suspended workflow runs."""

import json
from abc import ABC, abstractmethod

from eventflow.errors import SerializationError
from eventflow.interrupt import WorkflowInterrupt

SNAPSHOT_VERSION = 1


class PersistenceStore(ABC):
    """Durable key/value store for interrupt snapshots, keyed by run id.

    Implementations keep at most one snapshot per run id: ``save`` overwrites,
    ``delete`` is idempotent and ``load`` raises SnapshotNotFoundError when
    nothing is stored. Stores may be shared by concurrent runs, so they must be
    safe to call from several threads.
    """

    @abstractmethod
    def save(self, run_id: str, interrupt: WorkflowInterrupt) -> None:
        """Persist ``interrupt`` under ``run_id``, replacing any previous snapshot."""
        ...

    @abstractmethod
    def load(self, run_id: str) -> WorkflowInterrupt:
        """Load the snapshot stored under ``run_id``.

        Raises:
            SnapshotNotFoundError: If no snapshot is stored for ``run_id``.
        """
        ...

    @abstractmethod
    def delete(self, run_id: str) -> None:
        """Remove the snapshot for ``run_id``. Missing keys are not an error."""
        ...


def encode_snapshot(interrupt: WorkflowInterrupt) -> str:
    """Serialize an interrupt to the JSON document every store writes."""
    payload = {"version": SNAPSHOT_VERSION, **interrupt.to_dict()}
    try:
        return json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Snapshot is not JSON serializable: {e}") from e


def decode_snapshot(raw: str | bytes) -> WorkflowInterrupt:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Corrupt workflow snapshot: {e}") from e
    if not isinstance(payload, dict):
        raise SerializationError("Corrupt workflow snapshot: expected a JSON object")
    version = payload.get("version", SNAPSHOT_VERSION)
    if version != SNAPSHOT_VERSION:
        raise SerializationError(f"Unsupported snapshot version: {version}")
    return WorkflowInterrupt.from_dict(payload)
