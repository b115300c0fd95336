"""Error taxonomy for the workflow engine.

WorkflowInterrupt lives in ``eventflow.interrupt`` and deliberately does not
derive from WorkflowError: a suspension is not a failure.
"""


class WorkflowError(Exception):
    """Base class for every engine error."""


class ConfigurationError(WorkflowError):
    """The routing table is malformed (missing start node, duplicates, bad types)."""


class RoutingError(WorkflowError):
    """A node produced an event that no registered node handles."""

    def __init__(self, event_type: str, message: str | None = None) -> None:
        self.event_type = event_type
        super().__init__(message or f"No node found that handles event: {event_type}")


class PersistenceError(WorkflowError):
    """A persistence backend failed to save, load or delete a snapshot."""


class SnapshotNotFoundError(PersistenceError, KeyError):
    """No snapshot is stored under the requested run id."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"No saved workflow found for ID: {run_id}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class SerializationError(PersistenceError):
    """A snapshot value cannot be encoded or decoded."""


class NothingToResumeError(WorkflowError):
    """resume() was called for a run id that has no persisted snapshot."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Nothing to resume: no interrupted run stored for ID: {run_id}")


class InterruptNotPersistedError(PersistenceError):
    """A node suspended the run but the snapshot could not be saved.

    The run is not resumable. ``interrupt`` holds the suspension that was lost.
    """

    def __init__(self, run_id: str, interrupt: Exception, cause: Exception) -> None:
        self.run_id = run_id
        self.interrupt = interrupt
        super().__init__(f"Interrupt for run {run_id} could not be persisted: {cause}")
