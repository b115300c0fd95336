"""Event-driven workflows that can pause for human input and resume later.

Note: the Temporal adapter is imported lazily so temporalio stays optional.
"""

from eventflow.errors import (
    ConfigurationError,
    InterruptNotPersistedError,
    NothingToResumeError,
    PersistenceError,
    RoutingError,
    SerializationError,
    SnapshotNotFoundError,
    WorkflowError,
)
from eventflow.events import Event, StartEvent, StopEvent
from eventflow.handler import WorkflowHandler
from eventflow.interrupt import (
    Action,
    ActionDecision,
    ApprovalRequest,
    InterruptRequest,
    WorkflowInterrupt,
)
from eventflow.middleware import WorkflowMiddleware
from eventflow.node import Node
from eventflow.observability import ConsoleObserver, LoggingObserver, Notification
from eventflow.persistence import (
    FilePersistence,
    InMemoryPersistence,
    PersistenceStore,
    SqlitePersistence,
)
from eventflow.state import WorkflowState
from eventflow.workflow import Workflow

__all__ = [
    "Action",
    "ActionDecision",
    "ApprovalRequest",
    "ConfigurationError",
    "ConsoleObserver",
    "Event",
    "FilePersistence",
    "InMemoryPersistence",
    "InterruptNotPersistedError",
    "InterruptRequest",
    "LoggingObserver",
    "Node",
    "NothingToResumeError",
    "Notification",
    "PersistenceError",
    "PersistenceStore",
    "RoutingError",
    "SerializationError",
    "SnapshotNotFoundError",
    "SqlitePersistence",
    "StartEvent",
    "StopEvent",
    "TemporalActivityExecutor",
    "Workflow",
    "WorkflowError",
    "WorkflowHandler",
    "WorkflowInterrupt",
    "WorkflowMiddleware",
    "WorkflowState",
]


def __getattr__(name: str) -> object:
    """Lazy import the Temporal adapter."""
    if name == "TemporalActivityExecutor":
        from eventflow.executors.temporal import TemporalActivityExecutor

        return TemporalActivityExecutor
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
