"""Base interface for running workflows inside a host concurrency runtime."""

from abc import ABC, abstractmethod
from typing import Any

from eventflow.handler import WorkflowHandler


class AsyncWorkflowExecutor(ABC):
    """Runs a handler's blocking ``get_result()`` on some runtime.

    Executors keep the engine independent of any particular runtime. Each one
    returns that runtime's future type, resolving to the final WorkflowState or
    failing with whatever the run raised (including WorkflowInterrupt).
    Executors hold no state shared with other executors or with the engine,
    so independent workflows can run concurrently through the same instance.

    Cancelling the returned future stops waiting for the run; a node that is
    already executing finishes in the background.
    """

    @abstractmethod
    def execute(self, handler: WorkflowHandler) -> Any:
        """Start draining ``handler`` and return a future for its final state."""
        ...
