"""Per-step execution context handed to nodes."""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from eventflow.events import Event
from eventflow.interrupt import InterruptRequest, WorkflowInterrupt
from eventflow.state import WorkflowState

if TYPE_CHECKING:
    from eventflow.node import Node
    from eventflow.persistence.base import PersistenceStore


class WorkflowContext:
    """Everything a node needs to know about the step it is executing.

    Rebuilt by the engine before every node execution and never persisted.
    ``feedback`` maps node ids to the values supplied on resume; it is only
    populated for the first step of a resumed run.
    """

    def __init__(
        self,
        run_id: str,
        node: "Node",
        persistence: "PersistenceStore",
        state: WorkflowState,
        event: Event,
        resuming: bool = False,
        feedback: dict[str, Any] | None = None,
    ) -> None:
        self.run_id = run_id
        self.node = node
        self.persistence = persistence
        self.state = state
        self.event = event
        self.resuming = resuming
        self._feedback: dict[str, Any] = dict(feedback or {})

    @property
    def feedback(self) -> dict[str, Any]:
        return dict(self._feedback)

    def has_feedback(self) -> bool:
        return self.resuming and self.node.node_id in self._feedback

    def interrupt(self, request: InterruptRequest | str) -> Any:
        """Suspend the run, or return the feedback recorded for this node on resume.

        Feedback is consumed by the first call, so a second ``interrupt()``
        within the same node invocation suspends the run again.
        """
        if self.has_feedback():
            return self._feedback.pop(self.node.node_id)

        if isinstance(request, str):
            request = InterruptRequest(request)
        raise WorkflowInterrupt(
            request,
            self.node,
            self.state,
            self.event,
            node_checkpoints=self.node.checkpoints,
        )

    def interrupt_if(
        self, condition: bool | Callable[[], bool], request: InterruptRequest | str
    ) -> Any | None:
        """Like :meth:`interrupt`, but only suspends when ``condition`` holds."""
        if self.has_feedback():
            return self._feedback.pop(self.node.node_id)

        should_interrupt = condition() if callable(condition) else condition
        if should_interrupt:
            return self.interrupt(request)
        return None
