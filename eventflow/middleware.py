"""Hooks that run around node execution."""

from abc import ABC

from eventflow.events import Event
from eventflow.node import Node
from eventflow.state import WorkflowState


class WorkflowMiddleware(ABC):
    """Intercepts node execution.

    ``before`` runs after the node's context is set and before ``run``; it may
    call ``node.interrupt(...)`` to ask for approval before the node does any
    work. ``after`` runs once the node has produced its next event (for
    streaming nodes, after the generator is exhausted). Both default to no-ops.
    """

    def before(self, node: Node, event: Event, state: WorkflowState) -> None:
        return None

    def after(self, node: Node, result: Event, state: WorkflowState) -> None:
        return None
