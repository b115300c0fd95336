"""Human-in-the-loop interrupt model.

A node that needs a human decision raises a :class:`WorkflowInterrupt`
carrying an :class:`InterruptRequest`. The application shows the request to a
person, records decisions on its :class:`Action` entries and resumes the
workflow with the updated request (or any other feedback value)::

    request = ApprovalRequest(
        "Dangerous operations require approval",
        [Action("delete_1", "Delete File", "Delete /var/log/old.txt")],
    )

    try:
        workflow.start().get_result()
    except WorkflowInterrupt as interrupt:
        for action in interrupt.request.actions:
            action.approve() if ask_user(action.name) else action.reject("User denied")
        state = workflow.start_resume(interrupt.request).get_result()
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from eventflow.errors import SerializationError
from eventflow.events import Event
from eventflow.state import WorkflowState

if TYPE_CHECKING:
    from eventflow.node import Node


class ActionDecision(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EDIT = "edit"


@dataclass
class Action:
    """A single operation awaiting a human decision."""

    id: str
    name: str
    description: str | None = None
    decision: ActionDecision = ActionDecision.PENDING
    feedback: str | None = None

    def approve(self, feedback: str | None = None) -> None:
        self.decision = ActionDecision.APPROVED
        if feedback is not None:
            self.feedback = feedback

    def reject(self, feedback: str) -> None:
        self.decision = ActionDecision.REJECTED
        self.feedback = feedback

    def edit(self, feedback: str | None = None) -> None:
        self.decision = ActionDecision.EDIT
        if feedback is not None:
            self.feedback = feedback

    def is_pending(self) -> bool:
        return self.decision is ActionDecision.PENDING

    def is_approved(self) -> bool:
        return self.decision is ActionDecision.APPROVED

    def is_rejected(self) -> bool:
        return self.decision is ActionDecision.REJECTED

    def is_edited(self) -> bool:
        return self.decision is ActionDecision.EDIT

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "decision": self.decision.value,
            "feedback": self.feedback,
        }

    @staticmethod
    def from_dict(obj: dict[str, Any]) -> "Action":
        return Action(
            id=obj["id"],
            name=obj["name"],
            description=obj.get("description"),
            decision=ActionDecision(obj.get("decision", ActionDecision.PENDING.value)),
            feedback=obj.get("feedback"),
        )


_REQUEST_KINDS: dict[str, type["InterruptRequest"]] = {}


class InterruptRequest:
    """Why a run was suspended, plus the actions a human must decide on.

    Actions are kept in insertion order and keyed by id; ids must be unique
    within one request.
    """

    kind: ClassVar[str] = "interrupt"

    def __init_subclass__(cls, kind: str | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if kind is not None:
            cls.kind = kind
            _REQUEST_KINDS[kind] = cls

    def __init__(
        self,
        message: str = "",
        actions: list[Action] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.metadata: dict[str, Any] = dict(metadata or {})
        self._actions: dict[str, Action] = {}
        for action in actions or []:
            self.add_action(action)

    def add_action(self, action: Action) -> "InterruptRequest":
        if action.id in self._actions:
            raise ValueError(f"Duplicate action id: {action.id}")
        self._actions[action.id] = action
        return self

    def get_action(self, action_id: str) -> Action | None:
        return self._actions.get(action_id)

    @property
    def actions(self) -> list[Action]:
        return list(self._actions.values())

    def get_pending_actions(self) -> list[Action]:
        return [a for a in self._actions.values() if a.is_pending()]

    def get_approved_actions(self) -> list[Action]:
        return [a for a in self._actions.values() if a.is_approved()]

    def get_rejected_actions(self) -> list[Action]:
        return [a for a in self._actions.values() if a.is_rejected()]

    def to_dict(self) -> dict[str, Any]:
        from eventflow.codec import encode_value

        return {
            "kind": self.kind,
            "message": self.message,
            "metadata": encode_value(self.metadata),
            "actions": [a.to_dict() for a in self._actions.values()],
        }

    @staticmethod
    def from_dict(obj: dict[str, Any]) -> "InterruptRequest":
        from eventflow.codec import decode_value

        kind = obj.get("kind", InterruptRequest.kind)
        cls = _REQUEST_KINDS.get(kind)
        if cls is None:
            raise SerializationError(f"Unknown interrupt request kind: {kind}")
        request = cls.__new__(cls)
        InterruptRequest.__init__(
            request,
            message=obj.get("message", ""),
            actions=[Action.from_dict(a) for a in obj.get("actions", [])],
            metadata=decode_value(obj.get("metadata") or {}),
        )
        return request

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InterruptRequest):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.message == other.message
            and self.metadata == other.metadata
            and self.actions == other.actions
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, actions={self.actions!r})"


_REQUEST_KINDS[InterruptRequest.kind] = InterruptRequest


class ApprovalRequest(InterruptRequest, kind="approval"):
    """An interrupt that asks a human to approve, reject or edit actions."""


class WorkflowInterrupt(Exception):
    """Suspension signal and durable record of a suspended run.

    Raised by a node (through its context) to unwind to the caller of
    ``run``/``resume``; the engine persists it before re-raising. ``node`` is
    only available in the process that raised it: after a round-trip through
    persistence the node is identified by ``node_id`` and re-attached by the
    workflow that resumes it.
    """

    def __init__(
        self,
        request: InterruptRequest,
        node: "Node | None",
        state: WorkflowState,
        event: Event,
        node_id: str | None = None,
        node_checkpoints: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(request.message or "Workflow interrupted for human input")
        self.request = request
        self.node = node
        self.node_id = node_id if node_id is not None else (node.node_id if node else "")
        self.state = state
        self.event = event
        self.node_checkpoints: dict[str, Any] = dict(node_checkpoints or {})

    def to_dict(self) -> dict[str, Any]:
        from eventflow.codec import encode_event, encode_value

        return {
            "request": self.request.to_dict(),
            "node_id": self.node_id,
            "node_checkpoints": encode_value(self.node_checkpoints),
            "state": encode_value(self.state.all()),
            "event": encode_event(self.event),
        }

    @staticmethod
    def from_dict(obj: dict[str, Any]) -> "WorkflowInterrupt":
        from eventflow.codec import decode_event, decode_value

        try:
            return WorkflowInterrupt(
                request=InterruptRequest.from_dict(obj["request"]),
                node=None,
                state=WorkflowState(decode_value(obj["state"])),
                event=decode_event(obj["event"]),
                node_id=obj["node_id"],
                node_checkpoints=decode_value(obj.get("node_checkpoints") or {}),
            )
        except KeyError as e:
            raise SerializationError(f"Malformed workflow snapshot, missing {e}") from e
