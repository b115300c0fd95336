"""Node base class."""

import types
import typing
from abc import ABC, abstractmethod
from collections.abc import Callable, Generator
from typing import Any, ClassVar, Union

from eventflow.context import WorkflowContext
from eventflow.errors import WorkflowError
from eventflow.events import Event
from eventflow.interrupt import InterruptRequest
from eventflow.state import WorkflowState

NodeResult = Union[Event, Generator[Any, None, Event]]


class Node(ABC):
    """A unit of computation: consumes one event plus the shared state, returns the next event.

    Subclasses implement :meth:`run`. Returning a generator makes the node a
    streaming node: every item it yields is forwarded to the workflow's
    event stream and its return value is the next event.

    ``produces`` (or the return annotation of ``run``) declares which events
    the node may return. It is advisory and only used for graph export; routing
    always follows the runtime type of the returned event.
    """

    produces: ClassVar[tuple[type[Event], ...]] = ()

    @property
    def node_id(self) -> str:
        """Stable identity used to key resume feedback and persisted snapshots."""
        return self.__dict__.get("_node_id") or f"{type(self).__module__}.{type(self).__qualname__}"

    @node_id.setter
    def node_id(self, value: str) -> None:
        self.__dict__["_node_id"] = value

    @property
    def context(self) -> WorkflowContext:
        context = self.__dict__.get("_context")
        if context is None:
            raise WorkflowError(f"{self.node_id} is not running inside a workflow")
        return context

    @property
    def checkpoints(self) -> dict[str, Any]:
        return dict(self.__dict__.get("_checkpoints", {}))

    def set_context(self, context: WorkflowContext) -> None:
        """Called by the engine immediately before :meth:`run`."""
        self.__dict__["_context"] = context

    def restore_checkpoints(self, checkpoints: dict[str, Any]) -> None:
        self.__dict__["_checkpoints"] = dict(checkpoints)

    def clear_checkpoints(self) -> None:
        self.__dict__.pop("_checkpoints", None)

    @abstractmethod
    def run(self, event: Any, state: WorkflowState) -> NodeResult:
        """Handle ``event`` and return the next event (or a generator returning it)."""
        ...

    def interrupt(self, request: InterruptRequest | str) -> Any:
        return self.context.interrupt(request)

    def interrupt_if(
        self, condition: bool | Callable[[], bool], request: InterruptRequest | str
    ) -> Any | None:
        return self.context.interrupt_if(condition, request)

    def is_resuming(self) -> bool:
        context = self.__dict__.get("_context")
        return context is not None and context.has_feedback()

    def checkpoint(self, name: str, fn: Callable[[], Any]) -> Any:
        """Run ``fn`` once per suspend/resume cycle and reuse its result on resume.

        The cached value travels with the interrupt snapshot, so it must be
        encodable by :mod:`eventflow.codec`.
        """
        cache: dict[str, Any] = self.__dict__.setdefault("_checkpoints", {})
        if name not in cache:
            cache[name] = fn()
        return cache[name]

    def declared_events(self) -> list[type[Event]]:
        if self.produces:
            return list(self.produces)
        try:
            hints = typing.get_type_hints(type(self).run)
        except (NameError, TypeError):
            return []
        return _event_types(hints.get("return"))


def _event_types(annotation: Any) -> list[type[Event]]:
    if annotation is None:
        return []
    if isinstance(annotation, type):
        return [annotation] if issubclass(annotation, Event) else []

    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)
    if origin in (Union, types.UnionType):
        found: list[type[Event]] = []
        for arg in args:
            found.extend(t for t in _event_types(arg) if t not in found)
        return found
    if origin is not None and isinstance(origin, type) and issubclass(origin, Generator):
        # Generator[YieldT, SendT, ReturnT]: the return type is the next event
        return _event_types(args[2]) if len(args) == 3 else []
    return []
