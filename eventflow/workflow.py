"""Event-driven workflow engine."""

import logging
import uuid
from collections.abc import Generator, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from eventflow.context import WorkflowContext
from eventflow.errors import (
    ConfigurationError,
    InterruptNotPersistedError,
    NothingToResumeError,
    RoutingError,
    SnapshotNotFoundError,
)
from eventflow.events import Event, StartEvent, StopEvent, event_tag
from eventflow.interrupt import WorkflowInterrupt
from eventflow.middleware import WorkflowMiddleware
from eventflow.node import Node
from eventflow.observability import (
    ERROR,
    WORKFLOW_END,
    WORKFLOW_INTERRUPT,
    WORKFLOW_NODE_END,
    WORKFLOW_NODE_START,
    WORKFLOW_START,
    Notification,
    Observer,
)
from eventflow.persistence.base import PersistenceStore
from eventflow.persistence.memory import InMemoryPersistence
from eventflow.state import WorkflowState

if TYPE_CHECKING:
    from eventflow.exporters import Exporter
    from eventflow.handler import WorkflowHandler

logger = logging.getLogger(__name__)

# Items streamed by nodes, forwarded verbatim; the generator returns the final state.
WorkflowStream = Generator[Any, None, WorkflowState]


@dataclass(frozen=True)
class Completed:
    """The node returned its next event."""

    event: Event


@dataclass(frozen=True)
class Suspended:
    """The node asked for human input."""

    interrupt: WorkflowInterrupt


NodeOutcome = Completed | Suspended


class Workflow:
    """Routes events to nodes until a StopEvent is produced or a node suspends.

    The routing table maps an event type to the single node that handles it.
    ``run()`` and ``resume()`` are generators: they yield whatever streaming
    nodes emit and return the final WorkflowState. Use :meth:`start` /
    :meth:`start_resume` for a handler that can also block for the result.

    Usage::

        workflow = Workflow(persistence=FilePersistence(".snapshots"), run_id="order-42")
        workflow.add_nodes({StartEvent: Plan(), PlanReady: Execute()})
        try:
            state = workflow.start().get_result()
        except WorkflowInterrupt as interrupt:
            ...  # later, possibly in another process:
            state = workflow.start_resume(feedback).get_result()
    """

    def __init__(
        self,
        persistence: PersistenceStore | None = None,
        run_id: str | None = None,
        start_event: Event | None = None,
    ) -> None:
        self._persistence = persistence if persistence is not None else InMemoryPersistence()
        self._run_id = run_id or f"workflow_{uuid.uuid4().hex}"
        self._start_event = start_event if start_event is not None else StartEvent()
        self._routes: dict[str, Node] = {}
        self._event_types: dict[str, type[Event]] = {}
        self._observers: list[Observer] = []
        self._global_middleware: list[WorkflowMiddleware] = []
        self._node_middleware: list[tuple[type[Node], WorkflowMiddleware]] = []
        self._stop_event: StopEvent | None = None

        routes = self.nodes()
        if routes:
            self.add_nodes(routes)

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def persistence(self) -> PersistenceStore:
        return self._persistence

    @property
    def start_event(self) -> Event:
        return self._start_event

    @property
    def stop_event(self) -> StopEvent | None:
        """The StopEvent that ended the last completed run, carrying its result."""
        return self._stop_event

    # ========================================================================
    # Graph definition
    # ========================================================================

    def nodes(self) -> Mapping[type[Event], Node]:
        """Override in subclasses to declare the routing table."""
        return {}

    def add_nodes(self, routes: Mapping[type[Event], Node]) -> "Workflow":
        """Replace the routing table.

        Raises:
            ConfigurationError: If a key is not an Event type, a value is not a
                Node, two keys share a type tag or two nodes share a node id.
        """
        new_routes: dict[str, Node] = {}
        new_types: dict[str, type[Event]] = {}
        for event_type, node in routes.items():
            self._register(new_routes, new_types, event_type, node)
        self._routes, self._event_types = new_routes, new_types
        return self

    def add_node(self, event_type: type[Event], node: Node) -> "Workflow":
        """Register one more route; duplicates are rejected like in add_nodes()."""
        self._register(self._routes, self._event_types, event_type, node)
        return self

    @staticmethod
    def _register(
        routes: dict[str, Node],
        types: dict[str, type[Event]],
        event_type: type[Event],
        node: Node,
    ) -> None:
        if not isinstance(event_type, type) or not issubclass(event_type, Event):
            raise ConfigurationError(f"Routing keys must be Event types, got {event_type!r}")
        if not isinstance(node, Node):
            raise ConfigurationError(f"All nodes must be Node instances, got {node!r}")

        tag = event_type.event_type()
        if tag in routes:
            raise ConfigurationError(
                f"Node for event {tag} already exists: {routes[tag].node_id}"
            )
        for other in routes.values():
            if other is not node and other.node_id == node.node_id:
                raise ConfigurationError(
                    f"Two different nodes share the id {node.node_id}; set node_id on one of them"
                )
        routes[tag] = node
        types[tag] = event_type

    def get_nodes(self) -> dict[type[Event], Node]:
        return {self._event_types[tag]: node for tag, node in self._routes.items()}

    def validate(self) -> None:
        """Check that exactly one node handles the start event.

        Raises:
            ConfigurationError: If no node is registered for the start event.
        """
        tag = event_tag(self._start_event)
        if tag not in self._routes:
            raise ConfigurationError(f"No nodes found that handle {tag}")

    def add_middleware(
        self,
        node_class: type[Node] | Iterable[type[Node]],
        middleware: WorkflowMiddleware | Iterable[WorkflowMiddleware],
    ) -> "Workflow":
        """Run ``middleware`` around every node that is an instance of ``node_class``."""
        classes = [node_class] if isinstance(node_class, type) else list(node_class)
        items = [middleware] if isinstance(middleware, WorkflowMiddleware) else list(middleware)
        for cls in classes:
            for m in items:
                if not isinstance(m, WorkflowMiddleware):
                    raise ConfigurationError("Middleware must be a WorkflowMiddleware instance")
                self._node_middleware.append((cls, m))
        return self

    def add_global_middleware(
        self, middleware: WorkflowMiddleware | Iterable[WorkflowMiddleware]
    ) -> "Workflow":
        items = [middleware] if isinstance(middleware, WorkflowMiddleware) else list(middleware)
        for m in items:
            if not isinstance(m, WorkflowMiddleware):
                raise ConfigurationError("Middleware must be a WorkflowMiddleware instance")
            self._global_middleware.append(m)
        return self

    def _middleware_for(self, node: Node) -> list[WorkflowMiddleware]:
        scoped = [m for cls, m in self._node_middleware if isinstance(node, cls)]
        return [*self._global_middleware, *scoped]

    def observe(self, observer: Observer) -> "Workflow":
        """Register an observer scoped to this workflow instance."""
        self._observers.append(observer)
        return self

    def unobserve(self, observer: Observer) -> "Workflow":
        """Detach an observer; detaching one that is not registered does nothing."""
        if observer in self._observers:
            self._observers.remove(observer)
        return self

    @property
    def observers(self) -> tuple[Observer, ...]:
        return tuple(self._observers)

    def export(self, exporter: "Exporter | None" = None) -> str:
        from eventflow.exporters import ConsoleExporter

        return (exporter or ConsoleExporter()).export(self.get_nodes(), type(self._start_event))

    # ========================================================================
    # Execution
    # ========================================================================

    def start(self, state: WorkflowState | None = None) -> "WorkflowHandler":
        from eventflow.handler import WorkflowHandler

        return WorkflowHandler(self, state=state)

    def start_resume(self, feedback: Any) -> "WorkflowHandler":
        from eventflow.handler import WorkflowHandler

        return WorkflowHandler(self, resume=True, feedback=feedback)

    def run(self, state: WorkflowState | None = None) -> WorkflowStream:
        """Execute from the start event with a fresh or caller-supplied state."""
        state = state if state is not None else WorkflowState()
        self._emit(WORKFLOW_START)
        self._bootstrap()
        self._clear_checkpoints()

        logger.info("Starting workflow run %s", self._run_id)
        node = self._routes[event_tag(self._start_event)]
        return (yield from self.execute(self._start_event, node, state))

    def resume(self, feedback: Any) -> WorkflowStream:
        """Continue a suspended run, handing ``feedback`` to the node that interrupted it.

        Raises:
            NothingToResumeError: If no snapshot is stored for this run id.
        """
        self._emit(WORKFLOW_START, resuming=True)
        self._bootstrap()

        try:
            interrupt = self._persistence.load(self._run_id)
        except SnapshotNotFoundError as e:
            error = NothingToResumeError(self._run_id)
            self._emit(ERROR, error=error)
            raise error from e

        node = self._node_by_id(interrupt.node_id)
        self._clear_checkpoints()
        node.restore_checkpoints(interrupt.node_checkpoints)

        logger.info("Resuming workflow run %s at %s", self._run_id, interrupt.node_id)
        return (
            yield from self.execute(
                interrupt.event,
                node,
                interrupt.state,
                feedback={interrupt.node_id: feedback},
            )
        )

    def execute(
        self,
        event: Event,
        node: Node,
        state: WorkflowState,
        feedback: dict[str, Any] | None = None,
    ) -> WorkflowStream:
        """Drive nodes until a StopEvent, persisting the snapshot if a node suspends."""
        step = 0
        resuming = feedback is not None
        self._stop_event = None
        try:
            while not isinstance(event, StopEvent):
                step += 1
                node.set_context(
                    WorkflowContext(
                        self._run_id,
                        node,
                        self._persistence,
                        state,
                        event,
                        resuming=resuming,
                        feedback=feedback,
                    )
                )
                self._emit(
                    WORKFLOW_NODE_START,
                    step=step,
                    node_id=node.node_id,
                    event_type=event_tag(event),
                )
                logger.debug("Run %s step %d: %s <- %s", self._run_id, step, node.node_id, event)

                outcome = yield from self._invoke(node, event, state)
                if isinstance(outcome, Suspended):
                    self._suspend(outcome.interrupt, step)

                event = outcome.event
                self._emit(
                    WORKFLOW_NODE_END,
                    step=step,
                    node_id=node.node_id,
                    event_type=event_tag(event),
                )
                if isinstance(event, StopEvent):
                    break

                node = self._resolve(event)
                # feedback belongs to the node that was interrupted, never to its successors
                resuming, feedback = False, None

            self._persistence.delete(self._run_id)
        except WorkflowInterrupt:
            raise
        except Exception as e:
            node.clear_checkpoints()
            self._emit(ERROR, step=step, node_id=node.node_id, error=e)
            raise

        assert isinstance(event, StopEvent)
        self._stop_event = event
        logger.info("Workflow run %s completed after %d steps", self._run_id, step)
        self._emit(WORKFLOW_END, step=step)
        return state

    def _clear_checkpoints(self) -> None:
        # memoized values from an abandoned or failed run must not leak into this one
        for node in self._routes.values():
            node.clear_checkpoints()

    def _invoke(
        self, node: Node, event: Event, state: WorkflowState
    ) -> Generator[Any, None, NodeOutcome]:
        middleware = self._middleware_for(node)
        try:
            for m in middleware:
                m.before(node, event, state)

            result = node.run(event, state)
            if isinstance(result, Generator):
                result = yield from result

            if not isinstance(result, Event):
                raise RoutingError(
                    type(result).__name__,
                    f"{node.node_id} returned {type(result).__name__}, expected an Event",
                )

            for m in middleware:
                m.after(node, result, state)
        except WorkflowInterrupt as interrupt:
            if not interrupt.node_id:
                interrupt.node = node
                interrupt.node_id = node.node_id
            return Suspended(interrupt)

        node.clear_checkpoints()
        return Completed(result)

    def _suspend(self, interrupt: WorkflowInterrupt, step: int) -> None:
        try:
            self._persistence.save(self._run_id, interrupt)
        except Exception as e:
            raise InterruptNotPersistedError(self._run_id, interrupt, e) from e

        logger.info(
            "Workflow run %s interrupted at %s: %s", self._run_id, interrupt.node_id, interrupt
        )
        self._emit(
            WORKFLOW_INTERRUPT,
            step=step,
            node_id=interrupt.node_id,
            event_type=event_tag(interrupt.event),
            request=interrupt.request,
        )
        raise interrupt

    def _resolve(self, event: Event) -> Node:
        tag = event_tag(event)
        node = self._routes.get(tag)
        if node is None:
            raise RoutingError(tag)
        return node

    def _node_by_id(self, node_id: str) -> Node:
        for node in self._routes.values():
            if node.node_id == node_id:
                return node
        error = RoutingError(
            node_id, f"Cannot resume run {self._run_id}: no registered node with id {node_id}"
        )
        self._emit(ERROR, node_id=node_id, error=error)
        raise error

    def _bootstrap(self) -> None:
        try:
            self.validate()
        except ConfigurationError as e:
            self._emit(ERROR, error=e)
            raise

    def _emit(self, name: str, **fields: Any) -> None:
        notification = Notification(name=name, run_id=self._run_id, **fields)
        for observer in self._observers:
            try:
                observer.on_event(notification)
            except Exception:
                logger.exception("Observer %r failed handling %s", observer, name)
