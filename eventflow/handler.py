"""Blocking and streaming access to one workflow execution."""

import threading
from collections.abc import Generator
from typing import TYPE_CHECKING, Any

from eventflow.state import WorkflowState

if TYPE_CHECKING:
    from eventflow.workflow import Workflow, WorkflowStream


class WorkflowHandler:
    """Facade over a single run (or resume) of a workflow.

    Callers either iterate :meth:`stream_events` to observe what streaming
    nodes emit, or call :meth:`get_result` to block for the final state. Both
    share one underlying execution: the workflow runs at most once per handler
    no matter how many times, or in which order, the accessors are used.
    """

    def __init__(
        self,
        workflow: "Workflow",
        *,
        resume: bool = False,
        feedback: Any = None,
        state: WorkflowState | None = None,
    ) -> None:
        self._workflow = workflow
        self._resume = resume
        self._feedback = feedback
        self._state = state
        self._generator: WorkflowStream | None = None
        self._result: WorkflowState | None = None
        self._error: BaseException | None = None
        self._done = False
        self._lock = threading.RLock()

    @property
    def workflow(self) -> "Workflow":
        return self._workflow

    @property
    def done(self) -> bool:
        return self._done

    def _stream(self) -> "WorkflowStream":
        with self._lock:
            if self._generator is None:
                self._generator = (
                    self._workflow.resume(self._feedback)
                    if self._resume
                    else self._workflow.run(self._state)
                )
            return self._generator

    def stream_events(self) -> Generator[Any, None, WorkflowState]:
        """Yield the items streamed by nodes while the workflow runs.

        Single pass: once the run has finished, this yields nothing and
        returns the cached final state. Any exception raised by the run
        (including WorkflowInterrupt) propagates to the consumer.
        """
        generator = self._stream()
        while True:
            # one step at a time; a concurrent get_result() waits for the step in flight
            with self._lock:
                if self._done:
                    return self._cached()
                try:
                    item = next(generator)
                except StopIteration as stop:
                    self._result = stop.value
                    self._done = True
                    return self._result
                except BaseException as e:
                    self._error = e
                    self._done = True
                    raise
            yield item

    def get_result(self) -> WorkflowState:
        """Return the final state, draining the event stream first if needed."""
        with self._lock:
            if not self._done:
                for _ in self.stream_events():
                    pass
            return self._cached()

    def _cached(self) -> WorkflowState:
        if self._error is not None:
            raise self._error
        assert self._result is not None
        return self._result
