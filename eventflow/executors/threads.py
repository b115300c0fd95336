"""Thread-pool adapter for workflow execution."""

from concurrent.futures import Future, ThreadPoolExecutor
from types import TracebackType

from eventflow.executors.base import AsyncWorkflowExecutor
from eventflow.handler import WorkflowHandler
from eventflow.state import WorkflowState


class ThreadPoolWorkflowExecutor(AsyncWorkflowExecutor):
    """Runs workflows on a private thread pool, returning concurrent.futures futures."""

    def __init__(self, max_workers: int | None = None) -> None:
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="eventflow")

    def execute(self, handler: WorkflowHandler) -> "Future[WorkflowState]":
        return self._pool.submit(handler.get_result)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> "ThreadPoolWorkflowExecutor":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()
