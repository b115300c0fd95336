"""asyncio adapter for workflow execution."""

import asyncio
from concurrent.futures import Executor

from eventflow.executors.base import AsyncWorkflowExecutor
from eventflow.handler import WorkflowHandler
from eventflow.state import WorkflowState


class AsyncioWorkflowExecutor(AsyncWorkflowExecutor):
    """Runs workflows off the event loop so other coroutines keep making progress.

    Usage::

        executor = AsyncioWorkflowExecutor()
        states = await asyncio.gather(
            executor.execute(workflow_a.start()),
            executor.execute(workflow_b.start()),
        )
    """

    def __init__(self, executor: Executor | None = None) -> None:
        # None uses the loop's default thread pool
        self._executor = executor

    def execute(self, handler: WorkflowHandler) -> "asyncio.Future[WorkflowState]":
        """Must be called from a coroutine running on the target loop."""
        loop = asyncio.get_running_loop()
        return loop.run_in_executor(self._executor, handler.get_result)
