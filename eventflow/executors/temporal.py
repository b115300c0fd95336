"""Temporal activity adapter with heartbeat progress."""

import asyncio
from dataclasses import dataclass

from rich.console import Console
from temporalio import activity

from eventflow.executors.base import AsyncWorkflowExecutor
from eventflow.handler import WorkflowHandler
from eventflow.observability import WORKFLOW_NODE_END, WORKFLOW_NODE_START, Notification
from eventflow.state import WorkflowState

console = Console()

_EXHAUSTED = object()


@dataclass
class WorkflowProgress:
    """Heartbeat details reported while a workflow runs inside an activity."""

    run_id: str
    step_count: int = 0
    current_node: str | None = None
    items_streamed: int = 0


class _ProgressObserver:
    def __init__(self, progress: WorkflowProgress) -> None:
        self._progress = progress

    def on_event(self, notification: Notification) -> None:
        if notification.name == WORKFLOW_NODE_START:
            self._progress.current_node = notification.node_id
        elif notification.name == WORKFLOW_NODE_END:
            self._progress.step_count = notification.step


class TemporalActivityExecutor(AsyncWorkflowExecutor):
    """Drives a workflow from inside a Temporal activity.

    Every node step runs on a worker thread so the activity's event loop stays
    free to heartbeat. Progress is heartbeated after each streamed item and on
    a background interval, so long-running nodes do not trip the activity's
    heartbeat timeout.

    Call from within an activity::

        @activity.defn
        async def run_review(run_id: str) -> dict[str, Any]:
            workflow = build_review_workflow(run_id)
            state = await TemporalActivityExecutor().run(workflow.start())
            return state.all()
    """

    def __init__(self, heartbeat_interval: float = 5.0) -> None:
        self._heartbeat_interval = heartbeat_interval

    def execute(self, handler: WorkflowHandler) -> "asyncio.Task[WorkflowState]":
        """Schedule :meth:`run` as a task; must be called inside the activity."""
        return asyncio.ensure_future(self.run(handler))

    async def run(self, handler: WorkflowHandler) -> WorkflowState:
        """Drain ``handler`` with heartbeating and return the final state.

        Args:
            handler: Handler of the run (or resume) to execute.

        Returns:
            The final workflow state.
        """
        progress = WorkflowProgress(run_id=handler.workflow.run_id)
        observer = _ProgressObserver(progress)
        handler.workflow.observe(observer)

        console.print(
            f"[bold green]★ STARTING WORKFLOW[/] [dim]run=[/]{progress.run_id} "
            f"[dim]activity=[/]{activity.info().activity_id}"
        )
        activity.heartbeat(progress)

        async def heartbeat_loop() -> None:
            while True:
                await asyncio.sleep(self._heartbeat_interval)
                activity.heartbeat(progress)

        heartbeat_task = asyncio.create_task(heartbeat_loop())

        try:
            stream = handler.stream_events()
            while True:
                item = await asyncio.to_thread(next, stream, _EXHAUSTED)
                if item is _EXHAUSTED:
                    break
                progress.items_streamed += 1
                activity.heartbeat(progress)

            state = handler.get_result()
            console.print(
                f"[bold green]★ ACTIVITY COMPLETE[/] "
                f"[dim]steps=[/][cyan]{progress.step_count}[/] "
                f"[dim]run=[/]{progress.run_id}"
            )
            return state

        finally:
            handler.workflow.unobserve(observer)
            heartbeat_task.cancel()
            try:
                await heartbeat_task
            except asyncio.CancelledError:
                pass
