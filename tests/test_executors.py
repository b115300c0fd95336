"""Tests for async executor adapters."""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import pytest

from eventflow import StartEvent, Workflow, WorkflowInterrupt
from eventflow.executors import (
    AsyncioWorkflowExecutor,
    AsyncWorkflowExecutor,
    ThreadPoolWorkflowExecutor,
)
from tests.stubs import (
    AskApproval,
    EmitFoo,
    Explodes,
    FinishWithDone,
    Foo,
    SlowStart,
    StreamChunks,
)


def counting_workflow() -> Workflow:
    return Workflow().add_nodes({StartEvent: EmitFoo(), Foo: FinishWithDone()})


class TestAsyncioWorkflowExecutor:
    """Tests for AsyncioWorkflowExecutor."""

    def test_is_an_executor(self) -> None:
        """Test the adapter implements the executor interface."""
        assert isinstance(AsyncioWorkflowExecutor(), AsyncWorkflowExecutor)

    @pytest.mark.asyncio
    async def test_runs_independent_workflows_concurrently(self) -> None:
        """Test awaiting several independent runs together."""
        executor = AsyncioWorkflowExecutor()
        workflows = [counting_workflow() for _ in range(5)]
        states = await asyncio.gather(*(executor.execute(w.start()) for w in workflows))
        assert [s.get("counter") for s in states] == [1] * 5
        assert len({id(s) for s in states}) == 5

    @pytest.mark.asyncio
    async def test_custom_executor(self) -> None:
        """Test running on a caller-provided thread pool."""
        with ThreadPoolExecutor(max_workers=1) as pool:
            executor = AsyncioWorkflowExecutor(pool)
            state = await executor.execute(counting_workflow().start())
        assert state.get("seen") == "from-a"

    @pytest.mark.asyncio
    async def test_errors_propagate(self) -> None:
        """Test that node failures and interrupts reject the future."""
        executor = AsyncioWorkflowExecutor()
        with pytest.raises(ValueError, match="boom"):
            await executor.execute(Workflow().add_nodes({StartEvent: Explodes()}).start())

        workflow = Workflow().add_nodes({StartEvent: AskApproval()})
        with pytest.raises(WorkflowInterrupt):
            await executor.execute(workflow.start())
        state = await executor.execute(workflow.start_resume("yes"))
        assert state.get("answer") == "yes"


class TestThreadPoolWorkflowExecutor:
    """Tests for ThreadPoolWorkflowExecutor."""

    def test_futures_resolve_to_state(self) -> None:
        """Test that futures resolve to each run's final state."""
        with ThreadPoolWorkflowExecutor(max_workers=4) as executor:
            futures = [executor.execute(counting_workflow().start()) for _ in range(4)]
            states = [f.result(timeout=10) for f in futures]
        assert all(s.get("counter") == 1 for s in states)

    def test_failure_sets_exception(self) -> None:
        """Test that a failing run surfaces through the future."""
        with ThreadPoolWorkflowExecutor(max_workers=1) as executor:
            future = executor.execute(Workflow().add_nodes({StartEvent: Explodes()}).start())
            assert isinstance(future.exception(timeout=10), ValueError)


class TestTemporalActivityExecutor:
    """Tests for TemporalActivityExecutor inside a Temporal activity environment."""

    @pytest.mark.asyncio
    async def test_heartbeats_progress(self) -> None:
        """Test that the run heartbeats per streamed item and returns the final state."""
        from temporalio.testing import ActivityEnvironment

        from eventflow.executors.temporal import TemporalActivityExecutor, WorkflowProgress

        heartbeats: list[Any] = []
        env = ActivityEnvironment()
        env.on_heartbeat = lambda *details: heartbeats.append(details[0])

        workflow = Workflow(run_id="streaming-run").add_nodes({StartEvent: StreamChunks()})
        executor = TemporalActivityExecutor(heartbeat_interval=60.0)
        state = await env.run(executor.run, workflow.start())

        assert state.get("streamed") == 3
        # one heartbeat on start plus one per streamed item
        assert len(heartbeats) == 4
        progress = heartbeats[-1]
        assert isinstance(progress, WorkflowProgress)
        assert progress.run_id == "streaming-run"
        assert progress.items_streamed == 3
        assert progress.step_count == 1
        assert progress.current_node == StreamChunks().node_id

    @pytest.mark.asyncio
    async def test_background_heartbeat(self) -> None:
        """Test that long steps are still covered by interval heartbeats."""
        from temporalio.testing import ActivityEnvironment

        from eventflow.executors.temporal import TemporalActivityExecutor

        heartbeats: list[Any] = []
        env = ActivityEnvironment()
        env.on_heartbeat = lambda *details: heartbeats.append(details[0])

        workflow = Workflow().add_nodes({StartEvent: SlowStart()})
        executor = TemporalActivityExecutor(heartbeat_interval=0.01)
        await env.run(executor.run, workflow.start())
        assert len(heartbeats) > 1

    @pytest.mark.asyncio
    async def test_interrupt_propagates(self) -> None:
        """Test that a suspension fails the activity with the WorkflowInterrupt."""
        from temporalio.testing import ActivityEnvironment

        from eventflow.executors.temporal import TemporalActivityExecutor

        env = ActivityEnvironment()
        workflow = Workflow().add_nodes({StartEvent: AskApproval()})
        with pytest.raises(WorkflowInterrupt):
            await env.run(TemporalActivityExecutor().run, workflow.start())

        assert workflow.observers == ()

    @pytest.mark.asyncio
    async def test_progress_observer_detached_after_each_run(self) -> None:
        """Test that repeated activity runs of one workflow do not accumulate observers."""
        from temporalio.testing import ActivityEnvironment

        from eventflow.executors.temporal import TemporalActivityExecutor

        heartbeats: list[Any] = []
        env = ActivityEnvironment()
        env.on_heartbeat = lambda *details: heartbeats.append(details[0])

        workflow = Workflow(run_id="repeat-run").add_nodes({StartEvent: StreamChunks()})
        executor = TemporalActivityExecutor(heartbeat_interval=60.0)
        await env.run(executor.run, workflow.start())
        assert workflow.observers == ()

        first_progress = heartbeats[-1]
        await env.run(executor.run, workflow.start())
        assert workflow.observers == ()
        assert first_progress.step_count == 1
        assert heartbeats[-1] is not first_progress
        assert heartbeats[-1].step_count == 1
