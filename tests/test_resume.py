"""Tests for suspending and resuming runs."""

from pathlib import Path
from typing import Any

import pytest

from eventflow import (
    FilePersistence,
    InMemoryPersistence,
    InterruptNotPersistedError,
    InterruptRequest,
    NothingToResumeError,
    PersistenceError,
    RoutingError,
    SqlitePersistence,
    StartEvent,
    StopEvent,
    Workflow,
    WorkflowError,
    WorkflowInterrupt,
    WorkflowState,
)
from eventflow.observability import ERROR, WORKFLOW_START
from tests.stubs import (
    AskAboutFoo,
    AskApproval,
    AskForFoo,
    ConditionalApproval,
    ConfirmOrder,
    ExpensiveLookup,
    FlakyLookup,
    Foo,
    RecordingObserver,
    ReviewActions,
    StreamThenAsk,
    TwoQuestions,
)


class FailingStore(InMemoryPersistence):
    def save(self, run_id: str, interrupt: WorkflowInterrupt) -> None:
        raise OSError("disk full")


def suspend(workflow: Workflow, state: WorkflowState | None = None) -> WorkflowInterrupt:
    with pytest.raises(WorkflowInterrupt) as exc_info:
        workflow.start(state).get_result()
    return exc_info.value


class TestInterruptAndResume:
    """Tests for the basic suspend/resume cycle."""

    def test_approve_and_resume(self) -> None:
        """Test that resume() hands the feedback to the interrupted node."""
        store = InMemoryPersistence()
        workflow = Workflow(persistence=store, run_id="run-1").add_nodes(
            {StartEvent: AskApproval()}
        )

        interrupt = suspend(workflow)
        assert interrupt.request.message == "approve?"
        assert interrupt.node_id == AskApproval().node_id
        assert "run-1" in store

        state = workflow.start_resume("yes").get_result()
        assert state.get("answer") == "yes"
        assert workflow.stop_event == StopEvent(result="yes-confirmed")
        assert "run-1" not in store

    def test_interrupt_is_not_a_workflow_error(self) -> None:
        """Test that suspension is distinguishable from failure."""
        interrupt = suspend(Workflow().add_nodes({StartEvent: AskApproval()}))
        assert not isinstance(interrupt, WorkflowError)

    def test_node_reruns_from_the_top(self) -> None:
        """Test that the interrupted node executes again on resume."""
        workflow = Workflow().add_nodes({StartEvent: AskApproval()})
        interrupt = suspend(workflow)
        assert interrupt.state.get("entries") == 1
        assert workflow.start_resume("ok").get_result().get("entries") == 2

    def test_resume_without_snapshot(self) -> None:
        """Test that resuming an unknown run fails instead of starting fresh."""
        observer = RecordingObserver()
        workflow = Workflow(run_id="never-started").add_nodes({StartEvent: AskApproval()})
        workflow.observe(observer)

        with pytest.raises(NothingToResumeError) as exc_info:
            workflow.start_resume("x").get_result()
        assert exc_info.value.run_id == "never-started"
        assert observer.names == [WORKFLOW_START, ERROR]
        assert observer.notifications[0].resuming

    def test_resume_twice(self) -> None:
        """Test that a completed run cannot be resumed again."""
        workflow = Workflow().add_nodes({StartEvent: AskApproval()})
        suspend(workflow)
        workflow.start_resume("yes").get_result()
        with pytest.raises(NothingToResumeError):
            workflow.start_resume("yes").get_result()

    def test_resume_matches_direct_answer(self) -> None:
        """Test that a resumed run ends where an uninterrupted run with the same answer would."""

        class ConfirmDirectly(ConfirmOrder):
            def interrupt(self, request: InterruptRequest | str) -> Any:
                return "yes"

        resumed_workflow = Workflow().add_nodes({StartEvent: ConfirmOrder()})
        suspend(resumed_workflow, WorkflowState({"items": 3}))
        resumed = resumed_workflow.start_resume("yes").get_result()

        direct = (
            Workflow()
            .add_nodes({StartEvent: ConfirmDirectly()})
            .start(WorkflowState({"items": 3}))
            .get_result()
        )
        assert resumed == direct
        assert resumed.get("total") == 6

    def test_successors_do_not_see_feedback(self) -> None:
        """Test that only the interrupted node receives resume feedback."""
        workflow = Workflow().add_nodes({StartEvent: AskForFoo(), Foo: AskAboutFoo()})
        suspend(workflow)

        with pytest.raises(WorkflowInterrupt) as exc_info:
            workflow.start_resume("go").get_result()
        assert exc_info.value.request.message == "Accept go?"
        assert exc_info.value.node_id == AskAboutFoo().node_id

        workflow.start_resume("accepted").get_result()
        assert workflow.stop_event == StopEvent(result="accepted")


class TestInterruptVariants:
    """Tests for richer interrupt patterns."""

    def test_actions_round_trip(self) -> None:
        """Test that action decisions made by a human reach the node."""
        workflow = Workflow().add_nodes({StartEvent: ReviewActions()})
        interrupt = suspend(workflow)
        assert [a.id for a in interrupt.request.get_pending_actions()] == ["delete_1", "email_1"]
        assert interrupt.request.metadata == {"risk": "high"}

        interrupt.request.get_action("delete_1").reject("keep the logs")  # type: ignore[union-attr]
        interrupt.request.get_action("email_1").approve()  # type: ignore[union-attr]
        workflow.start_resume(interrupt.request).get_result()
        assert workflow.stop_event == StopEvent(result=["email_1"])

    def test_two_sequential_interrupts(self) -> None:
        """Test a node that tracks its own sub-step to ask two questions."""
        workflow = Workflow().add_nodes({StartEvent: TwoQuestions()})
        first = suspend(workflow)
        assert first.request.message == "first?"

        with pytest.raises(WorkflowInterrupt) as second:
            workflow.start_resume("a").get_result()
        assert second.value.request.message == "second?"
        assert second.value.state.get("first") == "a"

        workflow.start_resume("b").get_result()
        assert workflow.stop_event == StopEvent(result="a+b")

    def test_conditional_interrupt(self) -> None:
        """Test interrupt_if only suspends when its condition holds."""
        small = Workflow().add_nodes({StartEvent: ConditionalApproval()})
        small.start(WorkflowState({"amount": 10})).get_result()
        assert small.stop_event == StopEvent(result="auto-approved")

        large = Workflow().add_nodes({StartEvent: ConditionalApproval()})
        suspend(large, WorkflowState({"amount": 500}))
        large.start_resume("manager approved").get_result()
        assert large.stop_event == StopEvent(result="manager approved")

    def test_checkpoint_survives_resume(self) -> None:
        """Test that checkpointed work is not repeated after resuming."""
        node = ExpensiveLookup()
        workflow = Workflow().add_nodes({StartEvent: node})
        interrupt = suspend(workflow)
        assert interrupt.node_checkpoints == {"lookup": ["alpha", "beta"]}

        workflow.start_resume("beta").get_result()
        assert node.lookups == 1
        assert node.checkpoints == {}
        assert workflow.stop_event == StopEvent(
            result={"choice": "beta", "options": ["alpha", "beta"]}
        )

    def test_fresh_run_discards_abandoned_checkpoints(self) -> None:
        """Test that starting over after an unresumed interrupt repeats the work."""
        node = ExpensiveLookup()
        workflow = Workflow().add_nodes({StartEvent: node})
        suspend(workflow)

        interrupt = suspend(workflow)
        assert node.lookups == 2
        assert interrupt.node_checkpoints == {"lookup": ["alpha", "beta"]}

    def test_failed_run_discards_checkpoints(self) -> None:
        """Test that a run after a failure does not reuse the failed run's values."""
        node = FlakyLookup()
        workflow = Workflow().add_nodes({StartEvent: node})
        with pytest.raises(RuntimeError, match="upstream timeout"):
            workflow.start().get_result()
        assert node.checkpoints == {}

        workflow.start().get_result()
        assert node.calls == 2
        assert workflow.stop_event == StopEvent(result="lookup-2")

    def test_streaming_node_interrupt(self) -> None:
        """Test that a streaming node can suspend and stream again on resume."""
        workflow = Workflow().add_nodes({StartEvent: StreamThenAsk()})
        handler = workflow.start()
        items = []
        with pytest.raises(WorkflowInterrupt):
            for item in handler.stream_events():
                items.append(item)
        assert items == ["before-interrupt"]

        resumed = workflow.start_resume("yes")
        assert list(resumed.stream_events()) == ["before-interrupt", "after-yes"]

    def test_resume_with_unknown_node(self) -> None:
        """Test resuming a snapshot whose node is not registered any more."""
        store = InMemoryPersistence()
        suspend(Workflow(persistence=store, run_id="run-1").add_nodes({StartEvent: AskApproval()}))

        renamed = AskApproval()
        renamed.node_id = "approval-v2"
        workflow = Workflow(persistence=store, run_id="run-1").add_nodes({StartEvent: renamed})
        with pytest.raises(RoutingError, match="AskApproval"):
            workflow.start_resume("yes").get_result()


class TestDurableResume:
    """Tests for resuming in a fresh Workflow instance, as another process would."""

    @pytest.mark.parametrize("backend", ["file", "sqlite"])
    def test_resume_from_new_instance(self, backend: str, tmp_path: Path) -> None:
        """Test that a run suspended by one instance is completed by another."""

        def build() -> Workflow:
            store = (
                FilePersistence(tmp_path / "snapshots")
                if backend == "file"
                else SqlitePersistence(tmp_path / "eventflow.db")
            )
            return Workflow(persistence=store, run_id="order-42").add_nodes(
                {StartEvent: ExpensiveLookup()}
            )

        suspend(build(), WorkflowState({"customer": "acme"}))

        resumed = build()
        state = resumed.start_resume("alpha").get_result()
        assert state.get("customer") == "acme"
        assert resumed.stop_event == StopEvent(
            result={"choice": "alpha", "options": ["alpha", "beta"]}
        )
        node = resumed.get_nodes()[StartEvent]
        assert isinstance(node, ExpensiveLookup)
        assert node.lookups == 0

        with pytest.raises(NothingToResumeError):
            build().start_resume("alpha").get_result()

    def test_failed_save_is_reported(self) -> None:
        """Test that an interrupt that cannot be persisted surfaces as a PersistenceError."""
        workflow = Workflow(persistence=FailingStore()).add_nodes({StartEvent: AskApproval()})
        with pytest.raises(InterruptNotPersistedError) as exc_info:
            workflow.start().get_result()
        assert isinstance(exc_info.value, PersistenceError)
        assert isinstance(exc_info.value.interrupt, WorkflowInterrupt)
        assert isinstance(exc_info.value.__cause__, OSError)
