#!/usr/bin/env python3
"""Run, then approve or reject, a release workflow that waits for a human.

Usage:
    uv run scripts/approval_demo.py                              # start; stops at the approval
    uv run scripts/approval_demo.py --approve --run-id <id>      # resume, approving
    uv run scripts/approval_demo.py --reject --feedback "why" --run-id <id>
    uv run scripts/approval_demo.py --export mermaid             # print the graph
"""

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path

from eventflow import (
    Action,
    ApprovalRequest,
    ConsoleObserver,
    Event,
    Node,
    StartEvent,
    StopEvent,
    Workflow,
    WorkflowInterrupt,
    WorkflowState,
)
from eventflow.config import EngineSettings, create_persistence
from eventflow.exporters import ConsoleExporter, MermaidExporter


@dataclass(frozen=True)
class ReleasePlanned(Event):
    version: str
    changes: list[str]


@dataclass(frozen=True)
class ReleaseReviewed(Event):
    version: str
    approved: bool


class PlanRelease(Node):
    def run(self, event: StartEvent, state: WorkflowState) -> ReleasePlanned:
        changes = self.checkpoint("changes", lambda: ["bump dependencies", "migrate schema"])
        state.set("version", "1.4.0")
        return ReleasePlanned(version="1.4.0", changes=changes)


class ReviewRelease(Node):
    def run(self, event: ReleasePlanned, state: WorkflowState) -> ReleaseReviewed:
        request = ApprovalRequest(
            f"Release {event.version} needs sign-off",
            [Action(f"change_{i}", change) for i, change in enumerate(event.changes)],
        )
        decided: ApprovalRequest = self.interrupt(request)
        approved = not decided.get_rejected_actions()
        state.set("review_feedback", [a.feedback for a in decided.actions if a.feedback])
        return ReleaseReviewed(version=event.version, approved=approved)


class PublishRelease(Node):
    def run(self, event: ReleaseReviewed, state: WorkflowState) -> StopEvent:
        status = "published" if event.approved else "cancelled"
        state.set("status", status)
        return StopEvent(result=f"{event.version} {status}")


def build_workflow(settings: EngineSettings, run_id: str | None) -> Workflow:
    workflow = Workflow(persistence=create_persistence(settings), run_id=run_id)
    workflow.add_nodes(
        {
            StartEvent: PlanRelease(),
            ReleasePlanned: ReviewRelease(),
            ReleaseReviewed: PublishRelease(),
        }
    )
    return workflow.observe(ConsoleObserver())


def main() -> None:
    parser = argparse.ArgumentParser(description="Human approval workflow demo")
    parser.add_argument("--run-id", help="Run ID to start or resume")
    parser.add_argument("--approve", action="store_true", help="Resume, approving every action")
    parser.add_argument("--reject", action="store_true", help="Resume, rejecting every action")
    parser.add_argument("--feedback", default=None, help="Optional feedback message")
    parser.add_argument(
        "--backend",
        choices=["file", "sqlite"],
        default="file",
        help="Snapshot store (default: file)",
    )
    parser.add_argument("--path", default=None, help="Snapshot directory or database file")
    parser.add_argument(
        "--export", choices=["console", "mermaid"], help="Print the workflow graph and exit"
    )
    args = parser.parse_args()

    default_path = ".snapshots" if args.backend == "file" else "eventflow.db"
    settings = EngineSettings(
        persistence_backend=args.backend,
        persistence_path=Path(args.path or default_path),
    )
    settings.setup_logging()
    workflow = build_workflow(settings, args.run_id)

    if args.export:
        exporter = MermaidExporter() if args.export == "mermaid" else ConsoleExporter()
        print(workflow.export(exporter))
        return

    try:
        if args.approve or args.reject:
            request = workflow.persistence.load(workflow.run_id).request
            for action in request.actions:
                if args.reject:
                    action.reject(args.feedback or "Rejected by operator")
                else:
                    action.approve(args.feedback)
            state = workflow.start_resume(request).get_result()
        else:
            state = workflow.start().get_result()
    except WorkflowInterrupt as interrupt:
        print(f"\nWaiting for approval: {interrupt.request.message}")
        print(f"Resume with: --run-id {workflow.run_id} --approve | --reject")
        return
    except Exception as err:
        logging.error("Workflow execution failed: %s", err)
        raise SystemExit(1) from err

    print(f"Result: {state.all()}")


if __name__ == "__main__":
    main()
