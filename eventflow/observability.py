"""Notifications fired by the engine and the observers that consume them."""

import logging
from dataclasses import dataclass
from typing import Protocol

from rich.console import Console

from eventflow.interrupt import InterruptRequest

WORKFLOW_START = "workflow-start"
WORKFLOW_NODE_START = "workflow-node-start"
WORKFLOW_NODE_END = "workflow-node-end"
WORKFLOW_INTERRUPT = "workflow-interrupt"
WORKFLOW_END = "workflow-end"
ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A lifecycle point reached by a workflow run."""

    name: str
    run_id: str
    step: int = 0
    node_id: str | None = None
    event_type: str | None = None
    resuming: bool = False
    request: InterruptRequest | None = None
    error: BaseException | None = None


class Observer(Protocol):
    """Receives notifications. Must return quickly; exceptions are logged and ignored."""

    def on_event(self, notification: Notification) -> None: ...


class LoggingObserver:
    """Forwards notifications to stdlib logging."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("eventflow.events")

    def on_event(self, notification: Notification) -> None:
        level = logging.ERROR if notification.name == ERROR else logging.INFO
        self._logger.log(
            level,
            "%s run=%s step=%d node=%s event=%s",
            notification.name,
            notification.run_id,
            notification.step,
            notification.node_id,
            notification.event_type,
            extra={"run_id": notification.run_id},
        )


class ConsoleObserver:
    """Pretty-prints run progress with rich."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def on_event(self, notification: Notification) -> None:
        n = notification
        if n.name == WORKFLOW_START:
            if n.resuming:
                self._console.print(f"[bold magenta]⏵ RESUMING[/] [dim]run=[/]{n.run_id}")
            else:
                self._console.print(f"[bold green]★ STARTING FRESH[/] [dim]run=[/]{n.run_id}")
        elif n.name == WORKFLOW_NODE_START:
            self._console.print(
                f"[bold cyan]▶ STEP {n.step}[/] [yellow]{n.node_id}[/] "
                f"[dim]handling[/] {n.event_type}"
            )
        elif n.name == WORKFLOW_NODE_END:
            self._console.print(f"[bold green]  ✓ produced[/] [magenta]{n.event_type}[/]")
        elif n.name == WORKFLOW_INTERRUPT:
            message = n.request.message if n.request else ""
            self._console.print(
                f"[bold yellow]⏸ INTERRUPTED[/] [dim]node=[/][yellow]{n.node_id}[/] "
                f"[dim]waiting for feedback[/] {message}"
            )
        elif n.name == WORKFLOW_END:
            self._console.print(
                f"[bold green]★ WORKFLOW COMPLETE[/] "
                f"[dim]steps=[/][cyan]{n.step}[/] [dim]run=[/]{n.run_id}"
            )
        elif n.name == ERROR:
            self._console.print(
                f"[bold red]✗ FAILED[/] [dim]node=[/]{n.node_id} [red]{n.error!r}[/]"
            )
