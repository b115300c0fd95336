"""Adapters that run workflows inside a host concurrency runtime.

Note: the Temporal adapter is imported lazily so temporalio stays optional.
"""

from eventflow.executors.base import AsyncWorkflowExecutor
from eventflow.executors.loop import AsyncioWorkflowExecutor
from eventflow.executors.threads import ThreadPoolWorkflowExecutor

__all__ = [
    "AsyncWorkflowExecutor",
    "AsyncioWorkflowExecutor",
    "TemporalActivityExecutor",
    "ThreadPoolWorkflowExecutor",
    "WorkflowProgress",
]


def __getattr__(name: str) -> object:
    """Lazy import the Temporal adapter."""
    if name == "TemporalActivityExecutor":
        from eventflow.executors.temporal import TemporalActivityExecutor

        return TemporalActivityExecutor
    if name == "WorkflowProgress":
        from eventflow.executors.temporal import WorkflowProgress

        return WorkflowProgress
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
