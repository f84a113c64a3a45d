"""Execution scheduler: apply plans concurrently with retries."""

from .models import ExecutionReport, NodeResult, NodeStatus
from .retry import RetryPolicy, compute_backoff_delay
from .scheduler import Scheduler, resolve_attributes

__all__ = [
    "ExecutionReport",
    "NodeResult",
    "NodeStatus",
    "RetryPolicy",
    "compute_backoff_delay",
    "Scheduler",
    "resolve_attributes",
]
