"""Reconciliation driver for dependency-ordered tasks."""

from reconflow.core.workflows.workflow import Workflow, TaskRef
from reconflow.core.workflows.report import PassReport, PassStatus
from reconflow.core.workflows.driver import (
    run_until_converged,
    run_until_converged_async,
)

__all__ = [
    'Workflow',
    'TaskRef',
    'PassReport',
    'PassStatus',
    'run_until_converged',
    'run_until_converged_async',
]
