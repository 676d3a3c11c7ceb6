"""reconflow - dependency-ordered reconciliation of tasks against external systems"""

# Install Rust-style error handler on import
from .core.errors import install_error_handler as _install_error_handler

_install_error_handler()

from .core.models.task import Task, ReconcileFn
from .core.models.context import ReconcileContext
from .core.models.policy import RetryPolicy
from .core.graph.dependency import DependencyGraph
from .core.graph.ordering import compute_order, find_cycles
from .core.registry.tasks import TaskRegistry
from .core.types.status import PassStatus
from .core.workflows import (
    Workflow,
    PassReport,
    run_until_converged,
    run_until_converged_async,
)
from .core.errors import (
    ErrorCode,
    ReconflowError,
    TaskDefinitionError,
    RegistryError,
    DuplicateTaskError,
    UnknownTaskError,
    OrderingError,
    CycleError,
    FatalError,
    RetriesExhaustedError,
    is_fatal,
)
from .core.logging import get_logger, set_default_level

__all__ = [
    # Core
    'Task',
    'ReconcileFn',
    'ReconcileContext',
    'Workflow',
    'PassReport',
    'PassStatus',
    # Graph
    'DependencyGraph',
    'TaskRegistry',
    'compute_order',
    'find_cycles',
    # Retry driver
    'RetryPolicy',
    'run_until_converged',
    'run_until_converged_async',
    # Errors
    'ErrorCode',
    'ReconflowError',
    'TaskDefinitionError',
    'RegistryError',
    'DuplicateTaskError',
    'UnknownTaskError',
    'OrderingError',
    'CycleError',
    'FatalError',
    'RetriesExhaustedError',
    'is_fatal',
    # Logging
    'get_logger',
    'set_default_level',
]
