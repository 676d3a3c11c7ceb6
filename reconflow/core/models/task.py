"""Task: the unit of reconciliation work and node of the dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, TypeAlias

from reconflow.core.errors import ErrorCode, task_definition_error

if TYPE_CHECKING:
    from reconflow.core.models.context import ReconcileContext


ReconcileFn: TypeAlias = Callable[['ReconcileContext', 'Task'], Any]
"""
Task body, called as ``fn(ctx, task)``.

- Returning normally means the task reached its desired state.
- Raising FatalError means the task cannot succeed without intervention.
- Raising any other Exception means "not converged yet, try again later".

Bodies are expected to be idempotent and to check whether the desired state
already exists before acting, since every pass re-runs them from the top.
"""


@dataclass(frozen=True)
class Task:
    """
    A reconciliation task.

    Example:
        def ensure_volume(ctx: ReconcileContext, task: Task) -> None:
            if api.volume_exists('v1'):
                return
            api.create_volume('v1')

        task = Task(1, 'create V1', ensure_volume)
    """

    id: int
    """Caller-assigned identity; graph node key and tie-break key for ordering."""

    description: str
    """Diagnostic label, no meaning to the engine."""

    fn: ReconcileFn = field(compare=False, repr=False)
    """Reconcile function, fixed at construction."""

    def __post_init__(self) -> None:
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise task_definition_error(
                f'task id must be an int, got {type(self.id).__name__}',
                code=ErrorCode.TASK_INVALID_ID,
                notes=[f'task {self.id!r} ({self.description})'],
                help_text='ids are ordered numerically, use a stable integer per task',
            )
        if not callable(self.fn):
            raise task_definition_error(
                f'reconcile function of task {self.id} is not callable',
                code=ErrorCode.TASK_INVALID_FN,
                notes=[f'got {type(self.fn).__name__}'],
                help_text='pass a callable accepting (ctx, task)',
            )

    def __str__(self) -> str:
        return f'task {self.id} ({self.description})'
