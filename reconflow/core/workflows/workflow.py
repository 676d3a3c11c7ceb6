"""Workflow: task registry + dependency graph + reconciliation driver."""

from __future__ import annotations

import inspect
from collections.abc import Iterable
from typing import Any, Union

from reconflow.core.defaults import CHAIN_SEPARATOR
from reconflow.core.errors import ErrorCode, FatalError, OrderingError, UnknownTaskError
from reconflow.core.graph.dependency import DependencyGraph
from reconflow.core.graph.ordering import compute_order
from reconflow.core.logging import get_logger
from reconflow.core.models.context import ReconcileContext
from reconflow.core.models.task import Task
from reconflow.core.registry.tasks import TaskRegistry
from reconflow.core.workflows.report import PassReport

TaskRef = Union[Task, int]


def _task_id(ref: TaskRef) -> int:
    if isinstance(ref, Task):
        return ref.id
    if isinstance(ref, bool) or not isinstance(ref, int):
        raise UnknownTaskError(ref, context=f'expected a Task or an int id, got {type(ref).__name__}')
    return ref


class Workflow:
    """
    A set of reconciliation tasks and the "must run before" edges between them.

    Tasks and dependencies are declared once and never removed. Each call to
    reconcile() is one pass: the tasks run one at a time in dependency order
    (ties broken by ascending id), stopping at the first failure. Retrying
    is up to the caller.

    Example:
        wf = Workflow('volumes')
        wf.add_tasks([t1, t2, t3])
        wf.add_dependency(t1, t2, t3)   # t1 runs after t2 and t3
        wf.visualize()                  # 'task 2 (...) >> task 3 (...) >> task 1 (...)'
        report = wf.reconcile()
    """

    def __init__(self, name: str = 'workflow') -> None:
        self.name = name
        self.logger = get_logger('workflow', workflow=name)
        self._graph = DependencyGraph()
        self._tasks: TaskRegistry = TaskRegistry()

    # --- declaration ---

    def add_task(self, task: Task) -> Task:
        """Register ``task``.

        Raises:
            DuplicateTaskError: If the id is taken. Nothing is changed.
        """
        self._tasks.register(task)
        self._graph.add_node(task.id)
        return task

    def add_tasks(self, tasks: Iterable[Task]) -> list[Task]:
        """Register several tasks, all or none.

        Raises:
            DuplicateTaskError: If any id is taken or repeated. Nothing is changed.
        """
        added = self._tasks.register_all(tasks)
        for task in added:
            self._graph.add_node(task.id)
        return added

    def add_dependency(self, task: TaskRef, *dependencies: TaskRef) -> None:
        """Declare that ``task`` runs after each of ``dependencies``.

        Adding an edge that already exists is a no-op. Edges that close a
        cycle are accepted here and reported by the next ordering.

        Raises:
            ValueError: If no dependency is given.
            UnknownTaskError: If ``task`` or any dependency is not registered.
                No edge is added in that case.
        """
        if not dependencies:
            raise ValueError(f'add_dependency({task}) requires at least one dependency')
        self._graph.add_edges(
            (_task_id(dep) for dep in dependencies), _task_id(task)
        )

    # --- introspection ---

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    def get_task(self, task_id: int) -> Task:
        return self._tasks[task_id]

    def task_ids(self) -> list[int]:
        return self._tasks.ids()

    def dependencies_of(self, task: TaskRef) -> list[int]:
        """Sorted ids of the tasks ``task`` directly waits for."""
        return self._graph.predecessors(_task_id(task))

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task: object) -> bool:
        if isinstance(task, Task):
            return self._tasks.get(task.id) is task
        if isinstance(task, bool) or not isinstance(task, int):
            return False
        return task in self._tasks

    def __repr__(self) -> str:
        return (
            f'Workflow(name={self.name!r}, tasks={len(self._tasks)}, '
            f'dependencies={self._graph.edge_count})'
        )

    # --- ordering ---

    def ordered_tasks(self) -> list[Task]:
        """Tasks in execution order.

        Raises:
            CycleError: If the dependencies contain a cycle.
            OrderingError: If no order can be computed.
        """
        order = compute_order(self._graph)
        if len(order) != len(self._tasks) or any(i not in self._tasks for i in order):
            raise OrderingError(
                message='dependency graph does not match registered tasks',
                code=ErrorCode.GRAPH_REGISTRY_MISMATCH,
                notes=[
                    f'graph nodes: {sorted(order)}',
                    f'registered tasks: {self._tasks.ids()}',
                ],
            )
        return [self._tasks[task_id] for task_id in order]

    def visualize(self) -> str:
        """Render the execution order, e.g. 'task 2 (create V2) >> task 5 (create V5)'."""
        return CHAIN_SEPARATOR.join(str(task) for task in self.ordered_tasks())

    def _plan(self) -> list[Task]:
        try:
            tasks = self.ordered_tasks()
        except OrderingError as exc:
            self.logger.error(f"cannot order tasks: {exc.message}")
            raise FatalError.wrap(exc) from exc
        self.logger.debug(f"planned order: {[task.id for task in tasks]}")
        return tasks

    # --- reconciliation ---

    def reconcile(self, ctx: ReconcileContext | None = None) -> PassReport:
        """Run one reconciliation pass.

        Returns a PassReport when every task either succeeded or was skipped
        because ``ctx`` was cancelled before it started.

        Raises:
            FatalError: If the graph cannot be ordered, or a task raised
                FatalError. Retrying will not help.
            Exception: Whatever retryable error a task raised, unwrapped.
                Tasks after it were not attempted.
        """
        ctx = ctx if ctx is not None else ReconcileContext.background()
        tasks = self._plan()
        executed: list[int] = []
        skipped: list[int] = []

        for task in tasks:
            if self._skip_if_cancelled(ctx, task, skipped):
                continue
            self.logger.debug(f'reconciling {task}')
            try:
                result = task.fn(ctx, task)
            except Exception as exc:
                self._log_failure(task, exc)
                raise
            if inspect.isawaitable(result):
                self._reject_awaitable(task, result)
            executed.append(task.id)

        return self._finish(tasks, executed, skipped, ctx)

    async def reconcile_async(self, ctx: ReconcileContext | None = None) -> PassReport:
        """Async variant of reconcile(); awaits task bodies that return awaitables."""
        ctx = ctx if ctx is not None else ReconcileContext.background()
        tasks = self._plan()
        executed: list[int] = []
        skipped: list[int] = []

        for task in tasks:
            if self._skip_if_cancelled(ctx, task, skipped):
                continue
            self.logger.debug(f'reconciling {task}')
            try:
                result = task.fn(ctx, task)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                self._log_failure(task, exc)
                raise
            executed.append(task.id)

        return self._finish(tasks, executed, skipped, ctx)

    def _skip_if_cancelled(
        self, ctx: ReconcileContext, task: Task, skipped: list[int]
    ) -> bool:
        reason = ctx.reason
        if reason is None:
            return False
        self.logger.warning(f'skipping {task}: {reason}')
        skipped.append(task.id)
        return True

    def _log_failure(self, task: Task, exc: Exception) -> None:
        if isinstance(exc, FatalError):
            self.logger.error(f'{task} failed fatally: {exc.message}')
        else:
            self.logger.warning(
                f'{task} not reconciled yet: {type(exc).__name__}: {exc}'
            )

    def _reject_awaitable(self, task: Task, result: Any) -> None:
        if inspect.iscoroutine(result):
            result.close()
        exc = FatalError(
            f'{task} returned an awaitable during a synchronous pass',
            code=ErrorCode.TASK_AWAITABLE_IN_SYNC_PASS,
        ).with_help('use reconcile_async() for coroutine task bodies')
        self._log_failure(task, exc)
        raise exc

    def _finish(
        self,
        tasks: list[Task],
        executed: list[int],
        skipped: list[int],
        ctx: ReconcileContext,
    ) -> PassReport:
        report = PassReport.build(
            order=[task.id for task in tasks],
            executed=executed,
            skipped=skipped,
            cancel_reason=ctx.reason,
        )
        self.logger.info(f'pass finished, {report}')
        return report
