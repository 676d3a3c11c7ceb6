"""Shared task bodies and workflow builders for reconflow tests."""

from __future__ import annotations

from dataclasses import dataclass

from reconflow import FatalError, ReconcileContext, Task, Workflow


@dataclass
class RecordingBody:
    """Task body that fails ``failures`` times before converging.

    Records every invocation into the shared ``calls`` list so tests can
    assert the exact execution sequence across passes.
    """

    calls: list[int]
    failures: int = 0
    fatal: bool = False
    converged: bool = False

    def __call__(self, ctx: ReconcileContext, task: Task) -> None:
        self.calls.append(task.id)
        if self.converged:
            return
        if self.fatal:
            raise FatalError(f'{task} cannot be created')
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError(f'{task} not ready, {self.failures} failures left')
        self.converged = True


def build_scenario_workflow(
    calls: list[int],
    failures: dict[int, int] | None = None,
    fatal: set[int] | None = None,
) -> tuple[Workflow, dict[int, Task]]:
    """Five tasks: 1 waits for 2, 3, 4, 5; 3 and 4 wait for 5."""
    failures = failures or {}
    fatal = fatal or set()
    tasks = {
        i: Task(
            i,
            f'create V{i}',
            RecordingBody(calls, failures=failures.get(i, 0), fatal=i in fatal),
        )
        for i in range(1, 6)
    }
    wf = Workflow('scenario')
    wf.add_tasks(tasks.values())
    wf.add_dependency(tasks[1], tasks[2])
    wf.add_dependency(tasks[1], tasks[3])
    wf.add_dependency(tasks[1], tasks[4])
    wf.add_dependency(tasks[1], tasks[5])
    wf.add_dependency(tasks[3], tasks[5])
    wf.add_dependency(tasks[4], tasks[5])
    return wf, tasks


def noop(ctx: ReconcileContext, task: Task) -> None:
    return None
