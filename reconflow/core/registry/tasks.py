# reconflow/core/registry/tasks.py
from __future__ import annotations

from collections.abc import Iterable
from typing import Dict, Iterator, Mapping

from reconflow.core.errors import DuplicateTaskError, UnknownTaskError
from reconflow.core.models.task import Task


class TaskRegistry(Mapping[int, Task]):
    """Registry mapping task id -> Task.

    Append-only: tasks can be registered but never removed or replaced.
    Lookup of a missing id raises UnknownTaskError (a KeyError).
    """

    def __init__(self) -> None:
        self._data: Dict[int, Task] = {}

    def __getitem__(self, key: int) -> Task:
        try:
            return self._data[key]
        except KeyError:
            raise UnknownTaskError(key) from None

    def __iter__(self) -> Iterator[int]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    # --- convenience ---
    def register(self, task: Task) -> Task:
        """Insert ``task`` under its id.

        Raises:
            DuplicateTaskError: If a task with the same id is already registered.
        """
        if task.id in self._data:
            existing = self._data[task.id]
            raise DuplicateTaskError(
                task.id, f'already registered as {existing}, cannot add {task}'
            )
        self._data[task.id] = task
        return task

    def register_all(self, tasks: Iterable[Task]) -> list[Task]:
        """Insert every task, or none of them if any id collides.

        Raises:
            DuplicateTaskError: If an id is already registered or repeats in ``tasks``.
        """
        batch = list(tasks)
        seen: set[int] = set()
        for task in batch:
            if task.id in self._data:
                raise DuplicateTaskError(
                    task.id, f'already registered as {self._data[task.id]}'
                )
            if task.id in seen:
                raise DuplicateTaskError(task.id, 'id appears twice in the same batch')
            seen.add(task.id)
        for task in batch:
            self._data[task.id] = task
        return batch

    def ids(self) -> list[int]:
        return sorted(self._data)
