"""Result of a reconciliation pass that did not raise."""

from __future__ import annotations

from dataclasses import dataclass

from reconflow.core.models.context import CancelReason
from reconflow.core.types.status import PassStatus

__all__ = ['PassReport', 'PassStatus']


@dataclass(frozen=True)
class PassReport:
    """
    Summary of one reconciliation pass.

    Passes that fail raise instead of returning a report, so a report is
    either CONVERGED (every task ran and succeeded) or CANCELLED (the
    context was cancelled and some tasks were skipped without running).
    """

    status: PassStatus
    order: tuple[int, ...]
    """Planned execution order of the pass."""

    executed: tuple[int, ...]
    """Ids of tasks that ran and succeeded, in execution order."""

    skipped: tuple[int, ...] = ()
    """Ids of tasks not started because the context was cancelled."""

    cancel_reason: CancelReason | None = None

    @property
    def converged(self) -> bool:
        return self.status.is_converged

    @classmethod
    def build(
        cls,
        order: list[int],
        executed: list[int],
        skipped: list[int],
        cancel_reason: CancelReason | None = None,
    ) -> PassReport:
        status = PassStatus.CANCELLED if skipped else PassStatus.CONVERGED
        return cls(
            status=status,
            order=tuple(order),
            executed=tuple(executed),
            skipped=tuple(skipped),
            cancel_reason=cancel_reason if skipped else None,
        )

    def __str__(self) -> str:
        text = f'{self.status.value}: {len(self.executed)}/{len(self.order)} tasks reconciled'
        if self.skipped:
            text += f', {len(self.skipped)} skipped ({self.cancel_reason})'
        return text
