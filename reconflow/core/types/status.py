# core/types/status.py
"""
Core types and enums used throughout the application.
This module should not import from other application modules.
"""

from enum import Enum


class PassStatus(Enum):
    """Outcome of a reconciliation pass that did not raise"""

    CONVERGED = 'converged'  # Every task was invoked and succeeded.

    CANCELLED = 'cancelled'  # The context was cancelled before one or more
    # tasks could start. Those tasks were skipped, not failed.

    @property
    def is_converged(self) -> bool:
        return self is PassStatus.CONVERGED

