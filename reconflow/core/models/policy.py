"""Retry policy for the reference reconciliation driver."""

from __future__ import annotations

import random
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, model_validator
from typing_extensions import Self

from reconflow.core.defaults import (
    DEFAULT_MAX_INTERVAL_S,
    DEFAULT_RETRY_INTERVAL_S,
    JITTER_FRACTION,
)


class RetryPolicy(BaseModel):
    """
    Delay schedule between reconciliation passes.

    Two strategies supported:
    1. Fixed: walks the intervals list, then keeps repeating the last interval
    2. Exponential: uses intervals[0] as base, doubling per pass up to max_interval

    Fields:
        max_passes: passes to attempt before giving up (None = until converged)
        intervals: delays in seconds between passes
        backoff_strategy: 'fixed' uses intervals as-is, 'exponential' uses intervals[0] as base
        max_interval: cap for exponential delays
        jitter: whether to add +/-25% randomization to delays
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    max_passes: Optional[
        Annotated[int, Field(ge=1, le=10_000, description='Passes to attempt (1-10000)')]
    ] = None
    intervals: Annotated[
        list[PositiveFloat],
        Field(min_length=1, max_length=100, description='Delays between passes in seconds'),
    ] = [DEFAULT_RETRY_INTERVAL_S]
    backoff_strategy: Literal['fixed', 'exponential'] = 'fixed'
    max_interval: PositiveFloat = DEFAULT_MAX_INTERVAL_S
    jitter: bool = False

    @model_validator(mode='after')
    def validate_strategy_consistency(self) -> Self:
        if self.backoff_strategy == 'exponential' and len(self.intervals) != 1:
            raise ValueError(
                f'Exponential backoff strategy requires exactly one base interval, '
                f'got {len(self.intervals)} intervals. Use intervals=[base_seconds] for exponential backoff.'
            )
        if self.backoff_strategy == 'exponential' and self.intervals[0] > self.max_interval:
            raise ValueError(
                f'base interval {self.intervals[0]} exceeds max_interval ({self.max_interval})'
            )
        return self

    @classmethod
    def fixed(
        cls,
        intervals: list[float],
        *,
        max_passes: int | None = None,
        jitter: bool = False,
    ) -> 'RetryPolicy':
        """Create a fixed policy; the last interval repeats once the list is used up."""
        return cls(
            max_passes=max_passes,
            intervals=intervals,
            backoff_strategy='fixed',
            jitter=jitter,
        )

    @classmethod
    def exponential(
        cls,
        base_interval: float,
        *,
        max_passes: int | None = None,
        max_interval: float = DEFAULT_MAX_INTERVAL_S,
        jitter: bool = True,
    ) -> 'RetryPolicy':
        """Create an exponential policy: base, 2*base, 4*base ... capped at max_interval."""
        return cls(
            max_passes=max_passes,
            intervals=[base_interval],
            backoff_strategy='exponential',
            max_interval=max_interval,
            jitter=jitter,
        )

    def delay_for(self, failed_passes: int) -> float:
        """Delay in seconds after ``failed_passes`` consecutive failed passes (1-based)."""
        if failed_passes < 1:
            raise ValueError(f'failed_passes must be >= 1, got {failed_passes}')

        if self.backoff_strategy == 'exponential':
            # Exponent is capped so huge pass counts do not overflow the float
            exponent = min(failed_passes - 1, 64)
            delay = min(self.intervals[0] * (2**exponent), self.max_interval)
        else:
            index = min(failed_passes, len(self.intervals)) - 1
            delay = self.intervals[index]

        if self.jitter:
            spread = delay * JITTER_FRACTION
            delay = max(0.0, delay + random.uniform(-spread, spread))
        return delay

    def allows_another_pass(self, passes_done: int) -> bool:
        return self.max_passes is None or passes_done < self.max_passes
