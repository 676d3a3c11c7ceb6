"""Reference retry loop: run reconciliation passes until the workflow converges."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable

from reconflow.core.errors import FatalError, RetriesExhaustedError
from reconflow.core.logging import get_logger
from reconflow.core.models.context import ReconcileContext
from reconflow.core.models.policy import RetryPolicy
from reconflow.core.types.status import PassStatus
from reconflow.core.workflows.report import PassReport
from reconflow.core.workflows.workflow import Workflow

RetryCallback = Callable[[int, Exception], None]


def _cancelled_report(ctx: ReconcileContext) -> PassReport:
    return PassReport(
        status=PassStatus.CANCELLED,
        order=(),
        executed=(),
        cancel_reason=ctx.reason,
    )


def _after_failure(
    workflow: Workflow,
    policy: RetryPolicy,
    pass_number: int,
    exc: Exception,
    on_retry: RetryCallback | None,
) -> float:
    """Log a retryable failure and return the delay before the next pass.

    Raises:
        RetriesExhaustedError: If the policy allows no further pass.
    """
    log = get_logger('driver', workflow=workflow.name)
    if not policy.allows_another_pass(pass_number):
        log.error(f'giving up after {pass_number} passes: {exc}')
        raise RetriesExhaustedError(pass_number, exc) from exc
    delay = policy.delay_for(pass_number)
    log.info(f'pass {pass_number} failed, retrying in {delay:.2f}s')
    if on_retry is not None:
        on_retry(pass_number, exc)
    return delay


def run_until_converged(
    workflow: Workflow,
    ctx: ReconcileContext | None = None,
    *,
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: RetryCallback | None = None,
) -> PassReport:
    """Call workflow.reconcile() until a pass finishes without raising.

    Returns the report of that pass (CONVERGED, or CANCELLED when ``ctx`` was
    cancelled). A context cancelled between passes stops the loop with an
    empty CANCELLED report.

    Raises:
        FatalError: As soon as a pass raises it.
        RetriesExhaustedError: When ``policy.max_passes`` passes all failed.
    """
    ctx = ctx if ctx is not None else ReconcileContext.background()
    policy = policy if policy is not None else RetryPolicy()
    pass_number = 0
    log = get_logger('driver', workflow=workflow.name)

    while True:
        if ctx.cancelled:
            return _cancelled_report(ctx)
        pass_number += 1
        log.info(f'--- reconcile pass {pass_number} ---')
        try:
            return workflow.reconcile(ctx)
        except FatalError:
            raise
        except Exception as exc:
            delay = _after_failure(workflow, policy, pass_number, exc, on_retry)
        sleep(delay)


async def run_until_converged_async(
    workflow: Workflow,
    ctx: ReconcileContext | None = None,
    *,
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: RetryCallback | None = None,
) -> PassReport:
    """Async variant of run_until_converged() built on workflow.reconcile_async()."""
    ctx = ctx if ctx is not None else ReconcileContext.background()
    policy = policy if policy is not None else RetryPolicy()
    pass_number = 0
    log = get_logger('driver', workflow=workflow.name)

    while True:
        if ctx.cancelled:
            return _cancelled_report(ctx)
        pass_number += 1
        log.info(f'--- reconcile pass {pass_number} ---')
        try:
            return await workflow.reconcile_async(ctx)
        except FatalError:
            raise
        except Exception as exc:
            delay = _after_failure(workflow, policy, pass_number, exc, on_retry)
        await sleep(delay)
