"""Shared default constants for the reconflow library."""

# Delay between reconciliation passes when no RetryPolicy is given.
DEFAULT_RETRY_INTERVAL_S: float = 2.0

# Upper bound for a single exponential backoff delay.
DEFAULT_MAX_INTERVAL_S: float = 300.0  # 5 minutes

# Fraction of the delay added or removed when jitter is enabled.
JITTER_FRACTION: float = 0.25

# Separator between tasks in Workflow.visualize() output.
CHAIN_SEPARATOR: str = ' >> '
