"""Unit tests for RetryPolicy validation and delay computation."""

from __future__ import annotations

from unittest import mock

import pytest
from pydantic import ValidationError

from reconflow import RetryPolicy
from reconflow.core.defaults import DEFAULT_RETRY_INTERVAL_S

pytestmark = pytest.mark.unit


class TestRetryPolicyValidation:
    def test_defaults(self) -> None:
        policy = RetryPolicy()
        assert policy.max_passes is None
        assert policy.intervals == [DEFAULT_RETRY_INTERVAL_S]
        assert policy.backoff_strategy == 'fixed'
        assert policy.jitter is False

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            RetryPolicy(retries=3)  # type: ignore[call-arg]

    def test_empty_intervals_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RetryPolicy(intervals=[])

    def test_non_positive_interval_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RetryPolicy(intervals=[1.0, 0])

    def test_max_passes_bounds(self) -> None:
        with pytest.raises(ValidationError):
            RetryPolicy(max_passes=0)
        with pytest.raises(ValidationError):
            RetryPolicy(max_passes=10_001)

    def test_exponential_requires_single_interval(self) -> None:
        with pytest.raises(ValidationError, match='exactly one base interval'):
            RetryPolicy(intervals=[1, 2], backoff_strategy='exponential')

    def test_exponential_base_above_cap_rejected(self) -> None:
        with pytest.raises(ValidationError, match='exceeds max_interval'):
            RetryPolicy.exponential(10, max_interval=5)

    def test_fixed_interval_longer_than_default_cap(self) -> None:
        policy = RetryPolicy.fixed([600])
        assert policy.delay_for(1) == 600
        assert policy.delay_for(4) == 600

    def test_frozen(self) -> None:
        policy = RetryPolicy()
        with pytest.raises(ValidationError):
            policy.max_passes = 3  # type: ignore[misc]


class TestDelayFor:
    def test_fixed_walks_intervals_then_repeats_last(self) -> None:
        policy = RetryPolicy.fixed([1, 5, 30])
        assert [policy.delay_for(n) for n in range(1, 6)] == [1, 5, 30, 30, 30]

    def test_exponential_doubles_up_to_cap(self) -> None:
        policy = RetryPolicy.exponential(2, max_interval=20, jitter=False)
        assert [policy.delay_for(n) for n in range(1, 6)] == [2, 4, 8, 16, 20]

    def test_exponential_large_pass_count_capped(self) -> None:
        policy = RetryPolicy.exponential(1, max_interval=60, jitter=False)
        assert policy.delay_for(5000) == 60

    def test_jitter_within_quarter(self) -> None:
        policy = RetryPolicy.fixed([8], jitter=True)
        with mock.patch('reconflow.core.models.policy.random.uniform', return_value=-2.0) as uniform:
            assert policy.delay_for(1) == 6.0
        uniform.assert_called_once_with(-2.0, 2.0)

    def test_rejects_zero(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy().delay_for(0)

    def test_allows_another_pass(self) -> None:
        assert RetryPolicy().allows_another_pass(10_000)
        bounded = RetryPolicy.fixed([1], max_passes=2)
        assert bounded.allows_another_pass(1)
        assert not bounded.allows_another_pass(2)
