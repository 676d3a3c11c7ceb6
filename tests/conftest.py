"""Root test configuration for reconflow tests."""

from __future__ import annotations

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line('markers', 'unit: Unit tests (no external systems)')


@pytest.fixture
def calls() -> list[int]:
    """Shared invocation log for RecordingBody task bodies."""
    return []
