"""Unit tests for reconflow logging module."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from io import StringIO

import pytest

from reconflow.core.logging import ColoredFormatter, get_logger, set_default_level
from reconflow import ReconcileContext, Task, Workflow

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _restore_default_level() -> Iterator[None]:
    """Save and restore the module-level _default_level after each test."""
    from reconflow.core import logging as reconflow_logging

    original = reconflow_logging._default_level
    yield
    set_default_level(original)


class TestSetDefaultLevel:
    def test_changes_module_variable(self) -> None:
        from reconflow.core import logging as reconflow_logging

        set_default_level(logging.DEBUG)
        assert reconflow_logging._default_level == logging.DEBUG

    def test_new_logger_uses_default_level(self) -> None:
        set_default_level(logging.WARNING)
        logger = get_logger(f'test_{uuid.uuid4().hex[:8]}')
        assert logger.level == logging.WARNING
        for handler in logger.handlers:
            assert handler.level == logging.WARNING


class TestGetLogger:
    def test_namespaced_and_not_propagating(self) -> None:
        name = f'test_{uuid.uuid4().hex[:8]}'
        logger = get_logger(name)
        assert logger.name == f'reconflow.{name}'
        assert logger.propagate is False

    def test_handlers_not_duplicated(self) -> None:
        name = f'test_{uuid.uuid4().hex[:8]}'
        first = get_logger(name)
        second = get_logger(name)
        assert first is second
        assert len(second.handlers) == 1

    def test_workflow_scoped_adapter(self) -> None:
        name = f'test_{uuid.uuid4().hex[:8]}'
        adapter = get_logger(name, workflow='volumes')
        assert isinstance(adapter, logging.LoggerAdapter)
        assert adapter.logger is get_logger(name)
        assert adapter.extra == {'workflow': 'volumes'}


class TestColoredFormatter:
    def test_contains_component_level_and_message(self) -> None:
        record = logging.LogRecord(
            'reconflow.workflow', logging.WARNING, __file__, 1, 'task 3 not ready', None, None
        )
        formatted = ColoredFormatter().format(record)
        assert '[workflow]' in formatted
        assert '[WARNING]' in formatted
        assert 'task 3 not ready' in formatted
        assert '<' not in formatted

    def test_workflow_column(self) -> None:
        record = logging.LogRecord(
            'reconflow.driver', logging.INFO, __file__, 1, 'pass 2 failed', None, None
        )
        record.workflow = 'volumes'
        formatted = ColoredFormatter().format(record)
        assert '[driver]' in formatted
        assert '<volumes>' in formatted
        assert formatted.index('<volumes>') < formatted.index('pass 2 failed')


class TestWorkflowLogging:
    def test_retryable_failure_logged_as_warning(self) -> None:
        def failing(ctx: ReconcileContext, task: Task) -> None:
            raise TimeoutError('legacy system slow')

        wf = Workflow('logged')
        wf.add_task(Task(1, 'slow', failing))
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(ColoredFormatter())
        handler.setLevel(logging.DEBUG)
        wf.logger.logger.addHandler(handler)
        try:
            with pytest.raises(TimeoutError):
                wf.reconcile()
        finally:
            wf.logger.logger.removeHandler(handler)
        output = stream.getvalue()
        assert '<logged>' in output
        assert 'task 1 (slow) not reconciled yet: TimeoutError: legacy system slow' in output
        assert '[logged]' not in output
