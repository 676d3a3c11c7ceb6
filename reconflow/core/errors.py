"""Rust-style error display for reconflow registration, ordering and pass errors."""

from __future__ import annotations

import inspect
import linecache
import os
import sys
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable

# Absolute path to the reconflow package directory.
# Used by _find_user_frame to tell library frames from caller code.
_RECONFLOW_PKG_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class ErrorCode(str, Enum):
    """Error codes for reconflow errors.

    Organized by category:
    - E001-E099: Graph ordering errors
    - E100-E199: Task definition errors
    - E300-E399: Registry errors
    - E400-E499: Reconciliation outcome errors
    """

    # Graph ordering (E001-E099)
    GRAPH_CYCLE_DETECTED = 'E001'
    GRAPH_ORDERING_FAILED = 'E002'
    GRAPH_REGISTRY_MISMATCH = 'E003'

    # Task definition (E100-E199)
    TASK_INVALID_ID = 'E100'
    TASK_INVALID_FN = 'E101'
    TASK_AWAITABLE_IN_SYNC_PASS = 'E102'

    # Registry (E300-E399)
    TASK_DUPLICATE_ID = 'E300'
    TASK_UNKNOWN_ID = 'E301'

    # Reconciliation outcomes (E400-E499)
    RECONCILE_FATAL = 'E400'
    RECONCILE_RETRIES_EXHAUSTED = 'E401'


class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    DIM = '\033[2m'


class _NoColors:
    """No-op color codes for non-TTY output."""

    RESET = ''
    BOLD = ''
    RED = ''
    BLUE = ''
    CYAN = ''
    GREEN = ''
    DIM = ''


def _env_flag(name: str) -> bool:
    return os.environ.get(name, '').lower() in ('1', 'true', 'yes')


def _should_use_colors() -> bool:
    """Determine if colors should be used in output."""
    if _env_flag('RECONFLOW_FORCE_COLOR'):
        return True

    # NO_COLOR standard (https://no-color.org/)
    if os.environ.get('NO_COLOR') is not None:
        return False

    return hasattr(sys.stderr, 'isatty') and sys.stderr.isatty()


def _should_show_verbose() -> bool:
    """Determine if the full traceback should follow the formatted error."""
    return _env_flag('RECONFLOW_VERBOSE')


def _should_use_plain_errors() -> bool:
    """Determine if plain Python errors should be used instead of Rust-style."""
    return _env_flag('RECONFLOW_PLAIN_ERRORS')


@dataclass
class SourceLocation:
    """Source code location information."""

    file: str
    line: int

    @classmethod
    def from_frame(cls, frame: Any) -> SourceLocation:
        return cls(file=frame.f_code.co_filename, line=frame.f_lineno)

    @classmethod
    def from_function(cls, fn: Callable[..., Any]) -> SourceLocation | None:
        """Location of a function definition, or None for builtins and mocks."""
        code = getattr(fn, '__code__', None)
        if code is None:
            return None
        return cls(file=code.co_filename, line=code.co_firstlineno)

    def get_source_line(self) -> str | None:
        line = linecache.getline(self.file, self.line)
        return line.rstrip('\n') if line else None

    def format_short(self) -> str:
        return f'{self.file}:{self.line}'


@dataclass(eq=False)
class ReconflowError(Exception):
    """Base exception for reconflow errors.

    Provides Rust-style error formatting with:
    - Error code
    - Source location of the calling code with a snippet
    - Notes and help text
    """

    message: str
    code: ErrorCode | None = None
    location: SourceLocation | None = None
    notes: list[str] = field(default_factory=lambda: [])
    help_text: str | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

        if self.location is None:
            user_frame = _find_user_frame()
            if user_frame is not None:
                self.location = SourceLocation.from_frame(user_frame)

    def with_note(self, note: str) -> ReconflowError:
        """Add a note to the error (fluent API)."""
        self.notes.append(note)
        return self

    def with_help(self, help_text: str) -> ReconflowError:
        """Set help text (fluent API)."""
        self.help_text = help_text
        return self

    def format_rust_style(self, use_colors: bool | None = None) -> str:
        """Format the error in Rust style."""
        if use_colors is None:
            use_colors = _should_use_colors()

        c = _Colors if use_colors else _NoColors
        lines: list[str] = ['']

        code_part = f'[{self.code.value}]' if self.code else ''
        lines.append(f'{c.BOLD}{c.RED}error{code_part}:{c.RESET} {self.message}')

        if self.location:
            lines.append(
                f'  {c.BLUE}-->{c.RESET} {c.CYAN}{self.location.format_short()}{c.RESET}'
            )
            source_line = self.location.get_source_line()
            if source_line:
                line_num = str(self.location.line)
                padding = ' ' * len(line_num)
                stripped = source_line.lstrip()
                indent = len(source_line) - len(stripped)
                lines.append(f'   {c.BLUE}{padding}|{c.RESET}')
                lines.append(f'   {c.BLUE}{line_num}|{c.RESET} {source_line}')
                lines.append(
                    f'   {c.BLUE}{padding}|{c.RESET} '
                    f'{c.RED}{" " * indent}{"^" * len(stripped)}{c.RESET}'
                )

        for note in self.notes:
            note_lines = note.split('\n')
            lines.append(
                f'   {c.BLUE}={c.RESET} {c.BOLD}{c.BLUE}note{c.RESET}: {note_lines[0]}'
            )
            for note_line in note_lines[1:]:
                lines.append(f'          {note_line}')

        if self.help_text:
            lines.append('')
            lines.append(f'   {c.BLUE}={c.RESET} {c.BOLD}{c.GREEN}help{c.RESET}:')
            for help_line in self.help_text.split('\n'):
                lines.append(f'        {help_line}')

        return '\n'.join(lines)

    def __str__(self) -> str:
        """Plain (uncoloured) rendering, safe for log records and storage."""
        return self.format_rust_style(use_colors=False)


_original_excepthook = sys.excepthook


def _reconflow_excepthook(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_tb: Any,
) -> None:
    """Custom exception hook for ReconflowError exceptions."""
    if _should_use_plain_errors() or not isinstance(exc_value, ReconflowError):
        _original_excepthook(exc_type, exc_value, exc_tb)
        return

    print(exc_value.format_rust_style(), file=sys.stderr)

    if _should_show_verbose():
        print(file=sys.stderr)
        c = _Colors if _should_use_colors() else _NoColors
        print(
            f'{c.DIM}Full traceback (RECONFLOW_VERBOSE=1):{c.RESET}',
            file=sys.stderr,
        )
        traceback.print_exception(exc_type, exc_value, exc_tb, file=sys.stderr)


def install_error_handler() -> None:
    """Install the custom exception hook for Rust-style error display."""
    sys.excepthook = _reconflow_excepthook


def uninstall_error_handler() -> None:
    """Restore the original exception hook."""
    sys.excepthook = _original_excepthook


# =============================================================================
# Specific Error Classes
# =============================================================================


@dataclass(eq=False)
class TaskDefinitionError(ReconflowError):
    """Raised when a Task is constructed with an invalid id or function."""

    pass


@dataclass(eq=False)
class RegistryError(ReconflowError):
    """Raised when a task registry operation fails."""

    pass


class DuplicateTaskError(RegistryError):
    """Raised when a task id is registered more than once in a workflow."""

    def __init__(self, task_id: int, context: str = '') -> None:
        super().__init__(
            message=f'task id {task_id} already exists',
            code=ErrorCode.TASK_DUPLICATE_ID,
            notes=[context] if context else [],
            help_text='each task id must be unique within a workflow',
        )
        self.task_id = task_id


class UnknownTaskError(RegistryError, KeyError):
    """Raised when a task id is not registered in the workflow.

    Inherits from KeyError so Mapping.__contains__ works on the registry.
    """

    def __init__(self, task_id: int, context: str = '') -> None:
        RegistryError.__init__(
            self,
            message=f'task id {task_id} does not exist',
            code=ErrorCode.TASK_UNKNOWN_ID,
            notes=[context] if context else [],
            help_text='register the task with add_task() before declaring dependencies on it',
        )
        self.task_id = task_id


@dataclass(eq=False)
class OrderingError(ReconflowError):
    """Raised when an execution order cannot be computed from the graph."""

    pass


class CycleError(OrderingError):
    """Raised when the dependency graph is not acyclic.

    ``cycles`` holds one sorted id list per cyclic component.
    """

    def __init__(self, cycles: Iterable[Iterable[int]]) -> None:
        self.cycles: list[list[int]] = sorted(sorted(c) for c in cycles)
        notes = [f'cyclic tasks: {ids}' for ids in self.cycles]
        notes.append('task dependencies must form a directed acyclic graph (DAG)')
        super().__init__(
            message='cycle detected in task dependencies',
            code=ErrorCode.GRAPH_CYCLE_DETECTED,
            notes=notes,
            help_text='remove one of the dependencies between the listed tasks',
        )

    @property
    def task_ids(self) -> set[int]:
        """All ids taking part in any cycle."""
        return {task_id for cycle in self.cycles for task_id in cycle}


class FatalError(ReconflowError):
    """A reconciliation outcome that must not be retried as-is.

    Raised by task bodies whose dependent component must be reconfigured, and
    by the reconciliation driver when the graph cannot be ordered.
    """

    def __init__(
        self,
        message: str = '',
        cause: BaseException | None = None,
        *,
        code: ErrorCode = ErrorCode.RECONCILE_FATAL,
    ) -> None:
        self.cause = cause
        if cause is not None:
            text = f'fatal error: {_describe(cause)}'
        elif message:
            text = f'fatal error: {message}'
        else:
            text = 'unknown fatal error'
        notes = [message] if message and cause is not None else []
        super().__init__(message=text, code=code, notes=notes)
        if cause is not None:
            self.__cause__ = cause

    @classmethod
    def wrap(
        cls,
        exc: BaseException,
        message: str = '',
        *,
        code: ErrorCode = ErrorCode.RECONCILE_FATAL,
    ) -> FatalError:
        """Wrap ``exc`` as fatal. A FatalError is returned unchanged."""
        if isinstance(exc, FatalError):
            return exc
        return cls(message, cause=exc, code=code)


class RetriesExhaustedError(ReconflowError):
    """Raised by the retry driver when every allowed pass failed retryably."""

    def __init__(self, passes: int, last_error: BaseException) -> None:
        super().__init__(
            message=f'workflow did not converge after {passes} passes',
            code=ErrorCode.RECONCILE_RETRIES_EXHAUSTED,
            notes=[f'last error: {_describe(last_error)}'],
            help_text='raise RetryPolicy.max_passes or fix the failing task',
        )
        self.passes = passes
        self.last_error = last_error
        self.__cause__ = last_error


def is_fatal(exc: BaseException) -> bool:
    """True if ``exc`` must stop a retry loop."""
    return isinstance(exc, FatalError)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, ReconflowError):
        return exc.message
    text = str(exc)
    return f'{type(exc).__name__}: {text}' if text else type(exc).__name__


# =============================================================================
# Helper Functions
# =============================================================================


def _find_user_frame() -> Any | None:
    """Find the first frame outside of reconflow internals.

    Walks up the call stack to find where caller code entered reconflow.
    """
    frame = inspect.currentframe()
    while frame is not None:
        filename = frame.f_code.co_filename
        if filename.startswith('<'):
            frame = frame.f_back
            continue
        if (
            not filename.startswith(_RECONFLOW_PKG_DIR)
            and '/site-packages/' not in filename
        ):
            return frame
        frame = frame.f_back
    return None


def task_definition_error(
    message: str,
    *,
    code: ErrorCode | None = None,
    fn: Callable[..., Any] | None = None,
    notes: list[str] | None = None,
    help_text: str | None = None,
) -> TaskDefinitionError:
    """Create a TaskDefinitionError, located at ``fn`` when it has source info."""
    location = None
    if fn is not None and callable(fn):
        location = SourceLocation.from_function(fn)

    return TaskDefinitionError(
        message=message,
        code=code,
        location=location,
        notes=notes or [],
        help_text=help_text,
    )
