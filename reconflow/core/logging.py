# reconflow/core/logging.py
from __future__ import annotations

import logging
import sys
from datetime import datetime
from typing import Optional, Union

# Module-level default log level, can be changed by set_default_level()
_default_level: int = logging.INFO

RESET = '\033[0m'
TIME_COLOR = '\033[94m'
LABEL_COLOR = '\033[97m'
WORKFLOW_COLOR = '\033[96m'

LEVEL_COLORS = {
    'DEBUG': '\033[90m',
    'INFO': '\033[92m',
    'WARNING': '\033[93m',
    'ERROR': '\033[91m',
    'CRITICAL': '\033[1;91m',
}

ComponentLogger = Union[logging.Logger, logging.LoggerAdapter]


class ColoredFormatter(logging.Formatter):
    """Colored formatter for reconflow logging.

    Layout: ``[time] [component] [LEVEL] <workflow> message``. The workflow
    column is present only for records logged through a workflow-scoped
    adapter (see get_logger()).
    """

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')

        # 'reconflow.workflow' -> 'workflow'
        component = record.name.rsplit('.', 1)[-1]
        component_padded = f'[{component}]'.ljust(11)
        level_padded = f'[{record.levelname}]'.ljust(10)
        level_color = LEVEL_COLORS.get(record.levelname, LABEL_COLOR)

        formatted = (
            f'{TIME_COLOR}[{time_str}]{RESET} '
            f'{LABEL_COLOR}{component_padded}{RESET}'
            f'{level_color}{level_padded}{RESET}'
        )
        workflow = getattr(record, 'workflow', None)
        if workflow:
            formatted += f'{WORKFLOW_COLOR}<{workflow}>{RESET} '
        formatted += f'{LABEL_COLOR}{record.getMessage()}{RESET}'

        if record.exc_info:
            formatted += '\n' + self.formatException(record.exc_info)

        return formatted


def set_default_level(level: int) -> None:
    """Set the default log level for new loggers."""
    global _default_level
    _default_level = level


def get_logger(
    component_name: str, workflow: Optional[str] = None
) -> ComponentLogger:
    """Get the ``reconflow.<component_name>`` logger.

    With ``workflow`` set, returns an adapter that tags every record with the
    workflow name so the formatter can print it in its own column.
    """
    logger = logging.getLogger(f'reconflow.{component_name}')

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColoredFormatter())
        handler.setLevel(_default_level)
        logger.addHandler(handler)
        logger.setLevel(_default_level)

        # Prevent duplicate logs from parent loggers
        logger.propagate = False

    if workflow is None:
        return logger
    return logging.LoggerAdapter(logger, {'workflow': workflow})
