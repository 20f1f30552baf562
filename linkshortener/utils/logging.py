"""Structured JSON logging for the lambda handlers

IMPORTANT: Call `initialize_logging()` at import time of every lambda handler
module, before the handler logs anything.

Every record is a single JSON line; `extra={...}` fields are merged in:
{
    "timestamp": "2025-12-26T12:00:00.000Z",
    "level": "INFO",
    "logger": "linkshortener.store.entry_store",
    "message": "Created entry.",
    "shortcode": "aBcD",
    "attempt": 1
}
"""

import os
import json
import logging
import logging.config
from datetime import datetime, UTC
from typing import Any

from linkshortener.constants import ENV


# Attributes every LogRecord carries; anything else came in through `extra`
RESERVED_ATTRS = frozenset(vars(logging.LogRecord('', logging.NOTSET, '', 0, '', None, None))) | {'message', 'asctime'}

# Third-party loggers which flood the output below WARNING
QUIET_LOGGERS = ('boto3', 'botocore', 'urllib3')


class JsonFormatter(logging.Formatter):
    """Render a LogRecord (and its `extra` fields) as one JSON object"""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        log: dict[str, Any] = {
            'timestamp': created.strftime('%Y-%m-%dT%H:%M:%S.') + f'{created.microsecond // 1000:03d}Z',
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        log.update({key: value for key, value in vars(record).items() if key not in RESERVED_ATTRS})

        if record.exc_info:
            log['exception'] = self.formatException(record.exc_info)
        if record.stack_info:
            log['stack'] = self.formatStack(record.stack_info)

        # bytes, datetimes and exceptions end up as their str()
        return json.dumps(log, default=str)


def initialize_logging(level: str | None = None) -> None:
    """Send all logs as JSON lines to stdout (where CloudWatch picks them up)

    Args:
        level (str | None):
            Root log level. Defaults to $LOG_LEVEL, or INFO.
    """
    level = (level or os.getenv(ENV.App.LOG_LEVEL) or 'INFO').upper()
    logging.config.dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {'json': {'()': JsonFormatter}},
            'handlers': {
                'stdout': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'json',
                    'stream': 'ext://sys.stdout',
                },
            },
            'loggers': {name: {'level': 'WARNING'} for name in QUIET_LOGGERS},
            'root': {'level': level, 'handlers': ['stdout']},
        }
    )
