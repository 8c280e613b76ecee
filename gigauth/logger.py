"""Logging configuration."""

import json
import logging
import logging.config
from datetime import datetime, timezone

# Attributes every LogRecord carries; anything else was passed via ``extra``.
_RESERVED_ATTRS = frozenset((
    'args', 'asctime', 'created', 'exc_info', 'exc_text', 'filename',
    'funcName', 'id', 'levelname', 'levelno', 'lineno', 'module',
    'msecs', 'message', 'msg', 'name', 'pathname', 'process',
    'processName', 'relativeCreated', 'stack_info', 'thread', 'threadName',
    'taskName',
))

REDACTED = '[REDACTED]'
_SENSITIVE_KEYS = ('token', 'password', 'secret', 'authorization', 'cookie')


def _is_sensitive(key):
    key = key.lower()
    return any(part in key for part in _SENSITIVE_KEYS)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for better parsing."""

    def format(self, record):
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'name': record.name,
            'message': record.getMessage(),
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Add extra fields, masking anything that looks like a credential
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if _is_sensitive(key):
                value = REDACTED
            log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(app):
    """Setup logging for the application."""
    log_level = str(app.config.get('LOG_LEVEL', 'INFO')).upper()
    log_format = app.config.get('LOG_FORMAT', 'json')
    formatter = 'json' if log_format == 'json' else 'standard'

    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'json': {
                '()': JSONFormatter
            }
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'level': log_level,
                'formatter': formatter,
            },
        },
        'loggers': {
            '': {  # Root logger
                'handlers': ['console'],
                'level': log_level,
            },
            'gigauth': {
                'level': log_level,
                'handlers': ['console'],
                'propagate': False
            },
            'werkzeug': {
                'level': 'WARNING',
                'handlers': ['console'],
                'propagate': False
            }
        }
    })

    app.logger.info(f"Logging set up with level {log_level}")
