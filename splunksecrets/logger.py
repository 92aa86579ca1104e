#  _  __
# | |/ /___ ___ _ __  ___ _ _ ®
# | ' </ -_) -_) '_ \/ -_) '_|
# |_|\_\___\___| .__/\___|_|
#              |_|
#
# Keeper Splunk Secrets Engine
# Copyright 2025 Keeper Security Inc.
# Contact: ops@keepersecurity.com
#

import logging
import re
import sys
from enum import Enum
from functools import wraps
from typing import Any, Callable, Optional

from . import __logging_format__

LOGGER_NAME = 'splunk_secrets'


class LogLevel(Enum):
    ERROR = logging.ERROR
    WARNING = logging.WARNING
    DEBUG = logging.DEBUG
    INFO = logging.INFO


def get_logger(name=None):   # type: (Optional[str]) -> logging.Logger
    if name:
        return logging.getLogger(f'{LOGGER_NAME}.{name}')
    return logging.getLogger(LOGGER_NAME)


def parse_log_level(level):   # type: (Any) -> LogLevel
    if isinstance(level, LogLevel):
        return level
    name = str(level or 'INFO').upper()
    if name not in LogLevel.__members__:
        raise ValueError(f'invalid log level: "{level}"')
    return LogLevel[name]


def configure_logging(enabled=True, level=LogLevel.INFO):   # type: (bool, Any) -> logging.Logger
    root = get_logger()
    if not enabled:
        root.disabled = True
        return root

    root.disabled = False
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(__logging_format__, datefmt='%Y-%m-%d %H:%M:%S')
        handler.setFormatter(formatter)
        root.addHandler(handler)
        # engine records must not show up twice in the host's log
        root.propagate = False
    root.setLevel(parse_log_level(level).value)
    return root


def debug_decorator(fn: Callable) -> Callable:
    """Debug decorator - only active when logging level is DEBUG"""
    log = get_logger(fn.__module__.rsplit('.', 1)[-1])

    @wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        if log.isEnabledFor(logging.DEBUG):
            args_repr = [repr(a) for a in args]
            kwargs_repr = [f'{k}={v!r}' for k, v in kwargs.items()]
            signature = ', '.join(args_repr + kwargs_repr)
            log.debug('Call: %s(%s)', fn.__name__, sanitize_debug_data(signature))

        value = fn(*args, **kwargs)

        if log.isEnabledFor(logging.DEBUG):
            log.debug('Return: %s -> %s', fn.__name__, sanitize_debug_data(repr(value)))
        return value
    return wrapper


def sanitize_debug_data(data: str) -> str:
    """Sanitize sensitive data from debug output."""
    if not data:
        return data

    patterns = [
        (r"""(['"]?password['"]?\s*[:=]\s*)(['"])[^'"]*\2""", r'\1\2***\2'),
        (r"""(['"]?(old_?password|session_?key|private_key)['"]?\s*[:=]\s*)(['"])[^'"]*\3""", r'\1\3***\3'),
        (r'password=[^\s,)&]*', 'password=***'),
        (r'Splunk [0-9A-Za-z^_=+/]{16,}', 'Splunk ***'),
    ]
    sanitized = data
    for pattern, replacement in patterns:
        sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)
    return sanitized
