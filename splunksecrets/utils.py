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

import re
import time
import uuid
from typing import Iterable, List, Optional, Union

from .error import ValidationError

DURATION_PATTERN = re.compile(r'^\s*(\d+)\s*([smhd]?)\s*$')
DURATION_UNITS = {'': 1, 's': 1, 'm': 60, 'h': 3600, 'd': 86400}
DISPLAY_NAME_PATTERN = re.compile(r'[^A-Za-z0-9_.\-]')


def current_time():   # type: () -> float
    return time.time()


def generate_uuid():   # type: () -> str
    return str(uuid.uuid4())


def str_list_contains(items, value):   # type: (Optional[Iterable[str]], str) -> bool
    return bool(items) and any(x == value for x in items)


def glob_match(pattern, value):   # type: (str, str) -> bool
    """Only "*" is a wildcard; "?" and brackets match themselves"""
    regex = '.*'.join(re.escape(x) for x in pattern.split('*'))
    return re.fullmatch(regex, value, flags=re.DOTALL) is not None


def str_list_contains_glob(patterns, value):   # type: (Optional[Iterable[str]], str) -> bool
    if not patterns:
        return False
    return any(glob_match(x, value) for x in patterns)


def is_allowed(patterns, value):   # type: (Optional[Iterable[str]], str) -> bool
    """"*" allows everything, otherwise one of the glob patterns has to match"""
    return str_list_contains(patterns, '*') or str_list_contains_glob(patterns, value)


def comma_string_list(value):   # type: (Union[str, Iterable[str], None]) -> List[str]
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(',')
    else:
        items = list(value)
    return [x.strip() for x in items if isinstance(x, str) and x.strip()]


def parse_duration(value):   # type: (Union[int, float, str, None]) -> int
    """Duration in whole seconds: 90, "90", "90s", "15m", "2h", "1d"."""
    if value is None or value == '':
        return 0
    if isinstance(value, bool):
        raise ValidationError(f'invalid duration: {value!r}')
    if isinstance(value, (int, float)):
        if value < 0:
            raise ValidationError(f'invalid duration: {value!r}')
        return int(value)
    match = DURATION_PATTERN.match(str(value))
    if not match:
        raise ValidationError(f'invalid duration: "{value}"')
    return int(match.group(1)) * DURATION_UNITS[match.group(2)]


def sanitize_display_name(display_name):   # type: (Optional[str]) -> str
    if not display_name:
        return ''
    return DISPLAY_NAME_PATTERN.sub('-', display_name.strip())
