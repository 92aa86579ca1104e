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

import secrets
import string
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

from Cryptodome.Random.random import shuffle

from .error import Error
from .logger import get_logger
from .utils import generate_uuid

DEFAULT_PASSWORD_LENGTH = 32
# mostly shell-safe set
PW_SPECIAL_CHARACTERS = '_&^%$#@!'


@dataclass
class PasswordSpec:
    length: int = DEFAULT_PASSWORD_LENGTH
    num_digits: int = 4
    num_symbols: int = 4
    allow_upper: bool = True
    allow_repeat: bool = True

    def to_dict(self):   # type: () -> Dict[str, Any]
        return asdict(self)

    @classmethod
    def from_dict(cls, data):   # type: (Optional[Dict[str, Any]]) -> PasswordSpec
        spec = cls()
        if isinstance(data, dict):
            for key in ('length', 'num_digits', 'num_symbols'):
                if key in data and data[key] is not None:
                    setattr(spec, key, int(data[key]))
            for key in ('allow_upper', 'allow_repeat'):
                if key in data and data[key] is not None:
                    setattr(spec, key, bool(data[key]))
        return spec

    def validate(self):
        if self.length <= 0:
            raise Error('password length must be positive')
        if self.num_digits < 0 or self.num_symbols < 0:
            raise Error('number of digits and symbols cannot be negative')
        if self.num_digits + self.num_symbols > self.length:
            raise Error('number of digits and symbols exceeds password length')


def default_password_spec():   # type: () -> PasswordSpec
    return PasswordSpec()


class SplunkPasswordGenerator:
    def __init__(self, spec=None, special_characters=PW_SPECIAL_CHARACTERS):
        # type: (Optional[PasswordSpec], str) -> None
        self.spec = spec or default_password_spec()
        self.spec.validate()

        letters = string.ascii_lowercase
        if self.spec.allow_upper:
            letters += string.ascii_uppercase
        letter_count = self.spec.length - self.spec.num_digits - self.spec.num_symbols
        self.category_map = [
            (self.spec.num_symbols, special_characters),
            (self.spec.num_digits, string.digits),
            (letter_count, letters),
        ]   # type: List[Tuple[int, str]]

        if not self.spec.allow_repeat:
            for count, chars in self.category_map:
                if count > len(chars):
                    raise Error(f'Cannot pick {count} unique characters out of {len(chars)}')

    def generate(self):   # type: () -> str
        password_list = []
        for count, chars in self.category_map:
            if count <= 0:
                continue
            if self.spec.allow_repeat:
                password_list.extend(secrets.choice(chars) for _ in range(count))
            else:
                pool = list(chars)
                shuffle(pool)
                password_list.extend(pool[:count])
        shuffle(password_list)
        return ''.join(password_list)


def generate_password(spec=None):   # type: (Optional[PasswordSpec]) -> str
    return SplunkPasswordGenerator(spec).generate()


def generate_password_or_token(spec=None):   # type: (Optional[PasswordSpec]) -> str
    """Password per spec; a random UUID when the spec cannot be satisfied"""
    try:
        return generate_password(spec)
    except Error as e:
        get_logger('generator').warning(
            'Password generation failed (%s), falling back to random token', e)
        return generate_uuid()
