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

import json
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml

from . import __version__
from .error import ConfigError, ValidationError
from .logger import parse_log_level
from .storage import IKeyValueStorage, InMemoryKeyValueStorage, SqliteKeyValueStorage
from .utils import parse_duration

DEFAULT_ROLLBACK_MIN_AGE = 5 * 60
# Splunk drops idle sessions after an hour
DEFAULT_TOKEN_TTL = 45 * 60
STORAGE_MEMORY = 'memory'
SQLITE_PREFIX = 'sqlite:///'
TLS_VERSIONS = ('tls10', 'tls11', 'tls12', 'tls13')


@dataclass
class EngineSettings:
    rollback_min_age: int = DEFAULT_ROLLBACK_MIN_AGE
    token_ttl: int = DEFAULT_TOKEN_TTL
    default_connect_timeout: int = 30
    default_tls_min_version: str = 'tls12'
    storage: str = STORAGE_MEMORY
    log_level: str = 'INFO'
    logging_enabled: bool = True
    user_agent: str = f'splunk-secrets-engine/{__version__}'

    def validate(self):   # type: () -> EngineSettings
        try:
            self.rollback_min_age = parse_duration(self.rollback_min_age)
            self.token_ttl = parse_duration(self.token_ttl)
            self.default_connect_timeout = parse_duration(self.default_connect_timeout)
        except ValidationError as e:
            raise ConfigError(f'invalid engine settings: {e}')
        if self.token_ttl <= 0:
            raise ConfigError('token_ttl must be positive')
        if self.default_tls_min_version not in TLS_VERSIONS:
            raise ConfigError(f'invalid default_tls_min_version: "{self.default_tls_min_version}"')
        if self.storage != STORAGE_MEMORY and not self.storage.startswith(SQLITE_PREFIX):
            raise ConfigError(f'unsupported storage: "{self.storage}"')
        try:
            parse_log_level(self.log_level)
        except ValueError:
            raise ConfigError(f'invalid log_level: "{self.log_level}"')
        self.logging_enabled = bool(self.logging_enabled)
        return self

    @classmethod
    def from_dict(cls, data):   # type: (Optional[Dict[str, Any]]) -> EngineSettings
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError('engine settings must be a mapping')
        data = dict(data)
        section = data.pop('logging', None)
        if section is not None:
            if not isinstance(section, dict):
                raise ConfigError('"logging" must be a mapping')
            if 'enabled' in section:
                data.setdefault('logging_enabled', section['enabled'])
            if 'level' in section:
                data.setdefault('log_level', section['level'])
        names = {f.name for f in fields(cls)}
        unknown = sorted(k for k in data if k not in names)
        if unknown:
            raise ConfigError(f'unknown engine settings: {", ".join(unknown)}')
        return cls(**data).validate()


def load_settings(file_path):   # type: (str) -> EngineSettings
    if not os.path.isfile(file_path):
        raise ConfigError(f'settings file "{file_path}" not found')
    _, ext = os.path.splitext(file_path)
    ext = ext.lower()
    with open(file_path, 'r') as f:
        try:
            if ext == '.json':
                data = json.load(f)
            elif ext in ('.yaml', '.yml'):
                data = yaml.safe_load(f)
            else:
                raise ConfigError(f'unsupported settings file format: "{ext}"')
        except (ValueError, yaml.YAMLError) as e:
            raise ConfigError(f'cannot parse settings file "{file_path}": {e}')
    return EngineSettings.from_dict(data)


def create_storage(settings):   # type: (EngineSettings) -> IKeyValueStorage
    if settings.storage == STORAGE_MEMORY:
        return InMemoryKeyValueStorage()
    if settings.storage.startswith(SQLITE_PREFIX):
        file_path = settings.storage[len(SQLITE_PREFIX):]
        if not file_path:
            raise ConfigError('sqlite storage requires a file path')
        return SqliteKeyValueStorage.open(file_path)
    raise ConfigError(f'unsupported storage: "{settings.storage}"')
