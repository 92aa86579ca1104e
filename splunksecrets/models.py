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

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional, Union

from .generator import PasswordSpec, default_password_spec
from .identifiers import USER_ID_SCHEME_UUID4
from .utils import comma_string_list, parse_duration

DEFAULT_USER_PREFIX = 'vault'
DEFAULT_CONNECT_TIMEOUT = 30
DEFAULT_TLS_MIN_VERSION = 'tls12'
MASKED_VALUE = 'n/a'


def _known_fields(cls, data):   # type: (type, Dict[str, Any]) -> Dict[str, Any]
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class ConnectionConfig:
    id: str = ''
    username: str = ''
    password: str = ''
    url: str = ''
    allowed_roles: List[str] = field(default_factory=list)
    verify: bool = True
    insecure_tls: bool = False
    certificate: str = ''
    private_key: str = ''
    ca_chain: List[str] = field(default_factory=list)
    root_ca: List[str] = field(default_factory=list)
    tls_min_version: str = DEFAULT_TLS_MIN_VERSION
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT

    def to_dict(self):   # type: () -> Dict[str, Any]
        return asdict(self)

    @classmethod
    def from_dict(cls, data):   # type: (Dict[str, Any]) -> ConnectionConfig
        config = cls(**_known_fields(cls, data))
        config.allowed_roles = list(config.allowed_roles or [])
        config.ca_chain = list(config.ca_chain or [])
        config.root_ca = list(config.root_ca or [])
        config.connect_timeout = parse_duration(config.connect_timeout)
        return config

    def to_response_data(self):   # type: () -> Dict[str, Any]
        data = self.to_dict()
        data['password'] = MASKED_VALUE
        data['private_key'] = MASKED_VALUE
        return data

    def to_minimal_response_data(self):   # type: () -> Dict[str, Any]
        return {
            'id': self.id,
            'username': self.username,
            'url': self.url,
        }


@dataclass
class RoleConfig:
    connection: str = ''
    default_ttl: int = 0
    max_ttl: int = 0
    password_spec: PasswordSpec = field(default_factory=default_password_spec)
    allowed_server_roles: List[str] = field(default_factory=lambda: ['*'])
    user_prefix: str = DEFAULT_USER_PREFIX
    user_id_scheme: str = USER_ID_SCHEME_UUID4

    # Splunk user attributes
    roles: List[str] = field(default_factory=list)
    default_app: str = ''
    email: str = ''
    tz: str = ''

    def to_dict(self):   # type: () -> Dict[str, Any]
        data = asdict(self)
        data['password_spec'] = self.password_spec.to_dict()
        return data

    @classmethod
    def from_dict(cls, data):   # type: (Dict[str, Any]) -> RoleConfig
        values = _known_fields(cls, data)
        values['password_spec'] = PasswordSpec.from_dict(values.get('password_spec'))
        role = cls(**values)
        role.roles = list(role.roles or [])
        role.allowed_server_roles = list(role.allowed_server_roles or [])
        role.default_ttl = parse_duration(role.default_ttl)
        role.max_ttl = parse_duration(role.max_ttl)
        return role

    def to_response_data(self):   # type: () -> Dict[str, Any]
        return self.to_dict()


@dataclass
class ConnectionUpdate:
    """Fields of a connection write request; None means the field was not supplied"""
    username: Optional[str] = None
    password: Optional[str] = None
    url: Optional[str] = None
    allowed_roles: Union[str, List[str], None] = None
    verify: Optional[bool] = None
    insecure_tls: Optional[bool] = None
    tls_min_version: Optional[str] = None
    pem_bundle: Optional[str] = None
    pem_json: Optional[str] = None
    root_ca: Optional[str] = None
    connect_timeout: Union[int, str, None] = None


@dataclass
class RoleUpdate:
    """Fields of a role write request; None means the field was not supplied"""
    connection: Optional[str] = None
    roles: Union[str, List[str], None] = None
    default_ttl: Union[int, str, None] = None
    max_ttl: Union[int, str, None] = None
    password_spec: Union[PasswordSpec, Dict[str, Any], None] = None
    allowed_server_roles: Union[str, List[str], None] = None
    user_prefix: Optional[str] = None
    user_id_scheme: Optional[str] = None
    default_app: Optional[str] = None
    email: Optional[str] = None
    tz: Optional[str] = None


def merge_connection(config, update):   # type: (ConnectionConfig, ConnectionUpdate) -> ConnectionConfig
    """Applies the supplied plain fields of a write request; TLS material is handled by the caller"""
    if update.username is not None:
        config.username = update.username
    if update.password is not None:
        config.password = update.password
    if update.url is not None:
        config.url = update.url
    if update.allowed_roles is not None:
        config.allowed_roles = comma_string_list(update.allowed_roles)
    if update.verify is not None:
        config.verify = bool(update.verify)
    if update.insecure_tls is not None:
        config.insecure_tls = bool(update.insecure_tls)
    if update.tls_min_version is not None:
        config.tls_min_version = update.tls_min_version
    if update.connect_timeout is not None:
        config.connect_timeout = parse_duration(update.connect_timeout)
    return config


def merge_role(role, update):   # type: (RoleConfig, RoleUpdate) -> RoleConfig
    if update.connection is not None:
        role.connection = update.connection
    if update.roles is not None:
        role.roles = comma_string_list(update.roles)
    if update.default_ttl is not None:
        role.default_ttl = parse_duration(update.default_ttl)
    if update.max_ttl is not None:
        role.max_ttl = parse_duration(update.max_ttl)
    if update.password_spec is not None:
        if isinstance(update.password_spec, PasswordSpec):
            role.password_spec = PasswordSpec(**asdict(update.password_spec))
        else:
            role.password_spec = PasswordSpec.from_dict(update.password_spec)
    if update.allowed_server_roles is not None:
        role.allowed_server_roles = comma_string_list(update.allowed_server_roles)
    if update.user_prefix is not None:
        role.user_prefix = update.user_prefix
    if update.user_id_scheme is not None:
        role.user_id_scheme = update.user_id_scheme
    if update.default_app is not None:
        role.default_app = update.default_app
    if update.email is not None:
        role.email = update.email
    if update.tz is not None:
        role.tz = update.tz
    return role
