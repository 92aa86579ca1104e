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

from typing import Any, Dict, List

from .error import EmptyRequiredField, Error, ValidationError
from .identifiers import validate_user_id_scheme
from .logger import debug_decorator, get_logger
from .models import RoleConfig, RoleUpdate, merge_role

logger = get_logger('roles')


@debug_decorator
def validate_role(role):   # type: (RoleConfig) -> RoleConfig
    if not role.connection:
        raise EmptyRequiredField('connection')
    if not role.roles:
        raise ValidationError('roles cannot be empty')
    if not role.user_prefix:
        raise ValidationError("user_prefix can't be set to empty string")
    validate_user_id_scheme(role.user_id_scheme)
    if role.default_ttl and role.max_ttl and role.max_ttl < role.default_ttl:
        raise ValidationError('"max_ttl" cannot be less than "default_ttl"')
    try:
        role.password_spec.validate()
    except Error as e:
        raise ValidationError(f'invalid password_spec: {e}')
    return role


def write_role(backend, name, update):   # type: (Any, str, RoleUpdate) -> Dict[str, Any]
    if not name:
        raise EmptyRequiredField('name')
    role = backend.config_store.load_role(name) or RoleConfig()
    role = validate_role(merge_role(role, update))
    backend.config_store.store_role(name, role)
    logger.info('Role "%s" saved', name)
    return role.to_response_data()


def read_role(backend, name):   # type: (Any, str) -> Dict[str, Any]
    return backend.config_store.require_role(name).to_response_data()


def delete_role(backend, name):   # type: (Any, str) -> None
    backend.config_store.delete_role(name)
    logger.info('Role "%s" deleted', name)


def list_roles(backend):   # type: (Any) -> List[str]
    return backend.config_store.list_roles()
