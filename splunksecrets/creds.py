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

from typing import Any, Optional

from .context import RequestContext
from .error import PermissionDenied
from .generator import generate_password_or_token
from .identifiers import generate_user_id
from .leases import Secret
from .logger import get_logger
from .models import DEFAULT_USER_PREFIX, RoleConfig
from .nodes import connect_node
from .splunk import CreateUserOptions
from .utils import current_time, is_allowed, sanitize_display_name

logger = get_logger('creds')


def format_username(role, display_name, user_id):   # type: (RoleConfig, str, str) -> str
    """<prefix>_<display name>_<id> for the default prefix, <prefix>_<id> otherwise"""
    if role.user_prefix == DEFAULT_USER_PREFIX:
        name = sanitize_display_name(display_name)
        if name:
            return f'{role.user_prefix}_{name}_{user_id}'
    return f'{role.user_prefix}_{user_id}'


def issue_credentials(backend, role_name, node_fqdn=None, ctx=None):
    # type: (Any, str, Optional[str], Optional[RequestContext]) -> Secret
    role = backend.config_store.require_role(role_name)
    config = backend.config_store.require_connection(role.connection)
    if not is_allowed(config.allowed_roles, role_name):
        raise PermissionDenied(f'"{role_name}" is not an allowed role for connection "{role.connection}"')

    user_id = generate_user_id(role.user_id_scheme)
    password = generate_password_or_token(role.password_spec)
    username = format_username(role, ctx.display_name if ctx else '', user_id)
    options = CreateUserOptions(name=username, password=password, roles=list(role.roles),
                                default_app=role.default_app, email=role.email, tz=role.tz)

    if node_fqdn:
        api, _ = connect_node(backend, config, node_fqdn, role.allowed_server_roles, ctx=ctx)
        try:
            api.users.create(options, ctx=ctx)
        finally:
            api.close()
    else:
        api = backend.ensure_connection(config)
        api.users.create(options, ctx=ctx)

    logger.info('Created user "%s" for role "%s"', username, role_name)
    internal_data = {
        'username': username,
        'role': role_name,
        'connection': role.connection,
    }
    if node_fqdn:
        internal_data['node_fqdn'] = node_fqdn
    return Secret(
        data={
            'username': username,
            'password': password,
            'roles': list(role.roles),
            'connection': role.connection,
            'url': api.base_url,
        },
        internal_data=internal_data,
        ttl=role.default_ttl,
        max_ttl=role.max_ttl,
        issue_time=current_time())
