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

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .context import RequestContext
from .error import Error, RequestCancelled
from .logger import get_logger
from .nodes import connect_node
from .utils import current_time

SECRET_CREDS_TYPE = 'creds'

logger = get_logger('leases')


@dataclass
class Secret:
    """Issued credentials.

    data goes to the caller; internal_data is kept by the lease manager and
    handed back on renew and revoke.
    """
    data: Dict[str, Any] = field(default_factory=dict)
    internal_data: Dict[str, Any] = field(default_factory=dict)
    ttl: int = 0
    max_ttl: int = 0
    issue_time: float = 0.0
    warnings: List[str] = field(default_factory=list)
    type: str = SECRET_CREDS_TYPE

    def to_dict(self):   # type: () -> Dict[str, Any]
        return asdict(self)

    @classmethod
    def from_dict(cls, data):   # type: (Dict[str, Any]) -> Secret
        return cls(data=dict(data.get('data') or {}),
                   internal_data=dict(data.get('internal_data') or {}),
                   ttl=int(data.get('ttl') or 0),
                   max_ttl=int(data.get('max_ttl') or 0),
                   issue_time=float(data.get('issue_time') or 0),
                   warnings=list(data.get('warnings') or []),
                   type=data.get('type') or SECRET_CREDS_TYPE)


def _internal(secret, key, required=True):   # type: (Secret, str, bool) -> Optional[str]
    value = secret.internal_data.get(key)
    if isinstance(value, str) and value:
        return value
    if required:
        raise Error(f'{key} is missing on the lease')
    return None


def renew(backend, secret, increment=0, probe=True, ctx=None, now=None):
    # type: (Any, Secret, int, bool, Optional[RequestContext], Optional[float]) -> Secret
    role_name = _internal(secret, 'role')
    role = backend.config_store.require_role(role_name)

    now = current_time() if now is None else now
    warnings = []
    ttl = max(int(increment or 0), role.default_ttl)
    if role.max_ttl > 0:
        remaining = int(secret.issue_time + role.max_ttl - now)
        if remaining <= 0:
            ttl = 0
            warnings.append('lease has reached its maximum TTL and cannot be extended')
        elif ttl > remaining:
            ttl = remaining
            warnings.append(f'TTL is capped at {remaining} seconds by the role\'s max_ttl')

    if probe:
        try:
            config = backend.config_store.require_connection(_internal(secret, 'connection'))
            backend.ensure_connection(config).introspection.server_info(ctx=ctx)
        except RequestCancelled:
            raise
        except Error as e:
            logger.warning('Connection check for lease of "%s" failed: %s',
                           secret.internal_data.get('username'), e)
            warnings.append(f'connection check failed: {e}')

    return Secret(data=dict(secret.data), internal_data=dict(secret.internal_data), ttl=ttl,
                  max_ttl=role.max_ttl, issue_time=secret.issue_time, warnings=warnings, type=secret.type)


def revoke(backend, secret, ctx=None):   # type: (Any, Secret, Optional[RequestContext]) -> None
    username = _internal(secret, 'username')
    config = backend.config_store.require_connection(_internal(secret, 'connection'))
    node_fqdn = _internal(secret, 'node_fqdn', required=False)

    if node_fqdn:
        api, _ = connect_node(backend, config, node_fqdn, ctx=ctx)
        try:
            api.users.delete(username, ctx=ctx)
        finally:
            api.close()
    else:
        backend.ensure_connection(config).users.delete(username, ctx=ctx)
    logger.info('Revoked user "%s" on connection "%s"', username, secret.internal_data.get('connection'))
