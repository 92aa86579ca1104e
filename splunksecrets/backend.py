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

from typing import Any, Callable, Dict, List, Optional

from . import connections, creds, leases, roles, rotate
from .cache import ConnectionCache
from .config_store import ConfigStore
from .context import RequestContext
from .error import Error
from .leases import Secret
from .logger import configure_logging, get_logger
from .models import ConnectionConfig, ConnectionUpdate, RoleUpdate
from .params import EngineSettings, create_storage, load_settings
from .rollback import RollbackLog, WALEntry, WAL_TYPE_CONNECTION
from .splunk import APIParams, SplunkAPI
from .storage import IKeyValueStorage
from .tls import build_ssl_context

logger = get_logger('backend')

ApiFactory = Callable[[APIParams], SplunkAPI]


def default_api_factory(params):   # type: (APIParams) -> SplunkAPI
    return params.new_api()


class Backend:
    """Splunk secrets engine instance.

    Owns the storage, the rollback log and the connection cache.  Every
    handler is a plain method; callers pass a RequestContext where the
    request can be cancelled or carries the caller's display name.
    """

    def __init__(self, storage=None, settings=None, api_factory=None):
        # type: (Optional[IKeyValueStorage], Optional[EngineSettings], Optional[ApiFactory]) -> None
        self.settings = settings or EngineSettings()
        self.storage = storage if storage is not None else create_storage(self.settings)
        self.wal = RollbackLog(self.storage, self.settings.rollback_min_age)
        self.config_store = ConfigStore(self.storage, self.wal)
        self.cache = ConnectionCache()   # type: ConnectionCache[SplunkAPI]
        self.api_factory = api_factory or default_api_factory

    @classmethod
    def from_settings_file(cls, file_path, api_factory=None):   # type: (str, Optional[ApiFactory]) -> Backend
        settings = load_settings(file_path)
        configure_logging(settings.logging_enabled, settings.log_level)
        return cls(settings=settings, api_factory=api_factory)

    def api_params(self, config, base_url=None):   # type: (ConnectionConfig, Optional[str]) -> APIParams
        url = base_url or config.url
        return APIParams(
            base_url=url,
            username=config.username,
            password=config.password,
            user_agent=self.settings.user_agent,
            token_ttl=self.settings.token_ttl,
            timeout=config.connect_timeout or self.settings.default_connect_timeout,
            ssl_context=build_ssl_context(config) if url.lower().startswith('https:') else None,
            verify=not config.insecure_tls)

    def new_connection(self, config, base_url=None):   # type: (ConnectionConfig, Optional[str]) -> SplunkAPI
        """Connection that is not cached; the caller closes it"""
        return self.api_factory(self.api_params(config, base_url))

    def ensure_connection(self, config):   # type: (ConnectionConfig) -> SplunkAPI
        if not config.id:
            raise Error('connection configuration has no id')
        return self.cache.get_or_create(config.id, lambda: self.new_connection(config))

    def connection(self, name):   # type: (str) -> SplunkAPI
        return self.ensure_connection(self.config_store.require_connection(name))

    def clear_connection(self, config_id):   # type: (str) -> bool
        """Evicts and closes the cached connection of a configuration id"""
        api = self.cache.invalidate(config_id)
        if api is None:
            return False
        api.close()
        return True

    def _rollback(self, entry):   # type: (WALEntry) -> None
        if entry.kind != WAL_TYPE_CONNECTION:
            raise Error('unknown type to rollback')
        config_id = entry.data.get('ID')
        try:
            self.clear_connection(config_id)
        except Exception as e:
            logger.warning('Could not evict connection %s: %s', config_id, e)

    def rollback_sweep(self, now=None):   # type: (Optional[float]) -> int
        return self.wal.sweep(self._rollback, now=now)

    def close(self):   # type: () -> None
        for config_id in self.cache.keys():
            self.clear_connection(config_id)
        self.cache.clear()
        self.storage.close()

    def write_connection(self, name, update, create=None):
        # type: (str, ConnectionUpdate, Optional[bool]) -> Dict[str, Any]
        return connections.write_connection(self, name, update, create)

    def read_connection(self, name):   # type: (str) -> Dict[str, Any]
        return connections.read_connection(self, name)

    def delete_connection(self, name):   # type: (str) -> None
        connections.delete_connection(self, name)

    def list_connections(self):   # type: () -> List[str]
        return connections.list_connections(self)

    def reset_connection(self, name):   # type: (str) -> None
        connections.reset_connection(self, name)

    def write_role(self, name, update):   # type: (str, RoleUpdate) -> Dict[str, Any]
        return roles.write_role(self, name, update)

    def read_role(self, name):   # type: (str) -> Dict[str, Any]
        return roles.read_role(self, name)

    def delete_role(self, name):   # type: (str) -> None
        roles.delete_role(self, name)

    def list_roles(self):   # type: () -> List[str]
        return roles.list_roles(self)

    def rotate_root(self, name, ctx=None):   # type: (str, Optional[RequestContext]) -> Dict[str, Any]
        return rotate.rotate_root(self, name, ctx=ctx)

    def issue_credentials(self, role_name, node_fqdn=None, ctx=None):
        # type: (str, Optional[str], Optional[RequestContext]) -> Secret
        return creds.issue_credentials(self, role_name, node_fqdn=node_fqdn, ctx=ctx)

    def renew(self, secret, increment=0, probe=True, ctx=None, now=None):
        # type: (Secret, int, bool, Optional[RequestContext], Optional[float]) -> Secret
        return leases.renew(self, secret, increment=increment, probe=probe, ctx=ctx, now=now)

    def revoke(self, secret, ctx=None):   # type: (Secret, Optional[RequestContext]) -> None
        leases.revoke(self, secret, ctx=ctx)
