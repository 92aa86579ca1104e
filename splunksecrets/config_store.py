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

from typing import List, Optional

from .error import ConfigNotFound, EmptyRequiredField, RoleNotFound
from .models import ConnectionConfig, RoleConfig
from .rollback import RollbackLog, WAL_TYPE_CONNECTION
from .storage import IKeyValueStorage, StorageEntry
from .utils import generate_uuid

CONFIG_PREFIX = 'config/'
ROLE_PREFIX = 'roles/'


def _require_name(name, field='name'):
    if not name:
        raise EmptyRequiredField(field)
    return name


class ConfigStore:
    def __init__(self, storage, wal):   # type: (IKeyValueStorage, RollbackLog) -> None
        self.storage = storage
        self.wal = wal

    def load_connection(self, name):   # type: (str) -> Optional[ConnectionConfig]
        entry = self.storage.get(CONFIG_PREFIX + _require_name(name))
        if entry is None:
            return None
        return ConnectionConfig.from_dict(entry.json())

    def require_connection(self, name):   # type: (str) -> ConnectionConfig
        config = self.load_connection(name)
        if config is None:
            raise ConfigNotFound(name)
        return config

    def store_connection(self, name, config):   # type: (str, ConnectionConfig) -> ConnectionConfig
        """Saves config under a fresh id.

        A cached connection for the previous id cannot be dropped right away:
        a request still in flight may put it back.  A WAL entry removes it
        once the rollback minimum age has passed.
        """
        _require_name(name)
        old_id = config.id
        wal_id = None
        if old_id:
            wal_id = self.wal.append(WAL_TYPE_CONNECTION, {'ID': old_id})

        config.id = generate_uuid()
        try:
            self.storage.put(StorageEntry.from_json(CONFIG_PREFIX + name, config.to_dict()))
        except Exception:
            config.id = old_id
            if wal_id:
                self.wal.delete(wal_id)
            raise
        return config

    def delete_connection(self, name):   # type: (str) -> None
        self.storage.delete(CONFIG_PREFIX + _require_name(name))

    def list_connections(self):   # type: () -> List[str]
        return [x for x in self.storage.list(CONFIG_PREFIX) if not x.endswith('/')]

    def load_role(self, name):   # type: (str) -> Optional[RoleConfig]
        entry = self.storage.get(ROLE_PREFIX + _require_name(name))
        if entry is None:
            return None
        return RoleConfig.from_dict(entry.json())

    def require_role(self, name):   # type: (str) -> RoleConfig
        role = self.load_role(name)
        if role is None:
            raise RoleNotFound(name)
        return role

    def store_role(self, name, role):   # type: (str, RoleConfig) -> RoleConfig
        self.storage.put(StorageEntry.from_json(ROLE_PREFIX + _require_name(name), role.to_dict()))
        return role

    def delete_role(self, name):   # type: (str) -> None
        self.storage.delete(ROLE_PREFIX + _require_name(name))

    def list_roles(self):   # type: () -> List[str]
        return [x for x in self.storage.list(ROLE_PREFIX) if not x.endswith('/')]
