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

import sqlite3
import threading
from typing import Callable, List, Optional

from .types import IKeyValueStorage, StorageEntry

TABLE_NAME = 'KeyValue'


def verify_database(connection):   # type: (sqlite3.Connection) -> None
    connection.execute(
        f'CREATE TABLE IF NOT EXISTS {TABLE_NAME} ('
        'owner TEXT NOT NULL, key TEXT NOT NULL, value BLOB NOT NULL, '
        'PRIMARY KEY (owner, key))')
    connection.commit()


class SqliteKeyValueStorage(IKeyValueStorage):
    """Key-value storage in one SQLite table; owner separates engine instances sharing a file"""

    def __init__(self, get_connection, owner='default', close_connections=None):
        # type: (Callable[[], sqlite3.Connection], str, Optional[Callable[[], None]]) -> None
        self.get_connection = get_connection
        self.owner = owner
        self.close_connections = close_connections
        self._lock = threading.Lock()
        verify_database(self.get_connection())

    @classmethod
    def open(cls, file_path, owner='default'):   # type: (str, str) -> SqliteKeyValueStorage
        """One connection per thread; close() closes the connections of every thread"""
        local = threading.local()
        lock = threading.Lock()
        opened = []   # type: List[sqlite3.Connection]

        def get_connection():
            connection = getattr(local, 'connection', None)
            if connection is None:
                connection = sqlite3.connect(file_path, timeout=30, check_same_thread=False)
                local.connection = connection
                with lock:
                    opened.append(connection)
            return connection

        def close_connections():
            with lock:
                connections = list(opened)
                opened.clear()
            for connection in connections:
                connection.close()

        return cls(get_connection, owner, close_connections)

    def get(self, key):   # type: (str) -> Optional[StorageEntry]
        row = self.get_connection().execute(
            f'SELECT value FROM {TABLE_NAME} WHERE owner=? AND key=?', (self.owner, key)).fetchone()
        if row is None:
            return None
        return StorageEntry(key, bytes(row[0]))

    def put(self, entry):
        with self._lock:
            connection = self.get_connection()
            connection.execute(
                f'INSERT OR REPLACE INTO {TABLE_NAME} (owner, key, value) VALUES (?, ?, ?)',
                (self.owner, entry.key, sqlite3.Binary(entry.value)))
            connection.commit()

    def delete(self, key):
        with self._lock:
            connection = self.get_connection()
            connection.execute(f'DELETE FROM {TABLE_NAME} WHERE owner=? AND key=?', (self.owner, key))
            connection.commit()

    def keys(self):
        rows = self.get_connection().execute(
            f'SELECT key FROM {TABLE_NAME} WHERE owner=? ORDER BY key', (self.owner,))
        return [x[0] for x in rows]

    def close(self):
        if self.close_connections is not None:
            self.close_connections()
        else:
            self.get_connection().close()
