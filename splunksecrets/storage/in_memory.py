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

import threading
from typing import Dict, Optional

from .types import IKeyValueStorage, StorageEntry


class InMemoryKeyValueStorage(IKeyValueStorage):
    def __init__(self) -> None:
        self._items: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key):   # type: (str) -> Optional[StorageEntry]
        with self._lock:
            value = self._items.get(key)
        return StorageEntry(key, value) if value is not None else None

    def put(self, entry):
        with self._lock:
            self._items[entry.key] = bytes(entry.value)

    def delete(self, key):
        with self._lock:
            self._items.pop(key, None)

    def keys(self):
        with self._lock:
            return list(self._items.keys())

    def clear(self):
        with self._lock:
            self._items.clear()
