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

import abc
import json
from typing import Any, Iterable, List, Optional


class StorageEntry:
    def __init__(self, key, value):   # type: (str, bytes) -> None
        self.key = key
        self.value = value

    @classmethod
    def from_json(cls, key, obj):   # type: (str, Any) -> StorageEntry
        return cls(key, json.dumps(obj, sort_keys=True).encode('utf-8'))

    def json(self):   # type: () -> Any
        return json.loads(self.value.decode('utf-8'))

    def __repr__(self):
        return f'StorageEntry(key={self.key!r}, size={len(self.value)})'


class IKeyValueStorage(abc.ABC):
    """Durable storage collaborator. Implementations serialize concurrent access themselves."""

    @abc.abstractmethod
    def get(self, key: str) -> Optional[StorageEntry]:
        pass

    @abc.abstractmethod
    def put(self, entry: StorageEntry) -> None:
        pass

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abc.abstractmethod
    def keys(self) -> Iterable[str]:
        pass

    def list(self, prefix: str) -> List[str]:
        """Immediate children of prefix; nested keys are reported once as "<child>/"."""
        children = set()
        for key in self.keys():
            if not key.startswith(prefix):
                continue
            rest = key[len(prefix):]
            if not rest:
                continue
            slash = rest.find('/')
            children.add(rest if slash < 0 else rest[:slash + 1])
        return sorted(children)

    def close(self) -> None:
        pass
