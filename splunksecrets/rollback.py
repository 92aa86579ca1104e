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
from typing import Any, Callable, Dict, List, Optional

from .error import Error
from .logger import get_logger
from .storage import IKeyValueStorage, StorageEntry
from .utils import current_time, generate_uuid

WAL_PREFIX = 'wal/'
WAL_TYPE_CONNECTION = 'connection'
# longer than any request that may still hold a connection captured before a config write
WAL_ROLLBACK_MIN_AGE = 5 * 60

logger = get_logger('rollback')


@dataclass
class WALEntry:
    id: str
    kind: str
    data: Dict[str, Any] = field(default_factory=dict)
    created_at: float = 0.0

    def to_dict(self):   # type: () -> Dict[str, Any]
        return asdict(self)

    @classmethod
    def from_dict(cls, data):   # type: (Dict[str, Any]) -> WALEntry
        return cls(id=data.get('id') or '', kind=data.get('kind') or '',
                   data=data.get('data') or {}, created_at=float(data.get('created_at') or 0))


class RollbackLog:
    """Persisted queue of deferred cleanup actions.

    Entries are appended when a change is about to be stored and consumed by
    a periodic sweep once they are older than the minimum age.  A handler
    that raises leaves its entry in place for the next sweep.
    """

    def __init__(self, storage, min_age=WAL_ROLLBACK_MIN_AGE):   # type: (IKeyValueStorage, int) -> None
        self.storage = storage
        self.min_age = min_age

    def append(self, kind, data, now=None):   # type: (str, Dict[str, Any], Optional[float]) -> str
        entry = WALEntry(id=generate_uuid(), kind=kind, data=dict(data),
                         created_at=current_time() if now is None else now)
        self.storage.put(StorageEntry.from_json(WAL_PREFIX + entry.id, entry.to_dict()))
        return entry.id

    def get(self, wal_id):   # type: (str) -> Optional[WALEntry]
        raw = self.storage.get(WAL_PREFIX + wal_id)
        if raw is None:
            return None
        return WALEntry.from_dict(raw.json())

    def delete(self, wal_id):   # type: (str) -> None
        self.storage.delete(WAL_PREFIX + wal_id)

    def entries(self):   # type: () -> List[WALEntry]
        result = []
        for key in self.storage.list(WAL_PREFIX):
            if key.endswith('/'):
                continue
            entry = self.get(key)
            if entry:
                result.append(entry)
        result.sort(key=lambda x: x.created_at)
        return result

    def sweep(self, handler, now=None, min_age=None):
        # type: (Callable[[WALEntry], None], Optional[float], Optional[int]) -> int
        """Hands every entry older than min_age to handler and deletes it. Returns the number consumed."""
        now = current_time() if now is None else now
        min_age = self.min_age if min_age is None else min_age
        consumed = 0
        for entry in self.entries():
            if now - entry.created_at < min_age:
                continue
            try:
                handler(entry)
            except Error as e:
                logger.warning('Rollback of WAL entry %s (%s) failed: %s', entry.id, entry.kind, e)
                continue
            self.delete(entry.id)
            consumed += 1
        if consumed:
            logger.debug('Consumed %d WAL entries', consumed)
        return consumed
