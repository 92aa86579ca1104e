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
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from .logger import get_logger

T = TypeVar('T')
logger = get_logger('cache')


class _PendingSlot:
    """Creation in progress: other callers for the same key wait on it"""
    def __init__(self):
        self.done = threading.Event()
        self.value = None   # type: Any
        self.error = None   # type: Optional[BaseException]


class ConnectionCache(Generic[T]):
    """Live connections keyed by connection configuration id.

    get_or_create runs the factory at most once per key at a time.  The lock
    only guards the dictionaries, so building one connection never blocks
    lookups or creation of another.
    """

    def __init__(self):   # type: () -> None
        self._lock = threading.Lock()
        self._entries = {}    # type: Dict[str, T]
        self._pending = {}    # type: Dict[str, _PendingSlot]

    def get(self, key):   # type: (str) -> Optional[T]
        with self._lock:
            return self._entries.get(key)

    def get_or_create(self, key, factory):   # type: (str, Callable[[], T]) -> T
        with self._lock:
            value = self._entries.get(key)
            if value is not None:
                return value
            slot = self._pending.get(key)
            owner = slot is None
            if owner:
                slot = _PendingSlot()
                self._pending[key] = slot

        if not owner:
            slot.done.wait()
            if slot.error is not None:
                raise slot.error
            return slot.value

        try:
            value = factory()
        except BaseException as e:
            with self._lock:
                self._pending.pop(key, None)
            slot.error = e
            slot.done.set()
            raise

        with self._lock:
            self._entries[key] = value
            self._pending.pop(key, None)
        slot.value = value
        slot.done.set()
        logger.debug('Connection "%s" created', key)
        return value

    def invalidate(self, key):   # type: (str) -> Optional[T]
        """Removes the entry and returns it; the caller owns the evicted value"""
        with self._lock:
            value = self._entries.pop(key, None)
        if value is not None:
            logger.debug('Connection "%s" evicted', key)
        return value

    def keys(self):   # type: () -> List[str]
        with self._lock:
            return list(self._entries)

    def clear(self):   # type: () -> None
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)
