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

from .types import IKeyValueStorage, StorageEntry
from .in_memory import InMemoryKeyValueStorage
from .sqlite import SqliteKeyValueStorage
