import os
import shutil
import sqlite3
import tempfile
import threading
from unittest import TestCase, mock

from splunksecrets.storage import InMemoryKeyValueStorage, SqliteKeyValueStorage, StorageEntry


class _StorageTests:
    def create_storage(self):
        raise NotImplementedError()

    def test_get_put_delete(self):
        storage = self.create_storage()
        self.assertIsNone(storage.get('config/splunk'))
        storage.put(StorageEntry.from_json('config/splunk', {'url': 'https://splunk:8089'}))
        self.assertEqual(storage.get('config/splunk').json(), {'url': 'https://splunk:8089'})
        storage.put(StorageEntry('config/splunk', b'{}'))
        self.assertEqual(storage.get('config/splunk').json(), {})
        storage.delete('config/splunk')
        self.assertIsNone(storage.get('config/splunk'))
        storage.delete('config/splunk')

    def test_list(self):
        storage = self.create_storage()
        for key in ('config/a', 'config/b', 'config/nested/c', 'roles/dev', 'wal/1'):
            storage.put(StorageEntry(key, b'1'))
        self.assertEqual(storage.list('config/'), ['a', 'b', 'nested/'])
        self.assertEqual(storage.list('roles/'), ['dev'])
        self.assertEqual(storage.list(''), ['config/', 'roles/', 'wal/'])
        self.assertEqual(storage.list('missing/'), [])


class TestInMemoryStorage(_StorageTests, TestCase):
    def create_storage(self):
        return InMemoryKeyValueStorage()


class TestSqliteStorage(_StorageTests, TestCase):
    def setUp(self):
        self.directory = tempfile.mkdtemp()
        self.file_path = os.path.join(self.directory, 'engine.sqlite')
        self.opened = []

    def tearDown(self):
        for storage in self.opened:
            storage.close()
        shutil.rmtree(self.directory, ignore_errors=True)

    def create_storage(self, owner='default'):
        storage = SqliteKeyValueStorage.open(self.file_path, owner)
        self.opened.append(storage)
        return storage

    def test_persistent(self):
        storage = self.create_storage()
        storage.put(StorageEntry.from_json('roles/dev', {'roles': ['user']}))
        storage.close()
        self.opened.remove(storage)

        storage = self.create_storage()
        self.assertEqual(storage.get('roles/dev').json(), {'roles': ['user']})

    def test_owner(self):
        first = self.create_storage('first')
        second = self.create_storage('second')
        first.put(StorageEntry('roles/dev', b'1'))
        self.assertIsNone(second.get('roles/dev'))
        self.assertEqual(second.list('roles/'), [])

    def test_threads(self):
        storage = self.create_storage()

        def worker(index):
            storage.put(StorageEntry(f'wal/{index}', b'1'))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5)
        self.assertEqual(len(storage.list('wal/')), 8)

    def test_close_connections_of_all_threads(self):
        connections = []
        connect = sqlite3.connect

        def tracking_connect(*args, **kwargs):
            connection = connect(*args, **kwargs)
            connections.append(connection)
            return connection

        with mock.patch('sqlite3.connect', side_effect=tracking_connect):
            storage = self.create_storage()
            threads = [threading.Thread(target=storage.get, args=('config/splunk',)) for _ in range(3)]
            for t in threads:
                t.start()
            for t in threads:
                t.join(5)
        self.assertEqual(len(connections), 4)

        storage.close()
        for connection in connections:
            with self.assertRaises(sqlite3.ProgrammingError):
                connection.execute('SELECT 1')
