from unittest import TestCase, mock

from helper import FakeSplunk, add_connection, api_error, create_backend
from splunksecrets.error import RemoteAPIError, RemoteAuthFailure, RotationInconsistency


class TestRotateRoot(TestCase):
    def setUp(self):
        self.splunk = FakeSplunk()
        self.backend = create_backend(self.splunk)
        self.config = add_connection(self.backend)

    def test_rotate_twice(self):
        rs = self.backend.rotate_root('splunk')
        self.assertEqual(rs, {'username': 'admin'})
        first = self.backend.config_store.require_connection('splunk')
        self.assertNotEqual(first.password, 'changeme')
        self.assertNotEqual(first.id, self.config.id)

        self.backend.rotate_root('splunk')
        second = self.backend.config_store.require_connection('splunk')
        self.assertNotEqual(second.password, first.password)
        self.assertNotEqual(second.id, first.id)

        self.splunk.login('admin', second.password)
        with self.assertRaises(RemoteAuthFailure):
            self.splunk.login('admin', first.password)
        with self.assertRaises(RemoteAuthFailure):
            self.splunk.login('admin', 'changeme')

    def test_old_connection_scheduled_for_eviction(self):
        self.backend.rotate_root('splunk')
        entries = self.backend.wal.entries()
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].kind, 'connection')
        self.assertEqual(entries[0].data, {'ID': self.config.id})
        self.assertIsNotNone(self.backend.cache.get(self.config.id))

    def test_remote_failure_changes_nothing(self):
        self.splunk.fail_update = api_error('Password does not meet requirements')
        with self.assertRaises(RemoteAPIError):
            self.backend.rotate_root('splunk')
        stored = self.backend.config_store.require_connection('splunk')
        self.assertEqual(stored.id, self.config.id)
        self.assertEqual(stored.password, 'changeme')
        self.assertEqual(self.backend.wal.entries(), [])
        self.assertEqual(self.splunk.passwords['admin'], 'changeme')

    def test_store_failure_is_inconsistency(self):
        storage = self.backend.storage
        put = storage.put

        def failing_put(entry):
            if entry.key.startswith('config/'):
                raise IOError('disk full')
            put(entry)

        with mock.patch.object(storage, 'put', side_effect=failing_put):
            with self.assertLogs('splunk_secrets.rotate', level='ERROR'):
                with self.assertRaises(RotationInconsistency) as context:
                    self.backend.rotate_root('splunk')

        error = context.exception
        self.assertEqual(error.connection, 'splunk')
        self.assertEqual(error.username, 'admin')
        self.assertTrue(str(error).startswith('FATAL'))
        self.assertIn('disk full', str(error))
        self.assertNotEqual(self.splunk.passwords['admin'], 'changeme')
        self.assertEqual(self.backend.config_store.require_connection('splunk').password, 'changeme')
        self.assertEqual(self.backend.wal.entries(), [])
