from unittest import TestCase

from helper import FakeSplunk, add_connection, api_error, create_backend
from splunksecrets.error import Error, RemoteAPIError, RoleNotFound
from splunksecrets.leases import Secret
from splunksecrets.models import RoleUpdate


class TestLeases(TestCase):
    def setUp(self):
        self.splunk = FakeSplunk()
        self.splunk.add_peer('sh-1', 'sh-1.example.com', ['search_head'])
        self.backend = create_backend(self.splunk)
        add_connection(self.backend)
        self.backend.write_role('dev', RoleUpdate(connection='splunk', roles='user',
                                                  default_ttl=600, max_ttl=3600))

    def test_revoke(self):
        first = self.backend.issue_credentials('dev')
        second = self.backend.issue_credentials('dev')
        self.backend.revoke(first)
        self.assertNotIn(first.data['username'], self.splunk.users)
        self.assertIn(second.data['username'], self.splunk.users)
        self.assertIn('admin', self.splunk.users)

    def test_revoke_without_cached_connection(self):
        secret = self.backend.issue_credentials('dev')
        self.backend.cache.clear()
        self.backend.revoke(Secret.from_dict(secret.to_dict()))
        self.assertNotIn(secret.data['username'], self.splunk.users)
        self.assertEqual(len(self.splunk.apis), 2)

    def test_revoke_node(self):
        secret = self.backend.issue_credentials('dev', node_fqdn='sh-1')
        self.backend.revoke(secret)
        self.assertNotIn(secret.data['username'], self.splunk.users)
        node_api = self.splunk.apis[-1]
        self.assertEqual(node_api.base_url, 'http://sh-1.example.com:8089')
        self.assertEqual(node_api.deleted, [secret.data['username']])
        self.assertTrue(node_api.closed)

    def test_revoke_missing_username(self):
        with self.assertRaises(Error):
            self.backend.revoke(Secret(internal_data={'connection': 'splunk'}))

    def test_revoke_remote_error(self):
        secret = self.backend.issue_credentials('dev')
        self.backend.revoke(secret)
        with self.assertRaises(RemoteAPIError):
            self.backend.revoke(secret)

    def test_renew(self):
        secret = self.backend.issue_credentials('dev')
        renewed = self.backend.renew(secret, increment=0, now=secret.issue_time + 100)
        self.assertEqual(renewed.ttl, 600)
        self.assertEqual(renewed.max_ttl, 3600)
        self.assertEqual(renewed.warnings, [])
        self.assertEqual(renewed.data, secret.data)

        renewed = self.backend.renew(secret, increment=1200, now=secret.issue_time + 100)
        self.assertEqual(renewed.ttl, 1200)

    def test_renew_capped_by_max_ttl(self):
        secret = self.backend.issue_credentials('dev')
        renewed = self.backend.renew(secret, increment=1200, now=secret.issue_time + 3000)
        self.assertEqual(renewed.ttl, 600)
        self.assertEqual(len(renewed.warnings), 1)

        renewed = self.backend.renew(secret, now=secret.issue_time + 3600)
        self.assertEqual(renewed.ttl, 0)
        self.assertEqual(len(renewed.warnings), 1)

    def test_renew_probe_failure(self):
        secret = self.backend.issue_credentials('dev')
        self.splunk.fail_server_info = api_error('Service unavailable')
        renewed = self.backend.renew(secret, now=secret.issue_time)
        self.assertEqual(renewed.ttl, 600)
        self.assertEqual(len(renewed.warnings), 1)
        self.assertIn('Service unavailable', renewed.warnings[0])
        self.assertIn(secret.data['username'], self.splunk.users)

        renewed = self.backend.renew(secret, probe=False, now=secret.issue_time)
        self.assertEqual(renewed.warnings, [])

    def test_renew_unknown_role(self):
        secret = self.backend.issue_credentials('dev')
        self.backend.delete_role('dev')
        with self.assertRaises(RoleNotFound):
            self.backend.renew(secret)
