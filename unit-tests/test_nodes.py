from unittest import TestCase

from splunksecrets.error import NodeNotFound, NodeRoleNotAllowed
from splunksecrets.nodes import match_node, node_url
from splunksecrets.splunk import ServerInfoEntry

PEERS = [
    ServerInfoEntry(name='idm-i-074b0895939212e99.foo.example.com', host='idm-i-074b0895939212e99',
                    host_fqdn='idm-i-074b0895939212e99.foo.example.com',
                    server_roles=['indexer', 'license_master', 'kv_store']),
    ServerInfoEntry(name='idx-i-0b8b16d8a6d26b3a8.foo.example.com', host='idx-i-0b8b16d8a6d26b3a8',
                    host_fqdn='idx-i-0b8b16d8a6d26b3a8.foo.example.com',
                    server_roles=['indexer', 'cluster_slave']),
    ServerInfoEntry(name='sh-i-0a12fdd509c2a2954.foo.example.com', host='sh-i-0a12fdd509c2a2954',
                    host_fqdn='sh-i-0a12fdd509c2a2954.foo.example.com',
                    server_roles=['cluster_search_head', 'search_head', 'kv_store']),
]


class TestMatchNode(TestCase):
    def test_first_and_last(self):
        node = match_node('idm-i-074b0895939212e99.foo.example.com', PEERS, ['*'])
        self.assertIs(node, PEERS[0])
        node = match_node('sh-i-0a12fdd509c2a2954.foo.example.com', PEERS, ['*'])
        self.assertIs(node, PEERS[2])

    def test_case_insensitive(self):
        node = match_node('SH-I-0A12FDD509C2A2954.FOO.EXAMPLE.COM', PEERS, ['*'])
        self.assertIs(node, PEERS[2])

    def test_short_name(self):
        node = match_node('SH-I-0A12FDD509C2A2954', PEERS, ['*'])
        self.assertIs(node, PEERS[2])

    def test_not_found(self):
        with self.assertRaises(NodeNotFound) as context:
            match_node('unknown-host', PEERS, ['*'])
        self.assertEqual(str(context.exception), 'host "unknown-host" not found')
        with self.assertRaises(NodeNotFound):
            match_node('', PEERS, ['*'])

    def test_server_roles(self):
        with self.assertRaises(NodeRoleNotAllowed):
            match_node('sh-i-0a12fdd509c2a2954.foo.example.com', PEERS, ['unknown-role'])
        with self.assertRaises(NodeRoleNotAllowed):
            match_node('sh-i-0a12fdd509c2a2954.foo.example.com', PEERS, [])

        node = match_node('sh-i-0a12fdd509c2a2954.foo.example.com', PEERS, ['cluster_search_head'])
        self.assertIs(node, PEERS[2])
        node = match_node('sh-i-0a12fdd509c2a2954.foo.example.com', PEERS, ['unknown_role', 'kv_store'])
        self.assertIs(node, PEERS[2])
        node = match_node('idx-i-0b8b16d8a6d26b3a8', PEERS, ['cluster_*'])
        self.assertIs(node, PEERS[1])

    def test_no_role_check(self):
        node = match_node('idx-i-0b8b16d8a6d26b3a8', PEERS)
        self.assertIs(node, PEERS[1])


class TestNodeUrl(TestCase):
    def test_host_replaced(self):
        self.assertEqual(node_url('https://master.example.com:8089', PEERS[2]),
                         'https://sh-i-0a12fdd509c2a2954.foo.example.com:8089')

    def test_short_host_fallback(self):
        node = ServerInfoEntry(host='sh-1', host_fqdn='')
        self.assertEqual(node_url('https://master.example.com:8089', node), 'https://sh-1:8089')
        self.assertEqual(node_url('https://master.example.com', node), 'https://sh-1')
