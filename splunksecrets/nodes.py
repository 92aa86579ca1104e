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

from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

from .context import RequestContext
from .error import NodeNotFound, NodeRoleNotAllowed
from .logger import debug_decorator, get_logger
from .splunk import SEARCH_PEER_FIELDS, ServerInfoEntry, SplunkAPI
from .utils import is_allowed

logger = get_logger('nodes')


@debug_decorator
def match_node(node_fqdn, peers, allowed_server_roles=None):
    # type: (str, Iterable[ServerInfoEntry], Optional[List[str]]) -> ServerInfoEntry
    """Finds the peer named node_fqdn, by short host name or FQDN, case-insensitive.

    When allowed_server_roles is given the peer must have at least one server
    role it allows.
    """
    wanted = (node_fqdn or '').strip().lower()
    if wanted:
        for peer in peers:
            names = {x.lower() for x in (peer.host, peer.host_fqdn) if x}
            if wanted not in names:
                continue
            if allowed_server_roles is not None:
                if not any(is_allowed(allowed_server_roles, x) for x in peer.server_roles):
                    raise NodeRoleNotAllowed(node_fqdn, peer.server_roles)
            return peer
    raise NodeNotFound(node_fqdn)


def node_url(base_url, node):   # type: (str, ServerInfoEntry) -> str
    """Connection URL with its host replaced by the node's"""
    parts = urlsplit(base_url)
    host = node.host_fqdn or node.host
    netloc = f'{host}:{parts.port}' if parts.port else host
    return urlunsplit((parts.scheme, netloc, parts.path, '', ''))


def find_node(api, node_fqdn, allowed_server_roles=None, ctx=None):
    # type: (SplunkAPI, str, Optional[List[str]], Optional[RequestContext]) -> ServerInfoEntry
    peers = api.deployment.search_peers(SEARCH_PEER_FIELDS, ctx=ctx)
    return match_node(node_fqdn, peers, allowed_server_roles)


def connect_node(backend, config, node_fqdn, allowed_server_roles=None, ctx=None):
    # type: (...) -> Tuple[SplunkAPI, ServerInfoEntry]
    """Opens an uncached connection to a search peer of the cluster behind config"""
    cluster = backend.ensure_connection(config)
    node = find_node(cluster, node_fqdn, allowed_server_roles, ctx=ctx)
    url = node_url(config.url, node)
    logger.debug('Connecting to node "%s" at %s', node_fqdn, url)
    return backend.new_connection(config, base_url=url), node
