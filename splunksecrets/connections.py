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

from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from . import crypto
from .error import ConfigNotFound, EmptyRequiredField, ValidationError
from .logger import get_logger
from .models import ConnectionConfig, ConnectionUpdate, merge_connection
from .tls import build_ssl_context, validate_tls_min_version

logger = get_logger('connections')


def _apply_tls_material(config, update):   # type: (ConnectionConfig, ConnectionUpdate) -> None
    bundle = None
    if update.pem_json:
        bundle = crypto.parse_pki_json(update.pem_json)
    elif update.pem_bundle:
        bundle = crypto.parse_pem_bundle(update.pem_bundle)
    if bundle is not None:
        config.certificate = bundle.certificate
        config.private_key = bundle.private_key
        config.ca_chain = list(bundle.ca_chain)
    if update.root_ca:
        config.root_ca = crypto.parse_ca_certificates(update.root_ca)


def validate_connection(config):   # type: (ConnectionConfig) -> ConnectionConfig
    if not config.username:
        raise EmptyRequiredField('username', 'empty username')
    if not config.url:
        raise EmptyRequiredField('url', 'empty URL')
    url = urlsplit(config.url)
    if url.scheme not in ('http', 'https') or not url.hostname:
        raise ValidationError(f'invalid URL: "{config.url}"')
    if not config.allowed_roles:
        raise EmptyRequiredField('allowed_roles', 'allowed_roles cannot be empty')
    validate_tls_min_version(config.tls_min_version)
    if config.connect_timeout <= 0:
        raise ValidationError('"connect_timeout" must be positive')
    if url.scheme == 'https':
        build_ssl_context(config)
    return config


def write_connection(backend, name, update, create=None):
    # type: (Any, str, ConnectionUpdate, Optional[bool]) -> Dict[str, Any]
    """Creates or updates connection "name"; the stored config always gets a new id"""
    if not name:
        raise EmptyRequiredField('name')
    existing = backend.config_store.load_connection(name)
    if create is None:
        create = existing is None
    if not create and existing is None:
        raise ConfigNotFound(name)

    if create:
        config = ConnectionConfig(tls_min_version=backend.settings.default_tls_min_version,
                                  connect_timeout=backend.settings.default_connect_timeout)
        if existing is not None:
            # the cached connection of the replaced config still has to be evicted
            config.id = existing.id
    else:
        config = existing

    merge_connection(config, update)
    _apply_tls_material(config, update)
    validate_connection(config)

    backend.config_store.store_connection(name, config)
    logger.info('Connection "%s" saved', name)
    return config.to_minimal_response_data()


def read_connection(backend, name):   # type: (Any, str) -> Dict[str, Any]
    return backend.config_store.require_connection(name).to_response_data()


def delete_connection(backend, name):   # type: (Any, str) -> None
    config = backend.config_store.require_connection(name)
    backend.config_store.delete_connection(name)
    backend.clear_connection(config.id)
    logger.info('Connection "%s" deleted', name)


def list_connections(backend):   # type: (Any) -> List[str]
    return backend.config_store.list_connections()


def reset_connection(backend, name):   # type: (Any, str) -> None
    """Drops the cached session of a connection; the next call logs in again"""
    config = backend.config_store.require_connection(name)
    backend.clear_connection(config.id)
    logger.info('Connection "%s" reset', name)
