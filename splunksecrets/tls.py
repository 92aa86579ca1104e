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

import os
import ssl
import tempfile

from requests.adapters import HTTPAdapter

from .error import InvalidTLSVersion, ValidationError
from .models import ConnectionConfig

TLS_MIN_VERSIONS = {
    'tls10': ssl.TLSVersion.TLSv1,
    'tls11': ssl.TLSVersion.TLSv1_1,
    'tls12': ssl.TLSVersion.TLSv1_2,
    'tls13': ssl.TLSVersion.TLSv1_3,
}


def validate_tls_min_version(version):   # type: (str) -> str
    if version not in TLS_MIN_VERSIONS:
        raise InvalidTLSVersion(version)
    return version


def load_client_certificate(context, certificate, private_key):
    # type: (ssl.SSLContext, str, str) -> None
    # load_cert_chain only accepts file names
    fd, file_name = tempfile.mkstemp(suffix='.pem')
    try:
        with os.fdopen(fd, 'w') as f:
            f.write(certificate.strip() + '\n' + private_key.strip() + '\n')
        context.load_cert_chain(file_name)
    except ssl.SSLError as e:
        raise ValidationError(f'error loading client certificate: {e}')
    finally:
        os.remove(file_name)


def build_ssl_context(config):   # type: (ConnectionConfig) -> ssl.SSLContext
    min_version = TLS_MIN_VERSIONS.get(config.tls_min_version)
    if min_version is None:
        raise InvalidTLSVersion(config.tls_min_version)

    if config.root_ca:
        # root_ca replaces the system trust store
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    else:
        context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    context.minimum_version = min_version

    if config.insecure_tls:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    ca_certificates = list(config.root_ca or []) + list(config.ca_chain or [])
    if ca_certificates:
        try:
            context.load_verify_locations(cadata='\n'.join(ca_certificates))
        except ssl.SSLError as e:
            raise ValidationError(f'error loading CA certificates: {e}')

    if config.certificate:
        if not config.private_key:
            raise ValidationError('found certificate for TLS authentication but no private key')
        load_client_certificate(context, config.certificate, config.private_key)

    return context


class SSLContextAdapter(HTTPAdapter):
    """Transport adapter that connects with a prepared SSL context"""

    def __init__(self, ssl_context, **kwargs):
        self.ssl_context = ssl_context
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        kwargs['ssl_context'] = self.ssl_context
        return super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, *args, **kwargs):
        kwargs['ssl_context'] = self.ssl_context
        return super().proxy_manager_for(*args, **kwargs)
