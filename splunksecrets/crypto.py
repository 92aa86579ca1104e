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

import json
import re
import secrets
from typing import List, NamedTuple

from cryptography import x509
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization

from .error import ValidationError

_CRYPTO_BACKEND = default_backend()
PEM_BLOCK_PATTERN = re.compile(r'-----BEGIN ([A-Z0-9 ]+)-----\r?\n.*?\r?\n-----END \1-----', re.DOTALL)


class CertBundle(NamedTuple):
    certificate: str = ''
    private_key: str = ''
    ca_chain: List[str] = []


def get_random_bytes(length):
    return secrets.token_bytes(length)


def split_pem_blocks(pem):   # type: (str) -> List[re.Match]
    return list(PEM_BLOCK_PATTERN.finditer(pem or ''))


def load_certificate(pem_certificate):   # type: (str) -> x509.Certificate
    try:
        return x509.load_pem_x509_certificate(pem_certificate.encode('utf-8'), _CRYPTO_BACKEND)
    except ValueError as e:
        raise ValidationError(f'error parsing certificate: {e}')


def load_private_key(pem_private_key):
    try:
        return serialization.load_pem_private_key(pem_private_key.encode('utf-8'), None, _CRYPTO_BACKEND)
    except (ValueError, TypeError) as e:
        raise ValidationError(f'error parsing private key: {e}')


def is_ca_certificate(certificate):   # type: (x509.Certificate) -> bool
    try:
        constraints = certificate.extensions.get_extension_for_class(x509.BasicConstraints)
    except x509.ExtensionNotFound:
        return False
    return constraints.value.ca


def parse_pem_bundle(pem_bundle):   # type: (str) -> CertBundle
    """Splits a concatenated PEM bundle into client certificate, private key and CA chain.

    The first certificate that is not a CA certificate is the client certificate.
    """
    certificate = ''
    private_key = ''
    ca_chain = []
    blocks = split_pem_blocks(pem_bundle)
    if not blocks:
        raise ValidationError('no data found in PEM bundle')
    for block in blocks:
        block_type = block.group(1)
        block_text = block.group(0)
        if block_type.endswith('PRIVATE KEY'):
            if private_key:
                raise ValidationError('more than one private key given; provide only one private key in the bundle')
            load_private_key(block_text)
            private_key = block_text
        elif block_type == 'CERTIFICATE':
            cert = load_certificate(block_text)
            if not certificate and not is_ca_certificate(cert):
                certificate = block_text
            else:
                ca_chain.append(block_text)
        else:
            raise ValidationError(f'unsupported PEM block: "{block_type}"')
    if certificate and not private_key:
        raise ValidationError('found certificate for TLS authentication but no private key')
    return CertBundle(certificate=certificate, private_key=private_key, ca_chain=ca_chain)


def parse_pki_json(pem_json):   # type: (str) -> CertBundle
    """Reads the JSON output of a PKI certificate issuing command"""
    try:
        data = json.loads(pem_json)
    except ValueError as e:
        raise ValidationError(f'could not parse given JSON: {e}')
    if not isinstance(data, dict):
        raise ValidationError('could not parse given JSON: object expected')
    if isinstance(data.get('data'), dict):
        data = data['data']

    parts = []
    for key in ('private_key', 'certificate', 'issuing_ca'):
        value = data.get(key)
        if isinstance(value, str) and value:
            parts.append(value)
    chain = data.get('ca_chain')
    if isinstance(chain, list):
        parts.extend(x for x in chain if isinstance(x, str) and x and x not in parts)
    if not parts:
        raise ValidationError('no data found in PEM JSON')
    return parse_pem_bundle('\n'.join(parts))


def parse_ca_certificates(pem):   # type: (str) -> List[str]
    result = []
    for block in split_pem_blocks(pem):
        if block.group(1) != 'CERTIFICATE':
            raise ValidationError(f'unsupported PEM block in CA certificates: "{block.group(1)}"')
        load_certificate(block.group(0))
        result.append(block.group(0))
    if not result:
        raise ValidationError('no certificates found in "root_ca"')
    return result
