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

import base58

from . import crypto
from .error import InvalidUserIDScheme
from .utils import generate_uuid

# roles written before schemes were introduced carry an empty value
USER_ID_SCHEME_UUID4_LEGACY = ''
USER_ID_SCHEME_UUID4 = 'uuid4'
USER_ID_SCHEME_BASE58_64 = 'base58-64'
USER_ID_SCHEME_BASE58_128 = 'base58-128'

USER_ID_SCHEMES = (USER_ID_SCHEME_UUID4_LEGACY, USER_ID_SCHEME_UUID4,
                   USER_ID_SCHEME_BASE58_64, USER_ID_SCHEME_BASE58_128)


def format_short_uuid(data):   # type: (bytes) -> str
    return base58.b58encode(data).decode('ascii')


def generate_short_uuid(size):   # type: (int) -> str
    return format_short_uuid(crypto.get_random_bytes(size))


def validate_user_id_scheme(scheme):   # type: (str) -> str
    if scheme not in USER_ID_SCHEMES:
        raise InvalidUserIDScheme(scheme)
    return scheme


def generate_user_id(scheme):   # type: (str) -> str
    if scheme in (USER_ID_SCHEME_UUID4_LEGACY, USER_ID_SCHEME_UUID4):
        return generate_uuid()
    if scheme == USER_ID_SCHEME_BASE58_64:
        return generate_short_uuid(8)
    if scheme == USER_ID_SCHEME_BASE58_128:
        return generate_short_uuid(16)
    raise InvalidUserIDScheme(scheme)
