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

from typing import List, Optional


class Error(Exception):
    """Base class for exceptions in this module."""
    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class ValidationError(Error):
    """Request data was rejected before anything was stored or sent"""
    pass


class EmptyRequiredField(ValidationError):
    def __init__(self, field, message=None):
        super().__init__(message or f'missing or empty "{field}" parameter')
        self.field = field


class InvalidUserIDScheme(ValidationError):
    def __init__(self, scheme):
        super().__init__(f'invalid user_id_scheme: "{scheme}"')
        self.scheme = scheme


class InvalidTLSVersion(ValidationError):
    def __init__(self, version):
        super().__init__(f'invalid "tls_min_version" in config: "{version}"')
        self.version = version


class PermissionDenied(ValidationError):
    pass


class NodeRoleNotAllowed(PermissionDenied):
    def __init__(self, node, roles):
        super().__init__(f'host "{node}" has no allowed server role: {", ".join(roles) or "none"}')
        self.node = node
        self.roles = roles


class NotFoundError(Error):
    def __init__(self, name, message):
        super().__init__(message)
        self.name = name


class ConfigNotFound(NotFoundError):
    def __init__(self, name):
        super().__init__(name, f'connection configuration not found: "{name}"')


class RoleNotFound(NotFoundError):
    def __init__(self, name):
        super().__init__(name, f'role not found: "{name}"')


class NodeNotFound(NotFoundError):
    def __init__(self, name):
        super().__init__(name, f'host "{name}" not found')


class APIErrorMessage:
    def __init__(self, type='', text='', code=''):    # type: (str, str, str) -> None
        self.type = type
        self.text = text
        self.code = code

    @classmethod
    def from_dict(cls, data):
        return cls(type=data.get('type') or '', text=data.get('text') or '', code=data.get('code') or '')

    def __repr__(self):
        return f'APIErrorMessage(type={self.type!r}, text={self.text!r}, code={self.code!r})'


class RemoteAPIError(Error):
    """Exception raised with failed Splunk API request
    """

    def __init__(self, message, messages=None, status_code=None):
        # type: (str, Optional[List[APIErrorMessage]], Optional[int]) -> None
        super().__init__(message)
        self.messages = messages or []
        self.status_code = status_code

    @classmethod
    def from_messages(cls, messages, status_code=None):
        # type: (List[APIErrorMessage], Optional[int]) -> 'RemoteAPIError'
        first = messages[0]
        return cls(f'{first.type} splunk: {first.text}', messages, status_code)

    @property
    def code(self):
        return self.messages[0].code if self.messages else ''


class RemoteAuthFailure(RemoteAPIError):
    pass


class RotationInconsistency(Error):
    """The remote root password changed but the new configuration was not stored.

    Nothing is retried or undone: the operator has to reset the admin password
    in Splunk and rewrite the connection configuration.
    """

    def __init__(self, connection, username, cause):
        super().__init__(
            f'FATAL: password of "{username}" was changed in Splunk, but connection configuration '
            f'"{connection}" could not be saved: {cause}')
        self.connection = connection
        self.username = username
        self.cause = cause


class ConfigError(Error):
    pass


class RequestCancelled(Error):
    """The caller cancelled the request or its deadline passed before a remote call"""
    pass
