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

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

from ..context import RequestContext
from ..error import RemoteAPIError, RemoteAuthFailure
from ..logger import get_logger
from .client import APIParams, Client

SEARCH_PEER_FIELDS = ('host', 'host_fqdn', 'server_roles')

logger = get_logger('splunk')


def _content(entry):   # type: (Dict[str, Any]) -> Dict[str, Any]
    content = entry.get('content')
    return content if isinstance(content, dict) else {}


def _str_list(value):   # type: (Any) -> List[str]
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, list):
        return [x for x in value if isinstance(x, str)]
    return []


@dataclass
class LoginResponse:
    session_key: str


@dataclass
class UserEntry:
    name: str = ''
    roles: List[str] = field(default_factory=list)
    default_app: str = ''
    email: str = ''
    realname: str = ''
    tz: str = ''
    type: str = ''

    @classmethod
    def from_entry(cls, entry):   # type: (Dict[str, Any]) -> UserEntry
        content = _content(entry)
        return cls(name=entry.get('name') or '',
                   roles=_str_list(content.get('roles')),
                   default_app=content.get('defaultApp') or '',
                   email=content.get('email') or '',
                   realname=content.get('realname') or '',
                   tz=content.get('tz') or '',
                   type=content.get('type') or '')


@dataclass
class ServerInfoEntry:
    name: str = ''
    host: str = ''
    host_fqdn: str = ''
    server_roles: List[str] = field(default_factory=list)
    server_name: str = ''
    version: str = ''
    guid: str = ''

    @classmethod
    def from_entry(cls, entry):   # type: (Dict[str, Any]) -> ServerInfoEntry
        content = _content(entry)
        return cls(name=entry.get('name') or '',
                   host=content.get('host') or '',
                   host_fqdn=content.get('host_fqdn') or '',
                   server_roles=_str_list(content.get('server_roles')),
                   server_name=content.get('serverName') or '',
                   version=content.get('version') or '',
                   guid=content.get('guid') or '')


def _form(fields):   # type: (Sequence[Tuple[str, Any]]) -> List[Tuple[str, str]]
    """Form body; empty values are left out and lists become repeated keys"""
    form = []
    for key, value in fields:
        if value is None or value == '' or value == []:
            continue
        if isinstance(value, bool):
            form.append((key, 'true' if value else 'false'))
        elif isinstance(value, (list, tuple)):
            form.extend((key, str(x)) for x in value)
        else:
            form.append((key, str(value)))
    return form


@dataclass
class CreateUserOptions:
    name: str
    password: str = ''
    roles: List[str] = field(default_factory=list)
    default_app: str = ''
    email: str = ''
    realname: str = ''
    tz: str = ''
    force_change_pass: Optional[bool] = None
    create_role: Optional[bool] = None

    def to_form(self):   # type: () -> List[Tuple[str, str]]
        return _form([('name', self.name), ('password', self.password), ('roles', self.roles),
                      ('defaultApp', self.default_app), ('email', self.email), ('realname', self.realname),
                      ('tz', self.tz), ('force-change-pass', self.force_change_pass),
                      ('createrole', self.create_role)])


@dataclass
class UpdateUserOptions:
    password: str = ''
    old_password: str = ''
    roles: List[str] = field(default_factory=list)
    default_app: str = ''
    email: str = ''
    realname: str = ''
    tz: str = ''
    force_change_pass: Optional[bool] = None

    def to_form(self):   # type: () -> List[Tuple[str, str]]
        return _form([('password', self.password), ('oldpassword', self.old_password), ('roles', self.roles),
                      ('defaultApp', self.default_app), ('email', self.email), ('realname', self.realname),
                      ('tz', self.tz), ('force-change-pass', self.force_change_pass)])


class Authentication:
    def __init__(self, client):   # type: (Client) -> None
        self.client = client

    def login(self, username, password, ctx=None):
        # type: (str, str, Optional[RequestContext]) -> LoginResponse
        body = self.client.execute('POST', 'auth/login', ctx=ctx, authenticated=False,
                                   data={'username': username, 'password': password})
        session_key = body.get('sessionKey') if isinstance(body, dict) else None
        if not session_key:
            raise RemoteAuthFailure('splunk: login response contains no session key')
        logger.debug('Logged in to %s as "%s"', self.client.params.base_url, username)
        return LoginResponse(session_key=session_key)


class Users:
    PATH = 'authentication/users'

    def __init__(self, client):   # type: (Client) -> None
        self.client = client

    def _user_path(self, name):
        return f'{self.PATH}/{quote(name, safe="")}'

    def list(self, ctx=None):   # type: (Optional[RequestContext]) -> List[UserEntry]
        return [UserEntry.from_entry(x) for x in self.client.receive('GET', self.PATH, ctx=ctx)]

    def get(self, name, ctx=None):   # type: (str, Optional[RequestContext]) -> Optional[UserEntry]
        entries = self.client.receive('GET', self._user_path(name), ctx=ctx)
        return UserEntry.from_entry(entries[0]) if entries else None

    def create(self, options, ctx=None):   # type: (CreateUserOptions, Optional[RequestContext]) -> UserEntry
        entries = self.client.receive('POST', self.PATH, ctx=ctx, data=options.to_form())
        if not entries:
            raise RemoteAPIError(f'ERROR splunk: user "{options.name}" was not returned after create')
        return UserEntry.from_entry(entries[0])

    def update(self, name, options, ctx=None):
        # type: (str, UpdateUserOptions, Optional[RequestContext]) -> Optional[UserEntry]
        entries = self.client.receive('POST', self._user_path(name), ctx=ctx, data=options.to_form())
        return UserEntry.from_entry(entries[0]) if entries else None

    def delete(self, name, ctx=None):   # type: (str, Optional[RequestContext]) -> None
        self.client.receive('DELETE', self._user_path(name), ctx=ctx)


class Deployment:
    def __init__(self, client):   # type: (Client) -> None
        self.client = client

    def search_peers(self, fields=None, ctx=None):
        # type: (Optional[Sequence[str]], Optional[RequestContext]) -> List[ServerInfoEntry]
        query = [('f', x) for x in fields] if fields else None
        entries = self.client.receive('GET', 'search/distributed/peers', ctx=ctx, query=query)
        return [ServerInfoEntry.from_entry(x) for x in entries]


class Introspection:
    def __init__(self, client):   # type: (Client) -> None
        self.client = client

    def server_info(self, ctx=None):   # type: (Optional[RequestContext]) -> List[ServerInfoEntry]
        return [ServerInfoEntry.from_entry(x) for x in self.client.receive('GET', 'server/info', ctx=ctx)]


class SplunkAPI:
    """Splunk management API bound to one set of admin credentials.

    Nothing is sent on construction; the first call logs in.
    """

    def __init__(self, params, session=None):   # type: (APIParams, Any) -> None
        self.params = params
        self.client = Client(params, self._login, session)
        self.authentication = Authentication(self.client)
        self.users = Users(self.client)
        self.deployment = Deployment(self.client)
        self.introspection = Introspection(self.client)

    def _login(self, ctx):   # type: (Optional[RequestContext]) -> str
        return self.authentication.login(self.params.username, self.params.password, ctx=ctx).session_key

    @property
    def base_url(self):   # type: () -> str
        return self.params.base_url

    def close(self):
        self.client.close()
