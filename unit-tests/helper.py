import json
import threading
from typing import Dict, List, Optional
from unittest import mock

from splunksecrets.error import APIErrorMessage, RemoteAPIError, RemoteAuthFailure
from splunksecrets.splunk import APIParams, ServerInfoEntry, UserEntry


def api_error(text, type='ERROR'):
    return RemoteAPIError.from_messages([APIErrorMessage(type=type, text=text)], 400)


class FakeSplunk:
    """In-process Splunk deployment: users with passwords and a list of search peers"""

    def __init__(self, admin='admin', password='changeme'):
        self.lock = threading.Lock()
        self.passwords = {admin: password}     # type: Dict[str, str]
        self.users = {admin: UserEntry(name=admin, roles=['admin'])}    # type: Dict[str, UserEntry]
        self.user_hosts = {}     # type: Dict[str, str]
        self.peers = []     # type: List[ServerInfoEntry]
        self.logins = []    # type: List[str]
        self.apis = []      # type: List[FakeSplunkAPI]
        self.fail_update = None     # type: Optional[Exception]
        self.fail_server_info = None     # type: Optional[Exception]

    def login(self, username, password):
        with self.lock:
            self.logins.append(username)
            if self.passwords.get(username) != password or not password:
                raise RemoteAuthFailure.from_messages(
                    [APIErrorMessage(type='WARN', text='Login failed')], 401)
            return f'session-{username}-{len(self.logins)}'

    def add_peer(self, host, host_fqdn, server_roles):
        self.peers.append(ServerInfoEntry(name=host_fqdn, host=host, host_fqdn=host_fqdn,
                                          server_roles=list(server_roles)))

    def api_factory(self, params):   # type: (APIParams) -> FakeSplunkAPI
        api = FakeSplunkAPI(self, params)
        with self.lock:
            self.apis.append(api)
        return api


class _FakeService:
    def __init__(self, api):
        self.api = api
        self.splunk = api.splunk


class FakeUsers(_FakeService):
    def list(self, ctx=None):
        self.api.authenticate(ctx)
        return list(self.splunk.users.values())

    def create(self, options, ctx=None):
        self.api.authenticate(ctx)
        with self.splunk.lock:
            if options.name in self.splunk.users:
                raise api_error(f'User with name={options.name} already exists')
            user = UserEntry(name=options.name, roles=list(options.roles), default_app=options.default_app,
                             email=options.email, tz=options.tz)
            self.splunk.users[options.name] = user
            self.splunk.passwords[options.name] = options.password
            self.splunk.user_hosts[options.name] = self.api.base_url
        return user

    def update(self, name, options, ctx=None):
        self.api.authenticate(ctx)
        if self.splunk.fail_update is not None:
            raise self.splunk.fail_update
        with self.splunk.lock:
            if name not in self.splunk.users:
                raise api_error(f'Could not find object id={name}')
            if options.password:
                if options.old_password and self.splunk.passwords.get(name) != options.old_password:
                    raise api_error('Old password is incorrect')
                self.splunk.passwords[name] = options.password
        return self.splunk.users[name]

    def delete(self, name, ctx=None):
        self.api.authenticate(ctx)
        with self.splunk.lock:
            if name not in self.splunk.users:
                raise api_error(f'Could not find object id={name}')
            del self.splunk.users[name]
            self.splunk.passwords.pop(name, None)
            self.api.deleted.append(name)


class FakeDeployment(_FakeService):
    def search_peers(self, fields=None, ctx=None):
        self.api.authenticate(ctx)
        return list(self.splunk.peers)


class FakeIntrospection(_FakeService):
    def server_info(self, ctx=None):
        self.api.authenticate(ctx)
        if self.splunk.fail_server_info is not None:
            raise self.splunk.fail_server_info
        return [ServerInfoEntry(name='local', host='localhost', host_fqdn='localhost', server_roles=['search_head'])]


class FakeSplunkAPI:
    """Stands in for SplunkAPI; logs in lazily on the first call like the real client"""

    def __init__(self, splunk, params):   # type: (FakeSplunk, APIParams) -> None
        self.splunk = splunk
        self.params = params
        self.session_key = None
        self.closed = False
        self.deleted = []
        self.users = FakeUsers(self)
        self.deployment = FakeDeployment(self)
        self.introspection = FakeIntrospection(self)

    @property
    def base_url(self):
        return self.params.base_url

    def authenticate(self, ctx=None):
        if ctx is not None:
            ctx.check()
        if self.session_key is None:
            self.session_key = self.splunk.login(self.params.username, self.params.password)

    def close(self):
        self.closed = True


def mock_response(status_code=200, body=None, reason='OK'):
    rs = mock.MagicMock()
    rs.status_code = status_code
    rs.reason = reason
    rs.content = json.dumps(body).encode('utf-8') if body is not None else b''
    rs.json.side_effect = lambda: json.loads(rs.content.decode('utf-8'))
    return rs


def entry_response(*entries, status_code=200):
    return mock_response(status_code, {'entry': list(entries), 'messages': []})


def message_response(status_code, text, type='ERROR', code=''):
    return mock_response(status_code, {'messages': [{'type': type, 'text': text, 'code': code}]})


def make_certificate(common_name='splunk.example.com', ca=False):
    """Self-signed certificate and its private key, both PEM"""
    import datetime
    from cryptography import x509
    from cryptography.hazmat.primitives import hashes, serialization
    from cryptography.hazmat.primitives.asymmetric import rsa
    from cryptography.x509.oid import NameOID

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    certificate = (x509.CertificateBuilder()
                   .subject_name(name)
                   .issuer_name(name)
                   .public_key(key.public_key())
                   .serial_number(x509.random_serial_number())
                   .not_valid_before(now - datetime.timedelta(days=1))
                   .not_valid_after(now + datetime.timedelta(days=30))
                   .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
                   .sign(key, hashes.SHA256()))
    cert_pem = certificate.public_bytes(serialization.Encoding.PEM).decode('utf-8')
    key_pem = key.private_bytes(serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8,
                                serialization.NoEncryption()).decode('utf-8')
    return cert_pem, key_pem


SPLUNK_URL = 'http://splunk.example.com:8089'


def create_backend(splunk, storage=None, settings=None):
    from splunksecrets.backend import Backend
    from splunksecrets.storage import InMemoryKeyValueStorage
    return Backend(storage=storage or InMemoryKeyValueStorage(), settings=settings, api_factory=splunk.api_factory)


def add_connection(backend, name='splunk', allowed_roles='*', password='changeme', url=SPLUNK_URL):
    from splunksecrets.models import ConnectionUpdate
    backend.write_connection(name, ConnectionUpdate(username='admin', password=password, url=url,
                                                    allowed_roles=allowed_roles))
    return backend.config_store.require_connection(name)
