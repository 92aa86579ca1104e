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
import ssl
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import requests

from ..context import RequestContext
from ..error import APIErrorMessage, RemoteAPIError, RemoteAuthFailure
from ..logger import get_logger, sanitize_debug_data
from ..tls import SSLContextAdapter
from ..utils import current_time

DEFAULT_BASE_URL = 'https://localhost:8089'
DEFAULT_USER_AGENT = 'splunk-secrets-engine'
# Splunk expires sessions after 60 minutes
DEFAULT_TOKEN_TTL = 45 * 60
DEFAULT_TIMEOUT = 30
JSON_OUTPUT_MODE = (('output_mode', 'json'), ('count', '0'))

logger = get_logger('splunk')

FormData = Union[Dict[str, Any], Sequence[Tuple[str, Any]], None]


@dataclass
class APIParams:
    base_url: str = DEFAULT_BASE_URL
    username: str = ''
    password: str = ''
    user_agent: str = DEFAULT_USER_AGENT
    token_ttl: int = DEFAULT_TOKEN_TTL
    timeout: int = DEFAULT_TIMEOUT
    ssl_context: Optional[ssl.SSLContext] = None
    verify: bool = True

    def new_api(self):
        from .services import SplunkAPI
        return SplunkAPI(self)


class Token:
    def __init__(self, access_token, expiry):   # type: (str, float) -> None
        self.access_token = access_token
        self.expiry = expiry

    def valid(self, now=None):   # type: (Optional[float]) -> bool
        now = current_time() if now is None else now
        return bool(self.access_token) and now < self.expiry


class TokenSource:
    """Session key of one connection, fetched on first use and reused until its TTL runs out.

    The lock is held for the login call: concurrent callers with an expired
    key wait for that single login instead of starting their own.
    """

    def __init__(self, login, ttl=DEFAULT_TOKEN_TTL):
        # type: (Callable[[Optional[RequestContext]], str], int) -> None
        self._login = login
        self.ttl = ttl
        self._lock = threading.Lock()
        self._token = None   # type: Optional[Token]

    def token(self, ctx=None):   # type: (Optional[RequestContext]) -> str
        with self._lock:
            if self._token is None or not self._token.valid():
                session_key = self._login(ctx)
                self._token = Token(session_key, current_time() + self.ttl)
            return self._token.access_token

    def invalidate(self, access_token=None):   # type: (Optional[str]) -> None
        """Forgets the session key; with access_token only if it is still the current one"""
        with self._lock:
            if self._token is None:
                return
            if access_token is None or self._token.access_token == access_token:
                self._token = None


def parse_messages(body):   # type: (Any) -> List[APIErrorMessage]
    if not isinstance(body, dict):
        return []
    messages = body.get('messages')
    if not isinstance(messages, list):
        return []
    return [APIErrorMessage.from_dict(x) for x in messages if isinstance(x, dict)]


class Client:
    """Thin wrapper over requests.Session for the Splunk management port.

    Every call asks for JSON output and returns the decoded envelope.  A
    non-empty "messages" list is a failure whatever the HTTP status.
    """

    def __init__(self, params, login, session=None):
        # type: (APIParams, Callable[[Optional[RequestContext]], str], Optional[requests.Session]) -> None
        self.params = params
        self.base_url = (params.base_url or DEFAULT_BASE_URL).rstrip('/') + '/services/'
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': params.user_agent or DEFAULT_USER_AGENT,
            'Accept': 'application/json',
        })
        self.session.verify = params.verify
        if params.ssl_context is not None:
            self.session.mount('https://', SSLContextAdapter(params.ssl_context))
        self.tokens = TokenSource(login, params.token_ttl or DEFAULT_TOKEN_TTL)

    def execute(self, method, path, ctx=None, query=None, data=None, authenticated=True):
        # type: (str, str, Optional[RequestContext], FormData, FormData, bool) -> Any
        if not authenticated:
            return self._send(method, path, ctx, query, data, None)

        session_key = self.tokens.token(ctx)
        try:
            return self._send(method, path, ctx, query, data, session_key)
        except RemoteAuthFailure:
            # session was dropped on the server side
            self.tokens.invalidate(session_key)
            return self._send(method, path, ctx, query, data, self.tokens.token(ctx))

    def receive(self, method, path, ctx=None, query=None, data=None):
        # type: (str, str, Optional[RequestContext], FormData, FormData) -> List[Dict[str, Any]]
        body = self.execute(method, path, ctx=ctx, query=query, data=data)
        entries = body.get('entry') if isinstance(body, dict) else None
        return [x for x in entries if isinstance(x, dict)] if isinstance(entries, list) else []

    def _send(self, method, path, ctx, query, data, session_key):
        if ctx is not None:
            ctx.check()
        timeout = self.params.timeout or DEFAULT_TIMEOUT
        if ctx is not None:
            timeout = ctx.timeout(timeout)

        params = list(JSON_OUTPUT_MODE)
        if query:
            params.extend(query.items() if isinstance(query, dict) else query)
        headers = {}
        if session_key:
            headers['Authorization'] = f'Splunk {session_key}'

        url = self.base_url + path
        logger.debug('>>> %s %s', method, url)
        try:
            rs = self.session.request(method, url, params=params, data=data, headers=headers, timeout=timeout)
        except requests.exceptions.RequestException as e:
            raise RemoteAPIError(f'splunk: {method} {url} failed: {e}') from e

        try:
            body = rs.json() if rs.content else {}
        except ValueError:
            body = None
        logger.debug('<<< %s %s: %s', rs.status_code, url,
                     sanitize_debug_data(json.dumps(body)) if body is not None else '<not json>')

        messages = parse_messages(body)
        if rs.status_code == 401:
            if messages:
                error = RemoteAuthFailure.from_messages(messages, rs.status_code)
            else:
                error = RemoteAuthFailure('ERROR splunk: unauthorized', status_code=rs.status_code)
            raise error
        if messages:
            raise RemoteAPIError.from_messages(messages, rs.status_code)
        if rs.status_code >= 400 or body is None:
            raise RemoteAPIError(f'ERROR splunk: HTTP {rs.status_code} {rs.reason or ""}'.rstrip(),
                                 status_code=rs.status_code)
        return body

    def close(self):   # type: () -> None
        self.session.close()
