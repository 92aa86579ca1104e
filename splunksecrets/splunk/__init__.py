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

from .client import APIParams, Client, Token, TokenSource, DEFAULT_TOKEN_TTL
from .services import (
    SplunkAPI, Authentication, Users, Deployment, Introspection, LoginResponse, UserEntry, ServerInfoEntry,
    CreateUserOptions, UpdateUserOptions, SEARCH_PEER_FIELDS)
