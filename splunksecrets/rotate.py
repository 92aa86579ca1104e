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

from typing import Any, Dict, Optional

from .context import RequestContext
from .error import RotationInconsistency
from .generator import default_password_spec, generate_password_or_token
from .logger import get_logger
from .splunk import UpdateUserOptions

logger = get_logger('rotate')


def rotate_root(backend, name, ctx=None):   # type: (Any, str, Optional[RequestContext]) -> Dict[str, Any]
    """Replaces the admin password of a connection in Splunk and in storage.

    A failed Splunk call leaves everything unchanged.  When Splunk accepted
    the new password but storing the configuration fails, the stored password
    is stale and RotationInconsistency is raised.
    """
    config = backend.config_store.require_connection(name)
    old_id = config.id
    old_password = config.password
    api = backend.ensure_connection(config)

    new_password = generate_password_or_token(default_password_spec())
    options = UpdateUserOptions(old_password=old_password, password=new_password)
    api.users.update(config.username, options, ctx=ctx)

    config.password = new_password
    try:
        backend.config_store.store_connection(name, config)
    except Exception as e:
        error = RotationInconsistency(name, config.username, e)
        logger.error('%s', error)
        raise error from e
    logger.info('Rotated password of "%s" for connection "%s" (config %s -> %s)',
                config.username, name, old_id, config.id)
    return {'username': config.username}
