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

import threading
from typing import Optional

from .error import RequestCancelled
from .utils import current_time


class RequestContext:
    """Per-request state handed down to every remote call.

    cancel_event and deadline are owned by the caller; remote calls check
    them before they are sent and never outlive the deadline.
    """

    def __init__(self, display_name='', cancel_event=None, deadline=None):
        # type: (str, Optional[threading.Event], Optional[float]) -> None
        self.display_name = display_name or ''
        self.cancel_event = cancel_event
        self.deadline = deadline

    @classmethod
    def with_timeout(cls, seconds, display_name='', cancel_event=None):
        # type: (float, str, Optional[threading.Event]) -> RequestContext
        return cls(display_name=display_name, cancel_event=cancel_event, deadline=current_time() + seconds)

    @property
    def cancelled(self):   # type: () -> bool
        return self.cancel_event is not None and self.cancel_event.is_set()

    def check(self):   # type: () -> None
        if self.cancelled:
            raise RequestCancelled('request cancelled')
        if self.deadline is not None and current_time() >= self.deadline:
            raise RequestCancelled('request deadline exceeded')

    def timeout(self, default):   # type: (float) -> float
        """Remote call timeout: default, shortened to what is left until the deadline"""
        if self.deadline is None:
            return default
        remaining = self.deadline - current_time()
        if remaining <= 0:
            raise RequestCancelled('request deadline exceeded')
        return min(default, remaining) if default else remaining
