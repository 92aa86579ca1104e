# -*- coding: utf-8 -*-
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

__version__ = '0.9.0'
__logging_format__ = '%(asctime)s [%(levelname)s] %(name)s - %(message)s'
