# -*- coding: utf-8 -*-
# ---------------------------------------------------------------
# check NetApp storage plugin for Icinga 2 / Nagios
# ---------------------------------------------------------------
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.
# ---------------------------------------------------------------
"""
Optional host name remapping.

The monitoring host name of a filer is not always the name its SNMP agent
answers on. A YAML file next to the plugin can map one to the other:

    hostmap:
      filer01: filer01-mgmt.example.com
      FILER02: 10.0.0.12
"""

import logging
import os
import sys

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "check_netapp_config.yaml"


def default_config_path():
    return os.path.join(os.path.dirname(os.path.abspath(sys.argv[0])), DEFAULT_CONFIG_NAME)



def load_hostmap(path):
    """Return {lower case host name: target}, empty when there is no config file."""
    if not path or not os.path.exists(path):
        logger.debug("No host map found at %s", path)
        return {}

    try:
        with open(path, encoding="utf-8") as config_file:
            config = yaml.safe_load(config_file) or {}
    except (OSError, yaml.YAMLError) as error:
        raise ConfigurationError(f"Cannot read host map {path}: {error}") from error

    if not isinstance(config, dict):
        raise ConfigurationError(f"Cannot read host map {path}: expected a mapping at top level.")

    hostmap = config.get("hostmap") or {}
    if not isinstance(hostmap, dict):
        raise ConfigurationError(f"Cannot read host map {path}: 'hostmap' must be a mapping.")

    return {str(name).lower(): str(target) for name, target in hostmap.items()}



def resolve_hostname(hostname, hostmap):
    target = hostmap.get(hostname.lower())
    if target is None:
        return hostname
    logger.info("Host %s is mapped to %s", hostname, target)
    return target
