# -*- coding: utf-8 -*-
# ---------------------------------------------------------------
# check NetApp storage plugin for Icinga 2 / Nagios
# ---------------------------------------------------------------
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.
# ---------------------------------------------------------------


class CheckNetAppError(Exception):
    """Base class of every error that ends a check run with UNKNOWN."""



class CommunicationError(CheckNetAppError):
    """The device could not be queried: timeout, SNMP error or missing OID."""



class ConfigurationError(CheckNetAppError):
    """Bad thresholds, missing arguments or an unreadable host map."""
