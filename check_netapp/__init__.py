# -*- coding: utf-8 -*-
# ---------------------------------------------------------------
# check NetApp storage plugin for Icinga 2 / Nagios
# ---------------------------------------------------------------
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.
# ---------------------------------------------------------------

import logging

__version__ = "2.0.0"

# stdout belongs to the status line, logging stays silent unless -v is given
logging.getLogger(__name__).addHandler(logging.NullHandler())
