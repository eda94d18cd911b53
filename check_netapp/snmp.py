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
SNMP v2c transport.

SNMPSession wraps the asyncio API of pysnmp behind two blocking calls, get()
and walk(), and is meant to be used as a context manager so that the engine
dispatcher and the event loop are closed on every exit path:

    with SNMPSession("filer01", "public") as session:
        uptime = session.get("1.3.6.1.4.1.789.1.2.1.1.0", "uptime")
"""

import asyncio
import logging

from pyasn1.type import univ
from pysnmp.error import PySnmpError
from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    UdpTransportTarget,
    get_cmd,
    walk_cmd,
)
from pysnmp.proto import rfc1902
from pysnmp.proto.rfc1905 import EndOfMibView, NoSuchInstance, NoSuchObject

from .exceptions import CommunicationError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 161
DEFAULT_TIMEOUT = 30

_MISSING = (NoSuchObject, NoSuchInstance, EndOfMibView)


def to_python(value):
    """Turn a pysnmp value into int (all integer based types) or str."""
    if isinstance(value, univ.Integer):
        return int(value)
    if isinstance(value, rfc1902.IpAddress):
        return value.prettyPrint()
    if isinstance(value, univ.OctetString):
        return value.asOctets().decode("utf-8", errors="replace")
    return value.prettyPrint()



class SNMPSession:

    def __init__(self, hostname, community, port=DEFAULT_PORT, timeout=DEFAULT_TIMEOUT, retries=0):
        self.hostname = hostname
        self.community = community
        self.port = port
        self.timeout = timeout
        self.retries = retries
        self._loop = None
        self._engine = None
        self._target = None
        self._auth = CommunityData(community, mpModel=1)



    def __enter__(self):
        self.open()
        return self



    def __exit__(self, exc_type, exc_value, traceback):
        self.close()



    def open(self):
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._engine = SnmpEngine()
        try:
            self._target = self._loop.run_until_complete(
                UdpTransportTarget.create((self.hostname, self.port), timeout=self.timeout, retries=self.retries)
            )
        except (PySnmpError, OSError) as error:
            self.close()
            raise CommunicationError(f"Could not create SNMP session to {self.hostname}: {error}") from error
        logger.info("SNMP session to %s:%s opened (timeout %ss)", self.hostname, self.port, self.timeout)



    def close(self):
        if self._engine is not None:
            self._engine.close_dispatcher()
            self._engine = None
        if self._loop is not None:
            asyncio.set_event_loop(None)
            self._loop.close()
            self._loop = None



    def _check_errors(self, description, error_indication, error_status, error_index, var_binds):
        if error_indication:
            raise CommunicationError(f"Cannot read {description} from {self.hostname}: {error_indication}")
        if error_status:
            failed_oid = var_binds[int(error_index) - 1][0] if error_index and var_binds else "?"
            raise CommunicationError(f"Cannot read {description} from {self.hostname}: {error_status.prettyPrint()} at {failed_oid}")



    def get(self, oid, description=None):
        """Fetch one scalar. A missing object is an error, never a zero."""
        description = description or oid
        if self._engine is None:
            raise CommunicationError(f"Cannot read {description}: SNMP session is not open")

        logger.debug("GET %s (%s)", oid, description)
        error_indication, error_status, error_index, var_binds = self._loop.run_until_complete(
            get_cmd(self._engine, self._auth, self._target, ContextData(), ObjectType(ObjectIdentity(oid)))
        )
        self._check_errors(description, error_indication, error_status, error_index, var_binds)

        for _name, value in var_binds:
            if isinstance(value, _MISSING):
                raise CommunicationError(f"Cannot read {description} from {self.hostname}: no such object {oid}")
            return to_python(value)

        raise CommunicationError(f"Cannot read {description} from {self.hostname}: empty response for {oid}")



    async def _walk(self, oid, description):
        result = {}
        async for error_indication, error_status, error_index, var_binds in walk_cmd(
            self._engine,
            self._auth,
            self._target,
            ContextData(),
            ObjectType(ObjectIdentity(oid)),
            lexicographicMode=False,
        ):
            self._check_errors(description, error_indication, error_status, error_index, var_binds)
            for name, value in var_binds:
                if isinstance(value, _MISSING):
                    continue
                result[str(name)] = to_python(value)
        return result



    def walk(self, oid, description=None):
        """Fetch every object below oid as {dotted oid: value}."""
        description = description or oid
        if self._engine is None:
            raise CommunicationError(f"Cannot read {description}: SNMP session is not open")

        logger.debug("WALK %s (%s)", oid, description)
        result = self._loop.run_until_complete(self._walk(oid, description))
        logger.debug("WALK %s returned %d objects", oid, len(result))
        return result
