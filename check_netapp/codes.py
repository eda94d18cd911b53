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
Status codes of the NETAPP-MIB.

Integer codes are parsed into the enums below once, when a walk or get result
is decoded. Handlers never compare bare integers. Codes the device reports
but the MIB revision known here does not list come out as None from
parse_code() and as an explicit "unrecognized code" label from the *_text()
helpers.
"""

from enum import IntEnum

from .state import CheckState


class VolumeStatus(IntEnum):
    UNMOUNTED = 1
    MOUNTED = 2
    FROZEN = 3
    DESTROYING = 4
    CREATING = 5
    MOUNTING = 6
    UNMOUNTING = 7
    NOFSINFO = 8
    REPLAYING = 9
    REPLAYED = 10



class MirrorStatus(IntEnum):
    INVALID = 1
    UNINITIALIZED = 2
    NEEDCPCHECK = 3
    CPCHECKWAIT = 4
    UNMIRRORED = 5
    NORMAL = 6
    DEGRADED = 7
    RESYNCING = 8
    FAILED = 9
    LIMBO = 10



class VolumeType(IntEnum):
    TRADITIONAL = 1
    FLEXIBLE = 2
    AGGREGATE = 3



class QuotaType(IntEnum):
    USER = 1
    GROUP = 2
    TREE = 3
    USERDEFAULT = 4
    GROUPDEFAULT = 5
    UNKNOWN = 6



class QuotaLimit(IntEnum):
    # qrV2KBytesUnlimited / qrV2FilesUnlimited
    LIMITED = 1
    UNLIMITED = 2



class QuotaIdType(IntEnum):
    NUMERIC = 1
    SID = 2



class EnclosureContactState(IntEnum):
    INITIALIZING = 1
    TRANSITIONING = 2
    ACTIVE = 3
    INACTIVE = 4
    RECONFIGURING = 5
    NONEXISTENT = 6



class ClusterFailoverSettings(IntEnum):
    NOT_CONFIGURED = 1
    ENABLED = 2
    DISABLED = 3
    TAKEOVER_BY_PARTNER_DISABLED = 4
    THIS_NODE_DEAD = 5



class NvramBatteryStatus(IntEnum):
    OK = 1
    PARTIALLY_DISCHARGED = 2
    FULLY_DISCHARGED = 3
    NOT_PRESENT = 4
    NEAR_END_OF_LIFE = 5
    AT_END_OF_LIFE = 6
    UNKNOWN = 7
    OVERCHARGED = 8
    FULLY_CHARGED = 9



class InterconnectStatus(IntEnum):
    NOT_PRESENT = 1
    DOWN = 2
    PARTIAL_FAILURE = 3
    UP = 4



class PartnerStatus(IntEnum):
    MAYBE_DOWN = 1
    OK = 2
    DEAD = 3
    TAKEN_OVER = 4



class GlobalStatus(IntEnum):
    OTHER = 1
    UNKNOWN = 2
    OK = 3
    NON_CRITICAL = 4
    CRITICAL = 5
    NON_RECOVERABLE = 6



class AutosupportStatus(IntEnum):
    OK = 1
    SMTP_FAILURE = 2
    POST_FAILURE = 3
    SMTP_POST_FAILURE = 4
    UNKNOWN = 5



class OverTemperature(IntEnum):
    NO = 1
    YES = 2



# code -> (state, text) decision tables

NVRAM_BATTERY_STATES = {
    NvramBatteryStatus.OK: (CheckState.OK, "OK"),
    NvramBatteryStatus.PARTIALLY_DISCHARGED: (CheckState.WARNING, "partially discharged"),
    NvramBatteryStatus.FULLY_DISCHARGED: (CheckState.CRITICAL, "fully discharged"),
    NvramBatteryStatus.NOT_PRESENT: (CheckState.WARNING, "not present"),
    NvramBatteryStatus.NEAR_END_OF_LIFE: (CheckState.WARNING, "near end of life"),
    NvramBatteryStatus.AT_END_OF_LIFE: (CheckState.CRITICAL, "at end of life"),
    NvramBatteryStatus.UNKNOWN: (CheckState.WARNING, "unknown"),
    NvramBatteryStatus.OVERCHARGED: (CheckState.WARNING, "overcharged"),
    NvramBatteryStatus.FULLY_CHARGED: (CheckState.WARNING, "fully charged"),
}

INTERCONNECT_STATES = {
    InterconnectStatus.NOT_PRESENT: (CheckState.OK, "not present"),
    InterconnectStatus.DOWN: (CheckState.CRITICAL, "down"),
    InterconnectStatus.PARTIAL_FAILURE: (CheckState.WARNING, "partially failed"),
    InterconnectStatus.UP: (CheckState.OK, "up"),
}

PARTNER_STATES = {
    PartnerStatus.MAYBE_DOWN: (CheckState.WARNING, "may be down"),
    PartnerStatus.OK: (CheckState.OK, "is okay"),
    PartnerStatus.DEAD: (CheckState.CRITICAL, "is dead"),
    PartnerStatus.TAKEN_OVER: (CheckState.WARNING, "has been taken over"),
}

GLOBAL_STATES = {
    GlobalStatus.OTHER: (CheckState.CRITICAL, "other"),
    GlobalStatus.UNKNOWN: (CheckState.CRITICAL, "unknown"),
    GlobalStatus.OK: (CheckState.OK, "ok"),
    GlobalStatus.NON_CRITICAL: (CheckState.WARNING, "non-critical"),
    GlobalStatus.CRITICAL: (CheckState.CRITICAL, "critical"),
    GlobalStatus.NON_RECOVERABLE: (CheckState.CRITICAL, "non-recoverable"),
}

AUTOSUPPORT_STATES = {
    AutosupportStatus.OK: (CheckState.OK, "ok"),
    AutosupportStatus.SMTP_FAILURE: (CheckState.CRITICAL, "SMTP failure"),
    AutosupportStatus.POST_FAILURE: (CheckState.CRITICAL, "HTTP post failure"),
    AutosupportStatus.SMTP_POST_FAILURE: (CheckState.CRITICAL, "SMTP and HTTP post failure"),
    AutosupportStatus.UNKNOWN: (CheckState.WARNING, "unknown"),
}

OVER_TEMPERATURE_STATES = {
    OverTemperature.NO: (CheckState.OK, "within"),
    OverTemperature.YES: (CheckState.CRITICAL, "outside"),
}



def parse_code(enum_class, code):
    """Return the enum member for a raw device code, None for anything unmapped."""
    try:
        return enum_class(int(code))
    except (TypeError, ValueError):
        return None



def unrecognized(code):
    return f"unrecognized code {code}"



def code_label(enum_class, code):
    member = parse_code(enum_class, code)
    if member is None:
        return unrecognized(code)
    return member.name.lower()



def volume_status_text(code):
    return code_label(VolumeStatus, code)



def mirror_status_text(code):
    return code_label(MirrorStatus, code)



def volume_type_text(code):
    return code_label(VolumeType, code)



def quota_type_text(code):
    return code_label(QuotaType, code)



def enclosure_contact_state_text(code):
    return code_label(EnclosureContactState, code)



def lookup_state(table, code):
    """Look up (state, text) for a code, UNKNOWN when the table has no entry."""
    try:
        return table[int(code)]
    except (KeyError, TypeError, ValueError):
        return CheckState.UNKNOWN, unrecognized(code)
