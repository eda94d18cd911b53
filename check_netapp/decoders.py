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
Decode NETAPP-MIB walk and get results into entity records.

A walk result maps dotted OIDs to values. Below the table OID every key holds
the column number followed by the row index, e.g. for the dfTable

    1.3.6.1.4.1.789.1.5.4.1.<column>.<fs index>

The *_COLUMNS dicts map column numbers to entity attributes. Columns not
listed there are ignored.
"""

import logging
from collections import defaultdict, namedtuple
from dataclasses import dataclass, field
from typing import Optional

from .codes import (
    AutosupportStatus,
    EnclosureContactState,
    GlobalStatus,
    MirrorStatus,
    QuotaIdType,
    QuotaLimit,
    QuotaType,
    VolumeStatus,
    VolumeType,
    code_label,
    parse_code,
)
from .exceptions import CommunicationError

logger = logging.getLogger(__name__)

BASE_OID = "1.3.6.1.4.1.789"

UPTIME_OID = f"{BASE_OID}.1.2.1.1.0"
GLOBAL_STATUS_OID = f"{BASE_OID}.1.2.2.4.0"
GLOBAL_STATUS_MESSAGE_OID = f"{BASE_OID}.1.2.2.25.0"
CLUSTER_FAILOVER_OID = f"{BASE_OID}.1.2.3"
ENVIRONMENT_OID = f"{BASE_OID}.1.2.4"
NVRAM_BATTERY_OID = f"{BASE_OID}.1.2.5.1.0"
AUTOSUPPORT_STATUS_OID = f"{BASE_OID}.1.2.7.1.0"
AUTOSUPPORT_MESSAGE_OID = f"{BASE_OID}.1.2.7.2.0"
QUOTA_TABLE_OID = f"{BASE_OID}.1.4.6.1"
DF_TABLE_OID = f"{BASE_OID}.1.5.4.1"
SNAPSHOT_TABLE_OID = f"{BASE_OID}.1.5.5.2.1"
DISK_SUMMARY_OID = f"{BASE_OID}.1.6.4"
ENCLOSURE_COUNT_OID = f"{BASE_OID}.1.21.1.1.0"
ENCLOSURE_TABLE_OID = f"{BASE_OID}.1.21.1.2.1"

SNAPSHOT_SUFFIX = "/.snapshot"

DF_COLUMNS = {
    2: "name",
    7: "used_inodes",
    8: "free_inodes",
    20: "status",
    21: "mirror_status",
    23: "type",
    29: "total_kbytes",
    30: "used_kbytes",
    31: "free_kbytes",
}

QUOTA_COLUMNS = {
    2: "type",
    3: "id",
    6: "bytes_unlimited",
    9: "files_used",
    10: "files_unlimited",
    11: "files_limit",
    12: "path_name",
    14: "qtree",
    15: "id_type",
    16: "sid",
    25: "used_kbytes",
    26: "limit_kbytes",
}

ENCLOSURE_COLUMNS = {
    1: "index",
    2: "contact_state",
    3: "channel_shelf_address",
    4: "product_logical_id",
    5: "product_id",
    6: "vendor",
    7: "model",
    8: "revision",
    9: "serial",
    10: "disk_bays",
    11: "disks_present",
    12: "psus_maximum",
    13: "psus_present",
    14: "psu_serials",
    15: "psus_failed",
    16: "fans_maximum",
    17: "fans_present",
    18: "fans_failed",
}

SNAPSHOT_COLUMNS = {
    1: "index",
    2: "month",
    3: "day",
    4: "hour",
    5: "minutes",
    6: "name",
    7: "volume",
    8: "number",
    9: "volume_name",
    10: "type",
}

DISK_SUMMARY_FIELDS = {
    1: "total",
    2: "active",
    3: "reconstructing",
    4: "reconstructing_parity",
    5: "verifying_parity",
    6: "scrubbing",
    7: "failed",
    8: "spare",
    9: "adding_spare",
    10: "failed_message",
    11: "prefailed",
}

ENVIRONMENT_FIELDS = {
    1: "over_temperature",
    2: "failed_fan_count",
    3: "failed_fan_message",
    4: "failed_psu_count",
    5: "failed_psu_message",
}

CLUSTER_FAILOVER_FIELDS = {
    1: "settings",
    2: "state",
    3: "cannot_takeover_cause",
    4: "partner_status",
    5: "partner_last_status_update",
    6: "partner_name",
    7: "partner_sysid",
    8: "interconnect_status",
}


def to_int(value):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non numeric counter value %r", value)
        return None



def to_text(value):
    if value is None:
        return None
    return " ".join(str(value).split())



def kbytes_to_bytes(value):
    value = to_int(value)
    return None if value is None else value * 1024



def percent(used, total):
    """used/total in percent, rounded to 3 digits, None when it cannot be computed."""
    if used is None or not total:
        return None
    return round(used / total * 100, 3)



def count_list(value):
    """Count the members of a comma separated list such as '1, 2, 4'."""
    if value is None:
        return 0
    return len([item for item in str(value).split(",") if item.strip()])



def split_table(walk, table_oid, key_length, columns):
    """
    Group a table walk by row.

    Returns {row key tuple: {attribute: value}} for every column listed in
    columns. A key outside the table or too short to hold a row index means
    the device answered something else than what was asked for.
    """
    prefix = table_oid.strip(".").split(".")
    column_position = len(prefix)
    rows = defaultdict(dict)

    for oid, value in walk.items():
        parts = str(oid).strip(".").split(".")
        if parts[:column_position] != prefix or len(parts) < column_position + 1 + key_length:
            raise CommunicationError(f"Malformed response for {table_oid}: unexpected OID {oid}")

        try:
            column = int(parts[column_position])
        except ValueError:
            raise CommunicationError(f"Malformed response for {table_oid}: unexpected OID {oid}") from None

        attribute = columns.get(column)
        if attribute is None:
            continue

        key = tuple(parts[column_position + 1:column_position + 1 + key_length])
        rows[key][attribute] = value

    return rows



@dataclass
class FilesystemEntity:
    index: str
    name: Optional[str] = None
    used_bytes: Optional[int] = None
    free_bytes: Optional[int] = None
    total_bytes: Optional[int] = None
    used_inodes: Optional[int] = None
    free_inodes: Optional[int] = None
    total_inodes: Optional[int] = None
    status: Optional[VolumeStatus] = None
    status_text: str = ""
    mirror_status: Optional[MirrorStatus] = None
    mirror_status_text: str = ""
    type: Optional[VolumeType] = None
    type_text: str = ""
    pct_used_bytes: Optional[float] = None
    pct_used_inodes: Optional[float] = None

    @property
    def is_aggregate(self):
        return self.type is VolumeType.AGGREGATE

    @property
    def is_snapshot(self):
        return self.name is not None and self.name.endswith(SNAPSHOT_SUFFIX)

    @classmethod
    def from_columns(cls, index, row):
        entity = cls(index=index, name=to_text(row.get("name")))

        entity.used_bytes = kbytes_to_bytes(row.get("used_kbytes"))
        entity.free_bytes = kbytes_to_bytes(row.get("free_kbytes"))
        if entity.used_bytes is not None and entity.free_bytes is not None:
            entity.total_bytes = entity.used_bytes + entity.free_bytes
        else:
            entity.total_bytes = kbytes_to_bytes(row.get("total_kbytes"))

        entity.used_inodes = to_int(row.get("used_inodes"))
        entity.free_inodes = to_int(row.get("free_inodes"))
        if entity.used_inodes is not None and entity.free_inodes is not None:
            entity.total_inodes = entity.used_inodes + entity.free_inodes

        entity.status = parse_code(VolumeStatus, row.get("status"))
        entity.status_text = code_label(VolumeStatus, row.get("status"))
        entity.mirror_status = parse_code(MirrorStatus, row.get("mirror_status"))
        entity.mirror_status_text = code_label(MirrorStatus, row.get("mirror_status"))
        entity.type = parse_code(VolumeType, row.get("type"))
        entity.type_text = code_label(VolumeType, row.get("type"))

        entity.pct_used_bytes = percent(entity.used_bytes, entity.total_bytes)
        entity.pct_used_inodes = percent(entity.used_inodes, entity.total_inodes)
        return entity



@dataclass
class QuotaEntity:
    volume: str
    row: str
    type: Optional[QuotaType] = None
    type_text: str = ""
    id: Optional[str] = None
    sid: Optional[str] = None
    id_type: Optional[QuotaIdType] = None
    path_name: Optional[str] = None
    qtree: Optional[str] = None
    bytes_used: Optional[int] = None
    bytes_limit: Optional[int] = None
    bytes_unlimited: bool = False
    files_used: Optional[int] = None
    files_limit: Optional[int] = None
    files_unlimited: bool = False
    pct_bytes_used: Optional[float] = None
    pct_files_used: Optional[float] = None

    @property
    def tree(self):
        return self.qtree or self.path_name or "<Unknown>"

    @property
    def identity(self):
        if self.id_type is QuotaIdType.NUMERIC and self.id is not None:
            return self.id
        if self.id_type is QuotaIdType.SID and self.sid:
            return self.sid
        return "<Unknown>"

    @classmethod
    def from_columns(cls, key, row):
        volume, index = key
        entity = cls(volume=volume, row=index)

        entity.type = parse_code(QuotaType, row.get("type"))
        entity.type_text = code_label(QuotaType, row.get("type"))
        entity.id = to_text(row.get("id"))
        entity.sid = to_text(row.get("sid"))
        entity.id_type = parse_code(QuotaIdType, row.get("id_type"))
        entity.path_name = to_text(row.get("path_name"))
        entity.qtree = to_text(row.get("qtree"))

        entity.bytes_used = kbytes_to_bytes(row.get("used_kbytes"))
        entity.bytes_limit = kbytes_to_bytes(row.get("limit_kbytes"))
        entity.bytes_unlimited = parse_code(QuotaLimit, row.get("bytes_unlimited")) is QuotaLimit.UNLIMITED
        entity.files_used = to_int(row.get("files_used"))
        entity.files_limit = to_int(row.get("files_limit"))
        entity.files_unlimited = parse_code(QuotaLimit, row.get("files_unlimited")) is QuotaLimit.UNLIMITED

        entity.pct_bytes_used = percent(entity.bytes_used, entity.bytes_limit)
        entity.pct_files_used = percent(entity.files_used, entity.files_limit)
        return entity



@dataclass
class EnclosureEntity:
    index: str
    contact_state: Optional[EnclosureContactState] = None
    contact_state_text: str = ""
    channel_shelf_address: Optional[str] = None
    product_id: Optional[str] = None
    model: Optional[str] = None
    serial: Optional[str] = None
    fans_maximum: Optional[int] = None
    fans_present: int = 0
    fans_failed: int = 0
    failed_fans: str = ""
    psus_maximum: Optional[int] = None
    psus_present: int = 0
    psus_failed: int = 0
    failed_psus: str = ""

    @property
    def name(self):
        return self.channel_shelf_address or self.index

    @classmethod
    def from_columns(cls, key, row):
        (index,) = key
        entity = cls(index=index)
        entity.contact_state = parse_code(EnclosureContactState, row.get("contact_state"))
        entity.contact_state_text = code_label(EnclosureContactState, row.get("contact_state"))
        entity.channel_shelf_address = to_text(row.get("channel_shelf_address"))
        entity.product_id = to_text(row.get("product_id"))
        entity.model = to_text(row.get("model"))
        entity.serial = to_text(row.get("serial"))

        entity.fans_maximum = to_int(row.get("fans_maximum"))
        entity.fans_present = count_list(row.get("fans_present"))
        entity.fans_failed = count_list(row.get("fans_failed"))
        entity.failed_fans = to_text(row.get("fans_failed")) or ""

        entity.psus_maximum = to_int(row.get("psus_maximum"))
        entity.psus_present = count_list(row.get("psus_present"))
        entity.psus_failed = count_list(row.get("psus_failed"))
        entity.failed_psus = to_text(row.get("psus_failed")) or ""
        return entity



@dataclass
class SnapshotEntity:
    volume_index: str
    row: str
    name: Optional[str] = None
    volume_name: Optional[str] = None

    @property
    def volume(self):
        return self.volume_name or f"volume {self.volume_index}"

    @classmethod
    def from_columns(cls, key, row):
        volume_index, index = key
        return cls(
            volume_index=volume_index,
            row=index,
            name=to_text(row.get("name")),
            volume_name=to_text(row.get("volume_name")),
        )



@dataclass
class DiskSummary:
    total: int = 0
    active: int = 0
    reconstructing: int = 0
    reconstructing_parity: int = 0
    verifying_parity: int = 0
    scrubbing: int = 0
    failed: int = 0
    spare: int = 0
    adding_spare: int = 0
    failed_message: str = ""
    prefailed: int = 0



@dataclass
class EnvironmentInfo:
    over_temperature: Optional[int] = None
    failed_fan_count: int = 0
    failed_fan_message: str = ""
    failed_psu_count: int = 0
    failed_psu_message: str = ""



@dataclass
class ClusterFailoverInfo:
    settings: Optional[int] = None
    state: Optional[int] = None
    cannot_takeover_cause: Optional[int] = None
    partner_status: Optional[int] = None
    partner_last_status_update: Optional[str] = None
    partner_name: str = ""
    partner_sysid: Optional[str] = None
    interconnect_status: Optional[int] = None



StatusReport = namedtuple("StatusReport", ["code", "message"])



def _sort_key(key):
    return tuple(int(part) if part.isdigit() else part for part in key)



def decode_filesystems(walk):
    rows = split_table(walk, DF_TABLE_OID, 1, DF_COLUMNS)
    filesystems = {key[0]: FilesystemEntity.from_columns(key[0], row) for key, row in sorted(rows.items(), key=lambda item: _sort_key(item[0]))}
    logger.debug("Decoded %d filesystems", len(filesystems))
    return filesystems



def decode_quotas(walk):
    rows = split_table(walk, QUOTA_TABLE_OID, 2, QUOTA_COLUMNS)
    quotas = {key: QuotaEntity.from_columns(key, row) for key, row in sorted(rows.items(), key=lambda item: _sort_key(item[0]))}
    logger.debug("Decoded %d quota entries", len(quotas))
    return quotas



def decode_enclosures(walk):
    rows = split_table(walk, ENCLOSURE_TABLE_OID, 1, ENCLOSURE_COLUMNS)
    enclosures = {key[0]: EnclosureEntity.from_columns(key, row) for key, row in sorted(rows.items(), key=lambda item: _sort_key(item[0]))}
    logger.debug("Decoded %d enclosures", len(enclosures))
    return enclosures



def decode_snapshots(walk):
    rows = split_table(walk, SNAPSHOT_TABLE_OID, 2, SNAPSHOT_COLUMNS)
    snapshots = {key: SnapshotEntity.from_columns(key, row) for key, row in sorted(rows.items(), key=lambda item: _sort_key(item[0]))}
    logger.debug("Decoded %d snapshots", len(snapshots))
    return snapshots



def parse_counter(value, oid, description):
    """Strict to_int() for scalars: a value that is not a number is a bad response, never a zero."""
    number = to_int(value)
    if number is None:
        raise CommunicationError(f"Cannot read {description}: malformed value {value!r} at {oid}")
    return number



def get_counter(session, oid, description):
    return parse_counter(session.get(oid, description), oid, description)



def get_scalar_group(session, base_oid, fields, description, text_fields=()):
    """
    Fetch <base_oid>.<n>.0 for every n in fields, one request after another.

    Attributes named in text_fields are returned as whitespace collapsed
    strings, all others must be numeric.
    """
    values = {}
    for number, attribute in fields.items():
        oid = f"{base_oid}.{number}.0"
        name = f"{description} {attribute.replace('_', ' ')}"
        value = session.get(oid, name)
        if attribute in text_fields:
            values[attribute] = to_text(value) or ""
        else:
            values[attribute] = parse_counter(value, oid, name)
    return values



def get_disk_summary(session):
    return DiskSummary(**get_scalar_group(session, DISK_SUMMARY_OID, DISK_SUMMARY_FIELDS, "disk", ("failed_message",)))



def get_environment_info(session):
    text_fields = ("failed_fan_message", "failed_psu_message")
    return EnvironmentInfo(**get_scalar_group(session, ENVIRONMENT_OID, ENVIRONMENT_FIELDS, "environment", text_fields))



def get_cluster_failover_info(session):
    text_fields = ("partner_last_status_update", "partner_name", "partner_sysid")
    return ClusterFailoverInfo(**get_scalar_group(session, CLUSTER_FAILOVER_OID, CLUSTER_FAILOVER_FIELDS, "clustered failover", text_fields))



def get_filesystems(session):
    return decode_filesystems(session.walk(DF_TABLE_OID, "disk usage information"))



def get_quotas(session):
    return decode_quotas(session.walk(QUOTA_TABLE_OID, "quota information"))



def get_snapshots(session):
    return decode_snapshots(session.walk(SNAPSHOT_TABLE_OID, "snapshot information"))



def get_enclosures(session):
    """
    Return the decoded enclosure table, or an empty dict without walking the
    table when the device reports no enclosures at all.
    """
    count = get_counter(session, ENCLOSURE_COUNT_OID, "enclosure count")
    if count == 0:
        return {}
    return decode_enclosures(session.walk(ENCLOSURE_TABLE_OID, "enclosure information"))



def _status_with_message(session, status_oid, message_oid, ok_code, description):
    # the message object is only populated while the status is not ok
    code = get_counter(session, status_oid, description)
    message = ""
    if code != ok_code:
        message = to_text(session.get(message_oid, f"{description} message")) or ""
    return StatusReport(code, message)



def get_global_status(session):
    return _status_with_message(session, GLOBAL_STATUS_OID, GLOBAL_STATUS_MESSAGE_OID, GlobalStatus.OK, "global status")



def get_autosupport_status(session):
    return _status_with_message(session, AUTOSUPPORT_STATUS_OID, AUTOSUPPORT_MESSAGE_OID, AutosupportStatus.OK, "autosupport status")



def get_nvram_battery_status(session):
    return get_counter(session, NVRAM_BATTERY_OID, "NVRAM battery status")



def get_uptime(session):
    return session.get(UPTIME_OID, "uptime")
