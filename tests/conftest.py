import pytest

from check_netapp.decoders import (
    DF_TABLE_OID,
    ENCLOSURE_TABLE_OID,
    QUOTA_TABLE_OID,
    SNAPSHOT_TABLE_OID,
)
from check_netapp.exceptions import CommunicationError


class FakeSession:
    """Serves canned SNMP objects: get() by exact OID, walk() by prefix."""

    def __init__(self, objects=None, failing=()):
        self.objects = dict(objects or {})
        self.failing = set(failing)
        self.requests = []
        self.opened = False
        self.closed = False

    def __call__(self, hostname, community, port=161, timeout=30):
        self.hostname = hostname
        self.community = community
        self.port = port
        self.timeout = timeout
        return self

    def __enter__(self):
        self.opened = True
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.closed = True

    def get(self, oid, description=None):
        self.requests.append(("get", oid))
        if oid in self.failing or oid not in self.objects:
            raise CommunicationError(f"Cannot read {description or oid}: no such object {oid}")
        return self.objects[oid]

    def walk(self, oid, description=None):
        self.requests.append(("walk", oid))
        if oid in self.failing:
            raise CommunicationError(f"Cannot read {description or oid}: timeout")
        prefix = oid + "."
        return {key: value for key, value in self.objects.items() if key.startswith(prefix)}



def df_row(index, name, used_kb=None, free_kb=None, type_code=2, used_inodes=None, free_inodes=None, status=2, mirror_status=6, total_kb=None):
    row = {
        f"{DF_TABLE_OID}.2.{index}": name,
        f"{DF_TABLE_OID}.20.{index}": status,
        f"{DF_TABLE_OID}.21.{index}": mirror_status,
        f"{DF_TABLE_OID}.23.{index}": type_code,
    }
    optional = {29: total_kb, 30: used_kb, 31: free_kb, 7: used_inodes, 8: free_inodes}
    for column, value in optional.items():
        if value is not None:
            row[f"{DF_TABLE_OID}.{column}.{index}"] = value
    return row



def quota_row(volume, index, type_code, used_kb=0, limit_kb=0, files_used=0, files_limit=0,
              bytes_unlimited=1, files_unlimited=1, qtree="", path_name="", id_type=1, quota_id="0", sid=""):
    values = {
        2: type_code,
        3: quota_id,
        6: bytes_unlimited,
        9: files_used,
        10: files_unlimited,
        11: files_limit,
        12: path_name,
        14: qtree,
        15: id_type,
        16: sid,
        25: used_kb,
        26: limit_kb,
    }
    return {f"{QUOTA_TABLE_OID}.{column}.{volume}.{index}": value for column, value in values.items()}



def enclosure_row(index, shelf, fans_present="", fans_failed="", psus_present="", psus_failed=""):
    values = {
        1: index,
        2: 3,
        3: shelf,
        13: psus_present,
        15: psus_failed,
        17: fans_present,
        18: fans_failed,
    }
    return {f"{ENCLOSURE_TABLE_OID}.{column}.{index}": value for column, value in values.items()}



def snapshot_row(volume_index, index, name, volume_name):
    return {
        f"{SNAPSHOT_TABLE_OID}.6.{volume_index}.{index}": name,
        f"{SNAPSHOT_TABLE_OID}.9.{volume_index}.{index}": volume_name,
    }



@pytest.fixture
def fake_session():
    return FakeSession



@pytest.fixture
def build():
    class Builders:
        df = staticmethod(df_row)
        quota = staticmethod(quota_row)
        enclosure = staticmethod(enclosure_row)
        snapshot = staticmethod(snapshot_row)

    return Builders
