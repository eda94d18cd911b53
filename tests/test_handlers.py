import pytest

from check_netapp import decoders, handlers
from check_netapp.decoders import ClusterFailoverInfo, DiskSummary, EnvironmentInfo, StatusReport
from check_netapp.exceptions import CommunicationError
from check_netapp.state import CheckState, Result
from check_netapp.thresholds import parse_range

WARNING = parse_range("70")
CRITICAL = parse_range("90")


@pytest.fixture
def filesystems(build):
    walk = {}
    walk.update(build.df(1, "aggr0", used_kb=950, free_kb=50, type_code=3, used_inodes=10, free_inodes=90))
    walk.update(build.df(2, "aggr1", used_kb=100, free_kb=900, type_code=3, used_inodes=80, free_inodes=20))
    walk.update(build.df(3, "/vol/vol0/", used_kb=750, free_kb=250, used_inodes=1, free_inodes=99))
    walk.update(build.df(4, "/vol/vol0/.snapshot", used_kb=999, free_kb=1, used_inodes=99, free_inodes=1))
    walk.update(build.df(5, "aggr0/.snapshot", used_kb=999, free_kb=1, type_code=3, used_inodes=99, free_inodes=1))
    walk.update(build.df(6, "/vol/new/", used_kb=0, free_kb=0))
    return decoders.decode_filesystems(walk)



def test_aggregate_bytes_critical(filesystems):
    results = handlers.check_aggregate_bytes(filesystems, WARNING, CRITICAL)
    assert results == [Result(CheckState.CRITICAL, "Aggregate 'aggr0': 950.0 KiB/1000.0 KiB (95.000%).")]



def test_aggregate_inodes_warning(filesystems):
    results = handlers.check_aggregate_inodes(filesystems, WARNING, CRITICAL)
    assert results == [Result(CheckState.WARNING, "Aggregate 'aggr1': 80/100 inodes (80.000%).")]



def test_volume_bytes_excludes_snapshots(filesystems):
    results = handlers.check_volume_bytes(filesystems, WARNING, CRITICAL)
    assert results == [Result(CheckState.WARNING, "Volume '/vol/vol0/': 750.0 KiB/1000.0 KiB (75.000%).")]
    assert not any(".snapshot" in result.message for result in results)



def test_volume_inodes_ok_counts_unavailable(filesystems):
    results = handlers.check_volume_inodes(filesystems, WARNING, CRITICAL)
    assert results == [Result(CheckState.OK, "1 volume OK, 1 without usage data.")]



def test_aggregate_bytes_ok_plural(filesystems):
    results = handlers.check_aggregate_bytes(filesystems, parse_range("98"), parse_range("99"))
    assert results == [Result(CheckState.OK, "2 aggregates OK.")]



def test_snapshot_entities_never_reported(build):
    walk = build.df(1, "/vol/vol0/.snapshot", used_kb=100, free_kb=0)
    filesystems = decoders.decode_filesystems(walk)
    assert handlers.check_volume_bytes(filesystems, WARNING, CRITICAL) == [Result(CheckState.OK, "0 volumes OK.")]



@pytest.fixture
def quotas(build):
    walk = {}
    walk.update(build.quota(1, 1, 3, used_kb=95, limit_kb=100, files_used=1, files_limit=100, qtree="projects"))
    walk.update(build.quota(1, 2, 3, used_kb=1_000_000, limit_kb=1, bytes_unlimited=2, files_unlimited=2, qtree="scratch"))
    walk.update(build.quota(1, 3, 3, used_kb=10, limit_kb=100, files_used=75, files_limit=100, qtree="home"))
    walk.update(build.quota(1, 4, 1, used_kb=80, limit_kb=100, files_used=5, files_limit=10, quota_id="1001"))
    walk.update(build.quota(1, 5, 4, used_kb=1, limit_kb=100, bytes_unlimited=2, files_used=1, files_limit=100, quota_id="0"))
    walk.update(build.quota(1, 6, 2, used_kb=99, limit_kb=100, quota_id="100"))
    walk.update(build.quota(1, 7, 5, used_kb=1, limit_kb=100, quota_id="0"))
    return decoders.decode_quotas(walk)



def test_tree_byte_quotas(quotas):
    results = handlers.check_tree_byte_quotas(quotas, WARNING, CRITICAL)
    assert results == [
        Result(CheckState.CRITICAL, "projects: 95.0 KiB/100.0 KiB (95.000%)."),
        Result(CheckState.CRITICAL, "1 of 2 tree byte quotas over threshold, 1 unlimited quota."),
    ]



def test_unlimited_quota_never_evaluated(build):
    walk = build.quota(1, 1, 3, used_kb=1_000_000, limit_kb=1, bytes_unlimited=2, qtree="big")
    quotas = decoders.decode_quotas(walk)
    results = handlers.check_tree_byte_quotas(quotas, parse_range("0"), parse_range("0"))
    assert results == [Result(CheckState.OK, "0 tree byte quotas OK, 1 unlimited quota.")]



def test_tree_file_quotas(quotas):
    results = handlers.check_tree_file_quotas(quotas, WARNING, CRITICAL)
    assert results[0] == Result(CheckState.WARNING, "home: 75/100 files (75.000%).")



def test_user_quotas_select_user_and_default_types(quotas):
    results = handlers.check_user_byte_quotas(quotas, WARNING, CRITICAL)
    assert results == [
        Result(CheckState.WARNING, "1001: 80.0 KiB/100.0 KiB (80.000%)."),
        Result(CheckState.WARNING, "1 of 1 user byte quota over threshold, 1 unlimited quota."),
    ]
    assert handlers.check_user_file_quotas(quotas, WARNING, CRITICAL) == [
        Result(CheckState.OK, "2 user file quotas OK, 0 unlimited quotas."),
    ]



def test_group_quotas(quotas):
    results = handlers.check_group_byte_quotas(quotas, WARNING, CRITICAL)
    assert results[0] == Result(CheckState.CRITICAL, "100: 99.0 KiB/100.0 KiB (99.000%).")
    assert handlers.check_group_file_quotas(quotas, WARNING, CRITICAL) == [
        Result(CheckState.OK, "0 group file quotas OK, 0 unlimited quotas, 2 without usage data."),
    ]



def test_disk_health_ok():
    disks = DiskSummary(total=24, active=24)
    assert handlers.check_disk_health(disks) == [Result(CheckState.OK, "24 disks present, 24 active.")]



def test_disk_health_reports_every_condition():
    disks = DiskSummary(total=24, active=20, failed=1, failed_message="Disk 0a.17 failed.", reconstructing=2, reconstructing_parity=1, adding_spare=1)
    assert handlers.check_disk_health(disks) == [
        Result(CheckState.CRITICAL, "1 failed disk: Disk 0a.17 failed."),
        Result(CheckState.WARNING, "2 disks reconstructing."),
        Result(CheckState.WARNING, "1 disk reconstructing parity."),
        Result(CheckState.WARNING, "1 spare disk being added."),
    ]



def test_fan_and_psu_health():
    environment = EnvironmentInfo(over_temperature=1, failed_fan_count=1, failed_fan_message="Fan 2 failed.",
                                  failed_psu_count=0, failed_psu_message="There are no failed power supplies.")
    assert handlers.check_fan_health(environment) == [Result(CheckState.CRITICAL, "Fan 2 failed.")]
    assert handlers.check_psu_health(environment) == [Result(CheckState.OK, "There are no failed power supplies.")]



@pytest.mark.parametrize("code,expected", [
    (1, Result(CheckState.OK, "Environment is within temperature limits.")),
    (2, Result(CheckState.CRITICAL, "Environment is outside temperature limits.")),
    (5, Result(CheckState.UNKNOWN, "Environment over temperature state is unrecognized code 5.")),
])
def test_over_temperature(code, expected):
    assert handlers.check_over_temperature(EnvironmentInfo(over_temperature=code)) == [expected]



def test_enclosures_none_present():
    assert handlers.check_enclosure_fan_health({}) == [Result(CheckState.OK, "No enclosures present.")]



def test_enclosure_fan_failures(build):
    walk = {}
    walk.update(build.enclosure(1, "0a.1", fans_present="1, 2, 3, 4", fans_failed="2, 3", psus_present="1, 2"))
    walk.update(build.enclosure(2, "0b.2", fans_present="1, 2", fans_failed="1", psus_present="1, 2"))
    enclosures = decoders.decode_enclosures(walk)

    assert handlers.check_enclosure_fan_health(enclosures) == [
        Result(CheckState.CRITICAL, "Enclosure 0a.1 has 2 failed fans (2, 3)."),
        Result(CheckState.CRITICAL, "Enclosure 0b.2 has 1 failed fan (1)."),
    ]
    assert handlers.check_enclosure_psu_health(enclosures) == [
        Result(CheckState.OK, "4 power supplies present in 2 enclosures, none failed."),
    ]



def test_nvram_battery():
    assert handlers.check_nvram_battery(1) == [Result(CheckState.OK, "NVRAM battery is OK.")]
    assert handlers.check_nvram_battery(6) == [Result(CheckState.CRITICAL, "NVRAM battery is at end of life.")]
    assert handlers.check_nvram_battery(12) == [Result(CheckState.UNKNOWN, "NVRAM battery reports an unrecognized code 12.")]



def test_cluster_failover_not_configured():
    cluster = ClusterFailoverInfo(settings=1, partner_status=3, interconnect_status=2)
    assert handlers.check_cf_partner(cluster) == [Result(CheckState.OK, "Clustered failover not configured.")]
    assert handlers.check_cf_interconnect(cluster) == [Result(CheckState.OK, "Clustered failover not configured.")]



@pytest.mark.parametrize("partner_status,expected", [
    (1, Result(CheckState.WARNING, "Clustered failover partner (filer02) may be down.")),
    (2, Result(CheckState.OK, "Clustered failover partner (filer02) is okay.")),
    (3, Result(CheckState.CRITICAL, "Clustered failover partner (filer02) is dead.")),
    (4, Result(CheckState.WARNING, "Clustered failover partner (filer02) has been taken over.")),
])
def test_cluster_failover_partner(partner_status, expected):
    cluster = ClusterFailoverInfo(settings=2, partner_status=partner_status, partner_name="filer02")
    assert handlers.check_cf_partner(cluster) == [expected]



def test_cluster_failover_interconnect():
    cluster = ClusterFailoverInfo(settings=2, interconnect_status=3)
    assert handlers.check_cf_interconnect(cluster) == [Result(CheckState.WARNING, "Clustered failover interconnect is partially failed.")]



def test_global_status():
    assert handlers.check_global_status(StatusReport(3, "")) == [Result(CheckState.OK, "Global status is okay.")]
    assert handlers.check_global_status(StatusReport(5, "Disk shelf fault. PSU 2 failed.")) == [
        Result(CheckState.CRITICAL, "Disk shelf fault. PSU 2 failed."),
    ]
    assert handlers.check_global_status(StatusReport(4, "")) == [Result(CheckState.WARNING, "Global status is non-critical.")]



def test_autosupport():
    assert handlers.check_autosupport(StatusReport(1, "")) == [Result(CheckState.OK, "Autosupport status is okay.")]
    assert handlers.check_autosupport(StatusReport(2, "smtp failed")) == [Result(CheckState.CRITICAL, "smtp failed")]



@pytest.mark.parametrize("raw,seconds", [
    (8640000, 86400),
    ("8640000", 86400),
    ("12 days, 3:04:05.67", 12 * 86400 + 3 * 3600 + 4 * 60 + 5),
    ("1 day, 00:00:01", 86401),
    ("0:05:03.12", 303),
    ("2 hours, 3 minutes, 4 seconds", 7384),
])
def test_parse_uptime(raw, seconds):
    assert handlers.parse_uptime(raw) == seconds



def test_parse_uptime_garbage():
    with pytest.raises(CommunicationError):
        handlers.parse_uptime("yesterday")



def test_uptime_thresholds_in_hours():
    # rebooted 30 minutes ago
    results = handlers.check_uptime(180000, parse_range("@0:1"), parse_range("@0:0.25"))
    assert results == [Result(CheckState.WARNING, "System uptime is 30 minutes.")]



def test_snapshot_count_reports_every_volume(build):
    walk = {}
    for index in range(1, 4):
        walk.update(build.snapshot(1, index, f"hourly.{index}", "vol0"))
    walk.update(build.snapshot(2, 1, "nightly.0", "vol1"))
    snapshots = decoders.decode_snapshots(walk)

    assert handlers.check_snapshot_count(snapshots, parse_range("2"), parse_range("5")) == [
        Result(CheckState.WARNING, "Volume 'vol0' has 3 snapshots."),
        Result(CheckState.OK, "Volume 'vol1' has 1 snapshot."),
    ]



def test_snapshot_count_empty():
    assert handlers.check_snapshot_count({}, WARNING, CRITICAL) == [Result(CheckState.OK, "No snapshots found.")]



def test_quota_without_limit_is_counted(build):
    walk = {}
    walk.update(build.quota(2, 1, 3, used_kb=95, limit_kb=100, qtree="projects"))
    walk.update(build.quota(2, 2, 3, used_kb=10, limit_kb=0, qtree="unset"))
    quotas = decoders.decode_quotas(walk)

    assert handlers.check_tree_byte_quotas(quotas, WARNING, CRITICAL) == [
        Result(CheckState.CRITICAL, "projects: 95.0 KiB/100.0 KiB (95.000%)."),
        Result(CheckState.CRITICAL, "1 of 1 tree byte quota over threshold, 0 unlimited quotas, 1 without usage data."),
    ]
