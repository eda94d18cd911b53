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
Metric handlers.

Every handler takes the decoded device data plus the warning and critical
ranges and returns a list of Result(state, message). Handlers never touch the
network, the collectors in decoders.py do the fetching.
"""

import re
from collections import defaultdict

from .codes import (
    AUTOSUPPORT_STATES,
    GLOBAL_STATES,
    INTERCONNECT_STATES,
    NVRAM_BATTERY_STATES,
    OVER_TEMPERATURE_STATES,
    PARTNER_STATES,
    ClusterFailoverSettings,
    QuotaType,
    lookup_state,
    parse_code,
)
from .exceptions import CommunicationError
from .render import fmt_bytes, fmt_duration, plural
from .state import CheckState, Result, worst_state
from .thresholds import evaluate

USER_QUOTA_TYPES = (QuotaType.USER, QuotaType.USERDEFAULT)
GROUP_QUOTA_TYPES = (QuotaType.GROUP, QuotaType.GROUPDEFAULT)
TREE_QUOTA_TYPES = (QuotaType.TREE,)

_UPTIME_CLOCK_RE = re.compile(r"^(?:(?P<days>\d+)\s+days?,?\s*)?(?P<hours>\d+):(?P<minutes>\d{1,2}):(?P<seconds>\d{1,2})$")
_UPTIME_UNIT_RE = re.compile(r"(\d+)\s*(day|hour|minute|second)s?")
_UNIT_SECONDS = {"day": 86400, "hour": 3600, "minute": 60, "second": 1}


def _filesystem_usage(filesystems, warning, critical, aggregates, resource):
    kind = "aggregate" if aggregates else "volume"
    results = []
    checked = 0
    unavailable = 0

    for filesystem in filesystems.values():
        if filesystem.is_aggregate != aggregates or filesystem.is_snapshot:
            continue

        if resource == "bytes":
            pct = filesystem.pct_used_bytes
            usage = f"{fmt_bytes(filesystem.used_bytes)}/{fmt_bytes(filesystem.total_bytes)}"
        else:
            pct = filesystem.pct_used_inodes
            usage = f"{filesystem.used_inodes}/{filesystem.total_inodes} inodes"

        if pct is None:
            unavailable += 1
            continue

        checked += 1
        state = evaluate(pct, warning, critical)
        if state is not CheckState.OK:
            results.append(Result(state, f"{kind.capitalize()} '{filesystem.name}': {usage} ({pct:.3f}%)."))

    if not results:
        message = f"{plural(checked, kind)} OK."
        if unavailable:
            message = f"{plural(checked, kind)} OK, {unavailable} without usage data."
        results.append(Result(CheckState.OK, message))

    return results



def check_aggregate_bytes(filesystems, warning=None, critical=None):
    return _filesystem_usage(filesystems, warning, critical, aggregates=True, resource="bytes")



def check_aggregate_inodes(filesystems, warning=None, critical=None):
    return _filesystem_usage(filesystems, warning, critical, aggregates=True, resource="inodes")



def check_volume_bytes(filesystems, warning=None, critical=None):
    return _filesystem_usage(filesystems, warning, critical, aggregates=False, resource="bytes")



def check_volume_inodes(filesystems, warning=None, critical=None):
    return _filesystem_usage(filesystems, warning, critical, aggregates=False, resource="inodes")



def _quota_usage(quotas, warning, critical, quota_types, resource, label):
    results = []
    checked = 0
    unlimited = 0
    unavailable = 0

    for quota in quotas.values():
        if quota.type not in quota_types:
            continue

        if resource == "bytes":
            is_unlimited = quota.bytes_unlimited
            pct = quota.pct_bytes_used
            usage = f"{fmt_bytes(quota.bytes_used)}/{fmt_bytes(quota.bytes_limit)}"
        else:
            is_unlimited = quota.files_unlimited
            pct = quota.pct_files_used
            usage = f"{quota.files_used}/{quota.files_limit} files"

        # unlimited quotas are counted, never measured
        if is_unlimited:
            unlimited += 1
            continue
        if pct is None:
            unavailable += 1
            continue

        checked += 1
        state = evaluate(pct, warning, critical)
        if state is not CheckState.OK:
            name = quota.tree if quota.type is QuotaType.TREE else quota.identity
            results.append(Result(state, f"{name}: {usage} ({pct:.3f}%)."))

    tally = plural(unlimited, "unlimited quota")
    if unavailable:
        tally = f"{tally}, {unavailable} without usage data"
    if results:
        worst = worst_state(result.state for result in results)
        results.append(Result(worst, f"{len(results)} of {plural(checked, label)} over threshold, {tally}."))
    else:
        results.append(Result(CheckState.OK, f"{plural(checked, label)} OK, {tally}."))

    return results



def check_tree_byte_quotas(quotas, warning=None, critical=None):
    return _quota_usage(quotas, warning, critical, TREE_QUOTA_TYPES, "bytes", "tree byte quota")



def check_tree_file_quotas(quotas, warning=None, critical=None):
    return _quota_usage(quotas, warning, critical, TREE_QUOTA_TYPES, "files", "tree file quota")



def check_user_byte_quotas(quotas, warning=None, critical=None):
    return _quota_usage(quotas, warning, critical, USER_QUOTA_TYPES, "bytes", "user byte quota")



def check_user_file_quotas(quotas, warning=None, critical=None):
    return _quota_usage(quotas, warning, critical, USER_QUOTA_TYPES, "files", "user file quota")



def check_group_byte_quotas(quotas, warning=None, critical=None):
    return _quota_usage(quotas, warning, critical, GROUP_QUOTA_TYPES, "bytes", "group byte quota")



def check_group_file_quotas(quotas, warning=None, critical=None):
    return _quota_usage(quotas, warning, critical, GROUP_QUOTA_TYPES, "files", "group file quota")



def check_disk_health(disks, warning=None, critical=None):
    # every raised condition is reported, not only the worst one
    results = []

    if disks.failed > 0:
        results.append(Result(CheckState.CRITICAL, f"{plural(disks.failed, 'failed disk')}: {disks.failed_message}"))
    if disks.reconstructing > 0:
        results.append(Result(CheckState.WARNING, f"{plural(disks.reconstructing, 'disk')} reconstructing."))
    if disks.reconstructing_parity > 0:
        results.append(Result(CheckState.WARNING, f"{plural(disks.reconstructing_parity, 'disk')} reconstructing parity."))
    if disks.adding_spare > 0:
        results.append(Result(CheckState.WARNING, f"{plural(disks.adding_spare, 'spare disk')} being added."))

    if not results:
        results.append(Result(CheckState.OK, f"{plural(disks.total, 'disk')} present, {disks.active} active."))

    return results



def check_fan_health(environment, warning=None, critical=None):
    if environment.failed_fan_count:
        return [Result(CheckState.CRITICAL, environment.failed_fan_message or f"{plural(environment.failed_fan_count, 'failed fan')}.")]
    return [Result(CheckState.OK, environment.failed_fan_message or "No failed fans.")]



def check_psu_health(environment, warning=None, critical=None):
    if environment.failed_psu_count:
        return [Result(CheckState.CRITICAL, environment.failed_psu_message or f"{plural(environment.failed_psu_count, 'failed power supply', 'failed power supplies')}.")]
    return [Result(CheckState.OK, environment.failed_psu_message or "No failed power supplies.")]



def check_over_temperature(environment, warning=None, critical=None):
    state, text = lookup_state(OVER_TEMPERATURE_STATES, environment.over_temperature)
    if state is CheckState.UNKNOWN:
        return [Result(state, f"Environment over temperature state is {text}.")]
    return [Result(state, f"Environment is {text} temperature limits.")]



def _enclosure_components(enclosures, singular, plural_form, present_attribute, failed_attribute, failed_list_attribute):
    if not enclosures:
        return [Result(CheckState.OK, "No enclosures present.")]

    results = []
    present = 0
    for enclosure in enclosures.values():
        present += getattr(enclosure, present_attribute)
        failed = getattr(enclosure, failed_attribute)
        if failed > 0:
            failed_text = plural(failed, f"failed {singular}", f"failed {plural_form}")
            results.append(Result(CheckState.CRITICAL, f"Enclosure {enclosure.name} has {failed_text} ({getattr(enclosure, failed_list_attribute)})."))

    if not results:
        results.append(Result(
            CheckState.OK,
            f"{plural(present, singular, plural_form)} present in {plural(len(enclosures), 'enclosure')}, none failed.",
        ))

    return results



def check_enclosure_fan_health(enclosures, warning=None, critical=None):
    return _enclosure_components(enclosures, "fan", "fans", "fans_present", "fans_failed", "failed_fans")



def check_enclosure_psu_health(enclosures, warning=None, critical=None):
    return _enclosure_components(enclosures, "power supply", "power supplies", "psus_present", "psus_failed", "failed_psus")



def check_nvram_battery(code, warning=None, critical=None):
    state, text = lookup_state(NVRAM_BATTERY_STATES, code)
    if state is CheckState.UNKNOWN:
        return [Result(state, f"NVRAM battery reports an {text}.")]
    return [Result(state, f"NVRAM battery is {text}.")]



def _cluster_failover_configured(cluster):
    return parse_code(ClusterFailoverSettings, cluster.settings) is not ClusterFailoverSettings.NOT_CONFIGURED



def check_cf_interconnect(cluster, warning=None, critical=None):
    if not _cluster_failover_configured(cluster):
        return [Result(CheckState.OK, "Clustered failover not configured.")]
    state, text = lookup_state(INTERCONNECT_STATES, cluster.interconnect_status)
    return [Result(state, f"Clustered failover interconnect is {text}.")]



def check_cf_partner(cluster, warning=None, critical=None):
    if not _cluster_failover_configured(cluster):
        return [Result(CheckState.OK, "Clustered failover not configured.")]
    state, text = lookup_state(PARTNER_STATES, cluster.partner_status)
    if state is CheckState.UNKNOWN:
        text = f"reports an {text}"
    return [Result(state, f"Clustered failover partner ({cluster.partner_name}) {text}.")]



def _status_report(report, table, subject):
    state, text = lookup_state(table, report.code)
    if state is CheckState.OK:
        return [Result(state, f"{subject} is okay.")]
    if state is CheckState.UNKNOWN:
        return [Result(state, f"{subject} reports an {text}.")]
    return [Result(state, report.message or f"{subject} is {text}.")]



def check_global_status(report, warning=None, critical=None):
    return _status_report(report, GLOBAL_STATES, "Global status")



def check_autosupport(report, warning=None, critical=None):
    return _status_report(report, AUTOSUPPORT_STATES, "Autosupport status")



def parse_uptime(raw):
    """
    Return the uptime in seconds.

    TimeTicks arrive as an integer of hundredths of a second. Some agents and
    proxies hand out the rendered form instead, e.g. '12 days, 3:04:05.67',
    whose fractional part is dropped before parsing.
    """
    if isinstance(raw, int):
        return raw // 100

    text = str(raw).strip()
    if text.isdigit():
        return int(text) // 100

    text = re.sub(r"\.\d+$", "", text)
    match = _UPTIME_CLOCK_RE.match(text)
    if match:
        days = int(match.group("days") or 0)
        return days * 86400 + int(match.group("hours")) * 3600 + int(match.group("minutes")) * 60 + int(match.group("seconds"))

    units = _UPTIME_UNIT_RE.findall(text)
    if units:
        return sum(int(amount) * _UNIT_SECONDS[unit] for amount, unit in units)

    raise CommunicationError(f"Cannot parse uptime value '{raw}'.")



def check_uptime(raw_uptime, warning=None, critical=None):
    seconds = parse_uptime(raw_uptime)
    state = evaluate(seconds / 3600, warning, critical)
    return [Result(state, f"System uptime is {fmt_duration(seconds)}.")]



def check_snapshot_count(snapshots, warning=None, critical=None):
    """One result per volume, healthy volumes included."""
    if not snapshots:
        return [Result(CheckState.OK, "No snapshots found.")]

    per_volume = defaultdict(int)
    for snapshot in snapshots.values():
        per_volume[snapshot.volume] += 1

    results = []
    for volume in sorted(per_volume):
        count = per_volume[volume]
        results.append(Result(evaluate(count, warning, critical), f"Volume '{volume}' has {plural(count, 'snapshot')}."))
    return results
