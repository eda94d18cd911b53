# -*- coding: utf-8 -*-
# ---------------------------------------------------------------
# check NetApp storage plugin for Icinga 2 / Nagios
#
# usage: check_netapp_storage --help
# ---------------------------------------------------------------
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.
# ---------------------------------------------------------------

import argparse
import logging
import sys
import textwrap
from collections import namedtuple
from enum import Enum

from . import __version__, decoders, handlers
from .exceptions import CheckNetAppError, ConfigurationError
from .hostmap import default_config_path, load_hostmap, resolve_hostname
from .snmp import DEFAULT_PORT, DEFAULT_TIMEOUT, SNMPSession
from .state import CheckState, aggregate_results
from .thresholds import parse_range

logger = logging.getLogger("check_netapp")


class Metric(Enum):
    AGGREGATE_BYTES = "aggregatebytes"
    AGGREGATE_INODES = "aggregateinodes"
    AUTOSUPPORT = "autosupport"
    CF_INTERCONNECT = "cfinterconnect"
    CF_PARTNER = "cfpartner"
    DISK_HEALTH = "diskhealth"
    ENCLOSURE_FAN_HEALTH = "enclosurefanhealth"
    ENCLOSURE_PSU_HEALTH = "enclosurepsuhealth"
    FAN_HEALTH = "fanhealth"
    GLOBAL_STATUS = "globalstatus"
    GROUP_BYTE_QUOTAS = "groupbytequotas"
    GROUP_FILE_QUOTAS = "groupfilequotas"
    NVRAM_BATTERY = "nvrambattery"
    OVER_TEMPERATURE = "overtemperature"
    PSU_HEALTH = "psuhealth"
    SNAPSHOT_COUNT = "snapshotcount"
    TREE_BYTE_QUOTAS = "treebytequotas"
    TREE_FILE_QUOTAS = "treefilequotas"
    UPTIME = "uptime"
    USER_BYTE_QUOTAS = "userbytequotas"
    USER_FILE_QUOTAS = "userfilequotas"
    VOLUME_BYTES = "volumebytes"
    VOLUME_INODES = "volumeinodes"



# collect(session) fetches and decodes, handler(data, warning, critical) evaluates
MetricDefinition = namedtuple("MetricDefinition", ["help", "collect", "handler", "needs_thresholds", "join_all"])

METRICS = {
    Metric.AGGREGATE_BYTES: MetricDefinition("Check aggregate byte usage.", decoders.get_filesystems, handlers.check_aggregate_bytes, True, False),
    Metric.AGGREGATE_INODES: MetricDefinition("Check aggregate inode usage.", decoders.get_filesystems, handlers.check_aggregate_inodes, True, False),
    Metric.AUTOSUPPORT: MetricDefinition("Check autosupport status.", decoders.get_autosupport_status, handlers.check_autosupport, False, False),
    Metric.CF_INTERCONNECT: MetricDefinition("Check clustered failover interconnect status.", decoders.get_cluster_failover_info, handlers.check_cf_interconnect, False, False),
    Metric.CF_PARTNER: MetricDefinition("Check clustered failover partner status.", decoders.get_cluster_failover_info, handlers.check_cf_partner, False, False),
    Metric.DISK_HEALTH: MetricDefinition("Check physical disk health.", decoders.get_disk_summary, handlers.check_disk_health, False, True),
    Metric.ENCLOSURE_FAN_HEALTH: MetricDefinition("Check enclosure fan health.", decoders.get_enclosures, handlers.check_enclosure_fan_health, False, False),
    Metric.ENCLOSURE_PSU_HEALTH: MetricDefinition("Check enclosure PSU health.", decoders.get_enclosures, handlers.check_enclosure_psu_health, False, False),
    Metric.FAN_HEALTH: MetricDefinition("Check fan health.", decoders.get_environment_info, handlers.check_fan_health, False, False),
    Metric.GLOBAL_STATUS: MetricDefinition("Check global system status.", decoders.get_global_status, handlers.check_global_status, False, False),
    Metric.GROUP_BYTE_QUOTAS: MetricDefinition("Check group byte quotas.", decoders.get_quotas, handlers.check_group_byte_quotas, True, False),
    Metric.GROUP_FILE_QUOTAS: MetricDefinition("Check group file quotas.", decoders.get_quotas, handlers.check_group_file_quotas, True, False),
    Metric.NVRAM_BATTERY: MetricDefinition("Check NVRAM battery status.", decoders.get_nvram_battery_status, handlers.check_nvram_battery, False, False),
    Metric.OVER_TEMPERATURE: MetricDefinition("Check environment over temperature status.", decoders.get_environment_info, handlers.check_over_temperature, False, False),
    Metric.PSU_HEALTH: MetricDefinition("Check PSU health.", decoders.get_environment_info, handlers.check_psu_health, False, False),
    Metric.SNAPSHOT_COUNT: MetricDefinition("Check snapshot count per volume.", decoders.get_snapshots, handlers.check_snapshot_count, True, True),
    Metric.TREE_BYTE_QUOTAS: MetricDefinition("Check tree byte quotas.", decoders.get_quotas, handlers.check_tree_byte_quotas, True, False),
    Metric.TREE_FILE_QUOTAS: MetricDefinition("Check tree file quotas.", decoders.get_quotas, handlers.check_tree_file_quotas, True, False),
    Metric.UPTIME: MetricDefinition("Check system uptime in hours.", decoders.get_uptime, handlers.check_uptime, True, False),
    Metric.USER_BYTE_QUOTAS: MetricDefinition("Check user byte quotas.", decoders.get_quotas, handlers.check_user_byte_quotas, True, False),
    Metric.USER_FILE_QUOTAS: MetricDefinition("Check user file quotas.", decoders.get_quotas, handlers.check_user_file_quotas, True, False),
    Metric.VOLUME_BYTES: MetricDefinition("Check volume byte usage.", decoders.get_filesystems, handlers.check_volume_bytes, True, False),
    Metric.VOLUME_INODES: MetricDefinition("Check volume inode usage.", decoders.get_filesystems, handlers.check_volume_inodes, True, False),
}

# older names still found in service definitions
METRIC_ALIASES = {
    Metric.CF_PARTNER: ["cfpartnerstatus"],
}



def setup_logging(verbosity):
    if verbosity <= 0:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] [%(name)s] %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO if verbosity == 1 else logging.DEBUG)



class CheckNetApp:

    def __init__(self, argv=None, session_factory=SNMPSession):
        self.pluginname = "check_netapp_storage"
        self.help = f"Run {self.pluginname} --help for more information!"
        self.session_factory = session_factory
        self.parse_args(argv)



    def parse_args(self, argv=None):
        parser = argparse.ArgumentParser(
            prog=self.pluginname,
            add_help=True,
            formatter_class=argparse.RawTextHelpFormatter,
            description=textwrap.dedent(f"""
            PLUGIN DESCRIPTION: NetApp storage SNMP check plugin for ICINGA 2 / Nagios (version {__version__})."""),
            epilog=textwrap.dedent(f"""
            Examples:
            {self.pluginname} --hostname filer01.mydomain.com --community public --warning 70 --critical 90 --aggregatebytes
            {self.pluginname} -H filer01.mydomain.com -C public -w 80 -c 95 --treebytequotas
            {self.pluginname} -H filer01.mydomain.com -C public -w @0:1 -c @0:0.25 --uptime
            {self.pluginname} -H filer01.mydomain.com -C public --diskhealth
            """))

        connection = parser.add_argument_group('SNMP arguments', 'hostname, community, port, timeout')
        connection.add_argument('-H', '--hostname', dest='hostname', metavar='NETAPP HOSTNAME', type=str, required=True,
                                    help='NetApp hostname, FQDN or IP address')
        connection.add_argument('-C', '--community', dest='community', metavar='COMMUNITY', type=str, default='public',
                                    help='SNMP v2c community string, default: public')
        connection.add_argument('-p', '--port', dest='port', type=int, default=DEFAULT_PORT,
                                    help=f'SNMP port, default: {DEFAULT_PORT}')
        connection.add_argument('-t', '--timeout', dest='timeout', type=int, default=DEFAULT_TIMEOUT,
                                    help=f'SNMP request timeout in seconds, default: {DEFAULT_TIMEOUT}')
        connection.add_argument('--config', dest='config', metavar='CONFIG', type=str, default=default_config_path(),
                                    help='YAML file with a "hostmap" section, default: check_netapp_config.yaml next to the plugin')

        thresholds = parser.add_argument_group('threshold arguments', 'ranges in the monitoring plugin notation: 10, 10:, ~:10, 10:20, @10:20')
        thresholds.add_argument('-w', '--warning', dest='warning', metavar='RANGE', type=str,
                                    help='Warning threshold, required by usage, quota, snapshot and uptime metrics')
        thresholds.add_argument('-c', '--critical', dest='critical', metavar='RANGE', type=str,
                                    help='Critical threshold, required by usage, quota, snapshot and uptime metrics')

        metrics = parser.add_argument_group('available metrics', 'select exactly one')
        selector = metrics.add_mutually_exclusive_group(required=True)
        selector.add_argument('-m', '--metric', dest='metric', choices=[metric.value for metric in Metric],
                                    help='Select the metric by name')
        for metric, definition in METRICS.items():
            option_strings = [f'--{metric.value}'] + [f'--{alias}' for alias in METRIC_ALIASES.get(metric, [])]
            selector.add_argument(*option_strings, dest='metric', action='store_const', const=metric.value,
                                    help=definition.help)

        parser.add_argument('-v', '--verbose', dest='verbose', action='count', default=0,
                                    help='Log to stderr, -v for info, -vv for debug')
        parser.add_argument('-V', '--version', action='version', version=f'%(prog)s {__version__}')

        self.options = parser.parse_args(argv)
        self.metric = Metric(self.options.metric)



    def main(self):
        setup_logging(self.options.verbose)
        try:
            state, message = self.run()
        except Exception as error:
            logger.debug("Unhandled error", exc_info=True)
            state, message = CheckState.UNKNOWN, f"{type(error).__name__}: {error}"
        self.output(state, message)



    @staticmethod
    def output(state, message):
        prefix = state.name
        message = '{} - {}'.format(prefix, message)
        print(message)
        sys.exit(state.value)



    def check_thresholds(self, definition):
        """Parse -w/-c before anything is fetched from the device."""
        if definition.needs_thresholds:
            if self.options.warning is None:
                raise ConfigurationError(f"The {self.metric.value} check requires a warning threshold. {self.help}")
            if self.options.critical is None:
                raise ConfigurationError(f"The {self.metric.value} check requires a critical threshold. {self.help}")
        return parse_range(self.options.warning), parse_range(self.options.critical)



    def run(self):
        """Run the selected metric and return (state, message), errors included."""
        definition = METRICS[self.metric]
        try:
            warning, critical = self.check_thresholds(definition)
            hostname = resolve_hostname(self.options.hostname, load_hostmap(self.options.config))

            logger.info("Checking %s on %s", self.metric.value, hostname)
            with self.session_factory(hostname, self.options.community, port=self.options.port, timeout=self.options.timeout) as session:
                data = definition.collect(session)

            results = definition.handler(data, warning, critical)
        except CheckNetAppError as error:
            logger.info("%s: %s", type(error).__name__, error)
            return CheckState.UNKNOWN, str(error)

        for result in results:
            logger.debug("%s: %s", result.state.name, result.message)
        return aggregate_results(results, join_all=definition.join_all)



def main(argv=None):
    check_netapp = CheckNetApp(argv)
    check_netapp.main()



if __name__ == "__main__":
    main()
