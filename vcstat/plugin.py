import itertools
import logging
import time
import urllib.parse

from vcenter.collector import VcCollector
from vcenter.collect.cluster import collect_cluster_info
from vcenter.collect.graphics import collect_host_graphics
from vcenter.collect.host import (collect_host_firewall, collect_host_hba, collect_host_info,
                                  collect_host_nic, report_host_esxcli_response)
from vcenter.collect.net import collect_net_dvp, collect_net_dvs
from vcenter.collect.storage import collect_datastore_info
from vcenter.collect.vc import collect_datacenter_info, collect_vcenter_info
from vcenter.collect.vm import collect_vm_info
from vcenter.deadline import Deadline
from vcenter.errors import TransientQueryError, is_fatal
from vcenter.vcenter import VCenter
from vcstat.enhanced_logging import log_to, reset_context_var, set_context_var
from vcstat.settings import parse_duration
from vcstat.stats import stats_increment_metric, stats_report_gather

SELF_MEASUREMENT = 'internal_vcstat'


class VcStat:
    """
    Gathers status and basic stats from a VMware vCenter, one cycle per poll interval.
    """

    logger = logging.getLogger(__name__)

    def __init__(self, config, vcenter_factory=VCenter, clock=time.monotonic):
        self.config = dict(config)
        self.vcenter_factory = vcenter_factory
        self.clock = clock
        self.vcc = None
        self.poll_interval = 60
        self.timeout = parse_duration(self.config.get('timeout') or 0)
        self.version = ''
        self.sessions_created = 0
        self.self_metrics_tags = None
        self.deadline = None
        self._cycles = itertools.count(1)

    def _instances(self, name) -> bool:
        return bool(self.config.get(f'{name}_instances'))

    @property
    def has_esxcli_collection(self) -> bool:
        return any(self._instances(n) for n in ('host_hba', 'host_nic', 'host_firewall', 'host_graphics'))

    def init(self):
        if self.vcc is not None:
            self.vcc.shutdown()
        vcenter = self.vcenter_factory(
            self.config['vcenter'],
            self.config.get('username'),
            self.config.get('password'),
            tls_ca=self.config.get('tls_ca'),
            insecure_skip_verify=bool(self.config.get('insecure_skip_verify'))
        )
        vcc = VcCollector(vcenter, round(self.poll_interval * 0.95), clock=self.clock)
        self._set_intervals(vcc)
        vcc.set_query_chunk_size(self.config.get('query_bulk_size', 100))
        vcc.set_filter_clusters(self.config.get('clusters_include'), self.config.get('clusters_exclude'))
        vcc.set_filter_hosts(self.config.get('hosts_include'), self.config.get('hosts_exclude'))
        vcc.set_filter_vms(self.config.get('vms_include'), self.config.get('vms_exclude'))
        self.vcc = vcc
        set_context_var('vcenter', vcc.vcenter_host)

    def _set_intervals(self, vcc):
        vcc.set_data_duration(round(self.poll_interval * 0.95))
        vcc.set_max_response_time(self.poll_interval)
        vcc.set_skip_host_not_responding_duration(
            self.poll_interval * self.config.get('intervals_skip_notresponding_esxcli_hosts', 20)
        )

    def stop(self):
        if self.deadline is not None:
            self.deadline.cancel()
        if self.vcc is not None:
            self.vcc.shutdown()
            self.vcc = None

    def set_poll_interval(self, seconds):
        self.poll_interval = seconds
        if not self.timeout or self.timeout > seconds:
            self.timeout = seconds
        if self.vcc is not None:
            self._set_intervals(self.vcc)

    def set_version(self, version):
        self.version = version

    def start_self_metrics(self):
        url = self.config.get('vcenter', '')
        self.self_metrics_tags = {
            'alias': self.config.get('internal_alias', ''),
            'vcenter': urllib.parse.urlparse(url if '://' in url else f'https://{url}').hostname or '',
            'vcstat_version': self.version,
        }

    def gather(self, acc) -> bool:
        """
        Runs one gather cycle.
        :param acc: Accumulator receiving metrics and non fatal errors
        :return: False when the cycle was aborted, its metrics are dropped then
        """
        self.deadline = Deadline(self.poll_interval, clock=self.clock)
        set_context_var('cycle', next(self._cycles))
        try:
            try:
                self._keep_active_session(acc)
            except Exception as ex:
                acc.gather_error(ex)
                return False

            start = self.clock()
            for step in (self._gather_high_level_entities,
                         self._gather_host,
                         self._gather_network,
                         self._gather_storage,
                         self._gather_vm):
                try:
                    step(acc)
                except Exception as ex:
                    if is_fatal(ex):
                        acc.gather_error(ex)
                        return False
                    acc.add_error(ex if isinstance(ex, TransientQueryError) else TransientQueryError(str(ex)))

            self._gather_self_metrics(acc, self.clock() - start)
            return True
        finally:
            self.deadline = None
            reset_context_var('cycle')

    def _keep_active_session(self, acc):
        if self.vcc is None:
            self.init()
        if not self.vcc.is_active(self.deadline):
            if self.sessions_created > 0:
                acc.add_error(TransientQueryError(
                    f"vCenter session not active, re-authenticating with {self.vcc.vcenter_host}"
                ))
            self.vcc.open(self.timeout)
            self.sessions_created += 1
            stats_increment_metric(f"internal.{self.config.get('internal_alias') or 'vcstat'}", 'sessions')

    @log_to(logger)
    def _gather_high_level_entities(self, acc):
        collect_vcenter_info(self.vcc, self.deadline, acc)
        if self._instances('cluster') or self._instances('host'):
            collect_datacenter_info(self.vcc, self.deadline, acc)
        if self._instances('cluster'):
            collect_cluster_info(self.vcc, self.deadline, acc)

    @log_to(logger)
    def _gather_host(self, acc):
        if self._instances('host'):
            collect_host_info(self.vcc, self.deadline, acc)
        self.vcc.cache.reset_response_times()

        if self._instances('host_hba'):
            collect_host_hba(self.vcc, self.deadline, acc)
        if self._instances('host_nic'):
            collect_host_nic(self.vcc, self.deadline, acc)
        if self._instances('host_firewall'):
            collect_host_firewall(self.vcc, self.deadline, acc)
        if self._instances('host_graphics'):
            collect_host_graphics(self.vcc, self.deadline, acc)
        if self.has_esxcli_collection:
            report_host_esxcli_response(self.vcc, self.deadline, acc)

    @log_to(logger)
    def _gather_network(self, acc):
        if self._instances('net_dvs'):
            collect_net_dvs(self.vcc, self.deadline, acc)
        if self._instances('net_dvp'):
            collect_net_dvp(self.vcc, self.deadline, acc)

    @log_to(logger)
    def _gather_storage(self, acc):
        if self._instances('datastore'):
            collect_datastore_info(self.vcc, self.deadline, acc)

    @log_to(logger)
    def _gather_vm(self, acc):
        if self._instances('vm'):
            collect_vm_info(self.vcc, self.deadline, acc)

    def _gather_self_metrics(self, acc, gather_time):
        not_responding = self.vcc.cache.get_number_not_responding()
        self.logger.info(
            f'gather done in {gather_time:.3f}s, {not_responding} host(s) not responding to esxcli'
        )
        stats_report_gather(
            self.config.get('internal_alias') or 'vcstat', gather_time, not_responding, self.sessions_created
        )
        if self.self_metrics_tags is None:
            return
        fields = {
            'gather_time_ns': int(gather_time * 1e9),
            'sessions_created': self.sessions_created,
        }
        if self.has_esxcli_collection:
            fields['notresponding_esxcli_hosts'] = not_responding
        acc.add_fields(SELF_MEASUREMENT, fields, self.self_metrics_tags)
