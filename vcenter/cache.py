import logging
import time

from vcenter.enums import EntityClass
from vcenter.errors import NotFoundError
from vcenter.host_state import HostState


class EntityCache:
    """
    Inventory of a vCenter kept per datacenter in index aligned lists.
    Every entity class has its own refresh timestamp and is re-read only when
    data_duration has passed since its last successful refresh, or when the
    datacenter count no longer matches its lists.
    """

    def __init__(self, finder, data_duration, clock=time.monotonic):
        self.__logger = logging.getLogger(__name__)
        self.finder = finder
        self.data_duration = data_duration
        self._clock = clock
        self._last_update = {entity_class: None for entity_class in EntityClass}
        self.dcs = []
        self.clusters = []
        self.hosts = []
        self.host_states = []
        self.nets = []
        self.dss = []
        self.vms = []

    def is_fresh(self, entity_class: EntityClass) -> bool:
        last = self._last_update[entity_class]
        return last is not None and self._clock() - last < self.data_duration

    def _is_current(self, entity_class: EntityClass, *lists) -> bool:
        """
        :return: True when the class is within its TTL and still aligned with datacenters
        """
        return self.is_fresh(entity_class) and all(len(entities) == len(self.dcs) for entities in lists)

    def _mark_updated(self, entity_class: EntityClass):
        self._last_update[entity_class] = self._clock()

    def _list_or_empty(self, list_func, dc, deadline):
        try:
            return list_func(dc, deadline=deadline)
        except NotFoundError as ex:
            self.__logger.debug(f'{dc.name}: {ex}')
            return []

    def _sized(self, lists):
        """
        :return: lists itself when it is aligned with datacenters, otherwise new empty lists
        """
        if len(lists) == len(self.dcs):
            return lists
        return [[] for _ in self.dcs]

    def refresh_datacenters(self, deadline=None):
        if self.is_fresh(EntityClass.DATACENTERS):
            return
        try:
            self.dcs = self.finder.datacenter_list(deadline=deadline)
        except NotFoundError:
            self.dcs = []
        self._mark_updated(EntityClass.DATACENTERS)

    def refresh_clusters_and_hosts(self, deadline=None):
        self.refresh_datacenters(deadline)
        if self._is_current(EntityClass.CLUSTERS_AND_HOSTS, self.clusters, self.hosts, self.host_states):
            return

        num_dcs = len(self.dcs)
        platform_change = any(
            num_dcs != len(entities) for entities in (self.clusters, self.hosts, self.host_states)
        )
        if platform_change:
            self.__logger.info(f'datacenter count changed to {num_dcs}, resetting host states')
            self.clusters = [[] for _ in range(num_dcs)]
            self.hosts = [[] for _ in range(num_dcs)]
            self.host_states = [[] for _ in range(num_dcs)]

        for i, dc in enumerate(self.dcs):
            self.clusters[i] = self._list_or_empty(self.finder.cluster_list, dc, deadline)
            num_hosts = len(self.hosts[i])
            self.hosts[i] = self._list_or_empty(self.finder.host_list, dc, deadline)
            # host states survive a refresh unless the host count of the datacenter changed
            if platform_change or num_hosts != len(self.hosts[i]):
                self.host_states[i] = [HostState(clock=self._clock) for _ in self.hosts[i]]
        self._mark_updated(EntityClass.CLUSTERS_AND_HOSTS)

    def refresh_networks(self, deadline=None):
        self.refresh_datacenters(deadline)
        if self._is_current(EntityClass.NETWORKS, self.nets):
            return

        self.nets = self._sized(self.nets)
        for i, dc in enumerate(self.dcs):
            self.nets[i] = self._list_or_empty(self.finder.network_list, dc, deadline)
        self._mark_updated(EntityClass.NETWORKS)

    def refresh_datastores(self, deadline=None):
        self.refresh_datacenters(deadline)
        if self._is_current(EntityClass.DATASTORES, self.dss):
            return

        self.dss = self._sized(self.dss)
        for i, dc in enumerate(self.dcs):
            self.dss[i] = self._list_or_empty(self.finder.datastore_list, dc, deadline)
        self._mark_updated(EntityClass.DATASTORES)

    def refresh_vms(self, deadline=None):
        # vm records are resolved against hosts and clusters
        self.refresh_clusters_and_hosts(deadline)
        if self._is_current(EntityClass.VMS, self.vms):
            return

        self.vms = self._sized(self.vms)
        for i, dc in enumerate(self.dcs):
            self.vms[i] = self._list_or_empty(self.finder.vm_list, dc, deadline)
        self._mark_updated(EntityClass.VMS)

    def refresh_all(self, deadline=None):
        self.refresh_datacenters(deadline)
        self.refresh_clusters_and_hosts(deadline)
        self.refresh_networks(deadline)
        self.refresh_datastores(deadline)

    def get_cluster_name_for_host(self, dc_index, host) -> str:
        if dc_index >= len(self.clusters):
            return ''
        for cluster in self.clusters[dc_index]:
            if host.inventory_path.startswith(cluster.inventory_path + '/'):
                return cluster.name
        return ''

    def get_host_state(self, dc_index, host_index):
        try:
            return self.host_states[dc_index][host_index]
        except IndexError:
            return None

    def is_host_connected(self, dc_index, host_index) -> bool:
        state = self.get_host_state(dc_index, host_index)
        return state is not None and state.is_connected()

    def get_host_by_moid(self, dc_index, moid):
        if dc_index >= len(self.hosts):
            return None
        for host in self.hosts[dc_index]:
            if host.moid == moid:
                return host
        return None

    def get_host_by_reference(self, dc_index, ref):
        if ref is None:
            return None
        host = self.get_host_by_moid(dc_index, ref._moId)
        if host is not None and host.same_reference(ref):
            return host
        return None

    def get_number_not_responding(self) -> int:
        return sum(
            1 for states in self.host_states for state in states if state.not_responding
        )

    def reset_response_times(self):
        for states in self.host_states:
            for state in states:
                state.reset_response_time()
