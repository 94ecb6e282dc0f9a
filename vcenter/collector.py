import logging
import time

from vcenter.cache import EntityCache
from vcenter.errors import NoSessionError
from vcenter.filter import IncludeExcludeFilter


class VcCollector:
    """
    Session, entity cache and collection options of one vCenter.
    The cache is rebuilt whenever the session gateway creates a new session.
    """

    def __init__(self, vcenter, data_duration, clock=time.monotonic):
        self.__logger = logging.getLogger(__name__)
        self.vcenter = vcenter
        self.data_duration = data_duration
        self.clock = clock
        self.max_response_duration = 0
        self.skip_not_responding_for = 0
        self.query_bulk_size = 100
        self.filter_clusters = IncludeExcludeFilter()
        self.filter_hosts = IncludeExcludeFilter()
        self.filter_vms = IncludeExcludeFilter()
        self._cache = None

    @property
    def cache(self) -> EntityCache:
        if self._cache is None:
            raise NoSessionError()
        return self._cache

    @property
    def vcenter_host(self) -> str:
        return self.vcenter.host_tag

    def set_data_duration(self, seconds):
        self.data_duration = seconds
        if self._cache is not None:
            self._cache.data_duration = seconds

    def set_max_response_time(self, seconds):
        self.max_response_duration = seconds

    def set_skip_host_not_responding_duration(self, seconds):
        self.skip_not_responding_for = seconds

    def set_query_chunk_size(self, size):
        if size <= 0:
            raise ValueError(f'query chunk size must be positive, got {size}')
        self.query_bulk_size = size

    def set_filter_clusters(self, include=None, exclude=None):
        self.filter_clusters = IncludeExcludeFilter(include, exclude)

    def set_filter_hosts(self, include=None, exclude=None):
        self.filter_hosts = IncludeExcludeFilter(include, exclude)

    def set_filter_vms(self, include=None, exclude=None):
        self.filter_vms = IncludeExcludeFilter(include, exclude)

    def open(self, timeout) -> bool:
        created = self.vcenter.open(timeout)
        if created or self._cache is None:
            self.__logger.debug(f'new entity cache for {self.vcenter_host}')
            self._cache = EntityCache(self.vcenter.finder(), self.data_duration, clock=self.clock)
        return created

    def is_active(self, deadline=None) -> bool:
        return self._cache is not None and self.vcenter.is_active(deadline)

    def close(self):
        self.vcenter.close()
        self._cache = None

    def shutdown(self):
        self.close()
        self.vcenter.shutdown()

    def retriever(self):
        return self.vcenter.retriever()

    def esxcli(self, host):
        return self.vcenter.esxcli(host)
