import logging

from vcenter.enums import EntityStatus
from vcenter.errors import EsxcliError, SlowResponseError, TransientQueryError, is_fatal
from vcenter.query import chunk_references
from vcstat.enhanced_logging import VERBOSE

logger = logging.getLogger(__name__)


def entity_status_code(status) -> int:
    return EntityStatus.code_of(status)


def fetch_properties(vcc, items, path_set, deadline, acc, what):
    """
    Fetches properties of items in chunks of vcc.query_bulk_size.
    A failing chunk is recorded in acc and skipped unless the failure is fatal.
    :return: list of (item, properties) for the items that could be read
    """
    retriever = vcc.retriever()
    by_moid = {}
    for chunk in chunk_references(items, vcc.query_bulk_size):
        deadline.check()
        try:
            by_moid.update(retriever.retrieve([item.ref for item in chunk], path_set, deadline=deadline))
        except Exception as ex:
            if is_fatal(ex):
                raise
            acc.add_error(TransientQueryError(f'could not get {what} {", ".join(path_set)} properties: {ex}'))
    return [(item, by_moid[item.moid]) for item in items if item.moid in by_moid]


def run_esxcli(vcc, deadline, acc, dc_index, host_index, host, command):
    """
    Runs an esxcli command against a host unless it is disconnected or cooling down.
    Updates the host liveness state with the outcome and the time spent.
    :return: list of records, None when the host was skipped or failed
    """
    state = vcc.cache.get_host_state(dc_index, host_index)
    if state is None:
        acc.add_error(TransientQueryError(f'could not find host state for {host.name}'))
        return None
    if not state.is_connected_and_responding(vcc.skip_not_responding_for):
        return None

    deadline.check()
    cmd = ' '.join(command)
    start = vcc.clock()
    try:
        records = vcc.esxcli(host).run(command)
    except Exception as ex:
        state.sum_response_time(vcc.clock() - start)
        state.set_not_responding(True)
        if is_fatal(ex):
            raise
        acc.add_error(EsxcliError(f'could not run esxcli {cmd} against host {host.name}: {ex}'))
        return None

    elapsed = vcc.clock() - start
    state.sum_response_time(elapsed)
    if vcc.max_response_duration and elapsed >= vcc.max_response_duration:
        state.set_not_responding(True)
        # fatal for the cycle, whose metrics are rejected, so the records are not handed back
        raise SlowResponseError(f'slow response from {host.name} to esxcli {cmd}: {elapsed:.1f}s')
    state.set_not_responding(False)
    logger.log(VERBOSE, f'esxcli {cmd} on {host.name} took {elapsed:.3f}s')
    return records


def first(record, key, default=''):
    values = record.get(key)
    return values[0] if values else default


def hosts_of(vcc):
    """
    Yields (dc_index, dc, host_index, host) for every host passing the host filter
    """
    cache = vcc.cache
    for i, dc in enumerate(cache.dcs):
        for j, host in enumerate(cache.hosts[i] if i < len(cache.hosts) else []):
            if vcc.filter_hosts.match(host.name):
                yield i, dc, j, host
