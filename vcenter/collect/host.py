from vcenter.collect.common import entity_status_code, fetch_properties, first, hosts_of, run_esxcli
from vcenter.errors import ParseError, TransientQueryError

HOST_CONNECTION_CODES = {
    'connected': 0,
    'notResponding': 1,
    'disconnected': 2,
}

HBA_LINK_STATE_CODES = {
    'link-up': 0,
    'online': 0,
    'link-n/a': 1,
    'unbound': 1,
    'link-down': 3,
    'offline': 3,
}

NIC_LINK_STATUS_CODES = {
    'Up': 0,
    'Unknown': 1,
    'Down': 2,
}


def host_connection_state_code(state) -> int:
    return HOST_CONNECTION_CODES.get(str(state), 0)


def hba_link_state_code(state) -> int:
    return HBA_LINK_STATE_CODES.get(state, 1)


def nic_link_status_code(state) -> int:
    return NIC_LINK_STATUS_CODES.get(state, 1)


def parse_bool(value) -> bool:
    lowered = str(value).strip().lower()
    if lowered in ('true', '1', 'yes'):
        return True
    if lowered in ('false', '0', 'no'):
        return False
    raise ParseError(f'not a boolean: {value!r}')


def host_tags(vcc, dc_index, dc, host):
    return {
        'clustername': vcc.cache.get_cluster_name_for_host(dc_index, host),
        'dcname': dc.name,
        'esxhostname': host.name,
        'vcenter': vcc.vcenter_host,
    }


def collect_host_info(vcc, deadline, acc):
    """
    vcstat_host: summary of every host, also feeds the connection state of the
    host liveness records
    """
    cache = vcc.cache
    cache.refresh_clusters_and_hosts(deadline)

    for i, dc in enumerate(cache.dcs):
        indexes = {host.moid: j for j, host in enumerate(cache.hosts[i]) if vcc.filter_hosts.match(host.name)}
        hosts = [host for host in cache.hosts[i] if host.moid in indexes]
        for host, props in fetch_properties(vcc, hosts, ['summary'], deadline, acc, 'host'):
            state = cache.get_host_state(i, indexes[host.moid])
            if state is None:
                acc.add_error(TransientQueryError(f'could not find host state for {host.name}'))
                continue
            summary = props.get('summary')
            if summary is None:
                continue
            runtime = summary.runtime
            hardware = summary.hardware
            connection_state = str(runtime.connectionState)
            state.set_not_connected(connection_state != 'connected')

            tags = host_tags(vcc, i, dc, host)
            tags['moid'] = host.moid
            acc.add_fields(
                'vcstat_host',
                {
                    'connection_state': connection_state,
                    'connection_state_code': host_connection_state_code(connection_state),
                    'cpu_freq': hardware.cpuMhz if hardware is not None else 0,
                    'in_maintenance_mode': bool(runtime.inMaintenanceMode),
                    'memory_size': hardware.memorySize if hardware is not None else 0,
                    'num_cpus': hardware.numCpuCores if hardware is not None else 0,
                    'reboot_required': bool(summary.rebootRequired),
                    'status': str(summary.overallStatus),
                    'status_code': entity_status_code(summary.overallStatus),
                },
                tags
            )


def collect_host_hba(vcc, deadline, acc):
    """
    vcstat_host_hba: storage adapters of every host (esxcli storage core adapter list)
    """
    vcc.cache.refresh_clusters_and_hosts(deadline)

    for i, dc, j, host in hosts_of(vcc):
        records = run_esxcli(vcc, deadline, acc, i, j, host, ['storage', 'core', 'adapter', 'list'])
        for record in records or []:
            if not record.get('LinkState'):
                continue
            link_state = first(record, 'LinkState')
            tags = host_tags(vcc, i, dc, host)
            tags['device'] = first(record, 'HBAName')
            tags['driver'] = first(record, 'Driver')
            acc.add_fields(
                'vcstat_host_hba',
                {
                    'link_state': link_state,
                    'link_state_code': hba_link_state_code(link_state),
                },
                tags
            )


def collect_host_nic(vcc, deadline, acc):
    """
    vcstat_host_nic: physical NICs of every host (esxcli network nic list)
    """
    vcc.cache.refresh_clusters_and_hosts(deadline)

    for i, dc, j, host in hosts_of(vcc):
        records = run_esxcli(vcc, deadline, acc, i, j, host, ['network', 'nic', 'list'])
        for record in records or []:
            if not record.get('LinkStatus'):
                continue
            link_status = first(record, 'LinkStatus')
            tags = host_tags(vcc, i, dc, host)
            tags['device'] = first(record, 'Name')
            tags['driver'] = first(record, 'Driver')
            acc.add_fields(
                'vcstat_host_nic',
                {
                    'admin_status': first(record, 'AdminStatus'),
                    'duplex': first(record, 'Duplex'),
                    'link_status': link_status,
                    'link_status_code': nic_link_status_code(link_status),
                    'mac': first(record, 'MACAddress'),
                    'speed': first(record, 'Speed'),
                },
                tags
            )


def collect_host_firewall(vcc, deadline, acc):
    """
    vcstat_host_firewall: firewall status of every host (esxcli network firewall get)
    """
    vcc.cache.refresh_clusters_and_hosts(deadline)

    for i, dc, j, host in hosts_of(vcc):
        records = run_esxcli(vcc, deadline, acc, i, j, host, ['network', 'firewall', 'get'])
        if not records or not records[0].get('Enabled'):
            continue
        record = records[0]
        try:
            enabled = parse_bool(first(record, 'Enabled'))
            loaded = parse_bool(first(record, 'Loaded'))
        except ParseError as ex:
            acc.add_error(ParseError(f'could not parse firewall info for host {host.name}: {ex}'))
            continue
        acc.add_fields(
            'vcstat_host_firewall',
            {
                'defaultaction': first(record, 'DefaultAction'),
                'enabled': enabled,
                'loaded': loaded,
            },
            host_tags(vcc, i, dc, host)
        )


def report_host_esxcli_response(vcc, deadline, acc):
    """
    vcstat_host_esxcli: liveness code and esxcli time spent for every host in this cycle
    """
    cache = vcc.cache
    for i, dc, j, host in hosts_of(vcc):
        state = cache.get_host_state(i, j)
        if state is None:
            acc.add_error(TransientQueryError(f'could not find host state for {host.name}'))
            continue
        tags = host_tags(vcc, i, dc, host)
        tags['moid'] = host.moid
        acc.add_fields(
            'vcstat_host_esxcli',
            {
                'responding_code': int(state.responding_code(vcc.skip_not_responding_for)),
                'response_time_ns': int(state.response_time * 1e9),
            },
            tags
        )
