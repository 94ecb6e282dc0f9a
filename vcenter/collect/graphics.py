from vcenter.collect.common import first, hosts_of, run_esxcli
from vcenter.collect.host import host_tags


def _to_float(value):
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def collect_host_graphics(vcc, deadline, acc):
    """
    vcstat_host_graphics: GPU usage of every host (esxcli graphics device stats list)
    """
    vcc.cache.refresh_clusters_and_hosts(deadline)

    for i, dc, j, host in hosts_of(vcc):
        records = run_esxcli(vcc, deadline, acc, i, j, host, ['graphics', 'device', 'stats', 'list'])
        for record in records or []:
            if not record.get('DeviceName'):
                continue
            tags = host_tags(vcc, i, dc, host)
            tags['address'] = first(record, 'Address')
            tags['device'] = first(record, 'DeviceName')
            acc.add_fields(
                'vcstat_host_graphics',
                {
                    'cpu': _to_float(first(record, 'Utilization')),
                    'driver': first(record, 'DriverVersion'),
                    'memory': _to_float(first(record, 'MemoryUsed')),
                    'temperature': _to_float(first(record, 'Temperature')),
                },
                tags
            )
