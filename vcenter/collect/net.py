from vcenter.collect.common import entity_status_code, fetch_properties
from vcenter.enums import NetworkKind


def _networks_of_kind(vcc, dc_index, kind):
    return [net for net in vcc.cache.nets[dc_index] if net.kind is kind]


def collect_net_dvs(vcc, deadline, acc):
    """
    vcstat_net_dvs: port usage and status of distributed virtual switches
    """
    cache = vcc.cache
    cache.refresh_networks(deadline)

    for i, dc in enumerate(cache.dcs):
        switches = _networks_of_kind(vcc, i, NetworkKind.DVS)
        for dvs, props in fetch_properties(vcc, switches, ['config', 'overallStatus'], deadline, acc, 'dvs'):
            config = props.get('config')
            if config is None:
                continue
            status = props.get('overallStatus')
            acc.add_fields(
                'vcstat_net_dvs',
                {
                    'max_ports': config.maxPorts,
                    'num_ports': config.numPorts,
                    'num_standalone_ports': config.numStandalonePorts,
                    'status': str(status),
                    'status_code': entity_status_code(status),
                },
                {
                    'dcname': dc.name,
                    'dvs': dvs.name,
                    'moid': dvs.moid,
                    'vcenter': vcc.vcenter_host,
                }
            )


def collect_net_dvp(vcc, deadline, acc):
    """
    vcstat_net_dvp: port count and status of distributed virtual portgroups
    """
    cache = vcc.cache
    cache.refresh_networks(deadline)

    for i, dc in enumerate(cache.dcs):
        portgroups = _networks_of_kind(vcc, i, NetworkKind.DVPG)
        for dvp, props in fetch_properties(vcc, portgroups, ['config', 'overallStatus'], deadline, acc, 'dvp'):
            config = props.get('config')
            if config is None:
                continue
            status = props.get('overallStatus')
            acc.add_fields(
                'vcstat_net_dvp',
                {
                    'num_ports': config.numPorts,
                    'status': str(status),
                    'status_code': entity_status_code(status),
                },
                {
                    'dcname': dc.name,
                    'dvp': dvp.name,
                    'moid': dvp.moid,
                    'uplink': str(bool(getattr(config, 'uplink', False))).lower(),
                    'vcenter': vcc.vcenter_host,
                }
            )
