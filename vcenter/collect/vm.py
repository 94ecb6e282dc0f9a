from vcenter.collect.common import entity_status_code, fetch_properties

MIB = 1024 * 1024

VM_POWER_STATE_CODES = {
    'poweredOn': 0,
    'suspended': 1,
    'poweredOff': 2,
}

VM_CONNECTION_STATE_CODES = {
    'connected': 0,
    'orphaned': 1,
    'invalid': 2,
    'disconnected': 3,
    'inaccessible': 4,
}


def vm_power_state_code(state) -> int:
    return VM_POWER_STATE_CODES.get(str(state), 3)


def vm_connection_state_code(state) -> int:
    return VM_CONNECTION_STATE_CODES.get(str(state), 5)


def collect_vm_info(vcc, deadline, acc):
    """
    vcstat_vm: summary of every virtual machine passing the vm filter, placed
    on its host and cluster
    """
    cache = vcc.cache
    cache.refresh_vms(deadline)

    for i, dc in enumerate(cache.dcs):
        vms = [vm for vm in cache.vms[i] if vcc.filter_vms.match(vm.name)]
        for vm, props in fetch_properties(vcc, vms, ['summary'], deadline, acc, 'vm'):
            summary = props.get('summary')
            if summary is None:
                continue
            runtime = summary.runtime
            config = summary.config
            hostname = clustername = ''
            host = cache.get_host_by_reference(i, runtime.host)
            if host is not None:
                hostname = host.name
                clustername = cache.get_cluster_name_for_host(i, host)
            guest = summary.guest

            acc.add_fields(
                'vcstat_vm',
                {
                    'connection_state': str(runtime.connectionState),
                    'connection_state_code': vm_connection_state_code(runtime.connectionState),
                    'consolidation_needed': bool(runtime.consolidationNeeded),
                    'max_cpu_usage': runtime.maxCpuUsage or 0,
                    'max_mem_usage': (runtime.maxMemoryUsage or 0) * MIB,
                    'memory_size': (config.memorySizeMB or 0) * MIB,
                    'num_eth_cards': config.numEthernetCards or 0,
                    'num_vcpus': config.numCpu or 0,
                    'num_vdisks': config.numVirtualDisks or 0,
                    'power_state': str(runtime.powerState),
                    'power_state_code': vm_power_state_code(runtime.powerState),
                    'status': str(summary.overallStatus),
                    'status_code': entity_status_code(summary.overallStatus),
                    'template': bool(config.template),
                },
                {
                    'clustername': clustername,
                    'dcname': dc.name,
                    'esxhostname': hostname,
                    'guesthostname': (guest.hostName if guest is not None else '') or '',
                    'moid': vm.moid,
                    'vcenter': vcc.vcenter_host,
                    'vmname': config.name or vm.name,
                }
            )
