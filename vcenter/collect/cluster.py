from vcenter.collect.common import entity_status_code, fetch_properties


def collect_cluster_info(vcc, deadline, acc):
    """
    vcstat_cluster: resource summary of every cluster passing the cluster filter
    """
    cache = vcc.cache
    cache.refresh_clusters_and_hosts(deadline)

    for i, dc in enumerate(cache.dcs):
        clusters = [c for c in cache.clusters[i] if vcc.filter_clusters.match(c.name)]
        for cluster, props in fetch_properties(vcc, clusters, ['summary'], deadline, acc, 'cluster'):
            summary = props.get('summary')
            if summary is None:
                continue
            usage = getattr(summary, 'usageSummary', None)
            acc.add_fields(
                'vcstat_cluster',
                {
                    'effective_cpu': int(summary.effectiveCpu or 0),
                    'effective_memory': int(summary.effectiveMemory or 0),
                    'num_cpu_cores': summary.numCpuCores,
                    'num_cpu_threads': summary.numCpuThreads,
                    'num_effective_hosts': summary.numEffectiveHosts,
                    'num_hosts': summary.numHosts,
                    'num_vms': usage.totalVmCount if usage is not None else 0,
                    'status': str(summary.overallStatus),
                    'status_code': entity_status_code(summary.overallStatus),
                    'total_cpu': int(summary.totalCpu or 0),
                    'total_memory': int(summary.totalMemory or 0),
                },
                {
                    'clustername': cluster.name,
                    'dcname': dc.name,
                    'moid': cluster.moid,
                    'vcenter': vcc.vcenter_host,
                }
            )
