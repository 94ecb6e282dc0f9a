def collect_vcenter_info(vcc, deadline, acc):
    """
    vcstat_vcenter: product information and number of datacenters
    """
    vcc.cache.refresh_datacenters(deadline)
    about = vcc.vcenter.about
    acc.add_fields(
        'vcstat_vcenter',
        {
            'build': str(about.build),
            'name': about.name,
            'num_datacenters': len(vcc.cache.dcs),
            'ostype': about.osType,
            'version': about.version,
        },
        {'vcenter': vcc.vcenter_host}
    )


def collect_datacenter_info(vcc, deadline, acc):
    """
    vcstat_datacenter: entity counts of every datacenter
    """
    cache = vcc.cache
    cache.refresh_all(deadline)
    for i, dc in enumerate(cache.dcs):
        acc.add_fields(
            'vcstat_datacenter',
            {
                'num_clusters': len(cache.clusters[i]),
                'num_datastores': len(cache.dss[i]),
                'num_hosts': len(cache.hosts[i]),
                'num_networks': len(cache.nets[i]),
            },
            {
                'dcname': dc.name,
                'moid': dc.moid,
                'vcenter': vcc.vcenter_host,
            }
        )
