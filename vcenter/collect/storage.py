from vcenter.collect.common import fetch_properties


def collect_datastore_info(vcc, deadline, acc):
    """
    vcstat_datastore: capacity and state of every datastore (like govc datastore.info)
    """
    cache = vcc.cache
    cache.refresh_datastores(deadline)

    for i, dc in enumerate(cache.dcs):
        for ds, props in fetch_properties(vcc, cache.dss[i], ['summary'], deadline, acc, 'datastore'):
            summary = props.get('summary')
            if summary is None:
                continue
            acc.add_fields(
                'vcstat_datastore',
                {
                    'accessible': bool(summary.accessible),
                    'capacity': summary.capacity,
                    'freespace': summary.freeSpace,
                    'maintenance_mode': summary.maintenanceMode or '',
                    'uncommitted': summary.uncommitted or 0,
                },
                {
                    'dcname': dc.name,
                    'dsname': summary.name,
                    'moid': ds.moid,
                    'type': summary.type,
                    'vcenter': vcc.vcenter_host,
                }
            )
