import logging
from vcstat.settings import Settings


logger = logging.getLogger(__name__)


def _metric_name(subprefix, metric):
    return f"{Settings.app['statsd']['prefix']}.{subprefix}.{metric}"


def stats_increment_metric(subprefix, metric, count=1):
    if Settings.statsd_client:
        try:
            Settings.statsd_client.incr(_metric_name(subprefix, metric), count)
        except Exception:
            Settings.raven.captureException(exc_info=True)
            logger.warning('stats_increment_metric failed: ', exc_info=True)


def stats_add_timing_metric(subprefix, metric, duration):
    if Settings.statsd_client:
        try:
            Settings.statsd_client.timing(_metric_name(subprefix, metric), duration * 1000)
        except Exception:
            Settings.raven.captureException(exc_info=True)
            logger.warning('stats_add_timing_metric failed: ', exc_info=True)


def stats_gauge_metric(subprefix, metric, value):
    if Settings.statsd_client:
        try:
            Settings.statsd_client.gauge(_metric_name(subprefix, metric), value)
        except Exception:
            Settings.raven.captureException(exc_info=True)
            logger.warning('stats_gauge_metric failed: ', exc_info=True)


def stats_report_gather(alias, gather_time, not_responding_hosts, sessions_created):
    subprefix = f'internal.{alias}'
    stats_add_timing_metric(subprefix, 'gather_time', gather_time)
    stats_gauge_metric(subprefix, 'notresponding_esxcli_hosts', not_responding_hosts)
    stats_gauge_metric(subprefix, 'sessions_created', sessions_created)
