import copy
import logging
import os
import re
from collections.abc import Iterable

import raven
import yaml
from deepmerge import Merger as dm
import statsd

from vcstat.enhanced_logging import setup_logging

DURATION_UNITS = {
    'ns': 1e-9,
    'us': 1e-6,
    'µs': 1e-6,
    'ms': 1e-3,
    's': 1,
    'm': 60,
    'h': 3600,
}

DURATION_RE = re.compile(r'(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)')


def parse_duration(value) -> float:
    """
    Accepts seconds as a number or Go style durations like '90s', '1m30s'
    :param value: int, float or str
    :return: seconds
    """
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    try:
        return float(text)
    except ValueError:
        pass
    parts = DURATION_RE.findall(text)
    if not parts or ''.join(n + u for n, u in parts) != text:
        raise ValueError(f'invalid duration: {value!r}')
    return sum(float(n) * DURATION_UNITS[u] for n, u in parts)


class Settings:
    DEFAULTS = {
            'log_level': 'INFO',
            'log_format': '[%(asctime)s] [%(process)d] [%(levelname)s] '
                          '[%(vcenter)s#%(cycle)s] %(message)s',
            'log_datefmt': '%Y-%m-%dT%H:%M:%S',
            'raven': {
                'dsn': None
            },
            'statsd': {
                'host': 'localhost',
                'port': 8125,
                'prefix': None
            },
            'output': {
                'format': 'influx',
            },
            'shim': {
                'poll_interval': 60,
            },
            'vcstat': {
                'vcenter': 'https://127.0.0.1:8989/sdk',
                'username': 'user',
                'password': 'pass',
                'tls_ca': None,
                'insecure_skip_verify': False,
                'timeout': 10,           # in seconds, 0 means the poll interval
                'internal_alias': '',
                'query_bulk_size': 100,
                'intervals_skip_notresponding_esxcli_hosts': 20,
                'clusters_include': [],
                'clusters_exclude': [],
                'hosts_include': [],
                'hosts_exclude': [],
                'vms_include': [],
                'vms_exclude': [],
                'cluster_instances': True,
                'datastore_instances': False,
                'host_instances': True,
                'host_firewall_instances': False,
                'host_graphics_instances': False,
                'host_hba_instances': False,
                'host_nic_instances': False,
                'net_dvs_instances': True,
                'net_dvp_instances': False,
                'vm_instances': False,
            },
          }

    app = copy.deepcopy(DEFAULTS)

    environ = os.environ.get('ENV', 'production')

    config_file = os.environ.get('CONFIG', os.path.join(
        os.path.dirname(os.path.abspath(__file__)),
        '../config/vcstat.yaml'
    ))

    raven = None

    statsd_client = None

    FILTER_KEYS = [
        'clusters_include', 'clusters_exclude',
        'hosts_include', 'hosts_exclude',
        'vms_include', 'vms_exclude',
    ]

    @staticmethod
    def __flatten(items):
        """Yield items from any nested iterable; see Reference."""
        for item in items:
            if isinstance(item, Iterable) and not isinstance(item, (str, bytes)):
                for sub_x in Settings.__flatten(item):
                    yield sub_x
            else:
                yield item

    @staticmethod
    def load_section(config_file, environ):
        if not config_file or not os.path.exists(config_file):
            logging.getLogger("settings").warning(f"config file {config_file} not found, using defaults")
            return {}
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f.read()) or {}
        return config.get(environ) or {}

    @staticmethod
    def configure(config_file=None, environ=None, section=None):
        if environ:
            Settings.environ = environ
        if config_file:
            Settings.config_file = config_file
        if section is None:
            section = Settings.load_section(Settings.config_file, Settings.environ)

        vcstat_section = section.get('vcstat') or {}
        for key in Settings.FILTER_KEYS:
            if key in vcstat_section:
                vcstat_section[key] = list(Settings.__flatten(vcstat_section[key] or []))

        Settings.app = copy.deepcopy(Settings.DEFAULTS)
        dm(
            [(list, ['override']), (dict, ['merge'])],
            ['override'],
            ['override']
        ).merge(Settings.app, section)

        Settings.raven = raven.Client(
            dsn=Settings.app['raven']['dsn'],
            ignore_exceptions=[KeyboardInterrupt]
        )
        Settings.statsd_client = None
        if Settings.app['statsd']['prefix']:
            try:
                Settings.statsd_client = statsd.StatsClient(
                    Settings.app['statsd']['host'],
                    Settings.app['statsd']['port']
                )
            except Exception:
                logging.getLogger("settings").warning(
                    "Statsd client initialization failed, no stats gonna be sent",
                    exc_info=True
                )
                Settings.statsd_client = None
        return Settings.app


def configure_logging():
    log_level_str = Settings.app['log_level']
    env_log_level_str = os.environ.get("VCSTAT_LOG_LEVEL", "None")
    if env_log_level_str in ['VERBOSE', 'DEBUG', 'INFO', 'WARNING', 'ERROR']:
        log_level_str = env_log_level_str

    setup_logging(log_level_str, Settings.app['log_format'], Settings.app['log_datefmt'])
