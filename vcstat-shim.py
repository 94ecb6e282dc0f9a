#!/usr/bin/env python3

import argparse
import logging
import signal
import sys
import time

from vcstat.accumulator import Accumulator
from vcstat.output import InfluxLineWriter, StatsdWriter
from vcstat.plugin import VcStat
from vcstat.settings import Settings, configure_logging, parse_duration

VERSION = '1.2.0'

logger = logging.getLogger(__name__)

process_actions = True
plugin = None


def signal_handler(sig, frame):
    global process_actions
    logger.info(f'signal {sig} received, stopping')
    process_actions = False
    if plugin is not None and plugin.deadline is not None:
        plugin.deadline.cancel()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Gathers status and basic stats from VMware vCenter')
    parser.add_argument('--config', default=None, help='path to the yaml config file')
    parser.add_argument('--env', default=None, help='config file section to use')
    parser.add_argument('--poll_interval', default=None, help='how often to send metrics (default 1m)')
    parser.add_argument('--once', action='store_true', help='gather once and exit')
    parser.add_argument('--version', action='store_true', help='show vcstat version and exit')
    return parser.parse_args(argv)


def get_writer():
    if Settings.app['output']['format'] == 'statsd':
        return StatsdWriter(Settings.statsd_client, Settings.app['statsd']['prefix'])
    return InfluxLineWriter(sys.stdout, precision=1)


def run_cycle(writer):
    acc = Accumulator()
    plugin.gather(acc)
    writer.write(acc.metrics)
    for err in acc.errors:
        logger.error(f'E! [inputs.vcstat] {err}')


if __name__ == '__main__':

    args = parse_args()
    if args.version:
        print('vcstat', VERSION)
        sys.exit(0)

    Settings.configure(config_file=args.config, environ=args.env)
    configure_logging()

    poll_interval = parse_duration(args.poll_interval or Settings.app['shim']['poll_interval'])
    if poll_interval <= 0:
        logger.error('poll interval must be positive')
        sys.exit(1)

    plugin = VcStat(Settings.app['vcstat'])
    plugin.set_poll_interval(poll_interval)
    plugin.set_version(VERSION)
    plugin.init()
    plugin.start_self_metrics()
    writer = get_writer()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    logger.info(f'vcstat {VERSION} polling {Settings.app["vcstat"]["vcenter"]} every {poll_interval}s')
    while process_actions:
        cycle_start = time.monotonic()
        try:
            run_cycle(writer)
        except Exception:
            Settings.raven.captureException(exc_info=True)
            logger.error('gather cycle failed', exc_info=True)
        if args.once:
            break
        while process_actions and time.monotonic() - cycle_start < poll_interval:
            time.sleep(min(0.5, poll_interval))

    plugin.stop()
    logger.info('vcstat stopped')
