import logging
import re
import sys

logger = logging.getLogger(__name__)

_MEASUREMENT_ESCAPE = re.compile(r'([, ])')
_TAG_ESCAPE = re.compile(r'([,= ])')
_STATSD_UNSAFE = re.compile(r'[^A-Za-z0-9_\-]')


def _escape_measurement(name):
    return _MEASUREMENT_ESCAPE.sub(r'\\\1', name)


def _escape_tag(value):
    return _TAG_ESCAPE.sub(r'\\\1', str(value))


def _format_field_value(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return f'{value}i'
    if isinstance(value, float):
        return repr(value)
    text = str(value).replace('\\', '\\\\').replace('"', '\\"')
    return f'"{text}"'


def format_line(metric, precision=1):
    """
    Formats a metric in InfluxDB line protocol
    :param metric: Metric
    :param precision: timestamp precision in seconds
    :return: str without trailing newline
    """
    tags = ''.join(
        f',{_escape_tag(k)}={_escape_tag(v)}'
        for k, v in sorted(metric.tags.items())
        if v != ''
    )
    fields = ','.join(
        f'{_escape_tag(k)}={_format_field_value(v)}'
        for k, v in sorted(metric.fields.items())
        if v is not None
    )
    timestamp = int(round(metric.time / precision) * precision * 1_000_000_000)
    return f'{_escape_measurement(metric.name)}{tags} {fields} {timestamp}'


class InfluxLineWriter:

    def __init__(self, stream=None, precision=1):
        self.stream = stream if stream is not None else sys.stdout
        self.precision = precision

    def write(self, metrics):
        for metric in metrics:
            if not metric.fields:
                continue
            self.stream.write(format_line(metric, self.precision) + '\n')
        self.stream.flush()


class StatsdWriter:
    """
    Sends numeric and boolean fields as statsd gauges named
    prefix.measurement.tag_values.field
    """

    def __init__(self, client, prefix):
        self.client = client
        self.prefix = prefix

    def metric_path(self, metric, field):
        parts = [self.prefix, metric.name]
        parts += [_STATSD_UNSAFE.sub('_', str(v)) for _, v in sorted(metric.tags.items()) if v != '']
        parts.append(field)
        return '.'.join(p for p in parts if p)

    def write(self, metrics):
        if self.client is None:
            logger.warning('no statsd client configured, metrics dropped')
            return
        with self.client.pipeline() as pipe:
            for metric in metrics:
                for field, value in metric.fields.items():
                    if isinstance(value, bool):
                        value = int(value)
                    elif not isinstance(value, (int, float)):
                        continue
                    pipe.gauge(self.metric_path(metric, field), value)
