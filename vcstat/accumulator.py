import logging
import time

from vcenter.errors import Cancelled


class Metric:

    __slots__ = ('name', 'fields', 'tags', 'time')

    def __init__(self, name, fields, tags, t):
        self.name = name
        self.fields = fields
        self.tags = tags
        self.time = t

    def __repr__(self):
        return f'<Metric {self.name} tags={self.tags} fields={self.fields}>'


class Accumulator:
    """
    Collects the metrics and the non fatal errors of one gather cycle.
    """

    def __init__(self, clock=time.time):
        self.__logger = logging.getLogger(__name__)
        self._clock = clock
        self.metrics = []
        self.errors = []

    def add_fields(self, measurement, fields, tags=None, t=None):
        self.metrics.append(Metric(
            measurement,
            dict(fields),
            dict(tags or {}),
            self._clock() if t is None else t
        ))

    def add_error(self, err):
        self.__logger.warning(f'{err}')
        self.errors.append(err)

    def gather_error(self, err):
        """
        Records the error that aborted the cycle and drops what was gathered so far.
        A cancellation is not reported as an error.
        """
        self.reject()
        if isinstance(err, Cancelled):
            self.__logger.info('gather cancelled')
            return
        self.__logger.error(f'gather failed: {err}')
        self.errors.append(err)

    def reject(self):
        self.metrics = []

    def measurements(self, name):
        return [m for m in self.metrics if m.name == name]
