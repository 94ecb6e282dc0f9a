import time

from vcenter.errors import Cancelled, DeadlineExceeded


class Deadline:
    """
    Time budget of one gather cycle, checked before every call to vCenter.
    """

    def __init__(self, timeout, clock=time.monotonic):
        self._clock = clock
        self._expires_at = clock() + timeout if timeout else None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        self._cancelled = True

    def remaining(self):
        """
        :return: seconds left, None when the deadline is unbounded
        """
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def bounded(self, limit):
        """
        :param limit: timeout wanted by a single call
        :return: the smaller of limit and the remaining budget
        """
        remaining = self.remaining()
        if remaining is None:
            return limit
        return min(limit, remaining)

    def check(self):
        if self._cancelled:
            raise Cancelled()
        if self._expires_at is not None and self._clock() >= self._expires_at:
            raise DeadlineExceeded()
