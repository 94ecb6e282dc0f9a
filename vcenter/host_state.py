import time

from vcenter.enums import RespondingCode


class HostState:
    """
    Connectivity and esxcli responsiveness of one host slot.
    A not responding host is skipped until skip_duration has passed since its
    last failure, then it gets one retry.
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self.not_connected = False
        self.not_responding = False
        self.last_no_response = None
        self.response_time = 0.0

    def set_not_connected(self, not_connected: bool):
        self.not_connected = not_connected

    def set_not_responding(self, not_responding: bool, now=None):
        self.not_responding = not_responding
        if not_responding:
            self.last_no_response = self._clock() if now is None else now

    def sum_response_time(self, seconds):
        self.response_time += seconds

    def reset_response_time(self):
        self.response_time = 0.0

    def is_connected(self) -> bool:
        return not self.not_connected

    def is_connected_and_responding(self, skip_duration, now=None) -> bool:
        if self.not_connected:
            return False
        if self.not_responding and self.last_no_response is not None:
            now = self._clock() if now is None else now
            if now - self.last_no_response > skip_duration:
                self.not_responding = False
        return not self.not_responding

    def responding_code(self, skip_duration, now=None) -> RespondingCode:
        if not self.is_connected():
            return RespondingCode.NOT_CONNECTED
        if not self.is_connected_and_responding(skip_duration, now=now):
            return RespondingCode.NOT_RESPONDING
        return RespondingCode.RESPONDING

    def __repr__(self):
        return (f'<HostState not_connected={self.not_connected} '
                f'not_responding={self.not_responding} response_time={self.response_time:.3f}>')
