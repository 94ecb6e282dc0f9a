import socket

from pyVmomi import vim


class VcStatError(Exception):
    pass


class VCenterConnectionError(VcStatError):
    pass


class NoSessionError(VCenterConnectionError):
    def __init__(self, message='no vCenter session available'):
        super().__init__(message)


class NotVCenterError(VCenterConnectionError):
    def __init__(self, message='endpoint is not a vCenter'):
        super().__init__(message)


class AuthError(VcStatError):
    pass


class NetworkError(VcStatError):
    pass


class Cancelled(VcStatError):
    def __init__(self, message='operation cancelled'):
        super().__init__(message)


class DeadlineExceeded(VcStatError):
    def __init__(self, message='deadline exceeded'):
        super().__init__(message)


class SlowResponseError(DeadlineExceeded):
    pass


class NotFoundError(VcStatError):
    pass


class TransientQueryError(VcStatError):
    pass


class EsxcliError(TransientQueryError):
    pass


class ParseError(VcStatError):
    pass


FATAL_ERRORS = (
    Cancelled,
    DeadlineExceeded,
    NetworkError,
    VCenterConnectionError,
    vim.fault.NotAuthenticated,
    socket.gaierror,
    socket.herror,
    TimeoutError,
    ConnectionError,
)


def is_fatal(err) -> bool:
    """
    Tells whether an error must abort the whole gather cycle.
    The exception chain (__cause__ / __context__) is inspected as well, so wrapping
    a transport failure into a query error keeps it fatal.
    :param err: exception instance
    :return: bool
    """
    seen = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, FATAL_ERRORS):
            return True
        seen.add(id(err))
        err = err.__cause__ or err.__context__
    return False
