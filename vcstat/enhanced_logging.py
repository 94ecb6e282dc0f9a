import contextvars
import functools
import logging

# Define a new log level More detailed than DEBUG
VERBOSE = 5
logging.addLevelName(VERBOSE, "VERBOSE")


# Add a method to log at the new level
def verbose(self, message, *args, **kwargs):
    if self.isEnabledFor(VERBOSE):
        self._log(VERBOSE, message, args, **kwargs)


logging.Logger.verbose = verbose


logging_vars = {
    'vcenter': contextvars.ContextVar('vcenter', default='-'),
    'cycle': contextvars.ContextVar('cycle', default='-'),
}


def set_context_var(name, val):
    logging_vars[name].set(val)


def reset_context_var(name):
    logging_vars[name].set('-')


_old_factory = logging.getLogRecordFactory()


def record_factory(*args, **kwargs):
    record = _old_factory(*args, **kwargs)
    record.vcenter = logging_vars['vcenter'].get()
    record.cycle = logging_vars['cycle'].get()
    return record


def setup_logging(level, fmt, datefmt):
    logging.setLogRecordFactory(record_factory)
    logging.basicConfig(
        level=logging.getLevelName(level) if isinstance(level, str) else level,
        format=fmt,
        datefmt=datefmt,
        force=True
    )


def log_to(logger: logging.Logger, level=logging.DEBUG):
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger.log(level=level, msg=f"-> {func.__name__}()")
            result = func(*args, **kwargs)
            logger.log(level=level, msg=f"<- {func.__name__}(): {repr(result)}")
            return result
        return wrapper
    return decorator
