import logging
import os
import sys
from logging.handlers import RotatingFileHandler, SysLogHandler
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .settings import AppSettings


LOGGER_NAME = 'WireGuardNexus'
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s:%(lineno)d - %(pathname)s - %(message)s'
SYSLOG_FORMAT = '%(name)s[%(process)d]: %(levelname)s - %(message)s'
SYSLOG_ADDRESS = '/dev/log'

logger = logging.getLogger(LOGGER_NAME)


def _build_handler(settings: 'AppSettings') -> logging.Handler:
    output = settings.log_output.value
    if output == 'syslog':
        if not os.path.exists(SYSLOG_ADDRESS):
            raise FileNotFoundError(f"No such socket: {SYSLOG_ADDRESS}")
        handler = SysLogHandler(address=SYSLOG_ADDRESS)
        handler.setFormatter(logging.Formatter(SYSLOG_FORMAT))
        return handler

    if output == 'stdout':
        handler = logging.StreamHandler(sys.stdout)
    else:
        log_dir = os.path.dirname(os.path.abspath(settings.log_file))
        os.makedirs(log_dir, exist_ok=True)
        # Use RotatingFileHandler to limit log file size
        handler = RotatingFileHandler(settings.log_file, maxBytes=5 * 1024 * 1024,
                                      backupCount=3)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(settings: 'AppSettings') -> logging.Logger:
    """Attach the single output handler selected by the settings.

    Calling it again replaces the previous handler. Without a syslog socket
    the logger falls back to stdout.
    """
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(settings.log_level)
    try:
        handler = _build_handler(settings)
    except OSError as e:
        if settings.log_output.value != 'syslog':
            raise
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.warning(f"Syslog unavailable at {SYSLOG_ADDRESS} ({e}), logging to stdout")
        return logger
    logger.addHandler(handler)
    return logger
