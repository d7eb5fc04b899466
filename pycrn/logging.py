"""
Logging for pycrn.

All pycrn loggers live below the ``pycrn`` base logger. The base logger is
configured on first use by :func:`get_logger`; its level defaults to WARNING
and can be overridden with the ``PYCRN_LOG`` environment variable, set to
either an integer or a level name such as ``DEBUG`` or ``EXTENDED_DEBUG``.

The compiler logs stage progress at DEBUG, per-line detail at
EXTENDED_DEBUG and a one-line summary at INFO.
"""
import logging
import platform
import time
import os
import warnings
import pycrn

LOG_LEVEL_ENV_VAR = 'PYCRN_LOG'
BASE_LOGGER_NAME = 'pycrn'
EXTENDED_DEBUG = 5
NAMED_LOG_LEVELS = {'NOTSET': logging.NOTSET,
                    'EXTENDED_DEBUG': EXTENDED_DEBUG,
                    'DEBUG': logging.DEBUG,
                    'INFO': logging.INFO,
                    'WARNING': logging.WARNING,
                    'ERROR': logging.ERROR,
                    'CRITICAL': logging.CRITICAL}


def formatter(time_utc=False):
    """
    Build the formatter used by pycrn log handlers

    Parameters
    ----------
    time_utc : bool, optional (default: False)
        Time stamps in UTC rather than local time

    Returns
    -------
    logging.Formatter
    """
    log_fmt = logging.Formatter('%(asctime)s.%(msecs).3d - %(name)s - '
                                '%(levelname)s - %(message)s',
                                datefmt='%Y-%m-%d %H:%M:%S')
    if time_utc:
        log_fmt.converter = time.gmtime
    return log_fmt


def _level_from_env(default):
    if LOG_LEVEL_ENV_VAR not in os.environ:
        return default
    value = os.environ[LOG_LEVEL_ENV_VAR]
    try:
        return int(value)
    except ValueError:
        pass
    if value in NAMED_LOG_LEVELS:
        return NAMED_LOG_LEVELS[value]
    raise ValueError('Environment variable %s is set to "%s"; it must be an '
                     'integer log level or one of %s (case-sensitive)' % (
                         LOG_LEVEL_ENV_VAR, value,
                         ', '.join(NAMED_LOG_LEVELS)))


def setup_logger(level=logging.WARNING, console_output=True, file_output=False,
                 time_utc=False, capture_warnings=True):
    """
    (Re)configure the pycrn base logger

    Existing handlers on the base logger are removed. Most code should call
    :func:`get_logger` instead, which only configures the logger once.

    Parameters
    ----------
    level : int
        Log level, e.g. logging.INFO. ``PYCRN_LOG`` takes precedence.
    console_output : bool
        Attach a stream handler (default True)
    file_output : str or False
        Also write log entries to this file
    time_utc : bool
        Time stamps in UTC rather than local time
    capture_warnings : bool
        Route the warnings module through logging (default True)

    Returns
    -------
    logging.Logger
        The base logger.
    """
    log = logging.getLogger(BASE_LOGGER_NAME)
    log.setLevel(_level_from_env(level))
    log.handlers = []

    log_fmt = formatter(time_utc=time_utc)
    if console_output:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(log_fmt)
        log.addHandler(stream_handler)
    if file_output:
        file_handler = logging.FileHandler(file_output)
        file_handler.setFormatter(log_fmt)
        log.addHandler(file_handler)

    log.info('Logging started on pycrn version %s', pycrn.__version__)
    if time_utc:
        log.info('Log entry times are in UTC')
    else:
        utc_offset = time.timezone if (time.localtime().tm_isdst == 0) else \
            time.altzone
        log.info('Log entry time offset from UTC: %.2f hours',
                 -(utc_offset / 3600))
    log.debug('OS Platform: %s', platform.platform())
    log.debug('Python version: %s', platform.python_version())

    logging.captureWarnings(capture_warnings)
    return log


def get_logger(logger_name=BASE_LOGGER_NAME, network=None, log_level=None,
               **kwargs):
    """
    Return a pycrn logger, configuring the base logger on first use

    Parameters
    ----------
    logger_name : str
        Logger namespace, usually ``__name__``
    network : str or object with a ``name`` attribute, optional
        Prefix every entry with this network name
    log_level : bool or int, optional
        Set the level of the returned logger. True means logging.DEBUG.
    **kwargs
        Passed to :func:`setup_logger` if the base logger does not exist yet,
        ignored (with a warning) otherwise.

    Returns
    -------
    logging.Logger, or a NetworkLoggerAdapter if ``network`` is given

    Examples
    --------

    >>> from pycrn.logging import get_logger
    >>> logger = get_logger(__name__, network='Decay')
    >>> logger.debug('Test message')
    """
    if BASE_LOGGER_NAME not in logging.Logger.manager.loggerDict:
        setup_logger(**kwargs)
    elif kwargs:
        warnings.warn('pycrn logger already exists, ignoring keyword '
                      'arguments to setup_logger')

    logger = logging.getLogger(logger_name)

    if log_level is not None and log_level is not False:
        if isinstance(log_level, bool):
            log_level = logging.DEBUG
        elif not isinstance(log_level, int):
            raise ValueError('log_level must be a boolean, integer or None')
        if logger.getEffectiveLevel() != log_level:
            logger.setLevel(log_level)

    if network is None:
        return logger
    return NetworkLoggerAdapter(logger, {'network': network})


class NetworkLoggerAdapter(logging.LoggerAdapter):
    """ Prefix log entries with ``[network name]`` """
    def process(self, msg, kwargs):
        network = self.extra['network']
        name = network if isinstance(network, str) else network.name
        return '[%s] %s' % (name, msg), kwargs
