"""JSON logging configuration for certificate generation scripts.

Normal runs print one short JSON line per step. ``--verbose`` lowers the
level to DEBUG, which surfaces every (redacted) openssl command, and adds
the emitting function and line to each record.
"""

import logging

from pythonjsonlogger import jsonlogger

LOGGER_NAME = "tls_certgen"

LOG_FORMAT = "%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s"

BASE_FIELDS = frozenset({"timestamp", "level", "message", "exc_info"})
VERBOSE_FIELDS = BASE_FIELDS | {"funcName", "lineno"}


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that emits only ``kept_fields``.

    Process, thread and module fields are always dropped so each line stays
    readable on a terminal.
    """

    def __init__(self, *args, kept_fields: frozenset[str] = BASE_FIELDS, **kwargs):
        super().__init__(*args, **kwargs)
        self.kept_fields = kept_fields

    def add_fields(self, log_record, record, message_dict):
        """Override to include only the formatter's kept fields.

        Args:
            log_record: Dict to be logged as JSON
            record: LogRecord object from logging framework
            message_dict: Dict containing message and args
        """
        super().add_fields(log_record, record, message_dict)

        if "levelname" in log_record:
            log_record["level"] = log_record.pop("levelname")

        for key in [key for key in log_record if key not in self.kept_fields]:
            log_record.pop(key)


def find_json_handler(logger: logging.Logger) -> logging.Handler | None:
    """Return the handler this module installed, ignoring any added by test runners."""
    for handler in logger.handlers:
        if isinstance(handler.formatter, CustomJsonFormatter):
            return handler
    return None


def _setup_logger() -> logging.Logger:
    """Initialize and configure singleton logger.

    Returns:
        Configured logger with CustomJsonFormatter
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Prevent duplicate handlers if module reloaded
    if find_json_handler(logger) is not None:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(CustomJsonFormatter(fmt=LOG_FORMAT, timestamp=True))

    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def set_verbose(verbose: bool) -> None:
    """Switch the singleton logger between terse INFO and detailed DEBUG output."""
    LOGGER.setLevel(logging.DEBUG if verbose else logging.INFO)
    handler = find_json_handler(LOGGER)
    if handler is not None:
        handler.formatter.kept_fields = VERBOSE_FIELDS if verbose else BASE_FIELDS


LOGGER = _setup_logger()
