"""Process-wide logging with interchangeable logger back ends."""

from __future__ import annotations

import logging
import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

_DEFAULT_LOGGER_NAME = "xkit"
_DEVELOPMENT_FORMAT = "%(asctime)s\t%(levelname)s\t%(name)s\t%(message)s"


@dataclass
class LogMessage:
    """A structured log message."""

    title: str
    details: str = ""
    data: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        text = self.title
        if self.details:
            text = f"{text}: {self.details}"
        if self.data:
            pairs = " ".join(f"{key}={value}" for key, value in sorted(self.data.items()))
            text = f"{text} {pairs}"
        return text


class Logger(ABC):
    """A sink for log messages at four levels."""

    @abstractmethod
    def info(self, msg: LogMessage) -> None:
        """Log an informational message."""

    @abstractmethod
    def debug(self, msg: LogMessage) -> None:
        """Log a debug message."""

    @abstractmethod
    def warn(self, msg: LogMessage) -> None:
        """Log a warning."""

    @abstractmethod
    def error(self, msg: LogMessage) -> None:
        """Log an error."""


class NoopLogger(Logger):
    """A logger that discards everything."""

    def info(self, msg: LogMessage) -> None:
        pass

    def debug(self, msg: LogMessage) -> None:
        pass

    def warn(self, msg: LogMessage) -> None:
        pass

    def error(self, msg: LogMessage) -> None:
        pass


class PrettyLogger(Logger):
    """A human-readable development logger writing to standard error."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        if logger is None:
            logger = logging.getLogger(_DEFAULT_LOGGER_NAME)
            if not logger.handlers:
                handler = logging.StreamHandler(sys.stderr)
                handler.setFormatter(logging.Formatter(_DEVELOPMENT_FORMAT))
                logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        self._logger = logger

    def info(self, msg: LogMessage) -> None:
        self._logger.info("%s", msg)

    def debug(self, msg: LogMessage) -> None:
        self._logger.debug("%s", msg)

    def warn(self, msg: LogMessage) -> None:
        self._logger.warning("%s", msg)

    def error(self, msg: LogMessage) -> None:
        self._logger.error("%s", msg)


_instance: Logger | None = None
_instance_lock = threading.Lock()


def current_logger() -> Logger:
    """Return the process-wide logger, creating it on first use."""
    global _instance
    with _instance_lock:
        if _instance is None:
            try:
                _instance = PrettyLogger()
            except Exception:
                _instance = NoopLogger()
        return _instance


def _format(format: str, args: tuple) -> str:
    return format % args if args else format


def info(msg: LogMessage) -> None:
    """Log an informational message."""
    current_logger().info(msg)


def info_string(msg: str) -> None:
    """Log an informational message given as plain text."""
    current_logger().info(LogMessage(msg))


def infof(format: str, *args) -> None:
    """Log a printf-style formatted informational message."""
    info_string(_format(format, args))


def warn(msg: LogMessage) -> None:
    """Log a warning."""
    current_logger().warn(msg)


def warn_string(msg: str) -> None:
    """Log a warning given as plain text."""
    current_logger().warn(LogMessage(msg))


def warnf(format: str, *args) -> None:
    """Log a printf-style formatted warning."""
    warn_string(_format(format, args))


def error(msg: LogMessage) -> None:
    """Log an error."""
    current_logger().error(msg)


def error_string(msg: str) -> None:
    """Log an error given as plain text."""
    current_logger().error(LogMessage(msg))


def errorf(format: str, *args) -> None:
    """Log a printf-style formatted error."""
    error_string(_format(format, args))


def debug(msg: LogMessage) -> None:
    """Log a debug message."""
    current_logger().debug(msg)


def debug_string(msg: str) -> None:
    """Log a debug message given as plain text."""
    current_logger().debug(LogMessage(msg))


def debugf(format: str, *args) -> None:
    """Log a printf-style formatted debug message."""
    debug_string(_format(format, args))