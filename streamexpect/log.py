"""Log utilities for expectations."""

import contextlib
import copy
import logging
import logging.config
from pathlib import Path
import tempfile
import time
from typing import Iterator, List, Optional

import colors

from streamexpect.configuration import Configuration


DEFAULT_LOG_DIR = Path(tempfile.gettempdir()) / "streamexpect"

logger = logging.getLogger(__name__)


class CustomFileLogFormatter(logging.Formatter):
    """`Formatter` that uses `time.gmtime` for time and strips ANSI color codes."""

    converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        """Format the message and remove ANSI color codes from it."""
        text = super().format(record)
        return colors.strip_color(text)


class ExpectationLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter adding the expectation description to each log message."""

    EXTRA_DESCRIPTION = "expectation"

    _base_logger: logging.Logger

    def __init__(self, base_logger: logging.Logger, description: str):
        super().__init__(base_logger, {self.EXTRA_DESCRIPTION: description})
        self._base_logger = base_logger

    def process(self, msg, kwargs):
        """Process the log message `msg`."""
        description = (self.extra[self.EXTRA_DESCRIPTION].splitlines() or [""])[0]
        # The prefix becomes part of the format string
        description = description.replace("%", "%%")
        return ("[%s] %s" % (description, msg), kwargs)

    @property
    def handlers(self) -> List[logging.Handler]:
        """Return the handlers of the base logger."""
        return self._base_logger.handlers


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "console": {"format": "%(levelname)-8s [%(name)-30s] %(message)s"},
        "file": {
            "()": CustomFileLogFormatter,
            "format": "%(asctime)s %(levelname)-8s %(name)-30s %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S%z",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "console",
            "level": "INFO",
        },
        "expectations_file": {
            "class": "logging.FileHandler",
            "formatter": "file",
            "filename": "%(base_log_dir)s/expectations.log",
            "encoding": "utf-8",
            "level": "DEBUG",
        },
    },
    "loggers": {
        "streamexpect": {
            "handlers": ["console", "expectations_file"],
            "propagate": False,
            "level": "DEBUG",
        },
        "transitions": {"level": "WARNING"},
        "Rx": {"level": "WARNING"},
    },
}


def configure_logging(
    base_dir: Optional[Path] = None,
    console_log_level: Optional[str] = None,
    config: Optional[Configuration] = None,
) -> Path:
    """Configure the `logging` module.

    Log files are written to `base_dir` (created if necessary), by default
    to `DEFAULT_LOG_DIR`. Returns the directory used.

    The console log level is `console_log_level` if given, otherwise
    the `log_level` of `config`.
    """

    base_dir = base_dir or DEFAULT_LOG_DIR
    base_dir.mkdir(parents=True, exist_ok=True)

    logging_config = copy.deepcopy(LOGGING_CONFIG)
    # substitute `base_log_dir` in the config with the actual dir path
    for _name, handler in logging_config["handlers"].items():
        if "filename" in handler:
            handler["filename"] %= {"base_log_dir": str(base_dir)}

    if console_log_level is None and config is not None:
        console_log_level = config.log_level
    if console_log_level:
        logging_config["handlers"]["console"]["level"] = console_log_level

    logging.config.dictConfig(logging_config)
    logger.info("started logging. dir=%s", base_dir)
    return base_dir


@contextlib.contextmanager
def configure_logging_for_test(test_log_dir: Path) -> Iterator[Path]:
    """Configure the package logger to write to a file in `test_log_dir`.

    Implements context manager protocol: on entering the context a file handler
    will be added to the `streamexpect` logger; on exiting it will be removed.
    Yields the path of the log file.
    """

    package_logger = logging.getLogger("streamexpect")
    log_file = test_log_dir / "test.log"
    handler = None
    previous_level = package_logger.level

    try:
        formatter = CustomFileLogFormatter(
            fmt=LOGGING_CONFIG["formatters"]["file"]["format"],
            datefmt=LOGGING_CONFIG["formatters"]["file"]["datefmt"],
        )
        handler = logging.FileHandler(str(log_file), encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)
        package_logger.setLevel(logging.DEBUG)

        yield log_file

    finally:
        package_logger.setLevel(previous_level)
        if handler in package_logger.handlers:
            package_logger.removeHandler(handler)
        if handler:
            handler.close()
