"""Reporting of expectation failures.

A failure is never reported from within the stream callback that detected it.
Instead, the check is posted to the event loop of the test, which gives the
test a chance to invert the expectation right after creating it, even if the
stream terminated while the expectation was being constructed.
"""

import asyncio
from dataclasses import dataclass
import inspect
import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

from typing_extensions import Protocol

from streamexpect.diagnostics import FailureContext, format_failure


logger = logging.getLogger(__name__)

_PACKAGE_DIR = str(Path(__file__).resolve().parent) + os.sep


@dataclass(frozen=True)
class SourceLocation:
    """A place in the test code that a failure is reported against."""

    filename: str
    lineno: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.lineno}"

    @classmethod
    def of_caller(cls) -> "SourceLocation":
        """Return the location of the innermost frame outside this package."""

        frame = inspect.currentframe()
        try:
            while frame is not None:
                filename = frame.f_code.co_filename
                if not str(Path(filename).resolve()).startswith(_PACKAGE_DIR):
                    return cls(filename, frame.f_lineno)
                frame = frame.f_back
            return cls("<unknown>", 0)
        finally:
            # Break the reference cycle between this frame and `frame`
            del frame


class FailureReporter(Protocol):
    """A sink for expectation failures."""

    def report_failure(self, message: str, location: SourceLocation) -> None:
        """Report a failed expectation with a rendered `message`."""


class LoggingFailureReporter:
    """Reporter that logs each failure and keeps it for later inspection."""

    failures: List[Tuple[str, SourceLocation]]
    """Failures reported so far, in order."""

    def __init__(self, logger_: Optional[logging.Logger] = None) -> None:
        self.failures = []
        self._logger = logger_ or logger

    def report_failure(self, message: str, location: SourceLocation) -> None:
        """Log the failure at `ERROR` level and record it."""
        self._logger.error("Expectation failed at %s: %s", location, message)
        self.failures.append((message, location))


class CheckedExpectation(Protocol):
    """The part of an expectation used by `DeferredFailureReporter`."""

    description: str
    is_inverted: bool
    location: SourceLocation

    def fail(self, message: str) -> bool:
        """Settle the expectation as failed with `message`."""


class DeferredFailureReporter:
    """Schedules "report unless inverted" checks on an event loop.

    Checks run on a later iteration of `loop` than the one in which they were
    scheduled, so synchronous code that follows the creation of an expectation
    always runs before its failure is reported.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        sink: FailureReporter,
        colorize: bool = False,
    ) -> None:
        self._loop = loop
        self.sink = sink
        self._colorize = colorize

    def schedule(
        self, expectation: CheckedExpectation, context: FailureContext
    ) -> None:
        """Post a failure check for `expectation` to the event loop.

        May be called from any thread.
        """
        logger.debug(
            "Scheduling failure check (%s) for '%s'",
            context.kind.value,
            expectation.description,
        )
        self._loop.call_soon_threadsafe(self._check, expectation, context)

    def _check(self, expectation: CheckedExpectation, context: FailureContext) -> None:
        if expectation.is_inverted:
            logger.debug(
                "Expectation '%s' is inverted, not reporting %s",
                expectation.description,
                context.kind.value,
            )
            return

        message = format_failure(expectation.description, context, self._colorize)
        self.sink.report_failure(message, expectation.location)
        # Settling the expectation lets a pending wait return without timing out
        expectation.fail(message)
