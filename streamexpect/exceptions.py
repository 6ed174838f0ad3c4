"""Exceptions raised when waiting for expectations."""

from typing import Sequence


class ExpectationError(AssertionError):
    """Base class for errors raised when an expectation is not met."""


class ExpectationFailedError(ExpectationError):
    """Raised when one or more expectations reported a failure."""

    def __init__(self, messages: Sequence[str]):
        self.messages = list(messages)
        super().__init__("\n\n".join(self.messages))


class ExpectationTimeoutError(ExpectationError):
    """Raised when expectations are still pending after the wait timed out."""

    def __init__(self, descriptions: Sequence[str], timeout: float):
        self.descriptions = list(descriptions)
        listing = "\n".join(f"- {d}" for d in self.descriptions)
        super().__init__(
            f"Exceeded timeout of {timeout:.1f} s with unfulfilled expectations:\n"
            f"{listing}"
        )


class InvertedExpectationFulfilledError(ExpectationError):
    """Raised when an inverted expectation was fulfilled before the timeout."""

    def __init__(self, descriptions: Sequence[str]):
        self.descriptions = list(descriptions)
        listing = "\n".join(f"- {d}" for d in self.descriptions)
        super().__init__(f"Fulfilled inverted expectations:\n{listing}")


class ConfigurationParseError(Exception):
    """An exception raised when parsing a malformed configuration file."""
