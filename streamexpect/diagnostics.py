"""Failure contexts of expectations and their human-readable rendering."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
import pprint
from typing import Any, List, Tuple

import colors

from streamexpect.conditions import MISSING


EMPTY_VALUES_DESCRIPTION = "No value was emitted by the stream"
"""Used by value and finished expectations."""

FINISHED_WITHOUT_FAILURE_DESCRIPTION = "Stream finished without failure"
"""Used by failure expectations."""


class FailureKind(Enum):
    """Reasons for which an expectation may fail."""

    NEVER_MATCHED = "never-matched"
    CONDITION_NEVER_SATISFIED_BEFORE_FINISH = "condition-never-satisfied-before-finish"
    UPSTREAM_FAILED = "upstream-failed"
    FINISHED_WITHOUT_FAILURE = "finished-without-failure"
    ERROR_DID_NOT_MATCH = "error-did-not-match"


def pretty(value: Any) -> str:
    """Return a readable, possibly multi-line representation of `value`."""
    return pprint.pformat(value, width=80)


def _indent(text: str, prefix: str = "  ") -> str:
    return "\n".join(prefix + line for line in text.splitlines())


def _diff_line(sign: str, text: str, colorize: bool) -> str:
    line = f"{sign} {text}"
    if colorize and sign == "-":
        return colors.color(line, fg="red")
    if colorize and sign == "+":
        return colors.color(line, fg="green")
    return line


def received_values_description(received: Tuple[Any, ...]) -> str:
    """Describe the values emitted by a stream."""
    return "Values emitted:\n" + _indent(pretty(list(received)))


def received_values_diff_description(
    received: Tuple[Any, ...], expected: Any, colorize: bool = False
) -> str:
    """Describe the emitted values as a diff against the expected value.

    Each emitted value is compared with `expected`; lines prefixed with `-`
    show what was expected at that index and lines with `+` what was emitted.
    """
    lines: List[str] = ["  ["]
    for index, value in enumerate(received):
        if value == expected:
            lines.append(f"    [{index}]: {value!r}")
        else:
            lines.append(_diff_line("-", f"  [{index}]: {expected!r}", colorize))
            lines.append(_diff_line("+", f"  [{index}]: {value!r}", colorize))
    lines.append("  ]")
    return "Values emitted diffing the expected one:\n" + _indent("\n".join(lines))


def finished_with_failure_description(error: BaseException) -> str:
    """Describe the error a stream failed with."""
    return "Stream finished with error:\n" + _indent(repr(error))


def error_diff_description(
    received: BaseException, expected: Any, colorize: bool = False
) -> str:
    """Describe the received error as a diff against the expected one."""
    expected_repr = (
        expected.__name__ if isinstance(expected, type) else repr(expected)
    )
    lines = [
        _diff_line("-", expected_repr, colorize),
        _diff_line("+", repr(received), colorize),
    ]
    return "Stream finished with error diffing the expected one:\n" + _indent(
        "\n".join(lines)
    )


@dataclass(frozen=True)
class FailureContext(ABC):
    """Abstract base class for the circumstances of an expectation failure."""

    kind: FailureKind
    """The reason for the failure."""

    @abstractmethod
    def describe(self, colorize: bool = False) -> str:
        """Return the text explaining this failure."""


@dataclass(frozen=True)
class NoValuesReceived(FailureContext):
    """The stream terminated without emitting any value."""

    def describe(self, colorize: bool = False) -> str:
        """Return the text explaining this failure."""
        return EMPTY_VALUES_DESCRIPTION


@dataclass(frozen=True)
class UnexpectedValues(FailureContext):
    """The stream emitted values but none of them was the right one."""

    received: Tuple[Any, ...]
    """All values emitted by the stream, in order."""

    expected: Any = MISSING
    """The expected value, if the expectation was created with one."""

    def describe(self, colorize: bool = False) -> str:
        """Return the text explaining this failure."""
        if self.expected is MISSING:
            return received_values_description(self.received)
        return received_values_diff_description(
            self.received, self.expected, colorize
        )


@dataclass(frozen=True)
class FinishedWithError(FailureContext):
    """The stream failed with an error."""

    error: BaseException
    """The error the stream failed with."""

    expected_error: Any = MISSING
    """The expected error or error class, if any."""

    def describe(self, colorize: bool = False) -> str:
        """Return the text explaining this failure."""
        if self.expected_error is MISSING:
            return finished_with_failure_description(self.error)
        return error_diff_description(self.error, self.expected_error, colorize)


@dataclass(frozen=True)
class FinishedWithoutError(FailureContext):
    """The stream finished successfully while a failure was expected."""

    def describe(self, colorize: bool = False) -> str:
        """Return the text explaining this failure."""
        return FINISHED_WITHOUT_FAILURE_DESCRIPTION


def values_context(
    kind: FailureKind, received: Tuple[Any, ...], expected: Any = MISSING
) -> FailureContext:
    """Return the context describing `received` values that didn't match."""
    if not received:
        return NoValuesReceived(kind)
    return UnexpectedValues(kind, tuple(received), expected)


def format_failure(
    description: str, context: FailureContext, colorize: bool = False
) -> str:
    """Render the failure message of the expectation described by `description`."""
    return f"{description}\n\n{context.describe(colorize)}"


def describe_expected(value: Any) -> str:
    """Render an expected value for use in an expectation description."""
    if isinstance(value, type):
        return value.__name__
    return pretty(value)
