"""Expectations that bridge push-based streams and waiting test code."""

from streamexpect.conditions import MISSING, Condition
from streamexpect.configuration import Configuration, load_yaml
from streamexpect.exceptions import (
    ConfigurationParseError,
    ExpectationError,
    ExpectationFailedError,
    ExpectationTimeoutError,
    InvertedExpectationFulfilledError,
)
from streamexpect.expectations import (
    ExpectationState,
    FailureExpectation,
    FinishedExpectation,
    StreamExpectation,
    ValueExpectation,
)
from streamexpect.reporting import (
    FailureReporter,
    LoggingFailureReporter,
    SourceLocation,
)
from streamexpect.subscription import Failed, Finished
from streamexpect.wait import (
    ExpectationWaiter,
    WaitResult,
    wait_for_expectations,
    wait_for_expectations_sync,
)

__all__ = [
    "MISSING",
    "Condition",
    "ConfigurationParseError",
    "Configuration",
    "ExpectationError",
    "ExpectationFailedError",
    "ExpectationState",
    "ExpectationTimeoutError",
    "ExpectationWaiter",
    "Failed",
    "FailureExpectation",
    "FailureReporter",
    "Finished",
    "FinishedExpectation",
    "InvertedExpectationFulfilledError",
    "LoggingFailureReporter",
    "SourceLocation",
    "StreamExpectation",
    "ValueExpectation",
    "WaitResult",
    "load_yaml",
    "wait_for_expectations",
    "wait_for_expectations_sync",
]
