"""Expectations about the values, completion and failure of streams.

An expectation subscribes to a stream as soon as it's created and follows
the stream's events until it can decide whether it has been fulfilled. Success
is signalled immediately. Failures are reported on a later iteration of the
event loop, and only if the expectation has not been inverted by then.
"""

from abc import ABC, abstractmethod
import asyncio
from enum import Enum
import logging
from typing import Any, Callable, Optional

from transitions import Machine

from streamexpect.conditions import MISSING, Condition, Predicate
from streamexpect.configuration import Configuration
from streamexpect.diagnostics import (
    FailureContext,
    FailureKind,
    FinishedWithError,
    FinishedWithoutError,
    describe_expected,
    values_context,
)
from streamexpect.history import ValueHistory
from streamexpect.log import ExpectationLoggerAdapter
from streamexpect.reporting import (
    DeferredFailureReporter,
    FailureReporter,
    LoggingFailureReporter,
    SourceLocation,
)
from streamexpect.subscription import (
    Failed,
    Stream,
    StreamSubscription,
    Terminal,
)


logger = logging.getLogger(__name__)


class ExpectationState(Enum):
    """Represents states that an expectation may be in."""

    pending = 0
    checking = 1
    fulfilled = 2
    failed = 3


class Outcome(Enum):
    """The decision an expectation takes on a single stream event."""

    MATCHED = "matched"
    NOT_YET_MATCHED = "not-yet-matched"
    FAILED = "failed"


def _running_loop() -> asyncio.AbstractEventLoop:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        raise RuntimeError(
            "No running event loop; pass the loop on which failures "
            "should be reported as `loop`"
        ) from None


class StreamExpectation(ABC):
    """Base class for expectations about a single stream.

    Subclasses decide what each stream event means for them by implementing
    `_evaluate_value()`, `_evaluate_terminal()` and `_failure_context()`;
    the subscription, state tracking and failure reporting are shared.

    Includes a state machine (from `transitions`) to keep track of
    the expectation's lifecycle: it starts `pending`, moves to `fulfilled`
    on success, or to `checking` when a failure has been detected and is
    waiting to be reported. A reported failure moves it to `failed`.
    """

    description: str
    """Human-readable text identifying this expectation in diagnostics."""

    is_inverted: bool
    """If set, no failures are reported for this expectation.

    An inverted expectation is expected not to be fulfilled before the wait
    times out. It can be set at any time after construction, up to the moment
    the deferred failure check runs.
    """

    location: SourceLocation
    """Where in the test code this expectation was created."""

    failure_message: Optional[str]
    """The rendered failure message, set when a failure has been reported."""

    config: Configuration
    """Settings used when rendering failure messages."""

    loop: asyncio.AbstractEventLoop
    """The event loop on which failure checks run."""

    # This section lists the members which will be added at runtime by `transitions`
    fulfill: Callable
    """Mark this expectation as fulfilled and wake up waits."""

    schedule_failure_check: Callable
    """Post a check that reports a failure unless this expectation is inverted.

    Takes the `FailureContext` describing the failure.
    """

    fail: Callable
    """Mark this expectation as failed with a rendered message and wake up waits."""

    _settled: asyncio.Future
    _state: ExpectationState
    _subscription: StreamSubscription

    def __init__(
        self,
        stream: Stream,
        description: str,
        *,
        inverted: bool = False,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        reporter: Optional[FailureReporter] = None,
        config: Optional[Configuration] = None,
    ):
        self.description = description
        self.is_inverted = inverted
        self.location = SourceLocation.of_caller()
        self.failure_message = None
        self.config = config or Configuration()
        self.loop = loop or _running_loop()
        self._logger = ExpectationLoggerAdapter(logger, description)
        self._failure_reporter = DeferredFailureReporter(
            self.loop, reporter or LoggingFailureReporter(), self.config.colorize
        )
        self._settled = self.loop.create_future()

        # Initialise the state machine and define allowed transitions
        self._state = ExpectationState.pending
        self.machine = Machine(
            self,
            states=ExpectationState,
            transitions=[
                {
                    "trigger": "fulfill",
                    "source": ExpectationState.pending,
                    "dest": ExpectationState.fulfilled,
                    "after": "_wake_up_waits",
                },
                {
                    "trigger": "schedule_failure_check",
                    "source": ExpectationState.pending,
                    "dest": ExpectationState.checking,
                    "after": "_post_failure_check",
                },
                {
                    "trigger": "fail",
                    "source": ExpectationState.checking,
                    "dest": ExpectationState.failed,
                    "before": "_record_failure",
                    "after": "_wake_up_waits",
                },
            ],
            initial=ExpectationState.pending,
            model_attribute="_state",  # name of the field under which state is stored
            auto_transitions=False,  # do not generate transition functions
        )

        # Must be created last: the stream may emit and terminate
        # while subscribing.
        self._subscription = StreamSubscription(
            self._handle_value, self._handle_terminal, self.loop
        )
        self._logger.debug("Subscribing to %r at %s", stream, self.location)
        self._subscription.open(stream)

    def __str__(self) -> str:
        return f"Expectation '{self.description}' ({self._state.name})"

    def __del__(self) -> None:
        subscription = self.__dict__.get("_subscription")
        if subscription is not None:
            subscription.dispose()

    @property
    def state(self) -> ExpectationState:
        """Current state of this expectation."""
        return self._state

    @property
    def is_fulfilled(self) -> bool:
        """Return `True` iff the stream behaved as expected."""
        return self._state is ExpectationState.fulfilled

    @property
    def is_failed(self) -> bool:
        """Return `True` iff a failure has been reported for this expectation."""
        return self._state is ExpectationState.failed

    @property
    def done(self) -> bool:
        """Return `True` iff this expectation is fulfilled or failed."""
        return self.is_fulfilled or self.is_failed

    @property
    def settled(self) -> asyncio.Future:
        """A future that is resolved when this expectation is done."""
        return self._settled

    def dispose(self) -> None:
        """Release the subscription to the stream.

        Stream events received later are ignored. Calling this more than once
        has no further effect.
        """
        self._subscription.dispose()

    def _handle_value(self, value: Any) -> None:
        outcome = self._evaluate_value(value)
        if outcome is Outcome.MATCHED and self._state is ExpectationState.pending:
            self._logger.info("Fulfilled after value: %r", value)
            self.fulfill()

    def _handle_terminal(self, terminal: Terminal) -> None:
        self._logger.debug("Stream terminated: %s", terminal)
        if self._state is not ExpectationState.pending:
            return

        outcome = self._evaluate_terminal(terminal)
        if outcome is Outcome.MATCHED:
            self._logger.info("Fulfilled after: %s", terminal)
            self.fulfill()
        elif outcome is Outcome.FAILED:
            self.schedule_failure_check(self._failure_context(terminal))

    def _post_failure_check(self, context: FailureContext) -> None:
        self._failure_reporter.schedule(self, context)

    def _record_failure(self, message: str) -> None:
        self.failure_message = message

    def _wake_up_waits(self, *_args) -> None:
        def _resolve() -> None:
            if not self._settled.done():
                self._settled.set_result(self._state)

        # Stream callbacks may come from any thread
        self.loop.call_soon_threadsafe(_resolve)

    @abstractmethod
    def _evaluate_value(self, value: Any) -> Outcome:
        """Update this expectation with a value emitted by the stream."""

    @abstractmethod
    def _evaluate_terminal(self, terminal: Terminal) -> Outcome:
        """Decide on fulfillment when the stream terminates.

        Only called while the expectation is pending.
        """

    @abstractmethod
    def _failure_context(self, terminal: Terminal) -> FailureContext:
        """Return the context of a failure detected on `terminal`."""


class ValueExpectation(StreamExpectation):
    """An expectation fulfilled when the stream emits a matching value.

    Pass either a `condition` (a predicate over values) or an `expected_value`
    compared with `==`. If the stream terminates, successfully or not, before
    a matching value is emitted, a failure is reported.
    """

    condition: Condition
    """The condition a value must satisfy."""

    expected_value: Any
    """The expected value, or `MISSING` if created with a `condition`."""

    received_values: ValueHistory
    """All values emitted by the stream so far."""

    def __init__(
        self,
        stream: Stream,
        condition: Optional[Predicate] = None,
        *,
        expected_value: Any = MISSING,
        description: Optional[str] = None,
        **kwargs,
    ):
        if (condition is None) == (expected_value is MISSING):
            raise ValueError(
                "Exactly one of `condition` and `expected_value` must be given"
            )

        if condition is not None:
            self.condition = Condition(condition)
            default_description = (
                "Stream expected to emit a value that matches the condition."
            )
        else:
            self.condition = Condition.equal_to(expected_value)
            default_description = (
                f"Stream expected to emit the value:\n"
                f"{describe_expected(expected_value)}"
            )
        self.expected_value = expected_value
        self.received_values = ValueHistory()

        super().__init__(stream, description or default_description, **kwargs)

    def _evaluate_value(self, value: Any) -> Outcome:
        self.received_values.append(value)
        if self.condition.evaluate(value):
            return Outcome.MATCHED
        return Outcome.NOT_YET_MATCHED

    def _evaluate_terminal(self, terminal: Terminal) -> Outcome:
        # Still pending, so no value has matched
        return Outcome.FAILED

    def _failure_context(self, terminal: Terminal) -> FailureContext:
        kind = (
            FailureKind.UPSTREAM_FAILED
            if isinstance(terminal, Failed)
            else FailureKind.NEVER_MATCHED
        )
        return values_context(
            kind, tuple(self.received_values), self.expected_value
        )


class FinishedExpectation(StreamExpectation):
    """An expectation fulfilled when the stream completes successfully.

    With a `condition` or an `expected_value`, some value emitted before the
    completion must also match. A stream failing never fulfills this
    expectation.
    """

    condition: Optional[Condition]
    """The condition some value must satisfy, `None` to accept any values."""

    expected_value: Any
    """The expected value, or `MISSING` if not created with one."""

    received_values: ValueHistory
    """All values emitted by the stream so far."""

    def __init__(
        self,
        stream: Stream,
        condition: Optional[Predicate] = None,
        *,
        expected_value: Any = MISSING,
        description: Optional[str] = None,
        **kwargs,
    ):
        if condition is not None and expected_value is not MISSING:
            raise ValueError("`condition` and `expected_value` are mutually exclusive")

        if condition is not None:
            self.condition = Condition(condition)
            default_description = (
                "Stream expected to finish after emitting a value "
                "that matches the condition."
            )
        elif expected_value is not MISSING:
            self.condition = Condition.equal_to(expected_value)
            default_description = (
                f"Stream expected to finish after emitting the value:\n"
                f"{describe_expected(expected_value)}"
            )
        else:
            self.condition = None
            default_description = "Stream expected to finish"
        self.expected_value = expected_value
        self.received_values = ValueHistory()

        super().__init__(stream, description or default_description, **kwargs)

    @property
    def condition_satisfied(self) -> bool:
        """Return `True` iff some value emitted so far matched the condition."""
        return self.condition is not None and self.condition.satisfied

    def _evaluate_value(self, value: Any) -> Outcome:
        self.received_values.append(value)
        if self.condition is not None:
            self.condition.evaluate(value)
        return Outcome.NOT_YET_MATCHED

    def _evaluate_terminal(self, terminal: Terminal) -> Outcome:
        if isinstance(terminal, Failed):
            return Outcome.FAILED
        if self.condition is None or self.condition.satisfied:
            return Outcome.MATCHED
        return Outcome.FAILED

    def _failure_context(self, terminal: Terminal) -> FailureContext:
        if isinstance(terminal, Failed):
            return FinishedWithError(FailureKind.UPSTREAM_FAILED, terminal.error)
        return values_context(
            FailureKind.CONDITION_NEVER_SATISFIED_BEFORE_FINISH,
            tuple(self.received_values),
            self.expected_value,
        )


class FailureExpectation(StreamExpectation):
    """An expectation fulfilled when the stream fails with a matching error.

    Pass a `condition` over the error, or an `expected_error` which is either
    an exception instance (compared by type and arguments) or an exception
    class (compared with `isinstance()`). Without either, any error matches.
    Emitted values are ignored.
    """

    condition: Condition
    """The condition the error must satisfy."""

    expected_error: Any
    """The expected error or error class, or `MISSING`."""

    def __init__(
        self,
        stream: Stream,
        condition: Optional[Predicate] = None,
        *,
        expected_error: Any = MISSING,
        description: Optional[str] = None,
        **kwargs,
    ):
        if condition is not None and expected_error is not MISSING:
            raise ValueError("`condition` and `expected_error` are mutually exclusive")

        if condition is not None:
            self.condition = Condition(condition)
            default_description = (
                "Failure was expected with an error matching the condition."
            )
        elif expected_error is not MISSING:
            self.condition = Condition.matching_error(expected_error)
            default_description = (
                f"Failure was expected with:\n{describe_expected(expected_error)}"
            )
        else:
            self.condition = Condition.any_item()
            default_description = "Failure was expected"
        self.expected_error = expected_error

        super().__init__(stream, description or default_description, **kwargs)

    def _evaluate_value(self, value: Any) -> Outcome:
        return Outcome.NOT_YET_MATCHED

    def _evaluate_terminal(self, terminal: Terminal) -> Outcome:
        if isinstance(terminal, Failed) and self.condition.evaluate(terminal.error):
            return Outcome.MATCHED
        return Outcome.FAILED

    def _failure_context(self, terminal: Terminal) -> FailureContext:
        if isinstance(terminal, Failed):
            return FinishedWithError(
                FailureKind.ERROR_DID_NOT_MATCH, terminal.error, self.expected_error
            )
        return FinishedWithoutError(FailureKind.FINISHED_WITHOUT_FAILURE)
