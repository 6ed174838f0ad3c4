"""Waiting for expectations to be settled."""

import asyncio
from enum import Enum
import logging
from typing import Optional, Sequence

from streamexpect.configuration import Configuration
from streamexpect.exceptions import (
    ExpectationFailedError,
    ExpectationTimeoutError,
    InvertedExpectationFulfilledError,
)
from streamexpect.expectations import StreamExpectation


logger = logging.getLogger(__name__)


class WaitResult(Enum):
    """Outcomes of waiting for a group of expectations."""

    COMPLETED = "completed"
    """Every expectation behaved as expected."""

    FAILED = "failed"
    """Some expectation reported a failure."""

    INVERTED_FULFILLMENT = "inverted-fulfillment"
    """Some inverted expectation was fulfilled."""

    TIMED_OUT = "timed-out"
    """Some expectation that is not inverted was still pending."""


class ExpectationWaiter:
    """Waits until expectations are settled or a timeout elapses.

    Expectations that are not inverted settle when fulfilled or when they
    report a failure. Inverted expectations are satisfied by staying pending,
    so a wait including one of them lasts for the whole timeout unless that
    expectation gets fulfilled.
    """

    config: Configuration

    def __init__(self, config: Optional[Configuration] = None) -> None:
        self.config = config or Configuration()

    async def wait(
        self,
        expectations: Sequence[StreamExpectation],
        timeout: Optional[float] = None,
    ) -> WaitResult:
        """Wait for `expectations` for at most `timeout` seconds.

        `None` means to use the configured default timeout.
        """

        if timeout is None:
            timeout = self.config.default_timeout

        futures = [e.settled for e in expectations]
        if futures:
            _done, pending = await asyncio.wait(futures, timeout=timeout)
            logger.debug(
                "Waited for %d expectations, %d still pending",
                len(futures),
                len(pending),
            )

        return self.result_of(expectations)

    @staticmethod
    def result_of(expectations: Sequence[StreamExpectation]) -> WaitResult:
        """Classify the current state of `expectations`."""

        if any(e.is_failed for e in expectations):
            return WaitResult.FAILED
        if any(e.is_inverted and e.is_fulfilled for e in expectations):
            return WaitResult.INVERTED_FULFILLMENT
        if any(not e.is_inverted and not e.done for e in expectations):
            return WaitResult.TIMED_OUT
        return WaitResult.COMPLETED


async def wait_for_expectations(
    expectations: Sequence[StreamExpectation],
    timeout: Optional[float] = None,
    config: Optional[Configuration] = None,
) -> WaitResult:
    """Wait for `expectations` and raise if any of them was not met.

    Raises `ExpectationFailedError` if failures were reported,
    `InvertedExpectationFulfilledError` if an inverted expectation was fulfilled
    and `ExpectationTimeoutError` if an expectation timed out, in this order
    of precedence.
    """

    waiter = ExpectationWaiter(config)
    result = await waiter.wait(expectations, timeout)

    if result is WaitResult.FAILED:
        raise ExpectationFailedError(
            [e.failure_message for e in expectations if e.failure_message]
        )
    if result is WaitResult.INVERTED_FULFILLMENT:
        raise InvertedExpectationFulfilledError(
            [e.description for e in expectations if e.is_inverted and e.is_fulfilled]
        )
    if result is WaitResult.TIMED_OUT:
        raise ExpectationTimeoutError(
            [e.description for e in expectations if not e.is_inverted and not e.done],
            waiter.config.default_timeout if timeout is None else timeout,
        )
    return result


def wait_for_expectations_sync(
    expectations: Sequence[StreamExpectation],
    timeout: Optional[float] = None,
    loop: Optional[asyncio.AbstractEventLoop] = None,
    config: Optional[Configuration] = None,
) -> WaitResult:
    """Block until `expectations` are settled, running their event loop.

    This is for tests that don't run in an event loop themselves. The loop
    defaults to the one the expectations were created with; it must not be
    running already.
    """

    if loop is None:
        if not expectations:
            return WaitResult.COMPLETED
        loop = expectations[0].loop

    if loop.is_running():
        raise RuntimeError(
            "Event loop is already running, use `await wait_for_expectations()`"
        )

    return loop.run_until_complete(
        wait_for_expectations(expectations, timeout, config)
    )
