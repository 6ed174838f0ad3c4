"""Unit tests for `ValueExpectation`."""

import asyncio
from pathlib import Path
import threading

import pytest
import rx
from rx.subject import Subject

from streamexpect import (
    ExpectationFailedError,
    ExpectationState,
    ExpectationTimeoutError,
    InvertedExpectationFulfilledError,
    ValueExpectation,
    WaitResult,
    wait_for_expectations,
    wait_for_expectations_sync,
)


@pytest.mark.asyncio
async def test_fulfilled_by_expected_value(reporter):
    """Test that a stream emitting the expected value fulfills the expectation."""

    expectation = ValueExpectation(
        rx.of(1, 2, 3, 4, 5), expected_value=3, reporter=reporter
    )
    assert expectation.is_fulfilled

    result = await wait_for_expectations([expectation], timeout=0.5)
    assert result is WaitResult.COMPLETED
    assert reporter.failures == []
    assert list(expectation.received_values) == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_expected_value_never_emitted(reporter):
    """Test the failure reported when the expected value is never emitted."""

    expectation = ValueExpectation(
        rx.of(1, 2, 3, 4, 5), expected_value=100, reporter=reporter
    )
    assert not expectation.is_fulfilled
    assert expectation.state is ExpectationState.checking

    with pytest.raises(ExpectationFailedError) as exc_info:
        await wait_for_expectations([expectation], timeout=0.5)

    message = str(exc_info.value)
    assert message.startswith("Stream expected to emit the value:\n100\n\n")
    assert "+   [0]: 1" in message
    assert "-   [4]: 100" in message
    assert "+   [4]: 5" in message

    assert expectation.is_failed
    assert not expectation.is_fulfilled
    assert expectation.failure_message == message
    assert len(reporter.failures) == 1
    reported_message, location = reporter.failures[0]
    assert reported_message == message
    assert Path(location.filename).name == Path(__file__).name


@pytest.mark.asyncio
async def test_failure_is_reported_later(reporter):
    """Test that a failure is not reported before the caller yields control."""

    expectation = ValueExpectation(rx.of(1, 2), expected_value=3, reporter=reporter)
    assert reporter.failures == []
    assert expectation.failure_message is None

    await asyncio.sleep(0)
    assert len(reporter.failures) == 1
    assert expectation.is_failed


@pytest.mark.asyncio
async def test_inverted_after_construction(reporter):
    """Test inverting an expectation whose stream ended during construction."""

    expectation = ValueExpectation(
        rx.of(1, 2, 3, 4, 5), expected_value=100, reporter=reporter
    )
    expectation.is_inverted = True

    result = await wait_for_expectations([expectation], timeout=0.1)
    assert result is WaitResult.COMPLETED
    assert reporter.failures == []
    assert not expectation.done
    assert expectation.failure_message is None


@pytest.mark.asyncio
async def test_inverted_fulfilled(reporter):
    """Test that fulfilling an inverted expectation fails the wait."""

    expectation = ValueExpectation(
        rx.of(1, 2, 3), expected_value=2, inverted=True, reporter=reporter
    )
    assert expectation.is_fulfilled

    with pytest.raises(InvertedExpectationFulfilledError):
        await wait_for_expectations([expectation], timeout=0.1)


@pytest.mark.asyncio
async def test_condition_stays_fulfilled(reporter):
    """Test that later values and completion don't change a fulfilled expectation."""

    subject = Subject()
    expectation = ValueExpectation(subject, lambda n: n > 2, reporter=reporter)
    assert expectation.description == (
        "Stream expected to emit a value that matches the condition."
    )

    subject.on_next(1)
    assert not expectation.is_fulfilled
    subject.on_next(3)
    assert expectation.is_fulfilled
    subject.on_next(0)
    subject.on_completed()
    assert expectation.is_fulfilled

    await asyncio.sleep(0)
    assert reporter.failures == []
    assert list(expectation.received_values) == [1, 3, 0]


@pytest.mark.asyncio
async def test_upstream_failure(reporter):
    """Test that a failing stream without a matching value fails the expectation."""

    subject = Subject()
    expectation = ValueExpectation(
        subject,
        lambda n: n > 2,
        description="Stream expected to emit a big number",
        reporter=reporter,
    )

    subject.on_next(1)
    subject.on_error(ValueError("boom"))

    with pytest.raises(ExpectationFailedError) as exc_info:
        await wait_for_expectations([expectation], timeout=0.5)
    assert str(exc_info.value) == (
        "Stream expected to emit a big number\n\nValues emitted:\n  [1]"
    )


@pytest.mark.asyncio
async def test_empty_stream(reporter):
    """Test the failure reported for a stream that emits no values."""

    expectation = ValueExpectation(rx.empty(), expected_value=1, reporter=reporter)

    with pytest.raises(ExpectationFailedError) as exc_info:
        await wait_for_expectations([expectation], timeout=0.5)
    assert str(exc_info.value).endswith("No value was emitted by the stream")


@pytest.mark.asyncio
async def test_expected_none(reporter):
    """Test that `None` can be the expected value."""

    expectation = ValueExpectation(
        rx.of(0, None), expected_value=None, reporter=reporter
    )
    assert expectation.is_fulfilled


@pytest.mark.asyncio
async def test_values_from_another_thread(reporter):
    """Test a stream emitting values from a background thread."""

    subject = Subject()
    expectation = ValueExpectation(subject, expected_value=4, reporter=reporter)

    def emit():
        for n in range(6):
            subject.on_next(n)
        subject.on_completed()

    thread = threading.Thread(target=emit)
    thread.start()

    result = await wait_for_expectations([expectation], timeout=1.0)
    thread.join()
    assert result is WaitResult.COMPLETED
    assert list(expectation.received_values) == [0, 1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_timeout(reporter):
    """Test that a stream that never emits makes the wait time out."""

    expectation = ValueExpectation(Subject(), expected_value=1, reporter=reporter)

    with pytest.raises(ExpectationTimeoutError) as exc_info:
        await wait_for_expectations([expectation], timeout=0.1)
    assert "Stream expected to emit the value:" in str(exc_info.value)
    assert reporter.failures == []


@pytest.mark.asyncio
async def test_dispose(reporter):
    """Test that a disposed expectation ignores the stream."""

    subject = Subject()
    expectation = ValueExpectation(subject, expected_value=1, reporter=reporter)
    expectation.dispose()

    subject.on_next(1)
    subject.on_completed()
    await asyncio.sleep(0)

    assert not expectation.done
    assert list(expectation.received_values) == []
    assert reporter.failures == []


@pytest.mark.asyncio
async def test_async_iterable_stream(reporter):
    """Test an expectation on an asynchronous generator."""

    async def letters():
        for letter in "abc":
            await asyncio.sleep(0.01)
            yield letter

    expectation = ValueExpectation(letters(), expected_value="c", reporter=reporter)
    assert not expectation.is_fulfilled

    await wait_for_expectations([expectation], timeout=1.0)
    assert expectation.is_fulfilled


@pytest.mark.asyncio
async def test_condition_raising(reporter):
    """Test that an error raised by the condition propagates to the stream."""

    subject = Subject()
    expectation = ValueExpectation(subject, lambda n: 10 // n > 2, reporter=reporter)

    with pytest.raises(ZeroDivisionError):
        subject.on_next(0)

    await asyncio.sleep(0)
    assert expectation.state is ExpectationState.pending
    assert list(expectation.received_values) == [0]
    assert reporter.failures == []


def test_dispose_after_loop_closed(new_loop, reporter):
    """Test disposing an expectation on an async iterable after its loop closed."""

    async def letters():
        yield "a"

    expectation = ValueExpectation(
        letters(), expected_value="a", loop=new_loop, reporter=reporter
    )
    new_loop.close()

    expectation.dispose()
    assert not expectation.done


def test_arguments_required():
    """Test that exactly one of `condition` and `expected_value` is accepted."""

    loop = asyncio.new_event_loop()
    try:
        with pytest.raises(ValueError):
            ValueExpectation(rx.of(1), loop=loop)
        with pytest.raises(ValueError):
            ValueExpectation(rx.of(1), lambda _: True, expected_value=1, loop=loop)
    finally:
        loop.close()


def test_no_running_loop():
    """Test that without a running loop the loop must be given explicitly."""

    with pytest.raises(RuntimeError):
        ValueExpectation(rx.of(1), expected_value=1)


def test_blocking_wait(new_loop, reporter):
    """Test waiting for expectations outside of a running event loop."""

    fulfilled = ValueExpectation(
        rx.of(1, 2, 3), expected_value=2, loop=new_loop, reporter=reporter
    )
    inverted = ValueExpectation(
        rx.of(1, 2, 3), expected_value=100, loop=new_loop, reporter=reporter
    )
    inverted.is_inverted = True

    result = wait_for_expectations_sync([fulfilled, inverted], timeout=0.1)
    assert result is WaitResult.COMPLETED
    assert reporter.failures == []


def test_blocking_wait_failure(new_loop, reporter):
    """Test that failures are reported while the loop runs in a blocking wait."""

    expectation = ValueExpectation(
        rx.of(1, 2, 3), expected_value=100, loop=new_loop, reporter=reporter
    )
    assert reporter.failures == []

    with pytest.raises(ExpectationFailedError):
        wait_for_expectations_sync([expectation], timeout=0.5)
    assert len(reporter.failures) == 1
