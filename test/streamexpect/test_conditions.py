"""Unit tests for `streamexpect.conditions` and `streamexpect.history` modules."""

import pytest

from streamexpect.conditions import MISSING, Condition, errors_equal
from streamexpect.history import ValueHistory


class CodedError(Exception):
    """An error identified by a numeric code."""

    def __init__(self, code: int):
        super().__init__(code)
        self.code = code


def test_condition_latches():
    """Test that a satisfied condition is not evaluated again."""

    calls = []

    def is_even(n):
        calls.append(n)
        return n % 2 == 0

    condition = Condition(is_even)
    assert not condition.evaluate(1)
    assert condition.evaluate(2)
    assert condition.evaluate(3)
    assert condition.satisfied
    assert calls == [1, 2]


def test_condition_equal_to():
    """Test a condition comparing items with an expected value."""

    condition = Condition.equal_to("b")
    assert not condition.evaluate("a")
    assert condition.evaluate("b")


def test_condition_equal_to_none():
    """Test that `None` can be used as an expected value."""

    condition = Condition.equal_to(None)
    assert not condition.evaluate(0)
    assert condition.evaluate(None)


def test_condition_any_item():
    """Test a condition that matches every item."""

    assert Condition.any_item().evaluate(object())


def test_condition_not_callable():
    """Test that a condition requires a callable predicate."""

    with pytest.raises(TypeError):
        Condition(42)


@pytest.mark.parametrize(
    "received, expected, equal",
    [
        (CodedError(1), CodedError(1), True),
        (CodedError(1), CodedError(2), False),
        (ValueError("x"), ValueError("x"), True),
        (ValueError("x"), TypeError("x"), False),
        (ValueError("x"), ValueError("y"), False),
    ],
)
def test_errors_equal(received, expected, equal):
    """Test comparing errors by type and arguments."""

    assert errors_equal(received, expected) is equal


def test_matching_error_instance():
    """Test an error condition created with an exception instance."""

    condition = Condition.matching_error(CodedError(100))
    assert not condition.evaluate(CodedError(1300))
    assert condition.evaluate(CodedError(100))


def test_matching_error_class():
    """Test an error condition created with an exception class."""

    condition = Condition.matching_error(LookupError)
    assert not condition.evaluate(ValueError())
    assert condition.evaluate(KeyError("k"))


def test_matching_error_invalid():
    """Test that an error condition requires an exception or exception class."""

    with pytest.raises(TypeError):
        Condition.matching_error("not an error")


def test_missing_sentinel():
    """Test the properties of the `MISSING` sentinel."""

    assert not MISSING
    assert MISSING is not None
    assert repr(MISSING) == "MISSING"


def test_value_history():
    """Test that the history keeps every value in order."""

    history = ValueHistory()
    assert len(history) == 0

    for value in ["a", "b", "a"]:
        history.append(value)

    assert len(history) == 3
    assert list(history) == ["a", "b", "a"]
    assert history[-1] == "a"
    assert history[0:2] == ["a", "b"]

    snapshot = history.snapshot()
    history.append("c")
    assert snapshot == ["a", "b", "a"]
    assert len(history) == 4
