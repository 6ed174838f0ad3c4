"""Conditions evaluated against stream values and stream errors."""

from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

Predicate = Callable[[T], bool]


class _Missing:
    """Type of the `MISSING` sentinel."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()
"""Marks an optional expected value or error that was not given.

`None` can't be used for that purpose since it's a valid stream value.
"""


def errors_equal(received: BaseException, expected: BaseException) -> bool:
    """Return `True` iff `received` should be considered equal to `expected`.

    Exceptions don't compare by value by default, so two errors are also equal
    if they are of the same type and were created with the same arguments.
    """
    if received == expected:
        return True
    return type(received) is type(expected) and received.args == expected.args


class Condition(Generic[T]):
    """A predicate over stream items that remembers whether it was satisfied.

    Once satisfied, a condition stays satisfied and the predicate is not
    evaluated again.
    """

    predicate: Predicate
    """The function deciding whether an item matches."""

    satisfied: bool
    """`True` iff some item evaluated so far matched the predicate."""

    def __init__(self, predicate: Predicate) -> None:
        if not callable(predicate):
            raise TypeError(f"Condition predicate must be callable, got {predicate!r}")
        self.predicate = predicate
        self.satisfied = False

    @classmethod
    def equal_to(cls, expected: T) -> "Condition[T]":
        """Create a condition matching items equal to `expected`."""
        return cls(lambda item: item == expected)

    @classmethod
    def any_item(cls) -> "Condition[Any]":
        """Create a condition matching every item."""
        return cls(lambda _item: True)

    @classmethod
    def matching_error(cls, expected: Any) -> "Condition[BaseException]":
        """Create a condition for errors.

        If `expected` is an exception class, errors match by `isinstance()`,
        otherwise they must be equal in the sense of `errors_equal()`.
        """
        if isinstance(expected, type) and issubclass(expected, BaseException):
            return cls(lambda error: isinstance(error, expected))
        if isinstance(expected, BaseException):
            return cls(lambda error: errors_equal(error, expected))
        raise TypeError(
            f"Expected error must be an exception or an exception class, "
            f"got {expected!r}"
        )

    def evaluate(self, item: T) -> bool:
        """Evaluate the predicate on `item` unless already satisfied.

        Return the (possibly updated) value of `satisfied`.
        """
        if not self.satisfied and self.predicate(item):
            self.satisfied = True
        return self.satisfied

    def __repr__(self) -> str:
        status = "satisfied" if self.satisfied else "unsatisfied"
        return f"Condition({self.predicate!r}, {status})"
