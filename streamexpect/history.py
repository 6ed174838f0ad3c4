"""Recorder of the values emitted by a stream."""

from typing import Iterator, List, Sequence, TypeVar, overload

T = TypeVar("T")


class ValueHistory(Sequence[T]):
    """An append-only, ordered record of emitted values.

    Values are never dropped while the owning expectation is alive, so that
    a failure diagnostic can show everything the stream emitted.
    """

    _values: List[T]

    def __init__(self) -> None:
        self._values = []

    def append(self, value: T) -> None:
        """Record `value` as the most recent emission."""
        self._values.append(value)

    @overload
    def __getitem__(self, index: int) -> T:
        ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[T]:
        ...

    def __getitem__(self, index):
        return self._values[index]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[T]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"ValueHistory({self._values!r})"

    def snapshot(self) -> List[T]:
        """Return a copy of the values recorded so far."""
        return list(self._values)
