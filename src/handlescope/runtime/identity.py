from collections.abc import Iterable, Iterator, MutableSet
from typing import Generic, TypeVar

T = TypeVar("T")

_MISSING = object()


class IdentitySet(MutableSet[T], Generic[T]):
    """
    A set whose membership is decided by object identity, not ``==``.

    Two distinct objects that compare equal (or are unhashable) are stored
    independently. Members are held strongly, so an ``id()`` cannot be reused
    by another object while its owner is still in the set.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[T] = ()) -> None:
        self._items: dict[int, T] = {}
        for item in items:
            self._items[id(item)] = item

    def __contains__(self, item: object) -> bool:
        return id(item) in self._items

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def add(self, item: T) -> None:
        self._items[id(item)] = item

    def discard(self, item: T) -> None:
        self._items.pop(id(item), None)

    def remove_if_present(self, item: T) -> bool:
        """Remove ``item`` and report whether it was a member."""
        return self._items.pop(id(item), _MISSING) is not _MISSING

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._items.values())!r})"
