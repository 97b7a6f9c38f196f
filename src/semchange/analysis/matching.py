"""Correspondence primitives shared by the category analyzers.

Three strategies pair base occurrences with head occurrences:

- position-keyed: occurrences indexed by ``(line, column)``; see
  :func:`index_by_position`. Statements use :func:`match_by_position`,
  which also tolerates moved code.
- fingerprint-bucketed: base occurrences stored in a :class:`FifoMultimap`
  and consumed front-first by head occurrences with the same fingerprint.
- name-keyed: declarations looked up by name; see :func:`first_by`.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Hashable, Iterable, Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
T = TypeVar("T")


class FifoMultimap(Generic[K, V]):
    """Ordered multimap with pop-front consumption per key.

    Keys iterate in first-insertion order and values within a key in
    insertion order. Emptied buckets are dropped so that :meth:`remaining`
    only yields unconsumed values.
    """

    __slots__ = ("_buckets",)

    def __init__(self) -> None:
        self._buckets: dict[K, deque[V]] = {}

    @classmethod
    def from_items(cls, items: Iterable[V], key: Callable[[V], K]) -> FifoMultimap[K, V]:
        multimap: FifoMultimap[K, V] = cls()
        for item in items:
            multimap.push(key(item), item)
        return multimap

    def push(self, key: K, value: V) -> None:
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = deque()
            self._buckets[key] = bucket
        bucket.append(value)

    def pop_front(self, key: K) -> V | None:
        """Remove and return the oldest value under ``key``, or None."""
        bucket = self._buckets.get(key)
        if not bucket:
            return None
        value = bucket.popleft()
        if not bucket:
            del self._buckets[key]
        return value

    def remaining(self) -> Iterator[V]:
        """Yield every unconsumed value, bucket by bucket."""
        for bucket in self._buckets.values():
            yield from bucket

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())

    def __contains__(self, key: object) -> bool:
        return key in self._buckets


@dataclass(frozen=True, slots=True)
class BucketMatch(Generic[V]):
    """Outcome of a fingerprint-bucketed match.

    ``pairs`` holds ``(base, head)`` tuples in head order, ``added`` the head
    occurrences without a partner and ``removed`` the unconsumed base ones.
    """

    pairs: tuple[tuple[V, V], ...]
    added: tuple[V, ...]
    removed: tuple[V, ...]


def match_buckets(base: Iterable[V], head: Iterable[V], key: Callable[[V], K]) -> BucketMatch[V]:
    """Pair head occurrences with base occurrences sharing a fingerprint.

    For a fingerprint with ``m`` base and ``n`` head occurrences this yields
    ``min(m, n)`` pairs, ``max(0, n - m)`` additions and ``max(0, m - n)``
    removals. Duplicates pair one-to-one in encounter order.
    """
    buckets: FifoMultimap[K, V] = FifoMultimap.from_items(base, key)
    pairs: list[tuple[V, V]] = []
    added: list[V] = []
    for item in head:
        partner = buckets.pop_front(key(item))
        if partner is None:
            added.append(item)
        else:
            pairs.append((partner, item))
    return BucketMatch(pairs=tuple(pairs), added=tuple(added), removed=tuple(buckets.remaining()))


def index_by_position(
    items: Iterable[T], position: Callable[[T], tuple[int, int]]
) -> dict[tuple[int, int], T]:
    """Index occurrences by ``(line, column)``; later duplicates win."""
    return {position(item): item for item in items}


def first_by(items: Iterable[T], attr: Callable[[T], object], value: object) -> T | None:
    """Return the first item whose ``attr`` equals ``value``."""
    for item in items:
        if attr(item) == value:
            return item
    return None


@dataclass(frozen=True, slots=True)
class AlignedMatch(Generic[V]):
    """Outcome of a position-aligned match.

    ``changed`` holds ``(base, head)`` pairs found at the same position
    whose texts differ. Occurrences that only moved are not reported.
    ``edits`` interleaves ``changed`` and ``added`` in head order, with
    ``None`` as the base of an addition.
    """

    changed: tuple[tuple[V, V], ...]
    added: tuple[V, ...]
    removed: tuple[V, ...]
    edits: tuple[tuple[V | None, V], ...] = ()


def match_by_position(
    base: Iterable[V],
    head: Iterable[V],
    position: Callable[[V], tuple[int, int]],
    text: Callable[[V], str],
) -> AlignedMatch[V]:
    """Align statement occurrences by start position and normalized text.

    Pairing runs in three passes: same position and same text, then same
    text anywhere in encounter order (moved or re-indented code), then same
    position with different text. Whatever is left is added or removed.
    """
    base_all = list(base)
    base_left = base_all
    head_left = list(head)

    exact = {(position(item), text(item)) for item in base_left}
    matched_exact = {
        (position(item), text(item))
        for item in head_left
        if (position(item), text(item)) in exact
    }
    base_left = [item for item in base_left if (position(item), text(item)) not in matched_exact]
    head_left = [item for item in head_left if (position(item), text(item)) not in matched_exact]

    moved = match_buckets(base_left, head_left, text)
    base_left = list(moved.removed)
    head_left = list(moved.added)

    base_by_position = index_by_position(base_left, position)
    changed: list[tuple[V, V]] = []
    added: list[V] = []
    edits: list[tuple[V | None, V]] = []
    for item in head_left:
        partner = base_by_position.pop(position(item), None)
        if partner is None:
            added.append(item)
        else:
            changed.append((partner, item))
        edits.append((partner, item))
    unpaired = {id(item) for item in base_by_position.values()}
    removed = tuple(item for item in base_all if id(item) in unpaired)
    return AlignedMatch(
        changed=tuple(changed), added=tuple(added), removed=removed, edits=tuple(edits)
    )
