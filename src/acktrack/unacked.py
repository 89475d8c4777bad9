"""Insertion-ordered, optionally bounded container of unacknowledged messages.

Entries are keyed by receipt handle. Iteration order is the order in which
messages were first recorded. When a capacity is set, every insertion that
pushes the size above it evicts the single oldest entry.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Iterator, Optional, TypeVar

from acktrack.message import MessageIdentifier

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


def evict_if_over_capacity(
    entries: "OrderedDict[K, V]", capacity: Optional[int]
) -> list[tuple[K, V]]:
    """Evict the oldest entry if `entries` has grown beyond `capacity`.

    At most one entry is evicted per call. A capacity of `None`, zero or
    a negative number means unbounded, and nothing is ever evicted.

    Returns:
        list[tuple]: The evicted `(key, value)` pair, or an empty list
    """
    if not capacity or capacity <= 0:
        return []

    if len(entries) > capacity:
        return [entries.popitem(last=False)]

    return []


class UnacknowledgedSet:
    """Receipt handle → `MessageIdentifier`, in consumption order.

    Not safe for concurrent use.
    """

    def __init__(self, capacity: Optional[int] = None) -> None:
        self._capacity = capacity if capacity and capacity > 0 else None
        self._entries: OrderedDict[str, MessageIdentifier] = OrderedDict()

    @property
    def capacity(self) -> Optional[int]:
        return self._capacity

    @property
    def is_bounded(self) -> bool:
        return self._capacity is not None

    def add(self, identifier: MessageIdentifier) -> list[MessageIdentifier]:
        """Record an identifier and return any identifiers evicted to make room.

        Re-adding a receipt handle that is already tracked replaces the stored
        identifier but keeps its original position.
        """
        self._entries[identifier.receipt_handle] = identifier

        evicted = evict_if_over_capacity(self._entries, self._capacity)
        for receipt_handle, _ in evicted:
            logger.debug(
                f"Evicted unacknowledged message `{receipt_handle}` "
                f"(capacity {self._capacity})"
            )

        return [value for _, value in evicted]

    def discard(self, receipt_handle: str) -> Optional[MessageIdentifier]:
        return self._entries.pop(receipt_handle, None)

    def snapshot(self) -> list[MessageIdentifier]:
        return list(self._entries.values())

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, receipt_handle: object) -> bool:
        return receipt_handle in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[MessageIdentifier]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"<UnacknowledgedSet size={len(self)} capacity={self._capacity}>"
