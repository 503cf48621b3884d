"""Separate-chaining hash table over integer keys."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

from .hashing import HashKind, check_capacity, slot_index
from .statistics import ChainStatistics, chain_statistics

logger = logging.getLogger("hashlab")


@dataclass(slots=True)
class _Node:
    key: int
    next: Optional["_Node"] = None


class ChainedTable:
    """Fixed number of buckets, each owning a singly linked chain of keys.

    New keys are pushed at the head of their chain. Keys are unique across the table
    for a given hash kind; there is no automatic rehash, chains simply grow.
    """

    __slots__ = ("_capacity", "_buckets", "_size")

    def __init__(self, capacity: int) -> None:
        self._capacity = check_capacity(capacity)
        self._buckets: List[Optional[_Node]] = [None] * self._capacity
        self._size = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._size

    def size(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self._size == 0

    def bucket_index(self, key: int, kind: HashKind | str = HashKind.DIVISION) -> int:
        return slot_index(key, self._capacity, HashKind.parse(kind))

    def insert(self, key: int, kind: HashKind | str = HashKind.DIVISION) -> bool:
        """Store ``key``; return ``False`` when it was already present."""

        if self.search(key, kind):
            return False
        idx = self.bucket_index(key, kind)
        self._buckets[idx] = _Node(key, self._buckets[idx])
        self._size += 1
        return True

    def search(self, key: int, kind: HashKind | str = HashKind.DIVISION) -> bool:
        node = self._buckets[self.bucket_index(key, kind)]
        while node is not None:
            if node.key == key:
                return True
            node = node.next
        return False

    def remove(self, key: int, kind: HashKind | str = HashKind.DIVISION) -> bool:
        idx = self.bucket_index(key, kind)
        head = self._buckets[idx]
        if head is None:
            return False
        if head.key == key:
            self._buckets[idx] = head.next
            self._size -= 1
            return True
        prev = head
        node = head.next
        while node is not None:
            if node.key == key:
                prev.next = node.next
                self._size -= 1
                return True
            prev, node = node, node.next
        return False

    def load_factor(self) -> float:
        return self._size / self._capacity

    def clear(self) -> None:
        self._buckets = [None] * self._capacity
        self._size = 0
        logger.debug("Cleared chained table (capacity=%d)", self._capacity)

    def chain(self, index: int) -> Iterator[int]:
        """Yield the keys of bucket ``index`` from head to tail."""

        node = self._buckets[index]
        while node is not None:
            yield node.key
            node = node.next

    def chain_lengths(self) -> List[int]:
        lengths: List[int] = []
        for head in self._buckets:
            length = 0
            node = head
            while node is not None:
                length += 1
                node = node.next
            lengths.append(length)
        return lengths

    def keys(self) -> Iterator[int]:
        for idx in range(self._capacity):
            yield from self.chain(idx)

    def statistics(self) -> ChainStatistics:
        return chain_statistics(self)

    def __repr__(self) -> str:
        return f"ChainedTable(capacity={self._capacity}, size={self._size})"


__all__ = ["ChainedTable"]
