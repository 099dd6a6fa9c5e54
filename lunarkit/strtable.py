"""Interning table that keeps one canonical copy of every string."""

from __future__ import annotations

from collections.abc import Iterator

from lunarkit.limits import MAX_INT, MINSTRTABSIZE

_MASK32 = 0xFFFFFFFF


def string_hash(data: bytes) -> int:
    """Hash ``data`` to 32 bits; long strings are sampled, not hashed whole."""
    size = len(data)
    h = size & _MASK32
    step = (size >> 5) + 1
    pos = size
    while pos >= step:
        h = (h ^ (((h << 5) + (h >> 2) + data[pos - 1]) & _MASK32)) & _MASK32
        pos -= step
    return h


def _is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


class StringTable:
    """Hash table of interned byte strings, chained per bucket."""

    def __init__(self, size: int = MINSTRTABSIZE) -> None:
        if not _is_power_of_two(size):
            raise ValueError(f"table size must be a power of 2, not {size}")
        self._buckets: list[list[tuple[int, bytes]]] = [[] for _ in range(size)]
        self._nuse = 0

    @property
    def size(self) -> int:
        """Number of buckets."""
        return len(self._buckets)

    def __len__(self) -> int:
        return self._nuse

    def __contains__(self, data: object) -> bool:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            return False
        data = bytes(data)
        h = string_hash(data)
        return any(nh == h and node == data
                   for nh, node in self._buckets[h & (self.size - 1)])

    def __iter__(self) -> Iterator[bytes]:
        for bucket in self._buckets:
            for _, node in bucket:
                yield node

    def resize(self, newsize: int) -> None:
        """Rehash every string into ``newsize`` buckets (a power of 2)."""
        if not _is_power_of_two(newsize):
            raise ValueError(f"table size must be a power of 2, not {newsize}")
        buckets: list[list[tuple[int, bytes]]] = [[] for _ in range(newsize)]
        for bucket in self._buckets:
            for h, node in bucket:
                buckets[h & (newsize - 1)].insert(0, (h, node))
        self._buckets = buckets

    def intern(self, data: bytes) -> bytes:
        """Return the canonical object for ``data``, adding it if new."""
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"expected bytes, got {type(data).__name__}")
        data = bytes(data)
        h = string_hash(data)
        for nh, node in self._buckets[h & (self.size - 1)]:
            if nh == h and node == data:
                return node
        if self._nuse >= self.size and self.size <= MAX_INT // 2:
            self.resize(self.size * 2)
        self._buckets[h & (self.size - 1)].insert(0, (h, data))
        self._nuse += 1
        return data